"""Stringify the node graph for testing and debugging."""
from typing import List, Union

from ua_nodeset_codegen import stringify as stringify_mod
from ua_nodeset_codegen.common import assert_never
from ua_nodeset_codegen.model._types import (
    Argument,
    DataType,
    Method,
    NodeUnion,
    Object,
    ObjectType,
    ParsedDocument,
    Reference,
    Variable,
    VariableType,
)


def _stringify_reference(that: Reference) -> stringify_mod.Entity:
    return stringify_mod.Entity(
        name=that.__class__.__name__,
        properties=[
            stringify_mod.Property("reference_type", that.reference_type),
            stringify_mod.Property("target_node_id", that.target_node_id),
            stringify_mod.Property("is_forward", that.is_forward),
            stringify_mod.Property("namespace_string", that.namespace_string),
            stringify_mod.PropertyEllipsis("target_node", that.target_node),
        ],
    )


def _stringify_argument(that: Argument) -> stringify_mod.Entity:
    return stringify_mod.Entity(
        name=that.__class__.__name__,
        properties=[
            stringify_mod.Property("name", that.name),
            stringify_mod.Property("data_type_identifier", that.data_type_identifier),
            stringify_mod.Property("value_rank", that.value_rank),
        ],
    )


def _stringify_data_type_descriptor(that: DataType) -> stringify_mod.Entity:
    return stringify_mod.Entity(
        name=that.__class__.__name__,
        properties=[
            stringify_mod.Property("node_id", that.node_id),
            stringify_mod.Property("definition_name", that.definition_name),
            stringify_mod.Property("definition_fields", dict(that.definition_fields)),
            stringify_mod.Property("is_enum", that.is_enum),
        ],
    )


def _stringify_node(that: NodeUnion) -> stringify_mod.Entity:
    properties = [
        stringify_mod.Property("node_id", that.node_id),
        stringify_mod.Property("browse_name", that.browse_name),
        stringify_mod.Property("display_name", that.display_name),
        stringify_mod.Property("description", that.description),
        stringify_mod.Property("parent_node_id", that.parent_node_id),
        stringify_mod.PropertyEllipsis("parent_node", that.parent_node),
        stringify_mod.Property("namespace_string", that.namespace_string),
        stringify_mod.Property("is_optional", that.is_optional),
        stringify_mod.Property(
            "references", [_stringify_reference(ref) for ref in that.references]
        ),
    ]  # type: List[Union[stringify_mod.Property, stringify_mod.PropertyEllipsis]]

    if isinstance(that, Object):
        pass

    elif isinstance(that, DataType):
        properties.extend(
            [
                stringify_mod.Property("definition_name", that.definition_name),
                stringify_mod.Property(
                    "definition_fields", dict(that.definition_fields)
                ),
                stringify_mod.Property("is_enum", that.is_enum),
            ]
        )

    elif isinstance(that, (Variable, VariableType)):
        properties.extend(
            [
                stringify_mod.Property(
                    "data_type", _stringify_data_type_descriptor(that.data_type)
                ),
                stringify_mod.Property(
                    "arguments", [_stringify_argument(arg) for arg in that.arguments]
                ),
                stringify_mod.Property("array_dimensions", that.array_dimensions),
                stringify_mod.Property("value_rank", that.value_rank),
            ]
        )
        if isinstance(that, VariableType):
            properties.append(stringify_mod.Property("is_abstract", that.is_abstract))

    elif isinstance(that, Method):
        properties.extend(
            [
                stringify_mod.PropertyEllipsis("input_argument", that.input_argument),
                stringify_mod.PropertyEllipsis(
                    "output_argument", that.output_argument
                ),
            ]
        )

    elif isinstance(that, ObjectType):
        properties.append(stringify_mod.Property("is_abstract", that.is_abstract))

    else:
        assert_never(that)

    return stringify_mod.Entity(name=that.__class__.__name__, properties=properties)


def stringify_node(that: NodeUnion) -> stringify_mod.Entity:
    """Represent the node as a stringifiable entity, links into the graph elided."""
    return _stringify_node(that)


def stringify_document(that: ParsedDocument) -> stringify_mod.Entity:
    """Represent the whole document as a stringifiable entity."""
    return stringify_mod.Entity(
        name=that.__class__.__name__,
        properties=[
            stringify_mod.Property("namespace_uri", that.namespace_uri),
            stringify_mod.Property(
                "namespace_index_map",
                {str(index): uri for index, uri in that.namespace_index_map.items()},
            ),
            stringify_mod.Property("alias_map", dict(that.alias_map)),
            stringify_mod.Property("has_custom_types", that.has_custom_types),
            stringify_mod.Property(
                "required_model_uris", list(that.required_model_uris)
            ),
            stringify_mod.Property(
                "nodes", [_stringify_node(node) for node in that.nodes.values()]
            ),
        ],
    )


def dump(that: Union[NodeUnion, ParsedDocument]) -> str:
    """Produce a string representation of ``that`` for debugging or testing."""
    if isinstance(that, ParsedDocument):
        return stringify_mod.dump(stringify_document(that))

    return stringify_mod.dump(stringify_node(that))
