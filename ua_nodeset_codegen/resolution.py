"""
Resolve the links between the nodes of all the documents of a session.

The resolution runs in four passes, each of which completes before the next
one starts:

1. Link every node to its parent node within the same document.
2. Link every reference to its target, mark the optional members and
   flatten the inherited fields of data types.
3. Link the variables to their data types.
4. Link the methods to the variables holding their argument lists.

Misses are not fatal. They are reported as warnings and the link is left empty.
"""
from typing import Dict, List, Mapping, Optional, Set, Tuple

from ua_nodeset_codegen import model, naming
from ua_nodeset_codegen.common import Error


def find_node(
    documents: Mapping[str, model.ParsedDocument],
    namespace_uri: Optional[str],
    node_id: str,
) -> Optional[model.NodeUnion]:
    """Find the node with ``node_id`` in the document of ``namespace_uri``."""
    if namespace_uri is None:
        return None

    document = documents.get(namespace_uri, None)
    if document is None:
        return None

    return document.find_node(node_id)


def _link_parents(documents: Mapping[str, model.ParsedDocument]) -> None:
    for document in documents.values():
        for node in document.nodes.values():
            if len(node.parent_node_id) == 0:
                continue

            parent_node = document.find_node(node.parent_node_id)
            if parent_node is not None:
                node.parent_node = parent_node


def _link_references(
    documents: Mapping[str, model.ParsedDocument], warnings: List[Error]
) -> None:
    # NOTE: The visited set is keyed by identity as the nodes are unique objects,
    # while the same node ID can appear in different documents.
    visited = set()  # type: Set[int]

    for document in documents.values():
        for start_node in document.nodes.values():
            if id(start_node) in visited:
                continue

            stack = [start_node]  # type: List[model.NodeUnion]
            visited.add(id(start_node))

            while len(stack) > 0:
                node = stack.pop()

                for reference in node.references:
                    target = find_node(
                        documents, reference.namespace_string, reference.target_node_id
                    )

                    if target is None:
                        if reference.namespace_string is None:
                            reason = "the namespace of the target is not declared"
                        elif reference.namespace_string not in documents:
                            reason = (
                                f"the document {reference.namespace_string!r} "
                                f"is not loaded"
                            )
                        else:
                            reason = (
                                f"the document {reference.namespace_string!r} "
                                f"has no such node"
                            )

                        warnings.append(
                            Error(
                                node.node_id,
                                f"The {reference.reference_type} reference "
                                f"to {reference.target_node_id} of "
                                f"{node.browse_name!r} could not be resolved: "
                                f"{reason}",
                            )
                        )
                        continue

                    reference.target_node = target

                    reference_type = model.reference_type_name(
                        reference.reference_type
                    )

                    # This also covers the optional placeholders.
                    if (
                        reference_type == "HasModellingRule"
                        and "Optional" in target.browse_name
                    ):
                        node.mark_optional()

                    if id(target) not in visited:
                        visited.add(id(target))
                        stack.append(target)


def _supertypes(data_type: model.DataType) -> List[model.DataType]:
    result = []  # type: List[model.DataType]
    for reference in data_type.references:
        if (
            not reference.is_forward
            and model.reference_type_name(reference.reference_type) == "HasSubtype"
            and isinstance(reference.target_node, model.DataType)
        ):
            result.append(reference.target_node)

    return result


def _flatten_inherited_fields(documents: Mapping[str, model.ParsedDocument]) -> None:
    """
    Copy the fields of the supertypes into their data subtypes.

    The supertypes are flattened first, so the fields are inherited over
    multiple levels. A data type in the middle of being flattened is not
    entered again, which guarantees termination on cyclic hierarchies.
    """
    done = set()  # type: Set[int]
    in_progress = set()  # type: Set[int]

    for document in documents.values():
        for node in document.nodes.values():
            if not isinstance(node, model.DataType) or id(node) in done:
                continue

            # Iterative post-order traversal over the supertypes
            stack = [(node, False)]  # type: List[Tuple[model.DataType, bool]]
            while len(stack) > 0:
                data_type, expanded = stack.pop()

                if expanded:
                    in_progress.discard(id(data_type))
                    done.add(id(data_type))

                    # NOTE: A field redeclared by the subtype keeps the position
                    # it has in the supertype, but takes the type of the subtype.
                    inherited = dict()  # type: Dict[str, str]
                    for supertype in _supertypes(data_type):
                        for name, type_or_value in supertype.definition_fields.items():
                            if name not in inherited:
                                inherited[name] = type_or_value

                        if supertype.is_enum:
                            data_type.is_enum = True

                    if len(inherited) > 0:
                        inherited.update(data_type.definition_fields)
                        data_type.definition_fields = inherited
                    continue

                if id(data_type) in done or id(data_type) in in_progress:
                    continue

                in_progress.add(id(data_type))
                stack.append((data_type, True))

                for supertype in _supertypes(data_type):
                    if id(supertype) not in done and id(supertype) not in in_progress:
                        stack.append((supertype, False))


def _find_data_type(
    documents: Mapping[str, model.ParsedDocument],
    document: model.ParsedDocument,
    node_id: str,
) -> Optional[model.DataType]:
    namespace_uri = document.namespace_index_map.get(
        model.extract_namespace_index(node_id), None
    )
    target = find_node(documents, namespace_uri, node_id)
    if isinstance(target, model.DataType):
        return target

    for other_document in documents.values():
        target = other_document.find_node(node_id)
        if isinstance(target, model.DataType):
            return target

    return None


def _link_data_types(
    documents: Mapping[str, model.ParsedDocument], warnings: List[Error]
) -> None:
    for document in documents.values():
        for node in document.nodes.values():
            if not isinstance(node, (model.Variable, model.VariableType)):
                continue

            definition_name = node.data_type.definition_name
            if len(definition_name) == 0:
                continue

            data_type_id = document.resolve_alias(definition_name)
            if data_type_id is None:
                if model.extract_identifier(definition_name) is None:
                    warnings.append(
                        Error(
                            node.node_id,
                            f"The data type {definition_name!r} "
                            f"of {node.browse_name!r} is neither an alias "
                            f"nor a node ID",
                        )
                    )
                    continue

                data_type_id = definition_name

            data_type = _find_data_type(documents, document, data_type_id)
            if data_type is None:
                warnings.append(
                    Error(
                        node.node_id,
                        f"The data type {definition_name!r} ({data_type_id}) "
                        f"of {node.browse_name!r} could not be found "
                        f"in any loaded document",
                    )
                )
                continue

            resolved = model.clone(data_type)
            assert isinstance(resolved, model.DataType)
            node.data_type = resolved


def _link_method_arguments(documents: Mapping[str, model.ParsedDocument]) -> None:
    for document in documents.values():
        for node in document.nodes.values():
            if not isinstance(node, model.Method):
                continue

            for reference in node.references:
                target = reference.target_node
                if not reference.is_forward or not isinstance(target, model.Variable):
                    continue

                name = naming.strip_namespace_index(target.browse_name)
                if name == "InputArguments":
                    node.input_argument = target
                elif name == "OutputArguments":
                    node.output_argument = target


def resolve(documents: Mapping[str, model.ParsedDocument]) -> List[Error]:
    """
    Resolve all the links between the nodes of ``documents`` in place.

    The ``documents`` map namespace URIs to the parsed documents of a session.
    Return the warnings about the links that could not be resolved.
    """
    warnings = []  # type: List[Error]

    _link_parents(documents)
    _link_references(documents, warnings)
    _flatten_inherited_fields(documents)
    _link_data_types(documents, warnings)
    _link_method_arguments(documents)

    return warnings
