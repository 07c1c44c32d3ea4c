"""
Project the active part of a selection tree into render contexts.

A render context is a plain structure of dictionaries, lists, strings,
integers and booleans. The templates consume it, and it can be dumped as JSON.
"""
import json
import pathlib
from typing import Any, Dict, List, Mapping, MutableMapping, Optional, Tuple

from ua_nodeset_codegen import model, naming
from ua_nodeset_codegen.common import Error, assert_never
from ua_nodeset_codegen.selection import SelectionTree, SelectionTreeItem
from ua_nodeset_codegen.session import Session

Context = Dict[str, Any]

ROOT_PARENT_NODE_ID = "UA_NODEID_NUMERIC(0, UA_NS0ID_OBJECTSFOLDER)"
ROOT_REFERENCE_TYPE_NODE_ID = "UA_NODEID_NUMERIC(0, UA_NS0ID_ORGANIZES)"


# region User code


def extract_user_code(
    path: Optional[pathlib.Path], begin_marker: str, end_marker: str
) -> str:
    """
    Extract the hand-written code between the markers in a previous output.

    Return an empty string if there is no previous output or no such region.
    """
    if path is None or not path.is_file():
        return ""

    captured = []  # type: List[str]
    capturing = False

    with path.open("rt", encoding="utf-8") as fid:
        for line in fid:
            stripped = line.strip()
            if stripped == begin_marker:
                capturing = True
            elif stripped == end_marker:
                break
            elif capturing:
                captured.append(stripped)

    return "\n".join(captured).strip()


def _user_code(path: Optional[pathlib.Path], kind: str, name: str) -> str:
    infix = "" if len(kind) == 0 else f"{kind} "
    return extract_user_code(
        path=path,
        begin_marker=f"//BEGIN user code {infix}{name}",
        end_marker=f"//END user code {infix}{name}",
    )


# endregion


class _Projector:
    """Hold the state of a single projection."""

    def __init__(
        self, session: Session, user_code_path: Optional[pathlib.Path]
    ) -> None:
        self.session = session
        self.user_code_path = user_code_path
        self.warnings = []  # type: List[Error]

        # NOTE: The base namespace is pinned to 0, the others follow in the order
        # the documents were discovered.
        self.namespace_indices = {
            model.BASE_NAMESPACE_URI: 0
        }  # type: MutableMapping[str, int]
        for uri in session.documents:
            if uri not in self.namespace_indices:
                self.namespace_indices[uri] = len(self.namespace_indices)

    def reference_type_node_id(self, item: SelectionTreeItem) -> str:
        assert item.node is not None

        reference_type = item.reference_type
        if reference_type is None:
            self.warnings.append(
                Error(
                    item.node.node_id,
                    f"The reference connecting {item.node.browse_name!r} "
                    f"to its parent is unknown",
                )
            )
            return ""

        node_id = None  # type: Optional[str]
        for uri in (item.node.namespace_string, self.session.selected_model_uri):
            document = self.session.documents.get(uri, None)
            if document is not None:
                node_id = document.resolve_alias(reference_type)
                if node_id is not None:
                    break

        if node_id is None:
            node_id = model.STANDARD_REFERENCE_TYPES.get(
                model.reference_type_name(reference_type), None
            )

        identifier = None if node_id is None else model.extract_identifier(node_id)
        if identifier is None:
            self.warnings.append(
                Error(
                    item.node.node_id,
                    f"The reference type {reference_type!r} connecting "
                    f"{item.node.browse_name!r} to its parent could not be resolved",
                )
            )
            return ""

        return f"UA_NODEID_NUMERIC(0, {identifier})"

    def node_map(self, index: int, item: SelectionTreeItem) -> Context:
        node = item.node
        assert node is not None

        identifier = node.identifier
        namespace_index = self.namespace_indices.get(node.namespace_string, None)
        if namespace_index is None:
            self.warnings.append(
                Error(
                    node.node_id,
                    f"The namespace {node.namespace_string!r} "
                    f"of {node.browse_name!r} is not part of the session",
                )
            )
            namespace_index = 0

        result = {
            "nodeIndex": index,
            "name": naming.sanitize(node.node_variable_name),
            "nodeId": node.node_id,
            "identifier": "" if identifier is None else str(identifier),
            "namespaceIndex": namespace_index,
            "browseName": naming.strip_namespace_index(node.browse_name),
            "baseBrowseName": naming.strip_namespace_index(node.base_browse_name),
            "displayName": node.display_name,
            "description": node.description,
            "isOptional": node.is_optional,
        }  # type: Context

        if item.is_root_node:
            result["parentNodeId"] = ROOT_PARENT_NODE_ID
            result["referenceTypeNodeId"] = ROOT_REFERENCE_TYPE_NODE_ID
        else:
            parent = item.parent
            assert parent is not None and parent.node is not None
            result["parentNodeId"] = naming.sanitize(
                f"{parent.node.node_variable_name}_NodeId"
            )
            result["referenceTypeNodeId"] = self.reference_type_node_id(item)

        return result

    def add_variable(
        self, item: SelectionTreeItem, variable: model.NodeUnion, node_map: Context
    ) -> None:
        data_type, error = model.data_type_of(variable)
        if error is not None:
            self.warnings.append(error)

        name = node_map["name"]
        type_name = naming.strip_namespace_index(data_type.definition_name)

        node_map["dataType"] = type_name
        node_map["dataTypeVariableName"] = naming.lower_first_char(
            naming.strip_namespace_index(variable.display_name)
        )
        node_map["typesArrayName"] = naming.types_array_name(
            data_type.namespace_string
        )
        node_map["typesArrayIndexAlias"] = naming.types_array_index_alias(
            data_type.namespace_string, data_type.definition_name
        )
        node_map["readUserCode"] = _user_code(self.user_code_path, "read", name)
        node_map["writeUserCode"] = _user_code(self.user_code_path, "write", name)

        definition_fields_map, error = model.definition_fields_of(variable)
        if error is not None:
            self.warnings.append(error)

        fields = list(definition_fields_map.items())
        if len(fields) == 0:
            fields = [(variable.browse_name, data_type.definition_name)]

        definition_fields = []  # type: List[Context]
        has_values = False
        for field_name, field_type in fields:
            value = item.get_value(field_name)
            if value is not None:
                has_values = True

            definition_fields.append(
                {
                    "fieldName": naming.lower_first_char(
                        naming.strip_namespace_index(field_name)
                    ),
                    "fieldType": field_type,
                    "fieldValue": "" if value is None else value,
                    "isString": field_type in ("String", "Locale"),
                }
            )

        node_map["definitionFields"] = definition_fields
        node_map["singleFieldValueFlag"] = len(fields) == 1
        node_map["fieldsHaveValuesFlag"] = has_values

    def argument_map(
        self, index: int, holder: model.Variable, argument: model.Argument
    ) -> Context:
        result = {
            "argumentIndex": index,
            "argumentName": naming.lower_first_char(argument.name),
        }  # type: Context

        namespace_uri = self.session.registry.namespace_by_index(
            holder.namespace_string,
            model.extract_namespace_index(argument.data_type_identifier),
        )
        data_type = self.session.find_node(
            namespace_uri or "", argument.data_type_identifier
        )
        if not isinstance(data_type, model.DataType):
            self.warnings.append(
                Error(
                    holder.node_id,
                    f"The data type {argument.data_type_identifier!r} of "
                    f"the argument {argument.name!r} could not be found",
                )
            )
            result["argumentDataType"] = argument.data_type_identifier
            result["typesArrayName"] = naming.types_array_name(namespace_uri)
            result["typesArrayIndexAlias"] = ""
            result["isEnum"] = False
            result["dataTypeFields"] = []
            return result

        type_name = naming.strip_namespace_index(data_type.browse_name)
        result["argumentDataType"] = type_name
        result["typesArrayName"] = naming.types_array_name(data_type.namespace_string)
        result["typesArrayIndexAlias"] = naming.types_array_index_alias(
            data_type.namespace_string, data_type.browse_name
        )
        result["isEnum"] = data_type.is_enum

        if data_type.is_enum:
            result["argumentEnumValues"] = [
                f"{key} = {value}" for key, value in data_type.definition_fields.items()
            ]
        else:
            result["dataTypeFields"] = [
                {"fieldName": naming.lower_first_char(key), "fieldType": value}
                for key, value in data_type.definition_fields.items()
            ]

        return result

    def add_method(self, method: model.Method, node_map: Context) -> None:
        for prefix, holder in (
            ("input", method.input_argument),
            ("output", method.output_argument),
        ):
            arguments = []  # type: List[model.Argument]
            if holder is not None:
                arguments, error = model.arguments_of(holder)
                if error is not None:
                    self.warnings.append(error)

            node_map[f"{prefix}ArgumentArrayDimensions"] = len(arguments)

            argument_maps = []  # type: List[Context]
            if holder is not None:
                for i, argument in enumerate(arguments):
                    argument_maps.append(self.argument_map(i, holder, argument))

            node_map[f"{prefix}Arguments"] = argument_maps

        node_map["userCode"] = _user_code(self.user_code_path, "", node_map["name"])


def active_items(tree: SelectionTree) -> List[SelectionTreeItem]:
    """
    Collect the active items in pre-order, per root.

    Only the active items are descended into, so every emitted item has
    an emitted parent.
    """
    result = []  # type: List[SelectionTreeItem]
    for root in tree.roots:
        stack = [root]  # type: List[SelectionTreeItem]
        while len(stack) > 0:
            item = stack.pop()
            if not item.is_active:
                continue

            result.append(item)
            stack.extend(reversed(item.children))

    return result


def project(
    session: Session,
    tree: SelectionTree,
    user_code_path: Optional[pathlib.Path] = None,
) -> Tuple[Context, List[Error]]:
    """
    Project the active items of the ``tree`` into the render context of the code.

    The user code is carried over from the previous output at ``user_code_path``,
    if any. Return the context together with the warnings about the parts which
    could not be determined.
    """
    projector = _Projector(session=session, user_code_path=user_code_path)

    namespaces = [
        {"uri": uri, "index": index}
        for uri, index in projector.namespace_indices.items()
    ]

    node_sets = []  # type: List[Context]
    for uri, document in session.documents.items():
        name = naming.nodeset_name_from_uri(uri)
        if len(name) > 0:
            # NOTE: The nodeset compiler needs the dependencies first.
            node_sets.insert(
                0, {"name": name, "hasCustomTypes": document.has_custom_types}
            )

    root_nodes = []  # type: List[Context]
    object_nodes = []  # type: List[Context]
    variable_nodes = []  # type: List[Context]
    method_nodes = []  # type: List[Context]

    items = active_items(tree)
    for index, item in enumerate(items):
        node = item.node
        assert node is not None

        node_map = projector.node_map(index, item)

        if item.is_root_node:
            is_abstract, error = model.is_abstract_of(node)
            if error is not None:
                projector.warnings.append(error)
            elif is_abstract:
                projector.warnings.append(
                    Error(
                        node.node_id,
                        f"The root {node.browse_name!r} instantiates "
                        f"an abstract type",
                    )
                )

            root_nodes.append(node_map)
            continue

        if isinstance(node, model.Object):
            object_nodes.append(node_map)
        elif isinstance(node, model.Variable):
            projector.add_variable(item, node, node_map)
            variable_nodes.append(node_map)
        elif isinstance(node, model.Method):
            projector.add_method(node, node_map)
            method_nodes.append(node_map)
        elif isinstance(node, (model.DataType, model.VariableType, model.ObjectType)):
            # Types are never members of an instance.
            pass
        else:
            assert_never(node)

    context = {
        "nsCount": len(namespaces),
        "namespaces": namespaces,
        "nodeSets": node_sets,
        "nodeCount": len(items),
        "rootNodes": root_nodes,
        "objectNodes": object_nodes,
        "variableNodes": variable_nodes,
        "methodNodes": method_nodes,
    }  # type: Context

    if len(method_nodes) > 0:
        context["methodCount"] = len(method_nodes)

    return context, projector.warnings


def project_build(session: Session) -> Context:
    """Project the session into the render context of the build descriptor."""
    project_name = session.project_name()
    files_by_uri = {files.model_uri: files for files in session.files}

    node_sets = []  # type: List[Context]
    for uri, document in session.documents.items():
        name = naming.nodeset_name_from_uri(uri)
        if len(name) == 0:
            continue

        files = files_by_uri.get(uri, None)

        node_set = {
            "name": name,
            "nameUpper": name.upper(),
            "nodesetDirPrefix": naming.uri_directory_segment(uri),
            "hasCustomTypes": document.has_custom_types,
            "fileNs": "" if files is None else files.nodeset_xml.name,
            "fileCsv": (
                ""
                if files is None or files.nodeids_csv is None
                else files.nodeids_csv.name
            ),
            "fileBsd": (
                ""
                if files is None or files.types_bsd is None
                else files.types_bsd.name
            ),
            "depends": [
                naming.nodeset_name_from_uri(required_uri)
                for required_uri in document.required_model_uris
                if len(naming.nodeset_name_from_uri(required_uri)) > 0
            ],
        }  # type: Context

        node_sets.insert(0, node_set)

    return {
        "projectName": project_name,
        "executableName": project_name,
        "nodeSets": node_sets,
    }


def to_json(context: Mapping[str, Any]) -> str:
    """Dump the ``context`` as JSON for inspection."""
    return json.dumps(context, indent=2, sort_keys=True) + "\n"
