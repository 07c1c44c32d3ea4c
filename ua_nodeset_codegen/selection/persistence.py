"""Save and reload the selection of the user as JSON."""
import json
import pathlib
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from icontract import ensure

from ua_nodeset_codegen.common import Error
from ua_nodeset_codegen.selection._build import SelectionTree
from ua_nodeset_codegen.selection._types import SelectionTreeItem


class NodeState:
    """Represent the persisted state of a single item."""

    def __init__(
        self,
        node_id: str,
        display_name: str,
        description: str,
        browse_name: str,
        original_unique_browse_name: str,
        values: Mapping[str, str],
        uri: Optional[str] = None,
        path: Optional[Sequence[int]] = None,
    ) -> None:
        """
        Initialize with the given values.

        The ``uri`` is only set for the roots. The ``path`` is only set for
        the members: the index of the root followed by the child indices.
        """
        self.node_id = node_id
        self.display_name = display_name
        self.description = description
        self.browse_name = browse_name
        self.original_unique_browse_name = original_unique_browse_name
        self.values = values
        self.uri = uri
        self.path = path


class SelectionState:
    """Represent the persisted selection of a project."""

    def __init__(
        self,
        project_name: str,
        selected_nodeset_xml: str,
        root_nodes: Sequence[NodeState],
        selected_nodes: Sequence[NodeState],
    ) -> None:
        """Initialize with the given values."""
        self.project_name = project_name
        self.selected_nodeset_xml = selected_nodeset_xml
        self.root_nodes = root_nodes
        self.selected_nodes = selected_nodes


def _path_of(item: SelectionTreeItem) -> List[int]:
    """Compute the child indices from the invisible root down to ``item``."""
    path = []  # type: List[int]

    current = item
    while current.parent is not None:
        parent = current.parent
        for i, sibling in enumerate(parent.children):
            if sibling is current:
                path.append(i)
                break
        else:
            raise AssertionError(
                f"Expected {current!r} among the children of its parent"
            )

        current = parent

    path.reverse()
    return path


def _item_to_jsonable(item: SelectionTreeItem, with_uri: bool) -> Dict[str, Any]:
    assert item.node is not None

    result = dict()  # type: Dict[str, Any]
    if with_uri:
        result["uri"] = item.node.namespace_string

    result["nodeId"] = item.node.node_id
    result["displayName"] = item.node.display_name
    result["description"] = item.node.description
    result["browseName"] = item.node.browse_name
    result["originalUniqueBrowseName"] = item.node.unique_base_browse_name

    if len(item.values) > 0:
        result["values"] = dict(item.values)

    if not with_uri:
        result["path"] = _path_of(item)

    return result


def dump_selection(
    tree: SelectionTree, project_name: str, selected_nodeset_xml: str
) -> Dict[str, Any]:
    """
    Convert the selection held by the ``tree`` to a JSON-able structure.

    Every selected member carries its ``path``: the index of its root followed
    by the child indices. The unique browse names depend on the order of the
    edits, so the members are located by the path on reload.
    """
    root_nodes = []  # type: List[Dict[str, Any]]
    selected_nodes = []  # type: List[Dict[str, Any]]

    for item in tree.over_items():
        if item.is_root_node:
            root_nodes.append(_item_to_jsonable(item, with_uri=True))
        elif item.is_selected:
            selected_nodes.append(_item_to_jsonable(item, with_uri=False))

    return {
        "projectName": project_name,
        "selectedNodeSetXML": selected_nodeset_xml,
        "rootNodes": root_nodes,
        "selectedNodes": selected_nodes,
    }


def save_selection(
    path: pathlib.Path,
    tree: SelectionTree,
    project_name: str,
    selected_nodeset_xml: str,
) -> None:
    """Write the selection held by the ``tree`` to ``path``."""
    jsonable = dump_selection(
        tree=tree,
        project_name=project_name,
        selected_nodeset_xml=selected_nodeset_xml,
    )
    path.write_text(json.dumps(jsonable, indent=2), encoding="utf-8")


def _expect_str(
    mapping: Mapping[str, Any], key: str, where: str, errors: List[Error]
) -> str:
    value = mapping.get(key, None)
    if not isinstance(value, str):
        errors.append(
            Error(where, f"Expected the property {key!r} to be a string, got {value!r}")
        )
        return ""

    return value


def _node_state_from_jsonable(
    jsonable: Any, where: str, with_uri: bool, errors: List[Error]
) -> Optional[NodeState]:
    if not isinstance(jsonable, dict):
        errors.append(Error(where, f"Expected an object, got {jsonable!r}"))
        return None

    count_before = len(errors)

    uri = _expect_str(jsonable, "uri", where, errors) if with_uri else None
    node_id = _expect_str(jsonable, "nodeId", where, errors)
    display_name = _expect_str(jsonable, "displayName", where, errors)
    description = _expect_str(jsonable, "description", where, errors)
    browse_name = _expect_str(jsonable, "browseName", where, errors)
    original_unique_browse_name = _expect_str(
        jsonable, "originalUniqueBrowseName", where, errors
    )

    values = jsonable.get("values", dict())
    if not isinstance(values, dict) or not all(
        isinstance(key, str) and isinstance(value, str)
        for key, value in values.items()
    ):
        errors.append(
            Error(
                where,
                f"Expected the values to map strings to strings, got {values!r}",
            )
        )

    path = jsonable.get("path", None)
    if path is not None and (
        not isinstance(path, list)
        or not all(
            isinstance(index, int) and not isinstance(index, bool) and index >= 0
            for index in path
        )
    ):
        errors.append(
            Error(
                where,
                f"Expected the path to be a list of non-negative integers, "
                f"got {path!r}",
            )
        )

    if len(errors) > count_before:
        return None

    return NodeState(
        node_id=node_id,
        display_name=display_name,
        description=description,
        browse_name=browse_name,
        original_unique_browse_name=original_unique_browse_name,
        values=values,
        uri=uri,
        path=path,
    )


# fmt: off
@ensure(lambda result: (result[0] is not None) ^ (result[1] is not None))
# fmt: on
def selection_from_jsonable(
    jsonable: Any, source: str
) -> Tuple[Optional[SelectionState], Optional[Error]]:
    """Check the structure of ``jsonable`` and convert it to a selection state."""
    if not isinstance(jsonable, dict):
        return None, Error(source, "Expected the selection to be a JSON object")

    errors = []  # type: List[Error]

    project_name = _expect_str(jsonable, "projectName", source, errors)
    selected_nodeset_xml = _expect_str(jsonable, "selectedNodeSetXML", source, errors)

    states = dict()  # type: Dict[str, List[NodeState]]
    for key, with_uri in (("rootNodes", True), ("selectedNodes", False)):
        states[key] = []

        entries = jsonable.get(key, None)
        if not isinstance(entries, list):
            errors.append(Error(source, f"Expected {key!r} to be a list"))
            continue

        for i, entry in enumerate(entries):
            state = _node_state_from_jsonable(
                entry, where=f"{source}: {key}[{i}]", with_uri=with_uri, errors=errors
            )
            if state is not None:
                states[key].append(state)

    if len(errors) > 0:
        return None, Error(source, "The selection is invalid", errors)

    return (
        SelectionState(
            project_name=project_name,
            selected_nodeset_xml=selected_nodeset_xml,
            root_nodes=states["rootNodes"],
            selected_nodes=states["selectedNodes"],
        ),
        None,
    )


# fmt: off
@ensure(lambda result: (result[0] is not None) ^ (result[1] is not None))
# fmt: on
def load_selection(
    path: pathlib.Path,
) -> Tuple[Optional[SelectionState], Optional[Error]]:
    """Read the selection state from the JSON file at ``path``."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exception:
        return None, Error(str(path), f"Failed to read the selection: {exception}")

    try:
        jsonable = json.loads(text)
    except json.JSONDecodeError as exception:
        return None, Error(
            str(path),
            f"Failed to parse the selection as JSON at line {exception.lineno} "
            f"and column {exception.colno}: {exception.msg}",
        )

    return selection_from_jsonable(jsonable, source=str(path))


def _apply_overrides(item: SelectionTreeItem, state: NodeState) -> None:
    item.set_display_name(state.display_name)
    item.set_description(state.description)
    item.set_browse_name(state.browse_name)
    for field_name, value in state.values.items():
        item.set_value(field_name, value)


def _follow_path(
    roots_by_index: Mapping[int, SelectionTreeItem], path: Sequence[int]
) -> Optional[SelectionTreeItem]:
    """Descend from the root at ``path[0]`` along the child indices."""
    if len(path) < 2:
        return None

    item = roots_by_index.get(path[0], None)
    if item is None:
        return None

    for index in path[1:]:
        if index >= len(item.children):
            return None

        item = item.children[index]

    return item


# fmt: off
@ensure(lambda result: (result[0] is not None) ^ (result[1] is not None))
# fmt: on
def _locate_member(
    tree: SelectionTree,
    roots_by_index: Mapping[int, SelectionTreeItem],
    node_state: NodeState,
) -> Tuple[Optional[SelectionTreeItem], Optional[Error]]:
    if node_state.path is None:
        # NOTE: Selections written without paths can only be matched
        # by the unique browse names.
        item = tree.find_by_unique_browse_name(node_state.original_unique_browse_name)
        if item is None:
            return None, Error(
                node_state.node_id,
                f"The selected node {node_state.original_unique_browse_name!r} "
                f"could not be found in the tree",
            )

        return item, None

    item = _follow_path(roots_by_index, node_state.path)
    if item is None:
        return None, Error(
            node_state.node_id,
            f"The selected node {node_state.original_unique_browse_name!r} "
            f"could not be found in the tree at the path {list(node_state.path)}",
        )

    assert item.node is not None
    if item.node.node_id != node_state.node_id:
        return None, Error(
            node_state.node_id,
            f"Expected the selected node {node_state.original_unique_browse_name!r} "
            f"at the path {list(node_state.path)}, "
            f"but found the node {item.node.node_id} there",
        )

    return item, None


def apply_selection(tree: SelectionTree, state: SelectionState) -> List[Error]:
    """
    Replay the persisted ``state`` on the ``tree``.

    The roots are added anew in the saved order, the display fields are
    overwritten, and the set of selected members is restored exactly as it was
    saved. The members are matched under their own root by their paths, and
    take over the saved unique browse names. Return the errors for the entries
    which could not be matched.
    """
    errors = []  # type: List[Error]

    roots_by_index = dict()  # type: Dict[int, SelectionTreeItem]
    new_roots = []  # type: List[Tuple[SelectionTreeItem, NodeState]]
    for i, root_state in enumerate(state.root_nodes):
        assert root_state.uri is not None
        root, error = tree.add_root_by_id(
            namespace_uri=root_state.uri, node_id=root_state.node_id
        )
        if error is not None:
            errors.append(error)
            continue

        assert root is not None
        roots_by_index[i] = root
        new_roots.append((root, root_state))

    # NOTE: The roots take over their saved unique names and overrides only after
    # all the roots have been added.
    for root, root_state in new_roots:
        assert root.node is not None
        root.node.unique_base_browse_name = root_state.original_unique_browse_name
        _apply_overrides(root, root_state)

    # The selection cascades when the roots are added, so we restore
    # the exact set of selected members.
    for root, _ in new_roots:
        for item in root.over_pre_order():
            if item is not root:
                item.restore_selected(False)

    for node_state in state.selected_nodes:
        member, error = _locate_member(tree, roots_by_index, node_state)
        if error is not None:
            errors.append(error)
            continue

        assert member is not None
        assert member.node is not None

        member.node.unique_base_browse_name = node_state.original_unique_browse_name
        member.restore_selected(True)
        _apply_overrides(member, node_state)

    return errors
