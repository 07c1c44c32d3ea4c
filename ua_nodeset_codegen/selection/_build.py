"""Instantiate object types into trees of cloned members."""
from typing import Iterator, List, Optional, Set, Tuple

from icontract import ensure, require

from ua_nodeset_codegen import model, naming
from ua_nodeset_codegen.common import Error
from ua_nodeset_codegen.selection._types import SelectionTreeItem
from ua_nodeset_codegen.session import Session

#: Browse names of the nodes which describe modelling rules rather than members
_MODELLING_RULE_MARKERS = ("Mandatory", "Optional", "Arguments")


def is_valid_child(reference: model.Reference) -> bool:
    """Check that the target of ``reference`` is an instantiable member."""
    target = reference.target_node
    if target is None:
        return False

    if not isinstance(target, (model.Object, model.Variable, model.Method)):
        return False

    return not any(marker in target.browse_name for marker in _MODELLING_RULE_MARKERS)


def _is_inheritance(reference: model.Reference) -> bool:
    return not reference.is_forward and model.reference_type_name(
        reference.reference_type
    ) in ("HasSubtype", "HasTypeDefinition")


def collect_ancestors(node: model.NodeUnion) -> List[model.NodeUnion]:
    """
    Collect the types ``node`` inherits its members from, in order of discovery.

    The ancestors are reached over the reverse ``HasSubtype`` and
    ``HasTypeDefinition`` references. Every ancestor is listed once, even
    on cyclic hierarchies.
    """
    result = []  # type: List[model.NodeUnion]
    seen = {id(node)}  # type: Set[int]

    stack = [node]  # type: List[model.NodeUnion]
    while len(stack) > 0:
        current = stack.pop()

        found = []  # type: List[model.NodeUnion]
        for reference in current.references:
            target = reference.target_node
            if target is None or not _is_inheritance(reference):
                continue

            if id(target) in seen:
                continue

            seen.add(id(target))
            result.append(target)
            found.append(target)

        stack.extend(reversed(found))

    return result


class _Expansion:
    """Hold the state of adding a single root to the tree."""

    def __init__(self, root_item: SelectionTreeItem, use_unique_browse_names: bool):
        self.root_item = root_item
        self.use_unique_browse_names = use_unique_browse_names

        # (namespace URI, node ID) of the nodes which are being expanded
        self.expanding = set()  # type: Set[Tuple[str, str]]


class SelectionTree:
    """
    Represent a forest of instantiated types.

    The tree is used both for browsing the available types and for holding
    the selection of the user.
    """

    #: Invisible item holding the roots
    root_item: SelectionTreeItem

    #: Non-fatal observations made while building the tree
    warnings: List[Error]

    def __init__(self, session: Session) -> None:
        """Initialize an empty tree over the resolved ``session``."""
        self.session = session
        self.root_item = SelectionTreeItem(node=None, parent=None)
        self.warnings = []

    @property
    def roots(self) -> List[SelectionTreeItem]:
        """Return the items of the user-chosen instances."""
        return self.root_item.children

    def over_items(self) -> Iterator[SelectionTreeItem]:
        """Iterate over all the items of the tree except the invisible root."""
        for root in self.root_item.children:
            yield from root.over_pre_order()

    def is_browse_name_unique(self, browse_name: str) -> bool:
        """Check that no node in the whole tree carries the ``browse_name``."""
        for item in self.over_items():
            assert item.node is not None
            if item.node.browse_name == browse_name:
                return False

        return True

    @ensure(lambda self, result: self.is_browse_name_unique(result))
    def make_browse_name_unique(self, browse_name: str) -> str:
        """Append ``_1``, ``_2`` and so on to ``browse_name`` until it is unique."""
        candidate = browse_name
        suffix = 1
        while not self.is_browse_name_unique(candidate):
            candidate = f"{browse_name}_{suffix}"
            suffix += 1

        return candidate

    def _uniquify(self, node: model.NodeUnion) -> None:
        node.browse_name = self.make_browse_name_unique(node.browse_name)
        node.unique_base_browse_name = node.browse_name

    def _remap_namespace(
        self, clone: model.NodeUnion, expansion: _Expansion
    ) -> None:
        root_node = expansion.root_item.node
        assert root_node is not None

        if clone.namespace_string == root_node.namespace_string:
            return

        index = self.session.registry.index_of(
            namespace_origin=root_node.namespace_string,
            namespace_uri=clone.namespace_string,
        )

        if index is None:
            self.warnings.append(
                Error(
                    clone.node_id,
                    f"The namespace {clone.namespace_string!r} "
                    f"of {clone.browse_name!r} "
                    f"has no index in the namespace {root_node.namespace_string!r} "
                    f"of the root {root_node.browse_name!r}; the node ID is kept",
                )
            )
            return

        clone.node_id = model.with_namespace_index(clone.node_id, index)

    def _add_node(
        self,
        parent_item: SelectionTreeItem,
        node: model.NodeUnion,
        reference_type: str,
        expansion: _Expansion,
    ) -> SelectionTreeItem:
        clone = model.clone(node)
        if expansion.use_unique_browse_names:
            self._uniquify(clone)

        self._remap_namespace(clone, expansion)

        child_item = SelectionTreeItem(
            node=clone, parent=parent_item, reference_type=reference_type
        )
        parent_item.append_child(child_item)

        self._add_children(child_item, node, expansion)
        return child_item

    def _add_children(
        self,
        item: SelectionTreeItem,
        original: model.NodeUnion,
        expansion: _Expansion,
    ) -> None:
        key = (original.namespace_string, original.node_id)
        if key in expansion.expanding:
            return

        expansion.expanding.add(key)

        for reference in original.references:
            if reference.is_forward and is_valid_child(reference):
                assert reference.target_node is not None
                self._add_node(
                    parent_item=item,
                    node=reference.target_node,
                    reference_type=reference.reference_type,
                    expansion=expansion,
                )

        expansion.expanding.remove(key)

    def add_root(
        self,
        node: model.NodeUnion,
        resolve_selection: bool,
        use_unique_browse_names: bool,
    ) -> SelectionTreeItem:
        """
        Instantiate ``node`` at the top of the tree with all its members.

        The declared members are followed recursively. The members inherited
        from the ancestor types are attached directly under the new root, unless
        a more derived type already declares a member with the same browse name.
        """
        clone = model.clone(node)
        if use_unique_browse_names:
            self._uniquify(clone)

        clone.is_root_node = True

        root = SelectionTreeItem(node=clone, parent=self.root_item)
        self.root_item.append_child(root)

        expansion = _Expansion(
            root_item=root, use_unique_browse_names=use_unique_browse_names
        )
        self._add_children(root, node, expansion)

        declared = set()  # type: Set[str]
        for child in root.children:
            assert child.node is not None
            declared.add(child.node.base_browse_name)

        for ancestor in collect_ancestors(node):
            for reference in ancestor.references:
                if not reference.is_forward or not is_valid_child(reference):
                    continue

                assert reference.target_node is not None
                if reference.target_node.browse_name in declared:
                    continue

                declared.add(reference.target_node.browse_name)
                self._add_node(
                    parent_item=root,
                    node=reference.target_node,
                    reference_type=reference.reference_type,
                    expansion=expansion,
                )

        if resolve_selection:
            root.set_selected(True)

        return root

    # fmt: off
    @ensure(lambda result: (result[0] is not None) ^ (result[1] is not None))
    # fmt: on
    def add_root_by_id(
        self, namespace_uri: str, node_id: str
    ) -> Tuple[Optional[SelectionTreeItem], Optional[Error]]:
        """Add the resolved node as a new, selected and uniquely named root."""
        node = self.session.find_node(namespace_uri, node_id)
        if node is None:
            return None, Error(
                node_id,
                f"The node could not be found in the namespace {namespace_uri!r}",
            )

        return (
            self.add_root(node, resolve_selection=True, use_unique_browse_names=True),
            None,
        )

    @require(lambda self, index: 0 <= index < len(self.roots))
    def remove_root(self, index: int) -> None:
        """Remove the root at ``index`` with all its members."""
        self.root_item.remove_child(index)

    def reset(self) -> None:
        """Remove all the roots."""
        self.root_item = SelectionTreeItem(node=None, parent=None)
        self.warnings = []

    def find_by_unique_browse_name(
        self, unique_browse_name: str
    ) -> Optional[SelectionTreeItem]:
        """Find the item whose browse name was ``unique_browse_name`` when added."""
        for item in self.over_items():
            assert item.node is not None
            if item.node.unique_base_browse_name == unique_browse_name:
                return item

        return None

    def find_by_browse_name(self, browse_name: str) -> Optional[SelectionTreeItem]:
        """Find the first item with the current ``browse_name``."""
        for item in self.over_items():
            assert item.node is not None
            if item.node.browse_name == browse_name:
                return item

        return None


def browse_tree(session: Session) -> SelectionTree:
    """
    Build the tree of the instantiable types of the selected model.

    These are all the non-abstract object types, in the order of their
    identifiers. Nothing is selected and the names are left as declared.
    """
    tree = SelectionTree(session)
    document = session.selected_document
    for identifier in sorted(document.nodes):
        node = document.nodes[identifier]
        if isinstance(node, model.ObjectType) and not node.is_abstract:
            tree.add_root(node, resolve_selection=False, use_unique_browse_names=False)

    return tree


def describe_item(item: SelectionTreeItem) -> str:
    """Describe the item in a single line for listings."""
    assert item.node is not None
    return (
        f"{item.node.namespace_string} {item.node.node_id} "
        f"{naming.strip_namespace_index(item.node.browse_name)}"
    )
