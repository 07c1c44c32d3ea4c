"""Provide the items of a selection tree."""
from typing import Dict, Iterator, List, Optional

from icontract import require

from ua_nodeset_codegen import model

_MODULE_NAME = __name__


class SelectionTreeItem:
    """
    Wrap a cloned node in a selection tree.

    The item owns its node and its children. The parent is only referred to.
    """

    #: Cloned node, None only for the invisible root of a tree
    node: Optional[model.NodeUnion]

    #: Parent item, None only for the invisible root of a tree
    parent: Optional["SelectionTreeItem"]

    #: Children in the order they were attached
    children: List["SelectionTreeItem"]

    #: Type of the reference connecting the original node to its parent, if any
    reference_type: Optional[str]

    #: Set if the user selected the item, or the selection cascaded to it
    is_selected: bool

    #: Map field names of the data type to values entered by the user
    values: Dict[str, str]

    def __init__(
        self,
        node: Optional[model.NodeUnion],
        parent: Optional["SelectionTreeItem"],
        reference_type: Optional[str] = None,
    ) -> None:
        """Initialize with the given values and hook the node to the parent node."""
        self.node = node
        self.parent = parent
        self.children = []
        self.reference_type = reference_type
        self.is_selected = False
        self.values = dict()
        self._is_parent_selected = False

        if node is not None and parent is not None and parent.node is not None:
            node.parent_node = parent.node
            node.parent_node_id = parent.node.node_id

    @property
    def is_root_node(self) -> bool:
        """Check whether the item is a user-chosen instance at the top of the tree."""
        return self.node is not None and self.node.is_root_node

    @property
    def is_optional(self) -> bool:
        """Check whether a modelling rule marks the node as optional."""
        return self.node is not None and self.node.is_optional

    @property
    def is_active(self) -> bool:
        """Check whether the item is emitted as generated code."""
        return self.is_root_node or self.is_selected

    @property
    def is_parent_selected(self) -> bool:
        """Check whether the parent is selected; the roots count as selected."""
        if (
            not self.is_root_node
            and self.parent is not None
            and self.parent.is_root_node
        ):
            return True

        return self._is_parent_selected

    def append_child(self, child: "SelectionTreeItem") -> None:
        """Attach the ``child`` as the last child."""
        child.parent = self
        self.children.append(child)

    @require(lambda self, index: 0 <= index < len(self.children))
    def remove_child(self, index: int) -> None:
        """Detach the child at ``index``."""
        child = self.children.pop(index)
        child.parent = None

    def set_selected(self, value: bool) -> None:
        """
        Select or deselect the item and cascade the change to the descendants.

        Selecting selects all the non-optional children. Deselecting deselects
        all the children.
        """
        self.is_selected = value

        for child in self.children:
            child.set_parent_selected(value)

            if value and not child.is_optional:
                child.set_selected(True)

            if child.is_selected and not value:
                child.set_selected(False)

    def set_parent_selected(self, value: bool) -> None:
        """Record the selection of the parent; a deselected parent deselects."""
        self._is_parent_selected = value
        if not value:
            self.set_selected(False)

    def restore_selected(self, value: bool) -> None:
        """Set the selection flag without any cascading, e.g., on reload."""
        self.is_selected = value
        for child in self.children:
            child._is_parent_selected = value  # pylint: disable=protected-access

    @require(lambda self: self.node is not None)
    def set_browse_name(self, browse_name: str) -> None:
        """Change the browse name; the generated name follows it."""
        assert self.node is not None
        self.node.browse_name = browse_name

    @require(lambda self: self.node is not None)
    def set_display_name(self, display_name: str) -> None:
        """Change the display name."""
        assert self.node is not None
        self.node.display_name = display_name

    @require(lambda self: self.node is not None)
    def set_description(self, description: str) -> None:
        """Change the description."""
        assert self.node is not None
        self.node.description = description

    def set_value(self, field_name: str, value: str) -> None:
        """Set the value of the data-type field ``field_name``."""
        self.values[field_name] = value

    def get_value(self, field_name: str) -> Optional[str]:
        """Get the value of the data-type field ``field_name``, if set."""
        return self.values.get(field_name, None)

    def over_pre_order(self) -> Iterator["SelectionTreeItem"]:
        """Iterate over the item and all its descendants, parents first."""
        stack = [self]  # type: List[SelectionTreeItem]
        while len(stack) > 0:
            item = stack.pop()
            yield item
            stack.extend(reversed(item.children))

    def __repr__(self) -> str:
        """Represent the instance as a string for easier debugging."""
        name = "<root>" if self.node is None else self.node.browse_name
        return (
            f"<{_MODULE_NAME}.{self.__class__.__name__} {name!r} "
            f"selected={self.is_selected} at 0x{id(self):x}>"
        )
