"""Build and hold the trees of instantiated types the user selects from."""

from ua_nodeset_codegen.selection import _build, _types

SelectionTreeItem = _types.SelectionTreeItem
SelectionTree = _build.SelectionTree
is_valid_child = _build.is_valid_child
collect_ancestors = _build.collect_ancestors
browse_tree = _build.browse_tree
describe_item = _build.describe_item
