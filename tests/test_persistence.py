# pylint: disable=missing-docstring

import json
import pathlib
import tempfile
import unittest
from typing import List, Set, Tuple

from ua_nodeset_codegen import selection
from ua_nodeset_codegen.selection import persistence

import tests.common
from tests.common import PUMPS_URI


def active_unique_names(tree: selection.SelectionTree) -> Set[str]:
    result = set()  # type: Set[str]
    for item in tree.over_items():
        if item.is_active:
            assert item.node is not None
            result.add(item.node.unique_base_browse_name)

    return result


def active_browse_names(tree: selection.SelectionTree) -> List[str]:
    result = []  # type: List[str]
    for item in tree.over_items():
        if item.is_active:
            assert item.node is not None
            result.append(item.node.browse_name)

    return result


def save_and_reload(
    tree: selection.SelectionTree,
) -> Tuple[selection.SelectionTree, List[str]]:
    """Save the ``tree``, and replay the saved selection on a fresh tree."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        path = pathlib.Path(tmp_dir) / "selection.json"
        persistence.save_selection(
            path=path, tree=tree, project_name="pumps", selected_nodeset_xml="Pumps"
        )

        state, error = persistence.load_selection(path)

    assert error is None, tests.common.most_underlying_messages(error)
    assert state is not None

    reloaded = selection.SelectionTree(tests.common.must_load_session())
    errors = persistence.apply_selection(reloaded, state)

    return reloaded, [an_error.message for an_error in errors]


def new_edited_tree() -> selection.SelectionTree:
    """Build a tree with two pumps, one of them renamed and with an extra member."""
    session = tests.common.must_load_session()
    tree = selection.SelectionTree(session)

    first, _ = tree.add_root_by_id(PUMPS_URI, "ns=1;i=1002")
    second, _ = tree.add_root_by_id(PUMPS_URI, "ns=1;i=1002")
    assert first is not None and second is not None

    second.set_display_name("Feed pump")
    second.set_browse_name("1:FeedPump")

    temperature = second.children[1]
    temperature.set_selected(True)
    temperature.set_value("Temperature", "21.5")

    drive = first.children[3]
    drive.set_selected(False)

    return tree


class Test_dump(unittest.TestCase):
    def test_structure(self) -> None:
        tree = new_edited_tree()

        jsonable = persistence.dump_selection(
            tree=tree, project_name="pumps", selected_nodeset_xml="Pumps"
        )

        self.assertEqual("pumps", jsonable["projectName"])
        self.assertEqual("Pumps", jsonable["selectedNodeSetXML"])

        self.assertListEqual(
            [
                {
                    "uri": PUMPS_URI,
                    "nodeId": "ns=1;i=1002",
                    "displayName": "PumpType",
                    "description": "A pump moving a fluid.",
                    "browseName": "1:PumpType",
                    "originalUniqueBrowseName": "1:PumpType",
                },
                {
                    "uri": PUMPS_URI,
                    "nodeId": "ns=1;i=1002",
                    "displayName": "Feed pump",
                    "description": "A pump moving a fluid.",
                    "browseName": "1:FeedPump",
                    "originalUniqueBrowseName": "1:PumpType_1",
                },
            ],
            jsonable["rootNodes"],
        )

        self.assertListEqual(
            [
                "1:Speed",
                "1:Start",
                "1:Speed_1",
                "1:Temperature_1",
                "1:Start_1",
                "1:Drive_1",
            ],
            [node["originalUniqueBrowseName"] for node in jsonable["selectedNodes"]],
        )
        self.assertListEqual(
            [[0, 0], [0, 2], [1, 0], [1, 1], [1, 2], [1, 3]],
            [node["path"] for node in jsonable["selectedNodes"]],
        )
        self.assertNotIn("uri", jsonable["selectedNodes"][0])
        self.assertNotIn("path", jsonable["rootNodes"][0])
        self.assertDictEqual(
            {"Temperature": "21.5"}, jsonable["selectedNodes"][3]["values"]
        )


class Test_round_trip(unittest.TestCase):
    def test_reload_restores_the_active_set(self) -> None:
        tree = new_edited_tree()

        with tempfile.TemporaryDirectory() as tmp_dir:
            path = pathlib.Path(tmp_dir) / "selection.json"
            persistence.save_selection(
                path=path, tree=tree, project_name="pumps", selected_nodeset_xml="Pumps"
            )

            state, error = persistence.load_selection(path)

        assert error is None, tests.common.most_underlying_messages(error)
        assert state is not None

        reloaded = selection.SelectionTree(tests.common.must_load_session())
        errors = persistence.apply_selection(reloaded, state)
        self.assertListEqual([], errors)

        self.assertSetEqual(active_unique_names(tree), active_unique_names(reloaded))

        second = reloaded.roots[1]
        assert second.node is not None
        self.assertEqual("Feed pump", second.node.display_name)
        self.assertEqual("1:FeedPump", second.node.browse_name)

        temperature = reloaded.find_by_unique_browse_name("1:Temperature_1")
        assert temperature is not None
        self.assertEqual("21.5", temperature.get_value("Temperature"))

        # The deselected member of the first pump stays deselected.
        drive = reloaded.roots[0].children[3]
        self.assertFalse(drive.is_active)

    def test_reload_after_removing_the_first_root(self) -> None:
        tree = selection.SelectionTree(tests.common.must_load_session())
        for _ in range(2):
            _, error = tree.add_root_by_id(PUMPS_URI, "ns=1;i=1002")
            assert error is None, tests.common.most_underlying_messages(error)

        tree.remove_root(0)

        root = tree.roots[0]
        assert root.node is not None
        self.assertEqual("1:PumpType_1", root.node.unique_base_browse_name)

        reloaded, errors = save_and_reload(tree)
        self.assertListEqual([], errors)

        self.assertSetEqual(active_unique_names(tree), active_unique_names(reloaded))
        self.assertListEqual(active_browse_names(tree), active_browse_names(reloaded))

        reloaded_root = reloaded.roots[0]
        assert reloaded_root.node is not None
        self.assertEqual("1:PumpType_1", reloaded_root.node.unique_base_browse_name)
        self.assertIs(
            reloaded_root.children[0], reloaded.find_by_unique_browse_name("1:Speed_1")
        )

    def test_reload_after_renaming_and_adding(self) -> None:
        tree = selection.SelectionTree(tests.common.must_load_session())

        first, _ = tree.add_root_by_id(PUMPS_URI, "ns=1;i=1002")
        assert first is not None
        first.set_browse_name("1:FeedPump")

        second, _ = tree.add_root_by_id(PUMPS_URI, "ns=1;i=1002")
        assert second is not None and second.node is not None
        self.assertEqual("1:PumpType", second.node.unique_base_browse_name)

        reloaded, errors = save_and_reload(tree)
        self.assertListEqual([], errors)

        self.assertSetEqual(active_unique_names(tree), active_unique_names(reloaded))
        self.assertListEqual(active_browse_names(tree), active_browse_names(reloaded))

        self.assertListEqual(
            ["1:PumpType", "1:PumpType"],
            [
                root.node.unique_base_browse_name
                for root in reloaded.roots
                if root.node is not None
            ],
        )
        self.assertListEqual(
            ["1:FeedPump", "1:PumpType"],
            [root.node.browse_name for root in reloaded.roots if root.node is not None],
        )

    def test_a_path_to_another_node(self) -> None:
        state, error = persistence.selection_from_jsonable(
            {
                "projectName": "pumps",
                "selectedNodeSetXML": "Pumps",
                "rootNodes": [
                    {
                        "uri": PUMPS_URI,
                        "nodeId": "ns=1;i=1002",
                        "displayName": "PumpType",
                        "description": "",
                        "browseName": "1:PumpType",
                        "originalUniqueBrowseName": "1:PumpType",
                    }
                ],
                "selectedNodes": [
                    {
                        "nodeId": "ns=1;i=6002",
                        "displayName": "Temperature",
                        "description": "",
                        "browseName": "1:Temperature",
                        "originalUniqueBrowseName": "1:Temperature",
                        "path": [0, 0],
                    },
                    {
                        "nodeId": "ns=1;i=6001",
                        "displayName": "Speed",
                        "description": "",
                        "browseName": "1:Speed",
                        "originalUniqueBrowseName": "1:Speed",
                        "path": [0, 42],
                    },
                ],
            },
            source="selection.json",
        )
        assert error is None, tests.common.most_underlying_messages(error)
        assert state is not None

        tree = selection.SelectionTree(tests.common.must_load_session())
        errors = persistence.apply_selection(tree, state)

        self.assertListEqual(
            ["ns=1;i=6002", "ns=1;i=6001"], [an_error.source for an_error in errors]
        )
        self.assertIn("but found the node ns=1;i=6001 there", errors[0].message)
        self.assertIn("at the path [0, 42]", errors[1].message)

    def test_unmatched_entries(self) -> None:
        state, error = persistence.selection_from_jsonable(
            {
                "projectName": "pumps",
                "selectedNodeSetXML": "Pumps",
                "rootNodes": [
                    {
                        "uri": PUMPS_URI,
                        "nodeId": "ns=1;i=404",
                        "displayName": "Ghost",
                        "description": "",
                        "browseName": "1:Ghost",
                        "originalUniqueBrowseName": "1:Ghost",
                    }
                ],
                "selectedNodes": [
                    {
                        "nodeId": "ns=1;i=405",
                        "displayName": "Ghost member",
                        "description": "",
                        "browseName": "1:GhostMember",
                        "originalUniqueBrowseName": "1:GhostMember",
                    }
                ],
            },
            source="selection.json",
        )
        assert error is None, tests.common.most_underlying_messages(error)
        assert state is not None

        tree = selection.SelectionTree(tests.common.must_load_session())
        errors = persistence.apply_selection(tree, state)

        self.assertListEqual(
            ["ns=1;i=404", "ns=1;i=405"], [an_error.source for an_error in errors]
        )
        self.assertListEqual([], tree.roots)


class Test_invalid(unittest.TestCase):
    def test_not_an_object(self) -> None:
        state, error = persistence.selection_from_jsonable([], source="selection.json")

        self.assertIsNone(state)
        assert error is not None
        self.assertEqual("Expected the selection to be a JSON object", error.message)

    def test_wrong_types(self) -> None:
        state, error = persistence.selection_from_jsonable(
            {
                "projectName": 1,
                "selectedNodeSetXML": "Pumps",
                "rootNodes": [{"uri": PUMPS_URI}],
                "selectedNodes": {},
            },
            source="selection.json",
        )

        self.assertIsNone(state)
        assert error is not None
        messages = tests.common.most_underlying_messages(error)
        self.assertIn("Expected the property 'projectName' to be a string", messages)
        self.assertIn("Expected the property 'nodeId' to be a string", messages)
        self.assertIn("Expected 'selectedNodes' to be a list", messages)

    def test_invalid_path(self) -> None:
        state, error = persistence.selection_from_jsonable(
            {
                "projectName": "pumps",
                "selectedNodeSetXML": "Pumps",
                "rootNodes": [],
                "selectedNodes": [
                    {
                        "nodeId": "ns=1;i=6001",
                        "displayName": "Speed",
                        "description": "",
                        "browseName": "1:Speed",
                        "originalUniqueBrowseName": "1:Speed",
                        "path": [0, -1],
                    }
                ],
            },
            source="selection.json",
        )

        self.assertIsNone(state)
        assert error is not None
        self.assertIn(
            "Expected the path to be a list of non-negative integers, got [0, -1]",
            tests.common.most_underlying_messages(error),
        )

    def test_invalid_json(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            path = pathlib.Path(tmp_dir) / "selection.json"
            path.write_text("{", encoding="utf-8")

            state, error = persistence.load_selection(path)

        self.assertIsNone(state)
        assert error is not None
        self.assertTrue(
            error.message.startswith("Failed to parse the selection as JSON"),
            error.message,
        )

    def test_saved_file_is_json(self) -> None:
        tree = new_edited_tree()

        with tempfile.TemporaryDirectory() as tmp_dir:
            path = pathlib.Path(tmp_dir) / "selection.json"
            persistence.save_selection(
                path=path, tree=tree, project_name="pumps", selected_nodeset_xml="Pumps"
            )
            jsonable = json.loads(path.read_text(encoding="utf-8"))

        self.assertEqual(2, len(jsonable["rootNodes"]))


if __name__ == "__main__":
    unittest.main()
