# pylint: disable=missing-docstring

import json
import pathlib
import shutil
import tempfile
import textwrap
import unittest

from ua_nodeset_codegen import projection, selection

import tests.common
from tests.common import BASE_URI, DI_URI, NODESET_ROOT, PUMPS_URI

MINIMAL_XML = """\
<?xml version="1.0" encoding="utf-8"?>
<UANodeSet xmlns="http://opcfoundation.org/UA/2011/03/UANodeSet.xsd">
  <Models>
    <Model ModelUri="http://example.com/UA/Minimal/">
      <RequiredModel ModelUri="http://opcfoundation.org/UA/" />
    </Model>
  </Models>
  <Aliases>
    <Alias Alias="Double">i=11</Alias>
    <Alias Alias="HasModellingRule">i=37</Alias>
    <Alias Alias="HasSubtype">i=45</Alias>
    <Alias Alias="HasComponent">i=47</Alias>
  </Aliases>
  <UAObjectType NodeId="ns=1;i=1002" BrowseName="1:PumpType">
    <DisplayName>PumpType</DisplayName>
    <References>
      <Reference ReferenceType="HasSubtype" IsForward="false">i=61</Reference>
      <Reference ReferenceType="HasComponent">ns=1;i=6001</Reference>
    </References>
  </UAObjectType>
  <UAVariable NodeId="ns=1;i=6001" BrowseName="1:Speed" ParentNodeId="ns=1;i=1002" DataType="Double">
    <DisplayName>Speed</DisplayName>
    <References>
      <Reference ReferenceType="HasModellingRule">i=78</Reference>
      <Reference ReferenceType="HasComponent" IsForward="false">ns=1;i=1002</Reference>
    </References>
  </UAVariable>
</UANodeSet>
"""


def new_pump_tree() -> selection.SelectionTree:
    tree = selection.SelectionTree(tests.common.must_load_session())

    root, error = tree.add_root_by_id(PUMPS_URI, "ns=1;i=1002")
    assert error is None, tests.common.most_underlying_messages(error)
    assert root is not None

    return tree


class Test_minimal(unittest.TestCase):
    def test_a_single_mandatory_variable(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            nodeset_root = pathlib.Path(tmp_dir)

            (nodeset_root / "Schema").mkdir()
            shutil.copy(
                str(NODESET_ROOT / "Schema" / "Opc.Ua.NodeSet2.xml"),
                str(nodeset_root / "Schema" / "Opc.Ua.NodeSet2.xml"),
            )

            (nodeset_root / "Minimal").mkdir()
            (nodeset_root / "Minimal" / "Minimal.NodeSet2.xml").write_text(
                MINIMAL_XML, encoding="utf-8"
            )

            session = tests.common.must_load_session(
                nodeset_root=nodeset_root, folder="Minimal"
            )

        tree = selection.SelectionTree(session)
        _, error = tree.add_root_by_id("http://example.com/UA/Minimal/", "ns=1;i=1002")
        assert error is None, tests.common.most_underlying_messages(error)

        context, warnings = projection.project(session=session, tree=tree)

        self.assertListEqual([], warnings)
        self.assertEqual(1, len(context["rootNodes"]))
        self.assertListEqual([], context["objectNodes"])
        self.assertListEqual([], context["methodNodes"])
        self.assertNotIn("methodCount", context)

        self.assertEqual(1, len(context["variableNodes"]))
        speed = context["variableNodes"][0]
        self.assertEqual("Speed_6001", speed["name"])
        self.assertEqual("Speed", speed["browseName"])
        self.assertFalse(speed["isOptional"])
        self.assertEqual("UA_NODEID_NUMERIC(0, 47)", speed["referenceTypeNodeId"])
        self.assertEqual("PumpType_1002_NodeId", speed["parentNodeId"])

        self.assertListEqual(
            [{"name": "minimal", "hasCustomTypes": False}], context["nodeSets"]
        )


class Test_pumps(unittest.TestCase):
    def test_root(self) -> None:
        context, warnings = projection.project(
            session=tests.common.must_load_session(), tree=new_pump_tree()
        )
        self.assertListEqual([], warnings)

        self.assertEqual(4, context["nodeCount"])
        self.assertEqual(1, context["methodCount"])

        (root,) = context["rootNodes"]
        self.assertEqual(0, root["nodeIndex"])
        self.assertEqual("PumpType_1002", root["name"])
        self.assertEqual("ns=1;i=1002", root["nodeId"])
        self.assertEqual("1002", root["identifier"])
        self.assertEqual(1, root["namespaceIndex"])
        self.assertEqual(projection.ROOT_PARENT_NODE_ID, root["parentNodeId"])
        self.assertEqual(
            projection.ROOT_REFERENCE_TYPE_NODE_ID, root["referenceTypeNodeId"]
        )

    def test_namespaces_and_nodesets(self) -> None:
        context, _ = projection.project(
            session=tests.common.must_load_session(), tree=new_pump_tree()
        )

        self.assertEqual(3, context["nsCount"])
        self.assertListEqual(
            [
                {"uri": BASE_URI, "index": 0},
                {"uri": PUMPS_URI, "index": 1},
                {"uri": DI_URI, "index": 2},
            ],
            context["namespaces"],
        )
        self.assertListEqual(
            [
                {"name": "di", "hasCustomTypes": True},
                {"name": "pumps", "hasCustomTypes": True},
            ],
            context["nodeSets"],
        )

    def test_optional_member_is_not_emitted(self) -> None:
        tree = new_pump_tree()

        self.assertListEqual(
            ["1:PumpType", "1:Speed", "1:Start", "1:Drive"],
            [
                item.node.browse_name
                for item in projection.active_items(tree)
                if item.node is not None
            ],
        )

        context, _ = projection.project(
            session=tests.common.must_load_session(), tree=tree
        )
        self.assertListEqual(
            ["Speed"], [node["browseName"] for node in context["variableNodes"]]
        )
        self.assertListEqual(
            ["Drive"], [node["browseName"] for node in context["objectNodes"]]
        )

    def test_variable(self) -> None:
        tree = new_pump_tree()
        speed_item = tree.roots[0].children[0]
        speed_item.set_value("1:Speed", "42.0")

        context, _ = projection.project(
            session=tests.common.must_load_session(), tree=tree
        )

        (speed,) = context["variableNodes"]
        self.assertEqual(1, speed["nodeIndex"])
        self.assertEqual("Speed_6001", speed["name"])
        self.assertEqual("PumpType_1002_NodeId", speed["parentNodeId"])
        self.assertEqual("UA_NODEID_NUMERIC(0, 47)", speed["referenceTypeNodeId"])
        self.assertEqual("Double", speed["dataType"])
        self.assertEqual("speed", speed["dataTypeVariableName"])
        self.assertEqual("UA_TYPES", speed["typesArrayName"])
        self.assertEqual("UA_TYPES_DOUBLE", speed["typesArrayIndexAlias"])
        self.assertListEqual(
            [
                {
                    "fieldName": "speed",
                    "fieldType": "Double",
                    "fieldValue": "42.0",
                    "isString": False,
                }
            ],
            speed["definitionFields"],
        )
        self.assertTrue(speed["singleFieldValueFlag"])
        self.assertTrue(speed["fieldsHaveValuesFlag"])

    def test_method(self) -> None:
        context, _ = projection.project(
            session=tests.common.must_load_session(), tree=new_pump_tree()
        )

        (start,) = context["methodNodes"]
        self.assertEqual("Start_7001", start["name"])
        self.assertEqual(2, start["inputArgumentArrayDimensions"])
        self.assertEqual(1, start["outputArgumentArrayDimensions"])

        target_speed, mode = start["inputArguments"]
        self.assertEqual("targetSpeed", target_speed["argumentName"])
        self.assertEqual("Double", target_speed["argumentDataType"])
        self.assertEqual("UA_TYPES_DOUBLE", target_speed["typesArrayIndexAlias"])
        self.assertFalse(target_speed["isEnum"])

        self.assertEqual(1, mode["argumentIndex"])
        self.assertEqual("PumpMode", mode["argumentDataType"])
        self.assertEqual("UA_TYPES_PUMPS", mode["typesArrayName"])
        self.assertEqual("UA_TYPES_PUMPS_PUMPMODE", mode["typesArrayIndexAlias"])
        self.assertTrue(mode["isEnum"])
        self.assertListEqual(["Off = 0", "On = 1"], mode["argumentEnumValues"])

        (status,) = start["outputArguments"]
        self.assertEqual("PumpStatus", status["argumentDataType"])
        self.assertListEqual(
            [
                {"fieldName": "running", "fieldType": "Boolean"},
                {"fieldName": "message", "fieldType": "String"},
            ],
            status["dataTypeFields"],
        )

    def test_member_inherited_from_another_namespace(self) -> None:
        tree = selection.SelectionTree(tests.common.must_load_session())
        tree.add_root_by_id(PUMPS_URI, "ns=1;i=1003")

        context, warnings = projection.project(session=tree.session, tree=tree)
        self.assertListEqual([], warnings)

        serial_number = context["variableNodes"][-1]
        self.assertEqual("SerialNumber", serial_number["browseName"])
        self.assertEqual("ns=2;i=6001", serial_number["nodeId"])
        self.assertEqual(2, serial_number["namespaceIndex"])
        self.assertEqual(
            "UA_NODEID_NUMERIC(0, 46)", serial_number["referenceTypeNodeId"]
        )
        self.assertTrue(serial_number["definitionFields"][0]["isString"])

    def test_unresolved_reference_type(self) -> None:
        tree = new_pump_tree()
        tree.roots[0].children[0].reference_type = "NoSuchReference"

        context, warnings = projection.project(
            session=tests.common.must_load_session(), tree=tree
        )

        self.assertEqual(1, len(warnings))
        self.assertIn("NoSuchReference", warnings[0].message)
        self.assertEqual("", context["variableNodes"][0]["referenceTypeNodeId"])

    def test_abstract_root(self) -> None:
        tree = selection.SelectionTree(tests.common.must_load_session())
        _, error = tree.add_root_by_id(PUMPS_URI, "ns=1;i=1001")
        assert error is None, tests.common.most_underlying_messages(error)

        context, warnings = projection.project(session=tree.session, tree=tree)

        self.assertIn(
            (
                "ns=1;i=1001",
                "The root '1:BasePumpType' instantiates an abstract type",
            ),
            [(warning.source, warning.message) for warning in warnings],
        )
        self.assertEqual(1, len(context["rootNodes"]))

    def test_a_root_which_is_no_type(self) -> None:
        tree = selection.SelectionTree(tests.common.must_load_session())
        _, error = tree.add_root_by_id(PUMPS_URI, "ns=1;i=5001")
        assert error is None, tests.common.most_underlying_messages(error)

        _, warnings = projection.project(session=tree.session, tree=tree)

        self.assertEqual(1, len(warnings))
        self.assertEqual("ns=1;i=5001", warnings[0].source)
        self.assertIn("but got UAObject '1:Drive'", warnings[0].message)

    def test_json(self) -> None:
        context, _ = projection.project(
            session=tests.common.must_load_session(), tree=new_pump_tree()
        )

        text = projection.to_json(context)
        self.assertTrue(text.endswith("}\n"))
        self.assertDictEqual(context, json.loads(text))


class Test_user_code(unittest.TestCase):
    def test_missing_file(self) -> None:
        self.assertEqual(
            "",
            projection.extract_user_code(
                path=NODESET_ROOT / "no-such-file.c",
                begin_marker="//BEGIN user code x",
                end_marker="//END user code x",
            ),
        )

    def test_carried_over(self) -> None:
        previous = textwrap.dedent(
            """\
            static UA_StatusCode
            read_Speed_6001(void) {
                //BEGIN user code read Speed_6001
                dataValue->hasValue = false;
                  readSensor();
                //END user code read Speed_6001
                return UA_STATUSCODE_GOOD;
            }
            """
        )

        with tempfile.TemporaryDirectory() as tmp_dir:
            path = pathlib.Path(tmp_dir) / "pumps.c"
            path.write_text(previous, encoding="utf-8")

            context, _ = projection.project(
                session=tests.common.must_load_session(),
                tree=new_pump_tree(),
                user_code_path=path,
            )

        (speed,) = context["variableNodes"]
        self.assertEqual(
            "dataValue->hasValue = false;\nreadSensor();", speed["readUserCode"]
        )
        self.assertEqual("", speed["writeUserCode"])
        self.assertEqual("", context["methodNodes"][0]["userCode"])


class Test_build(unittest.TestCase):
    def test_pumps(self) -> None:
        session = tests.common.must_load_session()

        context = projection.project_build(session)

        self.assertEqual("pumps", context["projectName"])
        self.assertEqual("pumps", context["executableName"])
        self.assertListEqual(
            [
                {
                    "name": "di",
                    "nameUpper": "DI",
                    "nodesetDirPrefix": "DI",
                    "hasCustomTypes": True,
                    "fileNs": "Opc.Ua.Di.NodeSet2.xml",
                    "fileCsv": "Opc.Ua.Di.NodeIds.csv",
                    "fileBsd": "",
                    "depends": [],
                },
                {
                    "name": "pumps",
                    "nameUpper": "PUMPS",
                    "nodesetDirPrefix": "Pumps",
                    "hasCustomTypes": True,
                    "fileNs": "Opc.Ua.Pumps.NodeSet2.xml",
                    "fileCsv": "Opc.Ua.Pumps.NodeIds.csv",
                    "fileBsd": "Opc.Ua.Pumps.Types.bsd",
                    "depends": ["di"],
                },
            ],
            context["nodeSets"],
        )


if __name__ == "__main__":
    unittest.main()
