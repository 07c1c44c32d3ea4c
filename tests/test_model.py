# pylint: disable=missing-docstring

import unittest

from ua_nodeset_codegen import model

import tests.common
from tests.common import PUMPS_URI


class Test_fallible_accessors(unittest.TestCase):
    def setUp(self) -> None:
        self.session = tests.common.must_load_session()

    def must_find(self, node_id: str) -> model.NodeUnion:
        node = self.session.find_node(PUMPS_URI, node_id)
        assert node is not None, node_id
        return node

    def test_on_the_matching_kinds(self) -> None:
        speed = self.must_find("ns=1;i=6001")
        data_type, error = model.data_type_of(speed)
        self.assertIsNone(error)
        self.assertEqual("Double", data_type.definition_name)

        input_arguments = self.must_find("ns=1;i=6003")
        arguments, error = model.arguments_of(input_arguments)
        self.assertIsNone(error)
        self.assertListEqual(["TargetSpeed", "Mode"], [arg.name for arg in arguments])

        base_pump_type = self.must_find("ns=1;i=1001")
        is_abstract, error = model.is_abstract_of(base_pump_type)
        self.assertIsNone(error)
        self.assertTrue(is_abstract)

        pump_mode = self.must_find("ns=1;i=3001")
        fields, error = model.definition_fields_of(pump_mode)
        self.assertIsNone(error)
        self.assertDictEqual({"Off": "0", "On": "1"}, dict(fields))

    def test_on_the_other_kinds(self) -> None:
        start = self.must_find("ns=1;i=7001")

        data_type, error = model.data_type_of(start)
        self.assertEqual("", data_type.definition_name)
        assert error is not None
        self.assertEqual("ns=1;i=7001", error.source)
        self.assertIn("UAMethod '1:Start'", error.message)

        is_abstract, error = model.is_abstract_of(start)
        self.assertFalse(is_abstract)
        self.assertIsNotNone(error)

        arguments, error = model.arguments_of(start)
        self.assertListEqual([], arguments)
        self.assertIsNotNone(error)

        fields, error = model.definition_fields_of(start)
        self.assertEqual(0, len(fields))
        self.assertIsNotNone(error)


class Test_node_ids(unittest.TestCase):
    def test_node_variable_name_follows_the_browse_name(self) -> None:
        session = tests.common.must_load_session()
        speed = session.find_node(PUMPS_URI, "ns=1;i=6001")
        assert speed is not None

        copied = model.clone(speed)
        self.assertEqual("Speed_6001", copied.node_variable_name)

        copied.browse_name = "1:Speed_1"
        self.assertEqual("Speed_1_6001", copied.node_variable_name)
        self.assertEqual("Speed_6001", speed.node_variable_name)

    def test_unknown_reference_types_are_kept(self) -> None:
        self.assertEqual("HasProperty", model.reference_type_name("i=46"))
        self.assertEqual("i=999999", model.reference_type_name("i=999999"))


if __name__ == "__main__":
    unittest.main()
