# pylint: disable=missing-docstring

import unittest
from typing import Dict, List, Mapping

from ua_nodeset_codegen import model, resolution

import tests.common
from tests.common import BASE_URI, DI_URI, PUMPS_URI

CYCLE_URI = "http://example.com/UA/Cycle/"


def new_document(
    namespace_uri: str, nodes: List[model.NodeUnion]
) -> model.ParsedDocument:
    nodes_by_identifier = dict()  # type: Dict[int, model.NodeUnion]
    for node in nodes:
        identifier = node.identifier
        assert identifier is not None
        nodes_by_identifier[identifier] = node

    return model.ParsedDocument(
        namespace_uri=namespace_uri,
        nodes=nodes_by_identifier,
        namespace_index_map={0: BASE_URI, 1: namespace_uri},
        alias_map={},
        has_custom_types=True,
        required_model_uris=[BASE_URI],
        path=None,
    )


def new_data_type(
    node_id: str, browse_name: str, references: List[model.Reference]
) -> model.DataType:
    return model.DataType(
        node_id=node_id,
        browse_name=browse_name,
        display_name=browse_name,
        description="",
        parent_node_id="",
        namespace_string=CYCLE_URI,
        references=references,
    )


def subtype_of(node_id: str, namespace_uri: str = CYCLE_URI) -> model.Reference:
    return model.Reference(
        reference_type="HasSubtype",
        target_node_id=node_id,
        is_forward=False,
        namespace_string=namespace_uri,
    )


class Test_against_fixtures(unittest.TestCase):
    def test_parents(self) -> None:
        session = tests.common.must_load_session()

        speed = session.find_node(PUMPS_URI, "ns=1;i=6001")
        assert speed is not None
        assert speed.parent_node is not None
        self.assertEqual("1:PumpType", speed.parent_node.browse_name)

    def test_references_across_documents(self) -> None:
        session = tests.common.must_load_session()

        motor_type = session.find_node(PUMPS_URI, "ns=1;i=1003")
        assert motor_type is not None

        supertype = motor_type.references[0].target_node
        assert supertype is not None
        self.assertEqual("1:TopologyElementType", supertype.browse_name)
        self.assertEqual(DI_URI, supertype.namespace_string)

    def test_optional_members(self) -> None:
        session = tests.common.must_load_session()

        speed = session.find_node(PUMPS_URI, "ns=1;i=6001")
        temperature = session.find_node(PUMPS_URI, "ns=1;i=6002")
        assert speed is not None and temperature is not None

        self.assertFalse(speed.is_optional)
        self.assertTrue(temperature.is_optional)

    def test_data_types(self) -> None:
        session = tests.common.must_load_session()

        speed = session.find_node(PUMPS_URI, "ns=1;i=6001")
        assert isinstance(speed, model.Variable)
        self.assertEqual("i=11", speed.data_type.node_id)
        self.assertEqual("Double", speed.data_type.definition_name)
        self.assertEqual(BASE_URI, speed.data_type.namespace_string)

        serial_number = session.find_node(DI_URI, "ns=1;i=6001")
        assert isinstance(serial_number, model.Variable)
        self.assertEqual("String", serial_number.data_type.definition_name)

        label = session.find_node(PUMPS_URI, "ns=1;i=6007")
        assert isinstance(label, model.Variable)
        self.assertListEqual(
            ["Locale", "Text"], list(label.data_type.definition_fields.keys())
        )

    def test_data_type_is_a_copy(self) -> None:
        session = tests.common.must_load_session()

        speed = session.find_node(PUMPS_URI, "ns=1;i=6001")
        double = session.find_node(BASE_URI, "i=11")
        assert isinstance(speed, model.Variable)
        assert double is not None

        self.assertIsNot(double, speed.data_type)

    def test_inherited_fields(self) -> None:
        session = tests.common.must_load_session()

        extended = session.find_node(PUMPS_URI, "ns=1;i=3003")
        assert isinstance(extended, model.DataType)
        self.assertListEqual(
            [("Running", "Boolean"), ("Message", "String"), ("Code", "Int32")],
            list(extended.definition_fields.items()),
        )

        status = session.find_node(PUMPS_URI, "ns=1;i=6006")
        assert isinstance(status, model.Variable)
        self.assertListEqual(
            ["Running", "Message", "Code"],
            list(status.data_type.definition_fields.keys()),
        )

    def test_method_arguments(self) -> None:
        session = tests.common.must_load_session()

        start = session.find_node(PUMPS_URI, "ns=1;i=7001")
        assert isinstance(start, model.Method)

        assert start.input_argument is not None
        assert start.output_argument is not None
        self.assertEqual("ns=1;i=6003", start.input_argument.node_id)
        self.assertEqual("ns=1;i=6004", start.output_argument.node_id)
        self.assertListEqual(
            ["Status"], [argument.name for argument in start.output_argument.arguments]
        )


class Test_in_memory(unittest.TestCase):
    def test_cyclic_subtypes_terminate(self) -> None:
        first = new_data_type("ns=1;i=1", "1:First", [subtype_of("ns=1;i=2")])
        first.add_definition_field("A", "Int32")

        second = new_data_type("ns=1;i=2", "1:Second", [subtype_of("ns=1;i=1")])
        second.add_definition_field("B", "String")

        documents = {
            CYCLE_URI: new_document(CYCLE_URI, [first, second])
        }  # type: Mapping[str, model.ParsedDocument]

        warnings = resolution.resolve(documents)

        self.assertListEqual([], warnings)
        self.assertSetEqual({"A", "B"}, set(first.definition_fields.keys()))
        self.assertSetEqual({"A", "B"}, set(second.definition_fields.keys()))

    def test_subtype_overrides_the_supertype(self) -> None:
        base = new_data_type("ns=1;i=1", "1:Base", [])
        base.add_definition_field("Shared", "Int32")
        base.add_definition_field("Inherited", "Boolean")

        derived = new_data_type("ns=1;i=2", "1:Derived", [subtype_of("ns=1;i=1")])
        derived.add_definition_field("Shared", "Double")

        resolution.resolve({CYCLE_URI: new_document(CYCLE_URI, [base, derived])})

        self.assertListEqual(
            [("Shared", "Double"), ("Inherited", "Boolean")],
            list(derived.definition_fields.items()),
        )

    def test_unresolved_references_are_warnings(self) -> None:
        lonely = new_data_type(
            "ns=1;i=1",
            "1:Lonely",
            [
                subtype_of("ns=1;i=404"),
                subtype_of("ns=2;i=1", namespace_uri="http://example.com/UA/Gone/"),
            ],
        )

        warnings = resolution.resolve(
            {CYCLE_URI: new_document(CYCLE_URI, [lonely])}
        )

        self.assertEqual(2, len(warnings))
        self.assertIn("has no such node", warnings[0].message)
        self.assertIn("is not loaded", warnings[1].message)
        self.assertTrue(
            all(reference.target_node is None for reference in lonely.references)
        )

    def test_unknown_data_type(self) -> None:
        variable = model.Variable(
            node_id="ns=1;i=10",
            browse_name="1:Mystery",
            display_name="Mystery",
            description="",
            parent_node_id="",
            namespace_string=CYCLE_URI,
            references=[],
            data_type=model.new_data_type_placeholder("NoSuchAlias"),
            arguments=[],
            array_dimensions=0,
            value_rank=-1,
        )

        warnings = resolution.resolve(
            {CYCLE_URI: new_document(CYCLE_URI, [variable])}
        )

        self.assertEqual(1, len(warnings))
        self.assertIn("is neither an alias nor a node ID", warnings[0].message)
        self.assertEqual("", variable.data_type.node_id)
        self.assertEqual("NoSuchAlias", variable.data_type.definition_name)


if __name__ == "__main__":
    unittest.main()
