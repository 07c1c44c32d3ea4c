"""Provide the typed node graph of parsed NodeSet documents."""

from ua_nodeset_codegen.model import _nodeid, _stringify, _types

BASE_NAMESPACE_URI = _types.BASE_NAMESPACE_URI
Reference = _types.Reference
Argument = _types.Argument
Node = _types.Node
Object = _types.Object
DataType = _types.DataType
Variable = _types.Variable
VariableType = _types.VariableType
Method = _types.Method
ObjectType = _types.ObjectType
NodeUnion = _types.NodeUnion
ParsedDocument = _types.ParsedDocument
NamespaceRegistry = _types.NamespaceRegistry

new_data_type_placeholder = _types.new_data_type_placeholder
clone = _types.clone
data_type_of = _types.data_type_of
is_abstract_of = _types.is_abstract_of
arguments_of = _types.arguments_of
definition_fields_of = _types.definition_fields_of

extract_identifier = _nodeid.extract_identifier
extract_namespace_index = _nodeid.extract_namespace_index
with_namespace_index = _nodeid.with_namespace_index

dump = _stringify.dump

STANDARD_REFERENCE_TYPES = _types.STANDARD_REFERENCE_TYPES
reference_type_name = _types.reference_type_name
