"""Parse NodeSet2.xml documents into the node graph, one document at a time."""

from ua_nodeset_codegen.parse import _parse

Models = _parse.Models
parse_document = _parse.parse_document
read_models = _parse.read_models
