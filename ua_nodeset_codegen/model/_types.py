"""Provide the node graph of OPC UA information models."""
import abc
import copy
from typing import (
    Any,
    Dict,
    Final,
    List,
    Mapping,
    MutableMapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from icontract import DBC, ensure, require

from ua_nodeset_codegen import naming
from ua_nodeset_codegen.common import Error, assert_union_of_descendants_exhaustive
from ua_nodeset_codegen.model import _nodeid

_MODULE_NAME = __name__

#: URI of the base OPC UA namespace, always at the namespace index 0
BASE_NAMESPACE_URI = "http://opcfoundation.org/UA/"


class Reference:
    """Represent a typed and directed edge between two nodes."""

    #: Reference type such as ``HasComponent``, or an alias of it
    reference_type: Final[str]

    #: Node ID of the target as written in the document
    target_node_id: Final[str]

    #: False if the document marks the reference with ``IsForward="false"``
    is_forward: Final[bool]

    #: Namespace URI of the target, or None if the document does not declare it
    namespace_string: Final[Optional[str]]

    #: Target node, set by the resolution. The reference does not own it.
    target_node: Optional["NodeUnion"]

    def __init__(
        self,
        reference_type: str,
        target_node_id: str,
        is_forward: bool,
        namespace_string: Optional[str],
    ) -> None:
        """Initialize with the given values."""
        self.reference_type = reference_type
        self.target_node_id = target_node_id
        self.is_forward = is_forward
        self.namespace_string = namespace_string
        self.target_node = None

    def __deepcopy__(self, memo: Dict[int, Any]) -> "Reference":
        result = Reference(
            reference_type=self.reference_type,
            target_node_id=self.target_node_id,
            is_forward=self.is_forward,
            namespace_string=self.namespace_string,
        )
        memo[id(self)] = result

        # NOTE: The target belongs to the resolved graph and must not be duplicated.
        result.target_node = self.target_node
        return result

    def __repr__(self) -> str:
        """Represent the instance as a string for easier debugging."""
        direction = "->" if self.is_forward else "<-"
        return (
            f"<{_MODULE_NAME}.{self.__class__.__name__} "
            f"{self.reference_type} {direction} {self.target_node_id} "
            f"at 0x{id(self):x}>"
        )


class Argument:
    """Represent a single argument of a method as encoded in an argument list."""

    def __init__(self, name: str, data_type_identifier: str, value_rank: int) -> None:
        """Initialize with the given values."""
        self.name = name
        self.data_type_identifier = data_type_identifier
        self.value_rank = value_rank

    def __repr__(self) -> str:
        """Represent the instance as a string for easier debugging."""
        return (
            f"<{_MODULE_NAME}.{self.__class__.__name__} {self.name} "
            f"of {self.data_type_identifier} at 0x{id(self):x}>"
        )


# NOTE: These attributes point into the resolved graph. Copying a node shares them.
_NON_OWNING_ATTRIBUTES = frozenset(
    ["parent_node", "input_argument", "output_argument"]
)


class Node(DBC):
    """Represent an element of an information model."""

    #: ID of the node such as ``ns=1;i=1002``
    node_id: str

    #: Browse name including the namespace prefix, e.g. ``1:Speed``
    browse_name: str

    #: Display name as given in the document or edited by the user
    display_name: str

    #: Description as given in the document or edited by the user
    description: str

    #: ID of the parent node, if any
    parent_node_id: str

    #: Parent node, set by the resolution. The node does not own it.
    parent_node: Optional["NodeUnion"]

    #: URI of the namespace of the document declaring the node
    namespace_string: str

    #: Set if a modelling rule marks the node as optional. Never cleared.
    is_optional: bool

    #: Set for the instances the user put at the top of a selection
    is_root_node: bool

    #: Browse name as declared in the document
    base_browse_name: str

    #: Browse name after the uniquification in a selection tree
    unique_base_browse_name: str

    #: References declared on the node
    references: List[Reference]

    def __init__(
        self,
        node_id: str,
        browse_name: str,
        display_name: str,
        description: str,
        parent_node_id: str,
        namespace_string: str,
        references: List[Reference],
    ) -> None:
        """Initialize with the given values."""
        self.node_id = node_id
        self.browse_name = browse_name
        self.display_name = display_name
        self.description = description
        self.parent_node_id = parent_node_id
        self.parent_node = None
        self.namespace_string = namespace_string
        self.is_optional = False
        self.is_root_node = False
        self.base_browse_name = browse_name
        self.unique_base_browse_name = browse_name
        self.references = references

    @property
    def identifier(self) -> Optional[int]:
        """Return the numeric identifier of the node ID, if any."""
        return _nodeid.extract_identifier(self.node_id)

    @property
    def node_variable_name(self) -> str:
        """
        Return the name of the node in the generated code.

        The name follows the browse name and the node ID, so it changes as soon
        as either of the two is changed.
        """
        identifier = self.identifier
        return (
            f"{naming.strip_namespace_index(self.browse_name)}_"
            f"{'' if identifier is None else identifier}"
        )

    def mark_optional(self) -> None:
        """Mark the node as an optional member of its type."""
        self.is_optional = True

    @abc.abstractmethod
    def element_name(self) -> str:
        """Return the name of the XML element declaring this kind of node."""
        raise NotImplementedError()

    def __deepcopy__(self, memo: Dict[int, Any]) -> "Node":
        cls = self.__class__
        result = cls.__new__(cls)
        memo[id(self)] = result

        for key, value in self.__dict__.items():
            if key in _NON_OWNING_ATTRIBUTES:
                setattr(result, key, value)
            else:
                setattr(result, key, copy.deepcopy(value, memo))

        return result

    def __repr__(self) -> str:
        """Represent the instance as a string for easier debugging."""
        return (
            f"<{_MODULE_NAME}.{self.__class__.__name__} {self.node_id} "
            f"{self.browse_name!r} at 0x{id(self):x}>"
        )


class Object(Node):
    """Represent an object instance, e.g., a member of an object type."""

    def element_name(self) -> str:
        return "UAObject"


class DataType(Node):
    """Represent a data type with its definition."""

    #: Name of the definition; the browse name if the document gives no other
    definition_name: str

    #: Map field names to their type names, or to numeric values for enumerations
    definition_fields: MutableMapping[str, str]

    #: Set if any field of the definition carries a value
    is_enum: bool

    def __init__(
        self,
        node_id: str,
        browse_name: str,
        display_name: str,
        description: str,
        parent_node_id: str,
        namespace_string: str,
        references: List[Reference],
        definition_name: Optional[str] = None,
    ) -> None:
        """Initialize with the given values."""
        Node.__init__(
            self,
            node_id=node_id,
            browse_name=browse_name,
            display_name=display_name,
            description=description,
            parent_node_id=parent_node_id,
            namespace_string=namespace_string,
            references=references,
        )
        self.definition_name = (
            definition_name if definition_name is not None else browse_name
        )
        self.definition_fields = dict()
        self.is_enum = False

    def add_definition_field(self, name: str, type_or_value: str) -> None:
        """Add or overwrite the field ``name`` of the definition."""
        self.definition_fields[name] = type_or_value

    def element_name(self) -> str:
        return "UADataType"


def new_data_type_placeholder(definition_name: str) -> DataType:
    """Create a data type descriptor which names its type, but is not resolved."""
    return DataType(
        node_id="",
        browse_name="",
        display_name="",
        description="",
        parent_node_id="",
        namespace_string="",
        references=[],
        definition_name=definition_name,
    )


class _VariableLike(Node):
    """Carry the attributes shared by variables and variable types."""

    #: Data type of the value, a placeholder until the resolution
    data_type: DataType

    #: Arguments if the variable holds the argument list of a method
    arguments: List[Argument]

    #: Leading dimension of the ``ArrayDimensions`` attribute, 0 if absent
    array_dimensions: int

    #: Value rank; -1 stands for a scalar
    value_rank: int

    def __init__(
        self,
        node_id: str,
        browse_name: str,
        display_name: str,
        description: str,
        parent_node_id: str,
        namespace_string: str,
        references: List[Reference],
        data_type: DataType,
        arguments: List[Argument],
        array_dimensions: int,
        value_rank: int,
    ) -> None:
        """Initialize with the given values."""
        Node.__init__(
            self,
            node_id=node_id,
            browse_name=browse_name,
            display_name=display_name,
            description=description,
            parent_node_id=parent_node_id,
            namespace_string=namespace_string,
            references=references,
        )
        self.data_type = data_type
        self.arguments = arguments
        self.array_dimensions = array_dimensions
        self.value_rank = value_rank


class Variable(_VariableLike):
    """Represent a variable instance, including the argument lists of methods."""

    def element_name(self) -> str:
        return "UAVariable"


class VariableType(_VariableLike):
    """Represent a variable type."""

    def __init__(
        self,
        node_id: str,
        browse_name: str,
        display_name: str,
        description: str,
        parent_node_id: str,
        namespace_string: str,
        references: List[Reference],
        data_type: DataType,
        arguments: List[Argument],
        array_dimensions: int,
        value_rank: int,
        is_abstract: bool,
    ) -> None:
        """Initialize with the given values."""
        _VariableLike.__init__(
            self,
            node_id=node_id,
            browse_name=browse_name,
            display_name=display_name,
            description=description,
            parent_node_id=parent_node_id,
            namespace_string=namespace_string,
            references=references,
            data_type=data_type,
            arguments=arguments,
            array_dimensions=array_dimensions,
            value_rank=value_rank,
        )
        self.is_abstract = is_abstract

    def element_name(self) -> str:
        return "UAVariableType"


class Method(Node):
    """Represent a method with the links to its argument lists."""

    #: Variable holding the input arguments, set by the resolution
    input_argument: Optional[Variable]

    #: Variable holding the output arguments, set by the resolution
    output_argument: Optional[Variable]

    def __init__(
        self,
        node_id: str,
        browse_name: str,
        display_name: str,
        description: str,
        parent_node_id: str,
        namespace_string: str,
        references: List[Reference],
    ) -> None:
        """Initialize with the given values."""
        Node.__init__(
            self,
            node_id=node_id,
            browse_name=browse_name,
            display_name=display_name,
            description=description,
            parent_node_id=parent_node_id,
            namespace_string=namespace_string,
            references=references,
        )
        self.input_argument = None
        self.output_argument = None

    def element_name(self) -> str:
        return "UAMethod"


class ObjectType(Node):
    """Represent an object type, the thing a user instantiates."""

    def __init__(
        self,
        node_id: str,
        browse_name: str,
        display_name: str,
        description: str,
        parent_node_id: str,
        namespace_string: str,
        references: List[Reference],
        is_abstract: bool,
    ) -> None:
        """Initialize with the given values."""
        Node.__init__(
            self,
            node_id=node_id,
            browse_name=browse_name,
            display_name=display_name,
            description=description,
            parent_node_id=parent_node_id,
            namespace_string=namespace_string,
            references=references,
        )
        self.is_abstract = is_abstract

    def element_name(self) -> str:
        return "UAObjectType"


NodeUnion = Union[Object, Variable, Method, DataType, VariableType, ObjectType]
assert_union_of_descendants_exhaustive(union=NodeUnion, base_class=Node)


# region Accessors valid only for some kinds of nodes


def _miss(node: Node, what: str) -> Error:
    return Error(
        node.node_id,
        f"Expected a node carrying {what}, but got {node.element_name()} "
        f"{node.browse_name!r}",
    )


@ensure(lambda result: result[0] is not None)
def data_type_of(node: NodeUnion) -> Tuple[DataType, Optional[Error]]:
    """Get the data type of a variable or a variable type."""
    if isinstance(node, (Variable, VariableType)):
        return node.data_type, None

    return new_data_type_placeholder(""), _miss(node, "a data type")


def is_abstract_of(node: NodeUnion) -> Tuple[bool, Optional[Error]]:
    """Check whether an object or variable type is abstract."""
    if isinstance(node, (ObjectType, VariableType)):
        return node.is_abstract, None

    return False, _miss(node, "the abstractness")


def arguments_of(node: NodeUnion) -> Tuple[List[Argument], Optional[Error]]:
    """Get the arguments of a variable or a variable type."""
    if isinstance(node, (Variable, VariableType)):
        return node.arguments, None

    return [], _miss(node, "an argument list")


def definition_fields_of(
    node: NodeUnion,
) -> Tuple[Mapping[str, str], Optional[Error]]:
    """Get the definition fields of a data type, or of the data type of a variable."""
    if isinstance(node, DataType):
        return node.definition_fields, None

    if isinstance(node, (Variable, VariableType)):
        return node.data_type.definition_fields, None

    return dict(), _miss(node, "definition fields")


# endregion


def clone(node: NodeUnion) -> NodeUnion:
    """
    Copy ``node`` with its own references.

    The links into the resolved graph (parent, reference targets and
    argument lists) are shared, not copied.
    """
    result = copy.deepcopy(node)
    assert isinstance(result, node.__class__)
    return result


class ParsedDocument:
    """Represent a single NodeSet document before and after the resolution."""

    #: URI of the model the document declares
    namespace_uri: Final[str]

    #: Map numeric identifiers to the nodes of the document
    nodes: Final[MutableMapping[int, NodeUnion]]

    #: Map document-local namespace indices to namespace URIs
    namespace_index_map: Final[Mapping[int, str]]

    #: Map aliases to raw node IDs
    alias_map: Final[Mapping[str, str]]

    #: Set if the document declares any data type
    has_custom_types: Final[bool]

    #: URIs of the required models in declaration order
    required_model_uris: Final[Sequence[str]]

    #: Path to the file which has been parsed, if any
    path: Final[Optional[str]]

    @require(
        lambda namespace_index_map: namespace_index_map.get(0) == BASE_NAMESPACE_URI
    )
    def __init__(
        self,
        namespace_uri: str,
        nodes: MutableMapping[int, NodeUnion],
        namespace_index_map: Mapping[int, str],
        alias_map: Mapping[str, str],
        has_custom_types: bool,
        required_model_uris: Sequence[str],
        path: Optional[str],
    ) -> None:
        """Initialize with the given values."""
        self.namespace_uri = namespace_uri
        self.nodes = nodes
        self.namespace_index_map = namespace_index_map
        self.alias_map = alias_map
        self.has_custom_types = has_custom_types
        self.required_model_uris = required_model_uris
        self.path = path

    def find_node(self, node_id: str) -> Optional[NodeUnion]:
        """Find the node by the identifier in ``node_id``; the namespace is ignored."""
        identifier = _nodeid.extract_identifier(node_id)
        if identifier is None:
            return None

        return self.nodes.get(identifier, None)

    def resolve_alias(self, alias: str) -> Optional[str]:
        """Map the ``alias`` to its node ID, if the document defines it."""
        return self.alias_map.get(alias, None)

    def __repr__(self) -> str:
        """Represent the instance as a string for easier debugging."""
        return (
            f"<{_MODULE_NAME}.{self.__class__.__name__} {self.namespace_uri} "
            f"with {len(self.nodes)} node(s) at 0x{id(self):x}>"
        )


class NamespaceRegistry:
    """Map the URI of every document in a session to its namespace index map."""

    def __init__(self) -> None:
        """Initialize as empty."""
        self._maps = dict()  # type: Dict[str, Mapping[int, str]]

    def register(self, document: ParsedDocument) -> None:
        """Register the namespace index map of the ``document``."""
        self._maps[document.namespace_uri] = document.namespace_index_map

    def namespace_by_index(self, namespace_origin: str, index: int) -> Optional[str]:
        """Find the URI the document ``namespace_origin`` assigns to ``index``."""
        index_map = self._maps.get(namespace_origin, None)
        if index_map is None:
            return None

        return index_map.get(index, None)

    def index_of(self, namespace_origin: str, namespace_uri: str) -> Optional[int]:
        """Find the index the document ``namespace_origin`` assigns to the URI."""
        index_map = self._maps.get(namespace_origin, None)
        if index_map is None:
            return None

        for index, uri in index_map.items():
            if uri == namespace_uri:
                return index

        return None

    def __contains__(self, namespace_uri: str) -> bool:
        return namespace_uri in self._maps


#: Map the names of the standard reference types to their node IDs
#: in the base namespace
STANDARD_REFERENCE_TYPES = {
    "References": "i=31",
    "NonHierarchicalReferences": "i=32",
    "HierarchicalReferences": "i=33",
    "HasChild": "i=34",
    "Organizes": "i=35",
    "HasEventSource": "i=36",
    "HasModellingRule": "i=37",
    "HasEncoding": "i=38",
    "HasDescription": "i=39",
    "HasTypeDefinition": "i=40",
    "GeneratesEvent": "i=41",
    "Aggregates": "i=44",
    "HasSubtype": "i=45",
    "HasProperty": "i=46",
    "HasComponent": "i=47",
    "HasNotifier": "i=48",
    "HasOrderedComponent": "i=49",
    "HasInterface": "i=17603",
    "HasAddIn": "i=17604",
}  # type: Mapping[str, str]

_STANDARD_REFERENCE_TYPE_NAMES = {
    int(node_id[len("i=") :]): name
    for name, node_id in STANDARD_REFERENCE_TYPES.items()
}  # type: Mapping[int, str]


def reference_type_name(reference_type: str) -> str:
    """
    Normalize the ``reference_type`` to the name of a standard reference type.

    Documents usually refer to reference types by aliases, but they may also
    refer to them by node IDs.

    >>> reference_type_name("HasComponent")
    'HasComponent'

    >>> reference_type_name("i=45")
    'HasSubtype'

    >>> reference_type_name("ns=1;i=4001")
    'ns=1;i=4001'
    """
    if reference_type in STANDARD_REFERENCE_TYPES:
        return reference_type

    if _nodeid.extract_namespace_index(reference_type) != 0:
        return reference_type

    identifier = _nodeid.extract_identifier(reference_type)
    if identifier is None:
        return reference_type

    return _STANDARD_REFERENCE_TYPE_NAMES.get(identifier, reference_type)
