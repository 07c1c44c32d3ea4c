"""Parse NodeSet2.xml documents in a single forward pass."""
import pathlib
import xml.etree.ElementTree as ET
from typing import (
    Dict,
    Iterator,
    List,
    Optional,
    Sequence,
    Tuple,
)

from icontract import ensure

from ua_nodeset_codegen import model
from ua_nodeset_codegen.common import Error


def _local_name(tag: str) -> str:
    """
    Strip the XML namespace from the ``tag``.

    >>> _local_name("{http://opcfoundation.org/UA/2011/03/UANodeSet.xsd}UAObject")
    'UAObject'

    >>> _local_name("UAObject")
    'UAObject'
    """
    if tag.startswith("{"):
        return tag[tag.index("}") + 1 :]

    return tag


def _children(element: ET.Element, name: str) -> Iterator[ET.Element]:
    for child in element:
        if _local_name(child.tag) == name:
            yield child


def _child(element: ET.Element, name: str) -> Optional[ET.Element]:
    return next(_children(element, name), None)


def _text(element: Optional[ET.Element]) -> str:
    if element is None or element.text is None:
        return ""

    return element.text.strip()


def _leading_int(text: Optional[str], default: int) -> int:
    """
    Parse the leading integer of ``text``.

    >>> _leading_int("3,3", 0)
    3

    >>> _leading_int("-1", 0)
    -1

    >>> _leading_int(None, -1)
    -1

    >>> _leading_int("abc", 0)
    0
    """
    if text is None:
        return default

    head = text.strip().split(",")[0].strip()
    try:
        return int(head)
    except ValueError:
        return default


class Models:
    """Represent the models declared in the ``Models`` element of a document."""

    def __init__(self, model_uri: Optional[str], required_uris: List[str]) -> None:
        """Initialize with the given values."""
        self.model_uri = model_uri
        self.required_uris = required_uris


def _read_models_element(element: ET.Element) -> Models:
    model_uri = None  # type: Optional[str]
    required_uris = []  # type: List[str]

    for model_element in element:
        name = _local_name(model_element.tag)
        uri = model_element.attrib.get("ModelUri", None)

        if name == "Model":
            if uri is not None:
                model_uri = uri

            for required_element in _children(model_element, "RequiredModel"):
                required_uri = required_element.attrib.get("ModelUri", None)
                if required_uri is not None:
                    required_uris.append(required_uri)

        elif name == "RequiredModel" and uri is not None:
            required_uris.append(uri)

    return Models(model_uri=model_uri, required_uris=required_uris)


def _namespace_index_map(
    own_uri: str, required_uris: Sequence[str]
) -> Dict[int, str]:
    """
    Assign the document-local namespace indices.

    >>> _namespace_index_map(
    ...     "http://opcfoundation.org/UA/Pumps/",
    ...     ["http://opcfoundation.org/UA/", "http://opcfoundation.org/UA/DI/"]
    ... )
    {0: 'http://opcfoundation.org/UA/', 1: 'http://opcfoundation.org/UA/Pumps/', 2: 'http://opcfoundation.org/UA/DI/'}

    >>> _namespace_index_map("http://opcfoundation.org/UA/", [])
    {0: 'http://opcfoundation.org/UA/'}
    """
    result = {0: model.BASE_NAMESPACE_URI}  # type: Dict[int, str]

    if own_uri != model.BASE_NAMESPACE_URI:
        result[1] = own_uri

    next_index = 2
    for uri in required_uris:
        if uri == model.BASE_NAMESPACE_URI or uri == own_uri:
            continue

        result[next_index] = uri
        next_index += 1

    return result


class _DocumentBuilder:
    """Collect the content of a document while the parser passes through it."""

    def __init__(self, path: pathlib.Path) -> None:
        self.path = path
        self.namespace_uri = None  # type: Optional[str]
        self.namespace_index_map = None  # type: Optional[Dict[int, str]]
        self.required_model_uris = []  # type: List[str]
        self.namespace_uris = []  # type: List[str]
        self.alias_map = dict()  # type: Dict[str, str]
        self.nodes = dict()  # type: Dict[int, model.NodeUnion]
        self.has_custom_types = False
        self.warnings = []  # type: List[Error]

    def on_namespace_uris(self, element: ET.Element) -> None:
        self.namespace_uris = [
            _text(uri_element) for uri_element in _children(element, "Uri")
        ]

    def on_models(self, element: ET.Element) -> Optional[Error]:
        models = _read_models_element(element)
        if models.model_uri is None:
            return Error(
                str(self.path),
                "The Models element does not declare a Model with a ModelUri",
            )

        self.namespace_uri = models.model_uri
        self.required_model_uris = models.required_uris
        self.namespace_index_map = _namespace_index_map(
            own_uri=models.model_uri, required_uris=models.required_uris
        )
        return None

    def on_aliases(self, element: ET.Element) -> None:
        for alias_element in _children(element, "Alias"):
            alias = alias_element.attrib.get("Alias", None)
            if alias is not None:
                self.alias_map[alias] = _text(alias_element)

    def ensure_namespaces(self) -> Optional[Error]:
        """Fall back to ``NamespaceUris`` if the document lacks ``Models``."""
        if self.namespace_index_map is not None:
            return None

        if len(self.namespace_uris) == 0:
            return Error(
                str(self.path),
                "The document declares neither Models nor NamespaceUris, "
                "so its namespace is unknown",
            )

        self.namespace_uri = self.namespace_uris[0]
        self.required_model_uris = list(self.namespace_uris[1:])

        self.namespace_index_map = {0: model.BASE_NAMESPACE_URI}
        for i, uri in enumerate(self.namespace_uris):
            self.namespace_index_map[i + 1] = uri

        self.warnings.append(
            Error(
                str(self.path),
                f"The document has no Models element; "
                f"assuming {self.namespace_uri!r} from its NamespaceUris",
            )
        )
        return None

    def _references(self, element: ET.Element) -> List[model.Reference]:
        assert self.namespace_index_map is not None

        result = []  # type: List[model.Reference]

        references_element = _child(element, "References")
        if references_element is None:
            return result

        for reference_element in _children(references_element, "Reference"):
            target_node_id = _text(reference_element)
            namespace_index = model.extract_namespace_index(target_node_id)
            namespace_string = self.namespace_index_map.get(namespace_index, None)
            if namespace_string is None:
                self.warnings.append(
                    Error(
                        target_node_id,
                        f"The namespace index {namespace_index} of the reference "
                        f"target is not declared in {self.path}",
                    )
                )

            is_forward = (
                reference_element.attrib.get("IsForward", "true").strip().lower()
                != "false"
            )

            result.append(
                model.Reference(
                    reference_type=reference_element.attrib.get("ReferenceType", ""),
                    target_node_id=target_node_id,
                    is_forward=is_forward,
                    namespace_string=namespace_string,
                )
            )

        return result

    def _arguments(self, element: ET.Element) -> List[model.Argument]:
        result = []  # type: List[model.Argument]

        value_element = _child(element, "Value")
        if value_element is None:
            return result

        for list_element in _children(value_element, "ListOfExtensionObject"):
            for extension_element in _children(list_element, "ExtensionObject"):
                name = ""
                data_type_identifier = ""
                type_id_element = _child(extension_element, "TypeId")
                if type_id_element is not None:
                    data_type_identifier = _text(
                        _child(type_id_element, "Identifier")
                    )

                value_rank = -1

                body_element = _child(extension_element, "Body")
                if body_element is not None:
                    # The body holds a single structure, usually ``Argument``.
                    for structure_element in body_element:
                        name_element = _child(structure_element, "Name")
                        if name_element is not None:
                            name = _text(name_element)

                        data_type_element = _child(structure_element, "DataType")
                        if data_type_element is not None:
                            identifier = _text(
                                _child(data_type_element, "Identifier")
                            )
                            if len(identifier) > 0:
                                data_type_identifier = identifier

                        value_rank = _leading_int(
                            _text(_child(structure_element, "ValueRank")) or None,
                            -1,
                        )

                result.append(
                    model.Argument(
                        name=name,
                        data_type_identifier=data_type_identifier,
                        value_rank=value_rank,
                    )
                )

        return result

    def _description(self, element: ET.Element) -> str:
        description_element = _child(element, "Description")
        if description_element is not None:
            return _text(description_element)

        return element.attrib.get("Description", "")

    def on_node(self, element: ET.Element, element_name: str) -> None:
        assert self.namespace_uri is not None

        attrib = element.attrib
        node_id = attrib.get("NodeId", "")
        browse_name = attrib.get("BrowseName", "")
        display_name = _text(_child(element, "DisplayName"))
        description = self._description(element)
        parent_node_id = attrib.get("ParentNodeId", "")
        is_abstract = attrib.get("IsAbstract", "").strip().lower() == "true"
        references = self._references(element)

        node = None  # type: Optional[model.NodeUnion]

        if element_name == "UAObject":
            node = model.Object(
                node_id=node_id,
                browse_name=browse_name,
                display_name=display_name,
                description=description,
                parent_node_id=parent_node_id,
                namespace_string=self.namespace_uri,
                references=references,
            )

        elif element_name == "UAMethod":
            node = model.Method(
                node_id=node_id,
                browse_name=browse_name,
                display_name=display_name,
                description=description,
                parent_node_id=parent_node_id,
                namespace_string=self.namespace_uri,
                references=references,
            )

        elif element_name == "UAObjectType":
            node = model.ObjectType(
                node_id=node_id,
                browse_name=browse_name,
                display_name=display_name,
                description=description,
                parent_node_id=parent_node_id,
                namespace_string=self.namespace_uri,
                references=references,
                is_abstract=is_abstract,
            )

        elif element_name == "UADataType":
            self.has_custom_types = True
            node = self._data_type(
                element=element,
                node_id=node_id,
                browse_name=browse_name,
                display_name=display_name,
                description=description,
                parent_node_id=parent_node_id,
                references=references,
            )

        elif element_name in ("UAVariable", "UAVariableType"):
            data_type = model.new_data_type_placeholder(
                definition_name=attrib.get("DataType", "")
            )
            arguments = self._arguments(element)
            array_dimensions = _leading_int(attrib.get("ArrayDimensions", None), 0)
            value_rank = _leading_int(attrib.get("ValueRank", None), -1)

            if element_name == "UAVariable":
                node = model.Variable(
                    node_id=node_id,
                    browse_name=browse_name,
                    display_name=display_name,
                    description=description,
                    parent_node_id=parent_node_id,
                    namespace_string=self.namespace_uri,
                    references=references,
                    data_type=data_type,
                    arguments=arguments,
                    array_dimensions=array_dimensions,
                    value_rank=value_rank,
                )
            else:
                node = model.VariableType(
                    node_id=node_id,
                    browse_name=browse_name,
                    display_name=display_name,
                    description=description,
                    parent_node_id=parent_node_id,
                    namespace_string=self.namespace_uri,
                    references=references,
                    data_type=data_type,
                    arguments=arguments,
                    array_dimensions=array_dimensions,
                    value_rank=value_rank,
                    is_abstract=is_abstract,
                )

        else:
            raise AssertionError(f"Unexpected node element: {element_name}")

        self._insert(node)

    def _data_type(
        self,
        element: ET.Element,
        node_id: str,
        browse_name: str,
        display_name: str,
        description: str,
        parent_node_id: str,
        references: List[model.Reference],
    ) -> model.DataType:
        assert self.namespace_uri is not None

        data_type = model.DataType(
            node_id=node_id,
            browse_name=browse_name,
            display_name=display_name,
            description=description,
            parent_node_id=parent_node_id,
            namespace_string=self.namespace_uri,
            references=references,
        )

        # NOTE: The base namespace declares no definition for LocalizedText.
        if data_type.definition_name == "LocalizedText":
            data_type.add_definition_field("Locale", "Locale")
            data_type.add_definition_field("Text", "String")

        definition_element = _child(element, "Definition")
        if definition_element is not None:
            definition_name = definition_element.attrib.get("Name", None)
            if definition_name is not None:
                data_type.definition_name = definition_name

            for field_element in _children(definition_element, "Field"):
                field_name = field_element.attrib.get("Name", "")
                value = field_element.attrib.get("Value", "")
                if len(value) > 0:
                    data_type.is_enum = True
                    data_type.add_definition_field(field_name, value)
                else:
                    data_type.add_definition_field(
                        field_name, field_element.attrib.get("DataType", "")
                    )

        return data_type

    def _insert(self, node: model.NodeUnion) -> None:
        identifier = node.identifier
        if identifier is None:
            self.warnings.append(
                Error(
                    node.node_id,
                    f"Only numeric node IDs are supported, "
                    f"skipping {node.element_name()} {node.browse_name!r}",
                )
            )
            return

        if identifier in self.nodes:
            self.warnings.append(
                Error(
                    node.node_id,
                    f"The identifier {identifier} is declared more than once "
                    f"in {self.path}; the later {node.element_name()} "
                    f"{node.browse_name!r} replaces the earlier one",
                )
            )

        self.nodes[identifier] = node

    def build(self) -> Tuple[Optional[model.ParsedDocument], Optional[Error]]:
        error = self.ensure_namespaces()
        if error is not None:
            return None, error

        assert self.namespace_uri is not None
        assert self.namespace_index_map is not None

        return (
            model.ParsedDocument(
                namespace_uri=self.namespace_uri,
                nodes=self.nodes,
                namespace_index_map=self.namespace_index_map,
                alias_map=self.alias_map,
                has_custom_types=self.has_custom_types,
                required_model_uris=self.required_model_uris,
                path=str(self.path),
            ),
            None,
        )


_NODE_ELEMENTS = frozenset(
    [
        "UAObject",
        "UAVariable",
        "UAMethod",
        "UADataType",
        "UAVariableType",
        "UAObjectType",
    ]
)


def _parse_error(path: pathlib.Path, exception: Exception) -> Error:
    if isinstance(exception, ET.ParseError):
        line, column = exception.position
        return Error(
            str(path),
            f"Failed to parse the XML at line {line} and column {column}: "
            f"{exception}",
        )

    elif isinstance(exception, OSError):
        return Error(str(path), f"Failed to read the document: {exception}")

    raise AssertionError(f"Unexpected exception: {exception!r}")


# fmt: off
@ensure(lambda result: (result[0] is not None) ^ (result[1] is not None))
# fmt: on
def parse_document(
    path: pathlib.Path,
) -> Tuple[Optional[Tuple[model.ParsedDocument, List[Error]]], Optional[Error]]:
    """
    Parse the NodeSet document at ``path``.

    Return the document together with the non-fatal observations (warnings),
    or the error if the document could not be read or understood.
    """
    builder = _DocumentBuilder(path=path)

    depth = 0
    root = None  # type: Optional[ET.Element]

    try:
        for event, element in ET.iterparse(str(path), events=("start", "end")):
            if event == "start":
                depth += 1
                if root is None:
                    root = element
                continue

            depth -= 1
            if depth != 1:
                continue

            # We only process the direct children of ``UANodeSet`` here.
            name = _local_name(element.tag)

            if name == "NamespaceUris":
                builder.on_namespace_uris(element)

            elif name == "Models":
                error = builder.on_models(element)
                if error is not None:
                    return None, error

            elif name == "Aliases":
                builder.on_aliases(element)

            elif name in _NODE_ELEMENTS:
                error = builder.ensure_namespaces()
                if error is not None:
                    return None, error

                builder.on_node(element=element, element_name=name)

            else:
                # Extensions and other elements are not needed for the code.
                pass

            assert root is not None
            root.remove(element)

    except (ET.ParseError, OSError) as exception:
        return None, _parse_error(path, exception)

    if root is None or _local_name(root.tag) != "UANodeSet":
        return None, Error(
            str(path), "Expected the document to have a UANodeSet root element"
        )

    document, error = builder.build()
    if error is not None:
        return None, error

    assert document is not None
    return (document, builder.warnings), None


# fmt: off
@ensure(lambda result: (result[0] is not None) ^ (result[1] is not None))
# fmt: on
def read_models(path: pathlib.Path) -> Tuple[Optional[Models], Optional[Error]]:
    """
    Read only the ``Models`` element of the document at ``path``.

    The parsing stops as soon as the element has been read.
    """
    try:
        for _, element in ET.iterparse(str(path), events=("end",)):
            if _local_name(element.tag) == "Models":
                models = _read_models_element(element)
                if models.model_uri is None:
                    return None, Error(
                        str(path),
                        "The Models element does not declare a Model with a ModelUri",
                    )

                return models, None

    except (ET.ParseError, OSError) as exception:
        return None, _parse_error(path, exception)

    return None, Error(str(path), "The document declares no Models element")

