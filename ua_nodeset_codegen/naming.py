"""Generate names for the open62541 stubs from the names found in NodeSets."""
import re
from typing import Optional

from icontract import ensure

_NAMESPACE_PREFIX_RE = re.compile(r"^[0-9][^:]*:")


def strip_namespace_index(name: str) -> str:
    """
    Remove the leading namespace index of a qualified browse name.

    >>> strip_namespace_index("1:Speed")
    'Speed'

    >>> strip_namespace_index("Speed")
    'Speed'

    >>> strip_namespace_index("Speed:1")
    'Speed:1'

    >>> strip_namespace_index("")
    ''
    """
    match = _NAMESPACE_PREFIX_RE.match(name)
    if match is None:
        return name

    return name[match.end() :]


def lower_first_char(text: str) -> str:
    """
    Convert the first character of ``text`` to lower case.

    >>> lower_first_char("InputArguments")
    'inputArguments'

    >>> lower_first_char("")
    ''
    """
    if len(text) == 0:
        return text

    return text[0].lower() + text[1:]


_INVALID_C_CHARACTER_RE = re.compile(r"[^a-zA-Z0-9_]")


@ensure(lambda result: result == "" or result[0].isalpha() or result[0] == "_")
def sanitize(name: str) -> str:
    """
    Make ``name`` a valid C identifier.

    >>> sanitize("Speed_6001")
    'Speed_6001'

    >>> sanitize("Motor Speed-1_6001")
    'MotorSpeed1_6001'

    >>> sanitize("3DPosition_6001")
    '_3DPosition_6001'
    """
    sanitized = _INVALID_C_CHARACTER_RE.sub("", name)

    if len(sanitized) > 0 and not (sanitized[0].isalpha() or sanitized[0] == "_"):
        sanitized = "_" + sanitized

    return sanitized


_NODESET_NAME_RE = re.compile(r"UA/([^/]+)")


def nodeset_name_from_uri(namespace_uri: Optional[str]) -> str:
    """
    Extract the short name of a NodeSet from its namespace URI.

    The base namespace has no name.

    >>> nodeset_name_from_uri("http://opcfoundation.org/UA/DI/")
    'di'

    >>> nodeset_name_from_uri("http://opcfoundation.org/UA/Pumps/")
    'pumps'

    >>> nodeset_name_from_uri("http://opcfoundation.org/UA/")
    ''

    >>> nodeset_name_from_uri(None)
    ''
    """
    if namespace_uri is None:
        return ""

    match = _NODESET_NAME_RE.search(namespace_uri)
    if match is None:
        return ""

    return match.group(1).lower()


def uri_directory_segment(namespace_uri: str) -> str:
    """
    Extract the segment of the URI naming the folder of its NodeSet.

    >>> uri_directory_segment("http://opcfoundation.org/UA/DI/")
    'DI'

    >>> uri_directory_segment("http://opcfoundation.org/UA/")
    'UA'

    >>> uri_directory_segment("http://example.com/Pumps")
    'example.com'
    """
    parts = namespace_uri.split("/")
    if len(parts) < 2:
        return ""

    return parts[-2]


def types_array_name(namespace_uri: Optional[str]) -> str:
    """
    Generate the name of the open62541 data-type array of a namespace.

    >>> types_array_name("http://opcfoundation.org/UA/")
    'UA_TYPES'

    >>> types_array_name("http://opcfoundation.org/UA/DI/")
    'UA_TYPES_DI'
    """
    nodeset_name = nodeset_name_from_uri(namespace_uri)
    if len(nodeset_name) == 0:
        return "UA_TYPES"

    return f"UA_TYPES_{nodeset_name.upper()}"


def types_array_index_alias(namespace_uri: Optional[str], type_name: str) -> str:
    """
    Generate the macro indexing ``type_name`` in its open62541 data-type array.

    >>> types_array_index_alias("http://opcfoundation.org/UA/", "Double")
    'UA_TYPES_DOUBLE'

    >>> types_array_index_alias("http://opcfoundation.org/UA/DI/", "2:DeviceHealthEnumeration")
    'UA_TYPES_DI_DEVICEHEALTHENUMERATION'
    """
    return (
        f"{types_array_name(namespace_uri)}_"
        f"{strip_namespace_index(type_name).upper()}"
    )
