"""Work with the string form of OPC UA node IDs such as ``ns=1;i=1002``."""
import re
from typing import Optional

from icontract import require, ensure

_IDENTIFIER_RE = re.compile(r"i=(\d+)")
_NAMESPACE_INDEX_RE = re.compile(r"ns=(\d+);")


def extract_identifier(node_id: str) -> Optional[int]:
    """
    Extract the numeric identifier of ``node_id``.

    Return None if the node ID is not numeric.

    >>> extract_identifier("ns=1;i=1002")
    1002

    >>> extract_identifier("i=58")
    58

    >>> extract_identifier("ns=1;s=Pump") is None
    True
    """
    match = _IDENTIFIER_RE.search(node_id)
    if match is None:
        return None

    return int(match.group(1))


def extract_namespace_index(node_id: str) -> int:
    """
    Extract the namespace index of ``node_id``.

    A node ID without a namespace segment lives in the base namespace.

    >>> extract_namespace_index("ns=2;i=6001")
    2

    >>> extract_namespace_index("i=58")
    0
    """
    match = _NAMESPACE_INDEX_RE.search(node_id)
    if match is None:
        return 0

    return int(match.group(1))


@require(lambda namespace_index: namespace_index >= 0)
@ensure(
    lambda node_id, result: extract_identifier(node_id) == extract_identifier(result)
)
def with_namespace_index(node_id: str, namespace_index: int) -> str:
    """
    Rewrite the namespace segment of ``node_id`` to ``namespace_index``.

    The identifier part is left untouched.

    >>> with_namespace_index("ns=2;i=6001", 3)
    'ns=3;i=6001'

    >>> with_namespace_index("i=6001", 1)
    'ns=1;i=6001'

    >>> with_namespace_index("i=6001", 0)
    'i=6001'
    """
    match = _NAMESPACE_INDEX_RE.search(node_id)
    if match is None:
        if namespace_index == 0:
            return node_id

        return f"ns={namespace_index};{node_id}"

    return f"{node_id[: match.start(1)]}{namespace_index}{node_id[match.end(1) :]}"
