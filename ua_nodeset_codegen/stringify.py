"""Represent general entities as strings for testing or debugging."""

import collections.abc
import io
import textwrap
from typing import Sequence, Union, Any, Mapping

from ua_nodeset_codegen.common import assert_never, indent_but_first_line

# We have to separate Stringifiable and Sequence[Stringifiable] since recursive types
# are not supported in mypy, see https://github.com/python/mypy/issues/731.
PrimitiveStringifiable = Union[
    bool, int, float, str, "Entity", "Property", "PropertyEllipsis", None
]

Stringifiable = Union[
    PrimitiveStringifiable,
    Sequence[PrimitiveStringifiable],
    Sequence[Sequence[PrimitiveStringifiable]],
    Mapping[str, PrimitiveStringifiable],
    Mapping[str, Sequence[PrimitiveStringifiable]],
]


class Property:
    """Represent a property of an entity to be stringified."""

    def __init__(self, name: str, value: Stringifiable) -> None:
        self.name = name
        self.value = value

    def __repr__(self) -> str:
        return dump(self)


class PropertyEllipsis:
    """
    Represent a property whose value is not displayed.

    We use it for links into the node graph which would otherwise lead
    to endless output on cyclic graphs.
    """

    def __init__(self, name: str, ignored_value: Any) -> None:
        """Initialize with the given values."""
        self.name = name
        self.ignored_value = ignored_value

    def __repr__(self) -> str:
        return dump(self)


class Entity:
    """Represent a stringifiable entity which is defined by its properties.

    Think of a dictionary with assigned type identifier.
    """

    def __init__(
        self, name: str, properties: Sequence[Union[Property, PropertyEllipsis]]
    ) -> None:
        """Initialize with the given values."""
        self.name = name
        self.properties = properties

    def __repr__(self) -> str:
        return dump(self)


def dump(stringifiable: Stringifiable) -> str:
    """Produce a string representation of ``stringifiable`` for debugging or testing."""
    if stringifiable is None:
        return "None"

    elif isinstance(stringifiable, (bool, int, float, str)):
        return repr(stringifiable)

    elif isinstance(stringifiable, Entity):
        if len(stringifiable.properties) == 0:
            return f"{stringifiable.name}()"

        writer = io.StringIO()
        writer.write(f"{stringifiable.name}(\n")

        for i, prop in enumerate(stringifiable.properties):
            if isinstance(prop, Property):
                value_str = dump(prop.value)
                writer.write(f"  {prop.name}={indent_but_first_line(value_str, '  ')}")
            elif isinstance(prop, PropertyEllipsis):
                value_str = "None" if prop.ignored_value is None else "..."
                writer.write(f"  {prop.name}={value_str}")
            else:
                assert_never(prop)

            if i == len(stringifiable.properties) - 1:
                writer.write(")")
            else:
                writer.write(",\n")

        return writer.getvalue()

    elif isinstance(stringifiable, (Property, PropertyEllipsis)):
        return dump(Entity(name="Entity", properties=[stringifiable]))

    elif isinstance(stringifiable, collections.abc.Sequence):
        if len(stringifiable) == 0:
            return "[]"

        writer = io.StringIO()
        writer.write("[\n")
        for i, value in enumerate(stringifiable):
            writer.write(textwrap.indent(dump(value), "  "))

            if i == len(stringifiable) - 1:
                writer.write("]")
            else:
                writer.write(",\n")

        return writer.getvalue()

    elif isinstance(stringifiable, collections.abc.Mapping):
        if len(stringifiable) == 0:
            return "{}"

        writer = io.StringIO()
        writer.write("{\n")
        for i, (key, value) in enumerate(stringifiable.items()):
            writer.write(textwrap.indent(f"{dump(key)}: {dump(value)}", "  "))

            if i == len(stringifiable) - 1:
                writer.write("}")
            else:
                writer.write(",\n")

        return writer.getvalue()

    else:
        raise NotImplementedError(
            f"We do not know how to dump the value {stringifiable!r} "
            f"of type {type(stringifiable)}"
        )
