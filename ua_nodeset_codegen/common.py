"""Provide common functions and types for the code generation."""
import inspect
import io
import textwrap
from typing import (
    Optional,
    List,
    NoReturn,
    Any,
)


class Error:
    """
    Represent an unexpected input.

    For example, a NodeSet document can be a well-formed XML, but a reference
    in it points to a namespace which has not been declared in its ``Models``.
    """

    def __init__(
        self,
        source: Optional[str],
        message: str,
        underlying: Optional[List["Error"]] = None,
    ) -> None:
        """
        Initialize with the given values.

        The ``source`` names what the error is about, usually a file path or
        a node ID.
        """
        self.source = source
        self.message = message
        self.underlying = underlying

    def __repr__(self) -> str:
        return (
            f"Error("
            f"source={self.source!r}, "
            f"message={self.message!r}, "
            f"underlying={self.underlying!r})"
        )


def error_message(error: Error) -> str:
    """Generate the error message based on the unexpected observation."""
    prefix = ""
    if error.source is not None:
        prefix = f"{error.source}: "

    if error.underlying is None or len(error.underlying) == 0:
        return f"{prefix}{error.message}"
    else:
        writer = io.StringIO()
        writer.write(f"{prefix}{error.message}\n")
        for i, underlying_error in enumerate(error.underlying):
            if i > 0:
                writer.write("\n")
            indented = textwrap.indent(error_message(underlying_error), "  ")
            writer.write(indented)

        return writer.getvalue()


def assert_never(value: NoReturn) -> NoReturn:
    """
    Signal to mypy to perform an exhaustive matching.

    Please see the following page for more details:
    https://hakibenita.com/python-mypy-exhaustive-checking
    """
    assert False, f"Unhandled value: {value} ({type(value).__name__})"


def indent_but_first_line(text: str, indention: str) -> str:
    """
    Indent all but the first of the given ``text`` by ``indention``.

    For example, this helps you insert indented blocks into formatted string literals.
    """
    indented_lines = []  # type: List[str]
    for i, line in enumerate(text.splitlines()):
        if i == 0:
            indented_lines.append(line)
        else:
            if len(line) > 0:
                indented_lines.append(indention + line)
            else:
                indented_lines.append(line)

    return "\n".join(indented_lines)


def assert_union_of_descendants_exhaustive(union: Any, base_class: Any) -> None:
    """
    Check that the ``union`` covers all the concrete subclasses of ``base_class``.

    Make sure you put the assertion at the end of the module where no new classes are
    defined.

    See also for more details: https://hakibenita.com/python-mypy-exhaustive-checking
    """
    if inspect.isclass(union):
        union_map = {id(union): union}
    elif hasattr(union, "__args__"):
        union_map = {id(cls): cls for cls in union.__args__}
    else:
        raise NotImplementedError(f"We do not know how to handle the union: {union}")

    # We have to recursively figure out the subclasses.
    concrete_subclasses = []  # type: List[Any]

    stack = base_class.__subclasses__()  # type: List[Any]

    while len(stack) > 0:
        sub_cls = stack.pop()
        if not inspect.isabstract(sub_cls):
            concrete_subclasses.append(sub_cls)

        stack.extend(sub_cls.__subclasses__())

    subclass_map = {id(sub_cls): sub_cls for sub_cls in concrete_subclasses}

    union_set = set(union_map.keys())
    subclass_set = set(subclass_map.keys())

    if union_set != subclass_set:
        union_diff_names = sorted(
            union_map[cls_id].__name__ for cls_id in union_set.difference(subclass_set)
        )

        subclass_diff_names = sorted(
            subclass_map[cls_id].__name__
            for cls_id in subclass_set.difference(union_set)
        )

        raise AssertionError(
            f"The union and the concrete sub-classes "
            f"of {base_class.__name__!r} diverge; listed in the union, "
            f"but not sub-classes: {union_diff_names}; sub-classes not listed "
            f"in the union: {subclass_diff_names}"
        )
