"""Provide common functionality across different tests."""
import os
import pathlib
from typing import List, Sequence, Union

from ua_nodeset_codegen import discovery, model, parse
from ua_nodeset_codegen.common import Error
from ua_nodeset_codegen.session import Session, load_session

# pylint: disable=missing-function-docstring

#: Directory with the data shared among the tests
TEST_DATA_DIR = pathlib.Path(os.path.realpath(__file__)).parent.parent / "test_data"

#: Directory with one folder per NodeSet, as expected by the generator
NODESET_ROOT = TEST_DATA_DIR / "nodesets"

BASE_URI = "http://opcfoundation.org/UA/"
DI_URI = "http://opcfoundation.org/UA/DI/"
PUMPS_URI = "http://opcfoundation.org/UA/Pumps/"


def most_underlying_messages(error_or_errors: Union[Error, Sequence[Error]]) -> str:
    """Find the "leaf" errors and render them as a new-line separated list."""
    if isinstance(error_or_errors, Error):
        errors = [error_or_errors]  # type: Sequence[Error]
    else:
        errors = error_or_errors

    most_underlying_errors = []  # type: List[Error]

    for error in errors:
        if error.underlying is None or len(error.underlying) == 0:
            most_underlying_errors.append(error)
            continue

        stack = list(error.underlying)  # type: List[Error]

        while len(stack) > 0:
            top_error = stack.pop()

            if top_error.underlying is not None:
                stack.extend(top_error.underlying)

            if top_error.underlying is None or len(top_error.underlying) == 0:
                most_underlying_errors.append(top_error)

    return "\n".join(
        most_underlying_error.message
        for most_underlying_error in most_underlying_errors
    )


def must_parse(path: pathlib.Path) -> model.ParsedDocument:
    document_and_warnings, error = parse.parse_document(path)
    assert error is None, f"Unexpected error: {most_underlying_messages(error)}"
    assert document_and_warnings is not None

    document, warnings = document_and_warnings
    assert (
        len(warnings) == 0
    ), f"Unexpected warnings: {most_underlying_messages(warnings)}"

    return document


def must_load_session(
    nodeset_root: pathlib.Path = NODESET_ROOT, folder: str = "Pumps"
) -> Session:
    """Load the session of the NodeSet in ``folder`` and expect no warnings."""
    session, error = load_session(
        nodeset_root=nodeset_root,
        nodeset_dir=nodeset_root / folder,
        policy=discovery.NodeSetFilePolicy(),
    )
    assert error is None, f"Unexpected error: {most_underlying_messages(error)}"
    assert session is not None

    assert (
        len(session.warnings) == 0
    ), f"Unexpected warnings: {most_underlying_messages(session.warnings)}"

    return session
