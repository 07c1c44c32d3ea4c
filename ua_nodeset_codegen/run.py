"""Provide the shared routines for running a generation."""
import pathlib
import textwrap
from typing import Mapping, Optional, Sequence, TextIO, Tuple

from icontract import ensure, require

from ua_nodeset_codegen.common import Error


# fmt: off
@require(
    lambda errors: all(
        len(error) > 0 and not error.startswith("\n")
        # This is necessary so that we do not have double bullet point.
        and not error.startswith("*") and not error.endswith("\n")
        for error in errors
    )
)
@require(lambda message: not message.endswith(":"))
@require(lambda message: not message.endswith("\n"))
@require(lambda message: not message.startswith("\n") and not message.startswith("*"))
# fmt: on
def write_error_report(message: str, errors: Sequence[str], stderr: TextIO) -> None:
    """
    Write the report (main ``message`` and details as ``errors``) to ``stderr``.

    This method helps us to have a unified way of showing errors.
    """
    stderr.write(f"{message}:\n")
    for error in errors:
        indented = textwrap.indent(error, "  ")
        indented = "* " + indented[2:]
        stderr.write(f"{indented}\n")


# fmt: off
@require(lambda max_attempts: max_attempts >= 1)
@require(lambda name: len(name) > 0 and "/" not in name and "\\" not in name)
@ensure(lambda result: (result[0] is not None) ^ (result[1] is not None))
@ensure(lambda result: result[0] is None or result[0].is_dir())
# fmt: on
def materialize_output_dir(
    parent: pathlib.Path, name: str, max_attempts: int = 100
) -> Tuple[Optional[pathlib.Path], Optional[Error]]:
    """
    Create a fresh directory ``name`` in ``parent``.

    If the directory already exists, try ``name_1``, ``name_2`` and so on, but
    give up after ``max_attempts``.
    """
    try:
        parent.mkdir(parents=True, exist_ok=True)
    except OSError as exception:
        return None, Error(str(parent), f"Failed to create the directory: {exception}")

    for attempt in range(max_attempts):
        candidate = parent / (name if attempt == 0 else f"{name}_{attempt}")
        try:
            candidate.mkdir()
        except FileExistsError:
            continue
        except OSError as exception:
            return None, Error(
                str(candidate), f"Failed to create the directory: {exception}"
            )

        return candidate, None

    return None, Error(
        str(parent / name),
        f"Failed to find a free directory name after {max_attempts} attempt(s)",
    )


@require(lambda output_dir: output_dir.is_dir())
def write_artifacts(
    output_dir: pathlib.Path, artifacts: Mapping[str, str]
) -> Optional[Error]:
    """Write the ``artifacts``, mapped by their file names, to ``output_dir``."""
    for file_name, text in artifacts.items():
        path = output_dir / file_name
        try:
            path.write_text(text, encoding="utf-8")
        except OSError as exception:
            return Error(str(path), f"Failed to write the artifact: {exception}")

    return None
