"""
Locate the NodeSet documents of a companion specification on disk.

The NodeSets are expected in a directory tree with one folder per
specification, named after the second-to-last segment of the model URI
(``http://opcfoundation.org/UA/DI/`` lives in ``DI``). The base namespace
lives in ``Schema``.
"""
import pathlib
from typing import List, Optional, Sequence, Tuple

from icontract import ensure, require

from ua_nodeset_codegen import naming, parse
from ua_nodeset_codegen.common import Error


class NodeSetFilePolicy:
    """
    Decide which file to take if a folder holds more than one NodeSet.

    If ``file_name`` is given, exactly that file is taken. Otherwise, the
    first candidate in the sorted order is taken and the ambiguity is reported.
    """

    def __init__(self, file_name: Optional[str] = None) -> None:
        """Initialize with the given values."""
        self.file_name = file_name


def _is_nodeset_candidate(path: pathlib.Path) -> bool:
    return (
        path.is_file() and "NodeSet2.xml" in path.name and "Example" not in path.name
    )


# fmt: off
@require(lambda directory: directory.is_dir())
@ensure(lambda result: not (result[0] is not None and result[1] is not None))
# fmt: on
def find_nodeset_file(
    directory: pathlib.Path, policy: NodeSetFilePolicy
) -> Tuple[Optional[pathlib.Path], Optional[Error], Optional[Error]]:
    """
    Find the NodeSet XML file in the ``directory``.

    Return the file, or an error if there is none, plus a warning
    if the choice was ambiguous.
    """
    candidates = sorted(
        (path for path in directory.iterdir() if _is_nodeset_candidate(path)),
        key=lambda path: path.name,
    )

    if policy.file_name is not None:
        for candidate in candidates:
            if candidate.name == policy.file_name:
                return candidate, None, None

        return (
            None,
            Error(
                str(directory),
                f"The NodeSet file {policy.file_name!r} could not be found "
                f"among the candidates: {[path.name for path in candidates]}",
            ),
            None,
        )

    if len(candidates) == 0:
        return (
            None,
            Error(
                str(directory),
                "No file containing 'NodeSet2.xml' (and not 'Example') "
                "could be found",
            ),
            None,
        )

    warning = None  # type: Optional[Error]
    if len(candidates) > 1:
        warning = Error(
            str(directory),
            f"There are {len(candidates)} NodeSet files, taking {candidates[0].name}; "
            f"ignored: {[path.name for path in candidates[1:]]}. "
            f"Specify the file name to choose another one.",
        )

    return candidates[0], None, warning


def model_directory(nodeset_root: pathlib.Path, model_uri: str) -> pathlib.Path:
    """Map the ``model_uri`` to the folder expected to hold its documents."""
    folder = naming.uri_directory_segment(model_uri)
    if folder == "UA":
        folder = "Schema"

    return nodeset_root / folder


class DocumentFiles:
    """Represent the files belonging to a single NodeSet of a specification."""

    def __init__(
        self,
        model_uri: str,
        nodeset_xml: pathlib.Path,
        nodeids_csv: Optional[pathlib.Path],
        types_bsd: Optional[pathlib.Path],
    ) -> None:
        """Initialize with the given values."""
        self.model_uri = model_uri
        self.nodeset_xml = nodeset_xml
        self.nodeids_csv = nodeids_csv
        self.types_bsd = types_bsd


def _first_file_containing(
    directory: pathlib.Path, fragment: str
) -> Optional[pathlib.Path]:
    for path in sorted(directory.iterdir(), key=lambda a_path: a_path.name):
        if path.is_file() and fragment in path.name and "Example" not in path.name:
            return path

    return None


def find_companion_files(
    directory: pathlib.Path,
) -> Tuple[Optional[pathlib.Path], Optional[pathlib.Path]]:
    """Find the ``NodeIds.csv`` and the ``Types.bsd`` next to a NodeSet, if any."""
    if not directory.is_dir():
        return None, None

    return (
        _first_file_containing(directory, "NodeIds.csv"),
        _first_file_containing(directory, "Types.bsd"),
    )


class LocatedDocuments:
    """Represent the files of all the models required for a selected NodeSet."""

    def __init__(
        self,
        selected_model_uri: str,
        files: Sequence[DocumentFiles],
        warnings: Sequence[Error],
    ) -> None:
        """Initialize with the given values."""
        self.selected_model_uri = selected_model_uri
        self.files = files
        self.warnings = warnings


# fmt: off
@ensure(lambda result: (result[0] is not None) ^ (result[1] is not None))
# fmt: on
def locate_required_documents(
    nodeset_root: pathlib.Path,
    selected_file: pathlib.Path,
) -> Tuple[Optional[LocatedDocuments], Optional[Error]]:
    """
    Locate the documents of the model declared in ``selected_file``.

    The selected model comes first, followed by its required models in the
    order of declaration.
    """
    models, error = parse.read_models(selected_file)
    if error is not None:
        return None, error

    assert models is not None
    assert models.model_uri is not None

    model_uris = [models.model_uri]  # type: List[str]
    for uri in models.required_uris:
        if uri not in model_uris:
            model_uris.append(uri)

    files = []  # type: List[DocumentFiles]
    warnings = []  # type: List[Error]
    errors = []  # type: List[Error]

    for model_uri in model_uris:
        if model_uri == models.model_uri:
            nodeset_xml = selected_file  # type: Optional[pathlib.Path]
            directory = selected_file.parent
        else:
            directory = model_directory(nodeset_root, model_uri)
            if not directory.is_dir():
                errors.append(
                    Error(
                        model_uri,
                        f"The folder of the required model does not exist: "
                        f"{directory}",
                    )
                )
                continue

            # NOTE: A configured file name only applies to the folder of the
            # selected specification.
            nodeset_xml, find_error, warning = find_nodeset_file(
                directory, NodeSetFilePolicy()
            )
            if find_error is not None:
                errors.append(find_error)
                continue

            if warning is not None:
                warnings.append(warning)

        assert nodeset_xml is not None
        nodeids_csv, types_bsd = find_companion_files(directory)
        files.append(
            DocumentFiles(
                model_uri=model_uri,
                nodeset_xml=nodeset_xml,
                nodeids_csv=nodeids_csv,
                types_bsd=types_bsd,
            )
        )

    if len(files) != len(model_uris):
        return None, Error(
            str(selected_file),
            f"Located {len(files)} NodeSet file(s) for {len(model_uris)} "
            f"required model(s)",
            errors,
        )

    return (
        LocatedDocuments(
            selected_model_uri=models.model_uri, files=files, warnings=warnings
        ),
        None,
    )
