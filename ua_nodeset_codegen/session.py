"""Load all the documents of a companion specification and resolve them."""
import concurrent.futures
import pathlib
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from icontract import ensure, require

from ua_nodeset_codegen import discovery, model, naming, parse, resolution
from ua_nodeset_codegen.common import Error


class Session:
    """Represent a single generation run over resolved documents."""

    #: Map namespace URIs to documents in the order of discovery
    documents: Mapping[str, model.ParsedDocument]

    #: URI of the companion specification the user selected
    selected_model_uri: str

    #: Namespace index maps of all the documents
    registry: model.NamespaceRegistry

    #: Files on disk belonging to each of the documents
    files: Sequence[discovery.DocumentFiles]

    #: Non-fatal observations made during parsing and resolution
    warnings: List[Error]

    @require(lambda documents, selected_model_uri: selected_model_uri in documents)
    def __init__(
        self,
        documents: Mapping[str, model.ParsedDocument],
        selected_model_uri: str,
        files: Sequence[discovery.DocumentFiles],
        warnings: List[Error],
    ) -> None:
        """Initialize with the given values and register the namespaces."""
        self.documents = documents
        self.selected_model_uri = selected_model_uri
        self.files = files
        self.warnings = warnings

        self.registry = model.NamespaceRegistry()
        for document in documents.values():
            self.registry.register(document)

    @property
    def selected_document(self) -> model.ParsedDocument:
        """Return the document of the selected companion specification."""
        return self.documents[self.selected_model_uri]

    def find_node(self, namespace_uri: str, node_id: str) -> Optional[model.NodeUnion]:
        """Find the node by its namespace and its ID."""
        return resolution.find_node(self.documents, namespace_uri, node_id)

    def project_name(self) -> str:
        """Derive the name of the generated project from the selected model."""
        return naming.nodeset_name_from_uri(self.selected_model_uri)


# fmt: off
@ensure(lambda result: (result[0] is not None) ^ (result[1] is not None))
# fmt: on
def load_session(
    nodeset_root: pathlib.Path,
    nodeset_dir: pathlib.Path,
    policy: discovery.NodeSetFilePolicy,
) -> Tuple[Optional[Session], Optional[Error]]:
    """
    Parse and resolve the specification in ``nodeset_dir`` with its requirements.

    The required models are looked up under ``nodeset_root``. Any document which
    can not be read fails the whole session.
    """
    if not nodeset_dir.is_dir():
        return None, Error(
            str(nodeset_dir), "The NodeSet directory does not exist or is no directory"
        )

    selected_file, error, warning = discovery.find_nodeset_file(nodeset_dir, policy)
    if error is not None:
        return None, error

    assert selected_file is not None

    warnings = []  # type: List[Error]
    if warning is not None:
        warnings.append(warning)

    located, error = discovery.locate_required_documents(
        nodeset_root=nodeset_root, selected_file=selected_file
    )
    if error is not None:
        return None, error

    assert located is not None
    warnings.extend(located.warnings)

    documents = dict()  # type: Dict[str, model.ParsedDocument]
    errors = []  # type: List[Error]

    for document_files in located.files:
        document_and_warnings, error = parse.parse_document(document_files.nodeset_xml)
        if error is not None:
            errors.append(error)
            continue

        assert document_and_warnings is not None
        document, parse_warnings = document_and_warnings
        warnings.extend(parse_warnings)

        if document.namespace_uri != document_files.model_uri:
            warnings.append(
                Error(
                    str(document_files.nodeset_xml),
                    f"Expected the document to declare the model "
                    f"{document_files.model_uri!r}, but it declares "
                    f"{document.namespace_uri!r}",
                )
            )

        documents[document_files.model_uri] = document

    if len(errors) > 0:
        return None, Error(
            str(selected_file), "Failed to parse the required NodeSet documents", errors
        )

    warnings.extend(resolution.resolve(documents))

    return (
        Session(
            documents=documents,
            selected_model_uri=located.selected_model_uri,
            files=located.files,
            warnings=warnings,
        ),
        None,
    )


def submit_load(
    executor: concurrent.futures.Executor,
    nodeset_root: pathlib.Path,
    nodeset_dir: pathlib.Path,
    policy: discovery.NodeSetFilePolicy,
) -> "concurrent.futures.Future[Tuple[Optional[Session], Optional[Error]]]":
    """
    Schedule :py:func:`load_session` on the ``executor``.

    The loading itself runs synchronously in a single worker. The caller can
    show its busy state until the future completes.
    """
    return executor.submit(
        load_session,
        nodeset_root=nodeset_root,
        nodeset_dir=nodeset_dir,
        policy=policy,
    )
