"""Generate open62541 server stubs from OPC UA NodeSet2 information models."""

import argparse
import pathlib
import sys
from typing import List, Optional, Sequence, TextIO, Tuple

import ua_nodeset_codegen
from ua_nodeset_codegen import discovery, projection, rendering, run, selection
from ua_nodeset_codegen.common import Error, error_message
from ua_nodeset_codegen.selection import persistence
from ua_nodeset_codegen.session import load_session

assert ua_nodeset_codegen.__doc__ == __doc__


class Parameters:
    """Represent the program parameters."""

    def __init__(
        self,
        nodeset_root: pathlib.Path,
        selection_path: Optional[pathlib.Path],
        nodeset_dir: Optional[pathlib.Path],
        nodeset_file: Optional[str],
        output_dir: Optional[pathlib.Path],
        new_project_dir: bool,
        templates_dir: Optional[pathlib.Path],
        dump_context: bool,
        list_types: bool,
        add_roots: Sequence[Tuple[str, str]],
        save_selection_path: Optional[pathlib.Path],
    ) -> None:
        """
        Initialize with the given values.

        The ``add_roots`` are pairs of a namespace URI and a node ID.
        """
        self.nodeset_root = nodeset_root
        self.selection_path = selection_path
        self.nodeset_dir = nodeset_dir
        self.nodeset_file = nodeset_file
        self.output_dir = output_dir
        self.new_project_dir = new_project_dir
        self.templates_dir = templates_dir
        self.dump_context = dump_context
        self.list_types = list_types
        self.add_roots = add_roots
        self.save_selection_path = save_selection_path


def _write_errors(message: str, errors: Sequence[Error], stderr: TextIO) -> None:
    run.write_error_report(
        message=message,
        errors=[error_message(error) for error in errors],
        stderr=stderr,
    )


def _relative_to_root(nodeset_dir: pathlib.Path, nodeset_root: pathlib.Path) -> str:
    """Express ``nodeset_dir`` relative to ``nodeset_root`` if it lies below it."""
    try:
        return nodeset_dir.relative_to(nodeset_root).as_posix()
    except ValueError:
        return str(nodeset_dir)


def execute(params: Parameters, stdout: TextIO, stderr: TextIO) -> int:
    """Run the program."""
    # region Basic checks

    if not params.nodeset_root.is_dir():
        stderr.write(
            f"The --nodeset_root does not point to a directory: "
            f"{params.nodeset_root}\n"
        )
        return 1

    if params.selection_path is not None and not params.selection_path.is_file():
        stderr.write(
            f"The --selection does not point to a file: {params.selection_path}\n"
        )
        return 1

    if params.templates_dir is not None and not params.templates_dir.is_dir():
        stderr.write(
            f"The --templates_dir does not point to a directory: "
            f"{params.templates_dir}\n"
        )
        return 1

    if params.save_selection_path is not None and params.save_selection_path.is_dir():
        stderr.write(
            f"The --save_selection points to a directory: "
            f"{params.save_selection_path}\n"
        )
        return 1

    if not params.list_types:
        if params.selection_path is None and len(params.add_roots) == 0:
            stderr.write(
                "Either --selection or --add_root is required "
                "unless --list_types is set\n"
            )
            return 1

        if params.output_dir is None and params.save_selection_path is None:
            stderr.write(
                "Either --output_dir or --save_selection is required "
                "unless --list_types is set\n"
            )
            return 1

        if (
            params.output_dir is not None
            and params.output_dir.exists()
            and not params.output_dir.is_dir()
        ):
            stderr.write(
                f"The --output_dir does not point to a directory: "
                f"{params.output_dir}\n"
            )
            return 1

    # endregion

    # region Load

    state = None  # type: Optional[persistence.SelectionState]
    if params.selection_path is not None:
        state, error = persistence.load_selection(params.selection_path)
        if error is not None:
            _write_errors("Failed to load the selection", [error], stderr)
            return 1

        assert state is not None

    nodeset_dir = params.nodeset_dir
    if nodeset_dir is None:
        if state is None or len(state.selected_nodeset_xml) == 0:
            stderr.write(
                "The --nodeset_dir is required if no selection names "
                "the NodeSet directory\n"
            )
            return 1

        nodeset_dir = pathlib.Path(state.selected_nodeset_xml)

    if not nodeset_dir.is_absolute():
        nodeset_dir = params.nodeset_root / nodeset_dir

    session, error = load_session(
        nodeset_root=params.nodeset_root,
        nodeset_dir=nodeset_dir,
        policy=discovery.NodeSetFilePolicy(file_name=params.nodeset_file),
    )
    if error is not None:
        _write_errors("Failed to load the NodeSets", [error], stderr)
        return 1

    assert session is not None

    if len(session.warnings) > 0:
        _write_errors(
            "There were warnings while loading the NodeSets", session.warnings, stderr
        )

    # endregion

    if params.list_types:
        tree = selection.browse_tree(session)
        for root in tree.roots:
            stdout.write(f"{selection.describe_item(root)}\n")
        return 0

    # region Replay the selection

    tree = selection.SelectionTree(session)

    if state is not None:
        selection_errors = persistence.apply_selection(tree, state)
        if len(selection_errors) > 0:
            _write_errors(
                f"The selection {params.selection_path} does not match the NodeSets",
                selection_errors,
                stderr,
            )
            return 1

    root_errors = []  # type: List[Error]
    for namespace_uri, node_id in params.add_roots:
        _, error = tree.add_root_by_id(namespace_uri=namespace_uri, node_id=node_id)
        if error is not None:
            root_errors.append(error)

    if len(root_errors) > 0:
        _write_errors("Failed to add the roots", root_errors, stderr)
        return 1

    if len(tree.warnings) > 0:
        _write_errors(
            "There were warnings while instantiating the selection",
            tree.warnings,
            stderr,
        )

    # endregion

    project_name = session.project_name()
    if len(project_name) == 0:
        stderr.write(
            f"The selected model {session.selected_model_uri!r} "
            f"gives no project name\n"
        )
        return 1

    # region Save the selection

    if params.save_selection_path is not None:
        if params.nodeset_dir is None:
            assert state is not None
            selected_nodeset_xml = state.selected_nodeset_xml
        else:
            selected_nodeset_xml = _relative_to_root(
                nodeset_dir=nodeset_dir, nodeset_root=params.nodeset_root
            )

        try:
            persistence.save_selection(
                path=params.save_selection_path,
                tree=tree,
                project_name=project_name,
                selected_nodeset_xml=selected_nodeset_xml,
            )
        except OSError as exception:
            stderr.write(
                f"Failed to save the selection to "
                f"{params.save_selection_path}: {exception}\n"
            )
            return 1

        stdout.write(f"Selection saved to: {params.save_selection_path}\n")

    # endregion

    if params.output_dir is None:
        return 0

    # region Generate

    if params.new_project_dir:
        target_dir, error = run.materialize_output_dir(
            parent=params.output_dir, name=project_name
        )
        if error is not None:
            _write_errors("Failed to create the project directory", [error], stderr)
            return 1

        assert target_dir is not None
    else:
        target_dir = params.output_dir
        target_dir.mkdir(parents=True, exist_ok=True)

    code_context, projection_warnings = projection.project(
        session=session, tree=tree, user_code_path=target_dir / f"{project_name}.c"
    )
    if len(projection_warnings) > 0:
        _write_errors(
            "There were warnings while generating the code",
            projection_warnings,
            stderr,
        )

    build_context = projection.project_build(session)

    artifacts, error = rendering.render_artifacts(
        environment=rendering.new_environment(templates_dir=params.templates_dir),
        code_context=code_context,
        build_context=build_context,
    )
    if error is not None:
        _write_errors("Failed to render the code", [error], stderr)
        return 1

    assert artifacts is not None

    if params.dump_context:
        artifacts = dict(artifacts)
        artifacts["context.json"] = projection.to_json(code_context)

    error = run.write_artifacts(output_dir=target_dir, artifacts=artifacts)
    if error is not None:
        _write_errors("Failed to write the code", [error], stderr)
        return 1

    # endregion

    stdout.write(f"Code generated to: {target_dir}\n")
    return 0


def main(prog: str, argv: Optional[List[str]] = None) -> int:
    """
    Execute the main routine.

    :param prog: name of the program to be displayed in the help
    :param argv: command-line arguments, taken from :py:data:`sys.argv` if None
    :return: exit code
    """
    parser = argparse.ArgumentParser(prog=prog, description=__doc__)
    parser.add_argument(
        "--nodeset_root",
        help=(
            "path to the directory with one folder per NodeSet; "
            "the base NodeSet is expected in the folder Schema"
        ),
        required=True,
    )
    parser.add_argument(
        "--selection", help="path to the JSON file with the saved selection"
    )
    parser.add_argument(
        "--nodeset_dir",
        help=(
            "path to the folder of the selected NodeSet, "
            "relative to --nodeset_root if not absolute; "
            "overrides the folder given in the selection"
        ),
    )
    parser.add_argument(
        "--nodeset_file",
        help="name of the NodeSet file to take if a folder contains more than one",
    )
    parser.add_argument(
        "--add_root",
        help=(
            "add an instance of the type with the given namespace URI and "
            "node ID as a new root of the selection; can be repeated"
        ),
        nargs=2,
        metavar=("URI", "NODE_ID"),
        action="append",
    )
    parser.add_argument(
        "--save_selection",
        help=(
            "path to the JSON file where the resulting selection is written; "
            "can be the same as --selection to extend it"
        ),
    )
    parser.add_argument("--output_dir", help="path to the generated code")
    parser.add_argument(
        "--new_project_dir",
        help="if set, generate into a new sub-directory named after the project",
        action="store_true",
    )
    parser.add_argument(
        "--templates_dir",
        help="path to the directory with the templates overriding the bundled ones",
    )
    parser.add_argument(
        "--dump_context",
        help="if set, also write the render context to context.json",
        action="store_true",
    )
    parser.add_argument(
        "--list_types",
        help="list the instantiable object types of the selected NodeSet and exit",
        action="store_true",
    )
    parser.add_argument(
        "--version", help="show the current version and exit", action="store_true"
    )

    arguments = sys.argv[1:] if argv is None else argv

    # NOTE: The module ``argparse`` is not flexible enough to understand special
    # options such as ``--version`` so we manually hard-wire.
    if "--version" in arguments and "--help" not in arguments:
        print(ua_nodeset_codegen.__version__)
        return 0

    args = parser.parse_args(arguments)

    params = Parameters(
        nodeset_root=pathlib.Path(args.nodeset_root),
        selection_path=(
            pathlib.Path(args.selection) if args.selection is not None else None
        ),
        nodeset_dir=(
            pathlib.Path(args.nodeset_dir) if args.nodeset_dir is not None else None
        ),
        nodeset_file=args.nodeset_file,
        output_dir=(
            pathlib.Path(args.output_dir) if args.output_dir is not None else None
        ),
        new_project_dir=args.new_project_dir,
        templates_dir=(
            pathlib.Path(args.templates_dir) if args.templates_dir is not None else None
        ),
        dump_context=args.dump_context,
        list_types=args.list_types,
        add_roots=[
            (namespace_uri, node_id)
            for namespace_uri, node_id in (
                args.add_root if args.add_root is not None else []
            )
        ],
        save_selection_path=(
            pathlib.Path(args.save_selection)
            if args.save_selection is not None
            else None
        ),
    )

    return execute(params=params, stdout=sys.stdout, stderr=sys.stderr)


def entry_point() -> int:
    """Provide an entry point for a console script."""
    return main(prog="ua-nodeset-codegen")


if __name__ == "__main__":
    sys.exit(main(prog="ua-nodeset-codegen"))
