#!/usr/bin/env python3

"""Check that the distribution and ua_nodeset_codegen/__init__.py are in sync."""
import os
import pathlib
import subprocess
import sys
from typing import List

import ua_nodeset_codegen
from ua_nodeset_codegen import rendering

#: Map the classifiers of the development status to the status in __init__.py
STATUS_MAP = {
    "Development Status :: 1 - Planning": "Planning",
    "Development Status :: 2 - Pre-Alpha": "Pre-Alpha",
    "Development Status :: 3 - Alpha": "Alpha",
    "Development Status :: 4 - Beta": "Beta",
    "Development Status :: 5 - Production/Stable": "Production/Stable",
    "Development Status :: 6 - Mature": "Mature",
    "Development Status :: 7 - Inactive": "Inactive",
}


def query_setup_py(setup_py_pth: pathlib.Path, option: str) -> str:
    """Ask ``setup.py`` for the meta-data behind ``option``."""
    return subprocess.check_output(
        [sys.executable, str(setup_py_pth), option], encoding="utf-8"
    ).strip()


def check_meta_data(setup_py_pth: pathlib.Path) -> List[str]:
    """Compare the meta-data of the distribution against the package."""
    errors = []  # type: List[str]

    for field, expected in (
        ("version", ua_nodeset_codegen.__version__),
        ("author", ua_nodeset_codegen.__author__),
        ("license", ua_nodeset_codegen.__license__),
        ("description", ua_nodeset_codegen.__doc__),
    ):
        got = query_setup_py(setup_py_pth, f"--{field}")
        if got != expected:
            errors.append(
                f"The {field} in the setup.py is {got!r}, while the {field} "
                f"in ua_nodeset_codegen/__init__.py is: {expected!r}"
            )

    classifiers = query_setup_py(setup_py_pth, "--classifiers").splitlines()
    statuses = [STATUS_MAP[value] for value in classifiers if value in STATUS_MAP]
    if len(statuses) != 1:
        errors.append(
            f"Expected exactly one status classifier in setup.py "
            f"(e.g., 'Development Status :: 3 - Alpha'), but found: {statuses}"
        )
    elif statuses[0] != ua_nodeset_codegen.__status__:
        errors.append(
            f"Expected status {statuses[0]} according to setup.py "
            f"in ua_nodeset_codegen/__init__.py, "
            f"but found: {ua_nodeset_codegen.__status__}"
        )

    return errors


def check_templates(repo_root: pathlib.Path) -> List[str]:
    """Check that the templates referenced by the renderer are bundled."""
    errors = []  # type: List[str]

    templates_dir = repo_root / "ua_nodeset_codegen" / "templates"
    for name in (
        rendering.CODE_TEMPLATE,
        rendering.CMAKE_TEMPLATE,
        rendering.README_TEMPLATE,
    ):
        if not (templates_dir / name).is_file():
            errors.append(f"The template {name!r} is missing in: {templates_dir}")

    for path in sorted(templates_dir.iterdir()):
        if path.suffix != ".j2":
            errors.append(
                f"The file {path.name!r} in {templates_dir} would not be "
                f"distributed as it lacks the suffix '.j2'"
            )

    return errors


def main() -> int:
    """Execute the main routine."""
    repo_root = pathlib.Path(os.path.realpath(__file__)).parent.parent

    setup_py_pth = repo_root / "setup.py"
    if not setup_py_pth.exists():
        raise RuntimeError(f"Could not find the setup.py: {setup_py_pth}")

    errors = check_meta_data(setup_py_pth) + check_templates(repo_root)

    for error in errors:
        print(error, file=sys.stderr)

    if len(errors) > 0:
        return -1

    return 0


if __name__ == "__main__":
    sys.exit(main())
