"""Render the generated artifacts from the render contexts with Jinja2."""
import pathlib
from typing import Any, List, Mapping, MutableMapping, Optional, Tuple

import jinja2
from icontract import ensure

from ua_nodeset_codegen.common import Error

#: Template of the open62541 server stub
CODE_TEMPLATE = "open62541.c.j2"

#: Template of the build descriptor
CMAKE_TEMPLATE = "CMakeLists.txt.j2"

#: Template of the read-me of the generated project
README_TEMPLATE = "README.md.j2"


def c_string(text: Any) -> str:
    r"""
    Escape ``text`` so that it can be put in a C string literal.

    >>> c_string('Pump "A"')
    'Pump \\"A\\"'

    >>> c_string("first\nsecond")
    'first\\nsecond'
    """
    escaped = str(text)
    for old, new in (
        ("\\", "\\\\"),
        ('"', '\\"'),
        ("\n", "\\n"),
        ("\r", "\\r"),
        ("\t", "\\t"),
    ):
        escaped = escaped.replace(old, new)

    return escaped


def new_environment(templates_dir: Optional[pathlib.Path] = None) -> jinja2.Environment:
    """
    Create the environment over the templates.

    If ``templates_dir`` is given, its templates are taken instead of the ones
    bundled with the package.
    """
    loader = (
        jinja2.PackageLoader("ua_nodeset_codegen", "templates")
        if templates_dir is None
        else jinja2.FileSystemLoader(str(templates_dir))
    )  # type: jinja2.BaseLoader

    environment = jinja2.Environment(
        loader=loader,
        undefined=jinja2.StrictUndefined,
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        autoescape=False,
    )
    environment.filters["c_string"] = c_string

    return environment


# fmt: off
@ensure(lambda result: (result[0] is not None) ^ (result[1] is not None))
# fmt: on
def render_template(
    environment: jinja2.Environment, name: str, context: Mapping[str, Any]
) -> Tuple[Optional[str], Optional[Error]]:
    """Render the template ``name`` with the ``context``."""
    try:
        template = environment.get_template(name)
        return template.render(**context), None
    except jinja2.TemplateNotFound as exception:
        return None, Error(name, f"The template could not be found: {exception}")
    except jinja2.TemplateSyntaxError as exception:
        return None, Error(
            exception.filename or name,
            f"The template is invalid at line {exception.lineno}: {exception.message}",
        )
    except jinja2.UndefinedError as exception:
        return None, Error(
            name, f"The template refers to an undefined value: {exception.message}"
        )
    except jinja2.TemplateError as exception:
        return None, Error(name, f"Failed to render the template: {exception}")


# fmt: off
@ensure(lambda result: (result[0] is not None) ^ (result[1] is not None))
# fmt: on
def render_artifacts(
    environment: jinja2.Environment,
    code_context: Mapping[str, Any],
    build_context: Mapping[str, Any],
) -> Tuple[Optional[Mapping[str, str]], Optional[Error]]:
    """
    Render all the artifacts of a generated project.

    Return the map from the output file names to their content.
    """
    project_name = build_context["projectName"]

    jobs = [
        (f"{project_name}.c", CODE_TEMPLATE, code_context),
        ("CMakeLists.txt", CMAKE_TEMPLATE, build_context),
        (
            "README.md",
            README_TEMPLATE,
            {"build": build_context, "code": code_context},
        ),
    ]

    artifacts = dict()  # type: MutableMapping[str, str]
    errors = []  # type: List[Error]

    for file_name, template_name, context in jobs:
        text, error = render_template(environment, template_name, context)
        if error is not None:
            errors.append(error)
            continue

        assert text is not None
        artifacts[file_name] = text

    if len(errors) > 0:
        return None, Error(None, "Failed to render the artifacts", errors)

    return artifacts, None
