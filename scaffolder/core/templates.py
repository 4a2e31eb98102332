"""Template rendering for generator file specs."""

import re
from typing import Any

import jinja2

from scaffolder.core.errors import GeneratorError

_WORD_SPLIT = re.compile(r"[^A-Za-z0-9]+|(?<=[a-z0-9])(?=[A-Z])")


def _words(value: str) -> list[str]:
    return [w for w in _WORD_SPLIT.split(str(value)) if w]


def kebab_case(value: str) -> str:
    return "-".join(w.lower() for w in _words(value))


def snake_case(value: str) -> str:
    return "_".join(w.lower() for w in _words(value))


def pascal_case(value: str) -> str:
    return "".join(w[:1].upper() + w[1:].lower() for w in _words(value))


def camel_case(value: str) -> str:
    pascal = pascal_case(value)
    return pascal[:1].lower() + pascal[1:]


class TemplateRenderer:
    """Renders jinja2 template source against a data mapping.

    Rendering is pure: output depends only on the template and the data.
    """

    def __init__(self):
        self.env = jinja2.Environment(
            autoescape=False,
            keep_trailing_newline=True,
            undefined=jinja2.ChainableUndefined,
        )
        self.env.filters.update({
            "kebab_case": kebab_case,
            "snake_case": snake_case,
            "pascal_case": pascal_case,
            "camel_case": camel_case,
        })

    def render(self, source: str, data: dict[str, Any]) -> str:
        """Render *source* with *data*.

        Raises:
            GeneratorError: If the template is malformed or fails to render
        """
        try:
            return self.env.from_string(source).render(**data)
        except jinja2.TemplateError as e:
            raise GeneratorError(f"Template rendering failed: {e}") from e
