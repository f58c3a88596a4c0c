"""Route template compilation.

Turns URL templates such as ``https://templates.do/:type`` into matchers over
normalized paths:

- Scheme and host are stripped (everything up to the third ``/``)
- ``:name`` and ``{name}`` markers become capturing parameters
- Literal text is matched exactly
- A single trailing ``/`` on the concrete path is tolerated
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass

from .errors import InvalidTemplateError

logger = logging.getLogger(__name__)

ABSOLUTE_URL = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://[^/?#]+")
PARAM_NAME = re.compile(r"[A-Za-z0-9_]+")

# A parameter never spans a path separator.
PARAM_PATTERN = "([^/]+?)"


@dataclass(frozen=True)
class RouteTemplate:
    """A named URL template as declared by the API."""

    name: str
    url_template: str


@dataclass(frozen=True)
class CompiledRoute:
    """A route template compiled into a path matcher."""

    name: str
    url_template: str
    path: str
    pattern: re.Pattern[str]
    parameter_names: tuple[str, ...] = ()

    def match(self, normalized: str) -> dict[str, str] | None:
        """Match a normalized path, returning the extracted parameters."""
        m = self.pattern.fullmatch(normalized)
        if m is None:
            return None
        return dict(zip(self.parameter_names, m.groups(), strict=True))


def normalize_path(url: str) -> str:
    """Strip scheme, host and query string from a URL.

    The first ``<`` is rewritten to ``_`` for compatibility with legacy
    template syntax.

    Examples::

        "https://templates.do/worker"        -> "worker"
        "https://templates.do/:type?x=1"     -> ":type"
        "https://x/a/<id>"                   -> "a/_id>"
    """
    path = "/".join(url.split("/")[3:])
    path = path.replace("<", "_", 1)
    return path.split("?")[0]


def _tokenize(template: str, path: str) -> tuple[str, list[str]]:
    """Build a regex body and parameter list from a normalized path."""
    parts: list[str] = []
    names: list[str] = []
    i = 0

    while i < len(path):
        char = path[i]

        if char == ":":
            m = PARAM_NAME.match(path, i + 1)
            if m is None:
                raise InvalidTemplateError(template, "missing parameter name", i)
            name = m.group(0)
            end = m.end()
        elif char == "{":
            close = path.find("}", i + 1)
            if close == -1:
                raise InvalidTemplateError(template, "unterminated parameter marker", i)
            name = path[i + 1 : close]
            if not PARAM_NAME.fullmatch(name):
                raise InvalidTemplateError(template, f"invalid parameter name {name!r}", i)
            end = close + 1
        elif char == "}":
            raise InvalidTemplateError(template, "unexpected '}'", i)
        else:
            parts.append(re.escape(char))
            i += 1
            continue

        if name in names:
            raise InvalidTemplateError(template, f"duplicate parameter {name!r}", i)
        names.append(name)
        parts.append(PARAM_PATTERN)
        i = end

    return "".join(parts), names


def compile_route(name: str, url_template: str) -> CompiledRoute:
    """Compile a single URL template.

    Args:
        name: Route name (unique key within an API)
        url_template: Absolute URL with optional ``:name`` markers

    Returns:
        CompiledRoute whose ``path`` is the normalized path with a leading ``/``

    Raises:
        InvalidTemplateError: If the template is not an absolute URL, has an
            empty path, or contains a malformed parameter marker
    """
    if not ABSOLUTE_URL.match(url_template):
        raise InvalidTemplateError(url_template, "not an absolute URL")

    path = normalize_path(url_template)
    if not path:
        raise InvalidTemplateError(url_template, "empty path")

    body = path[:-1] if path.endswith("/") else path
    regex, names = _tokenize(url_template, body)

    return CompiledRoute(
        name=name,
        url_template=url_template,
        path="/" + path,
        pattern=re.compile(f"{regex}/?"),
        parameter_names=tuple(names),
    )


def compile_routes(templates: Iterable[RouteTemplate]) -> list[CompiledRoute]:
    """Compile templates in declaration order.

    The first malformed template aborts compilation.
    """
    compiled = [compile_route(t.name, t.url_template) for t in templates]
    logger.debug("Compiled %d route templates", len(compiled))
    return compiled
