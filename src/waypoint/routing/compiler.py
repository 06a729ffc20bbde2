"""Route template compiler.

Turns a path template such as ``/users/<int:id>/files/<string:name>`` into
a fully anchored regular expression with one named group per variable,
plus an ordered map from variable name to the converter used for it.

Examples::

    "/users"             -> \\A/users\\Z
    "/users/<int:id>"    -> \\A/users/(?P<_v0>\\d+)\\Z          {"id": IntConverter()}
    "/<string:a.b>/x"    -> \\A/(?P<_v0>[^/]{1,})/x\\Z        {"a.b": StringConverter()}

Variable names may contain ``.`` and ``-``, which Python group names
cannot, so groups are named positionally and ``RouteTemplate.groups``
maps each variable to its group.

Every problem with a template (unknown converter, malformed token,
repeated variable) is raised here, while the table is being built, and
never while a request is being matched.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from waypoint.errors import InvalidTemplate, UnknownConverter
from waypoint.routing.converters import ConverterRegistry, TokenConverter

TOKEN_RE = re.compile(
    r"<(?P<converter>[A-Za-z_][A-Za-z0-9_]*):(?P<variable>[A-Za-z_][A-Za-z0-9_.\-]*)>"
)


@dataclass(frozen=True, slots=True)
class Token:
    """A ``<converter:variable>`` placeholder inside a template."""

    variable: str
    converter: TokenConverter[Any]
    group: str


@dataclass(frozen=True, slots=True, eq=False)
class RouteTemplate:
    """A compiled path template.

    ``pattern`` is used only for matching and ``path_params`` only for
    decoding; both come from the same scan so they never disagree.
    """

    source: str
    pattern: re.Pattern[str]
    path_params: Mapping[str, TokenConverter[Any]]
    groups: Mapping[str, str]
    parts: tuple[str | Token, ...]


def compile_template(
    template: str,
    registry: ConverterRegistry,
    *,
    escape_literals: bool = True,
) -> RouteTemplate:
    """Compile *template* against the converters in *registry*.

    Literal runs are regex-escaped unless *escape_literals* is false, in
    which case they are inserted verbatim and may carry regex syntax.

    Raises ``UnknownConverter`` for a converter name the registry lacks and
    ``InvalidTemplate`` for malformed tokens or repeated variable names.
    """
    regex: list[str] = [r"\A"]
    parts: list[str | Token] = []
    path_params: dict[str, TokenConverter[Any]] = {}
    groups: dict[str, str] = {}

    pos = 0
    while pos < len(template):
        start = template.find("<", pos)
        if start == -1:
            start = len(template)
        if start > pos:
            literal = template[pos:start]
            regex.append(re.escape(literal) if escape_literals else literal)
            parts.append(literal)
        if start == len(template):
            break

        token = TOKEN_RE.match(template, start)
        if token is None:
            raise InvalidTemplate(
                template, f"'<' at index {start} does not start a <converter:variable> token"
            )
        converter_name = token.group("converter")
        variable = token.group("variable")
        if variable in path_params:
            raise InvalidTemplate(template, f"variable {variable!r} appears more than once")
        try:
            converter = registry.get(converter_name)
        except UnknownConverter:
            raise UnknownConverter(converter_name, template) from None

        group = f"_v{len(groups)}"
        regex.append(f"(?P<{group}>{converter.pattern})")
        parts.append(Token(variable=variable, converter=converter, group=group))
        path_params[variable] = converter
        groups[variable] = group
        pos = token.end()

    regex.append(r"\Z")
    try:
        pattern = re.compile("".join(regex), re.ASCII)
    except re.error as exc:
        raise InvalidTemplate(template, f"does not compile to a valid pattern: {exc}") from exc

    return RouteTemplate(
        source=template,
        pattern=pattern,
        path_params=MappingProxyType(path_params),
        groups=MappingProxyType(groups),
        parts=tuple(parts),
    )
