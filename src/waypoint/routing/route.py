"""Route declarations, compiled routes and match results."""

from __future__ import annotations

import re
import typing
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from types import NoneType, UnionType
from typing import Any

from waypoint.errors import ConfigurationError, ResponseTypeMismatch
from waypoint.http.methods import Method
from waypoint.routing.compiler import RouteTemplate, Token, compile_template
from waypoint.routing.converters import ConverterRegistry, TokenConverter
from waypoint.routing.params import ParamSpec, prepare_params


@dataclass(frozen=True, slots=True)
class RouteDeclaration:
    """One ``(method, template, handler, params)`` entry handed to the table.

    Declarations are plain data; nothing is validated until they are
    compiled.
    """

    method: Method | str
    template: str
    handler: Callable[..., Any]
    params: tuple[Any, ...] = ()
    name: str | None = None


@dataclass(frozen=True, slots=True)
class CompiledRoute:
    """A route ready for matching and binding.

    Two routes are equal when their method and template *string* are equal,
    whatever handler or parameters they carry. The route table relies on
    this for duplicate detection.
    """

    method: Method
    template: str
    handler: Callable[..., Any] = field(compare=False)
    params: tuple[ParamSpec, ...] = field(compare=False, default=())
    compiled: RouteTemplate = field(compare=False, repr=False, kw_only=True)
    name: str | None = field(compare=False, default=None)

    @property
    def matcher(self) -> re.Pattern[str]:
        """The anchored regex this route matches request paths with."""
        return self.compiled.pattern

    @property
    def path_params(self) -> Mapping[str, TokenConverter[Any]]:
        """Ordered map of path variable name to its converter."""
        return self.compiled.path_params

    @property
    def groups(self) -> Mapping[str, str]:
        """Ordered map of path variable name to its regex group name."""
        return self.compiled.groups

    def match(self, path: str) -> re.Match[str] | None:
        """Match *path* in full, or return None."""
        return self.compiled.pattern.match(path)

    def handles(self, method: Method | str, path: str) -> bool:
        """True if this route serves *method* on *path*."""
        try:
            requested = Method.coerce(method)
        except ValueError:
            return False
        return requested is self.method and self.match(path) is not None

    def build_path(self, **values: Any) -> str:
        """Fill the template with *values*, encoded by each variable's converter.

        Usage::

            route.build_path(id=42)   # "/users/<int:id>" -> "/users/42"

        Raises ``KeyError`` for a missing variable and ``TypeError`` for an
        unexpected one. Converter failures propagate.
        """
        unexpected = set(values) - set(self.path_params)
        if unexpected:
            msg = f"Unexpected path variables for {self.template!r}: {sorted(unexpected)}"
            raise TypeError(msg)
        out: list[str] = []
        for part in self.compiled.parts:
            if isinstance(part, Token):
                out.append(part.converter.format(values[part.variable]))
            else:
                out.append(part)
        return "".join(out)


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of resolving a request against the table.

    Carries the regex match so the binder never has to match twice.
    """

    route: CompiledRoute
    match: re.Match[str]

    @property
    def path_params(self) -> dict[str, str]:
        """Raw (still encoded) captured text per path variable."""
        return {
            variable: self.match.group(group) for variable, group in self.route.groups.items()
        }


def compile_route(
    declaration: RouteDeclaration,
    registry: ConverterRegistry,
    *,
    escape_literals: bool = True,
) -> CompiledRoute:
    """Compile a declaration into a ``CompiledRoute``.

    Raises a ``ConfigurationError`` subclass for anything wrong with the
    declaration: an unsupported method, a bad template, or bad parameter
    specs.
    """
    try:
        method = Method.coerce(declaration.method)
    except ValueError:
        msg = f"Unsupported method {declaration.method!r} for {declaration.template!r}"
        raise ConfigurationError(msg) from None

    compiled = compile_template(declaration.template, registry, escape_literals=escape_literals)
    params = prepare_params(
        declaration.params, declaration.template, compiled.path_params, registry
    )
    return CompiledRoute(
        method=method,
        template=declaration.template,
        handler=declaration.handler,
        params=params,
        compiled=compiled,
        name=declaration.name or getattr(declaration.handler, "__name__", None),
    )


def check_return_type(handler: Callable[..., Any], expected: type) -> None:
    """Ensure *handler*'s declared return type produces *expected*.

    Unannotated handlers pass. A union passes only when every member is a
    subclass of *expected*, so ``Response | None`` is rejected.

    Raises ``ResponseTypeMismatch`` otherwise.
    """
    try:
        hints = typing.get_type_hints(handler)
    except (NameError, TypeError):
        annotations = getattr(handler, "__annotations__", {})
        declared = annotations.get("return")
        if declared is None or isinstance(declared, str):
            return
    else:
        if "return" not in hints:
            return
        declared = hints["return"]

    if not all(_is_response(member, expected) for member in _members(declared)):
        name = getattr(handler, "__qualname__", repr(handler))
        raise ResponseTypeMismatch(name, declared, expected)


def _members(annotation: Any) -> Sequence[Any]:
    if isinstance(annotation, UnionType) or typing.get_origin(annotation) is typing.Union:
        return typing.get_args(annotation)
    return (annotation,)


def _is_response(member: Any, expected: type) -> bool:
    if member is Any:
        return True
    if member is NoneType or member is None:
        return False
    return isinstance(member, type) and issubclass(member, expected)
