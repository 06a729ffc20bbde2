"""Waypoint exception hierarchy.

Shared across the converter registry, compiler, route table, binder and
dispatcher so every module raises and catches the same types.

Two families matter to callers:

- ``ConfigurationError`` and its subclasses are raised while the route
  table is being built. They indicate a programming mistake and are meant
  to abort startup.
- ``AmbiguousMatch``, ``BindError`` and ``HandlerError`` are raised while a
  request is being served. The ``Dispatcher`` turns them into a response
  through its error hook.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from waypoint.routing.route import CompiledRoute


class WaypointError(Exception):
    """Base for all waypoint-specific errors."""


class ConfigurationError(WaypointError):
    """Raised when a route declaration or registry is invalid.

    Typically raised while the route table is being built.
    """


class DuplicateConverterName(ConfigurationError):  # noqa: N818
    """A converter with the same name is already registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"A token converter named {name!r} is already registered.")


class UnknownConverter(ConfigurationError):  # noqa: N818
    """A template or parameter names a converter the registry does not know."""

    def __init__(self, name: str, template: str | None = None) -> None:
        self.name = name
        self.template = template
        msg = f"Unknown token converter {name!r}"
        if template is not None:
            msg += f" in route template {template!r}"
        super().__init__(msg + ".")


class InvalidTemplate(ConfigurationError):  # noqa: N818
    """A route template is malformed (bad token syntax, repeated variable)."""

    def __init__(self, template: str, reason: str) -> None:
        self.template = template
        self.reason = reason
        super().__init__(f"Invalid route template {template!r}: {reason}")


class DuplicateRoute(ConfigurationError):  # noqa: N818
    """A route with the same method and template is already registered."""

    def __init__(self, route: CompiledRoute) -> None:
        self.route = route
        super().__init__(f"Duplicate route: {route.method} {route.template!r}")


class OverlappingRoutes(ConfigurationError):  # noqa: N818
    """Two routes for the same method can match the same path.

    Only raised when overlap checking is enabled on the route table.
    """

    def __init__(self, route: CompiledRoute, existing: CompiledRoute) -> None:
        self.route = route
        self.existing = existing
        super().__init__(
            f"Route {route.method} {route.template!r} overlaps "
            f"{existing.method} {existing.template!r}"
        )


class InvalidParamSpec(ConfigurationError):  # noqa: N818
    """A handler argument has zero or more than one source declared."""


class ResponseTypeMismatch(ConfigurationError):  # noqa: N818
    """A handler's declared return type is not the expected response type."""

    def __init__(self, handler_name: str, declared: object, expected: type) -> None:
        self.declared = declared
        self.expected = expected
        super().__init__(
            f"Handler {handler_name} declares return type {declared!r}, "
            f"expected {expected.__qualname__}."
        )


class TableFrozen(ConfigurationError):  # noqa: N818
    """A route was inserted after the table was frozen."""


class AmbiguousMatch(WaypointError):  # noqa: N818
    """More than one route matches a request.

    Overlapping routes usually indicate an authoring mistake, so the table
    refuses to pick one.
    """

    def __init__(self, method: str, path: str, routes: Sequence[CompiledRoute]) -> None:
        self.method = method
        self.path = path
        self.routes = tuple(routes)
        listed = ", ".join(repr(r.template) for r in self.routes)
        super().__init__(f"More than one route handles {method} {path!r}: {listed}")


class BindError(WaypointError):
    """Base for failures while extracting handler arguments from a request."""


class UnknownPathToken(BindError):  # noqa: N818
    """A ``PathParam`` names a variable the route template does not declare."""

    def __init__(self, name: str, template: str) -> None:
        self.name = name
        self.template = template
        super().__init__(f"Unknown token {name!r} for route template {template!r}")


class ConversionError(BindError):
    """A value failed to parse or format against its declared type."""


class EncodingError(BindError):
    """A URL-encoded or base64-encoded value could not be decoded."""


class HandlerError(WaypointError):
    """The matched handler itself raised.

    The handler's exception is available as ``original`` and ``__cause__``.
    """

    def __init__(self, route: CompiledRoute, original: BaseException) -> None:
        self.route = route
        self.original = original
        super().__init__(
            f"Handler for {route.method} {route.template!r} failed: {original!r}"
        )
