"""Route table — compiled routes, duplicate detection and request matching.

Routes are inserted during setup. Inserts serialize on a writer lock and
publish a fresh immutable snapshot; ``resolve()`` reads whichever snapshot
is current without locking, so lookups may run on many threads at once.
"""

import logging
import re
import threading
from collections.abc import Iterable, Iterator
from typing import Any

from waypoint.config import DuplicatePolicy, RouterConfig
from waypoint.errors import (
    AmbiguousMatch,
    DuplicateRoute,
    OverlappingRoutes,
    TableFrozen,
)
from waypoint.http.methods import Method
from waypoint.routing.compiler import Token
from waypoint.routing.converters import ConverterRegistry
from waypoint.routing.route import (
    CompiledRoute,
    RouteDeclaration,
    RouteMatch,
    check_return_type,
    compile_route,
)

logger = logging.getLogger("waypoint.routing")


class RouteTable:
    """The set of compiled routes for one deployment.

    Usage::

        table = RouteTable()
        table.add("GET", "/users/<int:id>", show_user, PathParam("id"))
        table.include(admin_routes, on_duplicate=DuplicatePolicy.SKIP)
        table.freeze()
        match = table.resolve("GET", "/users/42")
    """

    __slots__ = (
        "_by_method",
        "_config",
        "_frozen",
        "_included",
        "_lock",
        "_registry",
        "_routes",
    )

    def __init__(
        self,
        registry: ConverterRegistry | None = None,
        config: RouterConfig | None = None,
    ) -> None:
        self._registry = registry if registry is not None else ConverterRegistry.default()
        self._config = config if config is not None else RouterConfig()
        self._routes: tuple[CompiledRoute, ...] = ()
        self._by_method: dict[Method, tuple[CompiledRoute, ...]] = {}
        self._included: list[object] = []
        self._lock = threading.Lock()
        self._frozen = False

    @property
    def registry(self) -> ConverterRegistry:
        return self._registry

    @property
    def config(self) -> RouterConfig:
        return self._config

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def routes(self) -> tuple[CompiledRoute, ...]:
        """All routes, in insertion order."""
        return self._routes

    # -- Registration --

    def compile(self, declaration: RouteDeclaration) -> CompiledRoute:
        """Compile *declaration* with this table's registry and config."""
        return compile_route(
            declaration,
            self._registry,
            escape_literals=self._config.escape_literals,
        )

    def add(
        self,
        method: Method | str,
        template: str,
        handler: Any,
        *params: Any,
        name: str | None = None,
        on_duplicate: DuplicatePolicy | None = None,
    ) -> CompiledRoute | None:
        """Compile and insert a single route.

        Returns the inserted route, or None when a duplicate was skipped.
        """
        route = self.compile(
            RouteDeclaration(
                method=method,
                template=template,
                handler=handler,
                params=params,
                name=name,
            )
        )
        return route if self.insert(route, on_duplicate=on_duplicate) else None

    def insert(self, route: CompiledRoute, on_duplicate: DuplicatePolicy | None = None) -> bool:
        """Insert a compiled route.

        Returns True if the route was added and False if it duplicated an
        existing route under the ``SKIP`` policy, in which case the existing
        route is kept.

        Raises ``DuplicateRoute`` under the ``FAIL`` policy,
        ``ResponseTypeMismatch`` if the handler's return annotation is not
        the configured response type, ``OverlappingRoutes`` when overlap
        checking is enabled, and ``TableFrozen`` after ``freeze()``.
        """
        policy = on_duplicate if on_duplicate is not None else self._config.on_duplicate
        if self._config.response_type is not None:
            check_return_type(route.handler, self._config.response_type)

        with self._lock:
            if self._frozen:
                msg = f"Cannot insert {route.method} {route.template!r}: the route table is frozen."
                raise TableFrozen(msg)

            if route in self._routes:
                if policy is DuplicatePolicy.SKIP:
                    logger.info("Found duplicate route %s %s, skipping", route.method, route.template)
                    return False
                raise DuplicateRoute(route)

            if self._config.check_overlaps:
                for existing in self._by_method.get(route.method, ()):
                    if _may_overlap(route, existing):
                        raise OverlappingRoutes(route, existing)

            by_method = dict(self._by_method)
            by_method[route.method] = (*by_method.get(route.method, ()), route)
            self._routes = (*self._routes, route)
            self._by_method = by_method

        logger.debug("Registered route %s %s", route.method, route.template)
        return True

    def include(
        self,
        source: Iterable[RouteDeclaration],
        on_duplicate: DuplicatePolicy | None = None,
    ) -> int:
        """Compile and insert every declaration in *source*.

        Including the same source object twice is a no-op. Every
        declaration is compiled before any is inserted, so one that fails
        to compile leaves the table untouched.

        Returns the number of routes inserted.
        """
        if any(seen is source for seen in self._included):
            logger.info("Route source %r has already been included. Skipping.", source)
            return 0

        compiled = [self.compile(declaration) for declaration in source]
        inserted = sum(1 for route in compiled if self.insert(route, on_duplicate=on_duplicate))
        self._included.append(source)
        return inserted

    def freeze(self) -> None:
        """Forbid further inserts. Idempotent."""
        with self._lock:
            if not self._frozen:
                self._frozen = True
                logger.debug("Route table frozen with %d routes", len(self._routes))

    # -- Lookup --

    def resolve(self, method: Method | str, path: str) -> RouteMatch | None:
        """Find the single route serving *method* on *path*.

        Returns None when no route matches, including for methods no route
        can be declared for.

        Raises ``AmbiguousMatch`` when more than one route matches.
        """
        try:
            requested = Method.coerce(method)
        except ValueError:
            return None

        candidates = self._by_method.get(requested, ())
        found = [
            RouteMatch(route=route, match=m)
            for route in candidates
            if (m := route.match(path)) is not None
        ]
        if not found:
            return None
        if len(found) > 1:
            routes = [f.route for f in found]
            logger.error(
                "More than one route handles request. method=%s path=%s routes=%s",
                requested,
                path,
                [r.template for r in routes],
            )
            raise AmbiguousMatch(str(requested), path, routes)
        return found[0]

    def find(self, name: str) -> CompiledRoute | None:
        """Return the first route registered under *name*."""
        for route in self._routes:
            if route.name == name:
                return route
        return None

    def url_for(self, name: str, **values: Any) -> str:
        """Build the path for the route registered under *name*.

        Raises ``KeyError`` if no route carries that name.
        """
        route = self.find(name)
        if route is None:
            raise KeyError(name)
        return route.build_path(**values)

    def __iter__(self) -> Iterator[CompiledRoute]:
        return iter(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    def __contains__(self, route: object) -> bool:
        return route in self._routes

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "open"
        return f"RouteTable({len(self._routes)} routes, {state})"


def build_table(
    *sources: Iterable[RouteDeclaration],
    registry: ConverterRegistry | None = None,
    config: RouterConfig | None = None,
    on_duplicate: DuplicatePolicy | None = None,
    freeze: bool = True,
) -> RouteTable:
    """Build a route table from declaration sources, frozen by default."""
    table = RouteTable(registry=registry, config=config)
    for source in sources:
        table.include(source, on_duplicate=on_duplicate)
    if freeze:
        table.freeze()
    return table


# -- Overlap heuristic --


def _segments(route: CompiledRoute) -> list[str | Token] | None:
    """Split a route's template into ``/``-separated segments.

    Returns None when a segment mixes literal text and a token, or holds
    several tokens; such templates are not compared.
    """
    segments: list[list[str | Token]] = []
    current: list[str | Token] = []
    for part in route.compiled.parts:
        if isinstance(part, Token):
            current.append(part)
            continue
        pieces = part.split("/")
        if pieces[0]:
            current.append(pieces[0])
        for piece in pieces[1:]:
            segments.append(current)
            current = [piece] if piece else []
    segments.append(current)

    flat: list[str | Token] = []
    for segment in segments:
        if not segment:
            flat.append("")
        elif len(segment) == 1:
            flat.append(segment[0])
        else:
            return None
    return flat


def _may_overlap(route: CompiledRoute, other: CompiledRoute) -> bool:
    """Whether two same-method routes can match one path.

    Two token segments are assumed to overlap; a token and a literal
    overlap when the token's pattern accepts the literal.
    """
    ours = _segments(route)
    theirs = _segments(other)
    if ours is None or theirs is None or len(ours) != len(theirs):
        return False
    for a, b in zip(ours, theirs, strict=True):
        if isinstance(a, Token) and isinstance(b, Token):
            continue
        if isinstance(a, Token):
            if not _token_accepts(a, b):  # type: ignore[arg-type]
                return False
        elif isinstance(b, Token):
            if not _token_accepts(b, a):
                return False
        elif a != b:
            return False
    return True


def _token_accepts(token: Token, literal: str) -> bool:
    return re.fullmatch(token.converter.pattern, literal, re.ASCII) is not None
