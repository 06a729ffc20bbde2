"""Explicit route declaration lists.

``Routes`` collects ``RouteDeclaration`` entries through ordinary code
instead of scanning classes for annotated methods::

    routes = Routes()

    @routes.get("/users/<int:id>", PathParam("id"))
    def show_user(user_id: int) -> Response: ...

    @routes.get("/me", HeaderParam("x-user"))
    @routes.get("/users/me", HeaderParam("x-user"))
    def show_me(user: str | None) -> Response: ...

    table = build_table(routes)

Stacking decorators maps one handler to several templates. A ``Routes``
collection is a declaration source for ``RouteTable.include()``.
"""

from collections.abc import Callable, Iterator
from typing import Any

from waypoint.errors import ConfigurationError
from waypoint.http.methods import Method
from waypoint.routing.route import RouteDeclaration

type Handler = Callable[..., Any]


class Routes:
    """An ordered, append-only list of route declarations.

    Declaring the same method and template twice in one collection raises
    ``ConfigurationError`` at once, before any table sees it.
    """

    __slots__ = ("_declarations", "_keys", "name")

    def __init__(self, name: str | None = None) -> None:
        self.name = name
        self._declarations: list[RouteDeclaration] = []
        self._keys: set[tuple[str, str]] = set()

    def add(
        self,
        method: Method | str,
        template: str,
        handler: Handler,
        *params: Any,
        name: str | None = None,
    ) -> RouteDeclaration:
        """Append a declaration and return it."""
        if not callable(handler):
            msg = f"Handler for {method} {template!r} is not callable: {handler!r}"
            raise ConfigurationError(msg)
        key = (str(method).upper(), template)
        if key in self._keys:
            msg = f"{key[0]} {template!r} is already declared in {self!r}"
            raise ConfigurationError(msg)
        declaration = RouteDeclaration(
            method=method,
            template=template,
            handler=handler,
            params=params,
            name=name or getattr(handler, "__name__", None),
        )
        self._keys.add(key)
        self._declarations.append(declaration)
        return declaration

    def route(
        self,
        method: Method | str,
        template: str,
        *params: Any,
        name: str | None = None,
    ) -> Callable[[Handler], Handler]:
        """Decorator form of ``add()``. Returns the handler unchanged."""

        def decorator(func: Handler) -> Handler:
            self.add(method, template, func, *params, name=name)
            return func

        return decorator

    def get(self, template: str, *params: Any, name: str | None = None) -> Callable[[Handler], Handler]:
        return self.route(Method.GET, template, *params, name=name)

    def put(self, template: str, *params: Any, name: str | None = None) -> Callable[[Handler], Handler]:
        return self.route(Method.PUT, template, *params, name=name)

    def post(self, template: str, *params: Any, name: str | None = None) -> Callable[[Handler], Handler]:
        return self.route(Method.POST, template, *params, name=name)

    def patch(self, template: str, *params: Any, name: str | None = None) -> Callable[[Handler], Handler]:
        return self.route(Method.PATCH, template, *params, name=name)

    def delete(self, template: str, *params: Any, name: str | None = None) -> Callable[[Handler], Handler]:
        return self.route(Method.DELETE, template, *params, name=name)

    def head(self, template: str, *params: Any, name: str | None = None) -> Callable[[Handler], Handler]:
        return self.route(Method.HEAD, template, *params, name=name)

    def options(self, template: str, *params: Any, name: str | None = None) -> Callable[[Handler], Handler]:
        return self.route(Method.OPTIONS, template, *params, name=name)

    def __iter__(self) -> Iterator[RouteDeclaration]:
        return iter(tuple(self._declarations))

    def __len__(self) -> int:
        return len(self._declarations)

    def __repr__(self) -> str:
        label = self.name or hex(id(self))
        return f"Routes({label}, {len(self._declarations)} declarations)"
