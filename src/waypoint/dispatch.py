"""Dispatcher — resolve, bind, invoke, and route failures to a hook.

The only component that calls user handlers. Consumed by a transport
adapter that turns raw events into ``Request`` objects and sends whatever
the handler (or a hook) returns.

Control flow for one request::

    table.resolve()  -- None ------------> not_found(request)
          |          -- AmbiguousMatch --> on_error(request, exc)
          v
    bind()           -- BindError -------> on_error(request, exc)
          v
    handler(*args)   -- raises ----------> on_error(request, HandlerError)
          v
    response

Request-time failures never escape ``dispatch()``; build-time failures
(``ConfigurationError``) surface while the table is built, never here.
"""

import logging
from collections.abc import Callable
from typing import Any

from waypoint._internal.invoke import invoke, invoke_sync
from waypoint.errors import AmbiguousMatch, BindError, HandlerError, WaypointError
from waypoint.http.request import Request
from waypoint.http.response import Response
from waypoint.routing.params import bind
from waypoint.routing.route import CompiledRoute
from waypoint.routing.table import RouteTable

logger = logging.getLogger("waypoint.dispatch")

type NotFoundHook = Callable[[Request], Any]
type ErrorHook = Callable[[Request, WaypointError], Any]

_UNSET: Any = object()


def default_not_found(request: Request) -> Response:
    """Plain 404 response."""
    return Response(body="Not Found", status=404)


def default_error(request: Request, exc: WaypointError) -> Response:
    """Plain 400 for bind failures, 500 for everything else."""
    if isinstance(exc, BindError):
        return Response(body="Bad Request", status=400)
    return Response(body="Internal Server Error", status=500)


class Dispatcher:
    """Serve requests against a route table.

    Usage::

        dispatcher = Dispatcher(table, on_error=render_error)
        response = dispatcher.dispatch(request)

    Hooks are injected here rather than registered globally. *on_error*
    receives the ``AmbiguousMatch``, ``BindError`` or ``HandlerError``;
    telling them apart is up to the hook.
    """

    __slots__ = ("_not_found", "_on_error", "_response_type", "_table")

    def __init__(
        self,
        table: RouteTable,
        *,
        not_found: NotFoundHook = default_not_found,
        on_error: ErrorHook = default_error,
        response_type: type | None = _UNSET,
    ) -> None:
        self._table = table
        self._not_found = not_found
        self._on_error = on_error
        self._response_type = (
            table.config.response_type if response_type is _UNSET else response_type
        )

    @property
    def table(self) -> RouteTable:
        return self._table

    def dispatch(self, request: Request) -> Any:
        """Serve *request* synchronously on the calling thread.

        An async handler is reported to *on_error* as a handler failure.
        An async hook raises ``TypeError`` out of this call. Use
        ``dispatch_async`` for either.
        """
        func, args, route = self._plan(request)
        if route is None:
            return invoke_sync(func, *args)
        try:
            result = invoke_sync(func, *args)
            self._check_result(route, result)
        except Exception as exc:
            return invoke_sync(self._on_error, request, self._handler_failed(request, route, exc))
        return result

    async def dispatch_async(self, request: Request) -> Any:
        """Serve *request*, awaiting async handlers and hooks."""
        func, args, route = self._plan(request)
        if route is None:
            return await invoke(func, *args)
        try:
            result = await invoke(func, *args)
            self._check_result(route, result)
        except Exception as exc:
            return await invoke(self._on_error, request, self._handler_failed(request, route, exc))
        return result

    def _plan(
        self, request: Request
    ) -> tuple[Callable[..., Any], tuple[Any, ...], CompiledRoute | None]:
        """Decide what to call for *request*.

        Returns the callable, its arguments, and the matched route when the
        callable is the route's handler (None when it is a hook).
        """
        try:
            match = self._table.resolve(request.method, request.path)
        except AmbiguousMatch as exc:
            return self._on_error, (request, exc), None

        if match is None:
            logger.debug("404 %s %s", request.method, request.path)
            return self._not_found, (request,), None

        try:
            args = bind(match.route, request, match.match)
        except BindError as exc:
            logger.debug("Bind failed %s %s — %s", request.method, request.path, exc)
            return self._on_error, (request, exc), None

        return match.route.handler, tuple(args), match.route

    def _check_result(self, route: CompiledRoute, result: Any) -> None:
        expected = self._response_type
        if expected is not None and not isinstance(result, expected):
            msg = (
                f"Handler for {route.method} {route.template!r} returned "
                f"{type(result).__qualname__}, expected {expected.__qualname__}"
            )
            raise TypeError(msg)

    def _handler_failed(
        self, request: Request, route: CompiledRoute, exc: Exception
    ) -> HandlerError:
        logger.exception("Handler failed %s %s", request.method, request.path)
        error = HandlerError(route, exc)
        error.__cause__ = exc
        return error
