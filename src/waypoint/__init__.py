"""Waypoint — a declarative request router.

Maps a request (method, path, query, headers, body) to exactly one
registered handler and binds typed arguments for it.

Basic usage::

    from waypoint import Dispatcher, PathParam, Request, Response, Routes, build_table

    routes = Routes()

    @routes.get("/users/<int:id>", PathParam("id"))
    def show_user(user_id: int) -> Response:
        return Response(body=f"user {user_id}")

    dispatcher = Dispatcher(build_table(routes))
    response = dispatcher.dispatch(Request(method="GET", path="/users/42"))
"""

__version__ = "0.1.0"
__all__ = [
    "AmbiguousMatch",
    "BindError",
    "BodyMode",
    "BodyParam",
    "CompiledRoute",
    "ConfigurationError",
    "ConversionError",
    "ConverterRegistry",
    "Dispatcher",
    "DuplicatePolicy",
    "DuplicateRoute",
    "HandlerError",
    "HeaderParam",
    "Method",
    "PathParam",
    "QueryParam",
    "Request",
    "RequestParam",
    "Response",
    "RouteTable",
    "RouterConfig",
    "Routes",
    "WaypointError",
    "build_table",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import waypoint`` fast while providing a clean top-level API.
    """
    if name == "Dispatcher":
        from waypoint.dispatch import Dispatcher

        return Dispatcher

    if name in ("RouterConfig", "DuplicatePolicy"):
        from waypoint import config as _config

        return getattr(_config, name)

    if name == "Request":
        from waypoint.http.request import Request

        return Request

    if name == "Response":
        from waypoint.http.response import Response

        return Response

    if name == "Method":
        from waypoint.http.methods import Method

        return Method

    if name in ("RouteTable", "build_table"):
        from waypoint.routing import table as _table

        return getattr(_table, name)

    if name == "Routes":
        from waypoint.routing.routes import Routes

        return Routes

    if name == "CompiledRoute":
        from waypoint.routing.route import CompiledRoute

        return CompiledRoute

    if name == "ConverterRegistry":
        from waypoint.routing.converters import ConverterRegistry

        return ConverterRegistry

    if name in ("BodyMode", "BodyParam", "HeaderParam", "PathParam", "QueryParam", "RequestParam"):
        from waypoint.routing import params as _params

        return getattr(_params, name)

    if name in (
        "AmbiguousMatch",
        "BindError",
        "ConfigurationError",
        "ConversionError",
        "DuplicateRoute",
        "HandlerError",
        "WaypointError",
    ):
        from waypoint import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
