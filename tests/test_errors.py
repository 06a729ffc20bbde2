"""Tests for waypoint.errors — exception hierarchy and error messages."""

import pytest

from waypoint.errors import (
    AmbiguousMatch,
    BindError,
    ConfigurationError,
    ConversionError,
    DuplicateConverterName,
    DuplicateRoute,
    EncodingError,
    HandlerError,
    InvalidParamSpec,
    InvalidTemplate,
    OverlappingRoutes,
    ResponseTypeMismatch,
    TableFrozen,
    UnknownConverter,
    UnknownPathToken,
    WaypointError,
)
from waypoint.http.response import Response
from waypoint.routing.converters import ConverterRegistry
from waypoint.routing.route import RouteDeclaration, compile_route


def _route(template: str = "/a"):
    return compile_route(
        RouteDeclaration("GET", template, lambda: Response()),
        ConverterRegistry.default(),
    )


class TestHierarchy:
    @pytest.mark.parametrize(
        "exc_type",
        [
            DuplicateConverterName,
            UnknownConverter,
            InvalidTemplate,
            DuplicateRoute,
            OverlappingRoutes,
            InvalidParamSpec,
            ResponseTypeMismatch,
            TableFrozen,
        ],
    )
    def test_build_time_errors(self, exc_type: type) -> None:
        assert issubclass(exc_type, ConfigurationError)

    @pytest.mark.parametrize("exc_type", [UnknownPathToken, ConversionError, EncodingError])
    def test_bind_errors(self, exc_type: type) -> None:
        assert issubclass(exc_type, BindError)

    @pytest.mark.parametrize("exc_type", [ConfigurationError, AmbiguousMatch, BindError, HandlerError])
    def test_all_are_waypoint_errors(self, exc_type: type) -> None:
        assert issubclass(exc_type, WaypointError)

    def test_request_time_errors_are_not_configuration_errors(self) -> None:
        assert not issubclass(AmbiguousMatch, ConfigurationError)
        assert not issubclass(BindError, ConfigurationError)


class TestMessages:
    def test_unknown_converter_with_template(self) -> None:
        exc = UnknownConverter("float", "/<float:x>")
        assert "'float'" in str(exc)
        assert "'/<float:x>'" in str(exc)

    def test_unknown_converter_without_template(self) -> None:
        assert str(UnknownConverter("float")) == "Unknown token converter 'float'."

    def test_duplicate_route(self) -> None:
        assert str(DuplicateRoute(_route("/a"))) == "Duplicate route: GET '/a'"

    def test_ambiguous_lists_templates(self) -> None:
        exc = AmbiguousMatch("GET", "/a", [_route("/a"), _route("/<string:x>")])
        assert "'/a'" in str(exc)
        assert "'/<string:x>'" in str(exc)
        assert isinstance(exc.routes, tuple)

    def test_handler_error_keeps_original(self) -> None:
        original = ValueError("boom")
        exc = HandlerError(_route(), original)
        assert exc.original is original
        assert "boom" in str(exc)

    def test_unknown_path_token(self) -> None:
        exc = UnknownPathToken("id", "/users")
        assert exc.name == "id"
        assert exc.template == "/users"
