"""Tests for waypoint.routing.routes — declaration lists and decorators."""

import pytest

from waypoint.errors import ConfigurationError
from waypoint.http.methods import Method
from waypoint.http.response import Response
from waypoint.routing.params import HeaderParam, PathParam
from waypoint.routing.routes import Routes
from waypoint.routing.table import build_table


class TestDecorators:
    def test_get_registers_and_returns_handler(self) -> None:
        routes = Routes()

        @routes.get("/users/<int:id>", PathParam("id"))
        def show_user(user_id: int) -> Response:
            return Response(f"user {user_id}")

        [declaration] = list(routes)
        assert declaration.method == Method.GET
        assert declaration.template == "/users/<int:id>"
        assert declaration.handler is show_user
        assert declaration.params == (PathParam("id"),)
        assert declaration.name == "show_user"
        assert show_user(1) == Response("user 1")

    @pytest.mark.parametrize(
        ("factory", "method"),
        [
            ("get", Method.GET),
            ("put", Method.PUT),
            ("post", Method.POST),
            ("patch", Method.PATCH),
            ("delete", Method.DELETE),
            ("head", Method.HEAD),
            ("options", Method.OPTIONS),
        ],
    )
    def test_method_shortcuts(self, factory: str, method: Method) -> None:
        routes = Routes()

        @getattr(routes, factory)("/x")
        def handler() -> Response:
            return Response()

        assert next(iter(routes)).method == method

    def test_stacked_decorators(self) -> None:
        routes = Routes()

        @routes.get("/me", HeaderParam("x-user"))
        @routes.get("/users/me", HeaderParam("x-user"))
        def show_me(user: str | None) -> Response:
            return Response(user or "")

        assert [d.template for d in routes] == ["/users/me", "/me"]
        assert all(d.handler is show_me for d in routes)

    def test_explicit_name(self) -> None:
        routes = Routes()

        @routes.get("/users/<int:id>", PathParam("id"), name="user")
        def show_user(user_id: int) -> Response:
            return Response()

        assert next(iter(routes)).name == "user"


class TestAdd:
    def test_duplicate_in_collection(self) -> None:
        routes = Routes("api")
        routes.add("GET", "/a", lambda: Response())
        with pytest.raises(ConfigurationError, match="already declared"):
            routes.add("get", "/a", lambda: Response())

    def test_same_template_other_method(self) -> None:
        routes = Routes()
        routes.add("GET", "/a", lambda: Response())
        routes.add("POST", "/a", lambda: Response())
        assert len(routes) == 2

    def test_non_callable_handler(self) -> None:
        with pytest.raises(ConfigurationError, match="not callable"):
            Routes().add("GET", "/a", "handler")  # type: ignore[arg-type]

    def test_repr(self) -> None:
        routes = Routes("admin")
        routes.add("GET", "/a", lambda: Response())
        assert repr(routes) == "Routes(admin, 1 declarations)"


class TestAsSource:
    def test_builds_table(self) -> None:
        routes = Routes()

        @routes.get("/users/<int:id>", PathParam("id"))
        def show_user(user_id: int) -> Response:
            return Response()

        @routes.delete("/users/<int:id>", PathParam("id"))
        def delete_user(user_id: int) -> Response:
            return Response(status=204)

        table = build_table(routes)
        match = table.resolve("DELETE", "/users/3")
        assert match is not None
        assert match.route.handler is delete_user

    def test_iteration_is_a_snapshot(self) -> None:
        routes = Routes()
        routes.add("GET", "/a", lambda: Response())
        it = iter(routes)
        routes.add("GET", "/b", lambda: Response())
        assert len(list(it)) == 1
