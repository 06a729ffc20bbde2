"""Tests for waypoint.routing.compiler — template to anchored regex."""

import pytest

from waypoint.errors import InvalidTemplate, UnknownConverter
from waypoint.routing.compiler import Token, compile_template
from waypoint.routing.converters import (
    ConverterRegistry,
    IntConverter,
    StringConverter,
    UUIDConverter,
)

REGISTRY = ConverterRegistry.default()


def _matches(template: str, path: str, **kwargs: bool) -> bool:
    return compile_template(template, REGISTRY, **kwargs).pattern.match(path) is not None


class TestMatching:
    @pytest.mark.parametrize(
        ("template", "path"),
        [
            ("", ""),
            ("/", "/"),
            ("/static", "/static"),
            ("/static/", "/static/"),
            ("/static/foo", "/static/foo"),
            ("/<string:foo>", "/foo"),
            ("/<string:foo>/", "/bar/"),
            ("/static/<string:foo>", "/static/foo"),
            ("/static/<int:bar>", "/static/123"),
            ("/<string:foo>/static", "/foo/static"),
            ("/static/<string:foo>/<int:bar>", "/static/foo/123"),
            ("/<string:foo>/<int:bar>/static/", "/foo/123/static/"),
            ("/<string:foo>/static/<int:bar>", "/bar/static/1"),
            ("/static1/<string:foo>/static2", "/static1/foo/static2"),
            (
                "/<int:foo>/<string:bar>/static/<uuid:baz>",
                "/123/foo/static/b66674f0-5e3c-46c8-a449-5ed36f5a5914",
            ),
        ],
    )
    def test_accepts(self, template: str, path: str) -> None:
        assert _matches(template, path)

    @pytest.mark.parametrize(
        ("template", "path"),
        [
            ("/static", "/static/"),
            ("/static/", "/static"),
            ("/<int:foo>", "/123/"),
            ("/<int:foo>/", "/123"),
            ("/<int:foo>", "/123.0"),
            ("/<uuid:foo>", "/abc-123-456-7890a"),
        ],
    )
    def test_rejects(self, template: str, path: str) -> None:
        assert not _matches(template, path)

    @pytest.mark.parametrize("path", ["/static", "x/static", "/static/x", "/staticx", " /static", "/static\n"])
    def test_literal_is_exact(self, path: str) -> None:
        assert _matches("/static", "/static")
        if path != "/static":
            assert not _matches("/static", path)

    @pytest.mark.parametrize("path", ["/x/0", "/x/42"])
    def test_int_accepts(self, path: str) -> None:
        assert _matches("/x/<int:n>", path)

    @pytest.mark.parametrize("path", ["/x/", "/x/4a", "/x/-1", "/x/١٢"])
    def test_int_rejects(self, path: str) -> None:
        assert not _matches("/x/<int:n>", path)

    def test_string_does_not_cross_slash(self) -> None:
        assert not _matches("/<string:s>", "/a/b")

    def test_string_requires_one_char(self) -> None:
        assert not _matches("/<string:s>", "/")


class TestLiteralEscaping:
    def test_metacharacters_escaped_by_default(self) -> None:
        assert _matches("/file.txt", "/file.txt")
        assert not _matches("/file.txt", "/fileXtxt")

    def test_parentheses_escaped(self) -> None:
        assert _matches("/a(b)", "/a(b)")

    def test_unescaped_literals_are_regex(self) -> None:
        assert _matches("/file.txt", "/fileXtxt", escape_literals=False)

    def test_unescaped_invalid_regex_raises(self) -> None:
        with pytest.raises(InvalidTemplate):
            compile_template("/a(b", REGISTRY, escape_literals=False)


class TestPathParams:
    def test_ordered_converters(self) -> None:
        compiled = compile_template("/<string:foo>/<int:bar>/<uuid:baz>/<int:qux>", REGISTRY)
        assert list(compiled.path_params) == ["foo", "bar", "baz", "qux"]
        assert compiled.path_params["foo"] == StringConverter()
        assert compiled.path_params["bar"] == IntConverter()
        assert compiled.path_params["baz"] == UUIDConverter()
        assert compiled.path_params["qux"] == IntConverter()

    def test_static_only_has_none(self) -> None:
        assert dict(compile_template("/static", REGISTRY).path_params) == {}

    def test_groups_capture_variables(self) -> None:
        compiled = compile_template("/<int:foo>/static/<string:bar>", REGISTRY)
        m = compiled.pattern.match("/12/static/hi")
        assert m is not None
        assert m.group(compiled.groups["foo"]) == "12"
        assert m.group(compiled.groups["bar"]) == "hi"

    def test_dotted_and_hyphenated_variable_names(self) -> None:
        compiled = compile_template("/<string:user.name>/<int:page-no>", REGISTRY)
        m = compiled.pattern.match("/ann/3")
        assert m is not None
        assert m.group(compiled.groups["user.name"]) == "ann"
        assert m.group(compiled.groups["page-no"]) == "3"

    def test_parts(self) -> None:
        compiled = compile_template("/a/<int:id>/b", REGISTRY)
        assert compiled.parts[0] == "/a/"
        assert isinstance(compiled.parts[1], Token)
        assert compiled.parts[1].variable == "id"
        assert compiled.parts[2] == "/b"

    def test_path_params_read_only(self) -> None:
        compiled = compile_template("/<int:id>", REGISTRY)
        with pytest.raises(TypeError):
            compiled.path_params["other"] = IntConverter()  # type: ignore[index]


class TestErrors:
    def test_unknown_converter(self) -> None:
        with pytest.raises(UnknownConverter) as exc_info:
            compile_template("/<unknown:foo>", REGISTRY)
        assert exc_info.value.name == "unknown"
        assert exc_info.value.template == "/<unknown:foo>"

    @pytest.mark.parametrize("template", ["/<int>", "/<int:>", "/<:id>", "/<int:1id>", "/<int:id", "/a<b"])
    def test_malformed_token(self, template: str) -> None:
        with pytest.raises(InvalidTemplate):
            compile_template(template, REGISTRY)

    def test_repeated_variable(self) -> None:
        with pytest.raises(InvalidTemplate) as exc_info:
            compile_template("/<int:id>/<string:id>", REGISTRY)
        assert "'id'" in str(exc_info.value)

    def test_custom_converter(self) -> None:
        registry = ConverterRegistry.default()
        registry.register(StringConverter(name="new"))
        compiled = compile_template("/static/<int:foo>/<new:bar>", registry)
        assert compiled.pattern.match("/static/123/helloWorld") is not None
