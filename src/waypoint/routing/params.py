"""Handler argument sources and the parameter binder.

Each handler argument is declared with exactly one source::

    PathParam("id")                  -> converted path variable
    QueryParam("page", converter="int", default=1)
    HeaderParam("x-request-id")
    BodyParam()                      -> text, or bytes when base64-encoded
    RequestParam()                   -> the whole Request

``bind()`` walks the route's specs in declaration order and produces the
positional argument list. Binding is all-or-nothing: the first failure
raises and no partial list escapes.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Any

from waypoint.errors import (
    BindError,
    ConversionError,
    InvalidParamSpec,
    UnknownConverter,
    UnknownPathToken,
)
from waypoint.routing.converters import ConverterRegistry, TokenConverter

if TYPE_CHECKING:
    from waypoint._internal.multimap import MultiValueMapping
    from waypoint.http.request import Request
    from waypoint.routing.route import CompiledRoute


class BodyMode(Enum):
    """How ``BodyParam`` hands back the payload.

    ``DECODED``: base64 bodies become ``bytes``; text bodies are returned as-is.
    ``RAW``: the handler wants text; a base64 (binary) body is a bind error.
    """

    RAW = "raw"
    DECODED = "decoded"


@dataclass(frozen=True, slots=True)
class PathParam:
    """A path variable, parsed by the converter its template token names."""

    name: str


@dataclass(frozen=True, slots=True)
class QueryParam:
    """The first value of a query parameter, or *default* when absent."""

    name: str
    default: Any = None
    converter: str | TokenConverter[Any] | None = None


@dataclass(frozen=True, slots=True)
class HeaderParam:
    """The first value of a header (case-insensitive), or *default* when absent."""

    name: str
    default: Any = None
    converter: str | TokenConverter[Any] | None = None


@dataclass(frozen=True, slots=True)
class BodyParam:
    """The request body."""

    mode: BodyMode = BodyMode.DECODED


@dataclass(frozen=True, slots=True)
class RequestParam:
    """The whole inbound request, unchanged."""


type ParamSpec = PathParam | QueryParam | HeaderParam | BodyParam | RequestParam

PARAM_SPEC_TYPES: tuple[type, ...] = (PathParam, QueryParam, HeaderParam, BodyParam, RequestParam)


def prepare_params(
    specs: Sequence[Any],
    template: str,
    path_params: Any,
    registry: ConverterRegistry,
) -> tuple[ParamSpec, ...]:
    """Validate declared specs and resolve converter names.

    Runs while the table is being built so a broken declaration fails
    before any request arrives.

    Raises ``InvalidParamSpec`` for an argument with no source or several
    sources, or a ``PathParam`` naming a variable *template* lacks, and
    ``UnknownConverter`` for an unregistered converter name.
    """
    prepared: list[ParamSpec] = []
    for index, spec in enumerate(specs):
        if isinstance(spec, (tuple, list, set, frozenset)):
            msg = (
                f"Argument {index} of {template!r} declares {len(spec)} sources; "
                "exactly one is allowed."
            )
            raise InvalidParamSpec(msg)
        if not isinstance(spec, PARAM_SPEC_TYPES):
            msg = f"Argument {index} of {template!r} has no source declared (got {spec!r})."
            raise InvalidParamSpec(msg)

        match spec:
            case PathParam(name=name) if name not in path_params:
                msg = f"Argument {index} of {template!r} reads unknown path token {name!r}."
                raise InvalidParamSpec(msg)
            case QueryParam(converter=str() as converter_name) | HeaderParam(
                converter=str() as converter_name
            ):
                try:
                    spec = replace(spec, converter=registry.get(converter_name))
                except UnknownConverter:
                    raise UnknownConverter(converter_name, template) from None
        prepared.append(spec)
    return tuple(prepared)


def bind(
    route: CompiledRoute,
    request: Request,
    match: re.Match[str] | None = None,
) -> list[Any]:
    """Produce the handler's positional arguments for *request*.

    *match* is the match object from resolving the route; when omitted
    the route's matcher is run against the request path again.

    Raises a ``BindError`` subclass on the first argument that cannot be
    produced.
    """
    if match is None:
        match = route.match(request.path)
        if match is None:
            msg = f"{request.path!r} does not match route template {route.template!r}"
            raise BindError(msg)

    return [_extract(spec, route, request, match) for spec in route.params]


def _extract(
    spec: ParamSpec,
    route: CompiledRoute,
    request: Request,
    match: re.Match[str],
) -> Any:
    match spec:
        case PathParam(name=name):
            converter = route.path_params.get(name)
            if converter is None:
                raise UnknownPathToken(name, route.template)
            return _parse(converter, match.group(route.groups[name]))
        case QueryParam(name=name, default=default, converter=converter):
            return _first(request.query, name, default, converter)
        case HeaderParam(name=name, default=default, converter=converter):
            return _first(request.headers, name, default, converter)
        case BodyParam(mode=mode):
            return _body(request, mode)
        case RequestParam():
            return request
    msg = f"Unsupported parameter spec {spec!r}"
    raise BindError(msg)


def _first(
    values: MultiValueMapping,
    name: str,
    default: Any,
    converter: TokenConverter[Any] | str | None,
) -> Any:
    raw = values.get(name)
    if raw is None:
        return default
    if converter is None:
        return raw
    if isinstance(converter, str):
        msg = f"Converter {converter!r} for {name!r} was never resolved against a registry"
        raise BindError(msg)
    return _parse(converter, raw)


def _parse(converter: TokenConverter[Any], raw: str) -> Any:
    try:
        return converter.parse(raw)
    except BindError:
        raise
    except Exception as exc:
        msg = f"Converter {converter.name!r} rejected {raw!r}: {exc}"
        raise ConversionError(msg) from exc


def _body(request: Request, mode: BodyMode) -> str | bytes | None:
    if mode is BodyMode.DECODED:
        return request.decoded_body()

    if request.is_base64_encoded:
        msg = "Handler expects a text body but the request payload is binary"
        raise ConversionError(msg)
    body = request.body
    if isinstance(body, bytes):
        try:
            return body.decode("utf-8")
        except UnicodeDecodeError as exc:
            msg = "Handler expects a text body but the request payload is not UTF-8"
            raise ConversionError(msg) from exc
    return body
