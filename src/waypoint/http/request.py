"""Immutable inbound request.

The request is honest about what it is: received data that doesn't
change. The router only reads the method, path, query parameters,
headers and body.
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from waypoint.errors import EncodingError
from waypoint.http.headers import Headers
from waypoint.http.query import QueryParams


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable inbound request.

    ``body`` holds the payload exactly as the transport delivered it. When
    ``is_base64_encoded`` is set, ``body`` is base64 text encoding binary
    data; ``decoded_body()`` returns the bytes.
    """

    method: str
    path: str
    query: QueryParams = field(default_factory=QueryParams)
    headers: Headers = field(default_factory=Headers)
    body: str | bytes | None = None
    is_base64_encoded: bool = False

    @classmethod
    def from_event(cls, event: Mapping[str, Any]) -> Request:
        """Build a request from an API Gateway proxy-style event.

        Reads ``httpMethod``, ``path``, ``body`` and ``isBase64Encoded``.
        Multi-valued maps (``multiValueQueryStringParameters``,
        ``multiValueHeaders``) win over their single-valued counterparts
        when both are present.
        """
        return cls(
            method=event.get("httpMethod") or "GET",
            path=event.get("path") or "/",
            query=QueryParams(
                _multi(
                    event.get("multiValueQueryStringParameters"),
                    event.get("queryStringParameters"),
                )
            ),
            headers=Headers.from_multi(
                _multi(event.get("multiValueHeaders"), event.get("headers"))
            ),
            body=event.get("body"),
            is_base64_encoded=bool(event.get("isBase64Encoded", False)),
        )

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    def decoded_body(self) -> str | bytes | None:
        """Return the body, base64-decoding it when the request says so.

        Raises ``EncodingError`` if a base64 body is malformed.
        """
        if self.body is None or not self.is_base64_encoded:
            return self.body
        try:
            raw = self.body.encode("ascii") if isinstance(self.body, str) else self.body
            return base64.b64decode(raw, validate=True)
        except (binascii.Error, ValueError) as exc:
            msg = f"Request body is not valid base64: {exc}"
            raise EncodingError(msg) from exc


def _multi(
    multi: Mapping[str, Iterable[str]] | None,
    single: Mapping[str, str] | None,
) -> dict[str, list[str]]:
    """Merge a multi-valued map with a single-valued fallback."""
    merged: dict[str, list[str]] = {}
    for key, value in (single or {}).items():
        if value is not None:
            merged[key] = [value]
    for key, values in (multi or {}).items():
        if values is not None:
            merged[key] = list(values)
    return merged
