"""HTTP methods a route can be registered for."""

from __future__ import annotations

from enum import StrEnum


class Method(StrEnum):
    """The request methods a route may declare.

    Members compare equal to their upper-case string value, so
    ``Method.GET == "GET"`` holds.
    """

    GET = "GET"
    PUT = "PUT"
    POST = "POST"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"

    @classmethod
    def coerce(cls, value: str) -> Method:
        """Return the member for *value*, case-insensitively.

        Raises ``ValueError`` for methods routes cannot be declared for.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            msg = f"{value!r} is not an HTTP method"
            raise ValueError(msg)
        return cls(value.strip().upper())
