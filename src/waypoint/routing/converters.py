"""Token converters — typed codecs for route path variables.

A converter pairs a regex fragment (what an encoded value looks like in a
path) with ``parse``/``format`` functions between that text and a Python
value. Templates name converters by key, e.g. ``<int:id>``.

Built-in converters:

    ======  ======================  ==============
    name    pattern                 value type
    ======  ======================  ==============
    string  ``[^/]{1,}``            ``str``
    int     ``\\d+``                ``int``
    uuid    canonical 8-4-4-4-12    ``uuid.UUID``
    ======  ======================  ==============

Converters must be stateless: the same instance serves every request
thread concurrently.
"""

from __future__ import annotations

import re
import threading
import uuid
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable
from urllib.parse import quote_plus, unquote_plus

from waypoint.errors import (
    ConversionError,
    DuplicateConverterName,
    EncodingError,
    UnknownConverter,
)


@runtime_checkable
class TokenConverter[T](Protocol):
    """A named codec between a path segment's text and a typed value."""

    @property
    def name(self) -> str: ...

    @property
    def pattern(self) -> str: ...

    def parse(self, raw: str) -> T: ...

    def format(self, value: T) -> str: ...


_BAD_PERCENT = re.compile(r"%(?![0-9A-Fa-f]{2})")


@dataclass(frozen=True, slots=True)
class StringConverter:
    """Any run of non-slash characters, URL-decoded."""

    name: str = "string"
    pattern: str = r"[^/]{1,}"

    def parse(self, raw: str) -> str:
        if _BAD_PERCENT.search(raw):
            msg = f"Malformed percent-escape in {raw!r}"
            raise EncodingError(msg)
        try:
            return unquote_plus(raw, errors="strict")
        except UnicodeDecodeError as exc:
            msg = f"Cannot URL-decode {raw!r}: {exc}"
            raise EncodingError(msg) from exc

    def format(self, value: str) -> str:
        try:
            return quote_plus(value, safe="")
        except (TypeError, UnicodeEncodeError) as exc:
            msg = f"Cannot URL-encode {value!r}: {exc}"
            raise EncodingError(msg) from exc


_INT64_MAX = 2**63 - 1


@dataclass(frozen=True, slots=True)
class IntConverter:
    """Base-10 non-negative integers that fit in a signed 64-bit value."""

    name: str = "int"
    pattern: str = r"\d+"

    def parse(self, raw: str) -> int:
        if not raw.isascii() or not raw.isdigit():
            msg = f"{raw!r} is not a base-10 integer"
            raise ConversionError(msg)
        value = int(raw)
        if value > _INT64_MAX:
            msg = f"{raw!r} overflows a 64-bit integer"
            raise ConversionError(msg)
        return value

    def format(self, value: int) -> str:
        if isinstance(value, bool) or not isinstance(value, int):
            msg = f"{value!r} is not an integer"
            raise ConversionError(msg)
        if value < 0 or value > _INT64_MAX:
            msg = f"{value!r} cannot appear in a path as an int token"
            raise ConversionError(msg)
        return str(value)


_UUID_PATTERN = (
    "[A-Fa-f0-9]{8}-[A-Fa-f0-9]{4}-[A-Fa-f0-9]{4}-[A-Fa-f0-9]{4}-[A-Fa-f0-9]{12}"
)
_UUID_RE = re.compile(_UUID_PATTERN)


@dataclass(frozen=True, slots=True)
class UUIDConverter:
    """UUIDs in canonical hyphenated text form, either hex case."""

    name: str = "uuid"
    pattern: str = _UUID_PATTERN

    def parse(self, raw: str) -> uuid.UUID:
        if not _UUID_RE.fullmatch(raw):
            msg = f"{raw!r} is not a canonical UUID"
            raise ConversionError(msg)
        return uuid.UUID(raw)

    def format(self, value: uuid.UUID) -> str:
        if not isinstance(value, uuid.UUID):
            msg = f"{value!r} is not a UUID"
            raise ConversionError(msg)
        return str(value)


class ConverterRegistry:
    """Append-only map from converter name to converter.

    Usage::

        registry = ConverterRegistry.default()
        registry.register(SlugConverter())
        registry.get("int").parse("42")
    """

    __slots__ = ("_converters", "_lock")

    def __init__(self) -> None:
        self._converters: dict[str, TokenConverter[Any]] = {}
        self._lock = threading.Lock()

    @classmethod
    def default(cls) -> ConverterRegistry:
        """A fresh registry holding the ``string``, ``int`` and ``uuid`` converters."""
        return (
            cls.builder()
            .with_converter(StringConverter())
            .with_converter(IntConverter())
            .with_converter(UUIDConverter())
            .build()
        )

    @classmethod
    def builder(cls) -> RegistryBuilder:
        """Start an empty builder."""
        return RegistryBuilder()

    def register(self, converter: TokenConverter[Any]) -> None:
        """Add *converter*.

        Raises ``DuplicateConverterName`` if the name is already taken.
        """
        with self._lock:
            if converter.name in self._converters:
                raise DuplicateConverterName(converter.name)
            self._converters[converter.name] = converter

    def get(self, name: str) -> TokenConverter[Any]:
        """Return the converter registered as *name*.

        Raises ``UnknownConverter`` if there is none.
        """
        try:
            return self._converters[name]
        except KeyError:
            raise UnknownConverter(name) from None

    def derive(self) -> RegistryBuilder:
        """Start a builder pre-populated with this registry's converters."""
        builder = RegistryBuilder()
        for converter in self._converters.values():
            builder.with_converter(converter)
        return builder

    def __contains__(self, name: object) -> bool:
        return name in self._converters

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._converters))

    def __len__(self) -> int:
        return len(self._converters)

    def __repr__(self) -> str:
        return f"ConverterRegistry({sorted(self._converters)!r})"


class RegistryBuilder:
    """Chainable builder for ``ConverterRegistry``.

    Usage::

        registry = ConverterRegistry.default().derive().with_converter(SlugConverter()).build()
    """

    __slots__ = ("_pending",)

    def __init__(self) -> None:
        self._pending: list[TokenConverter[Any]] = []

    def with_converter(self, converter: TokenConverter[Any]) -> RegistryBuilder:
        self._pending.append(converter)
        return self

    def build(self) -> ConverterRegistry:
        """Create the registry.

        Raises ``DuplicateConverterName`` if two pending converters share a name.
        """
        registry = ConverterRegistry()
        for converter in self._pending:
            registry.register(converter)
        return registry
