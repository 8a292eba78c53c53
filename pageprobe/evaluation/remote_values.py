"""
pageprobe/evaluation/remote_values.py

Python stand-ins for page values that do not survive JSON marshalling,
and the decoder for the tagged wire format the in-page runner emits.

Wire format (one object per produced value):
    {"kind": "undefined"}
    {"kind": "null"}
    {"kind": "function", "source": str}
    {"kind": "error", "name": str, "message": str, "stack": str | null}
    {"kind": "date", "iso": str | null, "text": str}
    {"kind": "regexp", "source": str, "flags": str}
    {"kind": "number", "text": "Infinity" | "-Infinity" | "NaN"}
    {"kind": "value", "value": <JSON>}
    {"kind": "opaque", "typeOf": str, "isArray": bool, "text": str}
"""

from dataclasses import dataclass
from typing import Any


class _Undefined:
    """Singleton for JavaScript `undefined`, distinct from `None` (JavaScript `null`)."""
    _instance: "_Undefined | None" = None

    def __new__(cls) -> "_Undefined":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "undefined"

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()


@dataclass(frozen=True)
class RemoteFunction:
    """A function produced in the page, known only by its source text."""
    source: str

    def __str__(self) -> str:
        return self.source


@dataclass(frozen=True)
class RemoteError:
    """An Error-like object produced in the page."""
    name: str
    message: str
    stack: str | None = None

    def __str__(self) -> str:
        return f"{self.name}: {self.message}" if self.message else self.name


@dataclass(frozen=True)
class RemoteDate:
    """A Date produced in the page. `iso` is None for an invalid date."""
    iso: str | None
    text: str

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class RemoteRegExp:
    """A RegExp produced in the page."""
    source: str
    flags: str = ""

    def __str__(self) -> str:
        return f"/{self.source}/{self.flags}"


@dataclass(frozen=True)
class RemoteOpaque:
    """
    A value the page could not convert to JSON (cyclic structure, BigInt, Symbol, ...).
    Only its runtime type and string conversion are known.
    """
    type_of: str
    is_array: bool
    text: str

    def __str__(self) -> str:
        return self.text


def _hydrate_undefined(wire: dict[str, Any]) -> Any:
    return UNDEFINED


def _hydrate_null(wire: dict[str, Any]) -> Any:
    return None


def _hydrate_function(wire: dict[str, Any]) -> Any:
    return RemoteFunction(source=str(wire.get("source", "")))


def _hydrate_error(wire: dict[str, Any]) -> Any:
    stack = wire.get("stack")
    return RemoteError(
        name=str(wire.get("name", "Error")),
        message=str(wire.get("message", "")),
        stack=None if stack is None else str(stack),
    )


def _hydrate_date(wire: dict[str, Any]) -> Any:
    return RemoteDate(iso=wire.get("iso"), text=str(wire.get("text", "Invalid Date")))


def _hydrate_regexp(wire: dict[str, Any]) -> Any:
    return RemoteRegExp(source=str(wire.get("source", "")), flags=str(wire.get("flags", "")))


def _hydrate_number(wire: dict[str, Any]) -> Any:
    return float(wire["text"])


def _hydrate_value(wire: dict[str, Any]) -> Any:
    return wire.get("value")


def _hydrate_opaque(wire: dict[str, Any]) -> Any:
    return RemoteOpaque(
        type_of=str(wire.get("typeOf", "object")),
        is_array=bool(wire.get("isArray", False)),
        text=str(wire.get("text", "")),
    )


_HYDRATORS = {
    "undefined": _hydrate_undefined,
    "null": _hydrate_null,
    "function": _hydrate_function,
    "error": _hydrate_error,
    "date": _hydrate_date,
    "regexp": _hydrate_regexp,
    "number": _hydrate_number,
    "value": _hydrate_value,
    "opaque": _hydrate_opaque,
}


def hydrate_remote_value(wire: Any) -> Any:
    """
    Decode one tagged wire value into its Python representation.

    Raises:
        ValueError: If `wire` is not a recognised tagged value.
    """
    if not isinstance(wire, dict) or "kind" not in wire:
        raise ValueError(f"not a tagged remote value: {wire!r}")
    hydrator = _HYDRATORS.get(wire["kind"])
    if hydrator is None:
        raise ValueError(f"unknown remote value kind: {wire['kind']!r}")
    try:
        return hydrator(wire)
    except (KeyError, TypeError) as e:
        raise ValueError(f"malformed {wire['kind']} value: {wire!r}") from e
