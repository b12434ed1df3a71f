"""Shared msgspec policy and helpers."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Literal, TypeVar

import msgspec

T = TypeVar("T")


class StructBaseStrict(
    msgspec.Struct,
    frozen=True,
    kw_only=True,
    omit_defaults=True,
    repr_omit_defaults=True,
    forbid_unknown_fields=True,
):
    """Base struct for strict contracts."""


class StructBaseHotPath(
    msgspec.Struct,
    frozen=True,
    omit_defaults=False,
    forbid_unknown_fields=False,
    gc=False,
    cache_hash=True,
):
    """Base struct for high-volume, immutable records.

    Positional construction is allowed so tight decode loops stay cheap.
    """


_DEFAULT_ORDER: Literal["deterministic"] = "deterministic"

_VALIDATION_RE = re.compile(r"^(?P<summary>.*?)(?:\s+-\s+at\s+`(?P<path>[^`]+)`)?$")


def _json_enc_hook(obj: object) -> object:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (bytes, bytearray, memoryview)):
        return bytes(obj).hex()
    raise TypeError


JSON_ENCODER = msgspec.json.Encoder(enc_hook=_json_enc_hook, order=_DEFAULT_ORDER)


def dumps_json(obj: object) -> bytes:
    """Serialize an object to JSON bytes with the shared encoder.

    Returns
    -------
    bytes
        Encoded JSON payload.
    """
    return JSON_ENCODER.encode(obj)


def convert(obj: object, *, target_type: type[T], strict: bool = True) -> T:
    """Convert builtins into a typed msgspec value.

    Returns
    -------
    T
        Converted value.
    """
    return msgspec.convert(obj, type=target_type, strict=strict)


def validation_error_summary(exc: msgspec.ValidationError) -> str:
    """Return a readable summary of a msgspec validation error.

    Returns
    -------
    str
        Summary text with the failing path appended when present.
    """
    match = _VALIDATION_RE.match(str(exc))
    if match is None:
        return str(exc)
    summary = match.group("summary")
    path = match.group("path")
    if path is None:
        return summary
    return f"{summary} (at {path})"


__all__ = [
    "JSON_ENCODER",
    "StructBaseHotPath",
    "StructBaseStrict",
    "convert",
    "dumps_json",
    "validation_error_summary",
]
