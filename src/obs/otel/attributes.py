"""Normalize OpenTelemetry attributes for srcmap telemetry."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import cast

from opentelemetry.util.types import AttributeValue

from utils.env_utils import env_value


def _limit_to_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


_MAX_ATTRIBUTES = _limit_to_int(env_value("OTEL_ATTRIBUTE_COUNT_LIMIT"))
_MAX_ATTRIBUTE_LENGTH = _limit_to_int(env_value("OTEL_ATTRIBUTE_VALUE_LENGTH_LIMIT"))


def _is_scalar(value: object) -> bool:
    return isinstance(value, (str, bool, int, float))


def _truncate_str(value: str, *, value_length_limit: int | None) -> str:
    if value_length_limit is None:
        return value
    if value_length_limit <= 0:
        return ""
    return value[:value_length_limit]


def _normalize_sequence(
    values: Sequence[object], *, value_length_limit: int | None
) -> AttributeValue:
    items = [item for item in values if item is not None]
    if not items:
        return []
    if all(isinstance(item, bool) for item in items):
        return [bool(item) for item in items]
    if all(isinstance(item, int) and not isinstance(item, bool) for item in items):
        return [cast("int", item) for item in items]
    return [_truncate_str(str(item), value_length_limit=value_length_limit) for item in items]


def _normalize_value(value: object, *, value_length_limit: int | None) -> AttributeValue:
    if _is_scalar(value):
        if isinstance(value, str):
            return _truncate_str(value, value_length_limit=value_length_limit)
        return cast("AttributeValue", value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return _truncate_str(bytes(value).hex(), value_length_limit=value_length_limit)
    if isinstance(value, Mapping):
        return _truncate_str(
            json.dumps(value, sort_keys=True, default=str),
            value_length_limit=value_length_limit,
        )
    if isinstance(value, Sequence):
        return _normalize_sequence(list(value), value_length_limit=value_length_limit)
    return _truncate_str(str(value), value_length_limit=value_length_limit)


def normalize_attributes(attrs: Mapping[str, object] | None) -> dict[str, AttributeValue]:
    """Normalize raw attribute values into OpenTelemetry-safe types.

    ``None`` values are dropped. When ``OTEL_ATTRIBUTE_COUNT_LIMIT`` is set,
    the lexically first keys are retained.

    Returns
    -------
    dict[str, AttributeValue]
        Normalized attribute mapping.
    """
    if not attrs:
        return {}
    normalized: dict[str, AttributeValue] = {}
    for key, value in attrs.items():
        if value is None:
            continue
        normalized[str(key)] = _normalize_value(value, value_length_limit=_MAX_ATTRIBUTE_LENGTH)
    if _MAX_ATTRIBUTES is None or len(normalized) <= _MAX_ATTRIBUTES:
        return normalized
    if _MAX_ATTRIBUTES <= 0:
        return {}
    return {key: normalized[key] for key in sorted(normalized)[:_MAX_ATTRIBUTES]}


__all__ = ["normalize_attributes"]
