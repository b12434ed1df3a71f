"""Environment variable resolution helpers for srcmap settings."""

from __future__ import annotations

import logging
import os
from typing import overload

_LOGGER = logging.getLogger(__name__)

_TRUE_VALUES = frozenset({"1", "true", "yes", "y", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "n", "off"})


def env_value(name: str) -> str | None:
    """Return stripped env var value, or None if empty/not set.

    Parameters
    ----------
    name
        Environment variable name.

    Returns
    -------
    str | None
        Stripped value or None.
    """
    raw = os.environ.get(name)
    if raw is None:
        return None
    stripped = raw.strip()
    return stripped if stripped else None


def env_text(
    name: str,
    *,
    default: str | None = None,
    strip: bool = True,
) -> str | None:
    """Return an environment variable string with optional stripping.

    Unlike ``env_value`` the raw value is kept when ``strip`` is disabled, so
    whitespace-significant settings such as name prefixes survive.

    Parameters
    ----------
    name
        Environment variable name.
    default
        Value returned when the variable is unset or empty.
    strip
        Whether to strip surrounding whitespace.

    Returns
    -------
    str | None
        Parsed value, or the default when missing.
    """
    raw = os.environ.get(name)
    if raw is None:
        return default
    value = raw.strip() if strip else raw
    if not value:
        return default
    return value


@overload
def env_bool(name: str) -> bool | None: ...


@overload
def env_bool(name: str, *, default: bool) -> bool: ...


def env_bool(name: str, *, default: bool | None = None) -> bool | None:
    """Parse environment variable as boolean.

    Unrecognized values log a warning and fall back to ``default``.

    Returns
    -------
    bool | None
        Parsed boolean or default.
    """
    raw = os.environ.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if not value:
        return default
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    _LOGGER.warning("Invalid boolean for %s: %r", name, raw)
    return default


__all__ = ["env_bool", "env_text", "env_value"]
