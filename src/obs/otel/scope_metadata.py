"""Instrumentation scope metadata resolution for OpenTelemetry."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from utils.env_utils import env_value


def _resolve_instrumentation_version() -> str | None:
    env_version = env_value("SRCMAP_SERVICE_VERSION")
    if env_version is not None:
        return env_version
    try:
        return version("srcmap-index")
    except PackageNotFoundError:
        return None


_INSTRUMENTATION_VERSION = _resolve_instrumentation_version()
_SCHEMA_URL = env_value("SRCMAP_OTEL_SCHEMA_URL") or env_value("OTEL_SCHEMA_URL")


def instrumentation_version() -> str | None:
    """Return the resolved instrumentation version, if available.

    Returns
    -------
    str | None
        Instrumentation version, if detected.
    """
    return _INSTRUMENTATION_VERSION


def instrumentation_schema_url() -> str | None:
    """Return the resolved schema URL, if configured.

    Returns
    -------
    str | None
        Schema URL for instrumentation scopes.
    """
    return _SCHEMA_URL


__all__ = ["instrumentation_schema_url", "instrumentation_version"]
