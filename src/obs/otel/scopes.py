"""Canonical OpenTelemetry instrumentation scopes for srcmap."""

from __future__ import annotations

from obs.otel.constants import ScopeName

SCOPE_BUILD = ScopeName.BUILD
SCOPE_OBS = ScopeName.OBS
SCOPE_DIAGNOSTICS = ScopeName.DIAGNOSTICS

__all__ = [
    "SCOPE_BUILD",
    "SCOPE_DIAGNOSTICS",
    "SCOPE_OBS",
]
