"""OpenTelemetry helpers for srcmap observability."""

from __future__ import annotations

from obs.otel.logs import emit_diagnostics_event
from obs.otel.metrics import record_diagnostic, record_stage_duration, reset_metrics_registry
from obs.otel.scopes import SCOPE_BUILD, SCOPE_DIAGNOSTICS, SCOPE_OBS
from obs.otel.tracing import get_tracer, stage_span

__all__ = [
    "SCOPE_BUILD",
    "SCOPE_DIAGNOSTICS",
    "SCOPE_OBS",
    "emit_diagnostics_event",
    "get_tracer",
    "record_diagnostic",
    "record_stage_duration",
    "reset_metrics_registry",
    "stage_span",
]
