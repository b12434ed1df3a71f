"""Metrics catalog and helpers for srcmap telemetry."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from opentelemetry import metrics

from obs.otel.attributes import normalize_attributes
from obs.otel.constants import AttributeName, MetricName
from obs.otel.scope_metadata import instrumentation_schema_url, instrumentation_version
from obs.otel.scopes import SCOPE_OBS


@dataclass(frozen=True)
class MetricsRegistry:
    """Registry for srcmap metric instruments."""

    stage_duration: metrics.Histogram
    diagnostic_count: metrics.Counter


_REGISTRY_CACHE: dict[str, MetricsRegistry | None] = {"value": None}


def _meter() -> metrics.Meter:
    version_value = instrumentation_version()
    version = version_value if version_value is not None else "unknown"
    return metrics.get_meter(
        SCOPE_OBS,
        version,
        schema_url=instrumentation_schema_url(),
    )


def reset_metrics_registry() -> None:
    """Reset cached metric instruments so they can be re-created."""
    _REGISTRY_CACHE["value"] = None


def _registry() -> MetricsRegistry:
    cached = _REGISTRY_CACHE["value"]
    if cached is not None:
        return cached
    meter = _meter()
    registry = MetricsRegistry(
        stage_duration=meter.create_histogram(
            MetricName.STAGE_DURATION,
            unit="s",
            description="Source map build stage duration (seconds).",
        ),
        diagnostic_count=meter.create_counter(
            MetricName.DIAGNOSTIC_COUNT,
            unit="1",
            description="Non-fatal diagnostics raised while building source maps.",
        ),
    )
    _REGISTRY_CACHE["value"] = registry
    return registry


def record_stage_duration(
    stage: str,
    duration_s: float,
    *,
    status: str,
    attributes: Mapping[str, object] | None = None,
) -> None:
    """Record a stage duration histogram value."""
    payload: dict[str, object] = {AttributeName.STAGE: stage, AttributeName.STATUS: status}
    if attributes:
        payload.update(attributes)
    _registry().stage_duration.record(duration_s, normalize_attributes(payload))


def record_diagnostic(diagnostic: str, *, stage: str) -> None:
    """Increment the diagnostic counter for a named diagnostic."""
    payload = {AttributeName.DIAGNOSTIC: diagnostic, AttributeName.STAGE: stage}
    _registry().diagnostic_count.add(1, normalize_attributes(payload))


__all__ = [
    "MetricsRegistry",
    "record_diagnostic",
    "record_stage_duration",
    "reset_metrics_registry",
]
