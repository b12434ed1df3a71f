"""Tracing helpers for srcmap instrumentation."""

from __future__ import annotations

import time
from collections.abc import Iterator, Mapping
from contextlib import contextmanager

from opentelemetry import trace
from opentelemetry.trace import Span, Status, StatusCode
from opentelemetry.util.types import AttributeValue

from obs.otel.attributes import normalize_attributes
from obs.otel.constants import AttributeName
from obs.otel.metrics import record_stage_duration
from obs.otel.scope_metadata import instrumentation_schema_url, instrumentation_version


def get_tracer(scope_name: str) -> trace.Tracer:
    """Return a tracer for the given instrumentation scope.

    Parameters
    ----------
    scope_name
        Instrumentation scope name.

    Returns
    -------
    opentelemetry.trace.Tracer
        Tracer bound to the requested scope.
    """
    version_value = instrumentation_version()
    version = version_value if version_value is not None else "unknown"
    return trace.get_tracer(
        scope_name,
        instrumenting_library_version=version,
        schema_url=instrumentation_schema_url(),
    )


def set_span_attributes(span: Span, attrs: Mapping[str, object] | None) -> None:
    """Attach normalized attributes to a span.

    Parameters
    ----------
    span
        Span to update.
    attrs
        Raw attributes to normalize and attach.
    """
    for key, value in normalize_attributes(attrs).items():
        span.set_attribute(key, value)


def record_exception(span: Span, exc: Exception) -> None:
    """Record an exception on a span and mark it as error."""
    span.record_exception(exc)
    span.set_status(Status(StatusCode.ERROR))


def span_attributes(*, attrs: Mapping[str, object] | None = None) -> dict[str, AttributeValue]:
    """Return normalized attributes for direct use in span creation.

    Returns
    -------
    dict[str, AttributeValue]
        Normalized attributes for span creation.
    """
    return normalize_attributes(attrs)


@contextmanager
def stage_span(
    name: str,
    *,
    stage: str,
    scope_name: str,
    attributes: Mapping[str, object] | None = None,
) -> Iterator[Span]:
    """Start a stage span and emit stage duration metrics.

    Parameters
    ----------
    name
        Span name.
    stage
        Stage name for metrics and attributes.
    scope_name
        Instrumentation scope name.
    attributes
        Optional span attributes.

    Yields
    ------
    Span
        The started span.
    """
    base_attrs: dict[str, object] = {AttributeName.STAGE_NAME: stage}
    if attributes:
        base_attrs.update(attributes)
    tracer = get_tracer(scope_name)
    start = time.monotonic()
    status = "ok"
    with tracer.start_as_current_span(
        name,
        attributes=span_attributes(attrs=base_attrs),
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        try:
            yield span
        except Exception as exc:
            status = "error"
            record_exception(span, exc)
            raise
        finally:
            duration_s = time.monotonic() - start
            record_stage_duration(stage, duration_s, status=status)
            set_span_attributes(span, {"duration_s": duration_s, "status": status})


__all__ = [
    "get_tracer",
    "record_exception",
    "set_span_attributes",
    "span_attributes",
    "stage_span",
]
