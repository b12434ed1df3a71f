"""Canonical OpenTelemetry constants for srcmap."""

from __future__ import annotations

from enum import StrEnum


class MetricName(StrEnum):
    """Canonical metric names."""

    STAGE_DURATION = "srcmap.stage.duration"
    DIAGNOSTIC_COUNT = "srcmap.diagnostic.count"


class AttributeName(StrEnum):
    """Canonical attribute names."""

    STAGE = "stage"
    STATUS = "status"
    DIAGNOSTIC = "diagnostic"
    STAGE_NAME = "srcmap.stage"
    SOURCE_COUNT = "srcmap.source_count"
    BYTECODE_LENGTH = "srcmap.bytecode_length"
    RECORD_COUNT = "srcmap.record_count"
    INSTRUCTION_COUNT = "srcmap.instruction_count"


class ScopeName(StrEnum):
    """Canonical instrumentation scope names."""

    BUILD = "srcmap.build"
    OBS = "srcmap.obs"
    DIAGNOSTICS = "srcmap.diagnostics"


__all__ = ["AttributeName", "MetricName", "ScopeName"]
