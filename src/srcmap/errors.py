"""Error taxonomy for source map construction."""

from __future__ import annotations


class SourceMapError(Exception):
    """Base class for errors raised while building a source map index."""


class SourceReadError(SourceMapError):
    """A listed source file could not be read."""

    def __init__(self, file_index: int, path: str, reason: str) -> None:
        super().__init__(f"failed to read source {file_index} {path!r}: {reason}")
        self.file_index = file_index
        self.path = path
        self.reason = reason


class MappingFormatError(SourceMapError, ValueError):
    """A compact mapping record could not be decoded.

    ``instruction_index`` is the zero-based record position within the mapping
    string when known, ``record`` the full encoded record and ``field`` the
    offending substring.
    """

    def __init__(
        self,
        message: str,
        *,
        record: str,
        field: str | None = None,
        instruction_index: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.record = record
        self.field = field
        self.instruction_index = instruction_index

    def __str__(self) -> str:
        where = "" if self.instruction_index is None else f" at instruction {self.instruction_index}"
        return f"failed to parse source map record {self.record!r}{where}: {self.message}"


class SourceMapConfigError(SourceMapError, ValueError):
    """Source map configuration could not be decoded."""


__all__ = [
    "MappingFormatError",
    "SourceMapConfigError",
    "SourceMapError",
    "SourceReadError",
]
