"""Byte offset to line/column tables for source files."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from serde_msgspec import StructBaseHotPath
from srcmap.config import SourceMapConfig
from srcmap.errors import SourceReadError
from utils.file_io import read_bytes

LOGGER = logging.getLogger(__name__)

NEWLINE_BYTE = 0x0A


class SourcePosition(StructBaseHotPath, frozen=True):
    """1-based line and 0-based byte column of a source offset."""

    line: int
    column: int


PositionTable = tuple[SourcePosition, ...]


def position_table(data: bytes | str) -> PositionTable:
    """Build a dense offset -> position table for source contents.

    Text is UTF-8 encoded first so offsets line up with compiler byte offsets.
    A newline byte belongs to the line it terminates.

    Parameters
    ----------
    data
        Raw source bytes or text.

    Returns
    -------
    tuple[SourcePosition, ...]
        One position per byte of ``data``.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    positions: list[SourcePosition] = []
    line = 1
    line_start = 0
    for offset, value in enumerate(data):
        positions.append(SourcePosition(line, offset - line_start))
        if value == NEWLINE_BYTE:
            line += 1
            line_start = offset + 1
    return tuple(positions)


def is_unavailable(name: str, prefix: str) -> bool:
    """Return whether a source name marks a file that must not be read.

    Returns
    -------
    bool
        ``True`` when ``name`` starts with the unavailable-source prefix.
    """
    return name.startswith(prefix)


def load_position_tables(
    sources: Sequence[str],
    *,
    config: SourceMapConfig,
    contents: Mapping[str, bytes | str] | None = None,
) -> tuple[PositionTable | None, ...]:
    """Build position tables for every listed source.

    Parameters
    ----------
    sources
        Source names ordered by file index.
    config
        Resolved configuration (unavailable prefix and source root).
    contents
        Optional in-memory source contents keyed by source name; these take
        precedence over reading from disk.

    Returns
    -------
    tuple[tuple[SourcePosition, ...] | None, ...]
        Table per file index, ``None`` for unavailable sources.

    Raises
    ------
    SourceReadError
        Raised when a listed source cannot be read.
    """
    tables: list[PositionTable | None] = []
    for file_index, name in enumerate(sources):
        if is_unavailable(name, config.unavailable_prefix):
            LOGGER.debug("Skipping unavailable source %d %r", file_index, name)
            tables.append(None)
            continue
        if contents is not None and name in contents:
            tables.append(position_table(contents[name]))
            continue
        path = config.source_path(name)
        try:
            data = read_bytes(path)
        except OSError as exc:
            raise SourceReadError(file_index, str(path), str(exc)) from exc
        tables.append(position_table(data))
    return tuple(tables)


__all__ = [
    "NEWLINE_BYTE",
    "PositionTable",
    "SourcePosition",
    "is_unavailable",
    "load_position_tables",
    "position_table",
]
