"""Assembled source map index and its lookups."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Final, TextIO

import pyarrow as pa

from obs.otel.constants import AttributeName
from obs.otel.scopes import SCOPE_BUILD
from obs.otel.tracing import set_span_attributes, stage_span
from serde_msgspec import StructBaseHotPath, dumps_json
from srcmap.config import SourceMapConfig, resolve_config
from srcmap.expand import RecordUnderflow, expand_mappings, iter_instructions
from srcmap.mappings import InstructionMapping, encode_mappings, format_mapping
from srcmap.positions import PositionTable, load_position_tables
from srcmap.tracer import SourceMapTracer

LOGGER = logging.getLogger(__name__)

UNKNOWN_SOURCE: Final = "unknown"


class ResolvedPosition(StructBaseHotPath, frozen=True):
    """Source name, line and column for a bytecode offset.

    An empty ``source`` means the instruction has no source file; zero
    ``line``/``column`` means no position is known within the file.
    """

    source: str
    line: int
    column: int


_NO_SOURCE: Final = ResolvedPosition("", 0, 0)
_UNKNOWN: Final = ResolvedPosition(UNKNOWN_SOURCE, 0, 0)

INSTRUCTION_TABLE_SCHEMA: Final = pa.schema(
    [
        pa.field("pc", pa.int64(), nullable=False),
        pa.field("start", pa.int32(), nullable=False),
        pa.field("length", pa.int32(), nullable=False),
        pa.field("file_index", pa.int32(), nullable=False),
        pa.field("jump", pa.string(), nullable=False),
        pa.field("modifier_depth", pa.int32(), nullable=False),
        pa.field("source", pa.string(), nullable=False),
        pa.field("line", pa.uint32(), nullable=False),
        pa.field("column", pa.uint32(), nullable=False),
    ]
)


@dataclass(frozen=True)
class SourceMapIndex:
    """Immutable mapping from bytecode offsets to source positions.

    ``instructions`` holds one mapping per bytecode byte, so push data bytes
    resolve to the push instruction's source location.
    """

    sources: tuple[str, ...]
    positions: tuple[PositionTable | None, ...]
    instructions: tuple[InstructionMapping, ...]
    bytecode: bytes
    underflow: RecordUnderflow | None = None
    config: SourceMapConfig = field(default_factory=SourceMapConfig)

    def __len__(self) -> int:
        return len(self.instructions)

    def mapping(self, pc: int) -> InstructionMapping:
        """Return the raw mapping covering a bytecode offset.

        Returns
        -------
        InstructionMapping
            Mapping of the instruction occupying ``pc``.

        Raises
        ------
        IndexError
            Raised when ``pc`` is outside the bytecode.
        """
        if not 0 <= pc < len(self.instructions):
            msg = f"pc {pc} out of range for bytecode of length {len(self.instructions)}"
            raise IndexError(msg)
        return self.instructions[pc]

    def resolve(self, pc: int) -> ResolvedPosition:
        """Resolve a bytecode offset to a source position.

        Missing information never raises: no file yields an empty name, an
        unknown file index yields ``"unknown"``, and a missing offset or an
        unavailable file yields line and column zero.

        Parameters
        ----------
        pc
            Bytecode offset.

        Returns
        -------
        ResolvedPosition
            Resolved source name, line and column.
        """
        instr = self.mapping(pc)
        if instr.file_index < 0:
            return _NO_SOURCE
        if instr.file_index >= len(self.sources):
            return _UNKNOWN
        source = self.sources[instr.file_index]
        table = self.positions[instr.file_index]
        if instr.start < 0 or table is None or instr.start >= len(table):
            return ResolvedPosition(source, 0, 0)
        position = table[instr.start]
        return ResolvedPosition(source, position.line, position.column)

    def format(self, pc: int) -> str:
        """Render the resolved location and raw mapping of an offset.

        Returns
        -------
        str
            ``<source>:<line>:<column> <start:length:file:jump:modifier>``.
        """
        resolved = self.resolve(pc)
        raw = format_mapping(self.instructions[pc])
        return f"{resolved.source}:{resolved.line}:{resolved.column} {raw}"

    def tracer(self, out: TextIO, *, flush: bool | None = None) -> SourceMapTracer:
        """Return a trace sink writing to ``out``.

        ``flush`` defaults to ``flush_trace`` of the config the index was
        built with.

        Returns
        -------
        SourceMapTracer
            Tracer bound to this index.
        """
        if flush is None:
            flush = self.config.flush_trace
        return SourceMapTracer(self, out, flush=flush)

    def instruction_mappings(self) -> tuple[InstructionMapping, ...]:
        """Return the table collapsed back to one mapping per instruction.

        Returns
        -------
        tuple[InstructionMapping, ...]
            Mapping at each instruction start, in bytecode order.
        """
        return tuple(self.instructions[instr.pc] for instr in iter_instructions(self.bytecode))

    def to_arrow(self) -> pa.Table:
        """Return the per-byte table as an Arrow table.

        Returns
        -------
        pyarrow.Table
            One row per bytecode offset with raw and resolved columns.
        """
        resolved = [self.resolve(pc) for pc in range(len(self.instructions))]
        instrs = self.instructions
        columns = {
            "pc": pa.array(list(range(len(instrs))), type=pa.int64()),
            "start": pa.array([m.start for m in instrs], type=pa.int32()),
            "length": pa.array([m.length for m in instrs], type=pa.int32()),
            "file_index": pa.array([m.file_index for m in instrs], type=pa.int32()),
            "jump": pa.array([m.jump for m in instrs], type=pa.string()),
            "modifier_depth": pa.array([m.modifier_depth for m in instrs], type=pa.int32()),
            "source": pa.array([r.source for r in resolved], type=pa.string()),
            "line": pa.array([r.line for r in resolved], type=pa.uint32()),
            "column": pa.array([r.column for r in resolved], type=pa.uint32()),
        }
        return pa.Table.from_pydict(columns, schema=INSTRUCTION_TABLE_SCHEMA)

    def to_json(self) -> bytes:
        """Return a JSON summary with the re-encoded mapping string.

        Returns
        -------
        bytes
            JSON document with ``sources``, ``source_map``, ``bytecode_length``
            and ``underflow``.
        """
        payload = {
            "sources": list(self.sources),
            "source_map": encode_mappings(self.instruction_mappings()),
            "bytecode_length": len(self.bytecode),
            "underflow": self.underflow,
        }
        return dumps_json(payload)


def build_source_map_index(
    sources: Sequence[str],
    bytecode: bytes | bytearray | memoryview,
    source_map: str,
    *,
    config: SourceMapConfig | None = None,
    contents: Mapping[str, bytes | str] | None = None,
) -> SourceMapIndex:
    """Build a source map index from sources, bytecode and a mapping string.

    Parameters
    ----------
    sources
        Source names ordered by file index. Names starting with the
        configured unavailable prefix are never read.
    bytecode
        Bytecode the mapping string describes.
    source_map
        Compact ``;``-separated mapping string.
    config
        Resolved configuration; resolved from env and files when omitted.
    contents
        Optional in-memory source contents keyed by source name.

    Returns
    -------
    SourceMapIndex
        Fully built, immutable index.

    Raises
    ------
    SourceReadError
        Raised when a listed source cannot be read.
    MappingFormatError
        Raised when a mapping record is malformed.
    SourceMapConfigError
        Raised when ``config`` is omitted and the discovered configuration
        is invalid.
    """
    resolved_config = config if config is not None else resolve_config()
    code = bytes(bytecode)
    with stage_span(
        "srcmap.build",
        stage="build",
        scope_name=SCOPE_BUILD,
        attributes={
            AttributeName.SOURCE_COUNT: len(sources),
            AttributeName.BYTECODE_LENGTH: len(code),
        },
    ) as span:
        with stage_span("srcmap.positions", stage="positions", scope_name=SCOPE_BUILD):
            positions = load_position_tables(sources, config=resolved_config, contents=contents)
        with stage_span("srcmap.expand", stage="expand", scope_name=SCOPE_BUILD):
            expanded = expand_mappings(code, source_map)
        set_span_attributes(
            span,
            {
                AttributeName.RECORD_COUNT: expanded.record_count,
                AttributeName.INSTRUCTION_COUNT: expanded.instruction_count,
            },
        )
    LOGGER.debug(
        "Built source map index: %d sources, %d bytes, %d instructions.",
        len(sources),
        len(code),
        expanded.instruction_count,
    )
    return SourceMapIndex(
        sources=tuple(sources),
        positions=positions,
        instructions=expanded.instructions,
        bytecode=code,
        underflow=expanded.underflow,
        config=resolved_config,
    )


__all__ = [
    "INSTRUCTION_TABLE_SCHEMA",
    "UNKNOWN_SOURCE",
    "ResolvedPosition",
    "SourceMapIndex",
    "build_source_map_index",
]
