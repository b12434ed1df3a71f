"""Source map decoding and bytecode offset lookups."""

from __future__ import annotations

from srcmap.config import SourceMapConfig, SourceMapConfigSpec, resolve_config
from srcmap.errors import (
    MappingFormatError,
    SourceMapConfigError,
    SourceMapError,
    SourceReadError,
)
from srcmap.expand import RecordUnderflow, expand_mappings, instruction_length, iter_instructions
from srcmap.index import ResolvedPosition, SourceMapIndex, build_source_map_index
from srcmap.mappings import (
    InstructionMapping,
    JumpKind,
    decode_mappings,
    decode_record,
    encode_mappings,
    iter_mappings,
)
from srcmap.positions import SourcePosition, position_table
from srcmap.tracer import ExecutionTracer, SourceMapTracer

__all__ = [
    "ExecutionTracer",
    "InstructionMapping",
    "JumpKind",
    "MappingFormatError",
    "RecordUnderflow",
    "ResolvedPosition",
    "SourceMapConfig",
    "SourceMapConfigError",
    "SourceMapConfigSpec",
    "SourceMapError",
    "SourceMapIndex",
    "SourceMapTracer",
    "SourcePosition",
    "SourceReadError",
    "build_source_map_index",
    "decode_mappings",
    "decode_record",
    "encode_mappings",
    "expand_mappings",
    "instruction_length",
    "iter_instructions",
    "iter_mappings",
    "position_table",
    "resolve_config",
]
