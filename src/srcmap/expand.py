"""Expand per-instruction mappings into a per-byte table."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from itertools import repeat
from typing import Final

from obs.otel.logs import emit_diagnostics_event
from obs.otel.metrics import record_diagnostic
from serde_msgspec import StructBaseHotPath, StructBaseStrict
from srcmap.mappings import SEED_MAPPING, InstructionMapping, iter_mappings, split_records

LOGGER = logging.getLogger(__name__)

PUSH1: Final = 0x60
PUSH32: Final = 0x7F

RECORD_UNDERFLOW: Final = "srcmap.record_underflow"


def is_push(opcode: int) -> bool:
    """Return whether an opcode carries immediate push data.

    Returns
    -------
    bool
        ``True`` for ``PUSH1`` through ``PUSH32``.
    """
    return PUSH1 <= opcode <= PUSH32


def instruction_length(opcode: int) -> int:
    """Return the encoded byte length of an instruction.

    Returns
    -------
    int
        ``1`` plus the immediate size for pushes, otherwise ``1``.
    """
    if is_push(opcode):
        return 1 + (opcode - PUSH1 + 1)
    return 1


class Instruction(StructBaseHotPath, frozen=True):
    """One decoded instruction position."""

    index: int
    pc: int
    opcode: int
    length: int


def iter_instructions(bytecode: bytes) -> Iterator[Instruction]:
    """Walk bytecode instruction by instruction.

    A push cut short by the end of the bytecode is clamped to the remaining
    bytes.

    Yields
    ------
    Instruction
        Instruction index, byte offset, opcode and byte length.
    """
    pc = 0
    index = 0
    total = len(bytecode)
    while pc < total:
        opcode = bytecode[pc]
        length = min(instruction_length(opcode), total - pc)
        yield Instruction(index, pc, opcode, length)
        pc += length
        index += 1


class RecordUnderflow(StructBaseStrict, frozen=True):
    """The mapping string had fewer records than the bytecode has instructions."""

    record_count: int
    instruction_count: int

    @property
    def missing(self) -> int:
        """Number of instructions that reused the last decoded record."""
        return self.instruction_count - self.record_count


@dataclass(frozen=True)
class ExpandedMappings:
    """Per-byte mapping table plus expansion diagnostics."""

    instructions: tuple[InstructionMapping, ...]
    instruction_count: int
    record_count: int
    underflow: RecordUnderflow | None = None


def _report_underflow(underflow: RecordUnderflow) -> None:
    LOGGER.warning(
        "Source map has %d records for %d instructions; reusing the last record for %d.",
        underflow.record_count,
        underflow.instruction_count,
        underflow.missing,
    )
    record_diagnostic(RECORD_UNDERFLOW, stage="expand")
    emit_diagnostics_event(
        RECORD_UNDERFLOW,
        payload={
            "record_count": underflow.record_count,
            "instruction_count": underflow.instruction_count,
            "missing": underflow.missing,
        },
        level=logging.DEBUG,
        event_kind="diagnostic",
    )


def expand_mappings(bytecode: bytes, source_map: str) -> ExpandedMappings:
    """Assign each instruction's mapping to every byte it occupies.

    Parameters
    ----------
    bytecode
        Raw bytecode the mapping string was generated for.
    source_map
        Compact mapping string with one record per instruction.

    Returns
    -------
    ExpandedMappings
        Table with exactly one entry per byte of ``bytecode``.

    Raises
    ------
    MappingFormatError
        Raised when a record fails to decode; carries the instruction index.
    """
    records = split_records(source_map)
    decoded = iter_mappings(records)
    table: list[InstructionMapping] = []
    current = SEED_MAPPING
    instruction_count = 0
    for instruction in iter_instructions(bytecode):
        if instruction.index < len(records):
            current = next(decoded)
        table.extend(repeat(current, instruction.length))
        instruction_count += 1
    underflow = None
    if instruction_count > len(records):
        underflow = RecordUnderflow(record_count=len(records), instruction_count=instruction_count)
        _report_underflow(underflow)
    return ExpandedMappings(
        instructions=tuple(table),
        instruction_count=instruction_count,
        record_count=len(records),
        underflow=underflow,
    )


__all__ = [
    "PUSH1",
    "PUSH32",
    "RECORD_UNDERFLOW",
    "ExpandedMappings",
    "Instruction",
    "RecordUnderflow",
    "expand_mappings",
    "instruction_length",
    "is_push",
    "iter_instructions",
]
