"""Decoder for compact ``start:length:file:jump:modifier`` source mappings.

A mapping string holds one record per instruction, separated by ``;``. Each
record carries up to five ``:``-separated fields; an omitted record or field
repeats the previous record's value. Decoding is a left fold over the records
starting from ``SEED_MAPPING``.

See https://docs.soliditylang.org/en/latest/internals/source_mappings.html
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from enum import StrEnum
from itertools import accumulate, islice
from typing import Final

import msgspec

from serde_msgspec import StructBaseHotPath
from srcmap.errors import MappingFormatError

RECORD_SEPARATOR: Final = ";"
FIELD_SEPARATOR: Final = ":"

INT32_MIN: Final = -(2**31)
INT32_MAX: Final = 2**31 - 1

_INT_RE = re.compile(r"[+-]?[0-9]+")

FIELD_NAMES: Final = ("start", "length", "file_index", "jump", "modifier_depth")
_JUMP_FIELD: Final = "jump"


class JumpKind(StrEnum):
    """Jump annotation of an instruction."""

    INTO = "i"
    OUT = "o"
    REGULAR = "-"


class InstructionMapping(StructBaseHotPath, frozen=True):
    """Source mapping of one instruction.

    Negative ``start``, ``length`` or ``file_index`` values mean the
    instruction has no source offset, length or file respectively.
    ``jump`` keeps the raw character from the encoding.
    """

    start: int = 0
    length: int = 0
    file_index: int = 0
    jump: str = JumpKind.REGULAR.value
    modifier_depth: int = 0

    @property
    def jump_kind(self) -> JumpKind:
        """Return the jump kind, treating unknown characters as regular.

        Returns
        -------
        JumpKind
            Matching jump kind.
        """
        try:
            return JumpKind(self.jump)
        except ValueError:
            return JumpKind.REGULAR

    def __str__(self) -> str:
        return format_mapping(self)


SEED_MAPPING: Final = InstructionMapping()


def format_mapping(mapping: InstructionMapping) -> str:
    """Render a mapping with every field present.

    Returns
    -------
    str
        ``start:length:file_index:jump:modifier_depth``.
    """
    return FIELD_SEPARATOR.join(str(getattr(mapping, name)) for name in FIELD_NAMES)


def _parse_int(field: str, *, record: str, name: str, instruction_index: int | None) -> int:
    if _INT_RE.fullmatch(field) is None:
        msg = f"invalid {name} value {field!r}"
        raise MappingFormatError(
            msg, record=record, field=field, instruction_index=instruction_index
        )
    value = int(field)
    if not INT32_MIN <= value <= INT32_MAX:
        msg = f"{name} value {field!r} is out of 32-bit range"
        raise MappingFormatError(
            msg, record=record, field=field, instruction_index=instruction_index
        )
    return value


def decode_record(
    last: InstructionMapping,
    encoded: str,
    *,
    instruction_index: int | None = None,
) -> InstructionMapping:
    """Overlay one encoded record onto the previous mapping.

    Parameters
    ----------
    last
        Mapping of the previous instruction (or ``SEED_MAPPING``).
    encoded
        Encoded record, without the ``;`` separator.
    instruction_index
        Record position, used to annotate errors.

    Returns
    -------
    InstructionMapping
        Decoded mapping; ``last`` itself when nothing is overridden.

    Raises
    ------
    MappingFormatError
        Raised when the record has more than five fields or a numeric field
        is not a signed 32-bit decimal integer.
    """
    if not encoded:
        return last
    fields = encoded.split(FIELD_SEPARATOR)
    if len(fields) > len(FIELD_NAMES):
        msg = f"unexpected field count: {len(fields)}"
        raise MappingFormatError(msg, record=encoded, instruction_index=instruction_index)
    updates: dict[str, object] = {}
    for name, field in zip(FIELD_NAMES, fields, strict=False):
        if not field:
            continue
        if name == _JUMP_FIELD:
            updates[name] = field[0]
            continue
        updates[name] = _parse_int(
            field, record=encoded, name=name, instruction_index=instruction_index
        )
    if not updates:
        return last
    return msgspec.structs.replace(last, **updates)


def split_records(source_map: str) -> list[str]:
    """Split a mapping string into encoded records.

    Returns
    -------
    list[str]
        Encoded records in instruction order.
    """
    return source_map.split(RECORD_SEPARATOR)


def _fold_step(last: InstructionMapping, item: tuple[int, str]) -> InstructionMapping:
    index, encoded = item
    return decode_record(last, encoded, instruction_index=index)


def iter_mappings(
    records: str | Iterable[str],
    *,
    seed: InstructionMapping = SEED_MAPPING,
) -> Iterator[InstructionMapping]:
    """Lazily decode records into one mapping per instruction.

    Parameters
    ----------
    records
        Mapping string, or already split encoded records.
    seed
        Value the first record is overlaid onto.

    Returns
    -------
    Iterator[InstructionMapping]
        Decoded mappings in instruction order.
    """
    if isinstance(records, str):
        records = split_records(records)
    folded = accumulate(enumerate(records), _fold_step, initial=seed)
    return islice(folded, 1, None)


def decode_mappings(source_map: str) -> tuple[InstructionMapping, ...]:
    """Decode a whole mapping string.

    Returns
    -------
    tuple[InstructionMapping, ...]
        One mapping per record.
    """
    return tuple(iter_mappings(source_map))


def encode_record(last: InstructionMapping, mapping: InstructionMapping) -> str:
    """Encode a mapping relative to the previous one.

    Returns
    -------
    str
        Record holding only the fields that differ from ``last``, with
        trailing empty fields dropped.
    """
    fields = [
        "" if getattr(mapping, name) == getattr(last, name) else str(getattr(mapping, name))
        for name in FIELD_NAMES
    ]
    while fields and not fields[-1]:
        fields.pop()
    return FIELD_SEPARATOR.join(fields)


def encode_mappings(
    mappings: Iterable[InstructionMapping],
    *,
    seed: InstructionMapping = SEED_MAPPING,
) -> str:
    """Encode mappings into the compact form.

    An empty ``mappings`` encodes to ``""``. That string holds one empty
    record, so it decodes to ``(seed,)`` rather than ``()``.

    Returns
    -------
    str
        Mapping string that decodes back to ``mappings`` when non-empty.
    """
    encoded: list[str] = []
    last = seed
    for mapping in mappings:
        encoded.append(encode_record(last, mapping))
        last = mapping
    return RECORD_SEPARATOR.join(encoded)


__all__ = [
    "FIELD_NAMES",
    "SEED_MAPPING",
    "InstructionMapping",
    "JumpKind",
    "decode_mappings",
    "decode_record",
    "encode_mappings",
    "encode_record",
    "format_mapping",
    "iter_mappings",
    "split_records",
]
