"""Tests for source map index construction and lookups."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import msgspec
import pyarrow as pa
import pytest

from srcmap.config import SourceMapConfig
from srcmap.errors import MappingFormatError, SourceMapConfigError, SourceReadError
from srcmap.index import (
    INSTRUCTION_TABLE_SCHEMA,
    ResolvedPosition,
    SourceMapIndex,
    build_source_map_index,
)
from srcmap.mappings import InstructionMapping, decode_mappings

ADD = 0x01
JUMPDEST = 0x5B
PUSH1 = 0x60
PUSH2 = 0x61

SOURCE = "contract A {\n  uint x;\n}\n"


def _build(
    source_map: str,
    bytecode: bytes,
    *,
    sources: tuple[str, ...] = ("A.sol",),
    contents: dict[str, str] | None = None,
) -> SourceMapIndex:
    return build_source_map_index(
        sources,
        bytecode,
        source_map,
        config=SourceMapConfig(),
        contents={"A.sol": SOURCE} if contents is None else contents,
    )


def test_table_length_matches_bytecode() -> None:
    """Ensure the per-byte table covers every bytecode byte."""
    bytecode = bytes([PUSH2, 0x01, 0x02, PUSH1, 0x03, ADD])
    index = _build("0:10:0;15:6:0;13:8:0", bytecode)
    assert len(index) == len(bytecode)
    assert len(index.instructions) == len(bytecode)


def test_resolve_maps_offsets_through_positions() -> None:
    """Ensure the mapping start resolves to line and column."""
    index = _build("15:6:0", bytes([ADD]))
    assert index.resolve(0) == ResolvedPosition("A.sol", 2, 2)


def test_resolve_push_data_uses_push_mapping() -> None:
    """Ensure push immediate bytes resolve like the push itself."""
    index = _build("15:6:0;0:1:0", bytes([PUSH1, 0xFF, ADD]))
    assert index.resolve(1) == index.resolve(0) == ResolvedPosition("A.sol", 2, 2)
    assert index.resolve(2) == ResolvedPosition("A.sol", 1, 0)


def test_resolve_without_file() -> None:
    """Ensure a negative file index yields an empty name and zero position."""
    index = _build("0:1:-1", bytes([ADD]))
    assert index.resolve(0) == ResolvedPosition("", 0, 0)


def test_resolve_unknown_file_index() -> None:
    """Ensure a file index past the source list never raises."""
    index = _build("0:1:5", bytes([ADD]))
    assert index.resolve(0) == ResolvedPosition("unknown", 0, 0)


def test_resolve_without_start() -> None:
    """Ensure a negative start keeps the file name but no position."""
    index = _build("-1:-1:0", bytes([ADD]))
    assert index.resolve(0) == ResolvedPosition("A.sol", 0, 0)


def test_resolve_unavailable_source() -> None:
    """Ensure unavailable sources resolve to their name with zero position."""
    index = _build("3:4:1", bytes([ADD]), sources=("A.sol", "~generated"))
    assert index.positions[1] is None
    assert index.resolve(0) == ResolvedPosition("~generated", 0, 0)


def test_resolve_start_past_source_end() -> None:
    """Ensure an offset beyond the source contents degrades to zero position."""
    index = _build("500:1:0", bytes([ADD]))
    assert index.resolve(0) == ResolvedPosition("A.sol", 0, 0)


@pytest.mark.parametrize("pc", [-1, 1, 10])
def test_out_of_range_pc_is_caller_error(pc: int) -> None:
    """Ensure offsets outside the bytecode raise IndexError."""
    index = _build("0:1:0", bytes([ADD]))
    with pytest.raises(IndexError):
        index.resolve(pc)


def test_format_combines_location_and_mapping() -> None:
    """Ensure the formatted line carries location and raw mapping."""
    index = _build("15:6:0:i:1", bytes([ADD]))
    assert index.format(0) == "A.sol:2:2 15:6:0:i:1"


def test_build_reads_sources_from_disk(
    write_source: Callable[[str, str | bytes], Path],
    tmp_path: Path,
) -> None:
    """Ensure sources without in-memory contents are read from the source root."""
    write_source("src/B.sol", "x\ny\n")
    index = build_source_map_index(
        ["src/B.sol"],
        bytes([ADD]),
        "2:1:0",
        config=SourceMapConfig(source_root=str(tmp_path)),
    )
    assert index.resolve(0) == ResolvedPosition("src/B.sol", 2, 0)


def test_build_resolves_config_from_environment(
    monkeypatch: pytest.MonkeyPatch,
    write_source: Callable[[str, str | bytes], Path],
    tmp_path: Path,
) -> None:
    """Ensure an omitted config is resolved from the environment."""
    write_source("root/C.sol", "c")
    monkeypatch.setenv("SRCMAP_SOURCE_ROOT", str(tmp_path / "root"))
    index = build_source_map_index(["C.sol"], bytes([ADD]), "0:1:0")
    assert index.resolve(0) == ResolvedPosition("C.sol", 1, 0)


def test_build_fails_on_unreadable_source(tmp_path: Path) -> None:
    """Ensure a missing source aborts the build."""
    with pytest.raises(SourceReadError) as excinfo:
        build_source_map_index(
            ["nope.sol"],
            bytes([ADD]),
            "0:1:0",
            config=SourceMapConfig(source_root=str(tmp_path)),
        )
    assert excinfo.value.file_index == 0


def test_build_fails_on_malformed_mapping() -> None:
    """Ensure a malformed record aborts the build with its instruction index."""
    with pytest.raises(MappingFormatError) as excinfo:
        _build("0:1:0;1:2:q", bytes([ADD, ADD]))
    assert excinfo.value.instruction_index == 1


def test_build_records_underflow() -> None:
    """Ensure too few records produce a usable index plus a diagnostic."""
    index = _build("4:1:0", bytes([ADD, ADD, ADD]))
    assert len(index) == 3
    assert index.mapping(1) == index.mapping(2) == index.mapping(0)
    assert index.underflow is not None
    assert index.underflow.missing == 2


def test_instruction_mappings_collapse_push_data() -> None:
    """Ensure collapsing returns one mapping per instruction."""
    index = _build("0:1:0;3:2:0", bytes([PUSH2, 0x00, 0x00, JUMPDEST]))
    assert index.instruction_mappings() == (
        InstructionMapping(0, 1, 0, "-", 0),
        InstructionMapping(3, 2, 0, "-", 0),
    )


def test_to_arrow_has_one_row_per_byte() -> None:
    """Ensure the Arrow export carries raw and resolved columns per byte."""
    index = _build("15:6:0;-1:-1:-1", bytes([PUSH1, 0x01, ADD]))
    table = index.to_arrow()
    assert isinstance(table, pa.Table)
    assert table.schema == INSTRUCTION_TABLE_SCHEMA
    assert table.num_rows == 3
    assert table.column("pc").to_pylist() == [0, 1, 2]
    assert table.column("line").to_pylist() == [2, 2, 0]
    assert table.column("source").to_pylist() == ["A.sol", "A.sol", ""]
    assert table.column("file_index").to_pylist() == [0, 0, -1]


def test_to_json_reencodes_mapping() -> None:
    """Ensure the JSON summary re-encodes a mapping that decodes identically."""
    source_map = "15:6:0;;-1:-1:-1:o"
    index = _build(source_map, bytes([PUSH1, 0x01, ADD, ADD]))
    payload = msgspec.json.decode(index.to_json())
    assert payload["sources"] == ["A.sol"]
    assert payload["bytecode_length"] == 4
    assert payload["underflow"] is None
    assert decode_mappings(payload["source_map"]) == decode_mappings(source_map)


def test_build_reports_malformed_config_file(tmp_path: Path) -> None:
    """Ensure a broken discovered srcmap.toml fails the build with a config error."""
    (tmp_path / "srcmap.toml").write_text("unavailable_prefix = \n", encoding="utf-8")
    with pytest.raises(SourceMapConfigError, match="srcmap.toml"):
        build_source_map_index(["~x"], bytes([ADD]), "0:1:0")


def test_build_keeps_explicit_config() -> None:
    """Ensure the index carries the config it was built with."""
    config = SourceMapConfig(unavailable_prefix="@", flush_trace=False)
    index = build_source_map_index(["@gen"], bytes([ADD]), "0:1:0", config=config)
    assert index.config is config
