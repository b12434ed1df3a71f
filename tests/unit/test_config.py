"""Tests for source map configuration resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from srcmap.config import (
    SourceMapConfig,
    SourceMapConfigSpec,
    load_config_file,
    resolve_config,
)
from srcmap.errors import SourceMapConfigError


def test_defaults_without_env_or_files() -> None:
    """Ensure built-in defaults apply when nothing is configured."""
    assert resolve_config() == SourceMapConfig(
        unavailable_prefix="~",
        source_root=None,
        flush_trace=True,
    )


def test_env_overrides_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure SRCMAP_* variables are applied."""
    monkeypatch.setenv("SRCMAP_UNAVAILABLE_PREFIX", "#")
    monkeypatch.setenv("SRCMAP_SOURCE_ROOT", "/opt/contracts")
    monkeypatch.setenv("SRCMAP_FLUSH_TRACE", "no")
    config = resolve_config()
    assert config.unavailable_prefix == "#"
    assert config.source_root == "/opt/contracts"
    assert config.flush_trace is False


def test_invalid_env_bool_falls_back(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure an unparsable boolean keeps the lower-precedence value."""
    monkeypatch.setenv("SRCMAP_FLUSH_TRACE", "sometimes")
    assert resolve_config().flush_trace is True


def test_srcmap_toml_is_discovered(tmp_path: Path) -> None:
    """Ensure srcmap.toml in the working directory is read."""
    (tmp_path / "srcmap.toml").write_text('source_root = "contracts"\n', encoding="utf-8")
    assert resolve_config().source_root == "contracts"


def test_pyproject_tool_section_is_discovered(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    """Ensure [tool.srcmap] in a parent pyproject.toml is read."""
    (tmp_path / "pyproject.toml").write_text(
        '[project]\nname = "demo"\n\n[tool.srcmap]\nunavailable_prefix = "@"\n',
        encoding="utf-8",
    )
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    monkeypatch.chdir(nested)
    assert load_config_file() == SourceMapConfigSpec(unavailable_prefix="@")
    assert resolve_config().unavailable_prefix == "@"


def test_pyproject_without_tool_section(tmp_path: Path) -> None:
    """Ensure a pyproject.toml without [tool.srcmap] contributes nothing."""
    path = tmp_path / "pyproject.toml"
    path.write_text('[project]\nname = "demo"\n', encoding="utf-8")
    assert load_config_file(path) == SourceMapConfigSpec()


def test_precedence_explicit_env_file(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    """Ensure explicit settings beat env vars, which beat config files."""
    (tmp_path / "srcmap.toml").write_text(
        'unavailable_prefix = "!"\nsource_root = "from-file"\nflush_trace = false\n',
        encoding="utf-8",
    )
    monkeypatch.setenv("SRCMAP_SOURCE_ROOT", "from-env")
    monkeypatch.setenv("SRCMAP_UNAVAILABLE_PREFIX", "%")
    config = resolve_config(SourceMapConfigSpec(unavailable_prefix="$"))
    assert config.unavailable_prefix == "$"
    assert config.source_root == "from-env"
    assert config.flush_trace is False


def test_invalid_config_file_names_location(tmp_path: Path) -> None:
    """Ensure type errors in config files surface as config errors."""
    path = tmp_path / "custom.toml"
    path.write_text("flush_trace = 3\n", encoding="utf-8")
    with pytest.raises(SourceMapConfigError, match="custom.toml"):
        resolve_config(config_file=path)


@pytest.mark.parametrize("payload", ["unavailable_prefix = \n", "[[[\n"])
def test_malformed_toml_is_a_config_error(tmp_path: Path, payload: str) -> None:
    """Ensure TOML syntax errors in a discovered file surface as config errors."""
    (tmp_path / "srcmap.toml").write_text(payload, encoding="utf-8")
    with pytest.raises(SourceMapConfigError, match="srcmap.toml"):
        resolve_config()


def test_malformed_pyproject_is_a_config_error(tmp_path: Path) -> None:
    """Ensure a broken pyproject.toml in a parent directory is reported as a config error."""
    (tmp_path / "pyproject.toml").write_text("[project\n", encoding="utf-8")
    with pytest.raises(SourceMapConfigError, match="pyproject.toml"):
        load_config_file()


def test_unknown_config_key_is_rejected(tmp_path: Path) -> None:
    """Ensure unknown keys are not silently ignored."""
    (tmp_path / "srcmap.toml").write_text('source_dir = "x"\n', encoding="utf-8")
    with pytest.raises(SourceMapConfigError):
        resolve_config()


def test_empty_prefix_is_rejected() -> None:
    """Ensure an empty unavailable prefix cannot be configured."""
    with pytest.raises(SourceMapConfigError, match="unavailable_prefix"):
        resolve_config(SourceMapConfigSpec(unavailable_prefix=""))


def test_source_path_joins_relative_names(tmp_path: Path) -> None:
    """Ensure relative source names are joined onto the source root."""
    config = SourceMapConfig(source_root=str(tmp_path))
    assert config.source_path("A.sol") == tmp_path / "A.sol"
    absolute = tmp_path / "abs" / "B.sol"
    assert config.source_path(str(absolute)) == absolute
    assert SourceMapConfig().source_path("A.sol") == Path("A.sol")
