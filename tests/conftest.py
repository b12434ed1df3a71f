"""Shared pytest fixtures for srcmap tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from srcmap.config import ENV_FLUSH_TRACE, ENV_SOURCE_ROOT, ENV_UNAVAILABLE_PREFIX, SourceMapConfig


@pytest.fixture(autouse=True)
def _isolate_srcmap_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep host env vars and config files out of config resolution."""
    for name in (ENV_UNAVAILABLE_PREFIX, ENV_SOURCE_ROOT, ENV_FLUSH_TRACE):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def default_config() -> SourceMapConfig:
    """Return the built-in default configuration."""
    return SourceMapConfig()


@pytest.fixture
def write_source(tmp_path: Path) -> Callable[[str, str | bytes], Path]:
    """Return a helper that writes a source file under ``tmp_path``."""

    def _write(name: str, data: str | bytes) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(data, str):
            path.write_text(data, encoding="utf-8")
        else:
            path.write_bytes(data)
        return path

    return _write
