"""Configuration resolution for source map builds.

Precedence, highest first: an explicit ``SourceMapConfigSpec``, environment
variables, ``srcmap.toml`` or ``[tool.srcmap]`` in ``pyproject.toml`` found in
the working directory or one of its parents, then built-in defaults.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import TypeVar

import msgspec

from serde_msgspec import StructBaseStrict, convert, validation_error_summary
from srcmap.errors import SourceMapConfigError
from utils.env_utils import env_bool, env_text
from utils.file_io import find_in_parents, read_toml

T = TypeVar("T")

LOGGER = logging.getLogger(__name__)

DEFAULT_UNAVAILABLE_PREFIX = "~"

ENV_UNAVAILABLE_PREFIX = "SRCMAP_UNAVAILABLE_PREFIX"
ENV_SOURCE_ROOT = "SRCMAP_SOURCE_ROOT"
ENV_FLUSH_TRACE = "SRCMAP_FLUSH_TRACE"


class SourceMapConfigSpec(StructBaseStrict, frozen=True):
    """Partial configuration; unset fields fall through to lower layers."""

    unavailable_prefix: str | None = None
    source_root: str | None = None
    flush_trace: bool | None = None


class SourceMapConfig(StructBaseStrict, frozen=True):
    """Resolved source map configuration."""

    unavailable_prefix: str = DEFAULT_UNAVAILABLE_PREFIX
    source_root: str | None = None
    flush_trace: bool = True

    def source_path(self, name: str) -> Path:
        """Return the on-disk path for a source name.

        Returns
        -------
        Path
            ``name`` joined onto ``source_root`` when it is relative.
        """
        path = Path(name)
        if self.source_root is None or path.is_absolute():
            return path
        return Path(self.source_root) / path


def _decode_spec(raw: Mapping[str, object], *, location: str) -> SourceMapConfigSpec:
    try:
        return convert(dict(raw), target_type=SourceMapConfigSpec)
    except msgspec.ValidationError as exc:
        msg = f"Invalid srcmap config in {location}: {validation_error_summary(exc)}"
        raise SourceMapConfigError(msg) from exc


def _read_config_toml(path: Path) -> Mapping[str, object]:
    try:
        return read_toml(path)
    except (msgspec.DecodeError, TypeError) as exc:
        msg = f"Invalid srcmap config file {path}: {exc}"
        raise SourceMapConfigError(msg) from exc


def _tool_section(raw: Mapping[str, object]) -> Mapping[str, object] | None:
    tool = raw.get("tool")
    if not isinstance(tool, Mapping):
        return None
    section = tool.get("srcmap")
    if not isinstance(section, Mapping):
        return None
    return section


def load_config_file(path: Path | None = None) -> SourceMapConfigSpec:
    """Load the file layer of the configuration.

    Parameters
    ----------
    path
        Explicit ``srcmap.toml`` or ``pyproject.toml`` path. When omitted the
        working directory and its parents are searched.

    Returns
    -------
    SourceMapConfigSpec
        Parsed file configuration, empty when no file applies.
    """
    if path is not None:
        raw = _read_config_toml(path)
        if path.name == "pyproject.toml":
            section = _tool_section(raw)
            if section is None:
                return SourceMapConfigSpec()
            return _decode_spec(section, location=f"{path}:tool.srcmap")
        return _decode_spec(raw, location=str(path))
    srcmap_path = find_in_parents("srcmap.toml")
    if srcmap_path is not None:
        return _decode_spec(_read_config_toml(srcmap_path), location=str(srcmap_path))
    pyproject_path = find_in_parents("pyproject.toml")
    if pyproject_path is not None:
        section = _tool_section(_read_config_toml(pyproject_path))
        if section is not None:
            return _decode_spec(section, location=f"{pyproject_path}:tool.srcmap")
    return SourceMapConfigSpec()


def _env_spec() -> SourceMapConfigSpec:
    return SourceMapConfigSpec(
        unavailable_prefix=env_text(ENV_UNAVAILABLE_PREFIX, strip=False),
        source_root=env_text(ENV_SOURCE_ROOT),
        flush_trace=env_bool(ENV_FLUSH_TRACE),
    )


def _first(*values: T | None, default: T) -> T:
    for value in values:
        if value is not None:
            return value
    return default


def resolve_config(
    spec: SourceMapConfigSpec | None = None,
    *,
    config_file: Path | None = None,
) -> SourceMapConfig:
    """Resolve configuration from explicit, environment and file layers.

    Returns
    -------
    SourceMapConfig
        Fully resolved configuration.

    Raises
    ------
    SourceMapConfigError
        Raised when a config file is not valid TOML or does not match the
        config schema, or when the resolved unavailable-source prefix is empty.
    """
    explicit = spec or SourceMapConfigSpec()
    env = _env_spec()
    file_spec = load_config_file(config_file)
    defaults = SourceMapConfig()
    resolved = SourceMapConfig(
        unavailable_prefix=_first(
            explicit.unavailable_prefix,
            env.unavailable_prefix,
            file_spec.unavailable_prefix,
            default=defaults.unavailable_prefix,
        ),
        source_root=_first(
            explicit.source_root,
            env.source_root,
            file_spec.source_root,
            default=defaults.source_root,
        ),
        flush_trace=_first(
            explicit.flush_trace,
            env.flush_trace,
            file_spec.flush_trace,
            default=defaults.flush_trace,
        ),
    )
    if not resolved.unavailable_prefix:
        msg = "unavailable_prefix must be a non-empty string."
        raise SourceMapConfigError(msg)
    LOGGER.debug("Resolved srcmap config: %r", resolved)
    return resolved


__all__ = [
    "DEFAULT_UNAVAILABLE_PREFIX",
    "ENV_FLUSH_TRACE",
    "ENV_SOURCE_ROOT",
    "ENV_UNAVAILABLE_PREFIX",
    "SourceMapConfig",
    "SourceMapConfigSpec",
    "load_config_file",
    "resolve_config",
]
