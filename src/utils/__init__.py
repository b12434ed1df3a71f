"""Shared utilities for srcmap."""

from utils.env_utils import env_bool, env_text, env_value
from utils.file_io import find_in_parents, read_bytes, read_toml

__all__ = [
    "env_bool",
    "env_text",
    "env_value",
    "find_in_parents",
    "read_bytes",
    "read_toml",
]
