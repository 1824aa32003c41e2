"""File I/O helpers (atomic writes, JSON, YAML)."""
from __future__ import annotations

from .core import (
    PathLike,
    atomic_write,
    ensure_directory,
    ensure_parent_dir,
    read_text,
    remove_path,
    write_text,
)
from .json import read_json, write_json_atomic
from .yaml import dump_yaml_string, is_yaml_file, read_yaml

__all__ = [
    "PathLike",
    "atomic_write",
    "ensure_directory",
    "ensure_parent_dir",
    "read_text",
    "remove_path",
    "write_text",
    "read_json",
    "write_json_atomic",
    "read_yaml",
    "dump_yaml_string",
    "is_yaml_file",
]
