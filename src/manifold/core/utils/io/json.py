"""JSON I/O utilities with atomic writes."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict

from .core import atomic_write

DEFAULT_JSON_CONFIG: Dict[str, Any] = {
    "indent": 2,
    "ensure_ascii": False,
    "encoding": "utf-8",
}


def _json_writer(data: Any, sort_keys: bool) -> Callable[[Any], None]:
    def _writer(f):
        json.dump(
            data,
            f,
            indent=DEFAULT_JSON_CONFIG["indent"],
            sort_keys=sort_keys,
            ensure_ascii=DEFAULT_JSON_CONFIG["ensure_ascii"],
        )
        f.write("\n")

    return _writer


_MISSING = object()  # Sentinel for unset default


def read_json(file_path: Path | str, *, default: Any = _MISSING) -> Any:
    """Read JSON from ``file_path``.

    Args:
        file_path: Path to JSON file
        default: Value to return if file doesn't exist (optional).
                 If not provided, FileNotFoundError is raised.
    """
    path = Path(file_path)
    if not path.exists():
        if default is not _MISSING:
            return default
        raise FileNotFoundError(f"JSON file not found: {path}")
    with open(path, "r", encoding=DEFAULT_JSON_CONFIG["encoding"]) as f:
        return json.load(f)


def write_json_atomic(file_path: Path | str, data: Any, *, sort_keys: bool = False) -> None:
    """Atomically write ``data`` as indented JSON.

    Key order is preserved unless ``sort_keys`` is set; callers that need a
    meaningful order (e.g. install reports) rely on insertion order.
    """
    atomic_write(
        Path(file_path),
        _json_writer(data, sort_keys),
        encoding=DEFAULT_JSON_CONFIG["encoding"],
    )


__all__ = ["read_json", "write_json_atomic"]
