from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

from manifold.core.utils.io import ensure_directory

_CONFIGURED_TARGET: str | None = None
_MANIFOLD_HANDLER: logging.Handler | None = None

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _level_from_name(name: str) -> int:
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else logging.INFO


def configure_stdlib_logging(*, log_path: Optional[Path] = None, level: str = "INFO") -> logging.Handler:
    """Route Manifold logging to ``log_path`` (or stderr when omitted).

    Idempotent per-process: if already configured for the same target, the
    existing handler is returned. Switching targets replaces the handler that
    this function installed and leaves foreign handlers alone.
    """
    global _CONFIGURED_TARGET, _MANIFOLD_HANDLER

    target = str(Path(log_path).resolve()) if log_path is not None else "<stderr>"
    root = logging.getLogger()
    root.setLevel(_level_from_name(level))

    if _CONFIGURED_TARGET == target and _MANIFOLD_HANDLER is not None:
        _MANIFOLD_HANDLER.setLevel(_level_from_name(level))
        return _MANIFOLD_HANDLER

    if _MANIFOLD_HANDLER is not None:
        root.removeHandler(_MANIFOLD_HANDLER)
        _MANIFOLD_HANDLER.close()
        _MANIFOLD_HANDLER = None

    handler: logging.Handler
    if log_path is not None:
        ensure_directory(Path(target).parent)
        handler = logging.FileHandler(target, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(_level_from_name(level))
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)

    _MANIFOLD_HANDLER = handler
    _CONFIGURED_TARGET = target
    return handler


def reset_stdlib_logging_for_tests() -> None:
    """Test-only: remove the handler installed by :func:`configure_stdlib_logging`."""
    global _CONFIGURED_TARGET, _MANIFOLD_HANDLER
    if _MANIFOLD_HANDLER is not None:
        logging.getLogger().removeHandler(_MANIFOLD_HANDLER)
        _MANIFOLD_HANDLER.close()
    logging.getLogger().setLevel(logging.WARNING)
    _CONFIGURED_TARGET = None
    _MANIFOLD_HANDLER = None


__all__ = ["LOG_FORMAT", "configure_stdlib_logging", "reset_stdlib_logging_for_tests"]
