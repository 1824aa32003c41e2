"""Tests for logging setup."""
from __future__ import annotations

import logging
from pathlib import Path


class TestConfigureStdlibLogging:
    def test_writes_to_file(self, tmp_path: Path) -> None:
        from manifold.core.utils.stdlib_logging import configure_stdlib_logging

        log_path = tmp_path / "logs" / "manifold.log"
        handler = configure_stdlib_logging(log_path=log_path, level="DEBUG")
        logging.getLogger("manifold.test").info("hello from test")
        handler.flush()

        content = log_path.read_text(encoding="utf-8")
        assert "INFO manifold.test: hello from test" in content

    def test_idempotent_for_same_target(self, tmp_path: Path) -> None:
        from manifold.core.utils.stdlib_logging import configure_stdlib_logging

        first = configure_stdlib_logging(log_path=tmp_path / "a.log")
        second = configure_stdlib_logging(log_path=tmp_path / "a.log")
        assert first is second
        assert logging.getLogger().handlers.count(first) == 1

    def test_switching_target_replaces_handler(self, tmp_path: Path) -> None:
        from manifold.core.utils.stdlib_logging import configure_stdlib_logging

        first = configure_stdlib_logging(log_path=tmp_path / "a.log")
        second = configure_stdlib_logging()
        assert first is not second
        assert first not in logging.getLogger().handlers
