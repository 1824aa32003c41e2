"""Tests for run_command timeouts and process-group cleanup."""
from __future__ import annotations

import shutil
import subprocess
import sys
from pathlib import Path

import pytest

pytestmark = pytest.mark.skipif(shutil.which("sh") is None, reason="requires a POSIX shell")


class TestRunCommand:
    def test_captures_output(self, tmp_path: Path) -> None:
        from manifold.core.utils.subprocess import run_command

        result = run_command(["sh", "-c", "echo hi; echo err >&2"], cwd=tmp_path, capture_output=True, timeout=10)
        assert result.returncode == 0
        assert result.stdout.strip() == "hi"
        assert result.stderr.strip() == "err"

    def test_check_raises_on_failure(self, tmp_path: Path) -> None:
        from manifold.core.utils.subprocess import run_command

        with pytest.raises(subprocess.CalledProcessError):
            run_command(["sh", "-c", "exit 3"], cwd=tmp_path, capture_output=True, timeout=10, check=True)

    @pytest.mark.skipif(sys.platform == "win32", reason="process groups are POSIX-only here")
    def test_timeout_kills_process(self, tmp_path: Path) -> None:
        """A hung child is terminated and TimeoutExpired is raised promptly."""
        from manifold.core.utils.subprocess import run_command

        with pytest.raises(subprocess.TimeoutExpired):
            run_command(["sh", "-c", "sleep 30"], cwd=tmp_path, capture_output=True, timeout=0.5)
