import os
import shutil
import sys
from pathlib import Path

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'manifold' and tests/ as 'helpers'
for p in (SRC_ROOT, TESTS_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))

from helpers.env import LocalGitRepo  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch):
    """Drop MANIFOLD_* overrides and logging handlers leaking between tests."""
    for key in list(os.environ):
        if key.startswith("MANIFOLD_"):
            monkeypatch.delenv(key, raising=False)
    yield
    from manifold.core.utils.stdlib_logging import reset_stdlib_logging_for_tests

    reset_stdlib_logging_for_tests()


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """An isolated working directory that is also the process cwd."""
    root = tmp_path / "work"
    root.mkdir()
    monkeypatch.chdir(root)
    return root


@pytest.fixture
def settings(workdir: Path):
    from manifold.core.config import ManifoldSettings

    return ManifoldSettings(workdir)


@pytest.fixture
def git_repo(tmp_path: Path) -> LocalGitRepo:
    """A local git repository outside the working directory."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    return LocalGitRepo(tmp_path / "remote-repo")
