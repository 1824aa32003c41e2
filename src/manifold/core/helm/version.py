"""Parse ``helm version`` output."""
from __future__ import annotations

import re
import subprocess
from dataclasses import dataclass
from typing import Tuple

from manifold.core.exceptions import RenderError
from manifold.core.utils.subprocess import run_command

_BUILD_INFO_RE = re.compile(
    r'(?i)Version:"(?P<version>v\d+\.\d+\.\d+)".*GitCommit:"(?P<git_commit>[^"]+)"'
    r'.*GitTreeState:"(?P<git_tree_state>[^"]+)".*GoVersion:"(?P<go_version>[^"]+)"'
)
_SEMVER_RE = re.compile(r"(?i)v(\d+)\.(\d+)\.(\d+)")


@dataclass(frozen=True, slots=True)
class BuildInfo:
    version: str = ""
    git_commit: str = ""
    git_tree_state: str = ""
    go_version: str = ""

    @classmethod
    def from_output(cls, output: str) -> "BuildInfo":
        match = _BUILD_INFO_RE.search(output)
        if match is None:
            return cls()
        return cls(**match.groupdict())

    def parse(self) -> Tuple[int, int, int]:
        """Return ``(major, minor, fix)``; zeros when the version is unknown."""
        match = _SEMVER_RE.search(self.version)
        if match is None:
            return (0, 0, 0)
        major, minor, fix = (int(g) for g in match.groups())
        return (major, minor, fix)

    def is_helm3(self) -> bool:
        return self.version.lower().startswith("v3.")

    def is_helm2(self) -> bool:
        return self.version.lower().startswith("v2.")


def version(*, helm: str = "helm", timeout: float = 30.0) -> BuildInfo:
    """Run ``helm version`` and parse its output.

    Raises:
        RenderError: when helm fails or writes to stderr.
    """
    try:
        result = run_command([helm, "version"], capture_output=True, timeout=timeout)
    except (OSError, subprocess.TimeoutExpired) as exc:
        raise RenderError(f"running {helm} version: {exc}") from exc
    stderr = (result.stderr or "").strip()
    if result.returncode != 0 or stderr:
        raise RenderError(f"running {helm} version: {stderr or f'exit {result.returncode}'}")
    return BuildInfo.from_output(result.stdout or "")


__all__ = ["BuildInfo", "version"]
