"""SSH-agent collaborator: load key identities once before SSH clones."""
from __future__ import annotations

import logging
import re
import subprocess
import threading
from dataclasses import dataclass
from typing import List, Optional

from manifold.core.utils.subprocess import run_command

logger = logging.getLogger(__name__)

_IDENTITY_RE = re.compile(r"(?i)Identity added: (?P<path>\S+) \((?P<comment>\S+)\)")


@dataclass(frozen=True, slots=True)
class PlainIdentity:
    path: str
    comment: str


def parse_identities(output: str) -> List[PlainIdentity]:
    """Parse ``Identity added: PATH (COMMENT)`` lines from ``ssh-add`` output."""
    identities: List[PlainIdentity] = []
    for line in output.splitlines():
        match = _IDENTITY_RE.search(line)
        if match:
            identities.append(PlainIdentity(path=match["path"], comment=match["comment"]))
    return identities


def is_ssh_locator(url: str) -> bool:
    """True for ``ssh://`` URLs and scp-style ``user@host:path`` locators."""
    lowered = url.strip().lower()
    if lowered.startswith("ssh://") or lowered.startswith("git+ssh://"):
        return True
    return "://" not in lowered and re.match(r"^[^@\s/]+@[^:\s/]+:", url.strip()) is not None


class SshAgent:
    """Runs ``ssh-add`` at most once per instance (thread-safe)."""

    def __init__(self, *, binary: str = "ssh-add", timeout: float = 30.0, enabled: bool = True) -> None:
        self.binary = binary
        self.timeout = timeout
        self.enabled = enabled
        self._lock = threading.Lock()
        self._identities: Optional[List[PlainIdentity]] = None

    @property
    def loaded(self) -> bool:
        return self._identities is not None

    def ensure_identities(self) -> List[PlainIdentity]:
        """Load default identities into the agent once.

        Failures are logged as warnings; the caller proceeds and the clone
        itself reports authentication problems.
        """
        with self._lock:
            if self._identities is not None:
                return list(self._identities)
            self._identities = []
            if not self.enabled:
                return []
            try:
                # ssh-add reports on stderr.
                result = run_command(
                    [self.binary],
                    capture_output=True,
                    timeout=self.timeout,
                    input="",
                )
            except (OSError, subprocess.TimeoutExpired) as exc:
                logger.warning("could not run %s: %s", self.binary, exc)
                return []
            output = f"{result.stdout or ''}\n{result.stderr or ''}"
            if result.returncode != 0:
                logger.warning("%s exited %s: %s", self.binary, result.returncode, output.strip())
                return []
            self._identities = parse_identities(output)
            logger.debug("ssh agent holds %d added identit(ies)", len(self._identities))
            return list(self._identities)


__all__ = ["PlainIdentity", "SshAgent", "is_ssh_locator", "parse_identities"]
