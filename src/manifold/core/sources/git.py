"""Version-control source backed by the ``git`` CLI."""
from __future__ import annotations

import logging
import os
import subprocess
import threading
from pathlib import Path
from typing import Dict, Mapping, Optional
from urllib.parse import quote, urlsplit, urlunsplit

from manifold.core.exceptions import FetchError, ValidationError
from manifold.core.utils.io import ensure_directory, remove_path
from manifold.core.utils.locator import locator_to_path
from manifold.core.utils.redaction import redact_git_args, redact_text_credentials, redact_url_credentials
from manifold.core.utils.subprocess import run_command

from .base import LATEST, FetchMethod, Source
from .ssh import SshAgent, is_ssh_locator

logger = logging.getLogger(__name__)


class AccessTokens:
    """Thread-safe map of repository URL to personal access token."""

    def __init__(self, tokens: Optional[Mapping[str, str]] = None) -> None:
        self._lock = threading.Lock()
        self._tokens: Dict[str, str] = dict(tokens or {})

    def get(self, repo: str) -> Optional[str]:
        with self._lock:
            return self._tokens.get(repo)

    def set(self, repo: str, token: str) -> None:
        with self._lock:
            self._tokens[repo] = token

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)


def with_access_token(url: str, token: str) -> str:
    """Return ``url`` with ``token`` as basic-auth credentials (HTTP(S) only)."""
    parts = urlsplit(url)
    if parts.scheme.lower() not in {"http", "https"} or not token:
        return url
    host = parts.hostname or ""
    netloc = f"{host}:{parts.port}" if parts.port else host
    return urlunsplit(
        (parts.scheme, f"manifold:{quote(token, safe='')}@{netloc}", parts.path, parts.query, parts.fragment)
    )


class GitSource(Source):
    """Clones ``url`` into ``<install_root>/<codec(url)>/<sha|branch|latest>``.

    After cloning (and checking out ``sha`` when given) HEAD is verified
    against the request; a mismatch is a :class:`FetchError`.
    """

    method = FetchMethod.GIT

    def __init__(
        self,
        url: str,
        *,
        install_root: Path,
        sha: str = "",
        branch: str = "",
        access_token: Optional[str] = None,
        ssh_agent: Optional[SshAgent] = None,
        git: str = "git",
        timeout: float = 600.0,
    ) -> None:
        super().__init__(install_root)
        self.url = url
        self.sha = sha
        self.branch = branch
        self.access_token = access_token
        self.ssh_agent = ssh_agent
        self.git = git
        self.timeout = timeout

    def describe(self) -> str:
        ref = self.sha or self.branch or LATEST
        return f"git {redact_url_credentials(self.url)}@{ref}"

    def validate(self) -> None:
        if not self.url:
            raise ValidationError("git source requires a URL")
        if self.sha and self.branch:
            raise ValidationError(
                f'only one of SHA or branch can be provided, "{self.sha}" and "{self.branch}" provided respectively',
                context={"sha": self.sha, "branch": self.branch},
            )

    def destination(self) -> Path:
        self.validate()
        return self.install_root / locator_to_path(self.url) / (self.sha or self.branch or LATEST)

    def fetch(self) -> None:
        self.validate()
        dest = self.destination()
        try:
            remove_path(dest)
            ensure_directory(dest.parent)
        except OSError as exc:
            raise FetchError(f"preparing {dest}: {exc}", context={"destination": str(dest)}) from exc

        if self.ssh_agent is not None and is_ssh_locator(self.url):
            self.ssh_agent.ensure_identities()

        clone_url = with_access_token(self.url, self.access_token) if self.access_token else self.url
        args = ["clone"]
        if self.branch:
            args += ["--branch", self.branch, "--single-branch", "--depth", "1"]
        args += ["--", clone_url, str(dest)]
        logger.info("cloning %s into %s", redact_url_credentials(self.url), dest)
        self._run_git(args, cwd=dest.parent)

        if self.sha:
            self._run_git(["checkout", "--detach", self.sha], cwd=dest)
        self.verify_head(dest)

    def verify_head(self, repo: Path) -> None:
        """Check that HEAD in ``repo`` matches the requested SHA or branch."""
        if self.sha:
            head = self._run_git(["rev-parse", "HEAD"], cwd=repo).stdout.strip().lower()
            if not head.startswith(self.sha.strip().lower()):
                raise FetchError(
                    f"repo at {repo} not checked out to target SHA {self.sha}: is at {head}",
                    context={"sha": self.sha, "head": head},
                )
        elif self.branch:
            head_ref = self._run_git(["rev-parse", "--symbolic-full-name", "HEAD"], cwd=repo).stdout.strip()
            if not head_ref.endswith(self.branch):
                raise FetchError(
                    f"repo at {repo} not checked out to target branch {self.branch}: is at {head_ref}",
                    context={"branch": self.branch, "head": head_ref},
                )

    def _run_git(self, args: list[str], cwd: Path) -> subprocess.CompletedProcess[str]:
        """Run git, raising :class:`FetchError` with redacted details on failure."""
        env = os.environ.copy()
        env["GIT_TERMINAL_PROMPT"] = "0"
        safe_cmd = "git " + " ".join(redact_git_args(args))
        try:
            return run_command(
                [self.git, *args],
                cwd=cwd,
                env=env,
                timeout=self.timeout,
                capture_output=True,
                text=True,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            safe_output = redact_text_credentials(e.stderr or e.stdout or str(e))
            if self.access_token:
                safe_output = safe_output.replace(self.access_token, "<redacted>")
            raise FetchError(f"Git command failed: {safe_cmd}\n{safe_output.strip()}") from None
        except subprocess.TimeoutExpired:
            raise FetchError(f"Git command timed out after {self.timeout:g}s: {safe_cmd}") from None
        except OSError as e:
            raise FetchError(f"Git command could not start: {safe_cmd}: {e}") from e


__all__ = ["AccessTokens", "GitSource", "with_access_token"]
