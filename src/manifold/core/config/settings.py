"""Typed accessors over the merged Manifold configuration.

Provides cached access to path names, timeouts and external binaries.
"""
from __future__ import annotations

from functools import cached_property
from pathlib import Path
from typing import Any, Dict, Optional

from .manager import ConfigManager


class ManifoldSettings:
    """Typed, cached view over the ``paths``, ``timeouts``, ``binaries`` and ``ssh`` sections.

    Usage:
        settings = ManifoldSettings(repo_root=Path("/path/to/project"))
        print(settings.install_dir)
    """

    def __init__(self, repo_root: Optional[Path] = None, *, config: Optional[Dict[str, Any]] = None) -> None:
        self.repo_root = Path(repo_root) if repo_root is not None else Path.cwd()
        self._config = config if config is not None else ConfigManager(self.repo_root).load_config()

    def _section(self, name: str) -> Dict[str, Any]:
        section = self._config.get(name)
        if not isinstance(section, dict):
            raise RuntimeError(f"{name} section missing from configuration")
        return section

    def _required(self, section: str, key: str) -> Any:
        data = self._section(section)
        if key not in data or data[key] is None:
            raise RuntimeError(f"{section}.{key} missing from configuration")
        return data[key]

    # ---- paths -------------------------------------------------------------

    @cached_property
    def install_dir(self) -> str:
        return str(self._required("paths", "install_dir"))

    @cached_property
    def local_dir(self) -> str:
        return str(self._required("paths", "local_dir"))

    @cached_property
    def generate_dir(self) -> str:
        return str(self._required("paths", "generate_dir"))

    @cached_property
    def report_file(self) -> str:
        return str(self._required("paths", "report_file"))

    @cached_property
    def component_separator(self) -> str:
        return str(self._required("paths", "component_separator"))

    @cached_property
    def pre_install_dir(self) -> str:
        return str(self._required("paths", "pre_install_dir"))

    @property
    def install_root(self) -> Path:
        """Absolute install root (``<workdir>/_components`` by default)."""
        return self.repo_root / self.install_dir

    @property
    def output_root(self) -> Path:
        """Absolute render output root (``<workdir>/_generated`` by default)."""
        return self.repo_root / self.generate_dir

    @property
    def report_path(self) -> Path:
        return self.repo_root / self.report_file

    # ---- timeouts ----------------------------------------------------------

    @cached_property
    def git_timeout(self) -> float:
        return float(self._required("timeouts", "git_seconds"))

    @cached_property
    def helm_timeout(self) -> float:
        return float(self._required("timeouts", "helm_seconds"))

    @cached_property
    def http_timeout(self) -> float:
        return float(self._required("timeouts", "http_seconds"))

    @cached_property
    def hook_timeout(self) -> float:
        return float(self._required("timeouts", "hook_seconds"))

    @cached_property
    def default_timeout(self) -> float:
        return float(self._required("timeouts", "default_seconds"))

    # ---- binaries ----------------------------------------------------------

    @cached_property
    def git_binary(self) -> str:
        return str(self._required("binaries", "git"))

    @cached_property
    def helm_binary(self) -> str:
        return str(self._required("binaries", "helm"))

    @cached_property
    def ssh_add_binary(self) -> str:
        return str(self._required("binaries", "ssh_add"))

    @cached_property
    def shell(self) -> str:
        return str(self._required("binaries", "shell"))

    # ---- ssh ---------------------------------------------------------------

    @cached_property
    def load_ssh_identities(self) -> bool:
        return bool(self._section("ssh").get("load_identities", True))


__all__ = ["ManifoldSettings"]
