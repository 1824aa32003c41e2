"""Layered configuration: bundled defaults, project file, environment overrides."""
from __future__ import annotations

from .manager import ConfigManager
from .settings import ManifoldSettings

__all__ = ["ConfigManager", "ManifoldSettings"]
