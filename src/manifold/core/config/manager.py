"""
Manifold configuration management (YAML layers + environment overrides).
"""
from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from manifold.core.utils.io import read_yaml
from manifold.core.utils.merge import deep_merge
from manifold.data import get_data_path

logger = logging.getLogger(__name__)

ENV_PREFIX = "MANIFOLD_"
PROJECT_CONFIG_DIR = ".manifold"
PROJECT_CONFIG_FILE = "config.yaml"


class ConfigManager:
    """Load and merge Manifold configuration.

    Configuration sources (highest to lowest priority):
    1. Environment variables: MANIFOLD_<section>__<key>
    2. Project config: <workdir>/.manifold/config.yaml
    3. Bundled defaults: manifold.data/config/defaults.yaml
    """

    ARRAY_APPEND_MARKER = object()

    def __init__(self, repo_root: Optional[Path] = None) -> None:
        self.repo_root = Path(repo_root) if repo_root is not None else Path.cwd()
        self.core_config_path = get_data_path("config", "defaults.yaml")
        self.project_config_path = self.repo_root / PROJECT_CONFIG_DIR / PROJECT_CONFIG_FILE

    def load_yaml(self, path: Path) -> Dict[str, Any]:
        # Fail closed: configuration must never silently ignore invalid YAML.
        data = read_yaml(path, default={}, raise_on_error=True)
        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {path} must contain a mapping")
        return data

    def _as_bool(self, v: str) -> Optional[bool]:
        low = v.strip().lower()
        if low in {"true", "false"}:
            return low == "true"
        return None

    def _as_int(self, v: str) -> Optional[int]:
        if re.fullmatch(r"[-+]?\d+", v.strip() or " "):
            return int(v)
        return None

    def _as_float(self, v: str) -> Optional[float]:
        s = v.strip()
        if re.fullmatch(r"[-+]?\d*\.\d+", s) or re.fullmatch(r"[-+]?\d+\.\d*", s):
            return float(s)
        return None

    def _as_json(self, v: str) -> Optional[Any]:
        s = v.strip()
        if (s.startswith("{") and s.endswith("}")) or (s.startswith("[") and s.endswith("]")):
            try:
                return json.loads(s)
            except json.JSONDecodeError:
                return None
        return None

    def _coerce_type(self, value: str) -> Any:
        for caster in (self._as_bool, self._as_int, self._as_float, self._as_json):
            result = caster(value)
            if result is not None:
                return result
        return value.strip()

    def _parse_env_key(self, raw: str) -> List[Union[str, int, object]]:
        segs = raw.split("__") if "__" in raw else raw.split("_")
        processed: List[Union[str, int, object]] = []
        for seg in segs:
            if seg == "":
                raise ValueError(f"Malformed {ENV_PREFIX}* key: empty segment in '{raw}'.")
            if seg.isdigit():
                processed.append(int(seg))
            elif seg.upper() == "APPEND":
                processed.append(self.ARRAY_APPEND_MARKER)
            else:
                processed.append(seg.lower())
        return processed

    def _iter_env_overrides(self) -> Iterator[Tuple[List[Union[str, int, object]], Any]]:
        for key in sorted(os.environ.keys()):
            if not key.startswith(ENV_PREFIX):
                continue
            raw = key[len(ENV_PREFIX):]
            if not raw:
                raise ValueError(f"Malformed {ENV_PREFIX}* key")
            yield self._parse_env_key(raw), self._coerce_type(os.environ[key])

    def _set_nested(self, root: Dict[str, Any], path: List[Union[str, int, object]], value: Any) -> None:
        cur: Any = root
        for i, part in enumerate(path[:-1]):
            if isinstance(part, int) or part is self.ARRAY_APPEND_MARKER:
                raise ValueError("Invalid path: list index/APPEND may only appear at leaf")
            if not isinstance(cur, dict):
                raise ValueError("Path traverses non-dict container")
            nxt = path[i + 1]
            if part not in cur:
                cur[part] = [] if (isinstance(nxt, int) or nxt is self.ARRAY_APPEND_MARKER) else {}
            cur = cur[part]

        leaf = path[-1]
        if leaf is self.ARRAY_APPEND_MARKER:
            if not isinstance(cur, list):
                raise ValueError("APPEND requires list")
            cur.append(value)
        elif isinstance(leaf, int):
            if not isinstance(cur, list):
                raise ValueError("Index assignment requires list")
            while len(cur) <= leaf:
                cur.append(None)
            cur[leaf] = value
        else:
            if not isinstance(cur, dict):
                raise ValueError("Key assignment requires dict")
            cur[leaf] = value

    def apply_env_overrides(self, cfg: Dict[str, Any]) -> None:
        for path, typed_value in self._iter_env_overrides():
            logger.debug("applying environment override %s", path)
            self._set_nested(cfg, path, typed_value)

    def load_config(self) -> Dict[str, Any]:
        """Return the merged configuration for :attr:`repo_root`."""
        cfg = self.load_yaml(self.core_config_path)
        if self.project_config_path.exists():
            cfg = deep_merge(cfg, self.load_yaml(self.project_config_path))
        self.apply_env_overrides(cfg)
        return cfg


__all__ = ["ConfigManager", "ENV_PREFIX", "PROJECT_CONFIG_DIR", "PROJECT_CONFIG_FILE"]
