"""Install report: the logical path to physical path mapping of one install run."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from manifold.core.exceptions import ConsistencyError, ValidationError
from manifold.core.utils.io import read_json, write_json_atomic

from .model import Component

logger = logging.getLogger(__name__)

DEFAULT_NOTES = (
    "This file is auto generated by manifold install",
    "This file is consumed by manifold generate",
    "The format of this file is unstable and internal; do not build tooling around it",
    "Order of components matters",
    "Paths are relative to the directory install ran in; do not move this file",
    "Do not modify unless you know what you are doing!",
)


def _display_path(path: Path, workdir: Path) -> str:
    path = Path(path)
    if path.is_relative_to(workdir):
        return path.relative_to(workdir).as_posix() or "."
    return str(path)


@dataclass
class InstallReport:
    """Ordered logical path to physical path mapping (visit order)."""

    components: Dict[str, str] = field(default_factory=dict)
    notes: List[str] = field(default_factory=lambda: list(DEFAULT_NOTES))

    @classmethod
    def from_components(cls, visited: Iterable[Component], workdir: Path) -> "InstallReport":
        """Build a report, rejecting divergent duplicates.

        A logical path seen twice with the same physical path is recorded once.

        Raises:
            ConsistencyError: when a logical path maps to two physical paths.
        """
        workdir = Path(os.path.abspath(workdir))
        report = cls()
        for component in visited:
            physical = _display_path(component.physical_path or workdir, workdir)
            existing = report.components.get(component.logical_path)
            if existing is not None and existing != physical:
                raise ConsistencyError(
                    f"duplicate installation reported for logical path {component.logical_path}: "
                    f"existing {existing}, new {physical}",
                    context={"existing": existing, "new": physical},
                    component=component.logical_path,
                )
            report.components[component.logical_path] = physical
        return report

    def to_dict(self) -> Dict[str, object]:
        return {"_notes": list(self.notes), "components": dict(self.components)}

    @classmethod
    def from_dict(cls, data: object) -> "InstallReport":
        if not isinstance(data, dict) or not isinstance(data.get("components"), dict):
            raise ValidationError("install report must be a mapping with a 'components' mapping")
        components = {str(k): str(v) for k, v in data["components"].items()}
        notes = [str(n) for n in data.get("_notes") or []]
        return cls(components=components, notes=notes)

    def write(self, path: Path) -> Path:
        write_json_atomic(Path(path), self.to_dict())
        logger.info("wrote install report to %s", path)
        return Path(path)

    @classmethod
    def load(cls, path: Path) -> "InstallReport":
        """Read a report written by :meth:`write`.

        Raises:
            ValidationError: when the file is missing or malformed.
        """
        path = Path(path)
        if not path.exists():
            raise ValidationError(f"install report {path} not found; run install first", context={"path": str(path)})
        try:
            data = read_json(path)
        except ValueError as exc:
            raise ValidationError(f"install report {path} is not valid JSON: {exc}", context={"path": str(path)}) from exc
        return cls.from_dict(data)

    def physical_path(self, logical_path: str, workdir: Path) -> Optional[Path]:
        """Absolute physical path recorded for ``logical_path`` (None if absent)."""
        recorded = self.components.get(logical_path)
        if recorded is None:
            return None
        path = Path(recorded)
        return path if path.is_absolute() else Path(workdir) / path

    def __len__(self) -> int:
        return len(self.components)


__all__ = ["DEFAULT_NOTES", "InstallReport"]
