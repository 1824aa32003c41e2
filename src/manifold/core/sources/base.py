"""Source backend contract.

A source materializes one external resource onto disk at a deterministic
destination under the install root.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path

from manifold.core.exceptions import ValidationError
from manifold.core.utils.io import remove_path

logger = logging.getLogger(__name__)

LATEST = "latest"


class FetchMethod(str, Enum):
    """Closed set of fetch methods a component may declare."""

    NONE = ""
    GIT = "git"
    HELM = "helm"
    LOCAL = "local"
    HTTP = "http"

    @classmethod
    def parse(cls, raw: object) -> "FetchMethod":
        value = "" if raw is None else str(raw).strip().lower()
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(
                f'unknown fetch method "{raw}"',
                context={"method": raw, "allowed": [m.value for m in cls if m.value]},
            ) from None


class Source(ABC):
    """Materializes one resource kind under ``install_root``."""

    method: FetchMethod = FetchMethod.NONE

    def __init__(self, install_root: Path) -> None:
        self.install_root = Path(install_root)

    @abstractmethod
    def validate(self) -> None:
        """Raise :class:`ValidationError` when coordinates are missing or inconsistent."""

    @abstractmethod
    def destination(self) -> Path:
        """Return the absolute path this source installs to."""

    @abstractmethod
    def fetch(self) -> None:
        """Clear :meth:`destination` and materialize the resource there."""

    def clean(self) -> None:
        """Remove everything at :meth:`destination`."""
        target = self.destination()
        logger.debug("cleaning %s", target)
        remove_path(target)

    def describe(self) -> str:
        return f"{self.method.value} source"


__all__ = ["LATEST", "FetchMethod", "Source"]
