"""Shared renderer contract and output path derivation."""
from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Sequence

from manifold.core.exceptions import RenderError, ValidationError
from manifold.core.utils.io import remove_path, write_text


def generate_path(ancestry: Sequence[str], output_root: Path, separator: str = "_") -> Path:
    """Return ``<output_root>/<ancestry joined by separator>.yaml``.

    Raises:
        ValidationError: when ``ancestry`` is empty.
    """
    if not ancestry:
        raise ValidationError("component ancestry must contain at least one name")
    return Path(output_root) / f"{separator.join(ancestry)}.yaml"


class Renderer(ABC):
    """Turns one installed component into one manifest file.

    Subclasses implement :meth:`validate` and :meth:`render_text`;
    :meth:`generate` removes prior output and writes the new text.
    """

    def __init__(self, ancestry: Sequence[str], output_root: Path, separator: str = "_") -> None:
        self.ancestry = list(ancestry)
        self.output_root = Path(output_root)
        self.separator = separator

    @property
    def output_path(self) -> Path:
        return generate_path(self.ancestry, self.output_root, self.separator)

    @property
    def logical_path(self) -> str:
        return "/".join(self.ancestry)

    def _validate_ancestry(self) -> None:
        if not self.ancestry:
            raise ValidationError("component ancestry must contain at least one name")

    @abstractmethod
    def validate(self) -> None:
        """Check inputs. Stateless and safe to call repeatedly."""

    @abstractmethod
    def render_text(self) -> str:
        """Return the manifest text to write."""

    def generate(self) -> int:
        """Write the rendered manifest to :attr:`output_path`.

        Returns:
            Number of bytes written.
        """
        self.validate()
        text = self.render_text()
        target = self.output_path
        try:
            remove_path(target)
            return write_text(target, text)
        except OSError as exc:
            raise RenderError(f"writing {target}: {exc}", context={"path": str(target)}) from exc


__all__ = ["Renderer", "generate_path"]
