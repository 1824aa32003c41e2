"""Raw-manifest renderer: concatenates fragment files verbatim."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, List, Sequence

from manifold.core.exceptions import RenderError, ValidationError
from manifold.core.utils.io import is_yaml_file, read_text

from .base import Renderer

logger = logging.getLogger(__name__)

FRAGMENT_SEPARATOR = "\n---\n"


def iter_yaml_files(root: Path) -> Iterator[Path]:
    """Yield ``*.yaml``/``*.yml`` files under ``root`` in lexical walk order.

    Entries of each directory are visited by name, descending into
    subdirectories where they sort. A file ``root`` yields itself when it is a
    YAML file.
    """
    root = Path(root)
    if not root.is_dir():
        if is_yaml_file(root):
            yield root
        return
    for entry in sorted(root.iterdir(), key=lambda p: p.name):
        if entry.is_dir():
            yield from iter_yaml_files(entry)
        elif is_yaml_file(entry):
            yield entry


class RawManifestRenderer(Renderer):
    """Writes every YAML fragment under ``manifest_path`` joined by ``---``.

    No decode/re-encode round trip happens; fragment text is copied as is.
    """

    def __init__(
        self,
        ancestry: Sequence[str],
        manifest_path: Path,
        output_root: Path,
        separator: str = "_",
    ) -> None:
        super().__init__(ancestry, output_root, separator)
        self.manifest_path = Path(manifest_path)

    def validate(self) -> None:
        self._validate_ancestry()
        if not self.manifest_path.exists():
            raise ValidationError(
                f"manifest path for static component does not exist: {self.manifest_path}",
                context={"manifest_path": str(self.manifest_path)},
            )

    def collect(self) -> List[str]:
        fragments: List[str] = []
        for path in iter_yaml_files(self.manifest_path):
            try:
                fragments.append(read_text(path))
            except OSError as exc:
                raise RenderError(f"reading YAML file at {path}: {exc}", context={"path": str(path)}) from exc
        logger.debug("collected %d static fragment(s) from %s", len(fragments), self.manifest_path)
        return fragments

    def render_text(self) -> str:
        return FRAGMENT_SEPARATOR.join(self.collect())


__all__ = ["FRAGMENT_SEPARATOR", "RawManifestRenderer", "iter_yaml_files"]
