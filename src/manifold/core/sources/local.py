"""Local filesystem source: copies content from inside the working directory."""
from __future__ import annotations

import logging
import shutil
from pathlib import Path

from manifold.core.exceptions import FetchError, ValidationError
from manifold.core.utils.io import ensure_directory, remove_path

from .base import FetchMethod, Source

logger = logging.getLogger(__name__)

DEFAULT_LOCAL_DIR = "_local"


class LocalSource(Source):
    """Copies ``root`` (file or directory) into ``<install_root>/_local/<root relative to workdir>``.

    A file root lands at ``<destination>/<file name>``. Content is copied, never
    moved, and :meth:`clean` leaves the destination alone.
    """

    method = FetchMethod.LOCAL

    def __init__(
        self,
        root: Path | str,
        *,
        install_root: Path,
        workdir: Path,
        local_dir: str = DEFAULT_LOCAL_DIR,
    ) -> None:
        super().__init__(install_root)
        self.root = Path(root) if root else None
        self.workdir = Path(workdir)
        self.local_dir = local_dir

    def describe(self) -> str:
        return f"local {self.root}"

    def _relative_root(self) -> Path:
        assert self.root is not None
        resolved = self.root.resolve()
        boundary = self.workdir.resolve()
        if not resolved.is_relative_to(boundary):
            raise ValidationError(
                f"local source {self.root} resolves outside the working directory {boundary}",
                context={"root": str(self.root), "workdir": str(boundary)},
            )
        return resolved.relative_to(boundary)

    def validate(self) -> None:
        if self.root is None:
            raise ValidationError("local source requires a path")
        if not self.root.exists():
            raise ValidationError(f"local source {self.root} does not exist", context={"root": str(self.root)})
        self._relative_root()

    def destination(self) -> Path:
        self.validate()
        return self.install_root / self.local_dir / self._relative_root()

    def clean(self) -> None:
        logger.debug("clean is a no-op for %s", self.describe())

    def fetch(self) -> None:
        self.validate()
        assert self.root is not None
        src = self.root.resolve()
        dest = self.destination()
        install_root = self.install_root.resolve()

        def _ignore(directory: str, names: list[str]) -> set[str]:
            # Never copy the install root into itself.
            return {n for n in names if (Path(directory) / n).resolve() == install_root}

        logger.info("copying %s into %s", src, dest)
        try:
            remove_path(dest)
            if src.is_dir():
                ensure_directory(dest.parent)
                shutil.copytree(src, dest, ignore=_ignore)
            else:
                ensure_directory(dest)
                shutil.copy2(src, dest / src.name)
        except OSError as exc:
            raise FetchError(f"copying {src} into {dest}: {exc}", context={"destination": str(dest)}) from exc


__all__ = ["DEFAULT_LOCAL_DIR", "LocalSource"]
