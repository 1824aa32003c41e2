"""Chart-repository source: pulls a chart with ``helm pull``."""
from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path

from manifold.core.exceptions import FetchError, ValidationError
from manifold.core.helm.template import DEFAULT_HELM, DEFAULT_TIMEOUT, pull
from manifold.core.utils.io import ensure_directory, remove_path
from manifold.core.utils.locator import locator_to_path

from .base import LATEST, FetchMethod, Source

logger = logging.getLogger(__name__)


class ChartRepositorySource(Source):
    """Installs ``chart`` from ``repo`` into ``<install_root>/<codec(repo)>/<version|latest>/<chart>``."""

    method = FetchMethod.HELM

    def __init__(
        self,
        repo: str,
        chart: str,
        *,
        install_root: Path,
        version: str = "",
        helm: str = DEFAULT_HELM,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        super().__init__(install_root)
        self.repo = repo
        self.chart = chart
        self.version = version
        self.helm = helm
        self.timeout = timeout

    def describe(self) -> str:
        return f"helm chart {self.chart}@{self.version or LATEST} from {self.repo}"

    def validate(self) -> None:
        if not self.repo:
            raise ValidationError("helm source requires a repository URL")
        if not self.chart:
            raise ValidationError("helm source requires a chart name (path)", context={"repo": self.repo})

    def destination(self) -> Path:
        self.validate()
        return self.install_root / locator_to_path(self.repo) / (self.version or LATEST) / self.chart

    def fetch(self) -> None:
        self.validate()
        dest = self.destination()
        logger.info("pulling %s into %s", self.describe(), dest)
        try:
            remove_path(dest)
            ensure_directory(dest.parent)
            with tempfile.TemporaryDirectory(prefix="manifold-helm-") as tmp:
                pulled = pull(self.repo, self.chart, self.version, Path(tmp), helm=self.helm, timeout=self.timeout)
                if not pulled.is_dir():
                    raise FetchError(
                        f"helm pull did not produce {pulled}",
                        context={"repo": self.repo, "chart": self.chart},
                    )
                shutil.move(str(pulled), str(dest))
        except OSError as exc:
            raise FetchError(f"installing {self.describe()} into {dest}: {exc}", context={"destination": str(dest)}) from exc


__all__ = ["ChartRepositorySource"]
