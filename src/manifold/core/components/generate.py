"""Generate step: render every installed component to one manifest file."""
from __future__ import annotations

import logging
import os
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Deque, List, Optional

from manifold.core.config import ManifoldSettings
from manifold.core.exceptions import ManifoldError, ValidationError
from manifold.core.render.base import Renderer
from manifold.core.render.helm import TemplatingRenderer
from manifold.core.render.static import RawManifestRenderer
from manifold.core.sources import FetchMethod

from .config import apply_overlay
from .hooks import run_hook
from .install import enqueue_children, remote_root
from .model import Component, ComponentKind, load_component
from .report import InstallReport

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GenerateResult:
    logical_path: str
    output_path: Optional[Path] = None
    bytes_written: int = 0
    skipped: bool = False


class Generator:
    """Renders a previously installed tree into ``<workdir>/_generated``."""

    def __init__(self, workdir: Optional[Path] = None, settings: Optional[ManifoldSettings] = None) -> None:
        self.workdir = Path(os.path.abspath(workdir or Path.cwd()))
        self.settings = settings or ManifoldSettings(self.workdir)

    @property
    def output_root(self) -> Path:
        return self.workdir / self.settings.generate_dir

    def renderer_for(self, component: Component) -> Optional[Renderer]:
        """Build the renderer for ``component`` (None for plain nested components)."""
        physical = component.physical_path
        assert physical is not None
        if component.kind is ComponentKind.HELM:
            chart = physical
            if component.path and component.method in (FetchMethod.GIT, FetchMethod.LOCAL):
                chart = physical / component.path
            cfg = component.settings
            return TemplatingRenderer(
                component.ancestry,
                chart,
                self.output_root,
                self.settings.component_separator,
                values=cfg.values,
                set_values=cfg.set_values,
                namespace=cfg.namespace,
                inject_namespace=cfg.inject_namespace,
                pre_install_dir=self.settings.pre_install_dir,
                helm=self.settings.helm_binary,
                timeout=self.settings.helm_timeout,
            )
        if component.kind is ComponentKind.STATIC:
            manifests = physical
            if component.path and component.method is FetchMethod.GIT:
                manifests = physical / component.path
            return RawManifestRenderer(
                component.ancestry,
                manifests,
                self.output_root,
                self.settings.component_separator,
            )
        return None

    def generate(self, start_path: Path | str, report: Optional[InstallReport] = None) -> List[GenerateResult]:
        """Render the tree rooted at ``start_path``.

        Physical paths come from ``report`` (or the report file in the
        working directory); nothing is fetched.

        Raises:
            ValidationError: when a component is missing from the report.
            ManifoldError: on the first fatal render or hook error.
        """
        if report is None:
            report = InstallReport.load(self.workdir / self.settings.report_file)
        start = Path(start_path)
        if not start.is_absolute():
            start = self.workdir / start
        logger.info("starting generation at %s", start)

        queue: Deque[Component] = deque([load_component(start, "")])
        results: List[GenerateResult] = []
        while queue:
            first = queue.popleft()
            try:
                results.append(self.generate_component(first, queue, report))
            except ManifoldError as exc:
                raise exc.attach_component(first.logical_path)
        return results

    def generate_component(
        self,
        first: Component,
        queue: Deque[Component],
        report: InstallReport,
    ) -> GenerateResult:
        first.validate()
        if first.settings.disabled:
            logger.info("skipping disabled component %s", first.logical_path)
            return GenerateResult(logical_path=first.logical_path, skipped=True)

        enqueue_children(first, queue)
        physical = report.physical_path(first.logical_path, self.workdir)
        if physical is None:
            raise ValidationError(
                f"component {first.logical_path} is not installed; run install first",
                component=first.logical_path,
            )
        first.physical_path = physical

        if first.is_remote and first.kind is ComponentKind.COMPONENT:
            remote = load_component(remote_root(first), first.logical_path)
            remote.config = apply_overlay(remote.config, first.settings.overlay_for(remote.name))
            queue.append(remote)

        run_hook(first, "before-generate", shell=self.settings.shell, timeout=self.settings.hook_timeout)
        renderer = self.renderer_for(first)
        output_path: Optional[Path] = None
        written = 0
        if renderer is not None:
            renderer.validate()
            written = renderer.generate()
            output_path = renderer.output_path
            logger.info("generated %s (%d bytes) for %s", output_path, written, first.logical_path)
        run_hook(first, "after-generate", shell=self.settings.shell, timeout=self.settings.hook_timeout)
        return GenerateResult(logical_path=first.logical_path, output_path=output_path, bytes_written=written)


def generate(start_path: Path | str, workdir: Optional[Path] = None) -> List[GenerateResult]:
    """Render the tree at ``start_path`` from the install report in ``workdir``."""
    return Generator(workdir).generate(start_path)


__all__ = ["GenerateResult", "Generator", "generate"]
