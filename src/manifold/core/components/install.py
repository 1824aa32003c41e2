"""Resolution and installation engine.

Walks the component tree breadth-first with an explicit FIFO worklist.
Remote components are fetched through the clone coordinator and, when they
are plain nested components, the fetched definition is spliced onto the tail
of the queue with the declaring component's logical path as ancestry.
"""
from __future__ import annotations

import logging
import os
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Deque, Hashable, List, Mapping, Optional, Union

from manifold.core.config import ManifoldSettings
from manifold.core.exceptions import FetchError, HookError, ManifoldError, ValidationError
from manifold.core.sources import (
    AccessTokens,
    ChartRepositorySource,
    CloneCoordinator,
    FetchMethod,
    GitSource,
    HttpSource,
    LocalSource,
    Source,
    SshAgent,
)

from .config import apply_overlay
from .hooks import run_hook
from .model import Component, ComponentKind, join_logical, load_component
from .report import InstallReport

logger = logging.getLogger(__name__)


@dataclass
class InstallResult:
    visited: List[Component]
    report: InstallReport
    report_path: Path

    @property
    def logical_paths(self) -> List[str]:
        return [c.logical_path for c in self.visited]


def enqueue_children(parent: Component, queue: Deque[Component]) -> None:
    """Stamp ``parent``'s declared children and append them to ``queue``.

    Children inherit the parent's current (provisional) physical path and the
    configuration overlay the parent declares for their name.
    """
    parent_config = parent.settings
    for sub in parent.subcomponents:
        sub.logical_path = join_logical(parent.logical_path, sub.name)
        sub.physical_path = parent.physical_path
        sub.config = apply_overlay(sub.config, parent_config.overlay_for(sub.name))
        queue.append(sub)
        logger.debug("enqueued %s", sub.logical_path)


def remote_root(component: Component) -> Path:
    """Directory holding the definition of a fetched nested component."""
    assert component.physical_path is not None
    return component.physical_path / component.path if component.path else component.physical_path


class Installer:
    """Installs a component tree rooted at a directory.

    Usage:
        result = Installer(Path.cwd()).install("path/to/root")
        print(result.report.components)
    """

    def __init__(
        self,
        workdir: Optional[Path] = None,
        settings: Optional[ManifoldSettings] = None,
        coordinator: Optional[CloneCoordinator] = None,
        access_tokens: Union[AccessTokens, Mapping[str, str], None] = None,
        ssh_agent: Optional[SshAgent] = None,
    ) -> None:
        self.workdir = Path(os.path.abspath(workdir or Path.cwd()))
        self.settings = settings or ManifoldSettings(self.workdir)
        self.coordinator = coordinator or CloneCoordinator()
        if isinstance(access_tokens, AccessTokens):
            self.access_tokens = access_tokens
        else:
            self.access_tokens = AccessTokens(access_tokens)
        self.ssh_agent = ssh_agent or SshAgent(
            binary=self.settings.ssh_add_binary,
            timeout=self.settings.default_timeout,
            enabled=self.settings.load_ssh_identities,
        )

    @property
    def install_root(self) -> Path:
        return self.workdir / self.settings.install_dir

    def _resolve(self, path: Path | str) -> Path:
        path = Path(path)
        return path if path.is_absolute() else self.workdir / path

    def source_for(self, component: Component) -> Optional[Source]:
        """Build the source backend for ``component`` (None when it has no method)."""
        method = component.method
        if method is FetchMethod.NONE:
            return None
        if method is FetchMethod.GIT:
            return GitSource(
                component.source,
                install_root=self.install_root,
                sha=component.version,
                branch=component.branch,
                access_token=self.access_tokens.get(component.source),
                ssh_agent=self.ssh_agent,
                git=self.settings.git_binary,
                timeout=self.settings.git_timeout,
            )
        if method is FetchMethod.HELM:
            return ChartRepositorySource(
                component.source,
                component.path,
                install_root=self.install_root,
                version=component.version,
                helm=self.settings.helm_binary,
                timeout=self.settings.helm_timeout,
            )
        if method is FetchMethod.LOCAL:
            base = component.physical_path or self.workdir
            return LocalSource(
                base / component.source if component.source else "",
                install_root=self.install_root,
                workdir=self.workdir,
                local_dir=self.settings.local_dir,
            )
        if method is FetchMethod.HTTP:
            return HttpSource(component.source, install_root=self.install_root, timeout=self.settings.http_timeout)
        raise ValidationError(f'unsupported method "{method.value}"')

    def install(self, start_path: Path | str) -> InstallResult:
        """Install the tree rooted at ``start_path`` and write the install report.

        Raises:
            ManifoldError: on the first fatal error; no report is written.
        """
        start = self._resolve(start_path)
        logger.info("starting installation at %s", start)
        root = load_component(start, "")
        visited = self.walk(root)

        report = InstallReport.from_components(visited, self.workdir)
        for logical, physical in report.components.items():
            logger.info("%s => %s", logical, physical)
        report_path = report.write(self.workdir / self.settings.report_file)
        return InstallResult(visited=visited, report=report, report_path=report_path)

    def walk(self, root: Component, *, run: Optional[Hashable] = None) -> List[Component]:
        """Drain the worklist starting at ``root`` and return components in visit order.

        Every walk is its own fetch run: a destination is fetched at most once
        per walk and again on the next one.
        """
        if run is None:
            run = self.coordinator.new_run()
        queue: Deque[Component] = deque([root])
        visited: List[Component] = []
        while queue:
            first = queue.popleft()
            try:
                self.install_component(first, queue, run=run)
            except ManifoldError as exc:
                raise exc.attach_component(first.logical_path)
            visited.append(first)
        return visited

    def install_component(self, first: Component, queue: Deque[Component], *, run: Optional[Hashable] = None) -> None:
        logger.info("installing component %s", first.logical_path)
        first.validate()
        enqueue_children(first, queue)

        try:
            run_hook(first, "before-install", shell=self.settings.shell, timeout=self.settings.hook_timeout)
        except HookError as exc:
            logger.warning("before-install hook failed for %s: %s", first.logical_path, exc.message)

        source = self.source_for(first)
        if source is not None:
            logger.debug("validating coordinate %s", source.describe())
            source.validate()
            destination = source.destination()
            first.physical_path = destination
            self.fetch(source, destination, run=run)
            logger.info("installed %s to %s", first.logical_path, destination)

            if first.kind is ComponentKind.COMPONENT:
                remote = load_component(remote_root(first), first.logical_path)
                remote.config = apply_overlay(remote.config, first.settings.overlay_for(remote.name))
                queue.append(remote)
                logger.debug("enqueued remote component %s", remote.logical_path)

        run_hook(first, "after-install", shell=self.settings.shell, timeout=self.settings.hook_timeout)

    def fetch(self, source: Source, destination: Path, *, run: Optional[Hashable] = None) -> bool:
        """Clean then fetch ``source`` once per destination and run.

        Returns:
            True when this call performed the fetch.
        """

        def _work() -> None:
            try:
                source.clean()
            except OSError as exc:
                raise FetchError(f"cleaning {destination}: {exc}", context={"destination": str(destination)}) from exc
            source.fetch()

        performed = self.coordinator.run(destination, _work, run=run)
        if not performed:
            logger.debug("%s already fetched into %s", source.describe(), destination)
        return performed


def install(start_path: Path | str, workdir: Optional[Path] = None) -> InstallResult:
    """Install the tree at ``start_path`` using configuration from ``workdir``."""
    return Installer(workdir).install(start_path)


__all__ = ["InstallResult", "Installer", "enqueue_children", "install", "remote_root"]
