"""Thin wrapper around the ``helm`` CLI (template, pull, repo lookup)."""
from __future__ import annotations

import json
import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from manifold.core.exceptions import FetchError, RenderError
from manifold.core.render.manifests import decode_documents
from manifold.core.utils.subprocess import run_command
from manifold.core.utils.values import Document

logger = logging.getLogger(__name__)

DEFAULT_HELM = "helm"
DEFAULT_TIMEOUT = 300.0


@dataclass(frozen=True, slots=True)
class TemplateOptions:
    """Options for ``helm template``.

    Produces::

        helm template [--repo R] [--version V] [--create-namespace --namespace N]
            [--set S]... [--values F]... [RELEASE] CHART
    """

    chart: str
    release: str = ""
    repo: str = ""
    version: str = ""
    namespace: str = ""
    values: Sequence[str] = field(default_factory=tuple)
    set_values: Sequence[str] = field(default_factory=tuple)


def _run_helm(
    args: List[str],
    *,
    helm: str,
    timeout: float,
    cwd: Optional[Path] = None,
) -> subprocess.CompletedProcess:
    return run_command(
        [helm, *args],
        cwd=cwd,
        timeout=timeout,
        capture_output=True,
        text=True,
        check=False,
    )


def find_repo_name_by_url(url: str, *, helm: str = DEFAULT_HELM, timeout: float = DEFAULT_TIMEOUT) -> str:
    """Return the local alias of the chart repository at ``url`` (``""`` if unknown)."""
    try:
        result = _run_helm(["repo", "list", "-o", "json"], helm=helm, timeout=timeout)
    except (OSError, subprocess.TimeoutExpired) as exc:
        raise RenderError(f"listing helm repositories: {exc}") from exc
    if result.returncode != 0:
        # helm exits non-zero when no repositories are configured.
        logger.debug("helm repo list failed: %s", (result.stderr or "").strip())
        return ""
    try:
        repos = json.loads(result.stdout or "[]")
    except json.JSONDecodeError as exc:
        raise RenderError(f"parsing output of helm repo list: {exc}") from exc
    wanted = url.rstrip("/")
    for repo in repos or []:
        if isinstance(repo, dict) and str(repo.get("url", "")).rstrip("/") == wanted:
            return str(repo.get("name", ""))
    return ""


def build_template_args(opts: TemplateOptions, *, repo_alias: str = "") -> List[str]:
    """Return the ``helm template`` argv (without the binary) for ``opts``."""
    args = ["template"]
    chart = opts.chart
    if opts.repo:
        if repo_alias:
            chart = f"{repo_alias}/{opts.chart}"
        else:
            args += ["--repo", opts.repo]
    if opts.version:
        args += ["--version", opts.version]
    if opts.namespace:
        args += ["--create-namespace", "--namespace", opts.namespace]
    for item in opts.set_values:
        args += ["--set", item]
    for values_file in opts.values:
        args += ["--values", str(values_file)]
    if opts.release:
        args.append(opts.release)
    args.append(chart)
    return args


def template(
    opts: TemplateOptions,
    *,
    helm: str = DEFAULT_HELM,
    timeout: float = DEFAULT_TIMEOUT,
) -> List[Optional[Document]]:
    """Run ``helm template`` and decode its stdout.

    Raises:
        RenderError: on a non-zero exit or ANY output on stderr.
        ConsistencyError: when stdout holds a non-mapping document.
    """
    alias = find_repo_name_by_url(opts.repo, helm=helm, timeout=timeout) if opts.repo else ""
    args = build_template_args(opts, repo_alias=alias)
    logger.debug("running %s %s", helm, " ".join(args))
    try:
        result = _run_helm(args, helm=helm, timeout=timeout)
    except (OSError, subprocess.TimeoutExpired) as exc:
        raise RenderError(f"running helm template for {opts.chart}: {exc}", context={"chart": opts.chart}) from exc

    stderr = (result.stderr or "").strip()
    if result.returncode != 0:
        raise RenderError(
            f"helm template exited {result.returncode} for {opts.chart}: {stderr}",
            context={"chart": opts.chart, "returncode": result.returncode},
        )
    if stderr:
        raise RenderError(
            f"helm template wrote to stderr for {opts.chart}: {stderr}",
            context={"chart": opts.chart},
        )
    return decode_documents(result.stdout or "", source=f"helm template {opts.chart}")


def pull(
    repo: str,
    chart: str,
    version: str,
    dest: Path,
    *,
    helm: str = DEFAULT_HELM,
    timeout: float = DEFAULT_TIMEOUT,
) -> Path:
    """Pull ``chart`` from ``repo`` and untar it into ``dest``.

    Returns:
        Path of the unpacked chart (``dest/<chart>``).

    Raises:
        FetchError: when helm fails.
    """
    args = ["pull", chart, "--repo", repo]
    if version:
        args += ["--version", version]
    args += ["--untar", "--untardir", str(dest)]
    try:
        result = _run_helm(args, helm=helm, timeout=timeout)
    except (OSError, subprocess.TimeoutExpired) as exc:
        raise FetchError(f"pulling helm chart {chart} from {repo}: {exc}", context={"repo": repo, "chart": chart}) from exc
    if result.returncode != 0:
        raise FetchError(
            f"pulling helm chart {chart}@{version or 'latest'} from {repo}: {(result.stderr or '').strip()}",
            context={"repo": repo, "chart": chart, "version": version},
        )
    return Path(dest) / chart


__all__ = [
    "TemplateOptions",
    "build_template_args",
    "find_repo_name_by_url",
    "template",
    "pull",
]
