"""Templating renderer: ``helm template`` output merged with pre-install fragments."""
from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Any, List, Mapping, Optional, Sequence

from manifold.core.exceptions import RenderError, ValidationError
from manifold.core.helm.template import DEFAULT_HELM, DEFAULT_TIMEOUT, TemplateOptions, template
from manifold.core.utils.io import dump_yaml_string, read_text, write_text
from manifold.core.utils.values import Document

from .base import Renderer
from .manifests import (
    RenderedDocument,
    decode_documents,
    encode_documents,
    inject_namespace,
    merge_documents,
)
from .static import iter_yaml_files

logger = logging.getLogger(__name__)


class TemplatingRenderer(Renderer):
    """Renders a chart directory through the external templating backend.

    Fragments under ``<chart>/<pre_install_dir>`` are not processed by the
    backend; they are decoded separately and placed ahead of templated output.
    """

    def __init__(
        self,
        ancestry: Sequence[str],
        chart_path: Path,
        output_root: Path,
        separator: str = "_",
        *,
        values: Optional[Mapping[str, Any]] = None,
        set_values: Sequence[str] = (),
        namespace: str = "",
        inject_namespace: bool = False,
        pre_install_dir: str = "crds",
        helm: str = DEFAULT_HELM,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        super().__init__(ancestry, output_root, separator)
        self.chart_path = Path(chart_path)
        self.values = dict(values or {})
        self.set_values = list(set_values)
        self.namespace = namespace
        self.inject_namespace = inject_namespace
        self.pre_install_dir = pre_install_dir
        self.helm = helm
        self.timeout = timeout

    @property
    def release(self) -> str:
        """Release name: the output file name without extension."""
        return self.output_path.stem

    def validate(self) -> None:
        self._validate_ancestry()
        if not self.chart_path.is_dir():
            raise ValidationError(
                f"chart path for helm component does not exist: {self.chart_path}",
                context={"chart_path": str(self.chart_path)},
            )
        if self.inject_namespace and not self.namespace:
            raise ValidationError("injectNamespace requires a namespace")

    def collect_pre_install(self) -> List[List[Optional[Document]]]:
        """Decode every fragment in the pre-install directory (walk order)."""
        root = self.chart_path / self.pre_install_dir
        if not root.is_dir():
            return []
        groups: List[List[Optional[Document]]] = []
        for path in iter_yaml_files(root):
            try:
                text = read_text(path)
            except OSError as exc:
                raise RenderError(f"reading pre-install fragment {path}: {exc}", context={"path": str(path)}) from exc
            groups.append(decode_documents(text, source=path))
        logger.debug("collected %d pre-install fragment(s) from %s", len(groups), root)
        return groups

    def render(self) -> List[RenderedDocument]:
        """Return the merged document list for this component."""
        pre_install = self.collect_pre_install()
        with tempfile.TemporaryDirectory(prefix="manifold-values-") as tmp:
            values_files: List[str] = []
            if self.values:
                values_file = Path(tmp) / "values.yaml"
                write_text(values_file, dump_yaml_string(self.values))
                values_files.append(str(values_file))
            templated = template(
                TemplateOptions(
                    chart=str(self.chart_path),
                    release=self.release,
                    namespace=self.namespace,
                    values=tuple(values_files),
                    set_values=tuple(self.set_values),
                ),
                helm=self.helm,
                timeout=self.timeout,
            )

        merged = merge_documents(pre_install, [templated], component=self.logical_path)
        if self.inject_namespace:
            merged = [
                RenderedDocument(
                    body=inject_namespace(doc.body, self.namespace),
                    component=doc.component,
                    origin=doc.origin,
                )
                for doc in merged
            ]
        return merged

    def render_text(self) -> str:
        return encode_documents(doc.body for doc in self.render())


__all__ = ["TemplatingRenderer"]
