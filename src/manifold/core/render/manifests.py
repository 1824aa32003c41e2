"""Rendered manifest documents: decode, merge, namespace injection, encode.

Pre-install fragments (CRD-style declarations the templating backend skips)
always precede templated output in a component's merged document list.
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import yaml

from manifold.core.exceptions import ConsistencyError, ValidationError
from manifold.core.utils.io import dump_yaml_string
from manifold.core.utils.values import Document, ensure_mapping

logger = logging.getLogger(__name__)

DOCUMENT_SEPARATOR = "---\n"


class DocumentOrigin(str, Enum):
    """Which path of a renderer produced a document."""

    PRE_INSTALL = "pre-install"
    TEMPLATED = "templated"


@dataclass(frozen=True, slots=True)
class RenderedDocument:
    """One decoded manifest plus its provenance."""

    body: Document
    component: str
    origin: DocumentOrigin


def decode_documents(text: str, *, source: Optional[Path | str] = None) -> List[Optional[Document]]:
    """Decode a multi-document YAML stream.

    Empty documents are kept as ``None`` so callers can decide whether to
    filter them (see :func:`merge_documents`).

    Raises:
        ConsistencyError: when the stream is not valid YAML or a document is
            not a mapping.
    """
    where = str(source) if source is not None else "<stream>"
    try:
        raw_docs = list(yaml.safe_load_all(text))
    except yaml.YAMLError as exc:
        raise ConsistencyError(
            f"decoding YAML documents from {where}: {exc}", context={"source": where}
        ) from exc

    documents: List[Optional[Document]] = []
    for idx, raw in enumerate(raw_docs):
        if raw is None:
            documents.append(None)
            continue
        if not isinstance(raw, dict):
            raise ConsistencyError(
                f"document {idx} in {where} is a {type(raw).__name__}, expected a mapping",
                context={"source": where, "index": idx},
            )
        try:
            documents.append(ensure_mapping(raw, f"{where}[{idx}]"))
        except ValidationError as exc:
            raise ConsistencyError(exc.message, context={"source": where, "index": idx}) from exc
    return documents


def encode_documents(documents: Iterable[Document]) -> str:
    """Encode documents as one YAML stream (``---`` separated, key order kept)."""
    return DOCUMENT_SEPARATOR.join(dump_yaml_string(doc) for doc in documents)


def _non_empty(groups: Iterable[Sequence[Optional[Document]]]) -> Iterable[Document]:
    for group in groups:
        for doc in group:
            if doc:
                yield doc


def merge_documents(
    pre_install: Iterable[Sequence[Optional[Document]]],
    templated: Iterable[Sequence[Optional[Document]]],
    *,
    component: str = "",
) -> List[RenderedDocument]:
    """Merge pre-install and templated document lists into one ordered list.

    Empty entries are dropped. Every pre-install document precedes every
    templated document; order within each group is preserved and duplicates
    are kept.

    Args:
        pre_install: Document lists decoded from pre-install fragments.
        templated: Document lists produced by the templating backend.
        component: Logical path recorded as provenance.
    """
    merged = [
        RenderedDocument(body=doc, component=component, origin=DocumentOrigin.PRE_INSTALL)
        for doc in _non_empty(pre_install)
    ]
    merged.extend(
        RenderedDocument(body=doc, component=component, origin=DocumentOrigin.TEMPLATED)
        for doc in _non_empty(templated)
    )
    return merged


def inject_namespace(document: Document, namespace: str) -> Document:
    """Return a copy of ``document`` with ``metadata.namespace`` set.

    A missing ``metadata`` mapping is created. A document that already
    declares the same namespace is returned unchanged (as a copy).

    Raises:
        ConsistencyError: when ``metadata`` is not a mapping or already holds a
            different non-empty namespace.
    """
    out = copy.deepcopy(document)
    metadata = out.setdefault("metadata", {})
    if metadata is None:
        metadata = out["metadata"] = {}
    if not isinstance(metadata, dict):
        raise ConsistencyError(
            f"metadata of manifest is a {type(metadata).__name__}, expected a mapping",
            context={"namespace": namespace, "kind": out.get("kind")},
        )
    existing = metadata.get("namespace")
    if existing and existing != namespace:
        raise ConsistencyError(
            f'manifest {out.get("kind")}/{metadata.get("name")} already declares '
            f'namespace "{existing}", refusing to inject "{namespace}"',
            context={"namespace": namespace, "existing": existing},
        )
    metadata["namespace"] = namespace
    return out


__all__ = [
    "DOCUMENT_SEPARATOR",
    "DocumentOrigin",
    "RenderedDocument",
    "decode_documents",
    "encode_documents",
    "merge_documents",
    "inject_namespace",
]
