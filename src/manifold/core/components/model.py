"""Component tree data model and definition-file loading."""
from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

from manifold.core.exceptions import DefinitionError, ValidationError
from manifold.core.schemas.validation import validate_payload
from manifold.core.sources.base import FetchMethod
from manifold.core.utils.values import Value, ensure_mapping

from .config import ComponentConfig

logger = logging.getLogger(__name__)

DEFINITION_FILE_RE = re.compile(r"(?i)^component\.(ya?ml|json)$")
_NAME_RE = re.compile(r"^[^/]+$")

HOOK_NAMES = ("before-install", "after-install", "before-generate", "after-generate")


class ComponentKind(str, Enum):
    """How a component is rendered."""

    COMPONENT = "component"
    HELM = "helm"
    STATIC = "static"

    @classmethod
    def parse(cls, raw: object) -> "ComponentKind":
        value = "" if raw is None else str(raw).strip().lower()
        if value == "":
            return cls.COMPONENT
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(
                f'unknown component type "{raw}"',
                context={"type": raw, "allowed": [k.value for k in cls]},
            ) from None


def validate_name(name: str) -> None:
    """Reject empty names and names containing a path separator."""
    separators = {"/", os.sep} | ({os.altsep} if os.altsep else set())
    if not isinstance(name, str) or not _NAME_RE.match(name) or any(s in name for s in separators):
        raise ValidationError(
            f'invalid component name "{name}": must be non-empty and contain no path separator',
            context={"name": name},
        )


def join_logical(parent: str, name: str) -> str:
    return f"{parent}/{name}" if parent else name


@dataclass(frozen=True, slots=True)
class Hooks:
    before_install: Tuple[str, ...] = ()
    after_install: Tuple[str, ...] = ()
    before_generate: Tuple[str, ...] = ()
    after_generate: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "Hooks":
        data = data or {}
        return cls(**{name.replace("-", "_"): tuple(data.get(name) or ()) for name in HOOK_NAMES})

    def to_dict(self) -> Dict[str, List[str]]:
        out: Dict[str, List[str]] = {}
        for name in HOOK_NAMES:
            commands = self.commands(name)
            if commands:
                out[name] = list(commands)
        return out

    def commands(self, hook: str) -> Tuple[str, ...]:
        if hook not in HOOK_NAMES:
            raise ValueError(f"unknown hook {hook!r}")
        return getattr(self, hook.replace("-", "_"))


@dataclass(slots=True)
class Component:
    """One node of the component tree.

    ``logical_path`` and ``physical_path`` are derived during a run: the
    engine stamps them when the node is enqueued and replaces the provisional
    physical path with the fetch destination for remote components.
    """

    name: str
    kind: ComponentKind = ComponentKind.COMPONENT
    method: FetchMethod = FetchMethod.NONE
    source: str = ""
    path: str = ""
    version: str = ""
    branch: str = ""
    hooks: Hooks = field(default_factory=Hooks)
    config: Dict[str, Value] = field(default_factory=dict)
    subcomponents: List["Component"] = field(default_factory=list)
    logical_path: str = ""
    physical_path: Optional[Path] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Component":
        version = data.get("version")
        return cls(
            name=str(data.get("name") or ""),
            kind=ComponentKind.parse(data.get("type")),
            method=FetchMethod.parse(data.get("method")),
            source=str(data.get("source") or ""),
            path=str(data.get("path") or ""),
            version="" if version is None else str(version),
            branch=str(data.get("branch") or ""),
            hooks=Hooks.from_dict(data.get("hooks")),
            config=ensure_mapping(data.get("config"), "config"),
            subcomponents=[cls.from_dict(sub) for sub in data.get("subcomponents") or []],
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name, "type": self.kind.value}
        if self.method is not FetchMethod.NONE:
            data["method"] = self.method.value
        for key in ("source", "path", "version", "branch"):
            if getattr(self, key):
                data[key] = getattr(self, key)
        hooks = self.hooks.to_dict()
        if hooks:
            data["hooks"] = hooks
        if self.config:
            data["config"] = dict(self.config)
        if self.subcomponents:
            data["subcomponents"] = [sub.to_dict() for sub in self.subcomponents]
        return data

    @property
    def ancestry(self) -> List[str]:
        return self.logical_path.split("/") if self.logical_path else []

    @property
    def settings(self) -> ComponentConfig:
        return ComponentConfig.from_dict(self.config)

    @property
    def is_remote(self) -> bool:
        return self.method is not FetchMethod.NONE

    def validate(self) -> None:
        validate_name(self.name)

    def working_directory(self) -> Path:
        """Directory hooks run in: the physical path, or its parent for files."""
        if self.physical_path is None:
            raise ValidationError(f'component "{self.logical_path or self.name}" has no physical path')
        if self.physical_path.is_file():
            return self.physical_path.parent
        return self.physical_path


def find_definition_file(directory: Path) -> Path:
    """Return the single definition file in ``directory``.

    Raises:
        DefinitionError: when the directory is missing, holds no definition
            file, or holds more than one.
    """
    directory = Path(directory)
    if not directory.exists():
        raise DefinitionError(f'component directory "{directory}" does not exist', context={"directory": str(directory)})
    if not directory.is_dir():
        raise DefinitionError(
            f'component must be a directory containing a component.yaml/yml/json file, got "{directory}"',
            context={"directory": str(directory)},
        )
    matches = sorted(p for p in directory.iterdir() if p.is_file() and DEFINITION_FILE_RE.match(p.name))
    if not matches:
        raise DefinitionError(
            f'no component definition file found in "{directory}"', context={"directory": str(directory)}
        )
    if len(matches) > 1:
        names = ", ".join(p.name for p in matches)
        raise DefinitionError(
            f'only one component definition may exist per directory, found {names} in "{directory}"',
            context={"directory": str(directory), "files": [p.name for p in matches]},
        )
    return matches[0]


def _normalize(payload: Any) -> Any:
    # Enum fields are case-insensitive.
    if not isinstance(payload, dict):
        return payload
    out = dict(payload)
    for key in ("type", "method"):
        if isinstance(out.get(key), str):
            out[key] = out[key].strip().lower()
    subs = out.get("subcomponents")
    if isinstance(subs, list):
        out["subcomponents"] = [_normalize(sub) for sub in subs]
    return out


def read_definition(path: Path) -> Dict[str, Any]:
    """Parse and schema-validate one definition file."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DefinitionError(f'reading "{path}": {exc}', context={"file": str(path)}) from exc
    try:
        if path.suffix.lower() == ".json":
            payload = json.loads(text)
        else:
            payload = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise DefinitionError(f'parsing "{path}": {exc}', context={"file": str(path)}) from exc

    payload = _normalize(payload)
    validate_payload(payload, source=path)
    return payload


def load_component(directory: Path | str, parent_logical_path: str = "") -> Component:
    """Load the component defined in ``directory``.

    The returned component's physical path is ``directory`` (absolute) and its
    logical path is ``parent_logical_path`` joined with its name.
    """
    directory = Path(os.path.abspath(directory))
    definition = find_definition_file(directory)
    logger.debug("loading component definition %s", definition)
    try:
        component = Component.from_dict(read_definition(definition))
    except ValidationError as exc:
        exc.context.setdefault("file", str(definition))
        raise
    component.physical_path = directory
    component.logical_path = join_logical(parent_logical_path, component.name)
    return component


__all__ = [
    "DEFINITION_FILE_RE",
    "HOOK_NAMES",
    "Component",
    "ComponentKind",
    "Hooks",
    "find_definition_file",
    "join_logical",
    "load_component",
    "read_definition",
    "validate_name",
]
