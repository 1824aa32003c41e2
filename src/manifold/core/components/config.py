"""Typed view over a component's free-form ``config`` mapping."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Tuple

from manifold.core.exceptions import ValidationError
from manifold.core.utils.merge import deep_merge
from manifold.core.utils.values import Value, ensure_mapping

KNOWN_KEYS = ("namespace", "injectNamespace", "disabled", "values", "set", "subcomponents")


def _as_bool(raw: Any, key: str) -> bool:
    if raw is None:
        return False
    if isinstance(raw, bool):
        return raw
    raise ValidationError(f"config.{key} must be a boolean, got {type(raw).__name__}", context={"key": key})


@dataclass(frozen=True, slots=True)
class ComponentConfig:
    """Recognised configuration keys; anything else is kept in ``extra``."""

    namespace: str = ""
    inject_namespace: bool = False
    disabled: bool = False
    values: Dict[str, Value] = field(default_factory=dict)
    set_values: Tuple[str, ...] = ()
    subcomponents: Dict[str, Dict[str, Value]] = field(default_factory=dict)
    extra: Dict[str, Value] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "ComponentConfig":
        raw = ensure_mapping(data, "config")

        namespace = raw.get("namespace") or ""
        if not isinstance(namespace, str):
            raise ValidationError("config.namespace must be a string", context={"key": "namespace"})

        set_raw = raw.get("set") or []
        if not isinstance(set_raw, list) or not all(isinstance(s, str) for s in set_raw):
            raise ValidationError("config.set must be a list of key=value strings", context={"key": "set"})

        subs_raw = ensure_mapping(raw.get("subcomponents"), "config.subcomponents")
        subcomponents = {
            name: ensure_mapping(overlay, f"config.subcomponents.{name}")
            for name, overlay in subs_raw.items()
        }

        return cls(
            namespace=namespace,
            inject_namespace=_as_bool(raw.get("injectNamespace"), "injectNamespace"),
            disabled=_as_bool(raw.get("disabled"), "disabled"),
            values=ensure_mapping(raw.get("values"), "config.values"),
            set_values=tuple(set_raw),
            subcomponents=subcomponents,
            extra={k: v for k, v in raw.items() if k not in KNOWN_KEYS},
        )

    def overlay_for(self, name: str) -> Dict[str, Value]:
        """Configuration overlay declared for the child named ``name``."""
        return dict(self.subcomponents.get(name, {}))


def apply_overlay(config: Mapping[str, Value], overlay: Mapping[str, Value]) -> Dict[str, Value]:
    """Deep-merge a parent's overlay onto a child's own configuration."""
    if not overlay:
        return dict(config)
    return deep_merge(dict(config), dict(overlay))


__all__ = ["ComponentConfig", "KNOWN_KEYS", "apply_overlay"]
