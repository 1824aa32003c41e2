"""The closed value type used for configuration and manifest documents.

Anything decoded from YAML or JSON is funnelled through :func:`ensure_value`
so that merge, render and encode logic only ever sees::

    None | bool | int | float | str | list[Value] | dict[str, Value]
"""
from __future__ import annotations

import datetime
from typing import Any, Dict, List, Union

from manifold.core.exceptions import ValidationError

Scalar = Union[None, bool, int, float, str]
Value = Union[Scalar, List["Value"], Dict[str, "Value"]]
Document = Dict[str, Value]


def _key(key: Any, where: str) -> str:
    if isinstance(key, str):
        return key
    # YAML 1.1 turns bare yes/no/on/off keys into booleans.
    if isinstance(key, bool):
        return "true" if key else "false"
    if isinstance(key, (int, float)):
        return str(key)
    raise ValidationError(
        f"unsupported mapping key {key!r} ({type(key).__name__}) at {where}",
        context={"where": where},
    )


def ensure_value(obj: Any, where: str = "$") -> Value:
    """Return ``obj`` converted into the closed value set.

    Args:
        obj: Decoded YAML/JSON data
        where: Location used in error messages (JSONPath-like)

    Raises:
        ValidationError: if ``obj`` holds a type outside the value set
    """
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    if isinstance(obj, (datetime.date, datetime.datetime)):
        return obj.isoformat()
    if isinstance(obj, dict):
        out: Dict[str, Value] = {}
        for k, v in obj.items():
            key = _key(k, where)
            out[key] = ensure_value(v, f"{where}.{key}")
        return out
    if isinstance(obj, (list, tuple)):
        return [ensure_value(v, f"{where}[{i}]") for i, v in enumerate(obj)]
    raise ValidationError(
        f"unsupported value of type {type(obj).__name__} at {where}",
        context={"where": where},
    )


def ensure_mapping(obj: Any, where: str = "$") -> Dict[str, Value]:
    """Like :func:`ensure_value` but requires a mapping (``None`` becomes ``{}``)."""
    if obj is None:
        return {}
    value = ensure_value(obj, where)
    if not isinstance(value, dict):
        raise ValidationError(
            f"expected a mapping at {where}, found {type(value).__name__}",
            context={"where": where},
        )
    return value


__all__ = ["Scalar", "Value", "Document", "ensure_value", "ensure_mapping"]
