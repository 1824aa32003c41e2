"""Schema validation for component definition files.

Definitions are validated against JSON Schema (Draft 2020-12) expressed in
YAML and bundled under ``manifold.data/schemas/``.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from jsonschema import Draft202012Validator

from manifold.core.exceptions import DefinitionError
from manifold.core.utils.io import read_yaml
from manifold.data import get_data_path

COMPONENT_SCHEMA = "component.schema.yaml"


@lru_cache(maxsize=8)
def load_schema(schema_name: str) -> Dict[str, Any]:
    """Load a bundled schema dict.

    Automatically appends ``.yaml`` if no extension is present.

    Raises:
        FileNotFoundError: If schema file doesn't exist.
        ValueError: If schema is not a YAML mapping.
    """
    lowered = schema_name.lower()
    if not (lowered.endswith(".yaml") or lowered.endswith(".yml")):
        schema_name = f"{schema_name}.yaml"

    schema_path = get_data_path("schemas", schema_name)
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema not found: {schema_name} (searched {schema_path.parent})")

    schema = read_yaml(schema_path, default=None, raise_on_error=True)
    if not isinstance(schema, dict):
        raise ValueError(f"Schema must be a YAML mapping, got {type(schema).__name__}")
    return schema


def validate_payload_safe(payload: Any, schema_name: str = COMPONENT_SCHEMA) -> List[str]:
    """Return readable error messages for ``payload`` (empty if valid)."""
    validator = Draft202012Validator(load_schema(schema_name))
    errors: List[str] = []
    for error in sorted(validator.iter_errors(payload), key=lambda e: [str(p) for p in e.path]):
        if error.path:
            path_str = ".".join(str(p) for p in error.path)
            errors.append(f"{path_str}: {error.message}")
        else:
            errors.append(error.message)
    return errors


def validate_payload(
    payload: Any,
    schema_name: str = COMPONENT_SCHEMA,
    *,
    source: Optional[Path] = None,
) -> None:
    """Validate a payload against a bundled schema.

    Args:
        payload: Decoded definition data.
        schema_name: Name of schema to validate against.
        source: File the payload was read from (used in error messages).

    Raises:
        DefinitionError: If validation fails.
    """
    errors = validate_payload_safe(payload, schema_name)
    if errors:
        where = f" in {source}" if source is not None else ""
        raise DefinitionError(
            f"invalid component definition{where}: " + "; ".join(errors),
            context={"schema": schema_name, "errors": errors, "file": str(source) if source else None},
        )


__all__ = ["COMPONENT_SCHEMA", "load_schema", "validate_payload", "validate_payload_safe"]
