"""JSON Schema validation helpers."""
from __future__ import annotations

from .validation import COMPONENT_SCHEMA, load_schema, validate_payload, validate_payload_safe

__all__ = ["COMPONENT_SCHEMA", "load_schema", "validate_payload", "validate_payload_safe"]
