"""Tests for component definition schema validation."""
from __future__ import annotations

import pytest


class TestComponentSchema:
    def test_minimal_definition_is_valid(self) -> None:
        from manifold.core.schemas import validate_payload_safe

        assert validate_payload_safe({"name": "root"}) == []

    def test_full_definition_is_valid(self) -> None:
        from manifold.core.schemas import validate_payload_safe

        payload = {
            "name": "app",
            "type": "helm",
            "method": "git",
            "source": "https://github.com/org/charts",
            "path": "charts/app",
            "version": "abc123",
            "hooks": {"before-install": ["echo hi"]},
            "config": {"namespace": "apps"},
            "subcomponents": [{"name": "child", "type": "static"}],
        }
        assert validate_payload_safe(payload) == []

    def test_numeric_version_allowed(self) -> None:
        from manifold.core.schemas import validate_payload_safe

        assert validate_payload_safe({"name": "c", "version": 1.2}) == []

    def test_missing_name_rejected(self) -> None:
        from manifold.core.exceptions import DefinitionError
        from manifold.core.schemas import validate_payload

        with pytest.raises(DefinitionError, match="name"):
            validate_payload({"type": "helm"})

    def test_unknown_method_rejected(self) -> None:
        from manifold.core.schemas import validate_payload_safe

        errors = validate_payload_safe({"name": "c", "method": "ftp"})
        assert errors and errors[0].startswith("method:")

    def test_unknown_hook_rejected(self) -> None:
        from manifold.core.schemas import validate_payload_safe

        assert validate_payload_safe({"name": "c", "hooks": {"during-install": ["x"]}})

    def test_nested_subcomponent_validated(self) -> None:
        """Sub-component declarations share the root shape."""
        from manifold.core.schemas import validate_payload_safe

        errors = validate_payload_safe({"name": "c", "subcomponents": [{"type": "static"}]})
        assert any(e.startswith("subcomponents.0") for e in errors)
