"""Tests for the closed value type conversion."""
from __future__ import annotations

import datetime

import pytest


class TestEnsureValue:
    def test_scalars_pass_through(self) -> None:
        from manifold.core.utils.values import ensure_value

        for value in (None, True, 0, 1.5, "x"):
            assert ensure_value(value) == value

    def test_dates_become_iso_strings(self) -> None:
        """YAML timestamps are normalised to ISO strings."""
        from manifold.core.utils.values import ensure_value

        assert ensure_value({"d": datetime.date(2024, 1, 2)}) == {"d": "2024-01-02"}

    def test_non_string_keys_become_strings(self) -> None:
        """YAML 1.1 boolean and numeric keys are stringified."""
        from manifold.core.utils.values import ensure_value

        assert ensure_value({True: 1, 3: "x", "k": [1, {"n": None}]}) == {
            "true": 1,
            "3": "x",
            "k": [1, {"n": None}],
        }

    def test_key_order_is_preserved(self) -> None:
        from manifold.core.utils.values import ensure_value

        assert list(ensure_value({"b": 1, "a": 2, "c": 3})) == ["b", "a", "c"]

    @pytest.mark.parametrize("bad", [b"bytes", {1, 2}, object()])
    def test_unsupported_types_rejected(self, bad: object) -> None:
        from manifold.core.exceptions import ValidationError
        from manifold.core.utils.values import ensure_value

        with pytest.raises(ValidationError) as excinfo:
            ensure_value({"outer": [bad]})
        assert "$.outer[0]" in str(excinfo.value)


class TestEnsureMapping:
    def test_none_is_empty_mapping(self) -> None:
        from manifold.core.utils.values import ensure_mapping

        assert ensure_mapping(None) == {}

    def test_list_rejected(self) -> None:
        from manifold.core.exceptions import ValidationError
        from manifold.core.utils.values import ensure_mapping

        with pytest.raises(ValidationError):
            ensure_mapping([1, 2], "config")
