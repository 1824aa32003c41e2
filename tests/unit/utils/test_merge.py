"""Tests for deep merge used by config layers and component overlays."""
from __future__ import annotations


class TestDeepMerge:
    def test_nested_dicts_merge(self) -> None:
        from manifold.core.utils.merge import deep_merge

        assert deep_merge({"a": 1, "b": {"c": 2}}, {"b": {"d": 3}}) == {"a": 1, "b": {"c": 2, "d": 3}}

    def test_inputs_not_mutated(self) -> None:
        from manifold.core.utils.merge import deep_merge

        base = {"b": {"c": 2}}
        deep_merge(base, {"b": {"c": 3}})
        assert base == {"b": {"c": 2}}

    def test_lists_replace_by_default(self) -> None:
        from manifold.core.utils.merge import deep_merge

        assert deep_merge({"l": [1, 2]}, {"l": [3]}) == {"l": [3]}

    def test_plus_marker_appends(self) -> None:
        from manifold.core.utils.merge import deep_merge

        assert deep_merge({"l": [1, 2]}, {"l": ["+", 3]}) == {"l": [1, 2, 3]}

    def test_scalar_overrides_mapping(self) -> None:
        from manifold.core.utils.merge import deep_merge

        assert deep_merge({"a": {"b": 1}}, {"a": "flat"}) == {"a": "flat"}
