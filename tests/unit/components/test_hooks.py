"""Tests for lifecycle hook execution."""
from __future__ import annotations

from pathlib import Path

import pytest


def make_component(tmp_path: Path, hooks: dict):
    from manifold.core.components.model import Component, Hooks

    return Component(
        name="app",
        hooks=Hooks.from_dict(hooks),
        logical_path="root/app",
        physical_path=tmp_path,
    )


class TestRunHook:
    def test_commands_run_in_order_in_working_directory(self, tmp_path: Path) -> None:
        from manifold.core.components.hooks import run_hook

        comp = make_component(tmp_path, {"before-install": ["echo one >> log.txt", "echo two >> log.txt"]})
        assert run_hook(comp, "before-install") == 2
        assert (tmp_path / "log.txt").read_text(encoding="utf-8") == "one\ntwo\n"

    def test_no_commands(self, tmp_path: Path) -> None:
        from manifold.core.components.hooks import run_hook

        assert run_hook(make_component(tmp_path, {}), "after-generate") == 0

    def test_commands_are_templated(self, tmp_path: Path) -> None:
        from manifold.core.components.hooks import run_hook

        comp = make_component(tmp_path, {"after-install": ["echo {{ logical_path }} {{ hook }} > out.txt"]})
        run_hook(comp, "after-install")
        assert (tmp_path / "out.txt").read_text(encoding="utf-8") == "root/app after-install\n"

    def test_undefined_template_variable_fails(self, tmp_path: Path) -> None:
        from manifold.core.components.hooks import run_hook
        from manifold.core.exceptions import HookError

        comp = make_component(tmp_path, {"before-generate": ["echo {{ nope }}"]})
        with pytest.raises(HookError, match="rendering") as exc_info:
            run_hook(comp, "before-generate")
        assert exc_info.value.hook == "before-generate"

    def test_non_zero_exit_fails_and_stops(self, tmp_path: Path) -> None:
        from manifold.core.components.hooks import run_hook
        from manifold.core.exceptions import HookError

        comp = make_component(tmp_path, {"after-generate": ["echo boom >&2; exit 3", "touch never.txt"]})
        with pytest.raises(HookError) as exc_info:
            run_hook(comp, "after-generate")

        err = exc_info.value
        assert "exited 3" in err.message
        assert "boom" in err.message
        assert err.context["returncode"] == 3
        assert err.component == "root/app"
        assert not (tmp_path / "never.txt").exists()

    def test_file_physical_path_runs_in_parent(self, tmp_path: Path) -> None:
        from manifold.core.components.hooks import run_hook

        manifest = tmp_path / "manifest.yaml"
        manifest.write_text("kind: A\n", encoding="utf-8")
        comp = make_component(tmp_path, {"before-install": ["touch marker"]})
        comp.physical_path = manifest
        run_hook(comp, "before-install")
        assert (tmp_path / "marker").exists()

    def test_missing_shell_fails(self, tmp_path: Path) -> None:
        from manifold.core.components.hooks import run_hook
        from manifold.core.exceptions import HookError

        comp = make_component(tmp_path, {"before-install": ["true"]})
        with pytest.raises(HookError, match="could not start"):
            run_hook(comp, "before-install", shell=str(tmp_path / "no-such-shell"))
