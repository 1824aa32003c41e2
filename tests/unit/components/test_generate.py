"""Tests for the generate step."""
from __future__ import annotations

import subprocess
from pathlib import Path
from typing import List

import pytest
import yaml

from helpers.env import write_component


def install(workdir: Path, start: str = "root") -> None:
    from manifold.core.components.install import Installer

    Installer(workdir).install(start)


class TestStaticGeneration:
    def test_fragments_joined_in_walk_order(self, workdir: Path) -> None:
        from manifold.core.components.generate import Generator

        write_component(
            workdir / "root",
            {
                "name": "root",
                "subcomponents": [{"name": "manifests", "type": "static", "method": "local", "source": "../manifests"}],
            },
        )
        (workdir / "manifests").mkdir()
        (workdir / "manifests" / "b.yaml").write_text("kind: B\n", encoding="utf-8")
        (workdir / "manifests" / "a.yaml").write_text("kind: A\n", encoding="utf-8")
        install(workdir)

        results = Generator(workdir).generate("root")

        assert [r.logical_path for r in results] == ["root", "root/manifests"]
        assert results[0].output_path is None
        out = workdir / "_generated" / "root_manifests.yaml"
        assert results[1].output_path == out
        assert out.read_text(encoding="utf-8") == "kind: A\n\n---\nkind: B\n"
        assert results[1].bytes_written == out.stat().st_size

    def test_spliced_remote_tree_is_rendered(self, workdir: Path) -> None:
        from manifold.core.components.generate import generate

        write_component(
            workdir / "root",
            {"name": "root", "subcomponents": [{"name": "app", "method": "local", "source": "../libs/app"}]},
        )
        write_component(
            workdir / "libs" / "app",
            {"name": "lib", "subcomponents": [{"name": "cm", "type": "static", "method": "local", "source": "deploy"}]},
        )
        (workdir / "libs" / "app" / "deploy").mkdir()
        (workdir / "libs" / "app" / "deploy" / "cm.yaml").write_text("kind: ConfigMap\n", encoding="utf-8")
        install(workdir)

        results = generate("root", workdir)

        assert [r.logical_path for r in results] == ["root", "root/app", "root/app/lib", "root/app/lib/cm"]
        out = workdir / "_generated" / "root_app_lib_cm.yaml"
        assert out.read_text(encoding="utf-8") == "kind: ConfigMap\n"

    def test_previous_output_is_replaced(self, workdir: Path) -> None:
        from manifold.core.components.generate import Generator

        write_component(workdir / "root", {"name": "root", "type": "static", "method": "local", "source": "m.yaml"})
        (workdir / "root" / "m.yaml").write_text("kind: New\n", encoding="utf-8")
        install(workdir)
        out = workdir / "_generated" / "root.yaml"
        out.parent.mkdir()
        out.write_text("kind: Old\nlots: of stale content\n", encoding="utf-8")

        Generator(workdir).generate("root")
        assert out.read_text(encoding="utf-8") == "kind: New\n"


class TestGenerateFailures:
    def test_requires_install_report(self, workdir: Path) -> None:
        from manifold.core.components.generate import Generator
        from manifold.core.exceptions import ValidationError

        write_component(workdir / "root", {"name": "root"})
        with pytest.raises(ValidationError, match="run install first"):
            Generator(workdir).generate("root")

    def test_component_missing_from_report(self, workdir: Path) -> None:
        from manifold.core.components.generate import Generator
        from manifold.core.components.report import InstallReport
        from manifold.core.exceptions import ValidationError

        write_component(workdir / "root", {"name": "root", "subcomponents": [{"name": "new"}]})
        report = InstallReport(components={"root": "root"})
        with pytest.raises(ValidationError, match="not installed") as exc_info:
            Generator(workdir).generate("root", report=report)
        assert exc_info.value.component == "root/new"

    def test_after_generate_hook_failure_is_fatal(self, workdir: Path) -> None:
        from manifold.core.components.generate import Generator
        from manifold.core.exceptions import HookError

        write_component(workdir / "root", {"name": "root", "hooks": {"after-generate": ["exit 1"]}})
        install(workdir)
        with pytest.raises(HookError):
            Generator(workdir).generate("root")


class TestDisabled:
    def test_disabled_subtree_is_skipped(self, workdir: Path) -> None:
        from manifold.core.components.generate import Generator

        write_component(
            workdir / "root",
            {
                "name": "root",
                "config": {"subcomponents": {"off": {"disabled": True}}},
                "subcomponents": [
                    {"name": "off", "type": "static", "method": "local", "source": "../m", "subcomponents": [{"name": "child"}]},
                    {"name": "on", "type": "static", "method": "local", "source": "../m"},
                ],
            },
        )
        (workdir / "m").mkdir()
        (workdir / "m" / "x.yaml").write_text("kind: X\n", encoding="utf-8")
        install(workdir)

        results = Generator(workdir).generate("root")

        assert [(r.logical_path, r.skipped) for r in results] == [
            ("root", False),
            ("root/off", True),
            ("root/on", False),
        ]
        assert not (workdir / "_generated" / "root_off.yaml").exists()
        assert (workdir / "_generated" / "root_on.yaml").exists()


class FakeHelm:
    def __init__(self, stdout: str) -> None:
        self.stdout = stdout
        self.calls: List[List[str]] = []

    def __call__(self, cmd, **kwargs) -> subprocess.CompletedProcess:
        self.calls.append(list(cmd))
        return subprocess.CompletedProcess(list(cmd), 0, stdout=self.stdout, stderr="")


class TestHelmGeneration:
    def test_chart_rendered_with_config(self, workdir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        import manifold.core.helm.template as template_mod
        from manifold.core.components.generate import Generator

        fake = FakeHelm("kind: Service\nmetadata:\n  name: web\n")
        monkeypatch.setattr(template_mod, "run_command", fake)

        write_component(
            workdir / "root",
            {
                "name": "root",
                "subcomponents": [
                    {
                        "name": "web",
                        "type": "helm",
                        "method": "local",
                        "source": "../charts",
                        "path": "web",
                        "config": {"namespace": "apps", "injectNamespace": True, "set": ["replicas=2"]},
                    }
                ],
            },
        )
        chart = workdir / "charts" / "web"
        (chart / "templates").mkdir(parents=True)
        (chart / "Chart.yaml").write_text("name: web\n", encoding="utf-8")
        install(workdir)

        Generator(workdir).generate("root")

        argv = fake.calls[-1]
        assert argv[-2] == "root_web"
        assert argv[-1] == str(workdir / "_components" / "_local" / "charts" / "web")
        assert argv[argv.index("--namespace") + 1] == "apps"
        assert argv[argv.index("--set") + 1] == "replicas=2"
        out = yaml.safe_load((workdir / "_generated" / "root_web.yaml").read_text(encoding="utf-8"))
        assert out == {"kind": "Service", "metadata": {"name": "web", "namespace": "apps"}}
