"""Tests for the raw-manifest renderer."""
from __future__ import annotations

from pathlib import Path

import pytest


class TestGeneratePath:
    def test_ancestry_joined_by_separator(self, tmp_path: Path) -> None:
        from manifold.core.render.base import generate_path

        assert generate_path(["root", "app", "db"], tmp_path, "_") == tmp_path / "root_app_db.yaml"

    def test_empty_ancestry_rejected(self, tmp_path: Path) -> None:
        from manifold.core.exceptions import ValidationError
        from manifold.core.render.base import generate_path

        with pytest.raises(ValidationError):
            generate_path([], tmp_path)


class TestRawManifestRenderer:
    def test_fragments_joined_in_walk_order(self, tmp_path: Path) -> None:
        from manifold.core.render.static import RawManifestRenderer

        manifests = tmp_path / "m"
        (manifests / "sub").mkdir(parents=True)
        (manifests / "b.yaml").write_text("kind: B\n", encoding="utf-8")
        (manifests / "a.yml").write_text("kind: A\n", encoding="utf-8")
        (manifests / "sub" / "c.YAML").write_text("kind: C\n", encoding="utf-8")
        (manifests / "notes.txt").write_text("ignored", encoding="utf-8")

        renderer = RawManifestRenderer(["root", "static"], manifests, tmp_path / "_generated")
        written = renderer.generate()

        out = tmp_path / "_generated" / "root_static.yaml"
        text = out.read_text(encoding="utf-8")
        assert text == "kind: A\n\n---\nkind: B\n\n---\nkind: C\n"
        assert written == len(text.encode("utf-8"))

    def test_text_is_not_reencoded(self, tmp_path: Path) -> None:
        """Comments and formatting survive because nothing is decoded."""
        from manifold.core.render.static import RawManifestRenderer

        manifests = tmp_path / "m"
        manifests.mkdir()
        body = "# keep me\nkind:    Weird   # spaced\n"
        (manifests / "x.yaml").write_text(body, encoding="utf-8")

        RawManifestRenderer(["r"], manifests, tmp_path / "out").generate()
        assert (tmp_path / "out" / "r.yaml").read_text(encoding="utf-8") == body

    def test_previous_output_replaced(self, tmp_path: Path) -> None:
        from manifold.core.render.static import RawManifestRenderer

        manifests = tmp_path / "m"
        manifests.mkdir()
        (manifests / "x.yaml").write_text("kind: New\n", encoding="utf-8")
        out = tmp_path / "out" / "r.yaml"
        out.parent.mkdir()
        out.write_text("kind: Old\n" * 10, encoding="utf-8")

        RawManifestRenderer(["r"], manifests, tmp_path / "out").generate()
        assert out.read_text(encoding="utf-8") == "kind: New\n"

    def test_missing_manifest_path_rejected(self, tmp_path: Path) -> None:
        from manifold.core.exceptions import ValidationError
        from manifold.core.render.static import RawManifestRenderer

        with pytest.raises(ValidationError, match="does not exist"):
            RawManifestRenderer(["r"], tmp_path / "missing", tmp_path).validate()

    def test_empty_ancestry_rejected(self, tmp_path: Path) -> None:
        from manifold.core.exceptions import ValidationError
        from manifold.core.render.static import RawManifestRenderer

        with pytest.raises(ValidationError):
            RawManifestRenderer([], tmp_path, tmp_path).validate()


class TestIterYamlFiles:
    def test_directories_visited_where_they_sort(self, tmp_path: Path) -> None:
        """A subdirectory named 'a' is walked before the sibling file 'b.yaml'."""
        from manifold.core.render.static import iter_yaml_files

        (tmp_path / "a").mkdir()
        (tmp_path / "a" / "z.yaml").write_text("kind: Z\n", encoding="utf-8")
        (tmp_path / "b.yaml").write_text("kind: B\n", encoding="utf-8")

        assert [p.relative_to(tmp_path).as_posix() for p in iter_yaml_files(tmp_path)] == ["a/z.yaml", "b.yaml"]

    def test_single_file_root(self, tmp_path: Path) -> None:
        from manifold.core.render.static import iter_yaml_files

        f = tmp_path / "one.yml"
        f.write_text("kind: One\n", encoding="utf-8")
        assert list(iter_yaml_files(f)) == [f]
