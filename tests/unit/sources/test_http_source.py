"""Tests for the plain HTTP source (urlopen is replaced, no network)."""
from __future__ import annotations

import io
from pathlib import Path
from urllib.error import HTTPError, URLError

import pytest


class _FakeResponse(io.BytesIO):
    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


class TestHttpSourceValidation:
    @pytest.mark.parametrize("url", ["", "ftp://example.com/x.yaml", "example.com/x.yaml"])
    def test_non_http_urls_rejected(self, tmp_path: Path, url: str) -> None:
        from manifold.core.exceptions import ValidationError
        from manifold.core.sources import HttpSource

        with pytest.raises(ValidationError):
            HttpSource(url, install_root=tmp_path).validate()

    def test_scheme_case_insensitive(self, tmp_path: Path) -> None:
        from manifold.core.sources import HttpSource

        HttpSource("HTTPS://example.com/x.yaml", install_root=tmp_path).validate()

    def test_destination_is_codec_path(self, tmp_path: Path) -> None:
        from manifold.core.sources import HttpSource

        src = HttpSource("https://example.com/manifests/app.yaml", install_root=tmp_path)
        assert src.destination() == tmp_path / "example.com" / "manifests" / "app.yaml"


class TestHttpSourceFetch:
    def test_body_written_verbatim(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        import manifold.core.sources.http as http_mod
        from manifold.core.sources import HttpSource

        body = b"# keep this comment\nkind: ConfigMap\n---\nkind: Secret\n"
        seen = {}

        def fake_urlopen(req, timeout=None):
            seen["url"] = req.full_url
            seen["timeout"] = timeout
            return _FakeResponse(body)

        monkeypatch.setattr(http_mod, "urlopen", fake_urlopen)
        src = HttpSource("https://example.com/app.yaml", install_root=tmp_path, timeout=5)
        src.fetch()

        assert src.destination().read_bytes() == body
        assert seen == {"url": "https://example.com/app.yaml", "timeout": 5}

    def test_invalid_yaml_rejected(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        import manifold.core.sources.http as http_mod
        from manifold.core.exceptions import FetchError
        from manifold.core.sources import HttpSource

        monkeypatch.setattr(http_mod, "urlopen", lambda req, timeout=None: _FakeResponse(b"key: [unclosed\n"))
        src = HttpSource("https://example.com/bad.yaml", install_root=tmp_path)
        with pytest.raises(FetchError, match="not valid YAML"):
            src.fetch()
        assert not src.destination().exists()

    def test_http_error_is_fetch_error(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        import manifold.core.sources.http as http_mod
        from manifold.core.exceptions import FetchError
        from manifold.core.sources import HttpSource

        def fake_urlopen(req, timeout=None):
            raise HTTPError(req.full_url, 404, "Not Found", {}, None)

        monkeypatch.setattr(http_mod, "urlopen", fake_urlopen)
        with pytest.raises(FetchError, match="404"):
            HttpSource("https://example.com/missing.yaml", install_root=tmp_path).fetch()

    def test_connection_error_is_fetch_error(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        import manifold.core.sources.http as http_mod
        from manifold.core.exceptions import FetchError
        from manifold.core.sources import HttpSource

        def fake_urlopen(req, timeout=None):
            raise URLError("connection refused")

        monkeypatch.setattr(http_mod, "urlopen", fake_urlopen)
        with pytest.raises(FetchError, match="connection refused"):
            HttpSource("https://example.com/x.yaml", install_root=tmp_path).fetch()
