"""Plain HTTP source: downloads one YAML document stream."""
from __future__ import annotations

import logging
import re
from pathlib import Path
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

import yaml

from manifold.core.exceptions import FetchError, ValidationError
from manifold.core.utils.io import ensure_parent_dir, remove_path
from manifold.core.utils.locator import locator_to_path
from manifold.core.utils.redaction import redact_url_credentials

from .base import FetchMethod, Source

logger = logging.getLogger(__name__)

_HTTP_URL_RE = re.compile(r"(?i)^https?://.+$")


class HttpSource(Source):
    """GETs ``url`` and writes the body verbatim to ``<install_root>/<codec(url)>``.

    The body must parse as YAML; it is stored without re-encoding.
    """

    method = FetchMethod.HTTP

    def __init__(self, url: str, *, install_root: Path, timeout: float = 60.0) -> None:
        super().__init__(install_root)
        self.url = url
        self.timeout = timeout

    def describe(self) -> str:
        return f"http {redact_url_credentials(self.url)}"

    def validate(self) -> None:
        if not self.url or not _HTTP_URL_RE.match(self.url):
            raise ValidationError(
                f'http source URL must start with http:// or https://, got "{redact_url_credentials(self.url)}"',
                context={"url": redact_url_credentials(self.url)},
            )

    def destination(self) -> Path:
        self.validate()
        return self.install_root / locator_to_path(self.url)

    def download(self) -> bytes:
        req = Request(self.url, method="GET")
        try:
            with urlopen(req, timeout=self.timeout) as resp:
                return resp.read()
        except HTTPError as exc:
            raise FetchError(
                f"GET {redact_url_credentials(self.url)} returned HTTP {exc.code}",
                context={"status": exc.code},
            ) from None
        except (URLError, OSError) as exc:
            raise FetchError(f"GET {redact_url_credentials(self.url)} failed: {exc}") from exc

    def fetch(self) -> None:
        self.validate()
        dest = self.destination()
        logger.info("downloading %s into %s", self.describe(), dest)
        body = self.download()
        try:
            list(yaml.safe_load_all(body))
        except yaml.YAMLError as exc:
            raise FetchError(
                f"body of {redact_url_credentials(self.url)} is not valid YAML: {exc}",
                context={"url": redact_url_credentials(self.url)},
            ) from exc
        try:
            remove_path(dest)
            ensure_parent_dir(dest)
            dest.write_bytes(body)
        except OSError as exc:
            raise FetchError(f"writing {dest}: {exc}", context={"destination": str(dest)}) from exc


__all__ = ["HttpSource"]
