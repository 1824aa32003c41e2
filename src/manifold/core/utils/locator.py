"""Location codec: remote locators to deterministic, filesystem-safe paths."""
from __future__ import annotations

import re
from pathlib import Path
from urllib.parse import urlsplit

from manifold.core.exceptions import InvalidLocatorError

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*$")
_UNSAFE_CHARS_RE = re.compile(r'[<>:"|?*\x00-\x1f\\]')


def _strip_scheme(locator: str) -> str:
    # Locators without a scheme (host/path, git@host:org/repo) pass through
    # minus any fragment, as urlsplit drops it for the others.
    if "://" not in locator:
        return locator.split("#", 1)[0]

    scheme = locator.split("://", 1)[0]
    if not _SCHEME_RE.match(scheme):
        raise InvalidLocatorError(
            f'invalid scheme "{scheme}" in locator "{locator}"',
            context={"locator": locator},
        )
    try:
        parts = urlsplit(locator)
        parts.port  # raises on a malformed port
    except ValueError as exc:
        raise InvalidLocatorError(
            f'parsing locator "{locator}": {exc}', context={"locator": locator}
        ) from exc

    # Userinfo (tokens, passwords) never reaches the filesystem. The host keeps
    # its case so that scheme-less spellings map to the same path.
    netloc = parts.netloc.rpartition("@")[2].rstrip(":")
    rest = parts.path
    if parts.query:
        rest = f"{rest}?{parts.query}"
    return f"{netloc}/{rest}"


def locator_segments(locator: str) -> list[str]:
    """Split ``locator`` into its scheme-less, non-empty path segments.

    Raises:
        InvalidLocatorError: on unparsable scheme syntax or when nothing remains.
    """
    if not locator or not locator.strip():
        raise InvalidLocatorError("locator must be non-empty", context={"locator": locator})

    stripped = _strip_scheme(locator.strip())
    segments: list[str] = []
    for raw in stripped.split("/"):
        if raw in ("", ".", ".."):
            continue
        segments.append(_UNSAFE_CHARS_RE.sub("_", raw))

    if not segments:
        raise InvalidLocatorError(
            f'locator "{locator}" has no path segments', context={"locator": locator}
        )
    return segments


def locator_to_path(locator: str) -> Path:
    """Convert ``locator`` into a relative path.

    Deterministic and scheme-insensitive, not invertible:

        >>> locator_to_path("https://example.com/a/b") == locator_to_path("example.com/a/b")
        True
    """
    return Path(*locator_segments(locator))


__all__ = ["locator_segments", "locator_to_path"]
