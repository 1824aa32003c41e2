"""Source backends materializing external resources under the install root."""
from __future__ import annotations

from .base import LATEST, FetchMethod, Source
from .coordinator import CloneCoordinator
from .git import AccessTokens, GitSource
from .helm import ChartRepositorySource
from .http import HttpSource
from .local import LocalSource
from .ssh import PlainIdentity, SshAgent

__all__ = [
    "LATEST",
    "FetchMethod",
    "Source",
    "CloneCoordinator",
    "AccessTokens",
    "GitSource",
    "ChartRepositorySource",
    "HttpSource",
    "LocalSource",
    "PlainIdentity",
    "SshAgent",
]
