"""Single-flight coordination of fetches per destination.

One coarse lock guards only the entry table; the work itself runs outside
it, so different destinations proceed in parallel. Entries are scoped to a
run: within one run a destination is fetched at most once, while a later run
replaces the entry and fetches again.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Hashable, Optional

from manifold.core.exceptions import FetchError, ManifoldError

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    run: Optional[Hashable] = None
    done: threading.Event = field(default_factory=threading.Event)
    error: Optional[BaseException] = None


class CloneCoordinator:
    """Guarantees at most one fetch per destination and run.

    The first caller for a destination runs ``work``; concurrent and later
    callers of the same run wait for it to finish and return without
    repeating it. A failure of the first caller is re-raised to every waiter
    of that run as :class:`FetchError`. A caller from another run waits for
    any in-flight fetch of the destination, then performs its own.

    Usage:
        coordinator = CloneCoordinator()
        run = coordinator.new_run()
        coordinator.run(dest, fetch, run=run)
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: Dict[str, _Entry] = {}

    @staticmethod
    def _key(destination: Path | str) -> str:
        return str(Path(destination).absolute())

    @staticmethod
    def new_run() -> Hashable:
        """Return a fresh run token."""
        return object()

    def run(self, destination: Path | str, work: Callable[[], None], *, run: Optional[Hashable] = None) -> bool:
        """Run ``work`` for ``destination`` unless this run already has.

        Callers that pass no ``run`` share one implicit run for the lifetime
        of the coordinator.

        Returns:
            True when this call performed the work, False when it waited on
            (or found) an earlier call of the same run.

        Raises:
            FetchError: when the earlier call of this run for ``destination`` failed.
            Exception: whatever ``work`` raises, for the performing caller.
        """
        key = self._key(destination)
        while True:
            with self._lock:
                entry = self._entries.get(key)
                other_run = entry is not None and entry.run is not run
                owner = entry is None or (other_run and entry.done.is_set())
                if owner:
                    entry = _Entry(run=run)
                    self._entries[key] = entry
            if owner or not other_run:
                break
            # Another run is still writing this destination.
            logger.debug("waiting for another run to finish fetching %s", key)
            entry.done.wait()

        if not owner:
            logger.debug("waiting on in-flight fetch for %s", key)
            entry.done.wait()
            if entry.error is not None:
                cause = entry.error
                detail = cause.message if isinstance(cause, ManifoldError) else str(cause)
                raise FetchError(
                    f"earlier fetch into {key} failed: {detail}",
                    context={"destination": key},
                ) from cause
            return False

        try:
            work()
        except BaseException as exc:
            entry.error = exc
            raise
        finally:
            entry.done.set()
        return True

    def seen(self, destination: Path | str) -> bool:
        with self._lock:
            return self._key(destination) in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


__all__ = ["CloneCoordinator"]
