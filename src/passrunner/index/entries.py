"""Thread-safe index of password store entries."""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from .discovery import StoreScanner
from .lock import ReadWriteLock
from .models import IndexSnapshot

LOGGER = logging.getLogger(__name__)


class EntryIndex:
    """Hold the current :class:`IndexSnapshot` and rebuild it on demand.

    Readers take the shared side of a :class:`ReadWriteLock`. Rebuilds are
    serialized among themselves, scan into a fresh snapshot and then take the
    exclusive side only to swap it in. Published snapshots are immutable, so a
    reader that captured one keeps a consistent view after a later rebuild.
    """

    def __init__(self, root: Path, *, scanner: StoreScanner | None = None) -> None:
        self._root = root.expanduser()
        self._scanner = scanner or StoreScanner()
        self._lock = ReadWriteLock()
        self._rebuild_lock = threading.Lock()
        self._snapshot = IndexSnapshot.empty(self._root)

    @property
    def root(self) -> Path:
        """Return the store root this index scans."""
        return self._root

    def rebuild(self, root: Path | None = None) -> IndexSnapshot:
        """Rescan the store and atomically publish the result.

        Args:
            root: Optional new store root; the current root is reused otherwise.

        Returns:
            IndexSnapshot: The snapshot that was installed.
        """
        with self._rebuild_lock:
            target = root.expanduser() if root is not None else self._root
            snapshot = self._scanner.scan(target)
            with self._lock.write_locked():
                self._root = target
                self._snapshot = snapshot
        LOGGER.debug(
            "Indexed %d entries across %d directories under %s.",
            len(snapshot.entries),
            len(snapshot.directories),
            snapshot.root,
        )
        return snapshot

    def snapshot(self) -> IndexSnapshot:
        """Return the currently published snapshot."""
        with self._lock.read_locked():
            return self._snapshot

    def entries(self) -> tuple[str, ...]:
        """Return the entry identifiers of the current snapshot."""
        return self.snapshot().entries


__all__ = ["EntryIndex"]
