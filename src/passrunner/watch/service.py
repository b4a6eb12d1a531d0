"""Filesystem watch service that keeps the entry index current."""

from __future__ import annotations

import logging
import queue
import threading
import time
from pathlib import Path
from typing import Callable, Iterable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver, ObservedWatch

from passrunner.index import EntryIndex, IndexSnapshot

LOGGER = logging.getLogger(__name__)

RebuildCallback = Callable[[IndexSnapshot], None]


class StoreWatcher:
    """Watch every directory of the store and rebuild the index on change.

    One non-recursive watch is registered per directory of the latest
    snapshot. After each rebuild the watch set is derived again from scratch,
    so directories that disappeared stop being watched and new ones start.
    Bursts of changes are coalesced: a rebuild runs once no further change has
    arrived for ``debounce_seconds``.
    """

    def __init__(
        self,
        index: EntryIndex,
        *,
        debounce_seconds: float = 0.5,
        on_rebuild: Optional[RebuildCallback] = None,
        observer_factory: Callable[[], BaseObserver] = Observer,
    ) -> None:
        """Initialize the watcher.

        Args:
            index: Index rebuilt whenever a watched directory changes.
            debounce_seconds: Quiet period used to coalesce change bursts.
            on_rebuild: Optional callable receiving each new snapshot.
            observer_factory: Factory producing the watchdog observer.
        """

        self._index = index
        self._debounce_seconds = max(0.01, debounce_seconds)
        self._on_rebuild = on_rebuild
        self._observer_factory = observer_factory
        self._observer: BaseObserver | None = None
        self._worker: threading.Thread | None = None
        self._queue: queue.Queue[Path | None] = queue.Queue()
        self._stop_event = threading.Event()
        self._watch_lock = threading.Lock()
        self._watches: dict[Path, ObservedWatch] = {}
        self._stale: set[Path] = set()
        self._rebuild_count = 0

    # ------------------------------------------------------------------ #
    # Public API                                                         #
    # ------------------------------------------------------------------ #

    @property
    def running(self) -> bool:
        """Return whether the observer and worker are active."""
        return self._observer is not None

    @property
    def rebuild_count(self) -> int:
        """Return how many change-triggered rebuilds have completed."""
        return self._rebuild_count

    def watched_directories(self) -> list[Path]:
        """Return the directories currently registered with the observer."""
        with self._watch_lock:
            return sorted(self._watches)

    def start(self) -> None:
        """Register watches for the current snapshot and begin processing events.

        Raises:
            RuntimeError: If the watcher is already running.
        """

        if self._observer is not None:
            raise RuntimeError("StoreWatcher is already running.")

        self._stop_event.clear()
        self._queue = queue.Queue()
        self._observer = self._observer_factory()
        self.sync(self._index.snapshot().directories)
        self._observer.start()
        self._worker = threading.Thread(
            target=self._run_loop, name="passrunner-watch", daemon=True
        )
        self._worker.start()

    def stop(self) -> None:
        """Terminate the observer and the rebuild worker."""

        self._stop_event.set()
        # Unblock the queue to allow the processing loop to exit cleanly.
        self._queue.put(None)
        observer = self._observer
        self._observer = None
        if observer is not None:
            observer.stop()
            observer.join(timeout=5)
        worker = self._worker
        self._worker = None
        if worker is not None and worker is not threading.current_thread():
            worker.join(timeout=5)
        with self._watch_lock:
            self._watches.clear()
            self._stale.clear()

    def watch(self, path: Path) -> bool:
        """Register a non-recursive watch for ``path``.

        Returns:
            bool: ``True`` when a new watch was scheduled.
        """

        observer = self._observer
        if observer is None:
            raise RuntimeError("StoreWatcher is not running.")
        handler = _StoreEventHandler(self)
        with self._watch_lock:
            if path in self._watches:
                return False
            try:
                self._watches[path] = observer.schedule(handler, str(path), recursive=False)
            except OSError as exc:
                LOGGER.debug("Unable to watch %s: %s", path, exc)
                return False
        return True

    def sync(self, directories: Iterable[Path]) -> list[Path]:
        """Make the registered watches match exactly ``directories``.

        Watches that are still wanted stay registered throughout, so changes
        keep being observed while the set is updated. Directories that were
        deleted since they were scheduled are registered afresh.

        Returns:
            list[Path]: Directories newly registered by this call.
        """

        observer = self._observer
        if observer is None:
            return []
        wanted = set(directories)
        with self._watch_lock:
            dropped = [
                (path, watch)
                for path, watch in self._watches.items()
                if path not in wanted or path in self._stale
            ]
            for path, _ in dropped:
                del self._watches[path]
            self._stale.clear()
        for path, watch in dropped:
            try:
                observer.unschedule(watch)
            except KeyError:
                LOGGER.debug("Watch for %s was already removed.", path)

        added: list[Path] = []
        for directory in sorted(wanted):
            if self.watch(directory):
                added.append(directory)
        return added

    def notify(self, path: Path) -> None:
        """Record that ``path`` changed; a rebuild follows after the debounce window."""

        self._queue.put(path)

    # ------------------------------------------------------------------ #
    # Internal helpers                                                   #
    # ------------------------------------------------------------------ #

    def _run_loop(self) -> None:
        """Consume change notifications and rebuild once each burst settles."""
        pending: set[Path] = set()
        flush_deadline: Optional[float] = None

        while not self._stop_event.is_set():
            timeout: Optional[float] = None
            if flush_deadline is not None:
                timeout = max(0.0, flush_deadline - time.monotonic())

            try:
                path = self._queue.get(timeout=timeout)
            except queue.Empty:
                if pending:
                    self._rebuild(pending)
                    pending = set()
                flush_deadline = None
                continue

            if path is None:
                break

            pending.add(path)
            flush_deadline = time.monotonic() + self._debounce_seconds

    def _rebuild(self, triggered: set[Path]) -> None:
        """Rebuild the index, refresh watches and surface the new snapshot."""
        LOGGER.debug("Rebuilding index after changes in %s.", sorted(triggered))
        try:
            snapshot = self._index.rebuild()
        except Exception:  # pragma: no cover
            LOGGER.exception("Index rebuild failed; waiting for the next change.")
            return

        if self._stop_event.is_set():
            return
        added = self.sync(snapshot.directories)
        self._rebuild_count += 1
        if self._on_rebuild is not None:
            self._on_rebuild(snapshot)
        # Files may land in a new directory before its watch exists.
        for directory in added:
            self.notify(directory)

    def _forget(self, path: Path) -> None:
        """Mark the watch on ``path`` for re-registration at the next sync."""
        with self._watch_lock:
            if path in self._watches:
                self._stale.add(path)


class _StoreEventHandler(FileSystemEventHandler):
    """Forward directory content changes to the watcher."""

    def __init__(self, watcher: StoreWatcher) -> None:
        self._watcher = watcher

    def on_created(self, event: FileSystemEvent) -> None:
        """Handle a filesystem create event."""
        self._enqueue(event)

    def on_deleted(self, event: FileSystemEvent) -> None:
        """Handle a filesystem delete event."""
        if event.is_directory:
            self._watcher._forget(Path(str(event.src_path)))
        self._enqueue(event)

    def on_moved(self, event: FileSystemEvent) -> None:  # pragma: no cover - watchdog-specific
        """Handle a filesystem move event."""
        if event.is_directory:
            self._watcher._forget(Path(str(event.src_path)))
        self._enqueue(event)
        dest = getattr(event, "dest_path", "")
        if dest:
            self._watcher.notify(Path(str(dest)).parent)

    def on_modified(self, event: FileSystemEvent) -> None:
        """Handle a directory modification; file content edits are ignored."""
        if event.is_directory:
            self._enqueue(event)

    def _enqueue(self, event: FileSystemEvent) -> None:
        path = Path(str(event.src_path))
        self._watcher.notify(path.parent)


__all__ = ["StoreWatcher", "RebuildCallback"]
