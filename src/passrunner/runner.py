"""Host-facing facade tying the index, matcher, actions and retrieval together."""

from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import Optional

from passrunner.actions import ActionDescriptor, ActionRegistry
from passrunner.config import ConfigManager, RuntimeSettings, SettingsLoader
from passrunner.index import EntryIndex, IndexSnapshot
from passrunner.notify import NotificationSink, build_notifier
from passrunner.query import QueryMatch, QueryMatcher
from passrunner.retrieval import (
    Clipboard,
    CommandRunner,
    RetrievalOutcome,
    RetrievalPipeline,
    SystemClipboard,
    run_command,
)
from passrunner.retrieval.clipboard import Scheduler
from passrunner.watch import RebuildCallback, StoreWatcher

LOGGER = logging.getLogger(__name__)


class PassRunner:
    """Entry point used by a launcher host.

    The host calls :meth:`init` once, then :meth:`match` for each query,
    :meth:`actions_for_match` to populate per-match actions and :meth:`run`
    when the user picks a match. :meth:`reload_configuration` re-reads the
    configuration without restarting; :meth:`teardown` releases the watcher
    and clears any secret still waiting on the clipboard.
    """

    def __init__(
        self,
        manager: ConfigManager | None = None,
        *,
        loader: SettingsLoader | None = None,
        notifier: NotificationSink | None = None,
        clipboard: Clipboard | None = None,
        runner: CommandRunner = run_command,
        scheduler: Scheduler | None = None,
        watch: Optional[bool] = None,
        on_rebuild: Optional[RebuildCallback] = None,
    ) -> None:
        self._loader = loader or SettingsLoader(manager or ConfigManager())
        self._notifier_override = notifier
        self._watch_override = watch
        self._on_rebuild = on_rebuild
        self._clipboard = clipboard or SystemClipboard()
        self._runner = runner
        self._scheduler = scheduler
        self._settings: Optional[RuntimeSettings] = None
        self._index: Optional[EntryIndex] = None
        self._matcher: Optional[QueryMatcher] = None
        self._registry = ActionRegistry()
        self._pipeline: Optional[RetrievalPipeline] = None
        self._watcher: Optional[StoreWatcher] = None

    @property
    def settings(self) -> RuntimeSettings:
        if self._settings is None:
            raise RuntimeError("PassRunner.init() has not been called.")
        return self._settings

    @property
    def index(self) -> EntryIndex:
        if self._index is None:
            raise RuntimeError("PassRunner.init() has not been called.")
        return self._index

    @property
    def watcher(self) -> Optional[StoreWatcher]:
        return self._watcher

    @property
    def notifier(self) -> Optional[NotificationSink]:
        """Return the notifier used for retrieval results, once initialized."""
        return self._pipeline.notifier if self._pipeline is not None else None

    def init(self) -> IndexSnapshot:
        """Load settings, build the index and start watching the store.

        Returns:
            IndexSnapshot: The initial snapshot.

        Raises:
            ConfigError: If the configuration cannot be loaded.
        """
        self.reload_configuration()
        return self.index.snapshot()

    def reload_configuration(self) -> RuntimeSettings:
        """Re-read configuration and apply it to every component.

        Raises:
            ConfigError: If the configuration cannot be loaded.
        """
        previous = self._settings
        settings = self._loader.reload()
        self._settings = settings
        self._registry.load(settings)

        if self._index is None or previous is None or previous.store_dir != settings.store_dir:
            self._stop_watcher()
            self._index = EntryIndex(settings.store_dir)
            self._index.rebuild()
        elif previous.debounce_seconds != settings.debounce_seconds:
            self._stop_watcher()
        self._matcher = QueryMatcher(
            self._index, prefix=settings.query_prefix, min_length=settings.min_query_length
        )

        if self._pipeline is None:
            notifier = self._notifier_override or build_notifier(settings.notification_backend)
            self._pipeline = RetrievalPipeline(
                settings,
                clipboard=self._clipboard,
                notifier=notifier,
                runner=self._runner,
                scheduler=self._scheduler,
            )
        else:
            self._pipeline.settings = settings
            backend_changed = (
                previous is not None
                and previous.notification_backend != settings.notification_backend
            )
            if self._notifier_override is None and backend_changed:
                self._pipeline.notifier = build_notifier(settings.notification_backend)

        watch_enabled = settings.watch_enabled
        if self._watch_override is not None:
            watch_enabled = self._watch_override
        if watch_enabled and self._watcher is None:
            self._watcher = StoreWatcher(
                self._index,
                debounce_seconds=settings.debounce_seconds,
                on_rebuild=self._on_rebuild,
            )
            self._watcher.start()
        elif not watch_enabled:
            self._stop_watcher()

        LOGGER.info(
            "Loaded %d entries from %s with %d action(s).",
            len(self._index.snapshot()),
            settings.store_dir,
            len(self._registry.actions),
        )
        return settings

    def match(self, query: str, single_runner_query: bool = False) -> list[QueryMatch]:
        """Return matches for ``query``; see :meth:`QueryMatcher.match`."""
        if self._matcher is None:
            return []
        return self._matcher.match(query, single_runner_query)

    @property
    def actions(self) -> tuple[ActionDescriptor, ...]:
        """Return the global ordered action list."""
        return self._registry.actions

    def actions_for_match(self, match: QueryMatch) -> tuple[ActionDescriptor, ...]:
        """Return the ordered actions offered for ``match``."""
        return self._registry.actions_for(match)

    def find_action(self, name: str) -> Optional[ActionDescriptor]:
        """Return the configured action called ``name``."""
        return self._registry.find(name)

    def run(
        self,
        match: QueryMatch | str,
        action: Optional[ActionDescriptor] = None,
    ) -> Future[RetrievalOutcome]:
        """Retrieve the secret for ``match`` without blocking the caller."""
        if self._pipeline is None:
            raise RuntimeError("PassRunner.init() has not been called.")
        entry = match.text if isinstance(match, QueryMatch) else match
        return self._pipeline.retrieve(entry, action)

    def wait_for_clipboard_clear(self, timeout: float | None = None) -> None:
        """Block until every scheduled clipboard clear has run."""
        if self._pipeline is None:
            return
        self._pipeline.wait_for_clears(timeout)

    def teardown(self) -> None:
        """Stop watching, finish retrievals and clear pending secrets."""
        self._stop_watcher()
        if self._pipeline is not None:
            self._pipeline.shutdown(wait=True, flush_clears=True)
            self._pipeline = None

    def _stop_watcher(self) -> None:
        if self._watcher is not None:
            self._watcher.stop()
            self._watcher = None


__all__ = ["PassRunner"]
