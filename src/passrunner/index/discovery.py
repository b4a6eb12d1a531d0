"""Password store discovery utilities."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from .models import ENTRY_SUFFIX, IndexSnapshot

LOGGER = logging.getLogger(__name__)


def _is_hidden(name: str) -> bool:
    return name.startswith(".") and name not in (".", "..")


class StoreScanner:
    """Walk a password store and collect entry identifiers and directories."""

    def __init__(
        self,
        *,
        suffix: str = ENTRY_SUFFIX,
        include_hidden: bool = False,
        follow_symlinks: bool = False,
    ) -> None:
        self.suffix = suffix
        self.include_hidden = include_hidden
        self.follow_symlinks = follow_symlinks

    def scan(self, root: Path) -> IndexSnapshot:
        """Return a new snapshot describing ``root``.

        A missing or unreadable root yields an empty snapshot.
        """
        root = root.expanduser()
        if not root.is_dir():
            LOGGER.warning("Password store %s does not exist or is not a directory.", root)
            return IndexSnapshot.empty(root)
        if not os.access(root, os.R_OK | os.X_OK):
            LOGGER.warning("Password store %s is not readable.", root)
            return IndexSnapshot.empty(root)

        entries: list[str] = []
        directories: set[Path] = {root}

        def _on_error(exc: OSError) -> None:
            LOGGER.debug("Skipping unreadable path %s: %s", exc.filename, exc)

        for current, dirnames, filenames in os.walk(
            root, onerror=_on_error, followlinks=self.follow_symlinks
        ):
            current_path = Path(current)
            if not self.include_hidden:
                dirnames[:] = [name for name in dirnames if not _is_hidden(name)]
            dirnames.sort()
            for name in dirnames:
                directories.add(current_path / name)

            for name in filenames:
                if not self.include_hidden and _is_hidden(name):
                    continue
                entry = self._entry_for(root, current_path / name)
                if entry is not None:
                    entries.append(entry)

        return IndexSnapshot(
            root=root,
            entries=tuple(sorted(entries)),
            directories=frozenset(directories),
        )

    def _entry_for(self, root: Path, path: Path) -> str | None:
        """Return the entry identifier for ``path`` or ``None`` when it is not an entry."""
        if path.suffix != self.suffix or path.name == self.suffix:
            return None
        if not path.is_file():
            return None
        relative = path.relative_to(root).as_posix()
        return relative[: -len(self.suffix)]


__all__ = ["StoreScanner"]
