"""Index snapshot data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

ENTRY_SUFFIX = ".gpg"


@dataclass(frozen=True, slots=True)
class IndexSnapshot:
    """Immutable view of the password store at one point in time.

    Attributes:
        root: Store root that was scanned.
        entries: Sorted entry identifiers (relative paths without ``.gpg``).
        directories: Every directory that must be watched, root included.
        built_at: Timestamp of the scan that produced the snapshot.
    """

    root: Path
    entries: tuple[str, ...] = ()
    directories: frozenset[Path] = frozenset()
    built_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def empty(cls, root: Path) -> "IndexSnapshot":
        """Return a snapshot with no entries and nothing to watch."""
        return cls(root=root)

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, entry: object) -> bool:
        return entry in self.entries


__all__ = ["ENTRY_SUFFIX", "IndexSnapshot"]
