"""In-memory index of password store entries."""

from .discovery import StoreScanner
from .entries import EntryIndex
from .lock import ReadWriteLock
from .models import ENTRY_SUFFIX, IndexSnapshot

__all__ = [
    "ENTRY_SUFFIX",
    "EntryIndex",
    "IndexSnapshot",
    "ReadWriteLock",
    "StoreScanner",
]
