"""Directory watching for the password store."""

from .service import RebuildCallback, StoreWatcher

__all__ = ["RebuildCallback", "StoreWatcher"]
