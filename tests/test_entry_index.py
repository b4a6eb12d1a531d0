"""Tests for store discovery and the entry index."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from passrunner.index import EntryIndex, ReadWriteLock, StoreScanner


def _make_store(root: Path, *entries: str) -> Path:
    """Create ``.gpg`` files for each entry identifier under ``root``.

    Args:
        root: Store root to populate.
        *entries: Entry identifiers relative to the root.

    Returns:
        Path: The populated store root.
    """
    root.mkdir(parents=True, exist_ok=True)
    for entry in entries:
        path = root / f"{entry}.gpg"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"ciphertext")
    return root


def test_scan_collects_entries_and_directories(tmp_path: Path) -> None:
    root = _make_store(tmp_path / "store", "web/github", "email/work", "bank")

    snapshot = StoreScanner().scan(root)

    assert snapshot.entries == ("bank", "email/work", "web/github")
    assert snapshot.directories == {root, root / "web", root / "email"}
    assert "web/github" in snapshot
    assert len(snapshot) == 3


def test_scan_ignores_files_without_gpg_suffix(tmp_path: Path) -> None:
    root = _make_store(tmp_path / "store", "web/github")
    (root / "web" / "notes.txt").write_text("plain", encoding="utf-8")
    (root / "README").write_text("readme", encoding="utf-8")

    snapshot = StoreScanner().scan(root)

    assert snapshot.entries == ("web/github",)


def test_scan_skips_hidden_files_and_directories(tmp_path: Path) -> None:
    root = _make_store(tmp_path / "store", "web/github", ".git/objects/blob")
    (root / ".gpg-id").write_text("ABCDEF\n", encoding="utf-8")
    (root / ".hidden.gpg").write_bytes(b"ciphertext")

    snapshot = StoreScanner().scan(root)

    assert snapshot.entries == ("web/github",)
    assert root / ".git" not in snapshot.directories


def test_scan_missing_root_returns_empty_snapshot(tmp_path: Path) -> None:
    root = tmp_path / "missing"

    snapshot = StoreScanner().scan(root)

    assert snapshot.root == root
    assert snapshot.entries == ()
    assert snapshot.directories == frozenset()


def test_empty_store_watches_only_root(tmp_path: Path) -> None:
    root = _make_store(tmp_path / "store")

    snapshot = StoreScanner().scan(root)

    assert snapshot.entries == ()
    assert snapshot.directories == {root}


def test_rebuild_is_idempotent(tmp_path: Path) -> None:
    root = _make_store(tmp_path / "store", "a/b", "c")
    index = EntryIndex(root)

    first = index.rebuild()
    second = index.rebuild()

    assert first.entries == second.entries
    assert first.directories == second.directories
    assert second is index.snapshot()


def test_index_is_empty_before_first_rebuild(tmp_path: Path) -> None:
    root = _make_store(tmp_path / "store", "a")

    index = EntryIndex(root)

    assert index.entries() == ()


def test_rebuild_reflects_additions_and_removals(tmp_path: Path) -> None:
    root = _make_store(tmp_path / "store", "web/github")
    index = EntryIndex(root)
    before = index.rebuild()

    _make_store(root, "web/gitlab")
    (root / "web" / "github.gpg").unlink()
    after = index.rebuild()

    # A previously captured snapshot keeps its contents.
    assert before.entries == ("web/github",)
    assert after.entries == ("web/gitlab",)


def test_rebuild_with_new_root_switches_store(tmp_path: Path) -> None:
    first = _make_store(tmp_path / "one", "alpha")
    second = _make_store(tmp_path / "two", "beta")
    index = EntryIndex(first)
    index.rebuild()

    snapshot = index.rebuild(second)

    assert index.root == second
    assert snapshot.entries == ("beta",)


def test_readers_never_observe_partial_snapshots(tmp_path: Path) -> None:
    root = _make_store(tmp_path / "store", *(f"group/entry{i:02d}" for i in range(20)))
    index = EntryIndex(root)
    index.rebuild()
    expected = index.entries()
    errors: list[str] = []

    def _reader() -> None:
        for _ in range(200):
            entries = index.entries()
            if entries != expected:
                errors.append(f"unexpected entries: {len(entries)}")

    readers = [threading.Thread(target=_reader) for _ in range(4)]
    for thread in readers:
        thread.start()
    for _ in range(10):
        index.rebuild()
    for thread in readers:
        thread.join()

    assert errors == []


def test_read_write_lock_excludes_writer_while_reading() -> None:
    lock = ReadWriteLock()
    acquired = threading.Event()

    def _writer() -> None:
        with lock.write_locked():
            acquired.set()

    with lock.read_locked():
        with lock.read_locked():
            thread = threading.Thread(target=_writer)
            thread.start()
            assert not acquired.wait(0.1)

    thread.join(timeout=1)
    assert acquired.is_set()


def test_read_write_lock_rejects_unmatched_release() -> None:
    lock = ReadWriteLock()

    with pytest.raises(RuntimeError):
        lock.release_read()
    with pytest.raises(RuntimeError):
        lock.release_write()
