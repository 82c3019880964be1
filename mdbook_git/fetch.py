"""Content fetching over an abstract revision store, memoized per pass.

The store owns revision lookup and blob retrieval; this module only forwards
revision strings verbatim and caches line sequences by ``(revision, path)``
for the lifetime of one documentation build pass.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from typing import Protocol

from .diff import DiffLine, diff_lines
from .errors import PathNotFoundAtRevision

FetchKey = tuple[str, str]
FetchedLines = tuple[str, ...]


class RevisionStore(Protocol):
    def read_lines(self, revision: str, path: str) -> Sequence[str]:
        """Return the lines of ``path`` at ``revision`` without terminators.

        Raises ``InvalidRevision`` or ``PathNotFoundAtRevision``.
        """
        ...


class FetchCache:
    """Read-through, write-once map safe for concurrent lookup.

    Loads run outside the lock; if two threads race on one key the first
    stored value wins and both callers get it. Failed loads are not cached.
    """

    def __init__(self) -> None:
        self._entries: dict[FetchKey, FetchedLines] = {}
        self._lock = threading.Lock()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: FetchKey) -> FetchedLines | None:
        with self._lock:
            return self._entries.get(key)

    def get_or_load(self, key: FetchKey, loader: Callable[[], Sequence[str]]) -> FetchedLines:
        cached = self.get(key)
        if cached is not None:
            return cached
        loaded = tuple(loader())
        with self._lock:
            return self._entries.setdefault(key, loaded)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class ContentFetcher:
    """Adapter from directives to a ``RevisionStore`` with per-pass caching."""

    def __init__(self, store: RevisionStore, cache: FetchCache | None = None) -> None:
        self.store = store
        self.cache = cache if cache is not None else FetchCache()

    def fetch_lines(self, revision: str, path: str) -> FetchedLines:
        return self.cache.get_or_load((revision, path), lambda: self.store.read_lines(revision, path))

    def _fetch_side(self, revision: str, path: str) -> FetchedLines | None:
        try:
            return self.fetch_lines(revision, path)
        except PathNotFoundAtRevision:
            return None

    def fetch_diff(self, revision_a: str, revision_b: str, path: str) -> list[DiffLine]:
        """Aligned line diff of ``path`` between two revisions.

        A path present on only one side diffs against an empty file, so
        additions and deletions of whole files render as all-added or
        all-removed lines.
        """
        old = self._fetch_side(revision_a, path)
        new = self._fetch_side(revision_b, path)
        if old is None and new is None:
            raise PathNotFoundAtRevision(f"{revision_a}..{revision_b}", path)
        return diff_lines(old or (), new or ())


__all__ = [
    "ContentFetcher",
    "FetchCache",
    "FetchedLines",
    "RevisionStore",
]
