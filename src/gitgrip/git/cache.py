"""In-memory status cache keyed by repository path.

A :class:`StatusCache` is created once per run and handed to every component
that reads or mutates repository state. Entries never expire on their own:
each mutating git primitive that accepts a ``cache`` argument invalidates the
repository's entry, and callers that change a working tree some other way
must call :meth:`StatusCache.invalidate` themselves.
"""

from __future__ import annotations

import threading
from pathlib import Path

from gitgrip.git.repository import open_repo
from gitgrip.git.status import RepoStatusInfo, get_status_info
from gitgrip.logging import get_logger

logger = get_logger(__name__)

__all__ = ["StatusCache"]


def _key(path: Path | str) -> Path:
    return Path(path).resolve()


class StatusCache:
    """Thread-safe mapping from repository path to its last status snapshot.

    Example:
        ```python
        cache = StatusCache()
        info = cache.get_cached(repo_path)    # computed
        info = cache.get_cached(repo_path)    # served from the cache
        pull(repo, cache=cache)               # invalidates repo_path
        ```
    """

    def __init__(self) -> None:
        self._entries: dict[Path, RepoStatusInfo] = {}
        self._lock = threading.Lock()

    def get(self, path: Path | str) -> RepoStatusInfo | None:
        """Return the cached snapshot for ``path`` without computing one."""
        with self._lock:
            return self._entries.get(_key(path))

    def get_cached(self, path: Path | str) -> RepoStatusInfo:
        """Return the cached snapshot, computing and storing it on a miss.

        Args:
            path: Repository working-tree path.

        Raises:
            GitError: If the repository cannot be opened or read.
        """
        key = _key(path)
        with self._lock:
            cached = self._entries.get(key)
        if cached is not None:
            return cached

        with open_repo(key) as repo:
            info = get_status_info(repo)
        with self._lock:
            self._entries[key] = info
        logger.debug("status_cached", path=str(key), clean=info.is_clean)
        return info

    def invalidate(self, path: Path | str) -> None:
        """Drop any snapshot stored for ``path``."""
        with self._lock:
            removed = self._entries.pop(_key(path), None)
        if removed is not None:
            logger.debug("status_invalidated", path=str(path))

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, Path)):
            return False
        with self._lock:
            return _key(path) in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
