"""In-memory TTL cache for GitHub responses — implements the ContentCache port.

Four independent key spaces (tree, repository metadata, file-by-path and
file-by-sha) each hold :class:`CacheEntry` records.  Expiry is lazy: an entry
past its TTL is treated as absent and removed the next time it is read.
There is no background sweeper.

Cached values are shared between readers: trees hold tuples, and repository
metadata is copied on the way in and out.

File content addressed by blob sha is immutable, so that space gets the
longest TTL and is also populated whenever content is stored by path.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from repo_browser.domain.entities import CacheStats, FileContent, RepositoryTree
from repo_browser.infrastructure.config import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], float]

_DEFAULT_REF = "default"


@dataclass(frozen=True, slots=True)
class CacheDurations:
    """TTL per key space, in seconds."""

    tree: float = 30 * 60
    repository: float = 15 * 60
    file_content_by_path: float = 5 * 60
    file_content_by_sha: float = 24 * 60 * 60

    @classmethod
    def from_settings(cls, settings: Settings) -> CacheDurations:
        return cls(
            tree=settings.cache_tree_ttl,
            repository=settings.cache_repository_ttl,
            file_content_by_path=settings.cache_file_by_path_ttl,
            file_content_by_sha=settings.cache_file_by_sha_ttl,
        )


@dataclass(frozen=True, slots=True)
class CacheEntry(Generic[T]):
    data: T
    timestamp: float
    ttl: float

    def is_valid(self, now: float) -> bool:
        return now - self.timestamp < self.ttl


# ── Key construction ────────────────────────────────────────────────────────
#
# Every key is "<space>:<owner>/<repo>[:<rest>]".  Owner and repo names never
# contain ":", so the second field identifies the repository exactly.


def _repo_id(owner: str, repo: str) -> str:
    return f"{owner}/{repo}"


def tree_key(owner: str, repo: str, ref: str | None) -> str:
    return f"tree:{_repo_id(owner, repo)}:{ref or _DEFAULT_REF}"


def file_by_path_key(owner: str, repo: str, path: str, ref: str | None) -> str:
    # ref precedes path so a ":" inside the path cannot shift the ref field.
    return f"file:{_repo_id(owner, repo)}:{ref or _DEFAULT_REF}:{path}"


def file_by_sha_key(owner: str, repo: str, sha: str) -> str:
    return f"blob:{_repo_id(owner, repo)}:{sha}"


def repository_key(owner: str, repo: str) -> str:
    return f"repo:{_repo_id(owner, repo)}"


def _key_repo_id(key: str) -> str:
    parts = key.split(":", 2)
    return parts[1] if len(parts) > 1 else ""


class _Space(Generic[T]):
    """One TTL-governed key space."""

    def __init__(self, name: str, clock: Clock) -> None:
        self.name = name
        self._clock = clock
        self._entries: dict[str, CacheEntry[T]] = {}

    def get(self, key: str) -> T | None:
        entry = self._entries.get(key)
        if entry is None:
            logger.debug("cache miss  %s", key)
            return None
        if entry.is_valid(self._clock()):
            logger.debug("cache hit   %s", key)
            return entry.data
        del self._entries[key]
        logger.debug("cache stale %s (evicted)", key)
        return None

    def set(self, key: str, data: T, ttl: float) -> None:
        self._entries[key] = CacheEntry(data=data, timestamp=self._clock(), ttl=ttl)

    def drop_repository(self, repo_id: str) -> int:
        doomed = [key for key in self._entries if _key_repo_id(key) == repo_id]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def purge_expired(self) -> int:
        now = self._clock()
        doomed = [key for key, entry in self._entries.items() if not entry.is_valid(now)]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class GitHubCache:
    """Concrete ``ContentCache`` backed by plain dictionaries.

    Parameters
    ----------
    durations:
        Default TTL per key space; individual ``set_*`` calls may override.
    clock:
        Source of the current time in seconds.  Tests inject a fake clock to
        simulate expiry.
    """

    def __init__(
        self,
        durations: CacheDurations | None = None,
        clock: Clock = time.time,
    ) -> None:
        self.durations = durations or CacheDurations()
        self._trees: _Space[RepositoryTree] = _Space("tree", clock)
        self._repositories: _Space[dict[str, Any]] = _Space("repository", clock)
        self._files_by_path: _Space[FileContent] = _Space("file_by_path", clock)
        self._files_by_sha: _Space[FileContent] = _Space("file_by_sha", clock)

    # ── Trees ───────────────────────────────────────────────────────────

    def get_tree(self, owner: str, repo: str, ref: str | None) -> RepositoryTree | None:
        return self._trees.get(tree_key(owner, repo, ref))

    def set_tree(
        self,
        owner: str,
        repo: str,
        ref: str | None,
        data: RepositoryTree,
        ttl: float | None = None,
    ) -> None:
        self._trees.set(
            tree_key(owner, repo, ref), data, self.durations.tree if ttl is None else ttl
        )

    # ── Repository metadata ─────────────────────────────────────────────

    def get_repository(self, owner: str, repo: str) -> dict[str, Any] | None:
        # Hand out a copy; the stored dict is shared by every later reader.
        cached = self._repositories.get(repository_key(owner, repo))
        return dict(cached) if cached is not None else None

    def set_repository(
        self, owner: str, repo: str, data: dict[str, Any], ttl: float | None = None
    ) -> None:
        self._repositories.set(
            repository_key(owner, repo),
            dict(data),
            self.durations.repository if ttl is None else ttl,
        )

    # ── File content ────────────────────────────────────────────────────

    def get_file_content_by_path(
        self, owner: str, repo: str, path: str, ref: str | None
    ) -> FileContent | None:
        return self._files_by_path.get(file_by_path_key(owner, repo, path, ref))

    def set_file_content_by_path(
        self,
        owner: str,
        repo: str,
        path: str,
        ref: str | None,
        data: FileContent,
        ttl: float | None = None,
    ) -> None:
        self._files_by_path.set(
            file_by_path_key(owner, repo, path, ref),
            data,
            self.durations.file_content_by_path if ttl is None else ttl,
        )
        if data.sha:
            self.set_file_content_by_sha(owner, repo, data.sha, data)

    def get_file_content_by_sha(self, owner: str, repo: str, sha: str) -> FileContent | None:
        return self._files_by_sha.get(file_by_sha_key(owner, repo, sha))

    def set_file_content_by_sha(
        self, owner: str, repo: str, sha: str, data: FileContent, ttl: float | None = None
    ) -> None:
        self._files_by_sha.set(
            file_by_sha_key(owner, repo, sha),
            data,
            self.durations.file_content_by_sha if ttl is None else ttl,
        )

    # ── Invalidation / diagnostics ──────────────────────────────────────

    def _spaces(self) -> tuple[_Space[Any], ...]:
        return (self._trees, self._repositories, self._files_by_path, self._files_by_sha)

    def invalidate_repository(self, owner: str, repo: str) -> None:
        """Drop every entry belonging to exactly ``owner/repo``."""
        repo_id = _repo_id(owner, repo)
        removed = sum(space.drop_repository(repo_id) for space in self._spaces())
        logger.info("Invalidated %d cache entries for %s", removed, repo_id)

    def invalidate_all(self) -> None:
        for space in self._spaces():
            space.clear()
        logger.info("Cleared all cache entries")

    def purge_expired(self) -> int:
        """Physically remove expired entries from every space."""
        return sum(space.purge_expired() for space in self._spaces())

    def get_stats(self) -> CacheStats:
        return CacheStats(
            tree_entries=len(self._trees),
            file_content_by_sha_entries=len(self._files_by_sha),
            file_content_by_path_entries=len(self._files_by_path),
            repository_entries=len(self._repositories),
        )


# ── Process-wide default instance ───────────────────────────────────────────

_global_cache: GitHubCache | None = None


def get_github_cache() -> GitHubCache:
    """Return the process-wide cache, creating it on first use."""
    global _global_cache  # noqa: PLW0603
    if _global_cache is None:
        _global_cache = GitHubCache()
    return _global_cache


def reset_github_cache() -> None:
    """Empty and discard the process-wide cache (test isolation only)."""
    global _global_cache  # noqa: PLW0603
    if _global_cache is not None:
        _global_cache.invalidate_all()
    _global_cache = None
