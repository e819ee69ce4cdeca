"""Port: content cache — defined by the domain, implemented by infrastructure."""

from __future__ import annotations

from typing import Any, Protocol

from repo_browser.domain.entities import CacheStats, FileContent, RepositoryTree


class ContentCache(Protocol):
    """Abstract contract the GitHub client uses for caching responses.

    ``ref=None`` means "the repository's default branch" and is keyed
    separately from any explicit ref.
    """

    def get_tree(self, owner: str, repo: str, ref: str | None) -> RepositoryTree | None:
        ...

    def set_tree(
        self,
        owner: str,
        repo: str,
        ref: str | None,
        data: RepositoryTree,
        ttl: float | None = None,
    ) -> None:
        ...

    def get_repository(self, owner: str, repo: str) -> dict[str, Any] | None:
        ...

    def set_repository(
        self, owner: str, repo: str, data: dict[str, Any], ttl: float | None = None
    ) -> None:
        ...

    def get_file_content_by_path(
        self, owner: str, repo: str, path: str, ref: str | None
    ) -> FileContent | None:
        ...

    def set_file_content_by_path(
        self,
        owner: str,
        repo: str,
        path: str,
        ref: str | None,
        data: FileContent,
        ttl: float | None = None,
    ) -> None:
        """Store by path and, when ``data.sha`` is set, by sha as well."""
        ...

    def get_file_content_by_sha(self, owner: str, repo: str, sha: str) -> FileContent | None:
        ...

    def set_file_content_by_sha(
        self, owner: str, repo: str, sha: str, data: FileContent, ttl: float | None = None
    ) -> None:
        ...

    def invalidate_repository(self, owner: str, repo: str) -> None:
        ...

    def invalidate_all(self) -> None:
        ...

    def get_stats(self) -> CacheStats:
        ...
