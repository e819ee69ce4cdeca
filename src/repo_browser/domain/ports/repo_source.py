"""Port: repository source — defined by the domain, implemented by infrastructure."""

from __future__ import annotations

from typing import Protocol

from repo_browser.domain.entities import (
    ApiResult,
    CacheStats,
    FileContent,
    RepositoryTree,
    TreeItem,
)


class RepoSource(Protocol):
    """Abstract contract for reading repository trees and file contents."""

    async def get_repository_files(
        self, owner: str, repo: str, ref: str | None = None
    ) -> ApiResult[RepositoryTree]:
        """Return the flattened recursive tree for *ref* (default branch when ``None``)."""
        ...

    async def get_directory_contents(
        self, owner: str, repo: str, path: str = "", ref: str | None = None
    ) -> ApiResult[list[TreeItem]]:
        """Return the direct children of *path*."""
        ...

    async def get_file_content(
        self, owner: str, repo: str, path: str, ref: str | None = None
    ) -> ApiResult[FileContent]:
        """Return a decoded file addressed by path."""
        ...

    async def get_file_content_by_sha(
        self, owner: str, repo: str, sha: str
    ) -> ApiResult[FileContent]:
        """Return a decoded blob addressed by sha."""
        ...

    def invalidate_cache(self, owner: str, repo: str) -> None:
        ...

    def invalidate_all_cache(self) -> None:
        ...

    def cache_stats(self) -> CacheStats | None:
        ...
