"""Browse-repository use case — what the code browser page asks for.

Depends only on the :class:`RepoSource` port.  Owner and repository names
are validated before any request is made, and identical concurrent reads
share a single upstream fetch through :class:`RequestCoalescer`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from repo_browser.domain.entities import (
    ApiResult,
    CacheStats,
    FileContent,
    RepositoryTree,
    TreeItem,
    TreeNode,
)
from repo_browser.domain.ports.repo_source import RepoSource
from repo_browser.domain.value_objects import RateLimit, RepoCoordinates
from repo_browser.services.request_coalescer import RequestCoalescer
from repo_browser.services.tree_builder import build_nested_tree, normalize_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BrowsedTree:
    """A flattened tree together with its nested form."""

    tree: RepositoryTree
    nodes: list[TreeNode]
    rate_limit: RateLimit


class BrowseRepoUseCase:
    """Read-side operations of the repository browser."""

    def __init__(
        self,
        repo_source: RepoSource,
        coalescer: RequestCoalescer | None = None,
    ) -> None:
        self._source = repo_source
        self._coalescer = coalescer or RequestCoalescer()

    async def tree(self, owner: str, repo: str, ref: str | None = None) -> BrowsedTree:
        coords = RepoCoordinates.of(owner, repo)
        result: ApiResult[RepositoryTree] = await self._coalescer.run(
            ("tree", coords.full_name, ref),
            lambda: self._source.get_repository_files(coords.owner, coords.repo, ref),
        )
        if result.data.truncated:
            logger.info("Serving truncated tree for %s", coords.full_name)
        return BrowsedTree(
            tree=result.data,
            nodes=build_nested_tree(result.data.all),
            rate_limit=result.rate_limit,
        )

    async def directory(
        self, owner: str, repo: str, path: str = "", ref: str | None = None
    ) -> ApiResult[list[TreeItem]]:
        coords = RepoCoordinates.of(owner, repo)
        path = normalize_path(path)
        return await self._coalescer.run(
            ("dir", coords.full_name, path, ref),
            lambda: self._source.get_directory_contents(coords.owner, coords.repo, path, ref),
        )

    async def file(
        self, owner: str, repo: str, path: str, ref: str | None = None
    ) -> ApiResult[FileContent]:
        coords = RepoCoordinates.of(owner, repo)
        path = path.lstrip("/")
        return await self._coalescer.run(
            ("file", coords.full_name, path, ref),
            lambda: self._source.get_file_content(coords.owner, coords.repo, path, ref),
        )

    async def blob(self, owner: str, repo: str, sha: str) -> ApiResult[FileContent]:
        coords = RepoCoordinates.of(owner, repo)
        return await self._coalescer.run(
            ("blob", coords.full_name, sha),
            lambda: self._source.get_file_content_by_sha(coords.owner, coords.repo, sha),
        )

    # ── Cache control / diagnostics ─────────────────────────────────────

    def refresh(self, owner: str, repo: str) -> None:
        """Forget everything cached for one repository."""
        coords = RepoCoordinates.of(owner, repo)
        self._source.invalidate_cache(coords.owner, coords.repo)

    def refresh_all(self) -> None:
        self._source.invalidate_all_cache()

    def cache_stats(self) -> CacheStats | None:
        return self._source.cache_stats()
