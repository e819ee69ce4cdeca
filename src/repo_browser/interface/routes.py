"""API routes — thin controllers that delegate to the use case."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Path, Query, Response

from repo_browser.infrastructure.github_client import GitHubClient
from repo_browser.interface.dependencies import get_github_client, get_use_case
from repo_browser.interface.schemas import (
    CacheStatsResponse,
    DirectoryResponse,
    ErrorResponse,
    FileContentResponse,
    FileContentSchema,
    RateLimitResponse,
    RateLimitSchema,
    TreeItemSchema,
    TreeNodeSchema,
    TreeResponse,
)
from repo_browser.services.browse_repo import BrowseRepoUseCase

router = APIRouter()

_ERRORS: dict[int | str, dict[str, Any]] = {
    401: {"model": ErrorResponse, "description": "GitHub rejected the configured token"},
    404: {"model": ErrorResponse, "description": "Repository, branch or file not found"},
    422: {"model": ErrorResponse, "description": "Invalid owner, repository or parameter"},
    429: {"model": ErrorResponse, "description": "GitHub API rate limit exceeded"},
    502: {"model": ErrorResponse, "description": "GitHub unreachable or failing"},
}


@router.get("/repos/{owner}/{repo}/tree", response_model=TreeResponse, responses=_ERRORS)
async def get_tree(
    owner: str,
    repo: str,
    ref: str | None = Query(default=None, min_length=1),
    use_case: BrowseRepoUseCase = Depends(get_use_case),
) -> TreeResponse:
    """Recursive tree of a repository, flat and nested."""
    result = await use_case.tree(owner, repo, ref)
    tree = result.tree
    return TreeResponse(
        sha=tree.sha,
        truncated=tree.truncated,
        files=[TreeItemSchema.model_validate(item) for item in tree.files],
        directories=[TreeItemSchema.model_validate(item) for item in tree.directories],
        all=[TreeItemSchema.model_validate(item) for item in tree.all],
        nodes=[TreeNodeSchema.model_validate(node) for node in result.nodes],
        rate_limit=RateLimitSchema.model_validate(result.rate_limit),
    )


@router.get(
    "/repos/{owner}/{repo}/contents", response_model=DirectoryResponse, responses=_ERRORS
)
async def get_directory(
    owner: str,
    repo: str,
    path: str = "",
    ref: str | None = Query(default=None, min_length=1),
    use_case: BrowseRepoUseCase = Depends(get_use_case),
) -> DirectoryResponse:
    """Direct children of *path* (repository root when empty)."""
    result = await use_case.directory(owner, repo, path, ref)
    return DirectoryResponse(
        path=path.strip("/"),
        items=[TreeItemSchema.model_validate(item) for item in result.data],
        rate_limit=RateLimitSchema.model_validate(result.rate_limit),
    )


@router.get(
    "/repos/{owner}/{repo}/files/{path:path}",
    response_model=FileContentResponse,
    responses=_ERRORS,
)
async def get_file(
    owner: str,
    repo: str,
    path: str,
    ref: str | None = Query(default=None, min_length=1),
    use_case: BrowseRepoUseCase = Depends(get_use_case),
) -> FileContentResponse:
    """Decoded content of one file; ``content`` is null for binary files."""
    result = await use_case.file(owner, repo, path, ref)
    return FileContentResponse(
        file=FileContentSchema.model_validate(result.data),
        rate_limit=RateLimitSchema.model_validate(result.rate_limit),
    )


@router.get(
    "/repos/{owner}/{repo}/blobs/{sha}",
    response_model=FileContentResponse,
    responses=_ERRORS,
)
async def get_blob(
    owner: str,
    repo: str,
    sha: str = Path(pattern=r"^[0-9a-fA-F]{4,64}$"),
    use_case: BrowseRepoUseCase = Depends(get_use_case),
) -> FileContentResponse:
    """Decoded blob addressed by sha (name and path are empty)."""
    result = await use_case.blob(owner, repo, sha)
    return FileContentResponse(
        file=FileContentSchema.model_validate(result.data),
        rate_limit=RateLimitSchema.model_validate(result.rate_limit),
    )


# ── Cache control ───────────────────────────────────────────────────────────


@router.delete("/repos/{owner}/{repo}/cache", status_code=204)
async def invalidate_repository(
    owner: str,
    repo: str,
    use_case: BrowseRepoUseCase = Depends(get_use_case),
) -> Response:
    use_case.refresh(owner, repo)
    return Response(status_code=204)


@router.delete("/cache", status_code=204)
async def invalidate_all(use_case: BrowseRepoUseCase = Depends(get_use_case)) -> Response:
    use_case.refresh_all()
    return Response(status_code=204)


@router.get("/cache/stats", response_model=CacheStatsResponse)
async def cache_stats(use_case: BrowseRepoUseCase = Depends(get_use_case)) -> CacheStatsResponse:
    stats = use_case.cache_stats()
    if stats is None:
        return CacheStatsResponse(
            tree_entries=0,
            file_content_by_sha_entries=0,
            file_content_by_path_entries=0,
            repository_entries=0,
            total=0,
            enabled=False,
        )
    return CacheStatsResponse.model_validate(stats)


@router.get("/rate-limit", response_model=RateLimitResponse)
async def rate_limit(client: GitHubClient = Depends(get_github_client)) -> RateLimitResponse:
    snapshot = client.get_rate_limit()
    return RateLimitResponse(
        rate_limit=RateLimitSchema.model_validate(snapshot) if snapshot else None,
        authenticated=client.has_token(),
    )
