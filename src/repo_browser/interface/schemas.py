"""Pydantic response DTOs for the API boundary."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from repo_browser.domain.entities import ItemType


class _FromDomain(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class RateLimitSchema(_FromDomain):
    limit: int
    remaining: int
    reset: int
    used: int


class TreeItemSchema(_FromDomain):
    path: str
    name: str
    type: ItemType
    sha: str
    url: str
    size: int | None = None


class TreeNodeSchema(_FromDomain):
    name: str
    path: str
    type: ItemType
    children: list[TreeNodeSchema] | None = None


class TreeResponse(BaseModel):
    """Response from ``GET /repos/{owner}/{repo}/tree``.

    ``truncated`` is passed through unchanged: when set, GitHub omitted
    entries and the listing must not be treated as complete.
    """

    sha: str
    truncated: bool
    files: list[TreeItemSchema]
    directories: list[TreeItemSchema]
    all: list[TreeItemSchema]
    nodes: list[TreeNodeSchema]
    rate_limit: RateLimitSchema


class DirectoryResponse(BaseModel):
    path: str
    items: list[TreeItemSchema]
    rate_limit: RateLimitSchema


class FileContentSchema(_FromDomain):
    name: str
    path: str
    sha: str
    size: int
    encoding: str
    content: str | None
    is_binary: bool
    raw_content: str


class FileContentResponse(BaseModel):
    file: FileContentSchema
    rate_limit: RateLimitSchema


class CacheStatsResponse(_FromDomain):
    tree_entries: int
    file_content_by_sha_entries: int
    file_content_by_path_entries: int
    repository_entries: int
    total: int
    enabled: bool = True


class RateLimitResponse(BaseModel):
    """Last snapshot seen; ``rate_limit`` is ``None`` before the first request."""

    rate_limit: RateLimitSchema | None
    authenticated: bool


class ErrorResponse(BaseModel):
    """Standard error envelope returned on all failure paths."""

    status: str = "error"
    kind: str
    message: str
    retryable: bool = False
