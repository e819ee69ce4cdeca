"""Domain entities — pure data structures with no external dependencies."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from repo_browser.domain.value_objects import RateLimit

T = TypeVar("T")


class ItemType(str, Enum):
    """Kind of node in a repository tree."""

    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True, slots=True)
class TreeItem:
    """A single file or directory from the flattened git tree."""

    path: str
    name: str
    type: ItemType
    sha: str
    url: str
    size: int | None = None  # files only


@dataclass(frozen=True, slots=True)
class RepositoryTree:
    """Flattened repository tree.

    ``all`` holds ``directories`` followed by ``files``, each in upstream
    order.  ``truncated`` means GitHub dropped entries past its size limit,
    so the listing is incomplete.
    """

    sha: str
    truncated: bool
    files: tuple[TreeItem, ...] = ()
    directories: tuple[TreeItem, ...] = ()
    all: tuple[TreeItem, ...] = ()


@dataclass(frozen=True, slots=True)
class FileContent:
    """Decoded file or blob.

    ``content`` is ``None`` whenever ``is_binary`` is set; ``raw_content``
    always keeps the payload exactly as GitHub sent it.
    """

    name: str
    path: str
    sha: str
    size: int
    encoding: str
    content: str | None
    is_binary: bool
    raw_content: str


@dataclass(frozen=True, slots=True)
class ApiResult(Generic[T]):
    """Payload of a client call plus the rate-limit snapshot it observed."""

    data: T
    rate_limit: RateLimit


@dataclass(frozen=True, slots=True)
class CacheStats:
    """Live entry counts per cache space (diagnostics only)."""

    tree_entries: int
    file_content_by_sha_entries: int
    file_content_by_path_entries: int
    repository_entries: int

    @property
    def total(self) -> int:
        return (
            self.tree_entries
            + self.file_content_by_sha_entries
            + self.file_content_by_path_entries
            + self.repository_entries
        )


@dataclass(slots=True)
class TreeNode:
    """Node of the nested tree shown by a file browser.

    ``children`` is ``None`` for files and a (possibly empty) list for
    directories.
    """

    name: str
    path: str
    type: ItemType
    item: TreeItem
    children: list[TreeNode] | None = None
