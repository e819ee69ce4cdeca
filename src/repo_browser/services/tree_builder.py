"""Tree flattening — turn the git-trees listing into files and directories."""

from __future__ import annotations

from typing import Any, Iterable

from repo_browser.domain.entities import ItemType, RepositoryTree, TreeItem, TreeNode


def _name(path: str) -> str:
    return path.rsplit("/", maxsplit=1)[-1] or path


def normalize_path(path: str) -> str:
    """Strip leading and trailing slashes."""
    return path.strip("/")


def to_tree_item(entry: dict[str, Any]) -> TreeItem:
    path = entry["path"]
    is_file = entry.get("type") == "blob"
    return TreeItem(
        path=path,
        name=_name(path),
        type=ItemType.FILE if is_file else ItemType.DIRECTORY,
        sha=entry.get("sha", ""),
        url=entry.get("url", ""),
        size=entry.get("size") if is_file else None,
    )


def build_repository_tree(raw: dict[str, Any]) -> RepositoryTree:
    """Flatten a ``GET /git/trees/{ref}`` response.

    Blobs become files and everything else (trees, and submodule commits)
    becomes a directory.  ``all`` lists directories before files while
    keeping upstream order inside each group.
    """
    files: list[TreeItem] = []
    directories: list[TreeItem] = []

    for entry in raw.get("tree", []):
        item = to_tree_item(entry)
        if item.type is ItemType.FILE:
            files.append(item)
        else:
            directories.append(item)

    return RepositoryTree(
        sha=raw.get("sha", ""),
        truncated=bool(raw.get("truncated", False)),
        files=tuple(files),
        directories=tuple(directories),
        all=(*directories, *files),
    )


def direct_children(items: Iterable[TreeItem], path: str = "") -> list[TreeItem]:
    """Items sitting exactly one level below *path* (root when empty)."""
    parent = normalize_path(path)
    if not parent:
        return [item for item in items if "/" not in item.path]

    prefix = parent + "/"
    return [
        item
        for item in items
        if item.path.startswith(prefix) and "/" not in item.path[len(prefix):]
    ]


def build_nested_tree(items: Iterable[TreeItem]) -> list[TreeNode]:
    """Arrange flat items into a parent/child hierarchy for display.

    Directories sort before files, and each group sorts by path.  An item
    whose parent directory is missing from *items* (possible when the tree
    was truncated) is dropped.
    """
    ordered = sorted(items, key=lambda item: (item.type is ItemType.FILE, item.path))
    roots: list[TreeNode] = []
    by_path: dict[str, TreeNode] = {}

    for item in ordered:
        node = TreeNode(
            name=item.name,
            path=item.path,
            type=item.type,
            item=item,
            children=[] if item.type is ItemType.DIRECTORY else None,
        )
        by_path[item.path] = node

        parent_path, sep, _ = item.path.rpartition("/")
        if not sep:
            roots.append(node)
            continue
        parent = by_path.get(parent_path)
        if parent is not None and parent.children is not None:
            parent.children.append(node)

    return roots
