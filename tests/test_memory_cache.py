from __future__ import annotations

import pytest

from repo_browser.domain.entities import FileContent, RepositoryTree
from repo_browser.infrastructure.config import Settings
from repo_browser.infrastructure.memory_cache import (
    CacheDurations,
    GitHubCache,
    get_github_cache,
    reset_github_cache,
)


def _file(sha: str = "abc123", path: str = "src/a.ts", content: str = "x") -> FileContent:
    return FileContent(
        name=path.rsplit("/", 1)[-1],
        path=path,
        sha=sha,
        size=len(content),
        encoding="base64",
        content=content,
        is_binary=False,
        raw_content="eA==",
    )


_TREE = RepositoryTree(sha="t", truncated=False)


def _fill(cache: GitHubCache, owner: str, repo: str) -> None:
    cache.set_tree(owner, repo, None, _TREE)
    cache.set_repository(owner, repo, {"default_branch": "main"})
    cache.set_file_content_by_path(owner, repo, "src/a.ts", "main", _file(sha=f"{owner}-{repo}"))


def test_set_then_get_returns_value(cache):
    cache.set_tree("octo", "demo", "main", _TREE)
    cache.set_repository("octo", "demo", {"id": 1})
    cache.set_file_content_by_sha("octo", "demo", "s1", _file("s1"))

    assert cache.get_tree("octo", "demo", "main") is _TREE
    assert cache.get_repository("octo", "demo") == {"id": 1}
    assert cache.get_file_content_by_sha("octo", "demo", "s1").sha == "s1"


def test_default_ref_is_its_own_key(cache):
    cache.set_tree("octo", "demo", None, _TREE)
    assert cache.get_tree("octo", "demo", None) is _TREE
    assert cache.get_tree("octo", "demo", "main") is None


@pytest.mark.parametrize(
    ("store", "load", "stat", "ttl"),
    [
        (
            lambda c: c.set_tree("o", "r", None, _TREE),
            lambda c: c.get_tree("o", "r", None),
            "tree_entries",
            30 * 60,
        ),
        (
            lambda c: c.set_repository("o", "r", {}),
            lambda c: c.get_repository("o", "r"),
            "repository_entries",
            15 * 60,
        ),
        (
            lambda c: c.set_file_content_by_path("o", "r", "a", None, _file(sha="")),
            lambda c: c.get_file_content_by_path("o", "r", "a", None),
            "file_content_by_path_entries",
            5 * 60,
        ),
        (
            lambda c: c.set_file_content_by_sha("o", "r", "s", _file("s")),
            lambda c: c.get_file_content_by_sha("o", "r", "s"),
            "file_content_by_sha_entries",
            24 * 60 * 60,
        ),
    ],
)
def test_entries_expire_lazily_at_default_ttl(cache, clock, store, load, stat, ttl):
    store(cache)
    clock.advance(ttl - 1)
    assert load(cache) is not None
    assert getattr(cache.get_stats(), stat) == 1

    clock.advance(1)
    # Still physically present until read.
    assert getattr(cache.get_stats(), stat) == 1
    assert load(cache) is None
    assert getattr(cache.get_stats(), stat) == 0


def test_explicit_ttl_overrides_default(cache, clock):
    cache.set_tree("o", "r", None, _TREE, ttl=10)
    clock.advance(10)
    assert cache.get_tree("o", "r", None) is None


def test_set_overwrites_and_restamps(cache, clock):
    cache.set_repository("o", "r", {"v": 1})
    clock.advance(14 * 60)
    cache.set_repository("o", "r", {"v": 2})
    clock.advance(14 * 60)
    assert cache.get_repository("o", "r") == {"v": 2}


def test_path_write_populates_sha_space(cache, clock):
    content = _file(sha="X")
    cache.set_file_content_by_path("o", "r", "src/a.ts", "main", content)

    assert cache.get_file_content_by_sha("o", "r", "X") is content
    stats = cache.get_stats()
    assert stats.file_content_by_path_entries == 1
    assert stats.file_content_by_sha_entries == 1

    # The sha entry outlives the path entry.
    clock.advance(6 * 60)
    assert cache.get_file_content_by_path("o", "r", "src/a.ts", "main") is None
    assert cache.get_file_content_by_sha("o", "r", "X") is content


def test_path_write_without_sha_leaves_sha_space_alone(cache):
    cache.set_file_content_by_path("o", "r", "a", None, _file(sha=""))
    assert cache.get_stats().file_content_by_sha_entries == 0


def test_invalidate_repository_is_scoped(cache):
    _fill(cache, "a", "r1")
    _fill(cache, "a", "r2")
    _fill(cache, "b", "r1")
    _fill(cache, "a", "r10")
    _fill(cache, "xa", "r1")

    cache.invalidate_repository("a", "r1")

    assert cache.get_tree("a", "r1", None) is None
    assert cache.get_repository("a", "r1") is None
    assert cache.get_file_content_by_path("a", "r1", "src/a.ts", "main") is None
    assert cache.get_file_content_by_sha("a", "r1", "a-r1") is None

    for owner, repo in [("a", "r2"), ("b", "r1"), ("a", "r10"), ("xa", "r1")]:
        assert cache.get_tree(owner, repo, None) is _TREE
        assert cache.get_repository(owner, repo) is not None
        assert cache.get_file_content_by_path(owner, repo, "src/a.ts", "main") is not None
        assert cache.get_file_content_by_sha(owner, repo, f"{owner}-{repo}") is not None

    assert cache.get_stats().total == 4 * 4


def test_path_with_colons_does_not_break_invalidation(cache):
    cache.set_file_content_by_path("a", "r1", "weird:name:here", "dev", _file(sha=""))
    cache.invalidate_repository("a", "r1")
    assert cache.get_stats().total == 0


def test_invalidate_all(cache):
    _fill(cache, "a", "r1")
    _fill(cache, "b", "r2")
    cache.invalidate_all()
    assert cache.get_stats().total == 0


def test_purge_expired(cache, clock):
    cache.set_file_content_by_path("o", "r", "a", None, _file(sha="s"))
    cache.set_tree("o", "r", None, _TREE)
    clock.advance(6 * 60)

    assert cache.purge_expired() == 1
    stats = cache.get_stats()
    assert stats.file_content_by_path_entries == 0
    assert stats.tree_entries == 1
    assert stats.file_content_by_sha_entries == 1


def test_durations_from_settings(clock):
    settings = Settings(_env_file=None, cache_tree_ttl=5)
    cache = GitHubCache(CacheDurations.from_settings(settings), clock=clock)
    cache.set_tree("o", "r", None, _TREE)
    clock.advance(5)
    assert cache.get_tree("o", "r", None) is None
    assert cache.durations.file_content_by_sha == 24 * 60 * 60


def test_global_cache_is_lazy_singleton_and_resettable():
    first = get_github_cache()
    assert get_github_cache() is first
    first.set_repository("o", "r", {})

    reset_github_cache()

    second = get_github_cache()
    assert second is not first
    assert second.get_stats().total == 0
    assert first.get_stats().total == 0
