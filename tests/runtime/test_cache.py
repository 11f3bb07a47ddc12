"""Tests for the metadata caches."""

from __future__ import annotations

from pathlib import Path

from deptree.runtime.cache import FileCache, MemoryCache, MetadataCache, is_cache


def test_memory_cache_roundtrip() -> None:
    cache = MemoryCache()
    cache.set("lodash@^4", '{"version": "4.17.21"}')

    assert cache.get("lodash@^4") == '{"version": "4.17.21"}'
    assert cache.get("missing@1") is None
    assert "lodash@^4" in cache
    assert len(cache) == 1


def test_file_cache_persists_between_instances(tmp_path: Path) -> None:
    FileCache(tmp_path / "cache").set("@scope/pkg@^1.0.0", "{}")

    assert FileCache(tmp_path / "cache").get("@scope/pkg@^1.0.0") == "{}"
    assert FileCache(tmp_path / "cache").get("other@1.0.0") is None


def test_file_cache_keys_do_not_collide(tmp_path: Path) -> None:
    cache = FileCache(tmp_path)

    first = cache.path_for("@a/b@1")
    second = cache.path_for("a-b@1")

    assert first != second
    assert first.parent == tmp_path
    assert first.suffix == ".json"


def test_cache_contract() -> None:
    assert isinstance(MemoryCache(), MetadataCache)
    assert is_cache(FileCache(Path(".")))
    assert not is_cache(object())
