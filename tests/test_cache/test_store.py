"""Tests for the cache store adapters."""

from __future__ import annotations

from pathlib import Path

import pytest

from fingerbank.cache import CacheStore, DiskStore, MemoryStore, create_store
from fingerbank.models import CacheConfig


@pytest.fixture()
def disk_store(tmp_path: Path):
    store = DiskStore(tmp_path / "responses")
    yield store
    store.close()


class TestMemoryStore:
    def test_get_missing_returns_none(self, memory_store: MemoryStore) -> None:
        assert memory_store.get("nope") is None

    def test_set_and_get(self, memory_store: MemoryStore) -> None:
        memory_store.set("k", b"v")
        assert memory_store.get("k") == b"v"
        assert "k" in memory_store
        assert len(memory_store) == 1

    def test_set_replaces(self, memory_store: MemoryStore) -> None:
        memory_store.set("k", b"old")
        memory_store.set("k", b"new")
        assert memory_store.get("k") == b"new"
        assert len(memory_store) == 1

    def test_delete(self, memory_store: MemoryStore) -> None:
        memory_store.set("k", b"v")
        memory_store.delete("k")
        assert memory_store.get("k") is None

    def test_delete_missing_is_noop(self, memory_store: MemoryStore) -> None:
        memory_store.delete("never-stored")

    def test_clear(self, memory_store: MemoryStore) -> None:
        memory_store.set("a", b"1")
        memory_store.set("b", b"2")
        memory_store.clear()
        assert len(memory_store) == 0

    def test_is_cache_store(self, memory_store: MemoryStore) -> None:
        assert isinstance(memory_store, CacheStore)


class TestDiskStore:
    def test_set_and_get(self, disk_store: DiskStore) -> None:
        disk_store.set("k", b"v")
        assert disk_store.get("k") == b"v"
        assert "k" in disk_store

    def test_get_missing_returns_none(self, disk_store: DiskStore) -> None:
        assert disk_store.get("nope") is None

    def test_delete_missing_is_noop(self, disk_store: DiskStore) -> None:
        disk_store.delete("never-stored")
        assert len(disk_store) == 0

    def test_persists_across_instances(self, tmp_path: Path) -> None:
        with DiskStore(tmp_path / "responses") as store:
            store.set("https://api.example.com/devices/1", b"payload")

        with DiskStore(tmp_path / "responses") as reopened:
            assert reopened.get("https://api.example.com/devices/1") == b"payload"

    def test_clear_returns_count(self, disk_store: DiskStore) -> None:
        disk_store.set("a", b"1")
        disk_store.set("b", b"2")
        assert disk_store.clear() == 2
        assert len(disk_store) == 0

    def test_directory_created(self, tmp_path: Path) -> None:
        with DiskStore(tmp_path / "nested" / "responses") as store:
            assert store.directory.is_dir()


class TestCreateStore:
    def test_disabled_returns_none(self, tmp_path: Path) -> None:
        assert create_store(CacheConfig(enabled=False), tmp_path) is None

    def test_memory_backend(self, tmp_path: Path) -> None:
        store = create_store(CacheConfig(backend="memory"), tmp_path)
        assert isinstance(store, MemoryStore)

    def test_disk_backend_uses_responses_subdir(self, tmp_path: Path) -> None:
        store = create_store(CacheConfig(backend="disk"), tmp_path)
        assert isinstance(store, DiskStore)
        try:
            assert store.directory == tmp_path / "responses"
        finally:
            store.close()
