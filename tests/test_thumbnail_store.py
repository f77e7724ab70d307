"""
Tests for in-memory and on-disk thumbnail stores.
"""

import threading
from pathlib import Path

import pydantic
import pytest

from app.config import Settings
from app.services.thumbnail_store import (
    DiskThumbnailStore,
    InMemoryThumbnailStore,
    Thumbnail,
    build_thumbnail_store,
    extension_for_media_type,
)

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
JPEG = b"\xff\xd8\xff" + b"\x00" * 32


@pytest.mark.parametrize(
    "media_type,ext",
    [("image/png", "png"), ("image/jpeg", "jpg"), ("image/PNG; charset=binary", "png")],
)
def test_extension_for_media_type(media_type, ext):
    assert extension_for_media_type(media_type) == ext


class TestInMemoryThumbnailStore:
    def test_put_get_roundtrip_preserves_media_type(self):
        store = InMemoryThumbnailStore("http://localhost:8091/")
        url = store.put("vid-1", Thumbnail(PNG, "image/png"))

        assert url == "http://localhost:8091/api/thumbnails/vid-1"
        assert store.get("vid-1") == Thumbnail(PNG, "image/png")

    def test_missing_returns_none(self):
        assert InMemoryThumbnailStore("http://x").get("nope") is None

    def test_last_writer_wins(self):
        store = InMemoryThumbnailStore("http://x")
        store.put("vid", Thumbnail(PNG, "image/png"))
        store.put("vid", Thumbnail(JPEG, "image/jpeg"))
        assert store.get("vid").media_type == "image/jpeg"

    def test_restore_puts_back_previous_or_removes(self):
        store = InMemoryThumbnailStore("http://x")
        store.put("vid", Thumbnail(PNG, "image/png"))
        store.put("vid", Thumbnail(JPEG, "image/jpeg"))

        store.restore("vid", Thumbnail(PNG, "image/png"))
        assert store.get("vid") == Thumbnail(PNG, "image/png")

        store.restore("vid", None)
        assert store.get("vid") is None

    def test_concurrent_puts_are_all_stored(self):
        store = InMemoryThumbnailStore("http://x")
        threads = [
            threading.Thread(target=store.put, args=(f"vid-{i}", Thumbnail(PNG, "image/png")))
            for i in range(50)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert all(store.get(f"vid-{i}") is not None for i in range(50))


class TestDiskThumbnailStore:
    def test_put_writes_file_and_returns_assets_url(self, tmp_path: Path):
        store = DiskThumbnailStore(tmp_path / "assets", "http://localhost:8091")

        url = store.put("vid-1", Thumbnail(PNG, "image/png"))

        assert url == "http://localhost:8091/assets/vid-1.png"
        assert (tmp_path / "assets" / "vid-1.png").read_bytes() == PNG
        assert [p.name for p in (tmp_path / "assets").iterdir()] == ["vid-1.png"]

    def test_get_reads_back_media_type(self, tmp_path: Path):
        store = DiskThumbnailStore(tmp_path, "http://x")
        store.put("vid-2", Thumbnail(JPEG, "image/jpeg"))

        assert store.get("vid-2") == Thumbnail(JPEG, "image/jpeg")

    def test_old_extension_kept_until_discarded(self, tmp_path: Path):
        store = DiskThumbnailStore(tmp_path, "http://x")
        store.put("vid-3", Thumbnail(JPEG, "image/jpeg"))
        store.put("vid-3", Thumbnail(PNG, "image/png"))

        assert sorted(p.name for p in tmp_path.iterdir()) == ["vid-3.jpg", "vid-3.png"]

        store.discard_stale("vid-3", Thumbnail(PNG, "image/png"))

        assert sorted(p.name for p in tmp_path.iterdir()) == ["vid-3.png"]
        assert store.get("vid-3").media_type == "image/png"

    def test_restore_brings_back_previous_under_other_extension(self, tmp_path: Path):
        store = DiskThumbnailStore(tmp_path, "http://x")
        store.put("vid-5", Thumbnail(JPEG, "image/jpeg"))
        previous = store.get("vid-5")
        store.put("vid-5", Thumbnail(PNG, "image/png"))

        store.restore("vid-5", previous)

        assert sorted(p.name for p in tmp_path.iterdir()) == ["vid-5.jpg"]
        assert (tmp_path / "vid-5.jpg").read_bytes() == JPEG

    def test_restore_rewrites_previous_under_same_extension(self, tmp_path: Path):
        store = DiskThumbnailStore(tmp_path, "http://x")
        store.put("vid-6", Thumbnail(PNG, "image/png"))
        previous = store.get("vid-6")
        store.put("vid-6", Thumbnail(b"\x89PNG other", "image/png"))

        store.restore("vid-6", previous)

        assert (tmp_path / "vid-6.png").read_bytes() == PNG

    def test_restore_without_previous_removes_new_file(self, tmp_path: Path):
        store = DiskThumbnailStore(tmp_path, "http://x")
        store.put("vid-7", Thumbnail(PNG, "image/png"))

        store.restore("vid-7", None)

        assert list(tmp_path.iterdir()) == []
    def test_failed_write_leaves_no_file(self, tmp_path: Path, monkeypatch):
        import os

        from app.errors import StorageError

        store = DiskThumbnailStore(tmp_path, "http://x")

        def broken_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(os, "replace", broken_replace)

        with pytest.raises(StorageError, match="disk full"):
            store.put("vid-4", Thumbnail(PNG, "image/png"))
        assert list(tmp_path.iterdir()) == []


def test_build_thumbnail_store_selects_backend(tmp_path: Path):
    assert isinstance(build_thumbnail_store(Settings(thumbnail_storage="memory")), InMemoryThumbnailStore)
    disk = build_thumbnail_store(Settings(thumbnail_storage="disk", assets_root=str(tmp_path)))
    assert isinstance(disk, DiskThumbnailStore)
    assert disk.assets_root == tmp_path
    with pytest.raises(pydantic.ValidationError):
        Settings(thumbnail_storage="s3")
