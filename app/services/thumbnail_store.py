"""
Thumbnail storage, keyed by video id.
memory: process-local dict (demo only, lost on restart), served by GET /api/thumbnails/{video_id}.
disk: <assets_root>/<video_id>.<ext>, served by the /assets static mount.
"""
import logging
import os
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from app.config import Settings
from app.errors import StorageError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Thumbnail:
    data: bytes
    media_type: str


class ThumbnailStore(Protocol):
    def put(self, video_id: str, thumbnail: Thumbnail) -> str:
        """Store the thumbnail and return the URL clients should load it from."""
        ...

    def get(self, video_id: str) -> Thumbnail | None: ...

    def discard_stale(self, video_id: str, keep: Thumbnail) -> None:
        """Drop anything stored for video_id other than keep (called once the record points at keep)."""
        ...

    def restore(self, video_id: str, previous: Thumbnail | None) -> None:
        """Put back what get() returned before a put whose record update failed."""
        ...


def extension_for_media_type(media_type: str) -> str:
    subtype = media_type.split("/", 1)[-1].split(";")[0].strip().lower()
    return "jpg" if subtype == "jpeg" else subtype


class InMemoryThumbnailStore:
    def __init__(self, public_base_url: str):
        self._base_url = public_base_url.rstrip("/")
        self._items: dict[str, Thumbnail] = {}
        self._lock = threading.Lock()

    def put(self, video_id: str, thumbnail: Thumbnail) -> str:
        with self._lock:
            self._items[video_id] = thumbnail
        return f"{self._base_url}/api/thumbnails/{video_id}"

    def get(self, video_id: str) -> Thumbnail | None:
        with self._lock:
            return self._items.get(video_id)

    def discard_stale(self, video_id: str, keep: Thumbnail) -> None:
        # One entry per video; put already replaced it.
        pass

    def restore(self, video_id: str, previous: Thumbnail | None) -> None:
        with self._lock:
            if previous is None:
                self._items.pop(video_id, None)
            else:
                self._items[video_id] = previous


class DiskThumbnailStore:
    def __init__(self, assets_root: Path, public_base_url: str):
        self.assets_root = assets_root
        self._base_url = public_base_url.rstrip("/")

    def _path(self, video_id: str, media_type: str) -> Path:
        return self.assets_root / f"{video_id}.{extension_for_media_type(media_type)}"

    def _files(self, video_id: str) -> list[Path]:
        return sorted(p for p in self.assets_root.glob(f"{video_id}.*") if not p.name.endswith(".tmp"))

    def _write(self, video_id: str, thumbnail: Thumbnail) -> Path:
        path = self._path(video_id, thumbnail.media_type)
        self.assets_root.mkdir(parents=True, exist_ok=True)
        # Write beside the target then rename, so readers never see a partial file.
        fd, tmp_name = tempfile.mkstemp(dir=self.assets_root, prefix=f".{video_id}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(thumbnail.data)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        return path

    def put(self, video_id: str, thumbnail: Thumbnail) -> str:
        # A file under another extension stays until discard_stale; the record may still point at it.
        try:
            path = self._write(video_id, thumbnail)
        except OSError as e:
            raise StorageError(f"Couldn't save thumbnail file: {e}") from e
        logger.info("Saved thumbnail for video %s to %s", video_id, path)
        return f"{self._base_url}/assets/{path.name}"

    def get(self, video_id: str) -> Thumbnail | None:
        for path in self._files(video_id):
            ext = path.suffix.lstrip(".")
            media_type = "image/jpeg" if ext == "jpg" else f"image/{ext}"
            return Thumbnail(data=path.read_bytes(), media_type=media_type)
        return None

    def discard_stale(self, video_id: str, keep: Thumbnail) -> None:
        keep_path = self._path(video_id, keep.media_type)
        for old in self._files(video_id):
            if old == keep_path:
                continue
            try:
                old.unlink(missing_ok=True)
            except OSError as e:
                logger.warning("Couldn't remove stale thumbnail %s: %s", old, e)

    def restore(self, video_id: str, previous: Thumbnail | None) -> None:
        try:
            if previous is None:
                for path in self._files(video_id):
                    path.unlink(missing_ok=True)
                return
            self._write(video_id, previous)
        except OSError as e:
            raise StorageError(f"Couldn't restore thumbnail file: {e}") from e
        self.discard_stale(video_id, previous)


def assets_root_path(settings: Settings) -> Path:
    if settings.assets_root:
        return Path(settings.assets_root)
    return Path(__file__).resolve().parent.parent.parent / "assets"


def build_thumbnail_store(settings: Settings) -> ThumbnailStore:
    if settings.thumbnail_storage == "disk":
        return DiskThumbnailStore(assets_root_path(settings), settings.public_base_url)
    return InMemoryThumbnailStore(settings.public_base_url)
