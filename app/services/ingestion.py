"""
Upload ingestion for videos and thumbnails.

Video: authorize -> buffer to scratch -> fast-start remux -> inspect aspect ratio -> name key
-> put to object store -> update record -> respond with the resolved record.
Any failure stops the pipeline, removes every local file created so far and leaves the record untouched.
"""
import logging
from contextlib import ExitStack
from pathlib import Path
from typing import BinaryIO, Protocol

from app.config import Settings
from app.errors import AuthError, StorageError, ValidationError
from app.models.video import Video
from app.services.fast_start import Remuxer
from app.services.media_inspector import MediaInspector
from app.services.media_url import DirectURL, MediaURL, MediaURLResolver, ObjectRef, encode_media_url
from app.services.object_store import ObjectStore
from app.services.scratch import owned_path, scratch_file
from app.services.storage_keys import generate_video_key
from app.services.thumbnail_store import Thumbnail, ThumbnailStore
from app.services.video_records import VideoRecordStore

logger = logging.getLogger(__name__)

VIDEO_CONTENT_TYPE = "video/mp4"
THUMBNAIL_CONTENT_TYPES = {"image/jpeg", "image/png"}
CHUNK_SIZE = 1024 * 1024  # 1 MB


class UploadedFile(Protocol):
    """What the pipeline needs from a multipart part (FastAPI's UploadFile satisfies it)."""
    content_type: str | None
    file: BinaryIO


def normalize_media_type(content_type: str | None) -> str:
    return (content_type or "").split(";")[0].strip().lower()


def authorize(records: VideoRecordStore, video_id: str, user_id: str) -> Video:
    video = records.get(video_id)
    if video.user_id != user_id:
        raise AuthError("Unauthorized user upload")
    return video


def copy_limited(src: BinaryIO, dst: BinaryIO, limit: int, what: str) -> int:
    """Stream src into dst in chunks; ValidationError once more than limit bytes arrive."""
    total = 0
    while chunk := src.read(CHUNK_SIZE):
        total += len(chunk)
        if total > limit:
            raise ValidationError(f"{what} exceeds the {limit} byte upload limit")
        dst.write(chunk)
    return total


class VideoIngestionPipeline:
    def __init__(
        self,
        records: VideoRecordStore,
        object_store: ObjectStore,
        inspector: MediaInspector,
        remuxer: Remuxer,
        resolver: MediaURLResolver,
        settings: Settings,
    ):
        self.records = records
        self.object_store = object_store
        self.inspector = inspector
        self.remuxer = remuxer
        self.resolver = resolver
        self.settings = settings

    def _stored_url(self, key: str) -> MediaURL:
        bucket = self.settings.s3_bucket
        if self.settings.video_url_mode == "direct":
            base = self.settings.video_public_base_url.rstrip("/")
            if not base:
                base = f"https://{bucket}.s3.{self.settings.s3_region}.amazonaws.com"
            return DirectURL(f"{base}/{key}")
        return ObjectRef(bucket=bucket, key=key)

    def ingest(self, video_id: str, user_id: str, upload: UploadedFile) -> dict:
        video = authorize(self.records, video_id, user_id)

        if normalize_media_type(upload.content_type) != VIDEO_CONTENT_TYPE:
            raise ValidationError("Invalid video format")

        with ExitStack() as stack:
            tmp = stack.enter_context(scratch_file(directory=self.settings.scratch_dir))
            try:
                size = copy_limited(upload.file, tmp, self.settings.max_video_upload_bytes, "Video")
                tmp.flush()
            except OSError as e:
                raise StorageError("Couldn't save video file") from e
            tmp.close()
            source = Path(tmp.name)

            processed = stack.enter_context(owned_path(self.remuxer.remux(source)))
            source.unlink(missing_ok=True)

            ratio = self.inspector.get_aspect_ratio(processed)
            key = generate_video_key(ratio)

            try:
                with processed.open("rb") as f:
                    self.object_store.put(self.settings.s3_bucket, key, f, VIDEO_CONTENT_TYPE)
            except OSError as e:
                raise StorageError("Couldn't read processed video") from e

        stored = self._stored_url(key)
        video.video_url = encode_media_url(stored)
        try:
            self.records.update(video)
        except StorageError:
            # No compensating delete: the stored object is orphaned.
            logger.error("Video %s stored at %s/%s but record update failed", video_id, self.settings.s3_bucket, key)
            raise

        logger.info("Ingested video %s for user %s: %d bytes, %s -> %s", video_id, user_id, size, ratio, key)
        return self.resolver.resolve_video(video)


class ThumbnailIngestionPipeline:
    def __init__(
        self,
        records: VideoRecordStore,
        thumbnails: ThumbnailStore,
        resolver: MediaURLResolver,
        settings: Settings,
    ):
        self.records = records
        self.thumbnails = thumbnails
        self.resolver = resolver
        self.settings = settings

    def ingest(self, video_id: str, user_id: str, upload: UploadedFile) -> dict:
        video = authorize(self.records, video_id, user_id)

        media_type = normalize_media_type(upload.content_type)
        if media_type not in THUMBNAIL_CONTENT_TYPES:
            raise ValidationError("Invalid thumbnail format; allowed: image/jpeg, image/png")

        limit = self.settings.max_thumbnail_upload_bytes
        try:
            data = upload.file.read(limit + 1)
        except OSError as e:
            raise StorageError("Couldn't read thumbnail data") from e
        if len(data) > limit:
            raise ValidationError(f"Thumbnail exceeds the {limit} byte upload limit")
        if not data:
            raise ValidationError("Thumbnail is empty")

        thumbnail = Thumbnail(data=data, media_type=media_type)
        previous = self.thumbnails.get(video_id)
        url = self.thumbnails.put(video_id, thumbnail)
        video.thumbnail_url = url
        try:
            self.records.update(video)
        except StorageError:
            # The record still points at the previous thumbnail; serve it again.
            self.thumbnails.restore(video_id, previous)
            raise
        self.thumbnails.discard_stale(video_id, thumbnail)

        logger.info("Stored thumbnail for video %s (%s, %d bytes)", video_id, media_type, len(data))
        return self.resolver.resolve_video(video)

