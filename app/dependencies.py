"""FastAPI providers wiring settings, DB session and storage backends into the pipelines."""
import uuid

from fastapi import Depends
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.core.storage import get_object_store, get_thumbnail_store
from app.database import get_db
from app.errors import ValidationError
from app.services.fast_start import FFmpegFastStartRewriter, Remuxer
from app.services.ingestion import ThumbnailIngestionPipeline, VideoIngestionPipeline
from app.services.media_inspector import FFprobeProber, MediaInspector
from app.services.media_url import MediaURLResolver
from app.services.object_store import ObjectStore
from app.services.thumbnail_store import ThumbnailStore
from app.services.video_records import SqlVideoRecordStore


def valid_video_id(video_id: str) -> str:
    """Path param must be a UUID; normalized to its canonical lowercase form."""
    try:
        return str(uuid.UUID(video_id))
    except ValueError as e:
        raise ValidationError("Invalid ID") from e


def get_video_records(db: Session = Depends(get_db)) -> SqlVideoRecordStore:
    return SqlVideoRecordStore(db)


def get_media_inspector(settings: Settings = Depends(get_settings)) -> MediaInspector:
    return MediaInspector(FFprobeProber(settings.ffprobe_path, timeout=settings.ffmpeg_timeout_seconds))


def get_remuxer(settings: Settings = Depends(get_settings)) -> Remuxer:
    return FFmpegFastStartRewriter(settings.ffmpeg_path, timeout=settings.ffmpeg_timeout_seconds)


def get_media_url_resolver(
    settings: Settings = Depends(get_settings),
    object_store: ObjectStore = Depends(get_object_store),
) -> MediaURLResolver:
    return MediaURLResolver(object_store, settings.presign_ttl_seconds)


def get_video_pipeline(
    settings: Settings = Depends(get_settings),
    records: SqlVideoRecordStore = Depends(get_video_records),
    object_store: ObjectStore = Depends(get_object_store),
    inspector: MediaInspector = Depends(get_media_inspector),
    remuxer: Remuxer = Depends(get_remuxer),
    resolver: MediaURLResolver = Depends(get_media_url_resolver),
) -> VideoIngestionPipeline:
    return VideoIngestionPipeline(records, object_store, inspector, remuxer, resolver, settings)


def get_thumbnail_pipeline(
    settings: Settings = Depends(get_settings),
    records: SqlVideoRecordStore = Depends(get_video_records),
    thumbnails: ThumbnailStore = Depends(get_thumbnail_store),
    resolver: MediaURLResolver = Depends(get_media_url_resolver),
) -> ThumbnailIngestionPipeline:
    return ThumbnailIngestionPipeline(records, thumbnails, resolver, settings)
