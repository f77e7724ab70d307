"""
Process-wide storage backends: one boto3 S3 client and one thumbnail store.
Built lazily on first use; tests swap them through FastAPI dependency overrides.
"""
import logging
import threading

from app.config import get_settings
from app.services.object_store import ObjectStore, S3ObjectStore, build_s3_client
from app.services.thumbnail_store import ThumbnailStore, build_thumbnail_store

logger = logging.getLogger(__name__)

_object_store: ObjectStore | None = None
_thumbnail_store: ThumbnailStore | None = None
_lock = threading.Lock()


def get_object_store() -> ObjectStore:
    """Lazy singleton S3 object store (boto3 clients are thread-safe)."""
    global _object_store
    if _object_store is None:
        with _lock:
            if _object_store is None:
                settings = get_settings()
                _object_store = S3ObjectStore(build_s3_client(settings))
                logger.info("Object store ready: bucket=%s region=%s", settings.s3_bucket, settings.s3_region)
    return _object_store


def get_thumbnail_store() -> ThumbnailStore:
    """Lazy singleton thumbnail store; the in-memory variant must be shared across requests."""
    global _thumbnail_store
    if _thumbnail_store is None:
        with _lock:
            if _thumbnail_store is None:
                settings = get_settings()
                _thumbnail_store = build_thumbnail_store(settings)
                logger.info("Thumbnail store ready: %s", settings.thumbnail_storage)
    return _thumbnail_store


def reset_storage() -> None:
    """Drop cached backends (settings changed, or test teardown)."""
    global _object_store, _thumbnail_store
    with _lock:
        _object_store = None
        _thumbnail_store = None
