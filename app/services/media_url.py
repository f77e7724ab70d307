"""
Stored video URLs come in two forms:

- DirectURL: a literal, publicly resolvable URL ("https://cdn.example.com/landscape/abc.mp4").
- ObjectRef: a private object, persisted as "bucket,key" and presigned on every read.

Parse at the edge, never pass the raw column around: an ObjectRef must not reach a client unsigned.
"""
from dataclasses import dataclass
from typing import Union

from app.errors import StorageError
from app.models.video import Video
from app.services.object_store import ObjectStore


@dataclass(frozen=True)
class DirectURL:
    url: str


@dataclass(frozen=True)
class ObjectRef:
    bucket: str
    key: str


MediaURL = Union[DirectURL, ObjectRef]


def encode_media_url(value: MediaURL) -> str:
    if isinstance(value, DirectURL):
        return value.url
    if "," in value.bucket:
        raise ValueError(f"Bucket name cannot contain ',': {value.bucket!r}")
    return f"{value.bucket},{value.key}"


def parse_media_url(raw: str) -> MediaURL:
    if "://" in raw:
        return DirectURL(raw)
    bucket, sep, key = raw.partition(",")
    if not sep or not bucket or not key:
        raise StorageError("Incorrect video URL format saved in database")
    return ObjectRef(bucket=bucket, key=key)


class MediaURLResolver:
    def __init__(self, object_store: ObjectStore, ttl_seconds: int):
        self._store = object_store
        self._ttl = ttl_seconds

    def resolve(self, value: MediaURL) -> str:
        if isinstance(value, DirectURL):
            return value.url
        return self._store.presign_read(value.bucket, value.key, self._ttl)

    def resolve_video(self, video: Video) -> dict:
        """Client view of a record: same fields, video_url presigned if it is an object reference."""
        video_url = self.resolve(parse_media_url(video.video_url)) if video.video_url else None
        return {
            "id": video.id,
            "user_id": video.user_id,
            "title": video.title,
            "description": video.description,
            "thumbnail_url": video.thumbnail_url,
            "video_url": video_url,
            "created_at": video.created_at,
            "updated_at": video.updated_at,
        }
