"""SQL-backed video record store (get / update)."""
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.errors import NotFoundError, StorageError
from app.models.video import Video


class VideoRecordStore(Protocol):
    def get(self, video_id: str) -> Video: ...

    def update(self, video: Video) -> None: ...


class SqlVideoRecordStore:
    def __init__(self, db: Session):
        self.db = db

    def get(self, video_id: str) -> Video:
        try:
            video = self.db.query(Video).filter(Video.id == video_id).first()
        except SQLAlchemyError as e:
            raise StorageError("Couldn't retrieve video data") from e
        if not video:
            raise NotFoundError("Video not found")
        return video

    def update(self, video: Video) -> None:
        try:
            self.db.add(video)
            self.db.commit()
            self.db.refresh(video)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError("Couldn't update video data") from e
