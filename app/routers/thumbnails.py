"""
Thumbnail upload (owner only; image/jpeg or image/png) and public thumbnail fetch.
Fetch works for both memory and disk storage, so <img src> needs no Bearer token.
"""
from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File
from fastapi.responses import Response
from app.auth import get_current_user_id
from app.core.storage import get_thumbnail_store
from app.dependencies import get_thumbnail_pipeline, valid_video_id
from app.errors import ValidationError
from app.schemas.video import VideoResponse
from app.services.ingestion import ThumbnailIngestionPipeline
from app.services.thumbnail_store import ThumbnailStore

router = APIRouter(prefix="/api", tags=["thumbnails"])


@router.post("/thumbnail_upload/{video_id}", response_model=VideoResponse)
def upload_thumbnail(
    video_id: str = Depends(valid_video_id),
    user_id: str = Depends(get_current_user_id),
    thumbnail: UploadFile | None = File(None),
    pipeline: ThumbnailIngestionPipeline = Depends(get_thumbnail_pipeline),
):
    if thumbnail is None:
        raise ValidationError("Couldn't retrieve thumbnail data")
    return pipeline.ingest(video_id, user_id, thumbnail)


@router.get("/thumbnails/{video_id}")
def get_thumbnail(
    video_id: str = Depends(valid_video_id),
    store: ThumbnailStore = Depends(get_thumbnail_store),
):
    thumb = store.get(video_id)
    if thumb is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Thumbnail not found")
    return Response(content=thumb.data, media_type=thumb.media_type, headers={"Cache-Control": "no-store"})
