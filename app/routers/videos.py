"""
Video upload and read.
Upload: multipart field "video" (video/mp4 only), owner only. Stored in S3 under landscape/, portrait/ or other/.
Read: owner only; a stored bucket,key reference is presigned on every read, never persisted.
"""
from fastapi import APIRouter, Depends, UploadFile, File
from app.auth import get_current_user_id
from app.dependencies import get_media_url_resolver, get_video_pipeline, get_video_records, valid_video_id
from app.errors import ValidationError
from app.schemas.video import VideoResponse
from app.services.ingestion import VideoIngestionPipeline, authorize
from app.services.media_url import MediaURLResolver
from app.services.video_records import SqlVideoRecordStore

router = APIRouter(prefix="/api", tags=["videos"])


@router.post("/video_upload/{video_id}", response_model=VideoResponse)
def upload_video(
    video_id: str = Depends(valid_video_id),
    user_id: str = Depends(get_current_user_id),
    video: UploadFile | None = File(None),
    pipeline: VideoIngestionPipeline = Depends(get_video_pipeline),
):
    """
    Upload the video file for an existing record. The file is remuxed for fast start,
    classified by aspect ratio and stored; the record is only updated once the upload succeeded.
    """
    if video is None:
        raise ValidationError("Couldn't parse video data")
    return pipeline.ingest(video_id, user_id, video)


@router.get("/videos/{video_id}", response_model=VideoResponse)
def get_video(
    video_id: str = Depends(valid_video_id),
    user_id: str = Depends(get_current_user_id),
    records: SqlVideoRecordStore = Depends(get_video_records),
    resolver: MediaURLResolver = Depends(get_media_url_resolver),
):
    """Owner: video record with a playable (presigned if needed) video_url."""
    return resolver.resolve_video(authorize(records, video_id, user_id))
