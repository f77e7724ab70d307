from datetime import datetime
from pydantic import BaseModel, ConfigDict


class VideoResponse(BaseModel):
    """Video as exposed to clients. video_url is always resolvable (presigned if stored as a reference)."""
    id: str
    user_id: str
    title: str
    description: str | None
    thumbnail_url: str | None
    video_url: str | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
