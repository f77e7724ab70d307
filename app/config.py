from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Literal


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:///./tubely.db"

    # JWT
    secret_key: str = "your-secret-key-change-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7  # 7 days

    # Frontend URL for CORS
    frontend_url: str = "http://localhost:3000"

    # Base URL this API is reachable at (used to build thumbnail URLs)
    public_base_url: str = "http://localhost:8091"

    # Thumbnails: "memory" (served by /api/thumbnails) or "disk" (served by /assets)
    thumbnail_storage: Literal["memory", "disk"] = "memory"
    # Folder for disk thumbnails (empty = backend/assets)
    assets_root: str = ""

    # Scratch folder for buffered uploads (empty = system temp dir)
    scratch_dir: str = ""

    # S3 / object store
    s3_bucket: str = "tubely-videos"
    s3_region: str = "us-east-1"
    s3_endpoint_url: str = ""  # e.g. MinIO / R2; empty = AWS
    aws_access_key_id: str = ""  # empty = default boto3 credential chain
    aws_secret_access_key: str = ""

    # "presigned" stores bucket,key and signs on read; "direct" stores a public URL
    video_url_mode: Literal["presigned", "direct"] = "presigned"
    # Public prefix for direct video URLs (e.g. CloudFront); empty = S3 virtual-hosted URL
    video_public_base_url: str = ""
    presign_ttl_seconds: int = 60

    # Upload limits
    max_video_upload_bytes: int = 1 << 30  # 1 GiB
    max_thumbnail_upload_bytes: int = 10 << 20  # 10 MiB

    # FFmpeg tooling
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"
    ffmpeg_timeout_seconds: float | None = None  # None = wait indefinitely

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env")


@lru_cache
def get_settings() -> Settings:
    return Settings()
