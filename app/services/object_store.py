"""
S3-compatible object storage (AWS S3, MinIO, R2) via boto3.
Uploads are single put_object calls; reads go through presigned GET URLs. No retries here.
"""
import logging
from typing import Any, BinaryIO, Protocol

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.config import Settings
from app.errors import StorageError

logger = logging.getLogger(__name__)


class ObjectStore(Protocol):
    def put(self, bucket: str, key: str, fileobj: BinaryIO, content_type: str) -> None: ...

    def presign_read(self, bucket: str, key: str, ttl: int) -> str: ...


def build_s3_client(settings: Settings) -> Any:
    kwargs: dict[str, Any] = {
        "region_name": settings.s3_region,
        "config": Config(signature_version="s3v4"),
    }
    if settings.s3_endpoint_url:
        kwargs["endpoint_url"] = settings.s3_endpoint_url
    if settings.aws_access_key_id and settings.aws_secret_access_key:
        kwargs["aws_access_key_id"] = settings.aws_access_key_id
        kwargs["aws_secret_access_key"] = settings.aws_secret_access_key
    return boto3.client("s3", **kwargs)


class S3ObjectStore:
    def __init__(self, client: Any):
        self.client = client

    def put(self, bucket: str, key: str, fileobj: BinaryIO, content_type: str) -> None:
        try:
            self.client.put_object(Bucket=bucket, Key=key, Body=fileobj, ContentType=content_type)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Couldn't save video to object store: {e}") from e
        logger.info("Stored s3://%s/%s (%s)", bucket, key, content_type)

    def presign_read(self, bucket: str, key: str, ttl: int) -> str:
        try:
            return self.client.generate_presigned_url(
                ClientMethod="get_object",
                Params={"Bucket": bucket, "Key": key},
                ExpiresIn=ttl,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Unable to generate presigned URL for video: {e}") from e

