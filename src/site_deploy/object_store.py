"""
site_deploy.object_store — S3 access used by the deployment pipeline.

Three operations only: paginated listing, batch delete, upload. Every
botocore failure (timeouts included) is raised as the matching site_deploy
error so the caller can treat it as fatal.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, BinaryIO

from aws_lambda_powertools import Logger
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError

from site_deploy.exceptions import DeleteError, ListError, UploadError
from site_deploy.models import ObjectPage

logger = Logger(service="site-deploy")

# S3 DeleteObjects accepts at most 1000 keys per request.
MAX_KEYS_PER_PAGE = 1000


class S3ObjectStore:
    """ObjectStore backed by a boto3 S3 client."""

    def __init__(self, s3_client: Any, *, page_size: int = MAX_KEYS_PER_PAGE) -> None:
        if not 1 <= page_size <= MAX_KEYS_PER_PAGE:
            raise ValueError(f"page_size must be between 1 and {MAX_KEYS_PER_PAGE}")
        self._s3 = s3_client
        self._page_size = page_size

    def list_objects(self, bucket: str, continuation_token: str | None = None) -> ObjectPage:
        kwargs: dict[str, Any] = {"Bucket": bucket, "MaxKeys": self._page_size}
        if continuation_token:
            kwargs["ContinuationToken"] = continuation_token
        try:
            response = self._s3.list_objects_v2(**kwargs)
        except (ClientError, BotoCoreError) as exc:
            raise ListError(bucket=bucket, reason=str(exc)) from exc

        keys = tuple(str(item["Key"]) for item in response.get("Contents", []))
        next_token = response.get("NextContinuationToken") if response.get("IsTruncated") else None
        return ObjectPage(keys=keys, next_token=next_token or None)

    def delete_objects(self, bucket: str, keys: Sequence[str]) -> tuple[str, ...]:
        """Batch delete keys; returns the keys S3 confirmed as deleted."""
        if not keys:
            return ()
        if len(keys) > MAX_KEYS_PER_PAGE:
            raise DeleteError(
                bucket=bucket,
                keys=keys,
                reason=f"batch exceeds {MAX_KEYS_PER_PAGE} keys",
            )
        try:
            response = self._s3.delete_objects(
                Bucket=bucket,
                Delete={"Objects": [{"Key": key} for key in keys], "Quiet": False},
            )
        except (ClientError, BotoCoreError) as exc:
            raise DeleteError(bucket=bucket, keys=keys, reason=str(exc)) from exc

        errors = response.get("Errors") or []
        if errors:
            failed = [str(err.get("Key", "")) for err in errors]
            first = errors[0]
            raise DeleteError(
                bucket=bucket,
                keys=failed,
                reason=f"{first.get('Code', 'Error')}: {first.get('Message', '')}".strip(),
            )
        deleted = tuple(str(item["Key"]) for item in response.get("Deleted") or [])
        logger.debug("Deleted objects", bucket=bucket, keys=list(deleted))
        return deleted

    def put_object(self, bucket: str, key: str, body: BinaryIO, content_type: str) -> None:
        """Upload a byte stream via the managed (multipart-capable) transfer."""
        try:
            self._s3.upload_fileobj(body, bucket, key, ExtraArgs={"ContentType": content_type})
        except (ClientError, BotoCoreError, S3UploadFailedError, ValueError) as exc:
            raise UploadError(bucket=bucket, key=key, reason=str(exc)) from exc
