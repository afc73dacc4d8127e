"""
site_deploy.bucket_sync — Replace the contents of a bucket with a local tree.

Protocol per bucket:
  1. cleanup: list a page → batch delete that page → repeat until the listing
     has no continuation token. An empty bucket is a zero-iteration success.
  2. upload: walk the directory and upload every file under its relative
     POSIX key with a content type.

Cleanup always completes before the first upload into the same bucket.
Any list, delete or upload failure aborts the sync; the walk is not
continued after an upload error, so a half-uploaded site is never reported
as deployed. Re-running with an unchanged tree yields the same bucket state.
"""

from __future__ import annotations

from collections.abc import Iterable
from concurrent.futures import FIRST_COMPLETED, FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Any

from aws_lambda_powertools import Logger

from site_deploy.exceptions import UploadError
from site_deploy.local_files import walk_directory
from site_deploy.models import LocalFile, SyncResult

logger = Logger(service="site-deploy")


class BucketSync:
    """Empties and repopulates buckets through an ObjectStore.

    max_workers > 1 uploads files of one bucket concurrently on a bounded
    thread pool. Deletes are never concurrent with uploads.
    """

    def __init__(self, object_store: Any, *, max_workers: int = 1) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self._store = object_store
        self._max_workers = max_workers

    def empty_bucket(self, bucket: str) -> int:
        """Delete every object in bucket; returns the number of keys deleted."""
        logger.info("Listing and deleting contents of bucket", bucket=bucket)
        deleted = 0
        token: str | None = None
        while True:
            page = self._store.list_objects(bucket, token)
            if page.keys:
                deleted += len(self._store.delete_objects(bucket, page.keys))
            token = page.next_token
            if not token:
                break
        logger.info("Finished cleaning bucket", bucket=bucket, deleted=deleted)
        return deleted

    def upload_file(self, bucket: str, local_file: LocalFile) -> str:
        logger.info(
            "Uploading file",
            path=str(local_file.path),
            bucket=bucket,
            key=local_file.key,
            content_type=local_file.content_type,
        )
        try:
            # S3 keys are UTF-8; undecodable file names surface here as surrogates.
            local_file.key.encode("utf-8")
            with local_file.path.open("rb") as body:
                self._store.put_object(bucket, local_file.key, body, local_file.content_type)
        except (OSError, UnicodeEncodeError) as exc:
            raise UploadError(bucket=bucket, key=local_file.key, reason=str(exc)) from exc
        return local_file.key

    def upload_directory(self, root: str | Path, bucket: str) -> tuple[str, ...]:
        files = walk_directory(root)
        if self._max_workers == 1:
            keys = tuple(self.upload_file(bucket, local_file) for local_file in files)
        else:
            keys = self._upload_concurrently(files, bucket)
        logger.info("Upload completed", bucket=bucket, uploaded=len(keys))
        return keys

    def _upload_concurrently(self, files: Iterable[LocalFile], bucket: str) -> tuple[str, ...]:
        uploaded: list[str] = []
        max_in_flight = self._max_workers * 2
        with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            pending: set[Future[str]] = set()
            try:
                for local_file in files:
                    if len(pending) >= max_in_flight:
                        # Refill as soon as any slot frees up; result() re-raises failures.
                        done, pending = wait(pending, return_when=FIRST_COMPLETED)
                        uploaded.extend(future.result() for future in done)
                    pending.add(pool.submit(self.upload_file, bucket, local_file))
                done, pending = wait(pending, return_when=FIRST_EXCEPTION)
                uploaded.extend(future.result() for future in done)
            except BaseException:
                for future in pending:
                    future.cancel()
                raise
        return tuple(uploaded)

    def sync(self, bucket: str, root: str | Path) -> SyncResult:
        deleted = self.empty_bucket(bucket)
        uploaded = self.upload_directory(root, bucket)
        return SyncResult(bucket=bucket, deleted_count=deleted, uploaded_keys=uploaded)
