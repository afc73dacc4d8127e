"""Shared fixtures and in-memory collaborators for site_deploy unit tests."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any, BinaryIO

import pytest
from site_deploy.exceptions import (
    DeleteError,
    DistributionNotFound,
    InvalidationError,
    ListError,
    UploadError,
)
from site_deploy.models import Distribution, DistributionPage, DistributionSummary, ObjectPage

REGION = "us-east-1"


@pytest.fixture(autouse=True)
def aws_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Minimal AWS env vars so boto3/moto never touch real credentials."""
    monkeypatch.setenv("AWS_REGION", REGION)
    monkeypatch.setenv("AWS_DEFAULT_REGION", REGION)
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")  # pragma: allowlist secret
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")  # pragma: allowlist secret
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.delenv("AWS_PROFILE", raising=False)
    monkeypatch.delenv("DEPLOY_SLACK_WEBHOOK_URL", raising=False)


# ---------------------------------------------------------------------------
# EdgeCache fake: pages of distributions, origin per id, invalidation log
# ---------------------------------------------------------------------------


class FakeEdgeCache:
    def __init__(
        self,
        pages: Sequence[Sequence[tuple[str, Sequence[str]]]],
        origins: dict[str, str] | None = None,
        *,
        failing_invalidations: Sequence[str] = (),
    ) -> None:
        self.pages = [
            tuple(DistributionSummary(distribution_id=i, aliases=tuple(a)) for i, a in page)
            for page in pages
        ]
        self.origins = origins or {}
        self.failing_invalidations = set(failing_invalidations)
        self.list_calls: list[str | None] = []
        self.invalidations: list[tuple[str, tuple[str, ...], str]] = []
        self.events: list[tuple[str, str]] = []

    def list_distributions(self, marker: str | None = None) -> DistributionPage:
        self.list_calls.append(marker)
        index = int(marker) if marker else 0
        next_marker = str(index + 1) if index + 1 < len(self.pages) else None
        return DistributionPage(items=self.pages[index], next_marker=next_marker)

    def get_distribution(self, distribution_id: str) -> Distribution:
        if distribution_id not in self.origins:
            raise DistributionNotFound(distribution_id=distribution_id, reason="NoSuchDistribution")
        return Distribution(
            distribution_id=distribution_id, origin_domain=self.origins[distribution_id]
        )

    def create_invalidation(
        self, distribution_id: str, paths: Sequence[str], caller_reference: str
    ) -> str:
        self.events.append(("invalidate", distribution_id))
        if distribution_id in self.failing_invalidations:
            raise InvalidationError(distribution_id=distribution_id, reason="AccessDenied")
        self.invalidations.append((distribution_id, tuple(paths), caller_reference))
        return f"I-{distribution_id}"


# ---------------------------------------------------------------------------
# ObjectStore fake: dict of buckets, paginated listing, call log
# ---------------------------------------------------------------------------


class InMemoryObjectStore:
    def __init__(
        self,
        buckets: dict[str, dict[str, bytes]] | None = None,
        *,
        page_size: int = 1000,
        failing_keys: Sequence[str] = (),
        failing_list_buckets: Sequence[str] = (),
        failing_delete_buckets: Sequence[str] = (),
    ) -> None:
        self.buckets = buckets if buckets is not None else {}
        self.content_types: dict[tuple[str, str], str] = {}
        self.page_size = page_size
        self.failing_keys = set(failing_keys)
        self.failing_list_buckets = set(failing_list_buckets)
        self.failing_delete_buckets = set(failing_delete_buckets)
        self.events: list[tuple[str, str]] = []

    def list_objects(self, bucket: str, continuation_token: str | None = None) -> ObjectPage:
        self.events.append(("list", bucket))
        if bucket in self.failing_list_buckets:
            raise ListError(bucket=bucket, reason="AccessDenied")
        # Like S3, the token marks the last key returned, not an offset.
        keys = sorted(self.buckets.setdefault(bucket, {}))
        if continuation_token:
            keys = [key for key in keys if key > continuation_token]
        page = keys[: self.page_size]
        next_token = page[-1] if len(keys) > self.page_size else None
        return ObjectPage(keys=tuple(page), next_token=next_token)

    def delete_objects(self, bucket: str, keys: Sequence[str]) -> tuple[str, ...]:
        self.events.append(("delete", bucket))
        if bucket in self.failing_delete_buckets:
            raise DeleteError(bucket=bucket, keys=keys, reason="AccessDenied")
        for key in keys:
            self.buckets[bucket].pop(key, None)
        return tuple(keys)

    def put_object(self, bucket: str, key: str, body: BinaryIO, content_type: str) -> None:
        self.events.append(("put", f"{bucket}/{key}"))
        if key in self.failing_keys:
            raise UploadError(bucket=bucket, key=key, reason="SlowDown")
        self.buckets.setdefault(bucket, {})[key] = body.read()
        self.content_types[(bucket, key)] = content_type


class RecordingNotifier:
    def __init__(self, error: Exception | None = None) -> None:
        self.messages: list[str] = []
        self._error = error

    def send_message(self, text: str) -> None:
        self.messages.append(text)
        if self._error is not None:
            raise self._error


@pytest.fixture
def site_dir(tmp_path: Path) -> Path:
    """A small build output: index.html and assets/app.js."""
    root = tmp_path / "dist"
    (root / "assets").mkdir(parents=True)
    (root / "index.html").write_text("<html>hi</html>", encoding="utf-8")
    (root / "assets" / "app.js").write_text("console.log('hi');", encoding="utf-8")
    return root


@pytest.fixture
def fakes() -> Any:
    """Expose the fake classes to test modules without import-path tricks."""

    class _Fakes:
        EdgeCache = FakeEdgeCache
        ObjectStore = InMemoryObjectStore
        Notifier = RecordingNotifier

    return _Fakes
