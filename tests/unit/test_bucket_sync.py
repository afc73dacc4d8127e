"""Unit tests for site_deploy.bucket_sync.BucketSync."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import boto3
import pytest
from moto import mock_aws
from site_deploy.bucket_sync import BucketSync
from site_deploy.exceptions import DeleteError, ListError, UploadError
from site_deploy.models import LocalFile, ObjectPage
from site_deploy.object_store import S3ObjectStore

_REGION = "us-east-1"
_BUCKET = "bucket123"


def _five_file_site(root: Path) -> Path:
    root.mkdir(parents=True)
    for i in range(5):
        (root / f"page{i}.html").write_text(f"page {i}", encoding="utf-8")
    return root


# ---------------------------------------------------------------------------
# Cleanup phase
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("existing", [0, 1, 2, 7])
def test_empty_bucket_leaves_no_objects(fakes: Any, existing: int) -> None:
    objects = {f"old/{i}.txt": b"x" for i in range(existing)}
    store = fakes.ObjectStore({_BUCKET: objects}, page_size=2)

    deleted = BucketSync(store).empty_bucket(_BUCKET)

    assert deleted == existing
    assert store.list_objects(_BUCKET).keys == ()


def test_empty_bucket_deletes_page_by_page(fakes: Any) -> None:
    store = fakes.ObjectStore({_BUCKET: {f"{i}.txt": b"x" for i in range(5)}}, page_size=2)
    BucketSync(store).empty_bucket(_BUCKET)
    deletes = [event for event in store.events if event[0] == "delete"]
    assert len(deletes) == 3


def test_empty_bucket_follows_continuation_tokens() -> None:
    store = MagicMock()
    store.list_objects.side_effect = [
        ObjectPage(keys=("a", "b"), next_token="t1"),
        ObjectPage(keys=("c",), next_token=None),
    ]
    store.delete_objects.side_effect = lambda bucket, keys: tuple(keys)

    assert BucketSync(store).empty_bucket(_BUCKET) == 3
    calls = [c.args for c in store.list_objects.call_args_list]
    assert calls == [(_BUCKET, None), (_BUCKET, "t1")]


def test_empty_page_is_not_deleted() -> None:
    store = MagicMock()
    store.list_objects.return_value = ObjectPage(keys=(), next_token=None)
    assert BucketSync(store).empty_bucket(_BUCKET) == 0
    store.delete_objects.assert_not_called()


def test_list_error_aborts_before_upload(fakes: Any, site_dir: Path) -> None:
    store = fakes.ObjectStore(failing_list_buckets=[_BUCKET])
    with pytest.raises(ListError):
        BucketSync(store).sync(_BUCKET, site_dir)
    assert not [event for event in store.events if event[0] == "put"]


def test_delete_error_aborts_before_upload(fakes: Any, site_dir: Path) -> None:
    store = fakes.ObjectStore({_BUCKET: {"stale.html": b"x"}}, failing_delete_buckets=[_BUCKET])
    with pytest.raises(DeleteError):
        BucketSync(store).sync(_BUCKET, site_dir)
    assert not [event for event in store.events if event[0] == "put"]


# ---------------------------------------------------------------------------
# Upload phase
# ---------------------------------------------------------------------------


def test_sync_replaces_bucket_contents(fakes: Any, site_dir: Path) -> None:
    store = fakes.ObjectStore({_BUCKET: {"stale.html": b"old", "index.html": b"old"}})

    result = BucketSync(store).sync(_BUCKET, site_dir)

    assert set(store.buckets[_BUCKET]) == {"index.html", "assets/app.js"}
    assert store.buckets[_BUCKET]["index.html"] == b"<html>hi</html>"
    assert store.content_types[(_BUCKET, "index.html")] == "text/html"
    assert result.deleted_count == 2
    assert set(result.uploaded_keys) == {"index.html", "assets/app.js"}


def test_cleanup_finishes_before_first_upload(fakes: Any, site_dir: Path) -> None:
    store = fakes.ObjectStore({_BUCKET: {f"{i}.txt": b"x" for i in range(3)}}, page_size=1)
    BucketSync(store).sync(_BUCKET, site_dir)

    kinds = [kind for kind, _ in store.events]
    first_put = kinds.index("put")
    assert "list" not in kinds[first_put:]
    assert "delete" not in kinds[first_put:]


def test_upload_failure_stops_remaining_uploads(tmp_path: Path) -> None:
    site = _five_file_site(tmp_path / "site")
    store = MagicMock()
    store.list_objects.return_value = ObjectPage(keys=())
    store.put_object.side_effect = [
        None,
        None,
        UploadError(bucket=_BUCKET, key="third", reason="SlowDown"),
        None,
        None,
    ]

    with pytest.raises(UploadError):
        BucketSync(store).sync(_BUCKET, site)

    assert store.put_object.call_count == 3


def test_unreadable_file_is_upload_error(fakes: Any, tmp_path: Path) -> None:
    missing = LocalFile(path=tmp_path / "gone.html", key="gone.html", size=0)
    with pytest.raises(UploadError) as exc_info:
        BucketSync(fakes.ObjectStore()).upload_file(_BUCKET, missing)
    assert exc_info.value.key == "gone.html"


def test_undecodable_file_name_is_upload_error(fakes: Any, tmp_path: Path) -> None:
    page = tmp_path / "page.html"
    page.write_text("x", encoding="utf-8")
    store = fakes.ObjectStore()
    bad = LocalFile(path=page, key="bad\udcff.html", size=1)

    with pytest.raises(UploadError) as exc_info:
        BucketSync(store).upload_file(_BUCKET, bad)

    assert exc_info.value.key == "bad\udcff.html"
    assert store.events == []


def test_concurrent_upload_uploads_every_file(fakes: Any, tmp_path: Path) -> None:
    site = _five_file_site(tmp_path / "site")
    store = fakes.ObjectStore()

    keys = BucketSync(store, max_workers=3).upload_directory(site, _BUCKET)

    assert sorted(keys) == [f"page{i}.html" for i in range(5)]
    assert set(store.buckets[_BUCKET]) == set(keys)


def test_concurrent_upload_failure_propagates(fakes: Any, tmp_path: Path) -> None:
    site = _five_file_site(tmp_path / "site")
    store = fakes.ObjectStore(failing_keys=["page2.html"])

    with pytest.raises(UploadError) as exc_info:
        BucketSync(store, max_workers=2).upload_directory(site, _BUCKET)
    assert exc_info.value.key == "page2.html"


def test_slow_upload_does_not_hold_back_the_rest(fakes: Any, tmp_path: Path) -> None:
    site = tmp_path / "site"
    site.mkdir()
    for i in range(6):
        (site / f"page{i}.html").write_text(f"page {i}", encoding="utf-8")
    store = fakes.ObjectStore()
    original_put = store.put_object
    lock = threading.Lock()
    started: list[str] = []
    fast_finished: list[str] = []
    others_finished = threading.Event()
    released: list[bool] = []

    def put_object(bucket: str, key: str, body: Any, content_type: str) -> None:
        with lock:
            started.append(key)
            slow = len(started) == 1
        if slow:
            released.append(others_finished.wait(timeout=5))
        original_put(bucket, key, body, content_type)
        if not slow:
            with lock:
                fast_finished.append(key)
                if len(fast_finished) == 5:
                    others_finished.set()

    store.put_object = put_object

    keys = BucketSync(store, max_workers=2).upload_directory(site, _BUCKET)

    assert released == [True]
    assert len(keys) == 6


def test_max_workers_must_be_positive(fakes: Any) -> None:
    with pytest.raises(ValueError):
        BucketSync(fakes.ObjectStore(), max_workers=0)


# ---------------------------------------------------------------------------
# Against moto
# ---------------------------------------------------------------------------


@mock_aws
def test_sync_is_idempotent_against_s3(site_dir: Path) -> None:
    s3 = boto3.client("s3", region_name=_REGION)
    s3.create_bucket(Bucket=_BUCKET)
    s3.put_object(Bucket=_BUCKET, Key="stale/old.css", Body=b"old")
    sync = BucketSync(S3ObjectStore(s3, page_size=1))

    def snapshot() -> dict[str, tuple[bytes, str]]:
        state: dict[str, tuple[bytes, str]] = {}
        for obj in s3.list_objects_v2(Bucket=_BUCKET).get("Contents", []):
            response = s3.get_object(Bucket=_BUCKET, Key=obj["Key"])
            state[obj["Key"]] = (response["Body"].read(), response["ContentType"])
        return state

    sync.sync(_BUCKET, site_dir)
    first = snapshot()
    sync.sync(_BUCKET, site_dir)
    second = snapshot()

    assert set(first) == {"index.html", "assets/app.js"}
    assert first == second
    assert first["index.html"] == (b"<html>hi</html>", "text/html")
