"""
Test configuration: puts the repo root on sys.path and provides fakes for the
google-cloud-storage client and Flask requests.
"""

from __future__ import annotations

import base64
import gzip
import hashlib
import sys
from datetime import UTC, datetime
from pathlib import Path

import flask
import pytest
from google.api_core.exceptions import NotFound


ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


# =============================================================================
# Fake google-cloud-storage client
# =============================================================================


class FakeBlob:
    def __init__(
        self,
        name: str,
        data: bytes = b"",
        *,
        bucket: FakeBucket | None = None,
        content_encoding: str | None = None,
        storage_class: str = "STANDARD",
        retention_expiration_time: datetime | None = None,
    ):
        self.name = name
        self.bucket = bucket
        self.content_encoding = content_encoding
        self.storage_class = storage_class
        self.retention_expiration_time = retention_expiration_time
        self.time_created = datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)
        self.updated = self.time_created
        self.content_type = None
        self.download_calls: list[dict] = []
        self._set_data(data)

    def _set_data(self, data: bytes) -> None:
        self.data = data
        self.size = len(data)
        self.md5_hash = base64.b64encode(hashlib.md5(data).digest()).decode("ascii")
        self.etag = f"etag-{self.md5_hash[:8]}"

    def download_as_bytes(self, raw_download: bool = False) -> bytes:
        self.download_calls.append({"raw_download": raw_download})
        if not raw_download and self.content_encoding == "gzip":
            # GCS decompressive transcoding
            return gzip.decompress(self.data)
        return self.data

    def upload_from_string(self, data: bytes | str, content_type: str | None = None) -> None:
        self.bucket._check_exists()
        if isinstance(data, str):
            data = data.encode("utf-8")
        self.content_type = content_type
        self._set_data(data)
        self.bucket.blobs[self.name] = self


class FakeBucket:
    def __init__(
        self,
        name: str,
        *,
        exists: bool = True,
        location: str = "US-CENTRAL1",
        storage_class: str = "STANDARD",
        versioning_enabled: bool = False,
    ):
        self.name = name
        self.exists = exists
        self.location = location
        self.storage_class = storage_class
        self.versioning_enabled = versioning_enabled
        self.blobs: dict[str, FakeBlob] = {}

    def _check_exists(self) -> None:
        if not self.exists:
            raise NotFound(f"bucket {self.name} not found")

    def add(self, name: str, data: bytes, **kwargs) -> FakeBlob:
        blob = FakeBlob(name, data, bucket=self, **kwargs)
        self.blobs[name] = blob
        return blob

    def get_blob(self, name: str) -> FakeBlob | None:
        self._check_exists()
        return self.blobs.get(name)

    def blob(self, name: str) -> FakeBlob:
        return FakeBlob(name, bucket=self)

    def delete_blob(self, name: str) -> None:
        self._check_exists()
        if name not in self.blobs:
            raise NotFound(f"object {name} not found")
        del self.blobs[name]


class FakeGcsClient:
    def __init__(self, *buckets: FakeBucket):
        self.buckets = {bucket.name: bucket for bucket in buckets}

    def add_bucket(self, name: str, **kwargs) -> FakeBucket:
        bucket = FakeBucket(name, **kwargs)
        self.buckets[name] = bucket
        return bucket

    def bucket(self, name: str) -> FakeBucket:
        return self.buckets.get(name) or FakeBucket(name, exists=False)

    def get_bucket(self, name: str) -> FakeBucket:
        bucket = self.bucket(name)
        bucket._check_exists()
        return bucket

    def list_blobs(self, name: str):
        bucket = self.get_bucket(name)
        return iter(list(bucket.blobs.values()))

    def list_buckets(self):
        return iter(list(self.buckets.values()))


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def sample_bucket() -> str:
    return "bolt-test-gs-code"


@pytest.fixture
def gs_client(sample_bucket: str) -> FakeGcsClient:
    """Fake GS client holding one bucket with a plain and a gzip object."""
    client = FakeGcsClient()
    bucket = client.add_bucket(sample_bucket)
    bucket.add("file_1.txt", b"hello")
    bucket.add("file_2.txt", gzip.compress(b"hello"), content_encoding="gzip")
    return client


@pytest.fixture
def bolt_client(sample_bucket: str) -> FakeGcsClient:
    """Fake Bolt client holding the same objects as ``gs_client``."""
    client = FakeGcsClient()
    bucket = client.add_bucket(sample_bucket)
    bucket.add("file_1.txt", b"hello")
    bucket.add("file_2.txt", gzip.compress(b"hello"), content_encoding="gzip")
    return client


@pytest.fixture
def fake_gcs_client_class():
    return FakeGcsClient


@pytest.fixture
def make_request():
    """Build Flask requests inside a pushed test request context."""
    app = flask.Flask(__name__)
    contexts = []

    def _make(body=None, *, data: str | bytes | None = None) -> flask.Request:
        if data is not None:
            ctx = app.test_request_context(
                "/", method="POST", data=data, content_type="application/json"
            )
        elif body is not None:
            ctx = app.test_request_context("/", method="POST", json=body)
        else:
            ctx = app.test_request_context("/", method="POST")
        ctx.push()
        contexts.append(ctx)
        return flask.request._get_current_object()

    yield _make

    for ctx in reversed(contexts):
        ctx.pop()
