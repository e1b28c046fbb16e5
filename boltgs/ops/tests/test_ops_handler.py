"""Tests for the storage operations HTTP function."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from boltgs.core.config import BoltConfig
from boltgs.core.errors import ConfigError
from boltgs.core.storage_client import SdkType, StorageBackend
from boltgs.ops.main import handle_ops_request


HELLO_MD5 = "5D41402ABC4B2A76B9719D911017C592"


@pytest.fixture
def backends(gs_client, bolt_client):
    """Backend factory routing GS and BOLT to the fake clients."""
    created: list[SdkType] = []

    def _factory(sdk_type: SdkType, config: BoltConfig) -> StorageBackend:
        created.append(sdk_type)
        client = bolt_client if sdk_type == SdkType.BOLT else gs_client
        return StorageBackend(client, name=sdk_type)

    _factory.created = created
    return _factory


def _call(make_request, backends, body):
    return handle_ops_request(
        make_request(body),
        config=BoltConfig(bolt_url="https://bolt.example.com"),
        backend_factory=backends,
    )


def test_list_objects_on_bolt(make_request, backends, sample_bucket) -> None:
    body, status, _ = _call(
        make_request, backends, {"requestType": "list_objects", "sdkType": "BOLT", "bucket": sample_bucket}
    )

    assert status == 200
    assert body == "file_1.txt\nfile_2.txt"
    assert backends.created == [SdkType.BOLT]


def test_missing_sdk_type_targets_gs(make_request, backends) -> None:
    body, status, _ = _call(make_request, backends, {"requestType": "list_buckets"})

    assert status == 200
    assert backends.created == [SdkType.GS]


def test_list_buckets_does_not_fall_through(make_request, backends, gs_client, sample_bucket) -> None:
    gs_client.add_bucket("other-bucket")

    body, status, _ = _call(make_request, backends, {"requestType": "list_buckets", "sdkType": "GS"})

    assert status == 200
    assert body == f"{sample_bucket}\nother-bucket"
    assert "BucketName" not in body


def test_get_bucket_metadata(make_request, backends, sample_bucket) -> None:
    body, status, _ = _call(
        make_request, backends, {"requestType": "get_bucket_md", "bucket": sample_bucket}
    )

    assert status == 200
    assert body.splitlines() == [
        f"BucketName: {sample_bucket}",
        "Location: US-CENTRAL1",
        "StorageClass: STANDARD",
        "VersioningEnabled: false",
    ]


def test_get_object_metadata(make_request, backends, sample_bucket) -> None:
    body, status, _ = _call(
        make_request,
        backends,
        {"requestType": "get_object_md", "sdkType": "BOLT", "bucket": sample_bucket, "key": "file_2.txt"},
    )

    lines = body.splitlines()
    assert status == 200
    assert lines[0] == "ContentEncoding: gzip"
    assert lines[6] == "TimeCreated: 2024-01-02T03:04:05+00:00"
    assert lines[7] == "Last Metadata Update: 2024-01-02T03:04:05+00:00"
    assert not any(line.startswith("retentionExpirationTime") for line in lines)


def test_get_object_metadata_includes_retention_when_set(
    make_request, backends, gs_client, sample_bucket
) -> None:
    gs_client.buckets[sample_bucket].add(
        "held.txt",
        b"data",
        retention_expiration_time=datetime(2030, 1, 1, tzinfo=UTC),
    )

    body, _, _ = _call(
        make_request, backends, {"requestType": "get_object_md", "bucket": sample_bucket, "key": "held.txt"}
    )

    assert body.splitlines()[-1] == "retentionExpirationTime: 2030-01-01T00:00:00+00:00"


def test_upload_object(make_request, backends, bolt_client, sample_bucket) -> None:
    body, status, _ = _call(
        make_request,
        backends,
        {
            "requestType": "upload_object",
            "sdkType": "BOLT",
            "bucket": sample_bucket,
            "key": "uploaded.txt",
            "value": "hello",
        },
    )

    assert status == 200
    assert body.splitlines()[1:] == [
        "MD5: XUFAKrxLKna5cZ2REBfFkg==",
        f"MD5HexString: {HELLO_MD5.lower()}",
    ]
    assert bolt_client.buckets[sample_bucket].blobs["uploaded.txt"].data == b"hello"


@pytest.mark.parametrize("key", ["file_1.txt", "file_2.txt"])
def test_download_object_reports_md5_of_logical_content(
    make_request, backends, sample_bucket, key
) -> None:
    body, status, _ = _call(
        make_request,
        backends,
        {"requestType": "download_object", "sdkType": "BOLT", "bucket": sample_bucket, "key": key},
    )

    assert status == 200
    assert body == f"md5: {HELLO_MD5}"


def test_delete_object(make_request, backends, sample_bucket) -> None:
    request_body = {"requestType": "delete_object", "bucket": sample_bucket, "key": "file_1.txt"}

    assert _call(make_request, backends, request_body)[0] == "Deleted: true"
    assert _call(make_request, backends, request_body)[0] == "Deleted: false"


def test_missing_object_returns_404(make_request, backends, sample_bucket) -> None:
    body, status, _ = _call(
        make_request,
        backends,
        {"requestType": "download_object", "bucket": sample_bucket, "key": "missing.txt"},
    )

    assert status == 404
    assert body.startswith("ErrorCode: 404\nErrorMessage: ")


def test_corrupt_gzip_returns_422(make_request, backends, gs_client, sample_bucket) -> None:
    gs_client.buckets[sample_bucket].add("broken.txt", b"not gzip", content_encoding="gzip")

    body, status, _ = _call(
        make_request,
        backends,
        {"requestType": "download_object", "bucket": sample_bucket, "key": "broken.txt"},
    )

    assert status == 422
    assert "broken.txt" in body


def test_invalid_json_returns_400(make_request, backends) -> None:
    body, status, _ = handle_ops_request(
        make_request(data="{oops"),
        config=BoltConfig(),
        backend_factory=backends,
    )

    assert status == 400
    assert body.startswith("Error parsing JSON: ")
    assert backends.created == []


def test_unknown_request_type_returns_400(make_request, backends) -> None:
    body, status, _ = _call(make_request, backends, {"requestType": "copy_object"})

    assert status == 400
    assert body.startswith("Error parsing JSON: ")


def test_config_error_returns_500(make_request) -> None:
    def _factory(sdk_type, config):
        raise ConfigError("BOLT_URL is not configured")

    body, status, _ = handle_ops_request(
        make_request({"requestType": "list_buckets", "sdkType": "BOLT"}),
        config=BoltConfig(),
        backend_factory=_factory,
    )

    assert status == 500
    assert body == "ErrorCode: 500\nErrorMessage: BOLT_URL is not configured"


def test_unexpected_error_is_reported(make_request, monkeypatch) -> None:
    reported = []
    monkeypatch.setattr(
        "boltgs.ops.main.report_fatal",
        lambda exc, context=None: reported.append((exc, context)),
    )

    def _factory(sdk_type, config):
        raise RuntimeError("kaboom")

    body, status, _ = handle_ops_request(
        make_request({"requestType": "list_objects", "bucket": "b1"}),
        config=BoltConfig(),
        backend_factory=_factory,
    )

    assert status == 500
    assert body == "ErrorMessage: kaboom"
    assert reported[0][1]["request_type"] == "list_objects"
    assert reported[0][1]["bucket"] == "b1"
