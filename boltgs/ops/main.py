"""
Storage operations HTTP function.

Accepts a JSON body naming an operation (``requestType``) and an endpoint
(``sdkType``: GS or BOLT), performs the operation through the storage backend
and answers with plain text. Example bodies:

    {"requestType": "list_objects", "sdkType": "BOLT", "bucket": "<bucket>"}
    {"requestType": "list_buckets", "sdkType": "GS"}
    {"requestType": "get_object_md", "sdkType": "BOLT", "bucket": "<bucket>", "key": "<key>"}
    {"requestType": "get_bucket_md", "sdkType": "GS", "bucket": "<bucket>"}
    {"requestType": "download_object", "sdkType": "BOLT", "bucket": "<bucket>", "key": "<key>"}
    {"requestType": "upload_object", "sdkType": "BOLT", "bucket": "<bucket>", "key": "<key>",
     "value": "<value>"}
    {"requestType": "delete_object", "sdkType": "BOLT", "bucket": "<bucket>", "key": "<key>"}
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any

from boltgs.core.config import BoltConfig, load_config
from boltgs.core.error_reporting import report_fatal
from boltgs.core.errors import BoltError
from boltgs.core.http import (
    HttpResponse,
    error_response,
    read_json_body,
    text_response,
    unexpected_error_response,
)
from boltgs.core.storage_client import BackendFactory, StorageBackend, build_backend
from boltgs.ops.request_models import (
    DeleteObjectRequest,
    DownloadObjectRequest,
    GetBucketMetadataRequest,
    GetObjectMetadataRequest,
    ListBucketsRequest,
    ListObjectsRequest,
    OpsRequest,
    UploadObjectRequest,
    parse_ops_request,
)


if TYPE_CHECKING:
    from flask import Request

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)


def handle_ops_request(
    request: Request,
    *,
    config: BoltConfig | None = None,
    backend_factory: BackendFactory = build_backend,
) -> HttpResponse:
    """
    Serve one storage operation request.

    Args:
        request: Incoming HTTP request with a JSON body
        config: Configuration (loaded from the environment if omitted)
        backend_factory: Creates the backend for the requested sdkType

    Returns:
        (body, status, headers) tuple with a plain-text body
    """
    ops_request: OpsRequest | None = None
    try:
        ops_request = parse_ops_request(read_json_body(request))
        logger.info(
            "Handling %s request against %s",
            ops_request.request_type,
            ops_request.sdk_type.value,
        )

        backend = backend_factory(ops_request.sdk_type, config or load_config())
        lines = perform_operation(ops_request, backend)
        return text_response(lines)

    except BoltError as exc:
        logger.warning("Request failed: %s", exc)
        return error_response(exc)
    except Exception as exc:
        report_fatal(exc, context=_error_context(ops_request))
        return unexpected_error_response(exc)


def perform_operation(ops_request: OpsRequest, backend: StorageBackend) -> list[str]:
    """Run the operation described by ``ops_request`` and render response lines."""
    operation = _OPERATIONS[type(ops_request)]
    return operation(ops_request, backend)


# =============================================================================
# Operations
# =============================================================================


def _list_objects(req: ListObjectsRequest, backend: StorageBackend) -> list[str]:
    return backend.list_objects(req.bucket)


def _list_buckets(req: ListBucketsRequest, backend: StorageBackend) -> list[str]:
    return backend.list_buckets()


def _get_bucket_metadata(req: GetBucketMetadataRequest, backend: StorageBackend) -> list[str]:
    metadata = backend.get_bucket_metadata(req.bucket)
    return [
        f"BucketName: {metadata.name}",
        f"Location: {metadata.location}",
        f"StorageClass: {metadata.storage_class}",
        f"VersioningEnabled: {_format_bool(metadata.versioning_enabled)}",
    ]


def _get_object_metadata(req: GetObjectMetadataRequest, backend: StorageBackend) -> list[str]:
    metadata = backend.get_object_metadata(req.bucket, req.key)
    lines = [
        f"ContentEncoding: {metadata.content_encoding}",
        f"ETag: {metadata.etag}",
        f"Md5Hash: {metadata.md5_hash}",
        f"Md5HexString: {metadata.md5_hex}",
        f"Size: {metadata.size}",
        f"StorageClass: {metadata.storage_class}",
        f"TimeCreated: {_format_time(metadata.time_created)}",
        f"Last Metadata Update: {_format_time(metadata.updated)}",
    ]
    if metadata.retention_expiration_time is not None:
        lines.append(
            f"retentionExpirationTime: {_format_time(metadata.retention_expiration_time)}"
        )
    return lines


def _upload_object(req: UploadObjectRequest, backend: StorageBackend) -> list[str]:
    metadata = backend.upload_object(req.bucket, req.key, req.value)
    return [
        f"ETag: {metadata.etag}",
        f"MD5: {metadata.md5_hash}",
        f"MD5HexString: {metadata.md5_hex}",
    ]


def _download_object(req: DownloadObjectRequest, backend: StorageBackend) -> list[str]:
    digest = backend.download_object(req.bucket, req.key)
    return [f"md5: {digest.hex_digest}"]


def _delete_object(req: DeleteObjectRequest, backend: StorageBackend) -> list[str]:
    deleted = backend.delete_object(req.bucket, req.key)
    return [f"Deleted: {_format_bool(deleted)}"]


_OPERATIONS: dict[type, Callable[[Any, StorageBackend], list[str]]] = {
    ListObjectsRequest: _list_objects,
    ListBucketsRequest: _list_buckets,
    GetBucketMetadataRequest: _get_bucket_metadata,
    GetObjectMetadataRequest: _get_object_metadata,
    UploadObjectRequest: _upload_object,
    DownloadObjectRequest: _download_object,
    DeleteObjectRequest: _delete_object,
}


# =============================================================================
# Formatting helpers
# =============================================================================


def _format_bool(value: bool) -> str:
    return "true" if value else "false"


def _format_time(value: datetime | None) -> str:
    return value.isoformat() if value is not None else "None"


def _error_context(ops_request: OpsRequest | None) -> dict[str, Any]:
    if ops_request is None:
        return {}
    return {
        "request_type": ops_request.request_type,
        "sdk_type": ops_request.sdk_type.value,
        "bucket": getattr(ops_request, "bucket", None),
        "key": getattr(ops_request, "key", None),
    }
