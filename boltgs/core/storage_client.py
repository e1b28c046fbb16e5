"""
Storage backend for the HTTP functions.

Wraps a google-cloud-storage client bound either to Google Cloud Storage or to
a Bolt endpoint. Bolt speaks the GCS JSON API, so the only difference between
the two is the ``api_endpoint`` the client is created with.

Every SDK failure leaves this module as a BoltError subclass so callers can
tell a missing object from a corrupt one from an unreachable service.
"""

from __future__ import annotations

import base64
import logging
from collections.abc import Callable
from enum import StrEnum

from google.api_core.exceptions import (
    Forbidden,
    GoogleAPICallError,
    GoogleAPIError,
    NotFound,
    Unauthorized,
)
from google.auth.exceptions import GoogleAuthError
from google.cloud import storage

from boltgs.core.config import BoltConfig
from boltgs.core.digest import digest_fetch_result
from boltgs.core.errors import (
    BackendError,
    BoltError,
    NotFoundError,
    PermissionDeniedError,
)
from boltgs.core.models import BucketMetadata, DigestResult, FetchResult, ObjectMetadata

logger = logging.getLogger(__name__)

UPLOAD_CONTENT_TYPE = "text/plain"

_SDK_ERRORS = (GoogleAPIError, GoogleAuthError, OSError)


class SdkType(StrEnum):
    """Endpoint a request is sent to."""

    GS = "GS"
    BOLT = "BOLT"


# =============================================================================
# Backend
# =============================================================================


class StorageBackend:
    """Object storage operations against one endpoint."""

    def __init__(self, client: storage.Client, name: str = SdkType.GS):
        self._client = client
        self.name = str(name)

    def fetch(self, bucket: str, key: str) -> FetchResult:
        """
        Retrieve the stored bytes of an object and its content-encoding.

        Bytes are downloaded raw so gzip-encoded objects are not transcoded by
        the service or the SDK before we see them.

        Raises:
            NotFoundError: If the bucket or object does not exist
            BackendError: On any other storage failure
        """
        logger.info("Fetching gs://%s/%s from %s", bucket, key, self.name)
        try:
            blob = self._client.bucket(bucket).get_blob(key)
            if blob is None:
                raise NotFoundError(
                    f"Object not found: gs://{bucket}/{key}",
                    bucket=bucket,
                    key=key,
                    code=404,
                )
            content = blob.download_as_bytes(raw_download=True)
        except _SDK_ERRORS as exc:
            raise self._translate_error(exc, bucket, key) from exc

        return FetchResult(raw_bytes=content, content_encoding=blob.content_encoding)

    def list_objects(self, bucket: str) -> list[str]:
        logger.info("Listing objects in %s on %s", bucket, self.name)
        try:
            return [blob.name for blob in self._client.list_blobs(bucket)]
        except _SDK_ERRORS as exc:
            raise self._translate_error(exc, bucket) from exc

    def list_buckets(self) -> list[str]:
        logger.info("Listing buckets on %s", self.name)
        try:
            return [bucket.name for bucket in self._client.list_buckets()]
        except _SDK_ERRORS as exc:
            raise self._translate_error(exc) from exc

    def get_bucket_metadata(self, bucket: str) -> BucketMetadata:
        logger.info("Fetching metadata of bucket %s from %s", bucket, self.name)
        try:
            found = self._client.get_bucket(bucket)
        except _SDK_ERRORS as exc:
            raise self._translate_error(exc, bucket) from exc

        return BucketMetadata(
            name=found.name,
            location=found.location,
            storage_class=found.storage_class,
            versioning_enabled=bool(found.versioning_enabled),
        )

    def get_object_metadata(self, bucket: str, key: str) -> ObjectMetadata:
        logger.info("Fetching metadata of gs://%s/%s from %s", bucket, key, self.name)
        try:
            blob = self._client.bucket(bucket).get_blob(key)
        except _SDK_ERRORS as exc:
            raise self._translate_error(exc, bucket, key) from exc

        if blob is None:
            raise NotFoundError(
                f"Object not found: gs://{bucket}/{key}", bucket=bucket, key=key, code=404
            )
        return _object_metadata(bucket, key, blob)

    def upload_object(self, bucket: str, key: str, value: str) -> ObjectMetadata:
        """Upload ``value`` as UTF-8 text/plain and return the stored metadata."""
        logger.info(
            "Uploading gs://%s/%s to %s (%d chars)", bucket, key, self.name, len(value)
        )
        try:
            blob = self._client.bucket(bucket).blob(key)
            blob.upload_from_string(value.encode("utf-8"), content_type=UPLOAD_CONTENT_TYPE)
        except _SDK_ERRORS as exc:
            raise self._translate_error(exc, bucket, key) from exc

        return _object_metadata(bucket, key, blob)

    def download_object(self, bucket: str, key: str) -> DigestResult:
        """Download an object and return the digest of its logical content."""
        result = self.fetch(bucket, key)
        digest = digest_fetch_result(result, key)
        logger.info(
            "Downloaded gs://%s/%s from %s (md5=%s)", bucket, key, self.name, digest.hex_digest
        )
        return digest

    def delete_object(self, bucket: str, key: str) -> bool:
        """
        Delete an object.

        Returns:
            True if the object was deleted, False if it did not exist
        """
        logger.info("Deleting gs://%s/%s from %s", bucket, key, self.name)
        try:
            self._client.bucket(bucket).delete_blob(key)
        except _SDK_ERRORS as exc:
            translated = self._translate_error(exc, bucket, key)
            if isinstance(translated, NotFoundError):
                return False
            raise translated from exc
        return True

    def _translate_error(
        self,
        error: Exception,
        bucket: str | None = None,
        key: str | None = None,
    ) -> BoltError:
        return translate_sdk_error(error, self.name, bucket, key)


def translate_sdk_error(
    error: Exception,
    endpoint: str,
    bucket: str | None = None,
    key: str | None = None,
) -> BoltError:
    """Map a google-cloud-storage, api-core or auth failure onto a BoltError."""
    code = None
    if isinstance(error, GoogleAPICallError) and error.code is not None:
        code = int(error.code)
    message = f"{endpoint}: {error}"
    if isinstance(error, NotFound):
        return NotFoundError(message, bucket=bucket, key=key, code=code, cause=error)
    if isinstance(error, (Forbidden, Unauthorized, GoogleAuthError)):
        return PermissionDeniedError(message, bucket=bucket, key=key, code=code, cause=error)
    return BackendError(message, bucket=bucket, key=key, code=code, cause=error)


def _object_metadata(bucket: str, key: str, blob: storage.Blob) -> ObjectMetadata:
    return ObjectMetadata(
        bucket=bucket,
        key=key,
        content_encoding=blob.content_encoding,
        etag=blob.etag,
        md5_hash=blob.md5_hash,
        md5_hex=md5_hash_to_hex(blob.md5_hash),
        size=blob.size,
        storage_class=blob.storage_class,
        time_created=blob.time_created,
        updated=blob.updated,
        retention_expiration_time=blob.retention_expiration_time,
    )


def md5_hash_to_hex(md5_hash: str | None) -> str | None:
    """
    Convert the base64 ``md5Hash`` reported by GCS into lowercase hex.

    Examples:
        >>> md5_hash_to_hex("XUFAKrxLKna5cZ2REBfFkg==")
        '5d41402abc4b2a76b9719d911017c592'
    """
    if not md5_hash:
        return None
    return base64.b64decode(md5_hash).hex()


# =============================================================================
# Factory
# =============================================================================


def build_backend(sdk_type: SdkType, config: BoltConfig) -> StorageBackend:
    """
    Create a backend for the requested endpoint.

    Args:
        sdk_type: GS for Google Cloud Storage, BOLT for the Bolt endpoint
        config: Configuration holding the Bolt URL

    Raises:
        ConfigError: If BOLT is requested and the endpoint cannot be resolved
        PermissionDeniedError: If no usable credentials are found
        BackendError: If the client cannot be created for any other reason
    """
    try:
        if sdk_type == SdkType.BOLT:
            endpoint = config.bolt_endpoint()
            logger.info("Creating Bolt storage client for %s", endpoint)
            client = storage.Client(client_options={"api_endpoint": endpoint})
        else:
            client = storage.Client()
    except _SDK_ERRORS as exc:
        raise translate_sdk_error(exc, str(sdk_type)) from exc
    return StorageBackend(client, name=sdk_type)


BackendFactory = Callable[[SdkType, BoltConfig], StorageBackend]
