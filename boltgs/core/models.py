"""
Value types shared by the storage backend, the digest routines and the
HTTP functions.

None of these outlive a single request, so they are all frozen.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class ObjectReference(BaseModel):
    """Identifies one object across both backends."""

    model_config = ConfigDict(frozen=True)

    bucket: str
    key: str


class FetchResult(BaseModel):
    """Raw stored bytes of an object together with its content-encoding."""

    model_config = ConfigDict(frozen=True)

    raw_bytes: bytes
    content_encoding: str | None = None


class DigestResult(BaseModel):
    """Uppercase hex MD5 of an object's logical content."""

    model_config = ConfigDict(frozen=True)

    hex_digest: str


class ComparisonResult(BaseModel):
    """
    Digests of the same object fetched from two backends.

    ``digest_b`` is None when the second backend was configured off for the
    comparison. Equality is left to the caller.
    """

    model_config = ConfigDict(frozen=True)

    digest_a: DigestResult
    digest_b: DigestResult | None = None

    @property
    def matches(self) -> bool | None:
        if self.digest_b is None:
            return None
        return self.digest_a.hex_digest == self.digest_b.hex_digest


class BucketMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    location: str | None = None
    storage_class: str | None = None
    versioning_enabled: bool = False


class ObjectMetadata(BaseModel):
    """Blob metadata as reported by the storage service."""

    model_config = ConfigDict(frozen=True)

    bucket: str
    key: str
    content_encoding: str | None = None
    etag: str | None = None
    md5_hash: str | None = None
    md5_hex: str | None = None
    size: int | None = None
    storage_class: str | None = None
    time_created: datetime | None = None
    updated: datetime | None = None
    retention_expiration_time: datetime | None = None
