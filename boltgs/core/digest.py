"""
Content-identity helpers.

Computes the MD5 of an object's logical content (gzip payloads are inflated
first) and compares the digests of one object fetched from two backends.

MD5 is used because it is the checksum Cloud Storage itself reports in object
metadata, so digests produced here line up with ``md5Hash`` for plain objects.
"""

from __future__ import annotations

import gzip
import hashlib
import logging
import zlib
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Protocol

from boltgs.core.errors import DecodeError
from boltgs.core.models import ComparisonResult, DigestResult, FetchResult, ObjectReference


logger = logging.getLogger(__name__)

GZIP_ENCODING = "gzip"
GZIP_SUFFIX = ".gz"
GZIP_MAGIC = b"\x1f\x8b"


class FetchCapability(Protocol):
    """Anything that can return the stored bytes of an object."""

    def fetch(self, bucket: str, key: str) -> FetchResult: ...


def is_gzip_content(content_encoding: str | None, object_key: str) -> bool:
    """
    Decide whether stored bytes must be inflated before hashing.

    Either signal is enough: a ``gzip`` content-encoding (any case) or a key
    ending in ``.gz``.
    """
    if content_encoding is not None and content_encoding.lower() == GZIP_ENCODING:
        return True
    return object_key.endswith(GZIP_SUFFIX)


def compute_digest(raw_bytes: bytes, content_encoding: str | None, object_key: str) -> str:
    """
    Compute the uppercase hex MD5 of an object's logical content.

    The whole gzip stream is inflated in memory; there is no size bound here,
    so callers must bound object size upstream.

    Args:
        raw_bytes: Bytes as stored by the backend
        content_encoding: Content-encoding reported alongside the bytes
        object_key: Object key, consulted for the ``.gz`` suffix

    Returns:
        MD5 hex digest, uppercase

    Raises:
        DecodeError: If gzip is signalled but the stream is malformed
    """
    content = raw_bytes
    if is_gzip_content(content_encoding, object_key):
        if raw_bytes[:2] != GZIP_MAGIC:
            raise DecodeError(
                f"Not a gzip stream: {object_key} (magic bytes {raw_bytes[:2]!r})",
                key=object_key,
            )
        try:
            content = gzip.decompress(raw_bytes)
        except (OSError, EOFError, zlib.error) as exc:
            raise DecodeError(
                f"Failed to gzip-decompress {object_key}: {exc}",
                key=object_key,
                cause=exc,
            ) from exc

    return hashlib.md5(content).hexdigest().upper()


def digest_fetch_result(result: FetchResult, object_key: str) -> DigestResult:
    return DigestResult(
        hex_digest=compute_digest(result.raw_bytes, result.content_encoding, object_key)
    )


def digest_object(backend: FetchCapability, ref: ObjectReference) -> DigestResult:
    """Fetch one object from a backend and digest it."""
    result = backend.fetch(ref.bucket, ref.key)
    digest = digest_fetch_result(result, ref.key)
    logger.info(
        "Digest of gs://%s/%s is %s (encoding=%s, %d bytes)",
        ref.bucket,
        ref.key,
        digest.hex_digest,
        result.content_encoding,
        len(result.raw_bytes),
    )
    return digest


def compare(
    backend_a: FetchCapability,
    backend_b: FetchCapability | None,
    ref: ObjectReference,
) -> ComparisonResult:
    """
    Digest the same object from two backends.

    Both fetches run concurrently. Each result is hashed with its own
    content-encoding, since the two backends may report encoding differently.
    When ``backend_b`` is None only ``digest_a`` is produced.

    Args:
        backend_a: First backend (always fetched)
        backend_b: Second backend, or None to skip it
        ref: Object to fetch from both backends

    Returns:
        ComparisonResult with both digests; differing digests are not an error

    Raises:
        NotFoundError: If either backend lacks the object
        BackendError: On transport or storage-service failure
        DecodeError: If either payload claims gzip but is malformed
    """
    if backend_b is None:
        logger.info("Second backend disabled; digesting gs://%s/%s once", ref.bucket, ref.key)
        return ComparisonResult(digest_a=digest_object(backend_a, ref))

    fetch_a, fetch_b = _fetch_both(backend_a, backend_b, ref)
    digest_a = digest_fetch_result(fetch_a, ref.key)
    digest_b = digest_fetch_result(fetch_b, ref.key)

    if digest_a == digest_b:
        logger.info("Digests match for gs://%s/%s: %s", ref.bucket, ref.key, digest_a.hex_digest)
    else:
        logger.warning(
            "Digest mismatch for gs://%s/%s: %s != %s",
            ref.bucket,
            ref.key,
            digest_a.hex_digest,
            digest_b.hex_digest,
        )

    return ComparisonResult(digest_a=digest_a, digest_b=digest_b)


def _fetch_both(
    backend_a: FetchCapability,
    backend_b: FetchCapability,
    ref: ObjectReference,
) -> tuple[FetchResult, FetchResult]:
    """Fetch from both backends in parallel; the first failure wins."""
    executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="boltgs-fetch")
    try:
        future_a = executor.submit(backend_a.fetch, ref.bucket, ref.key)
        future_b = executor.submit(backend_b.fetch, ref.bucket, ref.key)

        done, pending = wait((future_a, future_b), return_when=FIRST_EXCEPTION)
        for future in (future_a, future_b):
            if future in done and future.exception() is not None:
                for other in pending:
                    other.cancel()
                exc = future.exception()
                raise exc

        return future_a.result(), future_b.result()
    finally:
        executor.shutdown(wait=False, cancel_futures=True)
