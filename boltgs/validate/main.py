"""
Data validation HTTP function and CLI.

Fetches one object from Bolt and, unless the source bucket is cleaned after
crunching, from Google Cloud Storage, and reports the MD5 of each. Gzip
encoded objects are decompressed before hashing. Example body:

    {"bucket": "<bucket>", "key": "<key>", "bucketClean": "OFF"}

From a shell:

    python -m boltgs.validate.main <bucket> <key> [--bucket-clean]
"""

from __future__ import annotations

import argparse
import logging
import sys
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from boltgs.core.config import BoltConfig, load_config
from boltgs.core.digest import compare
from boltgs.core.error_reporting import report_fatal
from boltgs.core.errors import BoltError, RequestError
from boltgs.core.http import (
    HttpResponse,
    error_response,
    read_json_body,
    summarize_validation_error,
    text_response,
    unexpected_error_response,
)
from boltgs.core.models import ComparisonResult, ObjectReference
from boltgs.core.storage_client import BackendFactory, SdkType, build_backend


if TYPE_CHECKING:
    from flask import Request

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)


class BucketClean(StrEnum):
    """Whether the source bucket is cleaned after crunching."""

    # GS copy is gone, only Bolt can be digested
    ON = "ON"
    OFF = "OFF"


class ValidateRequest(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    bucket: str
    key: str
    bucket_clean: BucketClean = Field(default=BucketClean.OFF, alias="bucketClean")

    @field_validator("bucket_clean", mode="before")
    @classmethod
    def _normalize_bucket_clean(cls, value: Any) -> Any:
        if value is None or value == "":
            return BucketClean.OFF
        if isinstance(value, str):
            return value.upper()
        return value

    @property
    def ref(self) -> ObjectReference:
        return ObjectReference(bucket=self.bucket, key=self.key)


def parse_validate_request(body: dict[str, Any]) -> ValidateRequest:
    try:
        return ValidateRequest.model_validate(body)
    except ValidationError as exc:
        raise RequestError(summarize_validation_error(exc), code=400, cause=exc) from exc


def validate_object(
    validate_request: ValidateRequest,
    config: BoltConfig,
    backend_factory: BackendFactory = build_backend,
) -> ComparisonResult:
    """
    Digest the requested object on Bolt and, when available, on GS.

    Returns:
        ComparisonResult with the Bolt digest as ``digest_a`` and the GS digest
        as ``digest_b`` (None when bucketClean is ON)
    """
    bolt_backend = backend_factory(SdkType.BOLT, config)
    gs_backend = None
    if validate_request.bucket_clean == BucketClean.OFF:
        gs_backend = backend_factory(SdkType.GS, config)

    return compare(bolt_backend, gs_backend, validate_request.ref)


def render_comparison(result: ComparisonResult) -> list[str]:
    lines = []
    if result.digest_b is not None:
        lines.append(f"gs-md5: {result.digest_b.hex_digest}")
    lines.append(f"bolt-md5: {result.digest_a.hex_digest}")
    if result.matches is not None:
        lines.append(f"match: {'true' if result.matches else 'false'}")
    return lines


def handle_validate_request(
    request: Request,
    *,
    config: BoltConfig | None = None,
    backend_factory: BackendFactory = build_backend,
) -> HttpResponse:
    """
    Serve one data validation request.

    Args:
        request: Incoming HTTP request with bucket, key and optional bucketClean
        config: Configuration (loaded from the environment if omitted)
        backend_factory: Creates the Bolt and GS backends

    Returns:
        (body, status, headers) tuple; the body lists the GS and Bolt MD5s
    """
    validate_request: ValidateRequest | None = None
    try:
        validate_request = parse_validate_request(read_json_body(request))
        logger.info(
            "Validating gs://%s/%s (bucketClean=%s)",
            validate_request.bucket,
            validate_request.key,
            validate_request.bucket_clean.value,
        )
        result = validate_object(validate_request, config or load_config(), backend_factory)
        return text_response(render_comparison(result))

    except BoltError as exc:
        logger.warning("Validation failed: %s", exc)
        return error_response(exc)
    except Exception as exc:
        report_fatal(
            exc,
            context={
                "bucket": getattr(validate_request, "bucket", None),
                "key": getattr(validate_request, "key", None),
            },
        )
        return unexpected_error_response(exc)


def main(argv: list[str] | None = None) -> int:
    """
    Print the Bolt and GS digests of one object.

    Returns:
        Exit code (0 for success, 1 on any error)
    """
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("bucket")
    parser.add_argument("key")
    parser.add_argument(
        "--bucket-clean",
        action="store_true",
        help="Source bucket is cleaned after crunching; only digest the Bolt copy",
    )
    args = parser.parse_args(argv)

    validate_request = ValidateRequest(
        bucket=args.bucket,
        key=args.key,
        bucket_clean=BucketClean.ON if args.bucket_clean else BucketClean.OFF,
    )

    try:
        result = validate_object(validate_request, load_config(), build_backend)
    except BoltError:
        logger.exception("Validation of gs://%s/%s failed", args.bucket, args.key)
        return 1
    except Exception as exc:
        report_fatal(exc, context={"bucket": args.bucket, "key": args.key})
        return 1

    for line in render_comparison(result):
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
