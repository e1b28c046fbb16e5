"""
Request parsing and plain-text responses shared by the HTTP functions.

Handlers return ``(body, status, headers)`` tuples, which the Cloud Functions
Python runtime (Flask) turns into responses.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from flask import Request
from pydantic import ValidationError
from werkzeug.exceptions import BadRequest

from boltgs.core.errors import (
    BackendError,
    BoltError,
    DecodeError,
    NotFoundError,
    RequestError,
)


logger = logging.getLogger(__name__)

TEXT_HEADERS = {"Content-Type": "text/plain; charset=utf-8"}

HttpResponse = tuple[str, int, dict[str, str]]


def read_json_body(request: Request) -> dict[str, Any]:
    """
    Parse the request body as a JSON object.

    An empty body or a JSON value that is not an object yields an empty dict;
    the per-handler models then report which fields are missing.

    Raises:
        RequestError: If the body is not valid JSON
    """
    if not request.get_data(cache=True):
        return {}

    try:
        body = request.get_json(force=True, silent=False)
    except BadRequest as exc:
        raise RequestError(f"Invalid JSON body: {exc.description}", code=400, cause=exc) from exc

    if not isinstance(body, dict):
        logger.warning("Ignoring non-object JSON body of type %s", type(body).__name__)
        return {}
    return body


def summarize_validation_error(exc: ValidationError) -> str:
    """Join pydantic errors into one ``field: message; ...`` line."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error["loc"])
        parts.append(f"{location}: {error['msg']}" if location else error["msg"])
    return "; ".join(parts)


def text_response(lines: Iterable[str], status: int = 200) -> HttpResponse:
    return "\n".join(lines), status, dict(TEXT_HEADERS)


def error_status(exc: BoltError) -> int:
    """Map a BoltError onto an HTTP status code."""
    if isinstance(exc, RequestError):
        return 400
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, DecodeError):
        return 422
    if isinstance(exc, BackendError):
        if exc.code is not None and 400 <= exc.code < 600:
            return exc.code
        return 502
    # ConfigError and anything else is a server-side problem
    return 500


def error_response(exc: BoltError) -> HttpResponse:
    """
    Render a BoltError as a plain-text response.

    Parse failures read ``Error parsing JSON: ...``; everything else carries
    an ``ErrorCode`` line followed by ``ErrorMessage``.
    """
    status = error_status(exc)
    if isinstance(exc, RequestError):
        return text_response([f"Error parsing JSON: {exc.message}"], status)
    return text_response(
        [f"ErrorCode: {exc.code or status}", f"ErrorMessage: {exc.message}"],
        status,
    )


def unexpected_error_response(exc: Exception) -> HttpResponse:
    return text_response([f"ErrorMessage: {exc}"], 500)
