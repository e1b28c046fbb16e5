"""
Error reporting utilities for the HTTP functions.

We log all unexpected exceptions and, when Sentry is installed/configured,
forward the exception for deeper diagnostics. The HTTP response only carries
the error message.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def report_fatal(exc: Exception, *, context: dict | None = None) -> None:
    """
    Log an unexpected exception and send to Sentry if available.

    Args:
        exc: The exception to report.
        context: Optional extra context (request type, bucket, key) for logs/Sentry.
    """
    logger.error(
        "Unexpected error handling request: %s",
        exc,
        exc_info=exc,
        extra={"context": context or {}},
    )

    try:
        import sentry_sdk  # type: ignore
    except ImportError:
        logger.debug("Sentry not installed; skipping error forwarding")
        return

    with sentry_sdk.new_scope() as scope:
        if context:
            for key, value in context.items():
                scope.set_tag(key, value)
        sentry_sdk.capture_exception(exc)
