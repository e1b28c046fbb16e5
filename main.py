"""
Cloud Functions entry points.

Deploy with ``--entry-point bolt_gs_ops_handler`` for storage operations or
``--entry-point bolt_gs_validate_obj_handler`` for data validation. Both read
BOLT_URL (and optionally BOLT_REGION) from the environment.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from boltgs.__metadata__ import get_metadata
from boltgs.core.http import HttpResponse
from boltgs.ops.main import handle_ops_request
from boltgs.validate.main import handle_validate_request


if TYPE_CHECKING:
    from flask import Request

logger = logging.getLogger(__name__)

logger.info("Loaded boltgs functions: %s", get_metadata())


def bolt_gs_ops_handler(request: Request) -> HttpResponse:
    """Perform a GS / Bolt storage operation described by the JSON body."""
    return handle_ops_request(request)


def bolt_gs_validate_obj_handler(request: Request) -> HttpResponse:
    """Return the MD5s of one object as stored in GS and in Bolt."""
    return handle_validate_request(request)
