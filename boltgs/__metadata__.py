"""
boltgs function metadata.

Describes the HTTP functions shipped from this repository and the environment
they expect, so deploy tooling can configure them without importing the
handlers.
"""

from __future__ import annotations

# Function identification
OPS_ENTRY_POINT = "bolt_gs_ops_handler"
VALIDATE_ENTRY_POINT = "bolt_gs_validate_obj_handler"

# Environment variables
BOLT_URL_ENV = "BOLT_URL"
BOLT_REGION_ENV = "BOLT_REGION"

ENV_VARS = {
    BOLT_URL_ENV: {
        "required": True,
        "description": (
            "Bolt endpoint URL; may contain a '{region}' placeholder that is "
            "filled from BOLT_REGION or the instance metadata server"
        ),
    },
    BOLT_REGION_ENV: {
        "required": False,
        "description": "Region substituted into BOLT_URL (skips metadata discovery)",
    },
}

# Operations accepted by the ops function (the 'requestType' field)
SUPPORTED_REQUEST_TYPES = [
    "list_objects",
    "list_buckets",
    "get_bucket_md",
    "get_object_md",
    "upload_object",
    "download_object",
    "delete_object",
]

# Endpoints accepted by the ops function (the 'sdkType' field)
SUPPORTED_SDK_TYPES = ["GS", "BOLT"]

# Instance metadata server used for region discovery
METADATA_ZONE_URL = "http://metadata.google.internal/computeMetadata/v1/instance/zone"
METADATA_HEADERS = {"Metadata-Flavor": "Google"}


def get_metadata() -> dict:
    """
    Return all metadata as a dictionary.

    Logged at cold start by the HTTP functions.
    """
    return {
        "entry_points": [OPS_ENTRY_POINT, VALIDATE_ENTRY_POINT],
        "env_vars": ENV_VARS,
        "supported_request_types": SUPPORTED_REQUEST_TYPES,
        "supported_sdk_types": SUPPORTED_SDK_TYPES,
    }
