"""
Request models for the storage operations function.

Each operation is its own model carrying only the fields it needs; the
``requestType`` field selects the model.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from boltgs.core.errors import RequestError
from boltgs.core.http import summarize_validation_error
from boltgs.core.storage_client import SdkType


REQUEST_TYPE_FIELD = "requestType"


class _OpsRequest(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    sdk_type: SdkType = Field(default=SdkType.GS, alias="sdkType")

    @field_validator("sdk_type", mode="before")
    @classmethod
    def _normalize_sdk_type(cls, value: Any) -> Any:
        # Missing or empty means Google Cloud Storage
        if value is None or value == "":
            return SdkType.GS
        if isinstance(value, str):
            return value.upper()
        return value


class ListObjectsRequest(_OpsRequest):
    request_type: Literal["list_objects"] = Field(alias=REQUEST_TYPE_FIELD)
    bucket: str


class ListBucketsRequest(_OpsRequest):
    request_type: Literal["list_buckets"] = Field(alias=REQUEST_TYPE_FIELD)


class GetBucketMetadataRequest(_OpsRequest):
    request_type: Literal["get_bucket_md"] = Field(alias=REQUEST_TYPE_FIELD)
    bucket: str


class GetObjectMetadataRequest(_OpsRequest):
    request_type: Literal["get_object_md"] = Field(alias=REQUEST_TYPE_FIELD)
    bucket: str
    key: str


class UploadObjectRequest(_OpsRequest):
    request_type: Literal["upload_object"] = Field(alias=REQUEST_TYPE_FIELD)
    bucket: str
    key: str
    value: str


class DownloadObjectRequest(_OpsRequest):
    request_type: Literal["download_object"] = Field(alias=REQUEST_TYPE_FIELD)
    bucket: str
    key: str


class DeleteObjectRequest(_OpsRequest):
    request_type: Literal["delete_object"] = Field(alias=REQUEST_TYPE_FIELD)
    bucket: str
    key: str


OpsRequest = Annotated[
    ListObjectsRequest
    | ListBucketsRequest
    | GetBucketMetadataRequest
    | GetObjectMetadataRequest
    | UploadObjectRequest
    | DownloadObjectRequest
    | DeleteObjectRequest,
    Field(discriminator="request_type"),
]

_OPS_REQUEST_ADAPTER: TypeAdapter[OpsRequest] = TypeAdapter(OpsRequest)


def parse_ops_request(body: dict[str, Any]) -> OpsRequest:
    """
    Validate a JSON body into one of the operation request models.

    ``requestType`` and ``sdkType`` are matched case-insensitively.

    Args:
        body: Decoded JSON object from the request

    Returns:
        The request model selected by ``requestType``

    Raises:
        RequestError: If the request type is missing/unknown or a field is invalid
    """
    normalized = dict(body)
    request_type = normalized.get(REQUEST_TYPE_FIELD)
    if isinstance(request_type, str):
        normalized[REQUEST_TYPE_FIELD] = request_type.lower()

    try:
        return _OPS_REQUEST_ADAPTER.validate_python(normalized)
    except ValidationError as exc:
        raise RequestError(summarize_validation_error(exc), code=400, cause=exc) from exc

