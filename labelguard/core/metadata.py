"""
Minimal object metadata extraction.

Forward-compatibility contract: the only field read from an object payload is
`metadata.labels`. Everything else (spec, status, other metadata fields, fields added by
future API versions) is discarded without validation, so an object never fails to decode
just because it carries something we don't know about.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from labelguard.core.errors import DecodeError, describe_validation_error


class ObjectMetadataView(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    labels: Dict[str, str] = Field(default_factory=dict)

    @field_validator("labels", mode="before")
    @classmethod
    def _null_labels_are_empty(cls, v: Any) -> Any:
        # `labels: null` is valid JSON for an object without labels.
        return {} if v is None else v


class _PartialObject(BaseModel):
    model_config = ConfigDict(extra="ignore")

    metadata: ObjectMetadataView = Field(default_factory=ObjectMetadataView)

    @field_validator("metadata", mode="before")
    @classmethod
    def _null_metadata_is_empty(cls, v: Any) -> Any:
        return {} if v is None else v


def extract_labels(raw: Any) -> ObjectMetadataView:
    """
    Decode the label mapping from a raw object payload.

    Accepts JSON bytes/str or an already-parsed JSON object. Raises DecodeError when the
    payload is empty, is not well-formed JSON, is not a JSON object, or carries labels
    that are not a string-to-string mapping.
    """
    if raw is None or (isinstance(raw, (bytes, bytearray, str)) and not raw.strip()):
        raise DecodeError("object payload is empty")

    try:
        if isinstance(raw, (bytes, bytearray, str)):
            obj = _PartialObject.model_validate_json(raw)
        elif isinstance(raw, Mapping):
            obj = _PartialObject.model_validate(dict(raw))
        else:
            raise DecodeError(f"object payload must be a JSON object, got {type(raw).__name__}")
    except ValidationError as e:
        raise DecodeError(f"cannot decode object metadata: {describe_validation_error(e)}") from e

    return obj.metadata
