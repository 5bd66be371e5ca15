"""Admission review models.

Two families live here:
- wire models (pydantic) for the `AdmissionReview` envelope exchanged with the API server
- per-request domain values (frozen dataclasses) handed between the adapter and the evaluator

Design note:
- Inbound wire models ignore unknown fields. The API server adds fields across releases and
  the webhook must keep answering; only the fields we consume are declared.
- The response model has no `request` field at all, so object payloads can never be echoed.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

API_VERSION_V1 = "admission.k8s.io/v1"
API_VERSION_V1BETA1 = "admission.k8s.io/v1beta1"
SUPPORTED_API_VERSIONS = (API_VERSION_V1, API_VERSION_V1BETA1)
REVIEW_KIND = "AdmissionReview"


class Operation(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    CONNECT = "CONNECT"


class BaseModelIgnoreExtra(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class UserInfo(BaseModelIgnoreExtra):
    username: str = ""
    uid: Optional[str] = None
    groups: List[str] = Field(default_factory=list)


class GroupVersionKind(BaseModelIgnoreExtra):
    group: str = ""
    version: str = ""
    kind: str = ""


class AdmissionRequest(BaseModelIgnoreExtra):
    uid: str
    operation: str = ""
    user_info: UserInfo = Field(default_factory=UserInfo, alias="userInfo")
    kind: Optional[GroupVersionKind] = None
    namespace: Optional[str] = None
    name: Optional[str] = None
    # Object payloads are kept undecoded; only the metadata extractor looks inside.
    object_: Any = Field(default=None, alias="object")
    old_object: Any = Field(default=None, alias="oldObject")


class AdmissionReview(BaseModelIgnoreExtra):
    api_version: str = Field(default="", alias="apiVersion")
    kind: str = ""
    request: Optional[AdmissionRequest] = None


class Status(BaseModel):
    code: Optional[int] = None
    reason: Optional[str] = None
    message: Optional[str] = None


class AdmissionResponse(BaseModel):
    uid: str
    allowed: bool
    status: Optional[Status] = None


class AdmissionReviewResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    api_version: str = Field(default=API_VERSION_V1, alias="apiVersion")
    kind: str = REVIEW_KIND
    response: AdmissionResponse

    def to_json_bytes(self) -> bytes:
        return self.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")


@dataclass(frozen=True)
class AdmissionOperation:
    """
    One pending operation, unwrapped from its review envelope.

    `raw_object` is the object payload exactly as it arrived (bytes/str, or the JSON value
    from an already-parsed envelope). It is never written back into a response.
    """

    uid: str
    operation: str
    username: str
    raw_object: Any = None
    api_version: str = API_VERSION_V1
    resource_kind: Optional[str] = None
    namespace: Optional[str] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class Verdict:
    allowed: bool
    message: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.allowed and not (self.message or "").strip():
            raise ValueError("a denial verdict requires a non-empty message")

    @classmethod
    def allow(cls) -> "Verdict":
        return cls(allowed=True)

    @classmethod
    def deny(cls, message: str) -> "Verdict":
        return cls(allowed=False, message=message)


def labels_summary(labels: Dict[str, str]) -> List[str]:
    """Sorted label keys, for logs (values may carry user data)."""
    return sorted(labels.keys())
