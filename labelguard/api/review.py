"""
AdmissionReview adapter.

Unwraps inbound review envelopes into `AdmissionOperation`s, runs the evaluator and wraps
the outcome back into a response envelope. Every per-request failure is converted into a
denial here (fail closed); nothing raised while handling one review escapes to the server.

Response invariants:
- `response.uid` is the request uid, verbatim (empty string if it could not be recovered)
- `allowed` is always present; denials always carry `status.message`
- no `request`/`object`/`oldObject` is ever written back
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Iterable, List, Optional, Protocol, Union

from pydantic import ValidationError

from labelguard.authz.policy import PolicyConfig
from labelguard.core.errors import AdmissionError, DecodeError, describe_validation_error
from labelguard.core.evaluator import evaluate
from labelguard.core.models import (
    API_VERSION_V1,
    REVIEW_KIND,
    SUPPORTED_API_VERSIONS,
    AdmissionOperation,
    AdmissionResponse,
    AdmissionReview,
    AdmissionReviewResponse,
    Status,
    Verdict,
)

logger = logging.getLogger(__name__)


class EnvelopeDecoder(Protocol):
    """
    Decodes raw request bodies of the envelope shapes it knows about.

    Implementations raise DecodeError for anything they cannot interpret.
    """

    def decode(self, body: bytes) -> AdmissionReview:
        ...


class AdmissionReviewDecoder:
    """JSON `AdmissionReview` decoder for a fixed set of `admission.k8s.io` versions."""

    def __init__(self, api_versions: Iterable[str] = SUPPORTED_API_VERSIONS) -> None:
        self.api_versions = tuple(api_versions)

    def decode(self, body: bytes) -> AdmissionReview:
        if not body or not body.strip():
            raise DecodeError("request body is empty")
        try:
            review = AdmissionReview.model_validate_json(body)
        except ValidationError as e:
            raise DecodeError(f"invalid AdmissionReview: {describe_validation_error(e)}") from e

        if not review.kind or not review.api_version:
            raise DecodeError("invalid AdmissionReview: apiVersion and kind are required")
        if review.kind != REVIEW_KIND or review.api_version not in self.api_versions:
            raise DecodeError(
                f"unsupported envelope {review.api_version}, Kind={review.kind}; "
                f"expected {REVIEW_KIND} in {', '.join(self.api_versions)}"
            )
        if review.request is None:
            raise DecodeError("invalid AdmissionReview: request is missing")
        return review


def _json_get_str(body: bytes, path: List[str]) -> Optional[str]:
    """Best-effort string lookup in a body that failed strict decoding."""
    try:
        cur: Any = json.loads(body)
    except (ValueError, RecursionError):
        return None
    for k in path:
        if not isinstance(cur, dict):
            return None
        cur = cur.get(k)
    return cur if isinstance(cur, str) else None


def _raw_object(value: Any) -> Any:
    """
    Object payload as handed to the metadata extractor.

    Only JSON objects stay parsed. Any other JSON value is re-serialized so the extractor
    sees it as that value (a JSON string is never parsed a second time as a document).
    """
    if value is None or isinstance(value, Mapping):
        return value
    return json.dumps(value).encode("utf-8")


class ReviewAdapter:
    def __init__(self, policy: PolicyConfig, *, decoder: Optional[EnvelopeDecoder] = None) -> None:
        self.policy = policy
        self.decoder: EnvelopeDecoder = decoder or AdmissionReviewDecoder()

    def decode(self, body: bytes) -> AdmissionOperation:
        review = self.decoder.decode(body)
        req = review.request
        if req is None:
            raise DecodeError("invalid AdmissionReview: request is missing")
        return AdmissionOperation(
            uid=req.uid,
            operation=req.operation,
            username=req.user_info.username,
            raw_object=_raw_object(req.object_),
            api_version=review.api_version,
            resource_kind=req.kind.kind if req.kind else None,
            namespace=req.namespace,
            name=req.name,
        )

    def encode(
        self,
        uid: str,
        outcome: Union[Verdict, BaseException],
        *,
        api_version: Optional[str] = None,
    ) -> bytes:
        if isinstance(outcome, Verdict):
            if outcome.allowed:
                response = AdmissionResponse(uid=uid, allowed=True)
            else:
                response = AdmissionResponse(
                    uid=uid,
                    allowed=False,
                    status=Status(code=403, reason="Forbidden", message=outcome.message),
                )
        else:
            if isinstance(outcome, AdmissionError):
                code, reason = 400, "BadRequest"
            else:
                code, reason = 500, "InternalError"
            response = AdmissionResponse(
                uid=uid,
                allowed=False,
                status=Status(code=code, reason=reason, message=str(outcome) or type(outcome).__name__),
            )

        if api_version not in SUPPORTED_API_VERSIONS:
            api_version = API_VERSION_V1
        return AdmissionReviewResponse(api_version=api_version, response=response).to_json_bytes()

    def review(self, body: bytes) -> bytes:
        """Decode, evaluate and encode one review. Never raises for per-request failures."""
        try:
            op = self.decode(body)
        except DecodeError as e:
            uid = _json_get_str(body, ["request", "uid"]) or ""
            logger.warning("uid=%s: rejecting undecodable AdmissionReview: %s", uid or "<unknown>", e)
            return self.encode(uid, e, api_version=_json_get_str(body, ["apiVersion"]))
        except Exception as e:
            uid = _json_get_str(body, ["request", "uid"]) or ""
            logger.exception("uid=%s: unexpected error decoding AdmissionReview", uid or "<unknown>")
            return self.encode(uid, e, api_version=_json_get_str(body, ["apiVersion"]))

        try:
            verdict = evaluate(op, self.policy)
        except AdmissionError as e:
            logger.warning(
                "uid=%s operation=%s user=%s: denied, evaluation failed: %s", op.uid, op.operation, op.username, e
            )
            return self.encode(op.uid, e, api_version=op.api_version)
        except Exception as e:
            logger.exception("uid=%s: unexpected error evaluating AdmissionReview", op.uid)
            return self.encode(op.uid, e, api_version=op.api_version)

        logger.info(
            "uid=%s operation=%s kind=%s namespace=%s name=%s user=%s allowed=%s",
            op.uid,
            op.operation,
            op.resource_kind,
            op.namespace,
            op.name,
            op.username,
            verdict.allowed,
        )
        return self.encode(op.uid, verdict, api_version=op.api_version)
