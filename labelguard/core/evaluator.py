"""
Protected-label decision engine.

Order of checks:
1. exempt identities pass unconditionally (any operation kind)
2. only CREATE/UPDATE can be evaluated for everyone else
3. the object's labels are decoded; decode failures become evaluation errors
4. presence of the protected key denies, regardless of its value
"""

from __future__ import annotations

import logging

from labelguard.authz.policy import PolicyConfig
from labelguard.core.errors import DecodeError, EvalError
from labelguard.core.metadata import extract_labels
from labelguard.core.models import AdmissionOperation, Operation, Verdict, labels_summary

logger = logging.getLogger(__name__)

_EVALUATED_OPERATIONS = frozenset({Operation.CREATE.value, Operation.UPDATE.value})


def evaluate(op: AdmissionOperation, policy: PolicyConfig) -> Verdict:
    """
    Decide whether `op` may proceed.

    Pure function of its inputs: no I/O, no shared mutable state. Raises EvalError for
    operations that cannot be evaluated (unsupported kind, undecodable object).
    """
    if policy.is_exempt(op.username):
        logger.debug("uid=%s: user %s is exempt from the protected-label policy", op.uid, op.username)
        return Verdict.allow()

    if op.operation not in _EVALUATED_OPERATIONS:
        raise EvalError(f"unsupported operation kind: {op.operation or '<empty>'}, expected CREATE or UPDATE")

    try:
        meta = extract_labels(op.raw_object)
    except DecodeError as e:
        raise EvalError(str(e)) from e

    logger.debug("uid=%s: object label keys=%s", op.uid, labels_summary(meta.labels))

    if policy.protects(meta.labels):
        return Verdict.deny(f"label {policy.protected_label} is protected")
    return Verdict.allow()
