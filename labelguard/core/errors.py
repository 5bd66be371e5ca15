from __future__ import annotations

from pydantic import ValidationError


class AdmissionError(Exception):
    """Base exception for per-request admission failures."""


class TransportError(AdmissionError):
    """Request could not be accepted by the transport (content type, unreadable body)."""


class DecodeError(AdmissionError):
    """Review envelope or embedded object payload is not well-formed."""


class EvalError(AdmissionError):
    """Policy could not be evaluated for the operation."""


def describe_validation_error(e: ValidationError) -> str:
    """First pydantic validation error as `loc: msg` (full dumps are too noisy for responses)."""
    errs = e.errors()
    if not errs:
        return str(e)
    first = errs[0]
    loc = ".".join(str(p) for p in first.get("loc", ()))
    msg = first.get("msg") or "invalid value"
    return f"{loc}: {msg}" if loc else msg
