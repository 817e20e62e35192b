"""Classification of upstream and local failures into a small, stable taxonomy.

Upstream services report failures in vendor-specific shapes: a bare HTTP
status, a nested ``{"detail": {"status": ..., "message": ...}}`` object, a
flat ``errorType``/``error`` field, or plain text. :func:`classify_error`
reduces any of these to exactly one :class:`ClassifiedError` whose
user-facing message and recommended HTTP status are fixed per kind, so the
surface shown to users stays stable whatever the vendor returns.

Rules are evaluated in the order of :data:`CLASSIFICATION_RULES` and the first
match wins. Quota comes before authentication because some vendors send
401-adjacent bodies that also mention exhausted tokens or credits.
"""

import json
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from narration_gateway.core.exceptions import (
    ConfigurationError,
    InvalidRequestError,
    UpstreamError,
)


class ErrorKind(str, Enum):
    """Normalized failure categories."""

    QUOTA = "quota"
    AUTH = "auth"
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    NETWORK = "network"


USER_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.QUOTA: "Quota exceeded: this request requires more tokens than your remaining credits.",
    ErrorKind.AUTH: "Authentication failed: please check your API key or quota.",
    ErrorKind.VALIDATION: "Invalid request: required input is missing.",
    ErrorKind.CONFIGURATION: "Server configuration error: the upstream API key is not configured.",
    ErrorKind.NETWORK: "Generation failed. Please try again later.",
}

RECOMMENDED_STATUS: dict[ErrorKind, int] = {
    ErrorKind.QUOTA: 429,
    ErrorKind.AUTH: 401,
    ErrorKind.VALIDATION: 400,
    ErrorKind.CONFIGURATION: 500,
    ErrorKind.NETWORK: 500,
}


@dataclass(frozen=True)
class ClassifiedError:
    """User-safe representation of a failure.

    ``raw_detail`` holds the vendor text for diagnostic logs and must never be
    shown to an end user.
    """

    kind: ErrorKind
    user_message: str
    recommended_status: int
    raw_detail: str = ""

    @classmethod
    def of(cls, kind: ErrorKind, raw_detail: str = "") -> "ClassifiedError":
        return cls(
            kind=kind,
            user_message=USER_MESSAGES[kind],
            recommended_status=RECOMMENDED_STATUS[kind],
            raw_detail=raw_detail,
        )


@dataclass(frozen=True)
class ClassificationRule:
    """Matches on an exact status code or a lower-case substring of the body."""

    kind: ErrorKind
    statuses: frozenset[int]
    keywords: tuple[str, ...]

    def matches(self, status_code: int | None, text: str) -> bool:
        if status_code is not None and status_code in self.statuses:
            return True
        return any(keyword in text for keyword in self.keywords)


# Order is significant: first match wins.
CLASSIFICATION_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule(
        kind=ErrorKind.QUOTA,
        statuses=frozenset({429}),
        keywords=("quota_exceeded", "quota", "credit", "token"),
    ),
    ClassificationRule(
        kind=ErrorKind.AUTH,
        statuses=frozenset({401}),
        keywords=("401", "authentication", "unauthorized"),
    ),
)


def _coerce_status(status_code: Any) -> int | None:
    # bool is an int subclass; True is not HTTP 1.
    if isinstance(status_code, bool):
        return None
    if isinstance(status_code, int):
        return status_code
    if isinstance(status_code, str) and status_code.strip().isdigit():
        return int(status_code.strip())
    return None


def serialize_body(body: Any) -> str:
    """Render an arbitrary body as text. Never raises."""
    if body is None:
        return ""
    if isinstance(body, (bytes, bytearray)):
        return bytes(body).decode("utf-8", errors="replace")
    if isinstance(body, str):
        return body
    # default=str and str() both run foreign __str__ code, which may raise anything.
    try:
        return json.dumps(body, default=str)
    except Exception:  # noqa: BLE001
        pass
    try:
        return str(body)
    except Exception:  # noqa: BLE001
        return ""


def _non_empty_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def extract_vendor_message(body: Any) -> str:
    """Pick the most specific vendor message out of a failure body.

    Looks at ``detail.message``, ``detail.status``, ``detail`` as text,
    ``error.message``, ``error`` as text, ``message`` and ``details`` in that
    order, and falls back to the serialized body.
    """
    if isinstance(body, dict):
        detail = body.get("detail")
        if isinstance(detail, dict):
            found = _non_empty_str(detail.get("message")) or _non_empty_str(detail.get("status"))
            if found:
                return found
        elif _non_empty_str(detail):
            return detail

        error = body.get("error")
        if isinstance(error, dict):
            found = _non_empty_str(error.get("message"))
            if found:
                return found
        elif _non_empty_str(error):
            return error

        for key in ("message", "details"):
            found = _non_empty_str(body.get(key))
            if found:
                return found

    return serialize_body(body)


def classify_error(status_code: Any = None, body: Any = None) -> ClassifiedError:
    """Classify an upstream failure.

    Args:
        status_code: Upstream HTTP status, or None when no response arrived.
        body: Parsed JSON, raw text/bytes, or None. Any shape is accepted.

    Returns:
        Exactly one ClassifiedError. Unmatched input is ``ErrorKind.NETWORK``.
    """
    status = _coerce_status(status_code)
    text = serialize_body(body).lower()
    raw_detail = extract_vendor_message(body)

    for rule in CLASSIFICATION_RULES:
        if rule.matches(status, text):
            return ClassifiedError.of(rule.kind, raw_detail)

    return ClassifiedError.of(ErrorKind.NETWORK, raw_detail)


def validation_error(detail: str = "") -> ClassifiedError:
    """Caller-side failure: required input missing, raised before any network call."""
    return ClassifiedError.of(ErrorKind.VALIDATION, detail)


def configuration_error(detail: str = "") -> ClassifiedError:
    """Caller-side failure: required upstream credential absent."""
    return ClassifiedError.of(ErrorKind.CONFIGURATION, detail)


def relayed_kind(body: Any) -> ErrorKind | None:
    """Kind already assigned by a narration proxy (an ``errorType`` field), if any.

    A proxy reply has been classified once; its fixed user message must not
    be matched against the keyword rules a second time.
    """
    if not isinstance(body, dict):
        return None
    try:
        return ErrorKind(body.get("errorType"))
    except (TypeError, ValueError):
        return None


def classify_exception(exc: BaseException) -> ClassifiedError:
    """Map a raised exception into the taxonomy."""
    if isinstance(exc, InvalidRequestError):
        return validation_error(exc.message)
    if isinstance(exc, ConfigurationError):
        return configuration_error(exc.message)
    if isinstance(exc, UpstreamError):
        relayed = relayed_kind(exc.body)
        if relayed is not None:
            return ClassifiedError.of(relayed, extract_vendor_message(exc.body) or exc.message)
        classified = classify_error(exc.status_code, exc.body)
        if not classified.raw_detail:
            classified = replace(classified, raw_detail=exc.message)
        return classified
    return ClassifiedError.of(ErrorKind.NETWORK, f"{type(exc).__name__}: {exc}")
