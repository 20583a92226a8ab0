"""Error classifier - maps heterogeneous backend failures onto one taxonomy"""

import json
from typing import Any, Optional, Union

from teller_client.domain.models import ClassifiedError, ErrorKind

RawBody = Union[str, bytes, None]

INSUFFICIENT_FUNDS_MARKERS = ("insufficient", "not enough funds", "not enough balance")
MESSAGE_KEYS = ("message", "error", "detail", "msg")
MAX_DIAGNOSTIC_LENGTH = 500


def parse_body(raw_body: RawBody) -> Optional[Any]:
    """Decode a JSON body, returning None when it is empty or not JSON"""
    if raw_body is None:
        return None
    if isinstance(raw_body, bytes):
        raw_body = raw_body.decode("utf-8", errors="replace")
    if not raw_body.strip():
        return None
    try:
        return json.loads(raw_body)
    except ValueError:
        return None


def extract_message(body: Any) -> Optional[str]:
    """
    Find a human-readable message in a backend body.

    Handles `{message}`, `{error: "..."}`, `{error: {message}}`, `{detail}` and
    the same shapes nested under `data`.
    """
    if isinstance(body, str):
        return body.strip() or None
    if not isinstance(body, dict):
        return None
    for key in MESSAGE_KEYS:
        value = body.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
        if isinstance(value, dict):
            nested = extract_message(value)
            if nested:
                return nested
    if isinstance(body.get("data"), dict):
        return extract_message(body["data"])
    return None


def _is_insufficient_funds(body: Any) -> bool:
    if not isinstance(body, dict):
        return False
    candidates = []
    for key in MESSAGE_KEYS + ("code", "errorCode", "reason"):
        value = body.get(key)
        if isinstance(value, str):
            candidates.append(value)
        elif isinstance(value, dict) and _is_insufficient_funds(value):
            return True
    if isinstance(body.get("data"), dict) and _is_insufficient_funds(body["data"]):
        return True
    text = " ".join(candidates).lower().replace("_", " ")
    return any(marker in text for marker in INSUFFICIENT_FUNDS_MARKERS)


def _diagnostic(raw_body: RawBody) -> str:
    if raw_body is None:
        return ""
    if isinstance(raw_body, bytes):
        raw_body = raw_body.decode("utf-8", errors="replace")
    return raw_body.strip()[:MAX_DIAGNOSTIC_LENGTH]


def classify(http_status: Optional[int], raw_body: RawBody = None) -> ClassifiedError:
    """
    Classify a failed backend call.

    Rules are applied in priority order:
    1. No response at all -> Network
    2. HTTP 401/403 -> AuthExpired, whatever the body says
    3. JSON body carrying an insufficient-funds indicator -> InsufficientFunds
    4. Other 4xx -> Validation
    5. 5xx -> ServerRejected
    6. Anything else -> Unknown, keeping the raw body for diagnostics
    """
    if http_status is None:
        detail = _diagnostic(raw_body)
        message = f"Network error: {detail}" if detail else "Network error: backend unreachable"
        return ClassifiedError(kind=ErrorKind.NETWORK, message=message)

    body = parse_body(raw_body)
    message = extract_message(body)

    if http_status in (401, 403):
        return ClassifiedError(
            kind=ErrorKind.AUTH_EXPIRED,
            message=message or "Session expired. Please log in again.",
            http_status=http_status,
        )

    if _is_insufficient_funds(body):
        return ClassifiedError(
            kind=ErrorKind.INSUFFICIENT_FUNDS,
            message=message or "Insufficient funds",
            http_status=http_status,
        )

    if 400 <= http_status < 500:
        return ClassifiedError(
            kind=ErrorKind.VALIDATION,
            message=message or f"Request rejected (HTTP {http_status})",
            http_status=http_status,
        )

    if 500 <= http_status < 600:
        return ClassifiedError(
            kind=ErrorKind.SERVER_REJECTED,
            message=message or f"Banking service error (HTTP {http_status})",
            http_status=http_status,
        )

    return ClassifiedError(
        kind=ErrorKind.UNKNOWN,
        message=message or _diagnostic(raw_body) or f"Unexpected response (HTTP {http_status})",
        http_status=http_status,
    )
