"""Typed errors for the Gemini API client.

WHY: The old UI told "out of quota" apart from "bad key" by substring
matching error messages in every handler. Classifying once, at the HTTP
boundary, gives callers a type to catch and lets the pacing layer decide
what is worth retrying.

HOW: GeminiAPIError is the base. classify_error() maps a status code plus
response body to the most specific subclass. is_transient() is the single
retry predicate used by PacedCaller.

RULES:
- QuotaExceededError and 5xx errors are transient (retry with backoff)
- InvalidCredentialError is permanent (never retried)
- MalformedResponseError means the call succeeded but the payload is
  unusable; it is not retried either
- httpx transport errors (timeouts, connection resets) are transient
"""

from __future__ import annotations

import json
from typing import Any

import httpx

_QUOTA_MARKERS = ("resource_exhausted", "quota", "rate limit", "rate-limit", "too many requests")
_CREDENTIAL_MARKERS = ("api_key_invalid", "api key not valid", "api key expired", "permission_denied")


class GeminiAPIError(Exception):
    """Raised when the Gemini API returns an error response.

    RULES:
    - Always include status_code and message
    - message is the API's error.message field, or the raw body
    """

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"Gemini API error {status_code}: {message}")


class QuotaExceededError(GeminiAPIError):
    """Rate limit or quota exhaustion (HTTP 429 / RESOURCE_EXHAUSTED)."""


class InvalidCredentialError(GeminiAPIError):
    """The API key is missing, malformed, expired, or lacks permission."""


class MalformedResponseError(GeminiAPIError):
    """The response was not the text or JSON shape that was asked for."""

    def __init__(self, message: str, status_code: int = 200) -> None:
        super().__init__(status_code, message)


def _extract_message(body: str) -> tuple[str, str]:
    """Return (message, status) from a Google-style error body."""
    try:
        data: Any = json.loads(body)
    except (TypeError, ValueError):
        return body.strip(), ""
    if not isinstance(data, dict) or not isinstance(data.get("error"), dict):
        return body.strip(), ""
    err = data["error"]
    message = str(err.get("message") or body).strip()
    status = str(err.get("status") or "")
    reasons = [
        str(d.get("reason"))
        for d in err.get("details") or []
        if isinstance(d, dict) and d.get("reason")
    ]
    if reasons:
        status = " ".join([status] + reasons).strip()
    return message, status


def classify_error(status_code: int, body: str) -> GeminiAPIError:
    """Build the most specific GeminiAPIError for an error response.

    Args:
        status_code: HTTP status of the failed response.
        body: Raw response body text.

    Returns:
        An exception instance (not raised).
    """
    message, status = _extract_message(body)
    haystack = f"{message} {status}".lower()

    if status_code in (401, 403) or any(m in haystack for m in _CREDENTIAL_MARKERS):
        return InvalidCredentialError(status_code, message)
    if status_code == 429 or any(m in haystack for m in _QUOTA_MARKERS):
        return QuotaExceededError(status_code, message)
    return GeminiAPIError(status_code, message)


def is_transient(exc: BaseException) -> bool:
    """True if a retry after a pause has a reasonable chance of succeeding."""
    if isinstance(exc, (InvalidCredentialError, MalformedResponseError)):
        return False
    if isinstance(exc, QuotaExceededError):
        return True
    if isinstance(exc, GeminiAPIError):
        return exc.status_code >= 500
    return isinstance(exc, httpx.TransportError)
