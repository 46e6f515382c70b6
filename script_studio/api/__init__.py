"""Gemini API client package: async HTTP interface to the generative model.

WHY: All content generation goes through one external API. This package
keeps the HTTP details, error classification, and call pacing in one
place so the generation layer never touches httpx directly.

HOW: GeminiClient (client.py) wraps httpx.AsyncClient. errors.py maps
failures to typed exceptions. pacing.py spaces calls out and retries the
transient ones.

RULES:
- All HTTP calls go through GeminiClient (no direct httpx usage elsewhere)
- Authentication is via the x-goog-api-key header from config
"""

from script_studio.api.client import GeminiClient
from script_studio.api.errors import (
    GeminiAPIError,
    InvalidCredentialError,
    MalformedResponseError,
    QuotaExceededError,
)
from script_studio.api.pacing import CallPolicy, PacedCaller

__all__ = [
    "CallPolicy",
    "GeminiAPIError",
    "GeminiClient",
    "InvalidCredentialError",
    "MalformedResponseError",
    "PacedCaller",
    "QuotaExceededError",
]
