"""Configuration constants, API defaults, and .env loading.

WHY: Model names, endpoints, pacing limits, and the session file location
change more often than the code around them. Keeping them as plain
module-level values in one place makes them easy to find and override.

HOW: python-dotenv loads the .env file on import. Every constant reads an
environment variable with a sensible default. load_api_key() provides a
clear error when no Gemini key is configured.

RULES:
- API key is loaded from .env (GEMINI_API_KEY, or GOOGLE_API_KEY as an
  alias), never hardcoded and never written to the session file
- GEMINI_MODEL drives all content generation; GEMINI_PLANNING_MODEL is
  only used for channel plans
- Pacing defaults replace the old fixed 3-second sleeps between calls
- All defaults can be overridden via environment variables
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (where the app is run from)
load_dotenv()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError("{} must be a number, got {!r}".format(name, raw))


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError("{} must be an integer, got {!r}".format(name, raw))


# ---------------------------------------------------------------------------
# Gemini API
# ---------------------------------------------------------------------------

GEMINI_BASE_URL = os.getenv(
    "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
)
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
GEMINI_PLANNING_MODEL = os.getenv("GEMINI_PLANNING_MODEL", "gemini-2.0-flash-exp")
GEMINI_TIMEOUT_S = _env_float("GEMINI_TIMEOUT_S", 120.0)

# ---------------------------------------------------------------------------
# Call pacing and retry
# ---------------------------------------------------------------------------

MIN_CALL_INTERVAL_S = _env_float("MIN_CALL_INTERVAL_S", 3.0)
MAX_CALL_ATTEMPTS = _env_int("MAX_CALL_ATTEMPTS", 4)
BACKOFF_INITIAL_S = _env_float("BACKOFF_INITIAL_S", 2.0)
BACKOFF_FACTOR = _env_float("BACKOFF_FACTOR", 2.0)
BACKOFF_MAX_S = _env_float("BACKOFF_MAX_S", 30.0)

# ---------------------------------------------------------------------------
# Script refinement
# ---------------------------------------------------------------------------

REFINE_TARGET_SCORE = _env_float("REFINE_TARGET_SCORE", 8.0)
REFINE_MAX_ATTEMPTS = _env_int("REFINE_MAX_ATTEMPTS", 5)

# ---------------------------------------------------------------------------
# Session persistence
# ---------------------------------------------------------------------------

SESSION_PATH = Path(os.getenv("SESSION_PATH", "~/.script_studio/session.json")).expanduser()
SESSION_KEY = os.getenv("SESSION_KEY", "mvp_script_session")


def load_api_key() -> str:
    """Load the Gemini API key from the environment.

    WHY: Every generation call needs the key. Loading it from the
    environment (via .env) keeps it out of source code and out of the
    persisted session.

    HOW: Reads GEMINI_API_KEY, falling back to GOOGLE_API_KEY.

    RULES:
    - Raises ValueError if neither variable is set or both are empty
    - Never returns a default/placeholder value
    """
    key = (os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or "").strip()
    if not key:
        raise ValueError(
            "Gemini API key not configured. "
            "Add GEMINI_API_KEY to the .env file in the app folder."
        )
    return key
