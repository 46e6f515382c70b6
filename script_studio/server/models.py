"""Pydantic request/response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization, and automatic OpenAPI documentation. Pydantic
models enforce field types at runtime and generate the JSON Schema shown
in the /docs UI.

HOW: Each endpoint has its own request model; responses for generated
content reuse the camelCase dicts from core.ir to_dict(), so the HTTP
API, the session file, and the exports all show the same shapes.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Enum values match internal constants exactly (formatter keys)
- Optional script fields fall back to the saved session's current script
- Timing fields are validated by timed_captions, not here, so invalid
  values surface as InvalidConfiguration (HTTP 422) with its message
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class OutputFormat(str, Enum):
    """Export format identifiers (keys of script_studio.formatters.FORMATTERS)."""

    srt_captions = "srt_captions"
    plain_text = "plain_text"
    image_prompts = "image_prompts"


class ScriptStyle(str, Enum):
    """Which script writer to use."""

    standard = "standard"
    yadam = "yadam"


class ScriptKind(str, Enum):
    """Which session slot a manually supplied script goes into."""

    original = "original"
    generated = "generated"


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class ScriptInput(BaseModel):
    """Body for endpoints that work on one script."""

    script: Optional[str] = Field(
        default=None,
        description="Script text. Defaults to the session's current script.",
    )


class TopicsRequest(BaseModel):
    script: Optional[str] = Field(
        default=None,
        description="Script or idea to base topics on. Also saved as the session's original script.",
    )


class ScriptRequest(BaseModel):
    topic: Optional[str] = Field(
        default=None,
        description="Topic to write about. Defaults to the session's selected topic.",
    )
    original: Optional[str] = Field(
        default=None,
        description="Reference script. Defaults to the session's original script.",
    )
    style: ScriptStyle = Field(
        default=ScriptStyle.standard,
        description="'standard' (opening/body/closing) or 'yadam' (Joseon folk tale).",
    )


class SessionScriptUpdate(BaseModel):
    script: str = Field(description="Script text to store.")
    topic: Optional[str] = Field(default=None, description="Topic the script belongs to.")
    kind: ScriptKind = Field(
        default=ScriptKind.generated,
        description="'original' replaces the input script; 'generated' records an edited version.",
    )


class ThumbnailRequest(ScriptInput):
    title: Optional[str] = Field(
        default=None,
        description="Video title. Defaults to the session's title.",
    )


class ChannelPlanRequest(ScriptInput):
    topic: Optional[str] = Field(
        default=None,
        description="Channel topic. Defaults to the session's selected topic.",
    )


class RefinementRequest(ScriptInput):
    target_score: float = Field(
        default=8.0,
        ge=0.0,
        le=10.0,
        description="Stop once the hooking score reaches this value (0-10).",
    )
    max_attempts: int = Field(
        default=5,
        ge=1,
        le=10,
        description="Maximum number of analysis rounds.",
    )


class CaptionRequest(BaseModel):
    text: Optional[str] = Field(
        default=None,
        description="Narration text. Defaults to the session's current script.",
    )
    chars_per_second: Optional[float] = Field(default=None, description="Reading speed. Default 5.0.")
    min_duration: Optional[float] = Field(default=None, description="Shortest cue in seconds. Default 2.0.")
    max_duration: Optional[float] = Field(default=None, description="Longest cue in seconds. Default 8.0.")
    gap: Optional[float] = Field(default=None, description="Silence between cues in seconds. Default 0.3.")
    long_sentence_chars: Optional[int] = Field(
        default=None,
        description="Sentences longer than this are split at commas. Default 100.",
    )


class CaptionDownloadRequest(CaptionRequest):
    filename: str = Field(
        default="subtitle.srt",
        description="Download filename; '.srt' is appended when missing.",
    )


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class TopicsResponse(BaseModel):
    topics: List[str] = Field(description="Up to three suggested topics.")


class ScriptResponse(BaseModel):
    topic: str = Field(description="Topic the script was written for.")
    style: ScriptStyle = Field(description="Writer used.")
    script: str = Field(description="Generated script text.")


class TitleResponse(BaseModel):
    title: str = Field(description="Generated video title.")


class RefinementJobResponse(BaseModel):
    """Refinement job status.

    RULES:
    - progress holds the latest {"attempt", "hookingScore"} report
    - result is only present when status is 'completed'
    - error is only present when status is 'failed'
    """

    id: str = Field(description="Unique job identifier.")
    status: str = Field(description="pending, running, completed, or failed.")
    created_at: float = Field(description="Job creation timestamp (Unix epoch seconds).")
    config: Dict[str, Any] = Field(description="Target score and attempt limit.")
    progress: Optional[Dict[str, Any]] = Field(default=None, description="Latest progress report.")
    result: Optional[Dict[str, Any]] = Field(
        default=None,
        description="script, analysis, attempts, reachedTarget, and scoreHistory.",
    )
    error: Optional[str] = Field(default=None, description="Error message when failed.")


class CaptionEntryModel(BaseModel):
    index: int = Field(description="1-based cue number.")
    start: float = Field(description="Start time in seconds.")
    end: float = Field(description="End time in seconds.")
    text: str = Field(description="Cue text.")


class CaptionResponse(BaseModel):
    entries: List[CaptionEntryModel] = Field(description="Timed cues in order.")
    srt: str = Field(description="The same cues serialized as SubRip text.")


class FormatInfo(BaseModel):
    key: OutputFormat = Field(description="Identifier for GET /exports/{key}.")
    name: str = Field(description="Human-readable format name.")


class ErrorResponse(BaseModel):
    """Consistent error response body."""

    detail: str = Field(description="Human-readable error message.")


class HealthResponse(BaseModel):
    status: str = Field(description="Service health status.")
    version: str = Field(description="Application version string.")
