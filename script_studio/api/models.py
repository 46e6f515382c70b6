"""Gemini generateContent request/response dataclasses.

WHY: The REST API returns nested JSON (candidates -> content -> parts).
Typed dataclasses keep the parsing in one place and make the one field
callers care about, the generated text, explicit.

HOW: Each dataclass maps to a Gemini JSON object. from_dict() factories
parse raw response dicts; GenerationOptions.to_generation_config() builds
the camelCase generationConfig block for requests.

RULES:
- Only the first candidate is used (candidateCount is never raised)
- Text is the concatenation of the candidate's text parts, in order
- A response blocked by safety filters has no candidates; its
  promptFeedback.blockReason is kept for error messages
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class GenerationOptions:
    """Per-call generation settings.

    RULES:
    - None fields are omitted from the request (API defaults apply)
    - response_schema implies response_mime_type "application/json"
    """

    temperature: float | None = None
    top_p: float | None = None
    response_mime_type: str | None = None
    response_schema: dict | None = None

    def to_generation_config(self) -> dict:
        config: dict[str, Any] = {}
        if self.temperature is not None:
            config["temperature"] = self.temperature
        if self.top_p is not None:
            config["topP"] = self.top_p
        if self.response_schema is not None:
            config["responseMimeType"] = "application/json"
            config["responseJsonSchema"] = self.response_schema
        elif self.response_mime_type is not None:
            config["responseMimeType"] = self.response_mime_type
        return config


@dataclass
class Candidate:
    """One generated candidate from a generateContent response."""

    text: str
    finish_reason: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> Candidate:
        content = data.get("content") or {}
        parts = content.get("parts") or []
        text = "".join(
            p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)
        )
        return cls(text=text, finish_reason=data.get("finishReason"))


@dataclass
class GenerateContentResponse:
    """Parsed response of POST models/{model}:generateContent."""

    candidates: list[Candidate] = field(default_factory=list)
    block_reason: str | None = None
    model_version: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> GenerateContentResponse:
        feedback = data.get("promptFeedback") or {}
        return cls(
            candidates=[Candidate.from_dict(c) for c in data.get("candidates") or []],
            block_reason=feedback.get("blockReason"),
            model_version=data.get("modelVersion"),
        )

    @property
    def text(self) -> str:
        """Text of the first candidate, or "" when there is none."""
        if not self.candidates:
            return ""
        return self.candidates[0].text
