"""Dataclasses for generated content.

WHY: Gemini answers with loosely shaped JSON, and the session, the HTTP
API, and the formatters all need the same structures. A single set of
typed records (parsed once, right after the API call) keeps camelCase
wire keys out of the rest of the code.

HOW: Each dataclass has from_dict() for the model's JSON (camelCase keys,
as requested in the response schemas) and to_dict() for persistence. The
session file stores exactly what to_dict() returns, so the two stay
symmetric.

RULES:
- from_dict() tolerates missing optional keys and fills defaults
- to_dict() uses the same camelCase keys from_dict() reads
- Timestamps are epoch milliseconds (int), matching the old session file
- ids are uuid4 hex strings assigned locally, never by the model
"""

from __future__ import annotations

import time
import uuid
from dataclasses import asdict, dataclass, field
from typing import Any


def new_id() -> str:
    return uuid.uuid4().hex


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class GeneratedScript:
    """One generated version of a script, kept for side-by-side comparison."""

    topic: str
    script: str
    timestamp: int = field(default_factory=now_ms)

    @classmethod
    def from_dict(cls, data: dict) -> GeneratedScript:
        return cls(
            topic=data.get("topic", ""),
            script=data.get("script", ""),
            timestamp=int(data.get("timestamp") or 0),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ScriptHistoryItem:
    """A script the user generated or edited, used as style reference later."""

    topic: str
    script: str
    id: str = field(default_factory=new_id)
    created_at: int = field(default_factory=now_ms)
    is_edited: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> ScriptHistoryItem:
        return cls(
            id=data.get("id") or new_id(),
            topic=data.get("topic", ""),
            script=data.get("script", ""),
            created_at=int(data.get("createdAt") or 0),
            is_edited=bool(data.get("isEdited", False)),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "topic": self.topic,
            "script": self.script,
            "createdAt": self.created_at,
            "isEdited": self.is_edited,
        }


@dataclass
class LogicalFlaw:
    original: str
    issue: str
    suggestion: str

    @classmethod
    def from_dict(cls, data: dict) -> LogicalFlaw:
        return cls(
            original=data.get("original", ""),
            issue=data.get("issue", ""),
            suggestion=data.get("suggestion", ""),
        )


@dataclass
class BoringPart:
    original: str
    reason: str

    @classmethod
    def from_dict(cls, data: dict) -> BoringPart:
        return cls(original=data.get("original", ""), reason=data.get("reason", ""))


@dataclass
class ScriptAnalysis:
    """A producer-style critique of a script.

    RULES:
    - hooking_score is on a 0-10 scale (how well the first 30 s hook)
    - action_plan is the single most urgent fix
    """

    hooking_score: float
    hooking_comment: str
    logical_flaws: list[LogicalFlaw] = field(default_factory=list)
    boring_parts: list[BoringPart] = field(default_factory=list)
    overall_comment: str = ""
    action_plan: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> ScriptAnalysis:
        return cls(
            hooking_score=float(data.get("hookingScore") or 0.0),
            hooking_comment=data.get("hookingComment", ""),
            logical_flaws=[LogicalFlaw.from_dict(f) for f in data.get("logicalFlaws") or []],
            boring_parts=[BoringPart.from_dict(b) for b in data.get("boringParts") or []],
            overall_comment=data.get("overallComment", ""),
            action_plan=data.get("actionPlan", ""),
        )

    def to_dict(self) -> dict:
        return {
            "hookingScore": self.hooking_score,
            "hookingComment": self.hooking_comment,
            "logicalFlaws": [asdict(f) for f in self.logical_flaws],
            "boringParts": [asdict(b) for b in self.boring_parts],
            "overallComment": self.overall_comment,
            "actionPlan": self.action_plan,
        }


@dataclass
class ShortsScript:
    """A sub-60-second vertical-video script derived from a long script."""

    title: str
    script: str
    duration: float
    reference: str = ""
    id: str = field(default_factory=new_id)
    created_at: int = field(default_factory=now_ms)

    @classmethod
    def from_dict(cls, data: dict) -> ShortsScript:
        return cls(
            id=data.get("id") or new_id(),
            title=data.get("title", ""),
            script=data.get("script", ""),
            duration=float(data.get("duration") or 0.0),
            reference=data.get("reference") or "",
            created_at=int(data.get("createdAt") or now_ms()),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "script": self.script,
            "duration": self.duration,
            "reference": self.reference,
            "createdAt": self.created_at,
        }


@dataclass
class ImagePrompt:
    """An English image-generation prompt for one character or scene."""

    scene_number: int
    sentence: str
    image_prompt: str
    korean_description: str

    @classmethod
    def from_dict(cls, data: dict) -> ImagePrompt:
        return cls(
            scene_number=int(data.get("sceneNumber") or 0),
            sentence=data.get("sentence", ""),
            image_prompt=data.get("imagePrompt", ""),
            korean_description=data.get("koreanDescription", ""),
        )

    def to_dict(self) -> dict:
        return {
            "sceneNumber": self.scene_number,
            "sentence": self.sentence,
            "imagePrompt": self.image_prompt,
            "koreanDescription": self.korean_description,
        }


@dataclass
class Thumbnail:
    """One thumbnail concept with its image prompt and overlay text."""

    id: int
    concept: str
    prompt: str
    text_overlay: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> Thumbnail:
        return cls(
            id=int(data.get("id") or 0),
            concept=data.get("concept", ""),
            prompt=data.get("prompt", ""),
            text_overlay=data.get("textOverlay"),
        )

    def to_dict(self) -> dict:
        out: dict[str, Any] = {"id": self.id, "concept": self.concept, "prompt": self.prompt}
        if self.text_overlay is not None:
            out["textOverlay"] = self.text_overlay
        return out


_PLAN_FIELDS = (
    ("topic", "topic"),
    ("target_audience", "targetAudience"),
    ("content_strategy", "contentStrategy"),
    ("competitive_advantage", "competitiveAdvantage"),
    ("trend_analysis", "trendAnalysis"),
    ("video_structure", "videoStructure"),
    ("monetization_plan", "monetizationPlan"),
    ("upload_schedule", "uploadSchedule"),
)


@dataclass
class ChannelPlan:
    """A YouTube channel plan built around one script and topic."""

    topic: str
    target_audience: str
    content_strategy: str
    competitive_advantage: str
    trend_analysis: str
    video_structure: str
    monetization_plan: str
    upload_schedule: str
    id: str = field(default_factory=new_id)
    created_at: int = field(default_factory=now_ms)

    @classmethod
    def from_dict(cls, data: dict) -> ChannelPlan:
        kwargs: dict[str, Any] = {attr: data.get(key, "") for attr, key in _PLAN_FIELDS}
        kwargs["id"] = data.get("id") or new_id()
        kwargs["created_at"] = int(data.get("createdAt") or now_ms())
        return cls(**kwargs)

    def to_dict(self) -> dict:
        out: dict[str, Any] = {key: getattr(self, attr) for attr, key in _PLAN_FIELDS}
        out["id"] = self.id
        out["createdAt"] = self.created_at
        return out
