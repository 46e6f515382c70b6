"""Generation services: one method per content feature.

WHY: The UI and CLI both need "suggest topics", "write a script",
"analyze it", and so on. Each of these is the same three steps: build a
prompt, call Gemini (text or schema-shaped JSON), turn the answer into a
typed record. ScriptGenerator holds those steps so the surfaces stay thin.

HOW: ScriptGenerator wraps a GeminiClient and a PacedCaller. Every call
goes through _text() or _json(), which route through the caller for
spacing/retries and convert any API or transport failure into
GenerationError with a user-facing Korean message. Parsing into core.ir
records happens here.

RULES:
- Every public method is async and performs exactly one API call
- Failures are logged with logger.exception and re-raised as
  GenerationError chained to the original (see .cause for its type)
- Empty input scripts/topics raise ValueError before any API call
- List results are capped (3 topics, 3 thumbnails) like the old UI
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from script_studio.api.client import GeminiClient
from script_studio.api.errors import GeminiAPIError
from script_studio.api.pacing import CallPolicy, PacedCaller
from script_studio.config import GEMINI_PLANNING_MODEL
from script_studio.core import prompts, schemas
from script_studio.core.ir import (
    ChannelPlan,
    ImagePrompt,
    ScriptAnalysis,
    ShortsScript,
    Thumbnail,
)

logger = logging.getLogger(__name__)

MAX_TOPICS = 3
MAX_THUMBNAILS = 3
MIN_IMPROVED_SCRIPT_CHARS = 3000

DEFAULT_SCRIPT_FALLBACK = "대본을 생성하지 못했습니다."
DEFAULT_YADAM_FALLBACK = "야담 대본을 생성하지 못했습니다."
DEFAULT_TITLE = "조선시대 야담"
DEFAULT_SHORTS_REFERENCE = "조선야담"


class GenerationError(Exception):
    """Raised when a generation feature fails.

    WHY: Surfaces need one exception type to show a friendly message,
    while still being able to react to the underlying cause (a quota
    error deserves "try again later", a bad key deserves "check settings").

    RULES:
    - operation: short feature key, e.g. "topics", "analysis"
    - user_message: Korean message safe to show in the UI
    - cause: the original exception (also chained via __cause__)
    """

    def __init__(self, operation: str, user_message: str, cause: BaseException | None = None) -> None:
        self.operation = operation
        self.user_message = user_message
        self.cause = cause
        super().__init__(user_message)


class ScriptGenerator:
    """Feature-level facade over the Gemini client.

    Args:
        client: An entered GeminiClient.
        caller: Shared PacedCaller; defaults to one built from config.
        planning_model: Model used for channel plans.
    """

    def __init__(
        self,
        client: GeminiClient,
        caller: PacedCaller | None = None,
        planning_model: str | None = None,
    ) -> None:
        self.client = client
        self.caller = caller or PacedCaller(CallPolicy.from_env())
        self.planning_model = planning_model or GEMINI_PLANNING_MODEL

    # ------------------------------------------------------------------
    # Call helpers
    # ------------------------------------------------------------------

    async def _text(self, operation: str, message: str, prompt: str, **kwargs: Any) -> str:
        try:
            return await self.caller.call(self.client.generate_text, prompt, **kwargs)
        except (GeminiAPIError, httpx.TransportError) as exc:
            logger.exception("Gemini %s error", operation)
            raise GenerationError(operation, message, exc) from exc

    async def _json(
        self, operation: str, message: str, prompt: str, schema: dict, **kwargs: Any
    ) -> Any:
        try:
            return await self.caller.call(self.client.generate_json, prompt, schema, **kwargs)
        except (GeminiAPIError, httpx.TransportError) as exc:
            logger.exception("Gemini %s error", operation)
            raise GenerationError(operation, message, exc) from exc

    # ------------------------------------------------------------------
    # Features
    # ------------------------------------------------------------------

    async def suggest_topics(self, script: str) -> list[str]:
        """Suggest up to three follow-up video topics for a script or idea."""
        if not script.strip():
            raise ValueError("대본이나 아이디어를 먼저 입력해주세요.")
        topics = await self._json(
            "topics",
            "주제 추천 중 오류가 발생했습니다.",
            prompts.topics_prompt(script),
            schemas.TOPICS_SCHEMA,
            system_instruction=prompts.TOPIC_SYSTEM_INSTRUCTION,
        )
        return [t.strip() for t in topics if t.strip()][:MAX_TOPICS]

    async def generate_script(self, topic: str, original: str, history: str | None = None) -> str:
        """Write a standard opening/body/closing script for a topic."""
        if not topic.strip():
            raise ValueError("주제를 먼저 선택해주세요.")
        text = await self._text(
            "script",
            "대본 작성 중 오류가 발생했습니다.",
            prompts.standard_script_prompt(topic, original, history),
        )
        return text.strip() or DEFAULT_SCRIPT_FALLBACK

    async def generate_yadam_script(
        self, topic: str, original: str, history: str | None = None
    ) -> str:
        """Write a Joseon-era folk-tale (yadam) script for a topic."""
        if not topic.strip():
            raise ValueError("주제를 먼저 선택해주세요.")
        text = await self._text(
            "yadam",
            "야담 대본 작성 중 오류가 발생했습니다.",
            prompts.yadam_script_prompt(topic, original, history),
        )
        return text.strip() or DEFAULT_YADAM_FALLBACK

    async def analyze_script(self, script: str) -> ScriptAnalysis:
        """Critique a script as a channel producer would."""
        if not script.strip():
            raise ValueError("분석할 대본이 없습니다.")
        data = await self._json(
            "analysis",
            "대본 분석 중 오류가 발생했습니다.",
            prompts.analysis_prompt(script),
            schemas.ANALYSIS_SCHEMA,
        )
        return ScriptAnalysis.from_dict(data)

    async def generate_shorts_script(
        self, long_script: str, history: str | None = None
    ) -> ShortsScript:
        """Derive a sub-60-second shorts script from a long script."""
        data = await self._json(
            "shorts",
            "숏츠 대본 생성 중 오류가 발생했습니다.",
            prompts.shorts_prompt(long_script, history),
            schemas.SHORTS_SCHEMA,
        )
        shorts = ShortsScript.from_dict(data)
        if not shorts.reference:
            shorts.reference = DEFAULT_SHORTS_REFERENCE
        return shorts

    async def generate_image_prompts(self, script: str) -> list[ImagePrompt]:
        """Character image prompts (English) for the main cast of a script."""
        data = await self._json(
            "image_prompts",
            "등장인물 이미지 프롬프트 생성 중 오류가 발생했습니다.",
            prompts.image_prompts_prompt(script),
            schemas.IMAGE_PROMPTS_SCHEMA,
        )
        return [ImagePrompt.from_dict(item) for item in data]

    async def generate_title(self, script: str) -> str:
        """A click-worthy video title for a script."""
        text = await self._text(
            "title",
            "제목 생성 중 오류가 발생했습니다.",
            prompts.title_prompt(script),
        )
        return text.strip() or DEFAULT_TITLE

    async def generate_thumbnails(self, script: str, title: str) -> list[Thumbnail]:
        """Up to three thumbnail concepts for a script and its title."""
        data = await self._json(
            "thumbnails",
            "썸네일 생성 중 오류가 발생했습니다.",
            prompts.thumbnails_prompt(script, title),
            schemas.THUMBNAILS_SCHEMA,
        )
        return [Thumbnail.from_dict(item) for item in data[:MAX_THUMBNAILS]]

    async def improve_script(self, script: str, analysis: ScriptAnalysis) -> str:
        """Rewrite a script to address a producer analysis.

        Raises:
            GenerationError: On API failure, or when the rewrite comes back
                shorter than MIN_IMPROVED_SCRIPT_CHARS (a truncated answer).
        """
        text = await self._text(
            "improve",
            "대본 개선 중 오류가 발생했습니다.",
            prompts.improvement_prompt(script, analysis),
            temperature=0.8,
            top_p=0.95,
        )
        improved = text.strip()
        if len(improved) < MIN_IMPROVED_SCRIPT_CHARS:
            logger.error(
                "Improved script too short: %d chars (min %d)",
                len(improved), MIN_IMPROVED_SCRIPT_CHARS,
            )
            raise GenerationError("improve", "개선된 대본이 너무 짧습니다.")
        return improved

    async def generate_channel_plan(self, script: str, topic: str) -> ChannelPlan:
        """A channel plan built around a script and topic (planning model)."""
        data = await self._json(
            "channel_plan",
            "채널 기획서 생성 중 오류가 발생했습니다.",
            prompts.channel_plan_prompt(script, topic),
            schemas.CHANNEL_PLAN_SCHEMA,
            model=self.planning_model,
        )
        return ChannelPlan.from_dict(data)
