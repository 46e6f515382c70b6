"""Ordered multi-step generation tasks.

WHY: Producing a full "production package" (title, thumbnails, character
image prompts, subtitles) is several dependent calls in a fixed order. The
thumbnails need the title; the subtitles need nothing from the API at all.
Declaring the steps as data makes the order visible and lets the CLI and
server report progress the same way.

HOW: A PipelineStep is a name plus a coroutine function taking the shared
context dict. run_pipeline() awaits each step in order and stores its
result in the context under the step name, so later steps can read it.

RULES:
- Steps run strictly in order; the first failure stops the run
- A failing step raises PipelineError(step_name) chained to the cause
- Steps do not sleep; spacing between API calls is the PacedCaller's job
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from script_studio.core.generator import ScriptGenerator
from timed_captions import generate_timed_captions

logger = logging.getLogger(__name__)

StatusFn = Callable[[str], None]


@dataclass(frozen=True)
class PipelineStep:
    name: str
    run: Callable[[dict[str, Any]], Awaitable[Any]]
    label: str = ""


class PipelineError(Exception):
    """Raised when a pipeline step fails. step_name says which."""

    def __init__(self, step_name: str, message: str) -> None:
        self.step_name = step_name
        super().__init__(message)


async def run_pipeline(
    steps: list[PipelineStep],
    context: dict[str, Any],
    on_status: StatusFn | None = None,
) -> dict[str, Any]:
    """Run steps in order, storing each result in context[step.name].

    Returns:
        The same context dict, now holding every step's result.

    Raises:
        PipelineError: The first step that raised.
    """
    for i, step in enumerate(steps, 1):
        if on_status is not None:
            on_status(f"[{i}/{len(steps)}] {step.label or step.name}")
        try:
            context[step.name] = await step.run(context)
        except Exception as exc:
            logger.error("Pipeline step '%s' failed: %s", step.name, exc)
            raise PipelineError(step.name, f"step '{step.name}' failed: {exc}") from exc
    return context


def production_package_steps(generator: ScriptGenerator) -> list[PipelineStep]:
    """Title -> thumbnails -> image prompts -> SRT captions.

    The context must hold "script"; the captions step works offline.
    """

    async def title(ctx: dict[str, Any]) -> str:
        return await generator.generate_title(ctx["script"])

    async def thumbnails(ctx: dict[str, Any]) -> list:
        return await generator.generate_thumbnails(ctx["script"], ctx["title"])

    async def image_prompts(ctx: dict[str, Any]) -> list:
        return await generator.generate_image_prompts(ctx["script"])

    async def captions(ctx: dict[str, Any]) -> str:
        return generate_timed_captions(ctx["script"])

    return [
        PipelineStep("title", title, "제목 생성"),
        PipelineStep("thumbnails", thumbnails, "썸네일 생성"),
        PipelineStep("image_prompts", image_prompts, "이미지 프롬프트 생성"),
        PipelineStep("captions", captions, "자막 생성"),
    ]
