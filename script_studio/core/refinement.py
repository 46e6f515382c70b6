"""Analyze/improve loop that pushes a script toward a target hook score.

WHY: "Auto refine" used to be a UI handler that alternated analysis and
rewrite calls while popping confirmation dialogs between rounds. The loop
itself is simple and worth testing on its own, so it lives here as a pure
coroutine with the two API operations passed in.

HOW: Each attempt analyzes the current script. If the hooking score meets
the target the loop stops. Otherwise, unless attempts are used up, the
script is rewritten from that analysis and the next attempt begins.
Progress is reported through an optional callback instead of dialogs.

RULES:
- analyze is called once per attempt; improve at most max_attempts - 1 times
- The returned script is the one the final analysis describes
- A failure in analyze/improve is wrapped in RefinementError carrying the
  partial history, so callers can still show how far it got
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from script_studio.config import REFINE_MAX_ATTEMPTS, REFINE_TARGET_SCORE
from script_studio.core.ir import ScriptAnalysis

logger = logging.getLogger(__name__)

AnalyzeFn = Callable[[str], Awaitable[ScriptAnalysis]]
ImproveFn = Callable[[str, ScriptAnalysis], Awaitable[str]]
ProgressFn = Callable[[int, ScriptAnalysis], None]


@dataclass
class RefinementResult:
    """Outcome of refine_script().

    history holds one (script, analysis) pair per attempt, oldest first.
    """

    script: str
    analysis: ScriptAnalysis
    attempts: int
    reached_target: bool
    history: list[tuple[str, ScriptAnalysis]] = field(default_factory=list)


class RefinementError(Exception):
    """Raised when an analyze or improve step fails mid-loop."""

    def __init__(self, attempt: int, history: list[tuple[str, ScriptAnalysis]], message: str) -> None:
        self.attempt = attempt
        self.history = history
        super().__init__(message)


async def refine_script(
    script: str,
    analyze: AnalyzeFn,
    improve: ImproveFn,
    *,
    target_score: float = REFINE_TARGET_SCORE,
    max_attempts: int = REFINE_MAX_ATTEMPTS,
    on_progress: ProgressFn | None = None,
) -> RefinementResult:
    """Alternate analysis and rewrites until the hook score reaches target.

    Args:
        script: The starting script.
        analyze: Coroutine function returning a ScriptAnalysis for a script.
        improve: Coroutine function rewriting a script from its analysis.
        target_score: Stop as soon as hooking_score >= this.
        max_attempts: Upper bound on analysis rounds.
        on_progress: Called with (attempt, analysis) after each analysis.

    Raises:
        ValueError: Empty script or max_attempts < 1.
        RefinementError: analyze or improve raised.
    """
    if not script.strip():
        raise ValueError("script is empty")
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    current = script
    history: list[tuple[str, ScriptAnalysis]] = []
    attempt = 0

    while True:
        attempt += 1
        try:
            analysis = await analyze(current)
        except Exception as exc:
            raise RefinementError(attempt, history, f"analysis failed on attempt {attempt}: {exc}") from exc

        history.append((current, analysis))
        logger.info(
            "Refinement attempt %d/%d: hooking score %.1f (target %.1f)",
            attempt, max_attempts, analysis.hooking_score, target_score,
        )
        if on_progress is not None:
            on_progress(attempt, analysis)

        if analysis.hooking_score >= target_score:
            return RefinementResult(current, analysis, attempt, True, history)
        if attempt >= max_attempts:
            return RefinementResult(current, analysis, attempt, False, history)

        try:
            current = await improve(current, analysis)
        except Exception as exc:
            raise RefinementError(attempt, history, f"improvement failed on attempt {attempt}: {exc}") from exc
