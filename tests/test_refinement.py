"""Tests for the analyze-improve refinement loop."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from conftest import make_analysis
from script_studio.core.refinement import RefinementError, refine_script


def _improve_appending(suffix: str = "+") -> AsyncMock:
    return AsyncMock(side_effect=lambda script, analysis: script + suffix)


class TestRefineScript:
    def test_stops_immediately_when_target_met(self):
        analyze = AsyncMock(return_value=make_analysis(9.0))
        improve = _improve_appending()
        result = asyncio.run(refine_script("대본", analyze, improve, target_score=8.0))
        assert result.reached_target
        assert result.attempts == 1
        assert result.script == "대본"
        improve.assert_not_awaited()

    def test_improves_until_target(self):
        analyze = AsyncMock(side_effect=[make_analysis(5.0), make_analysis(7.0), make_analysis(8.0)])
        improve = _improve_appending()
        result = asyncio.run(refine_script("대본", analyze, improve, target_score=8.0, max_attempts=5))
        assert result.reached_target
        assert result.attempts == 3
        assert result.script == "대본++"
        assert [a.hooking_score for _, a in result.history] == [5.0, 7.0, 8.0]
        assert improve.await_count == 2

    def test_stops_at_max_attempts(self):
        analyze = AsyncMock(return_value=make_analysis(4.0))
        improve = _improve_appending()
        result = asyncio.run(refine_script("대본", analyze, improve, target_score=8.0, max_attempts=3))
        assert not result.reached_target
        assert result.attempts == 3
        assert improve.await_count == 2
        assert result.analysis.hooking_score == 4.0

    def test_history_pairs_script_with_its_analysis(self):
        analyze = AsyncMock(side_effect=[make_analysis(5.0), make_analysis(9.0)])
        result = asyncio.run(refine_script("v1", analyze, _improve_appending("-v2")))
        assert [s for s, _ in result.history] == ["v1", "v1-v2"]

    def test_progress_callback_per_attempt(self):
        analyze = AsyncMock(side_effect=[make_analysis(5.0), make_analysis(9.0)])
        seen = []
        asyncio.run(
            refine_script(
                "대본", analyze, _improve_appending(),
                on_progress=lambda attempt, analysis: seen.append((attempt, analysis.hooking_score)),
            )
        )
        assert seen == [(1, 5.0), (2, 9.0)]

    def test_analysis_failure_wrapped(self):
        cause = RuntimeError("quota")
        analyze = AsyncMock(side_effect=[make_analysis(5.0), cause])
        with pytest.raises(RefinementError) as exc_info:
            asyncio.run(refine_script("대본", analyze, _improve_appending()))
        assert exc_info.value.attempt == 2
        assert len(exc_info.value.history) == 1
        assert exc_info.value.__cause__ is cause

    def test_improve_failure_wrapped(self):
        analyze = AsyncMock(return_value=make_analysis(5.0))
        improve = AsyncMock(side_effect=ValueError("too short"))
        with pytest.raises(RefinementError, match="improvement failed on attempt 1"):
            asyncio.run(refine_script("대본", analyze, improve))

    def test_empty_script_rejected(self):
        with pytest.raises(ValueError):
            asyncio.run(refine_script("  ", AsyncMock(), AsyncMock()))

    def test_zero_attempts_rejected(self):
        with pytest.raises(ValueError):
            asyncio.run(refine_script("대본", AsyncMock(), AsyncMock(), max_attempts=0))
