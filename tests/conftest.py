"""Shared test fixtures for the script_studio and timed_captions suites.

WHY: Several modules need the same sample narration, the same canned
analyses, and a session store that never touches the real home directory.
Centralizing them keeps the tests short and consistent.

HOW: Plain constants for sample text; factory helpers for analyses and
Gemini response bodies; pytest fixtures for a temp SessionStore and a
PacedCaller that never sleeps.

RULES:
- No fixture performs network I/O
- Session files always live under tmp_path
- GEMINI_API_KEY is set to a dummy value for every test
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import pytest

from script_studio.api.pacing import CallPolicy, PacedCaller
from script_studio.core.ir import ScriptAnalysis
from script_studio.core.session import SessionStore

# ---------------------------------------------------------------------------
# Sample text
# ---------------------------------------------------------------------------

KOREAN_TWO_SENTENCES = "안녕하세요. 반갑습니다."

KOREAN_TWO_SENTENCES_SRT = (
    "1\n00:00:00,000 --> 00:00:02,000\n안녕하세요.\n"
    "\n"
    "2\n00:00:02,300 --> 00:00:04,300\n반갑습니다.\n"
)

# 60 + 2 + 60 + 1 = 123 chars, over the default 100-char threshold
LONG_TWO_CLAUSE_SENTENCE = "가" * 60 + ", " + "나" * 60 + "."

SAMPLE_SCRIPT = (
    "조선 숙종 때, 한양에 가난한 선비가 살았다. 그는 매일 밤 글을 읽었다! "
    "어느 날 낯선 노인이 찾아왔다. 노인은 선비에게 한 가지 부탁을 했다."
)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def make_analysis(score: float, action_plan: str = "도입부를 더 강하게") -> ScriptAnalysis:
    """A ScriptAnalysis with the given hooking score."""
    return ScriptAnalysis(
        hooking_score=score,
        hooking_comment="점수 {}".format(score),
        overall_comment="전반적으로 무난함",
        action_plan=action_plan,
    )


def analysis_payload(score: float = 7.5) -> Dict[str, Any]:
    """A camelCase analysis dict as Gemini returns it."""
    return {
        "hookingScore": score,
        "hookingComment": "첫 문장이 약함",
        "logicalFlaws": [{"original": "A", "issue": "B", "suggestion": "C"}],
        "boringParts": [{"original": "D", "reason": "E"}],
        "overallComment": "무난함",
        "actionPlan": "도입부 교체",
    }


def gemini_body(text: Optional[str] = None, block_reason: Optional[str] = None) -> Dict[str, Any]:
    """A generateContent response body with one text candidate."""
    body: Dict[str, Any] = {"modelVersion": "gemini-2.5-flash"}
    if text is not None:
        body["candidates"] = [
            {"content": {"role": "model", "parts": [{"text": text}]}, "finishReason": "STOP"}
        ]
    if block_reason is not None:
        body["promptFeedback"] = {"blockReason": block_reason}
    return body


def gemini_json_body(value: Any) -> Dict[str, Any]:
    """A generateContent response whose text is value serialized as JSON."""
    return gemini_body(json.dumps(value, ensure_ascii=False))


def gemini_error_body(code: int, message: str, status: str = "", reasons: Optional[List[str]] = None) -> str:
    """A Google-style error body."""
    err: Dict[str, Any] = {"code": code, "message": message, "status": status}
    if reasons:
        err["details"] = [{"reason": r} for r in reasons]
    return json.dumps({"error": err})


class FakeClock:
    """Monotonic clock advanced only by the paired fake sleep."""

    def __init__(self) -> None:
        self.now = 100.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _dummy_api_key(monkeypatch):
    """Every test sees a configured (fake) Gemini key."""
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def instant_caller(fake_clock):
    """A PacedCaller whose waits are recorded instead of slept."""
    return PacedCaller(CallPolicy(), clock=fake_clock, sleep=fake_clock.sleep)


@pytest.fixture
def session_store(tmp_path):
    """A SessionStore backed by a file under tmp_path."""
    return SessionStore(tmp_path / "session.json", key="test_session")
