"""Tests for ScriptGenerator.

HOW: The GeminiClient is replaced by a MagicMock whose generate_text and
generate_json are AsyncMocks, so each test controls exactly what "Gemini"
answers. Calls still go through a real PacedCaller (with a fake clock),
which exercises the retry and error-wrapping path end to end.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from conftest import SAMPLE_SCRIPT, analysis_payload, make_analysis
from script_studio.api.errors import (
    InvalidCredentialError,
    MalformedResponseError,
    QuotaExceededError,
)
from script_studio.core import schemas
from script_studio.core.generator import (
    DEFAULT_SCRIPT_FALLBACK,
    DEFAULT_SHORTS_REFERENCE,
    DEFAULT_TITLE,
    DEFAULT_YADAM_FALLBACK,
    MIN_IMPROVED_SCRIPT_CHARS,
    GenerationError,
    ScriptGenerator,
)


def _fake_client(text=None, json_value=None) -> MagicMock:
    client = MagicMock()
    client.generate_text = AsyncMock(return_value=text)
    client.generate_json = AsyncMock(return_value=json_value)
    return client


def _generator(client, caller, **kwargs) -> ScriptGenerator:
    return ScriptGenerator(client, caller=caller, **kwargs)


class TestTopics:
    def test_caps_and_strips_topics(self, instant_caller):
        client = _fake_client(json_value=[" 하나 ", "둘", "", "셋", "넷"])
        topics = asyncio.run(_generator(client, instant_caller).suggest_topics(SAMPLE_SCRIPT))
        assert topics == ["하나", "둘", "셋"]

    def test_sends_topics_schema_and_persona(self, instant_caller):
        client = _fake_client(json_value=["a"])
        asyncio.run(_generator(client, instant_caller).suggest_topics(SAMPLE_SCRIPT))
        args, kwargs = client.generate_json.call_args
        assert args[1] is schemas.TOPICS_SCHEMA
        assert "YouTube strategist" in kwargs["system_instruction"]

    def test_empty_script_rejected_before_call(self, instant_caller):
        client = _fake_client(json_value=["a"])
        with pytest.raises(ValueError):
            asyncio.run(_generator(client, instant_caller).suggest_topics("   "))
        client.generate_json.assert_not_awaited()


class TestScripts:
    def test_standard_script_is_stripped(self, instant_caller):
        client = _fake_client(text="\n[오프닝] 안녕하세요\n")
        result = asyncio.run(_generator(client, instant_caller).generate_script("주제", "원본"))
        assert result == "[오프닝] 안녕하세요"

    def test_standard_script_blank_falls_back(self, instant_caller):
        client = _fake_client(text="   ")
        result = asyncio.run(_generator(client, instant_caller).generate_script("주제", "원본"))
        assert result == DEFAULT_SCRIPT_FALLBACK

    def test_yadam_blank_falls_back(self, instant_caller):
        client = _fake_client(text="")
        result = asyncio.run(_generator(client, instant_caller).generate_yadam_script("주제", "원본"))
        assert result == DEFAULT_YADAM_FALLBACK

    def test_history_reaches_prompt(self, instant_caller):
        client = _fake_client(text="대본")
        asyncio.run(
            _generator(client, instant_caller).generate_yadam_script("주제", "원본", history="예전 야담")
        )
        prompt = client.generate_text.call_args.args[0]
        assert "예전 야담" in prompt

    def test_empty_topic_rejected(self, instant_caller):
        with pytest.raises(ValueError):
            asyncio.run(_generator(_fake_client(text="x"), instant_caller).generate_script("", "원본"))


class TestAnalysis:
    def test_parses_analysis(self, instant_caller):
        client = _fake_client(json_value=analysis_payload(6.5))
        analysis = asyncio.run(_generator(client, instant_caller).analyze_script(SAMPLE_SCRIPT))
        assert analysis.hooking_score == 6.5
        assert analysis.logical_flaws[0].suggestion == "C"
        assert analysis.boring_parts[0].reason == "E"

    def test_empty_script_rejected(self, instant_caller):
        with pytest.raises(ValueError):
            asyncio.run(_generator(_fake_client(), instant_caller).analyze_script(""))


class TestDerivedContent:
    def test_shorts_default_reference(self, instant_caller):
        client = _fake_client(json_value={"title": "숏츠", "script": "짧은 대본", "duration": 45})
        shorts = asyncio.run(_generator(client, instant_caller).generate_shorts_script(SAMPLE_SCRIPT))
        assert shorts.duration == 45.0
        assert shorts.reference == DEFAULT_SHORTS_REFERENCE

    def test_image_prompts(self, instant_caller):
        client = _fake_client(json_value=[
            {"sceneNumber": 1, "sentence": "선비", "imagePrompt": "a scholar", "koreanDescription": "선비"},
        ])
        result = asyncio.run(_generator(client, instant_caller).generate_image_prompts(SAMPLE_SCRIPT))
        assert result[0].image_prompt == "a scholar"

    def test_title_default(self, instant_caller):
        client = _fake_client(text=" ")
        assert asyncio.run(_generator(client, instant_caller).generate_title(SAMPLE_SCRIPT)) == DEFAULT_TITLE

    def test_thumbnails_capped(self, instant_caller):
        items = [{"id": i, "concept": "c", "prompt": "p"} for i in range(1, 6)]
        client = _fake_client(json_value=items)
        thumbs = asyncio.run(_generator(client, instant_caller).generate_thumbnails(SAMPLE_SCRIPT, "제목"))
        assert [t.id for t in thumbs] == [1, 2, 3]
        assert thumbs[0].text_overlay is None

    def test_channel_plan_uses_planning_model(self, instant_caller):
        client = _fake_client(json_value={"topic": "야담", "targetAudience": "30대"})
        gen = _generator(client, instant_caller, planning_model="gemini-plan")
        plan = asyncio.run(gen.generate_channel_plan(SAMPLE_SCRIPT, "야담"))
        assert plan.target_audience == "30대"
        assert client.generate_json.call_args.kwargs["model"] == "gemini-plan"


class TestImprove:
    def test_returns_long_rewrite(self, instant_caller):
        rewrite = "가" * MIN_IMPROVED_SCRIPT_CHARS
        client = _fake_client(text=rewrite)
        result = asyncio.run(_generator(client, instant_caller).improve_script("원본", make_analysis(5.0)))
        assert result == rewrite
        kwargs = client.generate_text.call_args.kwargs
        assert kwargs["temperature"] == 0.8
        assert kwargs["top_p"] == 0.95

    def test_short_rewrite_raises(self, instant_caller):
        client = _fake_client(text="너무 짧음")
        with pytest.raises(GenerationError) as exc_info:
            asyncio.run(_generator(client, instant_caller).improve_script("원본", make_analysis(5.0)))
        assert exc_info.value.operation == "improve"
        assert exc_info.value.cause is None


class TestErrorWrapping:
    def test_api_error_wrapped_with_cause(self, instant_caller):
        client = _fake_client()
        error = InvalidCredentialError(401, "bad key")
        client.generate_json.side_effect = error
        with pytest.raises(GenerationError) as exc_info:
            asyncio.run(_generator(client, instant_caller).suggest_topics(SAMPLE_SCRIPT))
        assert exc_info.value.operation == "topics"
        assert exc_info.value.cause is error
        assert exc_info.value.__cause__ is error
        assert exc_info.value.user_message == "주제 추천 중 오류가 발생했습니다."

    def test_malformed_json_wrapped(self, instant_caller):
        client = _fake_client()
        client.generate_json.side_effect = MalformedResponseError("not json")
        with pytest.raises(GenerationError) as exc_info:
            asyncio.run(_generator(client, instant_caller).analyze_script(SAMPLE_SCRIPT))
        assert isinstance(exc_info.value.cause, MalformedResponseError)

    def test_transient_error_retried(self, instant_caller, fake_clock):
        client = _fake_client()
        client.generate_text.side_effect = [QuotaExceededError(429, "slow"), "제목"]
        title = asyncio.run(_generator(client, instant_caller).generate_title(SAMPLE_SCRIPT))
        assert title == "제목"
        assert client.generate_text.await_count == 2
        assert fake_clock.sleeps

    def test_transport_error_wrapped_after_retries(self, instant_caller):
        client = _fake_client()
        error = httpx.ReadTimeout("timed out")
        client.generate_text.side_effect = error
        with pytest.raises(GenerationError) as exc_info:
            asyncio.run(_generator(client, instant_caller).generate_title(SAMPLE_SCRIPT))
        assert exc_info.value.operation == "title"
        assert exc_info.value.cause is error
        assert client.generate_text.await_count == instant_caller.policy.max_attempts

    def test_connect_error_wrapped_for_json(self, instant_caller):
        client = _fake_client()
        client.generate_json.side_effect = httpx.ConnectError("refused")
        with pytest.raises(GenerationError) as exc_info:
            asyncio.run(_generator(client, instant_caller).suggest_topics(SAMPLE_SCRIPT))
        assert isinstance(exc_info.value.cause, httpx.ConnectError)
