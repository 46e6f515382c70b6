"""Tests for the async Gemini client.

HOW: httpx.MockTransport serves canned generateContent responses, and a
recorder keeps every request so tests can check the URL, headers and
body the client sent. Coroutines are driven with asyncio.run().
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Callable, List

import httpx
import pytest

from conftest import gemini_body, gemini_error_body, gemini_json_body
from script_studio.api.client import GeminiClient, _strip_code_fence
from script_studio.api.errors import (
    GeminiAPIError,
    InvalidCredentialError,
    MalformedResponseError,
    QuotaExceededError,
)
from script_studio.core.schemas import ANALYSIS_SCHEMA, TOPICS_SCHEMA

BASE_URL = "https://gemini.test/v1beta"


class Recorder:
    """MockTransport handler that records requests and replays responses."""

    def __init__(self, respond: Callable[[httpx.Request], httpx.Response]) -> None:
        self.respond = respond
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)

    @property
    def last_json(self) -> Any:
        return json.loads(self.requests[-1].content)


def _run(recorder: Recorder, call):
    """Open a client over the mock transport and await call(client)."""

    async def go():
        async with GeminiClient(
            api_key="secret-key",
            base_url=BASE_URL,
            model="gemini-test",
            transport=httpx.MockTransport(recorder),
        ) as client:
            return await call(client)

    return asyncio.run(go())


def _ok(body: Any) -> Callable[[httpx.Request], httpx.Response]:
    return lambda request: httpx.Response(200, json=body)


class TestRequestShape:
    def test_posts_to_model_endpoint_with_key_header(self):
        rec = Recorder(_ok(gemini_body("안녕")))
        _run(rec, lambda c: c.generate_text("prompt"))
        req = rec.requests[0]
        assert req.method == "POST"
        assert str(req.url) == BASE_URL + "/models/gemini-test:generateContent"
        assert req.headers["x-goog-api-key"] == "secret-key"
        assert "secret-key" not in str(req.url)

    def test_body_contains_prompt_and_system_instruction(self):
        rec = Recorder(_ok(gemini_body("안녕")))
        _run(rec, lambda c: c.generate_text("사용자 프롬프트", system_instruction="페르소나"))
        body = rec.last_json
        assert body["contents"][0]["parts"][0]["text"] == "사용자 프롬프트"
        assert body["systemInstruction"]["parts"][0]["text"] == "페르소나"

    def test_sampling_options_are_camel_case(self):
        rec = Recorder(_ok(gemini_body("안녕")))
        _run(rec, lambda c: c.generate_text("p", temperature=0.8, top_p=0.95))
        assert rec.last_json["generationConfig"] == {"temperature": 0.8, "topP": 0.95}

    def test_no_generation_config_when_defaults(self):
        rec = Recorder(_ok(gemini_body("안녕")))
        _run(rec, lambda c: c.generate_text("p"))
        assert "generationConfig" not in rec.last_json

    def test_model_override(self):
        rec = Recorder(_ok(gemini_body("안녕")))
        _run(rec, lambda c: c.generate_text("p", model="gemini-2.0-flash-exp"))
        assert rec.requests[0].url.path.endswith("/models/gemini-2.0-flash-exp:generateContent")

    def test_json_request_sends_schema(self):
        rec = Recorder(_ok(gemini_json_body(["a", "b"])))
        _run(rec, lambda c: c.generate_json("p", TOPICS_SCHEMA))
        config = rec.last_json["generationConfig"]
        assert config["responseMimeType"] == "application/json"
        assert config["responseJsonSchema"] == TOPICS_SCHEMA


class TestGenerateText:
    def test_returns_text(self):
        rec = Recorder(_ok(gemini_body("대본 내용")))
        assert _run(rec, lambda c: c.generate_text("p")) == "대본 내용"

    def test_joins_parts(self):
        body = {"candidates": [{"content": {"parts": [{"text": "앞"}, {"text": "뒤"}]}}]}
        rec = Recorder(_ok(body))
        assert _run(rec, lambda c: c.generate_text("p")) == "앞뒤"

    def test_blocked_prompt_is_malformed(self):
        rec = Recorder(_ok(gemini_body(block_reason="SAFETY")))
        with pytest.raises(MalformedResponseError, match="SAFETY"):
            _run(rec, lambda c: c.generate_text("p"))

    def test_non_json_body_is_malformed(self):
        rec = Recorder(lambda r: httpx.Response(200, text="not json"))
        with pytest.raises(MalformedResponseError):
            _run(rec, lambda c: c.generate_text("p"))


class TestGenerateJson:
    def test_parses_and_validates(self):
        rec = Recorder(_ok(gemini_json_body(["주제1", "주제2", "주제3"])))
        assert _run(rec, lambda c: c.generate_json("p", TOPICS_SCHEMA)) == ["주제1", "주제2", "주제3"]

    def test_strips_code_fence(self):
        rec = Recorder(_ok(gemini_body('```json\n["a"]\n```')))
        assert _run(rec, lambda c: c.generate_json("p", TOPICS_SCHEMA)) == ["a"]

    def test_invalid_json_is_malformed(self):
        rec = Recorder(_ok(gemini_body("{not json")))
        with pytest.raises(MalformedResponseError, match="invalid JSON"):
            _run(rec, lambda c: c.generate_json("p", TOPICS_SCHEMA))

    def test_schema_mismatch_is_malformed(self):
        rec = Recorder(_ok(gemini_json_body({"hookingScore": "high"})))
        with pytest.raises(MalformedResponseError, match="schema"):
            _run(rec, lambda c: c.generate_json("p", ANALYSIS_SCHEMA))

    def test_empty_text_is_malformed(self):
        rec = Recorder(_ok(gemini_body("   ")))
        with pytest.raises(MalformedResponseError):
            _run(rec, lambda c: c.generate_json("p", TOPICS_SCHEMA))


class TestErrorResponses:
    def test_429_raises_quota(self):
        rec = Recorder(lambda r: httpx.Response(429, text=gemini_error_body(429, "quota", "RESOURCE_EXHAUSTED")))
        with pytest.raises(QuotaExceededError):
            _run(rec, lambda c: c.generate_text("p"))

    def test_invalid_key_raises_credential(self):
        body = gemini_error_body(400, "API key not valid.", "INVALID_ARGUMENT", reasons=["API_KEY_INVALID"])
        rec = Recorder(lambda r: httpx.Response(400, text=body))
        with pytest.raises(InvalidCredentialError):
            _run(rec, lambda c: c.generate_text("p"))

    def test_server_error_raises_base(self):
        rec = Recorder(lambda r: httpx.Response(500, text="oops"))
        with pytest.raises(GeminiAPIError) as exc_info:
            _run(rec, lambda c: c.generate_text("p"))
        assert exc_info.value.status_code == 500


class TestLifecycle:
    def test_requires_context_manager(self):
        client = GeminiClient(api_key="k", base_url=BASE_URL)
        with pytest.raises(RuntimeError, match="context manager"):
            asyncio.run(client.generate_text("p"))

    def test_missing_key_raises_value_error(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        with pytest.raises(ValueError, match="GEMINI_API_KEY"):
            GeminiClient()

    def test_google_api_key_alias(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.setenv("GOOGLE_API_KEY", "alias-key")
        rec = Recorder(_ok(gemini_body("x")))

        async def go():
            async with GeminiClient(base_url=BASE_URL, transport=httpx.MockTransport(rec)) as c:
                return await c.generate_text("p")

        asyncio.run(go())
        assert rec.requests[0].headers["x-goog-api-key"] == "alias-key"


class TestStripCodeFence:
    def test_plain_text_untouched(self):
        assert _strip_code_fence('{"a": 1}') == '{"a": 1}'

    def test_fence_without_language(self):
        assert _strip_code_fence("```\n[1]\n```") == "[1]"
