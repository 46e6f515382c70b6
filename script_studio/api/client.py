"""Async HTTP client for the Gemini generateContent API.

WHY: Every generation feature (topics, scripts, analysis, image prompts,
titles, thumbnails, channel plans) is one prompt sent to Gemini, with
either free text or schema-shaped JSON coming back. Putting the HTTP
details, auth, and response checking behind one client means the
generation layer only deals with prompts and parsed results.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. GeminiClient is an
async context manager: enter it to get an authenticated client, exit to
close the connection pool. generate_text() returns the first candidate's
text; generate_json() additionally asks for application/json constrained
by a JSON Schema, parses it, and validates it with jsonschema.

RULES:
- Always use the async context manager (async with GeminiClient(...) as client:)
- Auth is the x-goog-api-key header; the key never appears in URLs or logs
- Non-2xx responses raise via errors.classify_error()
- An empty or blocked response raises MalformedResponseError
- generate_json() output always satisfies the schema it was given
- This client does not retry or pace; wrap calls in PacedCaller for that
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx
import jsonschema

from script_studio.api.errors import MalformedResponseError, classify_error
from script_studio.api.models import GenerateContentResponse, GenerationOptions
from script_studio.config import GEMINI_BASE_URL, GEMINI_MODEL, GEMINI_TIMEOUT_S, load_api_key

logger = logging.getLogger(__name__)


class GeminiClient:
    """Async client for Gemini text and structured-JSON generation.

    RULES:
    - Use as: async with GeminiClient() as client: ...
    - api_key defaults to load_api_key() from .env
    - base_url and model default to the values in config
    - transport is for tests (httpx.MockTransport)
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key or load_api_key()
        self._base_url = (base_url or GEMINI_BASE_URL).rstrip("/")
        self.model = model or GEMINI_MODEL
        self._timeout = timeout or GEMINI_TIMEOUT_S
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> GeminiClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={
                "x-goog-api-key": self._api_key,
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(self._timeout, connect=30.0),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "GeminiClient must be used as an async context manager: "
                "async with GeminiClient() as client: ..."
            )
        return self._client

    # ------------------------------------------------------------------
    # Raw call
    # ------------------------------------------------------------------

    async def generate_content(
        self,
        prompt: str,
        *,
        system_instruction: str | None = None,
        options: GenerationOptions | None = None,
        model: str | None = None,
    ) -> GenerateContentResponse:
        """POST one prompt to models/{model}:generateContent.

        Args:
            prompt: The user prompt text.
            system_instruction: Optional system-level persona text.
            options: Sampling and response-format settings.
            model: Override the client's default model for this call.

        Returns:
            The parsed response.

        Raises:
            GeminiAPIError (or a subclass) on non-2xx responses.
            MalformedResponseError if the body is not JSON.
        """
        client = self._ensure_client()
        model_name = model or self.model

        body: dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        }
        if system_instruction:
            body["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        generation_config = (options or GenerationOptions()).to_generation_config()
        if generation_config:
            body["generationConfig"] = generation_config

        logger.debug("generateContent model=%s prompt_chars=%d", model_name, len(prompt))
        resp = await client.post(f"/models/{model_name}:generateContent", json=body)

        if resp.status_code != 200:
            raise classify_error(resp.status_code, resp.text)

        try:
            data = resp.json()
        except ValueError as exc:
            raise MalformedResponseError("Response body is not JSON") from exc
        if not isinstance(data, dict):
            raise MalformedResponseError("Response body is not a JSON object")

        return GenerateContentResponse.from_dict(data)

    # ------------------------------------------------------------------
    # Text
    # ------------------------------------------------------------------

    async def generate_text(
        self,
        prompt: str,
        *,
        system_instruction: str | None = None,
        temperature: float | None = None,
        top_p: float | None = None,
        model: str | None = None,
    ) -> str:
        """Generate free text for a prompt.

        Raises:
            MalformedResponseError if the model returned no text (e.g. the
            prompt was blocked).
        """
        response = await self.generate_content(
            prompt,
            system_instruction=system_instruction,
            options=GenerationOptions(temperature=temperature, top_p=top_p),
            model=model,
        )
        if not response.text.strip():
            reason = response.block_reason or "empty response"
            raise MalformedResponseError(f"Model returned no text ({reason})")
        return response.text

    # ------------------------------------------------------------------
    # Structured JSON
    # ------------------------------------------------------------------

    async def generate_json(
        self,
        prompt: str,
        schema: dict,
        *,
        system_instruction: str | None = None,
        temperature: float | None = None,
        model: str | None = None,
    ) -> Any:
        """Generate JSON constrained by a JSON Schema and return it parsed.

        Args:
            prompt: The user prompt text.
            schema: JSON Schema the response must satisfy. Sent to the API
                    as responseJsonSchema and re-checked locally.
            system_instruction: Optional system-level persona text.
            temperature: Optional sampling temperature.
            model: Override the client's default model for this call.

        Returns:
            The parsed JSON value (dict or list, per the schema).

        Raises:
            MalformedResponseError if the text is missing, is not JSON,
            or does not validate against the schema.
        """
        response = await self.generate_content(
            prompt,
            system_instruction=system_instruction,
            options=GenerationOptions(temperature=temperature, response_schema=schema),
            model=model,
        )
        text = response.text.strip()
        if not text:
            reason = response.block_reason or "empty response"
            raise MalformedResponseError(f"Model returned no JSON ({reason})")

        try:
            parsed = json.loads(_strip_code_fence(text))
        except json.JSONDecodeError as exc:
            raise MalformedResponseError(f"Model returned invalid JSON: {exc}") from exc

        try:
            jsonschema.validate(instance=parsed, schema=schema)
        except jsonschema.ValidationError as exc:
            raise MalformedResponseError(
                f"Model JSON does not match schema: {exc.message}"
            ) from exc

        return parsed


def _strip_code_fence(text: str) -> str:
    """Remove a ```json ... ``` wrapper if the model added one anyway."""
    if not text.startswith("```"):
        return text
    lines = text.splitlines()
    if lines and lines[0].startswith("```"):
        lines = lines[1:]
    if lines and lines[-1].strip() == "```":
        lines = lines[:-1]
    return "\n".join(lines)
