"""Output formatter registry.

WHY: The CLI and the HTTP API look formatters up by key
(``script-studio export --format srt_captions``, ``GET /exports/{key}``).
A central dict keeps that lookup in one place.

HOW: FORMATTERS maps string keys to formatter *classes* (not instances).
Callers instantiate as needed: ``formatter = FORMATTERS["srt_captions"]()``.

RULES:
- Keys are snake_case identifiers
- Values are BaseFormatter subclasses (not instances)
- Every formatter listed here must be importable without side effects
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from script_studio.formatters.image_prompts import ImagePromptsFormatter
from script_studio.formatters.plain_text import PlainTextFormatter
from script_studio.formatters.srt_captions import SRTCaptionFormatter

if TYPE_CHECKING:
    from script_studio.formatters.base import BaseFormatter

FORMATTERS: dict[str, type[BaseFormatter]] = {
    "srt_captions": SRTCaptionFormatter,
    "plain_text": PlainTextFormatter,
    "image_prompts": ImagePromptsFormatter,
}
