"""Character image prompt export as JSON.

WHY: Image prompts are fed into image-generation tools in batch, which
want a stable machine-readable file rather than the UI's cards.

HOW: Serializes the session's image prompts with the same camelCase keys
the model returned, wrapped with the title and a count. The document is
validated with jsonschema before returning.

RULES:
- No image prompts -> empty list
- Prompts are ordered by sceneNumber
- Validate output against EXPORT_SCHEMA before returning; raise on failure
- Output suffix: "-image-prompts.json", media type "application/json"
"""

from __future__ import annotations

import json
from typing import Any

import jsonschema

from script_studio.core.schemas import IMAGE_PROMPT_ITEM_SCHEMA
from script_studio.core.session import ScriptSession
from script_studio.formatters.base import BaseFormatter, FormatterOutput

EXPORT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "count": {"type": "integer", "minimum": 1},
        "prompts": {"type": "array", "items": IMAGE_PROMPT_ITEM_SCHEMA, "minItems": 1},
    },
    "required": ["title", "count", "prompts"],
}


class ImagePromptsFormatter(BaseFormatter):
    @property
    def name(self) -> str:
        return "Image Prompts JSON"

    def format(self, session: ScriptSession) -> list[FormatterOutput]:
        """Render image prompts as one JSON document.

        Raises:
            jsonschema.ValidationError: If the document does not conform
                to EXPORT_SCHEMA.
        """
        if not session.image_prompts:
            return []

        prompts = sorted(session.image_prompts, key=lambda p: p.scene_number)
        output: dict[str, Any] = {
            "title": session.title,
            "count": len(prompts),
            "prompts": [p.to_dict() for p in prompts],
        }
        jsonschema.validate(instance=output, schema=EXPORT_SCHEMA)

        return [
            FormatterOutput(
                suffix="-image-prompts.json",
                content=json.dumps(output, indent=2, ensure_ascii=False),
                media_type="application/json",
            )
        ]
