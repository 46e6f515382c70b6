"""JSON Schemas for structured Gemini responses.

WHY: Structured outputs are requested with responseJsonSchema and checked
again locally with jsonschema (see GeminiClient.generate_json). Keeping
the schemas as plain dicts in one module lets the prompts, the client,
and the tests share them.

RULES:
- Standard JSON Schema (draft 2020-12 subset Gemini accepts)
- Property names are camelCase; core.ir from_dict() reads the same keys
- "required" lists mirror what the parsers cannot default sensibly
"""

from __future__ import annotations

_STRING = {"type": "string"}
_NUMBER = {"type": "number"}

TOPICS_SCHEMA: dict = {
    "type": "array",
    "items": _STRING,
}

ANALYSIS_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "hookingScore": _NUMBER,
        "hookingComment": _STRING,
        "logicalFlaws": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "original": _STRING,
                    "issue": _STRING,
                    "suggestion": _STRING,
                },
            },
        },
        "boringParts": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "original": _STRING,
                    "reason": _STRING,
                },
            },
        },
        "overallComment": _STRING,
        "actionPlan": _STRING,
    },
    "required": [
        "hookingScore",
        "hookingComment",
        "logicalFlaws",
        "boringParts",
        "overallComment",
        "actionPlan",
    ],
}

SHORTS_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "title": _STRING,
        "script": _STRING,
        "duration": _NUMBER,
        "reference": _STRING,
    },
    "required": ["title", "script", "duration"],
}

IMAGE_PROMPT_ITEM_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "sentence": _STRING,
        "imagePrompt": _STRING,
        "koreanDescription": _STRING,
        "sceneNumber": _NUMBER,
    },
    "required": ["sentence", "imagePrompt", "koreanDescription", "sceneNumber"],
}

IMAGE_PROMPTS_SCHEMA: dict = {
    "type": "array",
    "items": IMAGE_PROMPT_ITEM_SCHEMA,
}

THUMBNAILS_SCHEMA: dict = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "id": _NUMBER,
            "concept": _STRING,
            "prompt": _STRING,
            "textOverlay": _STRING,
        },
        "required": ["id", "concept", "prompt"],
    },
}

CHANNEL_PLAN_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "topic": _STRING,
        "targetAudience": _STRING,
        "contentStrategy": _STRING,
        "competitiveAdvantage": _STRING,
        "trendAnalysis": _STRING,
        "videoStructure": _STRING,
        "monetizationPlan": _STRING,
        "uploadSchedule": _STRING,
    },
    "required": [
        "topic",
        "targetAudience",
        "contentStrategy",
        "competitiveAdvantage",
        "trendAnalysis",
        "videoStructure",
        "monetizationPlan",
        "uploadSchedule",
    ],
}
