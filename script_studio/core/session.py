"""Working session state and its on-disk store.

WHY: A user works on one script at a time across many steps (topics,
script, analysis, shorts, images, title, thumbnails). That state must
survive a restart, but the API key typed into the settings must never end
up in the saved file.

HOW: ScriptSession is a plain dataclass. Mutations that touch several
fields at once (record_script, reset) are methods, so every surface
updates the session the same way. SessionStore keeps a JSON object of
key -> session dict in one file and writes it atomically. redact_secrets()
runs at the save boundary, so secrets are dropped no matter who calls save().

RULES:
- Persistence only happens through SessionStore.save()
- api_key lives in memory only; to_dict() output never contains it after
  redaction, and from_dict() never reads it
- load() never raises for a missing or corrupt file; it logs a warning
  and returns a fresh session
- Other keys in the store file are preserved on save() and clear()
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from script_studio import config
from script_studio.core.ir import (
    ChannelPlan,
    GeneratedScript,
    ImagePrompt,
    ScriptAnalysis,
    ScriptHistoryItem,
    ShortsScript,
    Thumbnail,
)

logger = logging.getLogger(__name__)

SECRET_KEYS = frozenset({"apiKey", "api_key"})


@dataclass
class ScriptSession:
    """Everything the user has produced in the current working session."""

    original_script: str = ""
    suggested_topics: list[str] = field(default_factory=list)
    selected_topic: str = ""
    generated_new_script: str = ""
    is_edit_mode: bool = False
    generated_scripts: list[GeneratedScript] = field(default_factory=list)
    history: list[ScriptHistoryItem] = field(default_factory=list)
    analysis: Optional[ScriptAnalysis] = None
    shorts_scripts: list[ShortsScript] = field(default_factory=list)
    image_prompts: list[ImagePrompt] = field(default_factory=list)
    title: str = ""
    thumbnails: list[Thumbnail] = field(default_factory=list)
    channel_plans: list[ChannelPlan] = field(default_factory=list)
    api_key: str = field(default="", repr=False)

    @property
    def current_script(self) -> str:
        """The script downstream steps should work on."""
        return self.generated_new_script or self.original_script

    def record_script(self, topic: str, script: str, *, edited: bool = False) -> ScriptHistoryItem:
        """Make script the current one and remember it in history and compare list."""
        self.generated_new_script = script
        self.selected_topic = topic or self.selected_topic
        self.generated_scripts.append(GeneratedScript(topic=topic, script=script))
        item = ScriptHistoryItem(topic=topic, script=script, is_edited=edited)
        self.history.append(item)
        # A new script invalidates everything derived from the old one
        self.analysis = None
        return item

    def history_context(self) -> Optional[str]:
        """The most recent history script, used as style reference in prompts."""
        return self.history[-1].script if self.history else None

    def reset(self) -> None:
        """Clear all working content. The in-memory api_key is kept."""
        api_key = self.api_key
        self.__dict__.update(ScriptSession().__dict__)
        self.api_key = api_key

    def to_dict(self) -> dict[str, Any]:
        return {
            "originalScript": self.original_script,
            "suggestedTopics": list(self.suggested_topics),
            "selectedTopic": self.selected_topic,
            "generatedNewScript": self.generated_new_script,
            "isEditMode": self.is_edit_mode,
            "generatedScripts": [s.to_dict() for s in self.generated_scripts],
            "history": [h.to_dict() for h in self.history],
            "analysis": self.analysis.to_dict() if self.analysis else None,
            "shortsScripts": [s.to_dict() for s in self.shorts_scripts],
            "imagePrompts": [p.to_dict() for p in self.image_prompts],
            "title": self.title,
            "thumbnails": [t.to_dict() for t in self.thumbnails],
            "channelPlans": [p.to_dict() for p in self.channel_plans],
            "apiKey": self.api_key,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScriptSession:
        analysis = data.get("analysis")
        return cls(
            original_script=data.get("originalScript", ""),
            suggested_topics=list(data.get("suggestedTopics") or []),
            selected_topic=data.get("selectedTopic", ""),
            generated_new_script=data.get("generatedNewScript", ""),
            is_edit_mode=bool(data.get("isEditMode", False)),
            generated_scripts=[GeneratedScript.from_dict(s) for s in data.get("generatedScripts") or []],
            history=[ScriptHistoryItem.from_dict(h) for h in data.get("history") or []],
            analysis=ScriptAnalysis.from_dict(analysis) if analysis else None,
            shorts_scripts=[ShortsScript.from_dict(s) for s in data.get("shortsScripts") or []],
            image_prompts=[ImagePrompt.from_dict(p) for p in data.get("imagePrompts") or []],
            title=data.get("title", ""),
            thumbnails=[Thumbnail.from_dict(t) for t in data.get("thumbnails") or []],
            channel_plans=[ChannelPlan.from_dict(p) for p in data.get("channelPlans") or []],
        )


def redact_secrets(data: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of a session dict with secret keys removed."""
    return {k: v for k, v in data.items() if k not in SECRET_KEYS}


class SessionStore:
    """JSON key-value file holding saved sessions.

    Args:
        path: Store file. Defaults to config.SESSION_PATH.
        key: Entry name inside the file. Defaults to config.SESSION_KEY.
    """

    def __init__(self, path: Path | str | None = None, key: str | None = None) -> None:
        self.path = Path(path) if path is not None else config.SESSION_PATH
        self.key = key or config.SESSION_KEY

    def _read_all(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Session file %s is unreadable, starting fresh: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Session file %s is not a JSON object, starting fresh", self.path)
            return {}
        return data

    def _write_all(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".session-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def load(self) -> ScriptSession:
        """Load the saved session, or a fresh one if none is usable."""
        entry = self._read_all().get(self.key)
        if entry is None:
            return ScriptSession()
        if not isinstance(entry, dict):
            logger.warning("Session entry '%s' is malformed, starting fresh", self.key)
            return ScriptSession()
        try:
            return ScriptSession.from_dict(entry)
        except (TypeError, ValueError, AttributeError) as exc:
            logger.warning("Session entry '%s' is corrupt, starting fresh: %s", self.key, exc)
            return ScriptSession()

    def save(self, session: ScriptSession) -> None:
        """Persist the session (secrets removed) under this store's key."""
        data = self._read_all()
        data[self.key] = redact_secrets(session.to_dict())
        self._write_all(data)
        logger.debug("Session saved to %s", self.path)

    def clear(self) -> None:
        """Remove this store's key; the file and other keys remain."""
        data = self._read_all()
        if data.pop(self.key, None) is not None:
            self._write_all(data)
