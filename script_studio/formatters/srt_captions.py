"""SRT subtitle formatter backed by the timed_captions library.

WHY: The subtitle download is the one export every video needs. All SRT
text comes from timed_captions so the HTTP preview, the CLI, and this
export agree cue for cue.

RULES:
- Source text: generated_new_script, else original_script
- No script at all -> empty list (nothing to export)
- Output suffix: "-subtitle.srt", media type "application/x-subrip"
"""

from __future__ import annotations

from typing import Optional

from script_studio.core.session import ScriptSession
from script_studio.formatters.base import BaseFormatter, FormatterOutput
from timed_captions import TimingConfig, generate_timed_captions


class SRTCaptionFormatter(BaseFormatter):
    def __init__(self, config: Optional[TimingConfig] = None) -> None:
        self.config = config

    @property
    def name(self) -> str:
        return "SRT Captions"

    def format(self, session: ScriptSession) -> list[FormatterOutput]:
        script = session.current_script
        if not script.strip():
            return []
        return [
            FormatterOutput(
                suffix="-subtitle.srt",
                content=generate_timed_captions(script, self.config),
                media_type="application/x-subrip",
            )
        ]
