"""Plain text script export.

WHY: Narrators and editors want the final script as a plain file they can
paste into a teleprompter or a TTS tool.

HOW: Writes the current script, preceded by the title and a blank line
when the session has one. Trailing whitespace is trimmed from every line.

RULES:
- Source text: generated_new_script, else original_script
- No script -> empty list
- Content ends with exactly one newline
- Output suffix: "-script.txt", media type "text/plain"
"""

from __future__ import annotations

from script_studio.core.session import ScriptSession
from script_studio.formatters.base import BaseFormatter, FormatterOutput


class PlainTextFormatter(BaseFormatter):
    @property
    def name(self) -> str:
        return "Plain Text"

    def format(self, session: ScriptSession) -> list[FormatterOutput]:
        script = session.current_script.strip()
        if not script:
            return []

        blocks = []
        if session.title.strip():
            blocks.append(session.title.strip())
        blocks.append(script)

        lines = "\n\n".join(blocks).splitlines()
        content = "\n".join(line.rstrip() for line in lines) + "\n"

        return [
            FormatterOutput(
                suffix="-script.txt",
                content=content,
                media_type="text/plain",
            )
        ]
