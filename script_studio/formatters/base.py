"""Abstract base formatter and output container.

WHY: A finished session can be exported as subtitles, as a plain script
file, or as machine-readable image prompts. The CLI and the HTTP API need
to treat every export the same way, so each format implements one
interface.

HOW: BaseFormatter is an ABC with a ``name`` property and a ``format()``
method that reads a ScriptSession. FormatterOutput bundles a file suffix
with its content and MIME type.

RULES:
- Subclasses MUST implement ``name`` (human-readable) and ``format()``
- ``format()`` returns a list; an empty list means "nothing to export"
- ``suffix`` starts with a hyphen, e.g. ``"-subtitle.srt"``
- The caller prepends the filename stem
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from script_studio.core.session import ScriptSession


@dataclass
class FormatterOutput:
    """One output file produced by a formatter.

    Attributes:
        suffix: File suffix appended to the stem,
                e.g. ``"-subtitle.srt"`` -> ``"video-subtitle.srt"``.
        content: The file content.
        media_type: MIME type for the content, e.g. ``"application/json"``.
    """

    suffix: str
    content: str
    media_type: str


class BaseFormatter(ABC):
    """Abstract base for all session exporters.

    To add a new output format:
    1. Create a new file in formatters/
    2. Subclass BaseFormatter
    3. Implement format() and name
    4. Register in FORMATTERS dict in formatters/__init__.py
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name, e.g. 'SRT Captions'."""

    @abstractmethod
    def format(self, session: ScriptSession) -> list[FormatterOutput]:
        """Render the session into zero or more output files."""
