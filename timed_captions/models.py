"""Data models for the caption timing generator.

WHY: Caption generation turns narration text into timed cues. Two small,
immutable types carry everything the pipeline needs: the timing parameters
supplied by the caller, and the cues the pipeline produces.

HOW: TimingConfig validates itself on construction so every downstream
function can trust its fields. CaptionEntry is a frozen record (one SRT
cue) created once by the timeline builder and never mutated.

RULES:
- Times are float seconds from the start of the track, never milliseconds.
- CaptionEntry.index is 1-based and contiguous within one generated track.
- An invalid TimingConfig raises InvalidConfiguration at construction time,
  never later in the pipeline.
- Python 3.9 compatible (no slots=True, no match/case).
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

DEFAULT_CHARS_PER_SECOND = 5.0
DEFAULT_MIN_DURATION = 2.0
DEFAULT_MAX_DURATION = 8.0
DEFAULT_GAP = 0.3
DEFAULT_LONG_SENTENCE_CHARS = 100
DEFAULT_CLAUSE_SPLIT_PATTERN = r",\s+"


class InvalidConfiguration(ValueError):
    """Raised when timing parameters cannot produce a valid caption track.

    WHY: A non-positive narration rate divides by zero or yields negative
    durations. Rejecting it up front is clearer than emitting nonsense
    timestamps.

    RULES:
    - Message names the offending field and value
    """


@dataclass(frozen=True)
class CaptionEntry:
    """One timed subtitle cue.

    Attributes:
        index: 1-based sequence number.
        start: Start time in seconds.
        end: End time in seconds (always greater than start).
        text: Trimmed, non-empty caption text.
    """

    index: int
    start: float
    end: float
    text: str

    @property
    def duration(self) -> float:
        return self.end - self.start


@dataclass(frozen=True)
class TimingConfig:
    """Parameters controlling how narration text is timed.

    WHY: Narration speed and caption length limits vary between voices and
    target platforms. Bundling them in one immutable object lets callers
    pass a single value through the whole pipeline.

    HOW: Defaults reproduce the Korean narration profile (300 chars per
    minute = 5 chars per second, 2-8 second cues, 0.3 s gaps). The
    overlong-sentence threshold and clause split boundary are fields too,
    so they can be tuned together with the narration rate.

    RULES:
    - chars_per_second > 0 and finite
    - 0 < min_duration <= max_duration
    - gap >= 0
    - long_sentence_chars > 0
    - clause_split_pattern must compile as a regular expression
    """

    chars_per_second: float = DEFAULT_CHARS_PER_SECOND
    min_duration: float = DEFAULT_MIN_DURATION
    max_duration: float = DEFAULT_MAX_DURATION
    gap: float = DEFAULT_GAP
    long_sentence_chars: int = DEFAULT_LONG_SENTENCE_CHARS
    clause_split_pattern: str = DEFAULT_CLAUSE_SPLIT_PATTERN

    def __post_init__(self) -> None:
        validate_config(self)


def _is_finite_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def validate_config(config: TimingConfig) -> None:
    """Check a TimingConfig and raise InvalidConfiguration on the first problem."""
    if not _is_finite_number(config.chars_per_second) or config.chars_per_second <= 0:
        raise InvalidConfiguration(
            "chars_per_second must be a positive number, got {!r}".format(
                config.chars_per_second
            )
        )
    if not _is_finite_number(config.min_duration) or config.min_duration <= 0:
        raise InvalidConfiguration(
            "min_duration must be a positive number, got {!r}".format(config.min_duration)
        )
    if not _is_finite_number(config.max_duration) or config.max_duration < config.min_duration:
        raise InvalidConfiguration(
            "max_duration must be >= min_duration ({!r}), got {!r}".format(
                config.min_duration, config.max_duration
            )
        )
    if not _is_finite_number(config.gap) or config.gap < 0:
        raise InvalidConfiguration(
            "gap must be zero or positive, got {!r}".format(config.gap)
        )
    if (
        isinstance(config.long_sentence_chars, bool)
        or not isinstance(config.long_sentence_chars, int)
        or config.long_sentence_chars <= 0
    ):
        raise InvalidConfiguration(
            "long_sentence_chars must be a positive integer, got {!r}".format(
                config.long_sentence_chars
            )
        )
    try:
        re.compile(config.clause_split_pattern)
    except (re.error, TypeError) as exc:
        raise InvalidConfiguration(
            "clause_split_pattern is not a valid regular expression: {}".format(exc)
        ) from exc
