"""Caption timing library: narration text in, timed SRT out.

WHY: Generated scripts need subtitles before any voice track exists. This
package estimates a caption window for every sentence from its length and
serializes the result as SubRip (.srt), with no audio analysis and no
network access.

HOW: generate_timed_captions(text, config) runs the full pipeline:
segment_sentences() -> build_timeline() -> serialize_srt().
generate_caption_entries() stops before serialization for callers that
want structured cues. export_captions() is the only function with side
effects; it writes the finished text to disk.

RULES:
- generate_timed_captions() is the main public API for producing SRT text.
- All functions accept an optional TimingConfig; None means defaults.
- Invalid parameters raise InvalidConfiguration (a ValueError subclass).
- Empty text produces no entries and an empty string, never an error.
"""

from typing import List, Optional

from .core import (
    build_timeline,
    estimate_duration,
    segment_sentences,
    seconds_to_srt_time,
    serialize_srt,
)
from .export import export_captions
from .models import CaptionEntry, InvalidConfiguration, TimingConfig, validate_config

__all__ = [
    "CaptionEntry",
    "InvalidConfiguration",
    "TimingConfig",
    "build_timeline",
    "estimate_duration",
    "export_captions",
    "generate_caption_entries",
    "generate_timed_captions",
    "segment_sentences",
    "seconds_to_srt_time",
    "serialize_srt",
    "validate_config",
]


def generate_caption_entries(
    text: str,
    config: Optional[TimingConfig] = None,
) -> List[CaptionEntry]:
    """Segment and time narration text, returning structured cues."""
    cfg = config or TimingConfig()
    validate_config(cfg)
    return build_timeline(segment_sentences(text, cfg), cfg)


def generate_timed_captions(
    text: str,
    config: Optional[TimingConfig] = None,
) -> str:
    """Convert narration text into an SRT document.

    Args:
        text: Narration text (any length, may be empty).
        config: Timing parameters. Default: 5 chars/s, 2-8 s cues, 0.3 s gap.

    Returns:
        SRT-formatted subtitle string ("" for empty text).

    Raises:
        InvalidConfiguration: If config fails validation.
    """
    return serialize_srt(generate_caption_entries(text, config))
