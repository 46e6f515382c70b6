"""Core caption timing logic: segmentation, duration, timeline and SRT output.

WHY: Narration scripts arrive as plain prose with no timing information.
To burn captions into a video (or hand an .srt to an editor) every sentence
needs an estimated on-screen window. This module holds the whole pipeline
from a raw string to a finished SRT document.

HOW: Four pure stages, each usable on its own:
  1. segment_sentences() - split prose into caption-sized fragments.
  2. estimate_duration() - map fragment length to a clamped duration.
  3. build_timeline()    - place fragments on a running clock with gaps.
  4. serialize_srt()     - render entries as SubRip text, using
     seconds_to_srt_time() for every timestamp.

RULES:
- Every function is pure and takes the TimingConfig explicitly; there is
  no module-level mutable state, so concurrent calls are independent.
- Fragment text is never rewritten beyond trimming and the re-appended
  clause comma.
- Entries never overlap: next.start >= previous.end, equal when gap == 0.
"""

from __future__ import annotations

import math
import re
from typing import Iterable, List, Optional

from .models import CaptionEntry, TimingConfig

# One or more terminal marks followed by whitespace. The capture group keeps
# the delimiter in re.split() output so it can be glued back onto the
# preceding sentence.
SENTENCE_BOUNDARY_RE = re.compile(r"([.!?]+\s+)")

_MS_PER_HOUR = 3_600_000
_MS_PER_MINUTE = 60_000
_MS_PER_SECOND = 1_000

# Absorbs binary float error (2.3 * 1000 == 2299.9999999999995).
_MS_EPSILON = 1e-6


# =============================================================================
# Segmentation
# =============================================================================

def split_sentences(text: str) -> List[str]:
    """Split text at sentence-terminal punctuation, keeping the punctuation.

    Fragments that are blank before their delimiter are dropped together
    with the delimiter.
    """
    parts = SENTENCE_BOUNDARY_RE.split(text)
    sentences = []  # type: List[str]
    for i in range(0, len(parts), 2):
        body = parts[i]
        if not body.strip():
            continue
        delimiter = parts[i + 1] if i + 1 < len(parts) else ""
        sentences.append((body + delimiter).strip())
    return sentences


def split_clauses(sentence: str, pattern: str = r",\s+") -> List[str]:
    """Split an overlong sentence on clause boundaries.

    Every clause except the last gets its comma back so the caption keeps
    the mid-sentence cadence; the last clause keeps whatever punctuation
    the sentence ended with.
    """
    parts = [p.strip() for p in re.split(pattern, sentence)]
    parts = [p for p in parts if p]
    clauses = []  # type: List[str]
    for i, part in enumerate(parts):
        if i < len(parts) - 1:
            clauses.append(part + ",")
        else:
            clauses.append(part)
    return clauses


def segment_sentences(text: str, config: Optional[TimingConfig] = None) -> List[str]:
    """Split narration text into ordered, caption-sized fragments.

    WHY: One caption per sentence reads naturally, but a very long sentence
    would sit on screen for the whole max_duration while the narrator is
    still mid-way. Splitting those on commas keeps captions in step with
    the voice.

    HOW: First split on [.!?]+ followed by whitespace. Any sentence longer
    than config.long_sentence_chars is split again with
    config.clause_split_pattern (", " by default).

    RULES:
    - Total: never raises for str input; "" or whitespace returns [].
    - Order of the source text is preserved.
    - Every returned fragment is trimmed and non-empty.

    Args:
        text: Raw narration text. May lack terminal punctuation entirely.
        config: Timing configuration; defaults to TimingConfig().

    Returns:
        List of fragment strings.
    """
    cfg = config or TimingConfig()
    if not text or not text.strip():
        return []

    fragments = []  # type: List[str]
    for sentence in split_sentences(text):
        if len(sentence) > cfg.long_sentence_chars:
            fragments.extend(split_clauses(sentence, cfg.clause_split_pattern))
        else:
            fragments.append(sentence)

    return [f for f in fragments if f.strip()]


# =============================================================================
# Timing
# =============================================================================

def estimate_duration(fragment: str, config: Optional[TimingConfig] = None) -> float:
    """Estimated display time for a fragment, clamped to [min, max] seconds."""
    cfg = config or TimingConfig()
    raw = len(fragment) / cfg.chars_per_second
    return max(cfg.min_duration, min(cfg.max_duration, raw))


def build_timeline(
    fragments: Iterable[str],
    config: Optional[TimingConfig] = None,
) -> List[CaptionEntry]:
    """Place fragments on a running clock.

    WHY: Caption players need absolute start/end times. With no audio to
    align against, the best estimate is to lay cues end to end at the
    assumed narration rate.

    HOW: A single pass. Each fragment starts at the current clock, lasts
    estimate_duration(), and the clock then advances by duration + gap.

    RULES:
    - One entry per fragment, index = position + 1.
    - start of entry N+1 >= end of entry N (gap >= 0 is validated).
    - min_duration <= end - start <= max_duration.
    """
    cfg = config or TimingConfig()
    entries = []  # type: List[CaptionEntry]
    clock = 0.0

    for index, fragment in enumerate(fragments, 1):
        duration = estimate_duration(fragment, cfg)
        entries.append(CaptionEntry(
            index=index,
            start=clock,
            end=clock + duration,
            text=fragment.strip(),
        ))
        clock += duration + cfg.gap

    return entries


# =============================================================================
# SRT Output
# =============================================================================

def seconds_to_srt_time(seconds: float) -> str:
    """Convert seconds to an SRT timestamp: HH:MM:SS,mmm.

    Hours are elapsed time, not a clock: they never wrap at 24 and widen
    past two digits instead of overflowing at 99.

    Raises:
        ValueError: If seconds is negative or not finite.
    """
    if not math.isfinite(seconds):
        raise ValueError("Cannot format non-finite time: {!r}".format(seconds))
    if seconds < 0:
        raise ValueError("Cannot format negative time: {!r}".format(seconds))

    total_ms = int(math.floor(seconds * 1000 + _MS_EPSILON))
    hours, rem = divmod(total_ms, _MS_PER_HOUR)
    minutes, rem = divmod(rem, _MS_PER_MINUTE)
    secs, millis = divmod(rem, _MS_PER_SECOND)
    return "{:02d}:{:02d}:{:02d},{:03d}".format(hours, minutes, secs, millis)


def format_entry(entry: CaptionEntry) -> str:
    """Render one cue block, terminated by a newline."""
    return "{}\n{} --> {}\n{}\n".format(
        entry.index,
        seconds_to_srt_time(entry.start),
        seconds_to_srt_time(entry.end),
        entry.text,
    )


def serialize_srt(entries: Iterable[CaptionEntry]) -> str:
    """Serialize entries to SubRip text.

    Blocks are separated by exactly one blank line; an empty sequence
    yields "".
    """
    return "\n".join(format_entry(entry) for entry in entries)
