"""CLI wrapper for the caption timing library.

WHY: Editors often have a finished narration .txt and just need an .srt
next to it. This keeps that workflow one command long and scriptable.

HOW: argparse reads the input path (or "-" for stdin), an optional output
path and the timing overrides, builds a TimingConfig and delegates to
generate_caption_entries() / serialize_srt() / export_captions().

RULES:
- Usage:
    python -m timed_captions script.txt subtitle.srt
    python -m timed_captions script.txt --cps 6 --gap 0.2   (SRT to stdout)
    cat script.txt | python -m timed_captions - out.srt
- Exit codes: 0 = success, 1 = error.
- Progress messages go to stderr; SRT content goes to stdout when no
  output file is given.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from . import generate_caption_entries
from .core import serialize_srt
from .export import export_captions
from .models import (
    DEFAULT_CHARS_PER_SECOND,
    DEFAULT_GAP,
    DEFAULT_LONG_SENTENCE_CHARS,
    DEFAULT_MAX_DURATION,
    DEFAULT_MIN_DURATION,
    InvalidConfiguration,
    TimingConfig,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="timed_captions",
        description="Estimate caption timing for narration text and write SRT.",
    )
    parser.add_argument("input", help="Narration text file, or '-' for stdin.")
    parser.add_argument("output", nargs="?", default=None,
                        help="Output .srt path (default: stdout).")
    parser.add_argument("--cps", type=float, default=DEFAULT_CHARS_PER_SECOND,
                        help="Narration speed in characters per second (default: %(default)s).")
    parser.add_argument("--min-duration", type=float, default=DEFAULT_MIN_DURATION,
                        help="Shortest caption in seconds (default: %(default)s).")
    parser.add_argument("--max-duration", type=float, default=DEFAULT_MAX_DURATION,
                        help="Longest caption in seconds (default: %(default)s).")
    parser.add_argument("--gap", type=float, default=DEFAULT_GAP,
                        help="Silence between captions in seconds (default: %(default)s).")
    parser.add_argument("--long-sentence-chars", type=int, default=DEFAULT_LONG_SENTENCE_CHARS,
                        help="Split sentences longer than this on commas (default: %(default)s).")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Run the caption timing CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:]).
    """
    args = build_parser().parse_args(argv)

    try:
        config = TimingConfig(
            chars_per_second=args.cps,
            min_duration=args.min_duration,
            max_duration=args.max_duration,
            gap=args.gap,
            long_sentence_chars=args.long_sentence_chars,
        )
    except InvalidConfiguration as e:
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)

    if args.input == "-":
        raw = sys.stdin.read()
    else:
        try:
            with open(args.input, "r", encoding="utf-8") as f:
                raw = f.read()
        except (OSError, UnicodeDecodeError) as e:
            print("Error: {}".format(e), file=sys.stderr)
            sys.exit(1)

    entries = generate_caption_entries(raw, config)
    if not entries:
        print("Warning: No sentences found in input", file=sys.stderr)
    srt = serialize_srt(entries)

    if args.output:
        out = Path(args.output)
        try:
            path = export_captions(srt, out.name, out.parent if str(out.parent) else None)
        except OSError as e:
            print("Error: {}".format(e), file=sys.stderr)
            sys.exit(1)
        total = entries[-1].end if entries else 0.0
        print(
            "Wrote {} captions ({:.1f}s) to {}".format(len(entries), total, path),
            file=sys.stderr,
        )
    else:
        sys.stdout.write(srt)


if __name__ == "__main__":
    main()
