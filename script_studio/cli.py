"""Command-line interface for Script Studio.

WHY: Every step of the browser workflow (topics, script, analysis,
refinement, production package, subtitles, exports) is also useful from a
terminal or a shell script. The CLI drives the same services as the HTTP
API and shares the same saved session.

HOW: argparse subcommands, one per workflow step. API-backed commands run
their coroutine with asyncio.run() inside a GeminiClient context. Results
go to stdout so they can be piped; status messages go to stderr. The
session is loaded before and saved after each command that changes it.

RULES:
- captions and export work offline (no API key needed)
- topics, script, analyze, refine, and package call Gemini
- --session overrides the session file location for every command
- Status output goes to stderr (not stdout)
- Errors print "Error: ..." to stderr and exit 1; Ctrl-C exits 130
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, List, Optional

from script_studio import __version__
from script_studio.api.client import GeminiClient
from script_studio.api.errors import GeminiAPIError
from script_studio.config import REFINE_MAX_ATTEMPTS, REFINE_TARGET_SCORE, SESSION_PATH
from script_studio.core.generator import GenerationError, ScriptGenerator
from script_studio.core.ir import ScriptAnalysis
from script_studio.core.pipeline import PipelineError, production_package_steps, run_pipeline
from script_studio.core.refinement import RefinementError, refine_script
from script_studio.core.session import ScriptSession, SessionStore
from script_studio.formatters import FORMATTERS
from timed_captions import TimingConfig, generate_timed_captions
from timed_captions.export import export_captions
from timed_captions.models import (
    DEFAULT_CHARS_PER_SECOND,
    DEFAULT_GAP,
    DEFAULT_LONG_SENTENCE_CHARS,
    DEFAULT_MAX_DURATION,
    DEFAULT_MIN_DURATION,
)


def _status(msg: str) -> None:
    """Print a status message to stderr."""
    print(msg, file=sys.stderr, flush=True)


@asynccontextmanager
async def _open_generator() -> AsyncIterator[ScriptGenerator]:
    async with GeminiClient() as client:
        yield ScriptGenerator(client)


def _read_text(path: str) -> str:
    """Read a UTF-8 text file, or stdin for '-'."""
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _script_from(args: argparse.Namespace, session: ScriptSession) -> str:
    """--script file if given, else the session's current script."""
    if getattr(args, "script", None):
        return _read_text(args.script)
    if not session.current_script.strip():
        raise ValueError("No script given and the session has no script yet (use --script FILE).")
    return session.current_script


def _format_analysis(analysis: ScriptAnalysis) -> str:
    lines = [
        "Hooking score: {:.1f}/10".format(analysis.hooking_score),
        analysis.hooking_comment,
        "",
    ]
    if analysis.logical_flaws:
        lines.append("Logical flaws:")
        for flaw in analysis.logical_flaws:
            lines.append("  - {}: {} -> {}".format(flaw.original, flaw.issue, flaw.suggestion))
        lines.append("")
    if analysis.boring_parts:
        lines.append("Boring parts:")
        for part in analysis.boring_parts:
            lines.append("  - {}: {}".format(part.original, part.reason))
        lines.append("")
    lines.append("Overall: {}".format(analysis.overall_comment))
    lines.append("Action plan: {}".format(analysis.action_plan))
    return "\n".join(lines)


def _write_outputs(session: ScriptSession, format_keys: List[str], stem: str, output_dir: Path) -> List[Path]:
    saved: List[Path] = []
    for key in format_keys:
        formatter = FORMATTERS[key]()
        outputs = formatter.format(session)
        if not outputs:
            _status("  {}: nothing to export".format(formatter.name))
            continue
        for output in outputs:
            path = output_dir / "{}{}".format(stem, output.suffix)
            path.write_text(output.content, encoding="utf-8")
            saved.append(path)
            _status("  Saved: {}".format(path.name))
    return saved


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _cmd_captions(args: argparse.Namespace, store: SessionStore) -> None:
    if args.input:
        text = _read_text(args.input)
    else:
        text = store.load().current_script
        if not text.strip():
            raise ValueError("No input file given and the session has no script yet.")

    config = TimingConfig(
        chars_per_second=args.cps,
        min_duration=args.min_duration,
        max_duration=args.max_duration,
        gap=args.gap,
        long_sentence_chars=args.long_sentence_chars,
    )
    srt = generate_timed_captions(text, config)

    if args.output:
        path = export_captions(srt, Path(args.output).name, Path(args.output).parent)
        _status("Saved: {}".format(path))
    else:
        sys.stdout.write(srt)


async def _cmd_topics(args: argparse.Namespace, store: SessionStore) -> None:
    session = store.load()
    if args.script:
        session.original_script = _read_text(args.script)
    if not session.original_script.strip():
        raise ValueError("No script or idea given (use --script FILE).")

    _status("Suggesting topics...")
    async with _open_generator() as generator:
        topics = await generator.suggest_topics(session.original_script)

    session.suggested_topics = topics
    store.save(session)
    for i, topic in enumerate(topics, 1):
        print("{}. {}".format(i, topic))


async def _cmd_script(args: argparse.Namespace, store: SessionStore) -> None:
    session = store.load()
    if args.original:
        session.original_script = _read_text(args.original)

    topic = args.topic
    if topic is None and args.pick is not None:
        if not 1 <= args.pick <= len(session.suggested_topics):
            raise ValueError("--pick must be between 1 and {}".format(len(session.suggested_topics)))
        topic = session.suggested_topics[args.pick - 1]
    topic = (topic or session.selected_topic).strip()
    if not topic:
        raise ValueError("No topic given (use --topic TEXT or --pick N).")

    _status("Writing {} script for: {}".format(args.style, topic))
    async with _open_generator() as generator:
        if args.style == "yadam":
            script = await generator.generate_yadam_script(
                topic, session.original_script, session.history_context()
            )
        else:
            script = await generator.generate_script(
                topic, session.original_script, session.history_context()
            )

    session.record_script(topic, script)
    store.save(session)
    print(script)


async def _cmd_analyze(args: argparse.Namespace, store: SessionStore) -> None:
    session = store.load()
    script = _script_from(args, session)

    _status("Analyzing script ({} chars)...".format(len(script)))
    async with _open_generator() as generator:
        analysis = await generator.analyze_script(script)

    session.analysis = analysis
    store.save(session)
    print(_format_analysis(analysis))


async def _cmd_refine(args: argparse.Namespace, store: SessionStore) -> None:
    session = store.load()
    script = _script_from(args, session)

    def progress(attempt: int, analysis: ScriptAnalysis) -> None:
        _status("  Attempt {}: hooking score {:.1f}".format(attempt, analysis.hooking_score))

    _status("Refining toward score {:.1f} (max {} attempts)...".format(args.target, args.max_attempts))
    async with _open_generator() as generator:
        result = await refine_script(
            script,
            generator.analyze_script,
            generator.improve_script,
            target_score=args.target,
            max_attempts=args.max_attempts,
            on_progress=progress,
        )

    if result.reached_target:
        _status("Target reached after {} attempt(s).".format(result.attempts))
    else:
        _status("Target not reached; best effort after {} attempt(s).".format(result.attempts))

    if result.script != script:
        session.record_script(session.selected_topic, result.script)
    session.analysis = result.analysis
    store.save(session)
    print(result.script)


async def _cmd_package(args: argparse.Namespace, store: SessionStore) -> None:
    session = store.load()
    script = _script_from(args, session)
    output_dir = Path(args.output_dir).resolve()
    if not output_dir.is_dir():
        raise FileNotFoundError("Output directory does not exist: {}".format(output_dir))

    async with _open_generator() as generator:
        context = await run_pipeline(
            production_package_steps(generator),
            {"script": script},
            on_status=_status,
        )

    session.title = context["title"]
    session.thumbnails = context["thumbnails"]
    session.image_prompts = context["image_prompts"]
    store.save(session)

    path = export_captions(context["captions"], "{}-subtitle.srt".format(args.stem), output_dir)
    _status("  Saved: {}".format(path.name))
    _write_outputs(session, ["image_prompts"], args.stem, output_dir)

    print("Title: {}".format(session.title))
    for thumb in session.thumbnails:
        overlay = " [{}]".format(thumb.text_overlay) if thumb.text_overlay else ""
        print("Thumbnail {}: {}{}".format(thumb.id, thumb.concept, overlay))


def _cmd_export(args: argparse.Namespace, store: SessionStore) -> None:
    session = store.load()
    output_dir = Path(args.output_dir).resolve()
    if not output_dir.is_dir():
        raise FileNotFoundError("Output directory does not exist: {}".format(output_dir))

    if args.formats:
        format_keys = [f.strip() for f in args.formats.split(",")]
        for key in format_keys:
            if key not in FORMATTERS:
                raise ValueError("Unknown format '{}'. Available formats: {}".format(
                    key, ", ".join(sorted(FORMATTERS.keys()))
                ))
    else:
        format_keys = list(FORMATTERS.keys())

    saved = _write_outputs(session, format_keys, args.stem, output_dir)
    _status("Done! Saved {} file(s) to {}".format(len(saved), output_dir))


def _cmd_serve(args: argparse.Namespace, store: SessionStore) -> None:
    import uvicorn

    uvicorn.run("script_studio.server.app:app", host=args.host, port=args.port)


_ASYNC_COMMANDS = {
    "topics": _cmd_topics,
    "script": _cmd_script,
    "analyze": _cmd_analyze,
    "refine": _cmd_refine,
    "package": _cmd_package,
}

_SYNC_COMMANDS = {
    "captions": _cmd_captions,
    "export": _cmd_export,
    "serve": _cmd_serve,
}


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    Kept separate from main() so tests can inspect it without running
    any command.
    """
    parser = argparse.ArgumentParser(
        prog="script-studio",
        description="Write YouTube scripts with Gemini and produce timed SRT subtitles.",
    )
    parser.add_argument("--version", action="version", version="%(prog)s {}".format(__version__))
    parser.add_argument(
        "--session",
        default=None,
        help="Session file (default: {}).".format(SESSION_PATH),
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("captions", help="Generate timed SRT subtitles (offline).")
    p.add_argument("input", nargs="?", default=None,
                   help="Text file to caption, '-' for stdin. Default: the session script.")
    p.add_argument("-o", "--output", default=None, help="Output .srt path (default: stdout).")
    p.add_argument("--cps", type=float, default=DEFAULT_CHARS_PER_SECOND,
                   help="Reading speed in chars/s (default: %(default)s).")
    p.add_argument("--min-duration", type=float, default=DEFAULT_MIN_DURATION,
                   help="Shortest cue in seconds (default: %(default)s).")
    p.add_argument("--max-duration", type=float, default=DEFAULT_MAX_DURATION,
                   help="Longest cue in seconds (default: %(default)s).")
    p.add_argument("--gap", type=float, default=DEFAULT_GAP,
                   help="Pause between cues in seconds (default: %(default)s).")
    p.add_argument("--long-sentence-chars", type=int, default=DEFAULT_LONG_SENTENCE_CHARS,
                   help="Split sentences longer than this at commas (default: %(default)s).")

    p = sub.add_parser("topics", help="Suggest follow-up video topics.")
    p.add_argument("--script", default=None, help="Script or idea file ('-' for stdin).")

    p = sub.add_parser("script", help="Write a new script for a topic.")
    p.add_argument("--topic", default=None, help="Topic text (default: the selected topic).")
    p.add_argument("--pick", type=int, default=None, help="Use suggested topic number N.")
    p.add_argument("--style", choices=("standard", "yadam"), default="standard",
                   help="Script style (default: %(default)s).")
    p.add_argument("--original", default=None, help="Reference script file.")

    p = sub.add_parser("analyze", help="Producer-style analysis of a script.")
    p.add_argument("--script", default=None, help="Script file (default: the session script).")

    p = sub.add_parser("refine", help="Analyze and rewrite until the hook score is high enough.")
    p.add_argument("--script", default=None, help="Script file (default: the session script).")
    p.add_argument("--target", type=float, default=REFINE_TARGET_SCORE,
                   help="Target hooking score (default: %(default)s).")
    p.add_argument("--max-attempts", type=int, default=REFINE_MAX_ATTEMPTS,
                   help="Maximum analysis rounds (default: %(default)s).")

    p = sub.add_parser("package", help="Title, thumbnails, image prompts, and subtitles in one run.")
    p.add_argument("--script", default=None, help="Script file (default: the session script).")
    p.add_argument("--output-dir", default=".", help="Where to write files (default: current directory).")
    p.add_argument("--stem", default="video", help="Output filename stem (default: %(default)s).")

    p = sub.add_parser("export", help="Write session exports to files (offline).")
    p.add_argument("--formats", default=None,
                   help="Comma-separated formats. Available: {}. Default: all.".format(
                       ", ".join(sorted(FORMATTERS.keys()))))
    p.add_argument("--output-dir", default=".", help="Where to write files (default: current directory).")
    p.add_argument("--stem", default="video", help="Output filename stem (default: %(default)s).")

    p = sub.add_parser("serve", help="Run the HTTP API.")
    p.add_argument("--host", default="127.0.0.1", help="Bind address (default: %(default)s).")
    p.add_argument("--port", type=int, default=8000, help="Port (default: %(default)s).")

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for ``script-studio`` and ``python -m script_studio``.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    store = SessionStore(args.session)

    try:
        if args.command in _ASYNC_COMMANDS:
            asyncio.run(_ASYNC_COMMANDS[args.command](args, store))
        else:
            _SYNC_COMMANDS[args.command](args, store)
    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        sys.exit(130)
    except GenerationError as e:
        print("Error: {} ({})".format(e.user_message, e.cause or e.operation), file=sys.stderr)
        sys.exit(1)
    except (PipelineError, RefinementError) as e:
        cause = e.__cause__
        detail = cause.user_message if isinstance(cause, GenerationError) else str(e)
        print("Error: {}".format(detail), file=sys.stderr)
        sys.exit(1)
    except (ValueError, OSError, GeminiAPIError) as e:
        # Config errors (missing API key, bad timing values), file errors
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
