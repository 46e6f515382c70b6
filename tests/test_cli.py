"""Tests for the ``script-studio`` command line.

HOW: _open_generator is patched to yield a MagicMock generator, so the
API-backed commands run their real control flow without a network. Each
test points --session at a file under tmp_path.
"""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from conftest import KOREAN_TWO_SENTENCES, KOREAN_TWO_SENTENCES_SRT, SAMPLE_SCRIPT, make_analysis
from script_studio.api.errors import QuotaExceededError
from script_studio.cli import build_parser, main
from script_studio.core.generator import GenerationError, ScriptGenerator
from script_studio.core.ir import ImagePrompt, Thumbnail
from script_studio.core.session import ScriptSession, SessionStore
from script_studio.config import SESSION_KEY


@pytest.fixture
def session_file(tmp_path):
    return tmp_path / "session.json"


@pytest.fixture
def store(session_file):
    return SessionStore(session_file, key=SESSION_KEY)


@pytest.fixture
def generator():
    gen = MagicMock()
    gen.suggest_topics = AsyncMock(return_value=["첫 주제", "둘째 주제", "셋째 주제"])
    gen.generate_script = AsyncMock(return_value="표준 대본")
    gen.generate_yadam_script = AsyncMock(return_value="야담 대본")
    gen.analyze_script = AsyncMock(return_value=make_analysis(6.5))
    gen.improve_script = AsyncMock(return_value="개선된 대본입니다.")
    gen.generate_title = AsyncMock(return_value="선비와 노인")
    gen.generate_thumbnails = AsyncMock(return_value=[Thumbnail(1, "클로즈업", "prompt", "충격")])
    gen.generate_image_prompts = AsyncMock(return_value=[ImagePrompt(1, "선비", "a scholar", "선비")])
    return gen


@pytest.fixture
def patched(generator):
    @asynccontextmanager
    async def fake_open_generator():
        yield generator

    with patch("script_studio.cli._open_generator", fake_open_generator):
        yield generator


def _run(session_file, *argv):
    main(["--session", str(session_file), *argv])


class TestParser:
    def test_captions_defaults(self):
        args = build_parser().parse_args(["captions"])
        assert args.input is None
        assert args.cps == 5.0
        assert args.min_duration == 2.0
        assert args.max_duration == 8.0

    def test_refine_defaults(self):
        args = build_parser().parse_args(["refine"])
        assert args.target == 8.0
        assert args.max_attempts == 5

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestCaptions:
    def test_file_to_stdout(self, tmp_path, session_file, capsys):
        src = tmp_path / "in.txt"
        src.write_text(KOREAN_TWO_SENTENCES, encoding="utf-8")
        _run(session_file, "captions", str(src))
        assert capsys.readouterr().out == KOREAN_TWO_SENTENCES_SRT

    def test_session_script_to_file(self, tmp_path, session_file, store, capsys):
        store.save(ScriptSession(original_script=KOREAN_TWO_SENTENCES))
        out = tmp_path / "sub.srt"
        _run(session_file, "captions", "-o", str(out))
        assert out.read_text(encoding="utf-8") == KOREAN_TWO_SENTENCES_SRT
        assert "Saved" in capsys.readouterr().err

    def test_no_input_and_empty_session_exits_1(self, session_file, capsys):
        with pytest.raises(SystemExit) as exc_info:
            _run(session_file, "captions")
        assert exc_info.value.code == 1
        assert "Error:" in capsys.readouterr().err

    def test_bad_timing_exits_1(self, tmp_path, session_file):
        src = tmp_path / "in.txt"
        src.write_text("하나.", encoding="utf-8")
        with pytest.raises(SystemExit) as exc_info:
            _run(session_file, "captions", str(src), "--gap", "-1")
        assert exc_info.value.code == 1


class TestTopicsAndScript:
    def test_topics_saved_and_printed(self, tmp_path, session_file, store, patched, capsys):
        src = tmp_path / "idea.txt"
        src.write_text(SAMPLE_SCRIPT, encoding="utf-8")
        _run(session_file, "topics", "--script", str(src))
        assert capsys.readouterr().out.splitlines() == ["1. 첫 주제", "2. 둘째 주제", "3. 셋째 주제"]
        session = store.load()
        assert session.original_script == SAMPLE_SCRIPT
        assert session.suggested_topics == ["첫 주제", "둘째 주제", "셋째 주제"]

    def test_script_pick_uses_suggested_topic(self, session_file, store, patched, capsys):
        store.save(ScriptSession(original_script="원본", suggested_topics=["첫 주제", "둘째 주제"]))
        _run(session_file, "script", "--pick", "2", "--style", "yadam")
        assert capsys.readouterr().out.strip() == "야담 대본"
        patched.generate_yadam_script.assert_awaited_once_with("둘째 주제", "원본", None)
        session = store.load()
        assert session.selected_topic == "둘째 주제"
        assert session.generated_new_script == "야담 대본"

    def test_pick_out_of_range_exits_1(self, session_file, store, patched):
        store.save(ScriptSession(suggested_topics=["하나"]))
        with pytest.raises(SystemExit) as exc_info:
            _run(session_file, "script", "--pick", "5")
        assert exc_info.value.code == 1

    def test_generation_error_message(self, session_file, store, patched, capsys):
        store.save(ScriptSession(original_script=SAMPLE_SCRIPT))
        patched.suggest_topics.side_effect = GenerationError(
            "topics", "주제 추천 중 오류가 발생했습니다.", QuotaExceededError(429, "quota")
        )
        with pytest.raises(SystemExit) as exc_info:
            _run(session_file, "topics")
        assert exc_info.value.code == 1
        assert "주제 추천 중 오류가 발생했습니다." in capsys.readouterr().err

    def test_network_failure_exits_1(self, session_file, store, instant_caller, capsys):
        store.save(ScriptSession(original_script=SAMPLE_SCRIPT))
        client = MagicMock()
        client.generate_json = AsyncMock(side_effect=httpx.ConnectError("refused"))

        @asynccontextmanager
        async def real_generator():
            yield ScriptGenerator(client, caller=instant_caller)

        with patch("script_studio.cli._open_generator", real_generator):
            with pytest.raises(SystemExit) as exc_info:
                _run(session_file, "topics")
        assert exc_info.value.code == 1
        assert "주제 추천 중 오류가 발생했습니다." in capsys.readouterr().err


class TestAnalyzeAndRefine:
    def test_analyze_prints_score(self, session_file, store, patched, capsys):
        store.save(ScriptSession(original_script=SAMPLE_SCRIPT))
        _run(session_file, "analyze")
        assert capsys.readouterr().out.startswith("Hooking score: 6.5/10")
        assert store.load().analysis.hooking_score == 6.5

    def test_refine_records_improved_script(self, session_file, store, patched, capsys):
        store.save(ScriptSession(original_script=SAMPLE_SCRIPT, selected_topic="주제"))
        patched.analyze_script.side_effect = [make_analysis(5.0), make_analysis(9.0)]
        _run(session_file, "refine", "--target", "8")
        captured = capsys.readouterr()
        assert captured.out.strip() == "개선된 대본입니다."
        assert "Target reached after 2 attempt(s)." in captured.err
        session = store.load()
        assert session.generated_new_script == "개선된 대본입니다."
        assert session.analysis.hooking_score == 9.0

    def test_refine_failure_shows_user_message(self, session_file, store, patched, capsys):
        store.save(ScriptSession(original_script=SAMPLE_SCRIPT))
        patched.analyze_script.side_effect = GenerationError("analysis", "대본 분석 중 오류가 발생했습니다.")
        with pytest.raises(SystemExit):
            _run(session_file, "refine")
        assert "대본 분석 중 오류가 발생했습니다." in capsys.readouterr().err


class TestPackageAndExport:
    def test_package_writes_files(self, tmp_path, session_file, store, patched, capsys):
        store.save(ScriptSession(original_script=KOREAN_TWO_SENTENCES))
        out_dir = tmp_path / "out"
        out_dir.mkdir()
        _run(session_file, "package", "--output-dir", str(out_dir), "--stem", "ep1")

        assert (out_dir / "ep1-subtitle.srt").read_text(encoding="utf-8") == KOREAN_TWO_SENTENCES_SRT
        doc = json.loads((out_dir / "ep1-image-prompts.json").read_text(encoding="utf-8"))
        assert doc["title"] == "선비와 노인"

        captured = capsys.readouterr()
        assert "Title: 선비와 노인" in captured.out
        assert "Thumbnail 1: 클로즈업 [충격]" in captured.out
        assert "[1/4] 제목 생성" in captured.err
        assert store.load().title == "선비와 노인"

    def test_package_missing_dir_exits_1(self, tmp_path, session_file, store, patched):
        store.save(ScriptSession(original_script=KOREAN_TWO_SENTENCES))
        with pytest.raises(SystemExit) as exc_info:
            _run(session_file, "package", "--output-dir", str(tmp_path / "missing"))
        assert exc_info.value.code == 1

    def test_export_selected_formats(self, tmp_path, session_file, store, capsys):
        store.save(ScriptSession(original_script=KOREAN_TWO_SENTENCES, title="제목"))
        _run(session_file, "export", "--formats", "plain_text,srt_captions",
             "--output-dir", str(tmp_path), "--stem", "ep")
        assert (tmp_path / "ep-script.txt").read_text(encoding="utf-8").startswith("제목\n\n")
        assert (tmp_path / "ep-subtitle.srt").exists()
        assert "Saved 2 file(s)" in capsys.readouterr().err

    def test_export_unknown_format_exits_1(self, tmp_path, session_file, capsys):
        with pytest.raises(SystemExit) as exc_info:
            _run(session_file, "export", "--formats", "docx", "--output-dir", str(tmp_path))
        assert exc_info.value.code == 1
        assert "Unknown format" in capsys.readouterr().err
