"""FastAPI application: the browser-facing HTTP API.

WHY: The browser front end (and curl, scripts, automation tools) needs
an HTTP API for every generation step, the saved session, subtitle
previews and downloads, and exports. FastAPI provides request validation,
OpenAPI documentation, and background task support.

HOW: Endpoints are grouped by tag. Generation endpoints open a
GeminiClient per request, run one ScriptGenerator method, update the
saved session, and return the result. Auto-refinement is long-running,
so POST /refinements creates a job and runs the loop as a background task;
clients poll GET /refinements/{id}. Caption endpoints are offline.

RULES:
- Error responses use a consistent ErrorResponse schema
- GenerationError maps by cause: quota -> 429, credentials -> 401,
  malformed model output -> 502, anything else -> 500
- InvalidConfiguration (caption timing) -> 422; missing script -> 400
- One PacedCaller is shared by all requests so calls stay spaced apart
- Generation results are written by reloading the session after the
  Gemini call returns, so edits made meanwhile are kept
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, List, Optional
from urllib.parse import quote

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.responses import Response

from script_studio import __version__
from script_studio.api.client import GeminiClient
from script_studio.api.errors import (
    InvalidCredentialError,
    MalformedResponseError,
    QuotaExceededError,
)
from script_studio.api.pacing import CallPolicy, PacedCaller
from script_studio.core.generator import GenerationError, ScriptGenerator
from script_studio.core.refinement import RefinementError, RefinementResult, refine_script
from script_studio.core.session import ScriptSession, SessionStore, redact_secrets
from script_studio.formatters import FORMATTERS
from script_studio.server.jobs import Job, JobStatus, JobStore
from script_studio.server.models import (
    CaptionDownloadRequest,
    CaptionEntryModel,
    CaptionRequest,
    CaptionResponse,
    ChannelPlanRequest,
    ErrorResponse,
    FormatInfo,
    HealthResponse,
    OutputFormat,
    RefinementJobResponse,
    RefinementRequest,
    ScriptInput,
    ScriptKind,
    ScriptRequest,
    ScriptResponse,
    ScriptStyle,
    SessionScriptUpdate,
    ThumbnailRequest,
    TitleResponse,
    TopicsRequest,
    TopicsResponse,
)
from timed_captions import (
    InvalidConfiguration,
    TimingConfig,
    generate_caption_entries,
    serialize_srt,
)
from timed_captions.export import sanitize_filename

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App and shared state
# ---------------------------------------------------------------------------

job_store = JobStore()
session_store = SessionStore()
paced_caller = PacedCaller(CallPolicy.from_env())


async def _periodic_cleanup() -> None:
    """Run job cleanup every 5 minutes."""
    while True:
        await asyncio.sleep(300)
        job_store.cleanup_expired()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start periodic cleanup on startup, cancel on shutdown."""
    task = asyncio.create_task(_periodic_cleanup())
    yield
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


app = FastAPI(
    lifespan=lifespan,
    title="Script Studio API",
    description=(
        "REST API for writing YouTube scripts with Gemini: topic ideas, "
        "scripts, producer analysis, auto-refinement, shorts, character "
        "image prompts, titles, thumbnails, channel plans, and timed SRT "
        "subtitles."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@asynccontextmanager
async def open_generator() -> AsyncIterator[ScriptGenerator]:
    """Yield a ScriptGenerator bound to a fresh GeminiClient."""
    try:
        client = GeminiClient()
    except ValueError as exc:
        raise HTTPException(status_code=401, detail=str(exc))
    async with client:
        yield ScriptGenerator(client, caller=paced_caller)


def _status_for(exc: GenerationError) -> int:
    cause = exc.cause
    if isinstance(cause, QuotaExceededError):
        return 429
    if isinstance(cause, InvalidCredentialError):
        return 401
    if isinstance(cause, MalformedResponseError):
        return 502
    return 500


async def _generate(method, *args: Any) -> Any:
    """Await a generator method, translating failures to HTTPException."""
    try:
        return await method(*args)
    except GenerationError as exc:
        raise HTTPException(status_code=_status_for(exc), detail=exc.user_message)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


def _require_script(explicit: Optional[str], session: ScriptSession) -> str:
    script = explicit if explicit and explicit.strip() else session.current_script
    if not script.strip():
        raise HTTPException(
            status_code=400,
            detail="No script provided and the session has no script yet.",
        )
    return script


def _update_session(
    mutate: Optional[Callable[[ScriptSession], None]] = None, **fields: Any
) -> ScriptSession:
    """Reload the saved session, apply fields and mutate, and save it.

    Handlers call this after their Gemini call returns, never before, and
    there is no await between load and save.
    """
    session = session_store.load()
    for name, value in fields.items():
        setattr(session, name, value)
    if mutate is not None:
        mutate(session)
    session_store.save(session)
    return session


def _timing_config(req: CaptionRequest) -> TimingConfig:
    overrides = {
        name: value
        for name, value in (
            ("chars_per_second", req.chars_per_second),
            ("min_duration", req.min_duration),
            ("max_duration", req.max_duration),
            ("gap", req.gap),
            ("long_sentence_chars", req.long_sentence_chars),
        )
        if value is not None
    }
    try:
        return TimingConfig(**overrides)
    except InvalidConfiguration as exc:
        raise HTTPException(status_code=422, detail=str(exc))


def _content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback and an RFC 5987 UTF-8 name."""
    fallback = filename.encode("ascii", "ignore").decode("ascii").replace('"', "").strip()
    stem, dot, ext = fallback.rpartition(".")
    if not dot:
        stem, ext = fallback, ""
    if not stem.strip():
        fallback = "download" + dot + ext
    return "attachment; filename=\"{}\"; filename*=UTF-8''{}".format(
        fallback, quote(filename)
    )


def _refinement_to_dict(result: RefinementResult) -> Dict[str, Any]:
    return {
        "script": result.script,
        "analysis": result.analysis.to_dict(),
        "attempts": result.attempts,
        "reachedTarget": result.reached_target,
        "scoreHistory": [analysis.hooking_score for _, analysis in result.history],
    }


def _job_to_response(job: Job) -> RefinementJobResponse:
    return RefinementJobResponse(
        id=job.id,
        status=job.status.value,
        created_at=job.created_at,
        config=job.config,
        progress=job.progress,
        result=job.result,
        error=job.error,
    )


async def _run_refinement(job_id: str, store: JobStore) -> None:
    """Background task: run the refinement loop for a job.

    RULES:
    - Progress is written to the job after every analysis round
    - On success the refined script and its analysis go into the session
    - Any exception marks the job failed with its message
    - A job deleted while running leaves the session untouched
    """
    job = store.get_job(job_id)
    if job is None:
        return

    def report(attempt: int, analysis) -> None:
        store.update_job(job_id, progress={"attempt": attempt, "hookingScore": analysis.hooking_score})

    store.update_job(job_id, status=JobStatus.RUNNING)
    try:
        async with open_generator() as generator:
            result = await refine_script(
                job.script,
                generator.analyze_script,
                generator.improve_script,
                target_score=job.config["target_score"],
                max_attempts=job.config["max_attempts"],
                on_progress=report,
            )
    except RefinementError as exc:
        cause = exc.__cause__
        message = cause.user_message if isinstance(cause, GenerationError) else str(exc)
        logger.error("Refinement job %s failed: %s", job_id, exc)
        store.update_job(job_id, status=JobStatus.FAILED, error=message)
        return
    except Exception as exc:
        logger.exception("Refinement job %s failed", job_id)
        store.update_job(job_id, status=JobStatus.FAILED, error=str(exc))
        return

    if store.get_job(job_id) is None:
        logger.info("Refinement job %s was deleted; discarding its result", job_id)
        return

    def apply(session: ScriptSession) -> None:
        if result.script != job.script:
            session.record_script(session.selected_topic, result.script)
        session.analysis = result.analysis

    _update_session(apply)
    store.update_job(job_id, status=JobStatus.COMPLETED, result=_refinement_to_dict(result))


# ---------------------------------------------------------------------------
# Endpoints: Session
# ---------------------------------------------------------------------------


@app.get(
    "/session",
    response_model=Dict[str, Any],
    tags=["session"],
    summary="Get the saved session",
    description="Returns everything produced so far. Secrets are never included.",
)
async def get_session() -> Dict[str, Any]:
    return redact_secrets(session_store.load().to_dict())


@app.put(
    "/session/script",
    response_model=Dict[str, Any],
    tags=["session"],
    summary="Store a script in the session",
    description=(
        "Save a pasted original script, or record a manually edited "
        "version of the generated script in history."
    ),
)
async def put_session_script(body: SessionScriptUpdate) -> Dict[str, Any]:
    session = session_store.load()
    if body.kind == ScriptKind.original:
        session.original_script = body.script
    else:
        session.record_script(body.topic or session.selected_topic, body.script, edited=True)
    session_store.save(session)
    return redact_secrets(session.to_dict())


@app.delete(
    "/session",
    status_code=204,
    tags=["session"],
    summary="Clear the saved session",
)
async def delete_session() -> Response:
    session_store.clear()
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Endpoints: Generation
# ---------------------------------------------------------------------------

_GENERATION_ERRORS = {
    400: {"model": ErrorResponse, "description": "Missing script or topic"},
    401: {"model": ErrorResponse, "description": "Gemini API key missing or invalid"},
    429: {"model": ErrorResponse, "description": "Gemini quota exceeded"},
    502: {"model": ErrorResponse, "description": "Gemini returned unusable output"},
}


@app.post(
    "/topics",
    response_model=TopicsResponse,
    tags=["generation"],
    summary="Suggest follow-up topics",
    responses=_GENERATION_ERRORS,
)
async def suggest_topics(body: TopicsRequest) -> TopicsResponse:
    session = session_store.load()
    if body.script is not None:
        session.original_script = body.script
    script = session.original_script
    if not script.strip():
        raise HTTPException(status_code=400, detail="No script or idea provided.")

    async with open_generator() as generator:
        topics = await _generate(generator.suggest_topics, script)

    fields = {"suggested_topics": topics}
    if body.script is not None:
        fields["original_script"] = body.script
    _update_session(**fields)
    return TopicsResponse(topics=topics)


@app.post(
    "/scripts",
    response_model=ScriptResponse,
    tags=["generation"],
    summary="Write a script for a topic",
    description="style=standard writes an opening/body/closing script; style=yadam writes a Joseon folk tale.",
    responses=_GENERATION_ERRORS,
)
async def create_script(body: ScriptRequest) -> ScriptResponse:
    session = session_store.load()
    topic = (body.topic or session.selected_topic).strip()
    if not topic:
        raise HTTPException(status_code=400, detail="No topic provided or selected.")
    original = body.original if body.original is not None else session.original_script
    history = session.history_context()

    async with open_generator() as generator:
        if body.style == ScriptStyle.yadam:
            script = await _generate(generator.generate_yadam_script, topic, original, history)
        else:
            script = await _generate(generator.generate_script, topic, original, history)

    _update_session(lambda current: current.record_script(topic, script))
    return ScriptResponse(topic=topic, style=body.style, script=script)


@app.post(
    "/analysis",
    response_model=Dict[str, Any],
    tags=["generation"],
    summary="Producer-style analysis of a script",
    responses=_GENERATION_ERRORS,
)
async def analyze(body: ScriptInput) -> Dict[str, Any]:
    session = session_store.load()
    script = _require_script(body.script, session)

    async with open_generator() as generator:
        analysis = await _generate(generator.analyze_script, script)

    _update_session(analysis=analysis)
    return analysis.to_dict()


@app.post(
    "/shorts",
    response_model=Dict[str, Any],
    tags=["generation"],
    summary="Derive a shorts script",
    responses=_GENERATION_ERRORS,
)
async def create_shorts(body: ScriptInput) -> Dict[str, Any]:
    session = session_store.load()
    script = _require_script(body.script, session)

    async with open_generator() as generator:
        shorts = await _generate(generator.generate_shorts_script, script, session.history_context())

    _update_session(lambda current: current.shorts_scripts.append(shorts))
    return shorts.to_dict()


@app.post(
    "/image-prompts",
    response_model=List[Dict[str, Any]],
    tags=["generation"],
    summary="Character image prompts",
    responses=_GENERATION_ERRORS,
)
async def create_image_prompts(body: ScriptInput) -> List[Dict[str, Any]]:
    session = session_store.load()
    script = _require_script(body.script, session)

    async with open_generator() as generator:
        prompts = await _generate(generator.generate_image_prompts, script)

    _update_session(image_prompts=prompts)
    return [p.to_dict() for p in prompts]


@app.post(
    "/titles",
    response_model=TitleResponse,
    tags=["generation"],
    summary="Generate a video title",
    responses=_GENERATION_ERRORS,
)
async def create_title(body: ScriptInput) -> TitleResponse:
    session = session_store.load()
    script = _require_script(body.script, session)

    async with open_generator() as generator:
        title = await _generate(generator.generate_title, script)

    _update_session(title=title)
    return TitleResponse(title=title)


@app.post(
    "/thumbnails",
    response_model=List[Dict[str, Any]],
    tags=["generation"],
    summary="Thumbnail concepts",
    responses=_GENERATION_ERRORS,
)
async def create_thumbnails(body: ThumbnailRequest) -> List[Dict[str, Any]]:
    session = session_store.load()
    script = _require_script(body.script, session)
    title = (body.title or session.title).strip()
    if not title:
        raise HTTPException(status_code=400, detail="No title provided; generate a title first.")

    async with open_generator() as generator:
        thumbnails = await _generate(generator.generate_thumbnails, script, title)

    _update_session(thumbnails=thumbnails)
    return [t.to_dict() for t in thumbnails]


@app.post(
    "/channel-plans",
    response_model=Dict[str, Any],
    tags=["generation"],
    summary="Channel plan for a script and topic",
    responses=_GENERATION_ERRORS,
)
async def create_channel_plan(body: ChannelPlanRequest) -> Dict[str, Any]:
    session = session_store.load()
    script = _require_script(body.script, session)
    topic = (body.topic or session.selected_topic).strip()
    if not topic:
        raise HTTPException(status_code=400, detail="No topic provided or selected.")

    async with open_generator() as generator:
        plan = await _generate(generator.generate_channel_plan, script, topic)

    _update_session(lambda current: current.channel_plans.append(plan))
    return plan.to_dict()


# ---------------------------------------------------------------------------
# Endpoints: Refinement jobs
# ---------------------------------------------------------------------------


@app.post(
    "/refinements",
    response_model=RefinementJobResponse,
    status_code=201,
    tags=["refinement"],
    summary="Start auto-refinement",
    description=(
        "Alternates analysis and rewrites until the hooking score reaches "
        "target_score or max_attempts rounds have run. Returns a job ID "
        "immediately; poll GET /refinements/{id}."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "No script to refine"},
        429: {"model": ErrorResponse, "description": "Too many concurrent jobs"},
    },
)
async def create_refinement(
    body: RefinementRequest,
    background_tasks: BackgroundTasks,
) -> RefinementJobResponse:
    script = _require_script(body.script, session_store.load())
    try:
        job = job_store.create_job(
            script,
            config={"target_score": body.target_score, "max_attempts": body.max_attempts},
        )
    except ValueError as exc:
        raise HTTPException(status_code=429, detail=str(exc))

    background_tasks.add_task(_run_refinement, job.id, job_store)
    return _job_to_response(job)


@app.get(
    "/refinements/{job_id}",
    response_model=RefinementJobResponse,
    tags=["refinement"],
    summary="Get refinement job status",
    responses={404: {"model": ErrorResponse, "description": "Job not found"}},
)
async def get_refinement(job_id: str) -> RefinementJobResponse:
    job = job_store.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found: {}".format(job_id))
    return _job_to_response(job)


@app.get(
    "/refinements",
    response_model=List[RefinementJobResponse],
    tags=["refinement"],
    summary="List refinement jobs",
    description="Jobs that have not expired yet, oldest first.",
)
async def list_refinements() -> List[RefinementJobResponse]:
    return [_job_to_response(job) for job in job_store.list_jobs()]


@app.delete(
    "/refinements/{job_id}",
    status_code=204,
    tags=["refinement"],
    summary="Delete a refinement job",
    description=(
        "Forget a job and free its slot. A job still running in the "
        "background finishes, but its result is discarded."
    ),
    responses={404: {"model": ErrorResponse, "description": "Job not found"}},
)
async def delete_refinement(job_id: str) -> Response:
    if not job_store.delete_job(job_id):
        raise HTTPException(status_code=404, detail="Job not found: {}".format(job_id))
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Endpoints: Captions
# ---------------------------------------------------------------------------


def _build_captions(req: CaptionRequest) -> tuple:
    config = _timing_config(req)
    text = req.text if req.text is not None else session_store.load().current_script
    if not text.strip():
        raise HTTPException(status_code=400, detail="No text provided and the session has no script yet.")
    entries = generate_caption_entries(text, config)
    return entries, serialize_srt(entries)


@app.post(
    "/captions",
    response_model=CaptionResponse,
    tags=["captions"],
    summary="Preview timed subtitles",
    description="Segments the text into sentences and estimates a time window for each.",
    responses={
        400: {"model": ErrorResponse, "description": "No text"},
        422: {"model": ErrorResponse, "description": "Invalid timing parameters"},
    },
)
async def preview_captions(body: CaptionRequest) -> CaptionResponse:
    entries, srt = _build_captions(body)
    return CaptionResponse(
        entries=[
            CaptionEntryModel(index=e.index, start=e.start, end=e.end, text=e.text)
            for e in entries
        ],
        srt=srt,
    )


@app.post(
    "/captions/download",
    tags=["captions"],
    summary="Download timed subtitles as an .srt file",
    responses={
        400: {"model": ErrorResponse, "description": "No text"},
        422: {"model": ErrorResponse, "description": "Invalid timing parameters"},
    },
)
async def download_captions(body: CaptionDownloadRequest) -> Response:
    _, srt = _build_captions(body)
    filename = sanitize_filename(body.filename)
    return Response(
        content=srt.encode("utf-8"),
        media_type="application/x-subrip; charset=utf-8",
        headers={"Content-Disposition": _content_disposition(filename)},
    )


# ---------------------------------------------------------------------------
# Endpoints: Exports
# ---------------------------------------------------------------------------


@app.get(
    "/formats",
    response_model=List[FormatInfo],
    tags=["exports"],
    summary="List export formats",
)
async def list_formats() -> List[FormatInfo]:
    return [
        FormatInfo(key=OutputFormat(key), name=formatter_cls().name)
        for key, formatter_cls in sorted(FORMATTERS.items())
    ]


@app.get(
    "/exports/{format_key}",
    tags=["exports"],
    summary="Download the session in an export format",
    responses={404: {"model": ErrorResponse, "description": "Nothing to export"}},
)
async def export_session(format_key: OutputFormat, stem: str = "script") -> Response:
    session = session_store.load()
    outputs = FORMATTERS[format_key.value]().format(session)
    if not outputs:
        raise HTTPException(
            status_code=404,
            detail="Nothing to export for format '{}'.".format(format_key.value),
        )
    output = outputs[0]
    filename = "{}{}".format(Path(stem.replace("\\", "/")).name or "script", output.suffix)
    return Response(
        content=output.content.encode("utf-8"),
        media_type=output.media_type,
        headers={"Content-Disposition": _content_disposition(filename)},
    )


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api() -> None:
    """Entry point for the script-studio-api console script."""
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host="127.0.0.1", port=8000)
