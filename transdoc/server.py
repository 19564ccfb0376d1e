"""
FastAPI backend for document translation.

Each upload gets its own in-memory TranslationPipeline (a "job"). Nothing is
persisted: jobs live in a process-local store until they are reset or expire.
"""

import asyncio
import time
import uuid
import logging
from datetime import datetime
from typing import Callable, Dict, Optional
from urllib.parse import quote

from fastapi import FastAPI, File, Form, HTTPException, UploadFile, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel

from .config import Settings, configure_logging, load_settings
from .errors import PipelineStateError, TransDocError, ValidationError
from .formats import FormatRegistry, default_registry
from .models import LANGUAGES, SourceDocument
from .pipeline import PipelineState, TranslationPipeline
from .translators import ModelCache, OnDeviceTranslator, Translator, build_translator

log = logging.getLogger(__name__)


class SessionStore:
    """
    In-process map of job id -> pipeline.

    A job that is not running expires ``ttl`` seconds after its last state
    change, taking its upload and artifact with it. Expired jobs are swept on
    every add and lookup.
    """

    def __init__(self, ttl: float = 3600, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.clock = clock
        self._jobs: Dict[str, TranslationPipeline] = {}
        self._touched: Dict[str, float] = {}

    def add(self, pipeline: TranslationPipeline) -> str:
        self.sweep()
        job_id = uuid.uuid4().hex
        self._jobs[job_id] = pipeline
        self._touched[job_id] = self.clock()
        pipeline.add_listener(lambda snapshot: self._touch(job_id))
        return job_id

    def _touch(self, job_id: str) -> None:
        if job_id in self._jobs:
            self._touched[job_id] = self.clock()

    def find(self, job_id: str) -> Optional[TranslationPipeline]:
        self.sweep()
        return self._jobs.get(job_id)

    def get(self, job_id: str) -> TranslationPipeline:
        pipeline = self.find(job_id)
        if pipeline is None:
            raise HTTPException(status_code=404, detail="Job not found")
        return pipeline

    def discard(self, job_id: str) -> None:
        self._jobs.pop(job_id, None)
        self._touched.pop(job_id, None)

    def sweep(self) -> int:
        """Drop expired jobs and return how many were removed."""
        now = self.clock()
        expired = [
            job_id for job_id, touched in self._touched.items()
            if now - touched >= self.ttl and not self._jobs[job_id].is_running
        ]
        for job_id in expired:
            self.discard(job_id)
        if expired:
            log.info("Evicted %d expired job(s)", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._jobs)


class JobStatus(BaseModel):
    jobId: str
    status: str  # idle, file_selected, awaiting_gate, extracting, translating, rebuilding, completed, error
    progress: int  # 0-100
    message: str
    outputFile: Optional[str] = None
    error: Optional[str] = None


def job_status(job_id: str, pipeline: TranslationPipeline) -> JobStatus:
    snapshot = pipeline.snapshot()
    return JobStatus(
        jobId=job_id,
        status=snapshot.state.value,
        progress=snapshot.progress,
        message=snapshot.message,
        outputFile=snapshot.output_file,
        error=snapshot.error,
    )


def create_app(settings: Optional[Settings] = None,
               translator: Optional[Translator] = None,
               registry: Optional[FormatRegistry] = None) -> FastAPI:
    """
    Build the API application.

    Args:
        settings: Application settings (default: loaded from the environment)
        translator: Translation engine shared by all jobs (default: from settings)
        registry: Format registry (default: all built-in formats)

    Returns:
        Configured FastAPI app
    """
    settings = settings or load_settings()
    registry = registry or default_registry()
    # One model cache per process, shared by every job
    translator = translator or build_translator(settings, ModelCache())
    sessions = SessionStore(ttl=settings.job_ttl_seconds)

    app = FastAPI(title="transdoc API", version="1.0")
    app.state.settings = settings
    app.state.sessions = sessions

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if isinstance(translator, OnDeviceTranslator) and not translator.placeholder:
        @app.on_event("startup")
        async def prewarm_models():
            # Load the default pair before the first upload arrives
            await asyncio.to_thread(
                translator.prewarm, LANGUAGES[0].display_name, LANGUAGES[1].display_name)

    @app.get("/")
    async def root():
        return {"message": "transdoc API", "version": "1.0"}

    @app.get("/api/health")
    async def health_check():
        return {"status": "ok", "timestamp": datetime.now().isoformat()}

    @app.get("/api/languages")
    async def list_languages():
        return [{"code": lang.code, "name": lang.display_name} for lang in LANGUAGES]

    @app.post("/api/translate")
    async def translate_document(
        file: UploadFile = File(...),
        sourceLanguage: str = Form("English"),
        targetLanguage: str = Form("Spanish"),
    ):
        """Upload a document and open a job waiting at the gate"""
        # Never buffer more than one byte past the limit
        content = await file.read(settings.max_upload_bytes + 1)
        if len(content) > settings.max_upload_bytes:
            raise HTTPException(status_code=413,
                                detail=f"File exceeds the {settings.max_upload_mb} MB limit")

        pipeline = TranslationPipeline(
            translator,
            registry=registry,
            strict_formulas=settings.strict_formulas,
        )
        try:
            pipeline.select_languages(sourceLanguage, targetLanguage)
            pipeline.select_file(SourceDocument(file.filename or "", content, file.content_type))
            pipeline.begin()
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))

        job_id = sessions.add(pipeline)
        log.info("Job %s created for %s (%d bytes)", job_id, file.filename, len(content))
        return {"success": True, "jobId": job_id, "status": pipeline.state.value}

    @app.post("/api/job/{job_id}/start", response_model=JobStatus)
    async def start_job(job_id: str):
        """Called once the gate has elapsed; runs the pipeline to completion"""
        pipeline = sessions.get(job_id)
        try:
            await pipeline.run()
        except PipelineStateError as e:
            raise HTTPException(status_code=409, detail=str(e))
        except TransDocError as e:
            # Failure is part of the job status, not an HTTP error
            log.warning("Job %s failed: %s", job_id, e)
        return job_status(job_id, pipeline)

    @app.get("/api/job/{job_id}", response_model=JobStatus)
    async def get_job_status(job_id: str):
        return job_status(job_id, sessions.get(job_id))

    @app.post("/api/job/{job_id}/reset")
    async def reset_job(job_id: str):
        pipeline = sessions.get(job_id)
        try:
            pipeline.reset()
        except PipelineStateError as e:
            raise HTTPException(status_code=409, detail=str(e))
        sessions.discard(job_id)
        return {"success": True, "jobId": job_id, "status": pipeline.state.value}

    @app.get("/api/download/{job_id}")
    async def download_file(job_id: str):
        pipeline = sessions.get(job_id)
        artifact = pipeline.artifact
        if pipeline.state != PipelineState.COMPLETED or artifact is None:
            raise HTTPException(status_code=404, detail="File not found")

        return Response(
            content=artifact.content,
            media_type=artifact.mime_type,
            headers={
                "Content-Disposition": f"attachment; filename*=UTF-8''{quote(artifact.file_name)}"
            },
        )

    @app.websocket("/ws/{job_id}")
    async def websocket_endpoint(websocket: WebSocket, job_id: str):
        """Push job status updates until the job finishes"""
        await websocket.accept()

        pipeline = sessions.find(job_id)
        if pipeline is None:
            await websocket.send_json({"jobId": job_id, "status": "unknown", "error": "Job not found"})
            await websocket.close()
            return

        updates: asyncio.Queue = asyncio.Queue()

        def listener(snapshot):
            updates.put_nowait(snapshot)

        pipeline.add_listener(listener)
        try:
            await websocket.send_json(job_status(job_id, pipeline).model_dump())
            snapshot = pipeline.snapshot()
            # A reset (back to IDLE) also ends the stream
            while not snapshot.is_terminal and snapshot.state != PipelineState.IDLE:
                snapshot = await updates.get()
                await websocket.send_json(job_status(job_id, pipeline).model_dump())
            await websocket.close()
        except WebSocketDisconnect:
            log.debug("Websocket for job %s disconnected", job_id)
        finally:
            pipeline.remove_listener(listener)

    return app


def run(host: str = "0.0.0.0", port: int = 3001) -> None:
    import uvicorn

    configure_logging(load_settings().log_level)
    uvicorn.run("transdoc.server:create_app", host=host, port=port, factory=True)
