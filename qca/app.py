from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Response
from fastapi.responses import FileResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles

from .config import Settings, load_settings
from .curriculum import QUANTUM_BANKING_TOPICS
from .export import log_filename, render_log_transcript, render_session_html, session_report_filename
from .gemini_client import GeminiClient
from .models import LogEntry, SelectTopicRequest, SelectTopicResponse, SessionSnapshot, TopicsResponse
from .orchestrator import GenerationGateway, TopicOrchestrator
from .session_store import SessionStore

BASE_DIR = Path(__file__).resolve().parent
ENV_PATHS = [BASE_DIR / ".env", (BASE_DIR / ".." / ".env").resolve()]

logger = logging.getLogger("qca.app")


def _configure_logging(level_name: str) -> None:
    log_level = getattr(logging, level_name, logging.INFO)
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=log_level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
    logging.getLogger("qca").setLevel(log_level)


def create_app(
    settings: Optional[Settings] = None,
    gateway: Optional[GenerationGateway] = None,
    store: Optional[SessionStore] = None,
) -> FastAPI:
    """Purpose: Build the FastAPI application around one session and its orchestrator.
    Inputs/Outputs: Optional Settings, gateway, and store; returns a FastAPI app.
    Side Effects / State: Loads .env files, configures logging, and constructs the
        Gemini gateway when none is given.
    Dependencies: GeminiClient, SessionStore, TopicOrchestrator, export helpers.
    Failure Modes: ConfigurationError from GeminiClient when the API key is missing or
        a placeholder, so the server refuses to start.
    If Removed: There is no HTTP surface to serve the frontend or API.
    Testing Notes: Pass a fake gateway and use fastapi.testclient.TestClient.
    """
    # Resolve configuration before anything can issue a request.
    if settings is None:
        for env_path in ENV_PATHS:
            if env_path.exists():
                load_dotenv(env_path, override=True)
        settings = load_settings()
    _configure_logging(settings.log_level)

    if gateway is None:
        gateway = GeminiClient(settings)
    store = store or SessionStore()
    orchestrator = TopicOrchestrator(gateway, store)

    app = FastAPI(title="Quantum Code Architect")
    app.state.store = store
    app.state.orchestrator = orchestrator
    frontend_dir = settings.frontend_dir
    if frontend_dir.is_dir():
        app.mount("/static", StaticFiles(directory=frontend_dir), name="static")

    # Endpoints touching the store are async so every mutation stays on the event loop.
    def snapshot() -> SessionSnapshot:
        return SessionSnapshot(
            started=store.started,
            status=store.status,
            history=list(store.history),
            suggested_topics=store.suggested_topics(),
        )

    @app.get("/", include_in_schema=False)
    def serve_index() -> FileResponse:
        return FileResponse(frontend_dir / "index.html")

    @app.get("/api/topics", response_model=TopicsResponse)
    async def list_topics() -> TopicsResponse:
        """Curriculum for the sidebar; locked after the first selection or while busy."""
        return TopicsResponse(
            topics=list(QUANTUM_BANKING_TOPICS),
            curriculum_locked=store.started or store.status.is_busy,
        )

    @app.get("/api/session", response_model=SessionSnapshot)
    async def get_session() -> SessionSnapshot:
        return snapshot()

    @app.post("/api/topics/select", response_model=SelectTopicResponse)
    async def select_topic(request: SelectTopicRequest) -> SelectTopicResponse:
        """Purpose: Run one topic request to completion and return the new session state.
        Inputs/Outputs: Input is SelectTopicRequest; output is the session snapshot plus
            whether the selection was accepted.
        Side Effects / State: Mutates the session through the orchestrator.
        Failure Modes: Generation failures are reported in status.last_error, not as 5xx.
        If Removed: Frontend cannot start an analysis.
        Testing Notes: Post a topic with a fake gateway and check history/status.
        """
        accepted = await orchestrator.select_topic(request.topic)
        return SelectTopicResponse(accepted=accepted, **snapshot().model_dump())

    @app.get("/api/logs", response_model=List[LogEntry])
    async def get_logs() -> List[LogEntry]:
        return list(store.logs)

    @app.get("/api/export/session")
    async def export_session() -> Response:
        """Download the session report, or 204 when there is nothing to export."""
        if not store.history:
            return Response(status_code=204)
        store.append_log("HTML download initiated.")
        document = render_session_html(store.history)
        filename = session_report_filename(datetime.now(timezone.utc).date())
        logger.info("session export records=%s", len(store.history))
        return Response(
            content=document,
            media_type="text/html",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @app.get("/api/export/logs")
    async def export_logs() -> Response:
        """Download the activity log transcript, or 204 when the log is empty."""
        if not store.logs:
            return Response(status_code=204)
        store.append_log("Log download initiated.")
        transcript = render_log_transcript(store.logs)
        filename = log_filename(datetime.now(timezone.utc))
        return PlainTextResponse(
            content=transcript,
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    return app
