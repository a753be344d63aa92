"""
Sankal Samwad — FastAPI + Socket.IO Application Entry Point

Builds the per-process state (record store, call coordinator, grievance
intake), aggregates the HTTP routers, serves uploaded files, and wraps the
whole thing in a Socket.IO ASGI app for the real-time queue.
"""
import asyncio
import logging
import time
from contextlib import asynccontextmanager, suppress
from typing import Optional

import socketio
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from samwad.config import Settings, get_settings
from samwad.database import build_engine, build_session_factory, init_db
from samwad.errors import RecordStoreError
from samwad.realtime import build_socket_server, register_socket_handlers
from samwad.routes import admin_router, grievance_router, upload_router
from samwad.schemas.schemas import HealthResponse
from samwad.services.call_coordinator import CallCoordinator
from samwad.services.grievance_service import GrievanceIntake
from samwad.services.record_store import RecordStore
from samwad.services.upload_service import URL_PREFIX, UploadService
from samwad.utils.logger import boot_banner, setup_logging
from samwad.utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Assemble the FastAPI application and its Socket.IO server."""
    settings = settings or get_settings()
    setup_logging(settings)

    # ─── Durable store & live state ──────────────────────────────────
    engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)
    init_db(engine)
    store = RecordStore(build_session_factory(engine))

    sio = build_socket_server(settings)
    coordinator = CallCoordinator(sio, store, settings)
    intake = GrievanceIntake(store, coordinator, settings)
    register_socket_handlers(sio, coordinator, intake)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(boot_banner(settings))
        rebroadcast = None
        if settings.WAIT_REBROADCAST_SECONDS > 0:
            rebroadcast = asyncio.create_task(coordinator.run_wait_rebroadcast(settings.WAIT_REBROADCAST_SECONDS))
        yield
        if rebroadcast is not None:
            rebroadcast.cancel()
            with suppress(asyncio.CancelledError):
                await rebroadcast
        engine.dispose()

    # ─── Application Instance ───────────────────────────────────────
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description=(
            "District citizen-engagement portal: live queue to the District Magistrate, "
            "in-call chat relay and ratings, offline grievances with attachments, "
            "and session history for the official."
        ),
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.sio = sio
    app.state.coordinator = coordinator
    app.state.intake = intake
    app.state.uploads = UploadService(settings.UPLOAD_DIR, settings.ALLOWED_UPLOAD_EXTENSIONS)
    app.state.grievance_limiter = RateLimiter(settings.GRIEVANCE_RATE_LIMIT, settings.GRIEVANCE_RATE_WINDOW)
    app.state.boot_time = time.time()

    # ─── Middleware ──────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log every API request with timing."""
        start = time.time()
        response = await call_next(request)
        duration = round((time.time() - start) * 1000, 1)

        if request.url.path.startswith("/api"):
            logger.info("%s %s -> %s (%sms)", request.method, request.url.path, response.status_code, duration)

        return response

    @app.exception_handler(RecordStoreError)
    async def record_store_unavailable(request: Request, exc: RecordStoreError):
        logger.error("Record store failure on %s: %s", request.url.path, exc.details)
        return JSONResponse(status_code=503, content={"detail": "Record store unavailable"})

    # ─── API Routers ─────────────────────────────────────────────────
    app.include_router(upload_router)
    app.include_router(grievance_router)
    app.include_router(admin_router)

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    def deep_health():
        """Health check including record store and live queue state."""
        db_ok = store.ping()
        return HealthResponse(
            status="healthy" if db_ok else "degraded",
            database="connected" if db_ok else "disconnected",
            presence=coordinator.presence.status.value,
            queue_length=len(coordinator.queue),
            uptime_seconds=round(time.time() - app.state.boot_time, 1),
            version=settings.APP_VERSION,
        )

    # ─── Uploaded files ──────────────────────────────────────────────
    app.mount(URL_PREFIX, StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")

    return app


def build_asgi_app(settings: Optional[Settings] = None) -> socketio.ASGIApp:
    """Uvicorn factory: Socket.IO in front, FastAPI for everything else."""
    app = create_app(settings)
    return socketio.ASGIApp(app.state.sio, other_asgi_app=app)
