from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from presupuestos.config import Settings, settings
from presupuestos.db import build_engine, build_session_factory, check_database_connection, connect_with_retry, init_models
from presupuestos.exceptions import AppException, AttachmentWriteError
from presupuestos.routes import api_router
from presupuestos.logging_config import setup_logging, get_logger
from presupuestos.middleware.logging_middleware import LoggingMiddleware
from presupuestos.services.attachment_manager import AttachmentManager
from presupuestos.services.object_store import LocalObjectStore, ObjectStore, SupabaseObjectStore
from presupuestos.services.record_store import SqlRecordStore

# Setup logging
setup_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)


def build_object_store(config: Settings) -> ObjectStore:
    if config.STORAGE_BACKEND == "supabase":
        if not config.SUPABASE_URL or not config.SUPABASE_KEY:
            raise RuntimeError("SUPABASE_URL and SUPABASE_KEY are required for the supabase storage backend")
        return SupabaseObjectStore(
            config.SUPABASE_URL,
            config.SUPABASE_KEY,
            config.STORAGE_BUCKET,
            timeout=config.STORAGE_TIMEOUT_SECONDS,
        )
    return LocalObjectStore(config.STORAGE_DIR, config.STORAGE_BUCKET)


@asynccontextmanager
async def lifespan(app: FastAPI):
    engine = None
    object_store = None
    try:
        logger.info("Starting up...")
        engine = build_engine(settings.DATABASE_URL, echo=settings.DB_ECHO)
        await connect_with_retry(engine)
        if settings.DATABASE_URL.startswith("sqlite"):
            await init_models(engine)

        object_store = build_object_store(settings)
        app.state.engine = engine
        app.state.attachment_manager = AttachmentManager(
            SqlRecordStore(build_session_factory(engine)),
            object_store,
        )
        logger.info(f"Attachment storage backend: {settings.STORAGE_BACKEND} (bucket {settings.STORAGE_BUCKET})")

        yield
    finally:
        logger.info("Shutting down...")
        if object_store is not None:
            await object_store.close()
        if engine is not None:
            await engine.dispose()


app = FastAPI(
    title="Presupuestos API",
    description="Budgets with file attachments",
    version="1.0.0",
    lifespan=lifespan
)

# Logging middleware
app.add_middleware(LoggingMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["DELETE", "GET", "POST", "PUT"],
    allow_headers=["*"],
)


# Global exception handler
@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    content = {"detail": exc.detail}
    if isinstance(exc, AttachmentWriteError):
        content["file_index"] = exc.index
        content["file_name"] = exc.file_name
        content["budget_id"] = exc.budget_id
    return JSONResponse(
        status_code=exc.status_code,
        content=content
    )


# Include routers
app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health(request: Request):
    engine = getattr(request.app.state, "engine", None)
    db_status = engine is not None and await check_database_connection(engine)
    return {
        "status": "ok" if db_status else "degraded",
        "database": "connected" if db_status else "disconnected"
    }
