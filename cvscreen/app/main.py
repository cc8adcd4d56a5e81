import logging

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from . import config
from .api import documents as documents_api
from .api import screening as screening_api
from .database import engine, init_db
from .services.ai_client import ai_configured
from .services.task_runner import get_runner, shutdown_runner
from .utils.error_handlers import register_exception_handlers

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="CV Screening Service")

app.include_router(documents_api.router)
app.include_router(screening_api.router)

register_exception_handlers(app)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {
        "status": "Backend running",
        "service": "CV Screening Service",
        "ai_provider": "gemini" if ai_configured() else "mock",
        "pending_tasks": get_runner().pending_count(),
    }


@app.get("/db/health")
def db_health():
    if getattr(app.state, "db_init_error", None):
        raise HTTPException(
            status_code=503,
            detail=f"DB init failed: {app.state.db_init_error}",
        )

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("DB health check failed: %s", e)
        raise HTTPException(
            status_code=503,
            detail=f"DB connection failed: {e}",
        ) from e

    return {"status": "ok"}


_default_origins = ["http://localhost:5173", "http://127.0.0.1:5173"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=[*_default_origins, *config.FRONTEND_ORIGINS],
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup() -> None:
    try:
        init_db()
        app.state.db_init_error = None
    except Exception as e:
        logger.exception("Database initialisation failed")
        app.state.db_init_error = str(e)
    get_runner()
    if not ai_configured():
        logger.warning("GEMINI_API_KEY not set; screening will use mock analysis")


@app.on_event("shutdown")
def on_shutdown() -> None:
    shutdown_runner(wait_for_pending=True)
