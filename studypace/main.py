import os
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import HTTPException
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from studypace.database import engine, Base
from studypace.config import settings
from studypace.database import SessionLocal
from studypace.logging import log_config
from studypace.services.achievements import AchievementService

# Register every table on Base.metadata
import studypace.models  # noqa: F401

# API Routes
from studypace.api import documents, progress, feedback, sessions
from studypace.api import estimates, sprints, achievements, analytics, stats

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):

    # Silence Uvicorn's default access logger to reduce noise
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    # Ensure directories exist (Safe to run multiple times)
    settings.log_dir.mkdir(parents=True, exist_ok=True)
    if settings.database_url.startswith("sqlite:///./"):
        Path(settings.database_url.removeprefix("sqlite:///")).parent.mkdir(parents=True, exist_ok=True)

    # SETUP LOGGING
    # Each worker configures its own logger instance pointing to the same file.
    logger = log_config.setup_logging(settings.log_level)
    logger.info(f"Worker process PID:{os.getpid()} startup (Log Level: {settings.log_level})")

    # Alembic owns the schema in production; create_all covers fresh dev databases
    Base.metadata.create_all(bind=engine)

    # -- Seed the achievement catalog (Safe, idempotent)
    db = SessionLocal()
    try:
        AchievementService(db).initialize_catalog()
        db.commit()
    finally:
        db.close()

    yield

    logger.info(f"Worker {os.getpid()} shutting down...")


app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Global exception handler
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    # API clients get the raw detail plus any auth headers (WWW-Authenticate)
    if request.url.path.startswith("/api"):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=exc.headers
        )

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail}
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unexpected error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"}
    )


# --- ROUTER REGISTRATION ---
app.include_router(documents.router, prefix="/api/documents", tags=["documents"])
app.include_router(progress.router, prefix="/api/progress", tags=["progress"])
app.include_router(feedback.router, prefix="/api/feedback", tags=["feedback"])
app.include_router(sessions.router, prefix="/api/sessions", tags=["sessions"])
app.include_router(estimates.router, prefix="/api/estimates", tags=["estimates"])
app.include_router(sprints.router, prefix="/api/sprints", tags=["sprints"])
app.include_router(achievements.router, prefix="/api/achievements", tags=["achievements"])
app.include_router(analytics.router, prefix="/api/analytics", tags=["analytics"])
app.include_router(stats.router, prefix="/api/stats", tags=["stats"])


@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": "studypace"}
