"""
Atelier Review Studio

FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from atelier.api.middleware.request_id import RequestIdMiddleware
from atelier.api.v1 import router as api_v1_router
from atelier.config import get_settings
from atelier.database import close_db, init_db
from atelier.kernel.errors import (
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from atelier.logging_config import configure_logging, get_logger
from atelier.schemas.api import HealthResponse

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Configure logging, create tables, and dispose the engine on shutdown."""
    configure_logging(
        log_level=settings.log_level,
        environment=settings.environment,
        debug=settings.debug,
    )

    logger.info("Starting %s v%s", settings.project_name, settings.version)
    await init_db()
    logger.info("Database initialized")

    yield

    logger.info("Shutting down...")
    await close_db()


app = FastAPI(
    title=settings.project_name,
    description="""
    Curriculum progression and review for visual-design classes.

    - **Progression**: per-student, per-track unlocked steps with reviewer overrides
    - **Submissions**: versioned renders grouped into chains per step and track
    - **Reviews**: approve / reject with feedback; approval unlocks the next step
    - **Feed**: cohort feed ordered by most recent activity, with chain navigation
    """,
    version=settings.version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

app.add_middleware(RequestIdMiddleware)


def _error(request: Request, status_code: int, detail: str) -> JSONResponse:
    content = {"detail": detail}
    req_id = getattr(request.state, "request_id", None)
    if req_id and status_code >= 500:
        content["request_id"] = req_id
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    """Blocked user action; nothing was written."""
    return _error(request, status.HTTP_400_BAD_REQUEST, str(exc))


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error(request, status.HTTP_404_NOT_FOUND, str(exc))


@app.exception_handler(InvalidTransitionError)
async def invalid_transition_handler(request: Request, exc: InvalidTransitionError):
    return _error(request, status.HTTP_409_CONFLICT, str(exc))


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    """Store failures on read paths; write paths answer with their own notice."""
    logger.error("Persistence failure: %s", exc)
    return _error(request, status.HTTP_503_SERVICE_UNAVAILABLE, "Storage unavailable.")


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    detail = str(exc) if settings.debug else "Internal server error"
    return _error(request, status.HTTP_500_INTERNAL_SERVER_ERROR, detail)


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Check application health."""
    return HealthResponse(status="ok", version=settings.version)


app.include_router(api_v1_router, prefix=settings.api_v1_prefix)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "atelier.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
