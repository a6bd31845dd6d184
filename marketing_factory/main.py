import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from marketing_factory.config import settings
from marketing_factory.db.base import SessionLocal, engine, init_db
from marketing_factory.routers import health, images, influencers, social, videos, workflows
from marketing_factory.workflows.errors import WorkflowFailure
from marketing_factory.workflows.video_states import sweep_stale_videos

logger = logging.getLogger(__name__)

_MISSING_ERROR_TYPES = {"missing", "string_too_short"}


def validation_error_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    missing = []
    for error in errors:
        if error.get("type") in _MISSING_ERROR_TYPES:
            loc = error.get("loc") or ()
            name = str(loc[-1]) if len(loc) > 1 else "body"
            if name not in missing:
                missing.append(name)
    if missing:
        return f"Missing required fields: {', '.join(missing)}"
    if not errors:
        return "Invalid request"
    message = str(errors[0].get("msg") or "Invalid request")
    return message.removeprefix("Value error, ")


@asynccontextmanager
async def _app_lifespan(_app: FastAPI) -> AsyncIterator[None]:
    init_db()
    session = SessionLocal()
    try:
        sweep_stale_videos(session, older_than_seconds=settings.VIDEO_STALE_AFTER_SECONDS)
    finally:
        session.close()
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="AI Marketing Factory API",
        default_response_class=ORJSONResponse,
        lifespan=_app_lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=sorted(set(settings.BACKEND_CORS_ORIGINS)),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> ORJSONResponse:
        return ORJSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> ORJSONResponse:
        return ORJSONResponse(status_code=400, content={"error": validation_error_message(exc)})

    @app.exception_handler(WorkflowFailure)
    async def workflow_failure_handler(_request: Request, exc: WorkflowFailure) -> ORJSONResponse:
        content = {"error": exc.error}
        if exc.details:
            content["details"] = exc.details
        return ORJSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(_request: Request, exc: Exception) -> ORJSONResponse:
        logger.exception("Unhandled server exception", exc_info=exc)
        return ORJSONResponse(status_code=500, content={"error": "Internal server error"})

    @app.get("/health")
    async def health_check() -> dict[str, bool]:
        return {"ok": True}

    @app.get("/health/db")
    def health_db() -> dict[str, str]:
        try:
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return {"db": "ok"}
        except Exception as exc:  # pragma: no cover - simple runtime check
            return {"db": f"error: {exc}"}

    app.include_router(workflows.router)
    app.include_router(images.router)
    app.include_router(influencers.router)
    app.include_router(videos.router)
    app.include_router(social.router)
    app.include_router(health.router)

    return app


app = create_app()
