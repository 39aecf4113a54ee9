"""FastAPI application."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from resume_backend.app.api.routes.documents import router as documents_router
from resume_backend.app.api.routes.health import router as health_router
from resume_backend.app.api.routes.items import routers as item_routers
from resume_backend.app.api.routes.metrics import router as metrics_router
from resume_backend.app.api.routes.text_snippets import in_experience as snippets_router
from resume_backend.app.api.routes.text_snippets import library as snippet_library_router
from resume_backend.app.api.routes.users import router as users_router
from resume_backend.app.config import get_settings
from resume_backend.app.errors import AppClientError, AppError
from resume_backend.app.utils.logging import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    configure_logging(get_settings().log_level)
    yield


app = FastAPI(title="Resume Builder API", version="0.1.0", lifespan=lifespan)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render application errors as ``{"error": {"kind", "message"}}``.

    Server errors are logged with details and shown with a generic message.
    """
    if isinstance(exc, AppClientError):
        message = exc.message
    else:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        message = "Something went wrong. Please try again later."

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"kind": exc.kind, "message": message}},
    )


# Register routes
app.include_router(health_router, tags=["health"])
app.include_router(metrics_router, tags=["metrics"])
app.include_router(users_router)
app.include_router(documents_router)
for item_router in item_routers:
    app.include_router(item_router)
app.include_router(snippets_router)
app.include_router(snippet_library_router)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Resume Builder API", "version": "0.1.0"}
