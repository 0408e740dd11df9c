"""
FastAPI application entry point.

Configures logging, CORS, the catch-all error handler and the versioned
routers. Domain errors are HTTPExceptions and never reach the handler here.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mission_control.core.config import settings
from mission_control.core.database import async_engine
from mission_control.core.logging import configure_logging
from mission_control.routers import invites, members, wiki, workspaces

configure_logging()
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"
API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info(
        "Mission Control API %s starting (environment=%s, max_workspaces=%d)",
        API_VERSION,
        settings.ENVIRONMENT,
        settings.MAX_WORKSPACES,
    )
    yield
    await async_engine.dispose()
    logger.info("Mission Control API stopped")


app = FastAPI(
    title="Mission Control API",
    description="Workspaces, wiki and membership for agent teams",
    version=API_VERSION,
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url="/api/redoc" if settings.DEBUG else None,
    openapi_url="/api/openapi.json" if settings.DEBUG else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render anything that is not a domain error as a 500 payload."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    detail = {
        "code": "INTERNAL_SERVER_ERROR",
        "message": str(exc) if settings.DEBUG else "An unexpected error occurred",
        "details": {"type": type(exc).__name__} if settings.DEBUG else None,
    }
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": detail},
    )


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    return {
        "status": "ok",
        "environment": settings.ENVIRONMENT,
        "version": API_VERSION,
    }


for module, tag in (
    (workspaces, "Workspaces"),
    (wiki, "Wiki"),
    (members, "Members"),
    (invites, "Invites"),
):
    app.include_router(module.router, prefix=API_PREFIX, tags=[tag])
