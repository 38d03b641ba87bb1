"""
FastAPI application for Show Ingest.
"""

from __future__ import annotations

import importlib.metadata
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import get_settings
from .db.base import get_db, init_database
from .log_config import configure_logging
from .routes import routers

logger = structlog.get_logger()

settings = get_settings()


def _package_version() -> str:
    try:
        return importlib.metadata.version("show-ingest")
    except importlib.metadata.PackageNotFoundError:
        return "0.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    configure_logging(settings)
    logger.info("app_starting", app_name=settings.app_name, environment=settings.environment)

    try:
        init_database()
    except SQLAlchemyError as e:
        logger.error("app_start_failed", error=str(e))
        raise

    yield

    logger.info("app_stopped")


app = FastAPI(
    title=settings.app_name,
    description="Imports Mixcloud radio shows into the database and Storyblok",
    version=_package_version(),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.app_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for router in routers:
    app.include_router(router)


@app.get("/healthz", tags=["system"])
def healthz(db: Session = Depends(get_db)) -> JSONResponse:
    """Health check endpoint, including a database round trip."""
    try:
        db.execute(text("SELECT 1"))
        db_ok = True
    except SQLAlchemyError as e:
        logger.error("healthz_db_check_failed", error=str(e))
        db_ok = False

    return JSONResponse(
        status_code=200 if db_ok else 503,
        content={"ok": db_ok, "db": db_ok},
    )


@app.get("/version", tags=["system"])
def version() -> dict[str, str]:
    """Return the version of the application."""
    return {"version": _package_version()}
