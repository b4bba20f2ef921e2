"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from repo_linecount.infrastructure.config import get_settings
from repo_linecount.interface.dependencies import shutdown, startup
from repo_linecount.interface.error_handlers import register_error_handlers
from repo_linecount.interface.routes import router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the shared HTTP client for the lifetime of the app."""
    settings = get_settings()
    await startup()
    logger.info(
        "Ready: concurrency=%d failure_policy=%s ordered=%s authenticated=%s",
        settings.concurrency,
        settings.failure_policy.value,
        settings.ordered_output,
        settings.github_token is not None,
    )
    try:
        yield
    finally:
        await shutdown()


def create_app() -> FastAPI:
    """Build and wire the FastAPI application."""
    app = FastAPI(
        title="GitHub Repository Line Counter",
        version="1.0.0",
        description=(
            "Walks the file tree of a public GitHub repository at a revision "
            "and reports files, lines, code, comments and blanks per language."
        ),
        lifespan=_lifespan,
    )

    register_error_handlers(app)
    app.include_router(router)

    @app.get("/health", include_in_schema=False)
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
