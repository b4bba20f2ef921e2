"""Global exception handlers — translate domain errors to HTTP responses.

Each domain exception maps to a specific HTTP status code and the
standard ``{"status": "error", "message": "..."}`` envelope.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from repo_linecount.domain.exceptions import (
    AggregationAbortedError,
    GitHubRateLimitError,
    RemoteError,
    RepoLinecountError,
    RepositoryAccessDeniedError,
    RepositoryNotFoundError,
    UrlParseError,
    WalkError,
)

logger = logging.getLogger(__name__)

_EXCEPTION_STATUS: list[tuple[type[RepoLinecountError], int]] = [
    (UrlParseError, 422),
    (RepositoryNotFoundError, 404),
    (RepositoryAccessDeniedError, 403),
    (GitHubRateLimitError, 429),
    (RemoteError, 502),
    (AggregationAbortedError, 502),
    (RepoLinecountError, 500),
]


def status_for(exc: BaseException) -> int:
    """Return the HTTP status for *exc*; a failed walk reports its cause."""
    if isinstance(exc, WalkError):
        exc = exc.cause
    for exc_type, code in _EXCEPTION_STATUS:
        if isinstance(exc, exc_type):
            return code
    return 500


def _error_json(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": "error", "message": message},
    )


def register_error_handlers(app: FastAPI) -> None:
    """Attach exception handlers to the FastAPI application."""

    # ── Domain exceptions ───────────────────────────────────────────────

    @app.exception_handler(RepoLinecountError)
    async def domain_handler(request: Request, exc: RepoLinecountError) -> JSONResponse:
        status_code = status_for(exc)
        logger.warning("%s: %s", type(exc).__name__, exc)
        return _error_json(status_code, str(exc))

    # ── Pydantic / FastAPI validation errors ────────────────────────────

    @app.exception_handler(RequestValidationError)
    async def validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        messages = []
        for err in exc.errors():
            loc = " → ".join(str(p) for p in err.get("loc", []))
            messages.append(f"{loc}: {err.get('msg', 'validation error')}")
        return _error_json(422, "; ".join(messages))

    # ── Catch-all for unexpected errors ─────────────────────────────────

    @app.exception_handler(Exception)
    async def generic_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception")
        return _error_json(500, "An unexpected error occurred. Please try again later.")
