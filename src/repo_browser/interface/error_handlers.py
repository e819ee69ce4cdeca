"""Global exception handlers — translate domain errors to HTTP responses.

GitHub failures are rendered from the error taxonomy alone (kind, user
message, retryability) using the
``{"status": "error", "kind": ..., "message": ..., "retryable": ...}``
envelope.  Raw upstream status codes only matter for ``UNKNOWN`` errors.
"""

from __future__ import annotations

import logging
import math
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from repo_browser.domain.exceptions import (
    ErrorKind,
    GitHubApiError,
    GitHubRateLimitError,
    InvalidRepositoryNameError,
    get_error_kind,
    get_error_message,
    is_retryable_error,
)

logger = logging.getLogger(__name__)

_KIND_STATUS: dict[ErrorKind, int] = {
    ErrorKind.RATE_LIMIT: 429,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.AUTH: 401,
    ErrorKind.NETWORK: 502,
    ErrorKind.SERVER: 502,
}


def _error_json(
    status_code: int,
    kind: str,
    message: str,
    retryable: bool = False,
    **extra: object,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "status": "error",
            "kind": kind,
            "message": message,
            "retryable": retryable,
            **extra,
        },
    )


def status_for(exc: GitHubApiError) -> int:
    kind = get_error_kind(exc)
    if kind in _KIND_STATUS:
        return _KIND_STATUS[kind]
    if exc.status_code is not None and 400 <= exc.status_code < 500:
        return exc.status_code
    return 500


def register_error_handlers(app: FastAPI) -> None:
    """Attach exception handlers to the FastAPI application."""

    # ── GitHub taxonomy ─────────────────────────────────────────────────

    @app.exception_handler(GitHubRateLimitError)
    async def rate_limit_handler(request: Request, exc: GitHubRateLimitError) -> JSONResponse:
        logger.warning("Rate limited: %s", exc)
        response = _error_json(
            429,
            exc.kind.value,
            get_error_message(exc),
            is_retryable_error(exc),
            reset_at=exc.reset_time().isoformat(),
        )
        wait = max(math.ceil(exc.rate_limit.reset - time.time()), 0)
        response.headers["Retry-After"] = str(wait)
        return response

    @app.exception_handler(GitHubApiError)
    async def github_handler(request: Request, exc: GitHubApiError) -> JSONResponse:
        status_code = status_for(exc)
        logger.warning("%s (%s): %s", type(exc).__name__, exc.kind.value, exc)
        return _error_json(
            status_code,
            get_error_kind(exc).value,
            get_error_message(exc),
            is_retryable_error(exc),
        )

    # ── Input validation ────────────────────────────────────────────────

    @app.exception_handler(InvalidRepositoryNameError)
    async def invalid_name_handler(
        request: Request, exc: InvalidRepositoryNameError
    ) -> JSONResponse:
        return _error_json(422, "VALIDATION", str(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        messages = []
        for err in exc.errors():
            loc = " → ".join(str(p) for p in err.get("loc", []))
            messages.append(f"{loc}: {err.get('msg', 'validation error')}")
        return _error_json(422, "VALIDATION", "; ".join(messages))

    # ── Catch-all for unexpected errors ─────────────────────────────────

    @app.exception_handler(Exception)
    async def generic_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception")
        return _error_json(
            500,
            ErrorKind.UNKNOWN.value,
            "An unexpected error occurred. Please try again later.",
        )
