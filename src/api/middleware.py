"""API middleware: CORS, request context, and error-to-JSON conversion.

# ─── MIDDLEWARE EXECUTION ORDER ────────────────────────────────────────
#
# Starlette middleware is a stack (last added runs first):
#
#   In main.py:
#     app.add_middleware(ErrorHandlingMiddleware)   # added 1st, inner
#     app.add_middleware(RequestLoggingMiddleware)  # added 2nd, outer
#
#   Request flow:
#     Client → RequestLogging → ErrorHandling → route handler
#
# RequestLoggingMiddleware binds the request id before anything else runs,
# so the ``application_error`` event and every ``ingestion_*`` event of
# the same upload carry it.  It also sees the final status code chosen by
# ErrorHandlingMiddleware.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from src.api.schemas import ErrorResponse
from src.utils.errors import (
    ConfigurationError,
    ExtractionError,
    GoncalinhoError,
    LLMError,
    StoreError,
    UnsupportedFormatError,
)
from src.utils.logging import (
    REQUEST_ID_HEADER,
    current_request_id,
    get_logger,
    new_request_id,
    request_context,
)

_logger: structlog.BoundLogger = get_logger(__name__)

# First match wins, checked against the raised error and then each
# ``__cause__`` in turn.  A ProcessingError wrapping a corrupt PDF is the
# client's fault (422); one wrapping a failed store write is not (503).
_STATUS_BY_ERROR: tuple[tuple[type[GoncalinhoError], int], ...] = (
    (UnsupportedFormatError, 415),
    (ExtractionError, 422),
    (StoreError, 503),
    (LLMError, 502),
    (ConfigurationError, 500),
)


def error_status(exc: BaseException) -> int:
    """Return the HTTP status for an application error.

    Walks the explicit cause chain so wrapper errors such as
    ``ProcessingError`` take the status of what actually failed.  Errors
    with no mapped type anywhere in the chain are plain 500s.
    """
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        for error_type, status in _STATUS_BY_ERROR:
            if isinstance(current, error_type):
                return status
        current = current.__cause__
    return 500


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware to the FastAPI application.

    Parameters
    ----------
    app:
        The FastAPI application instance.
    allowed_origins:
        Explicit list of allowed origins.  Defaults to ``["*"]``; the
        request-id header is exposed so browser clients can quote it.
    """
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )


# ---------------------------------------------------------------------------
# Request context and logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and log it once it completes.

    The id comes from the caller's ``X-Request-ID`` header when present,
    otherwise a fresh one is minted.  It is bound into structlog's context
    variables for the whole request and echoed in the response header.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = new_request_id(request.headers.get(REQUEST_ID_HEADER))
        start = time.perf_counter()
        response: Response | None = None

        with request_context(request_id):
            try:
                response = await call_next(request)
                response.headers[REQUEST_ID_HEADER] = request_id
                return response
            finally:
                _logger.info(
                    "http_request",
                    method=request.method,
                    path=str(request.url.path),
                    status=response.status_code if response else 500,
                    duration_ms=round((time.perf_counter() - start) * 1000, 2),
                )


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turn ``GoncalinhoError`` subclasses into ``ErrorResponse`` bodies.

    The status follows :func:`error_status`.  The client gets the class
    name, message and request id; the chained cause is logged only.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except GoncalinhoError as exc:
            status = error_status(exc)
            log = _logger.warning if status < 500 else _logger.error
            log(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                cause=repr(exc.__cause__) if exc.__cause__ else None,
                status=status,
                path=str(request.url.path),
            )
            body = ErrorResponse(
                error=type(exc).__name__,
                detail=exc.message,
                request_id=current_request_id(),
            )
            return JSONResponse(status_code=status, content=body.model_dump())
