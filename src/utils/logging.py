"""structlog configuration and request-scoped log context.

Every module logs through structlog with snake_case event names.  Output
is a coloured console in development and one JSON object per line in
production (``APP_ENV=production`` or ``json_output=True``).

Records from the standard ``logging`` module (uvicorn, httpx, the LLM
SDKs) go through the same processors, so a single log stream carries
both.  The SDK and HTTP client loggers are held at WARNING; at INFO
they print every request line and drown out the ingestion events.

Request correlation
-------------------
:func:`request_context` binds a ``request_id`` into structlog's
context variables for the duration of one HTTP request.  Anything logged
while it is active, including ``ingestion_*`` events emitted from worker
threads started with ``asyncio.to_thread`` (which copies the context),
carries the same id.
"""

from __future__ import annotations

import logging
import os
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

REQUEST_ID_HEADER = "X-Request-ID"

# Third-party loggers that are only interesting when something goes wrong.
_QUIET_LOGGERS: tuple[str, ...] = (
    "httpx",
    "httpcore",
    "openai",
    "anthropic",
    "multipart",
    "python_multipart",
    "uvicorn.access",
)

_MAX_REQUEST_ID_LENGTH = 64


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> None:
    """Install the structlog pipeline and route stdlib logging through it.

    Parameters
    ----------
    log_level:
        Minimum level (``DEBUG``, ``INFO``, ``WARNING``, ``ERROR``).
    json_output:
        Force JSON lines.  Production (``APP_ENV=production``) always
        gets JSON.
    """
    level = logging.getLevelName(log_level.upper())
    use_json = json_output or os.environ.get("APP_ENV", "development") == "production"

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
    ]
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer(ensure_ascii=False)
        if use_json
        else structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    )

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a structlog logger tagged with *name*, configuring defaults first."""
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(logger_name=name)


def new_request_id(supplied: str | None = None) -> str:
    """Reuse a caller-supplied request id when sane, else mint a short one."""
    if supplied and len(supplied) <= _MAX_REQUEST_ID_LENGTH and supplied.isprintable():
        return supplied
    return uuid.uuid4().hex[:16]


@contextmanager
def request_context(request_id: str, **fields: object) -> Iterator[str]:
    """Bind *request_id* (plus *fields*) to every log line inside the block."""
    with structlog.contextvars.bound_contextvars(request_id=request_id, **fields):
        yield request_id


def current_request_id() -> str | None:
    """Return the request id bound by :func:`request_context`, if any."""
    return structlog.contextvars.get_contextvars().get("request_id")
