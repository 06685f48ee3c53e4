"""Structured logging utilities and middleware for FastAPI.

Every event is a single JSON object on one line, so that verification
verdicts, key server failures and HTTP requests can be grepped and parsed
by the same tooling.
"""

import json
import logging
import os
import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


LOG = logging.getLogger("hqsl")
if not LOG.hasHandlers():
    handler = logging.StreamHandler()
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(message)s")
    handler.setFormatter(formatter)
    LOG.addHandler(handler)
LOG.setLevel(os.getenv("HQSL_LOG_LEVEL", "INFO").upper())


def _emit(level: int, event: str, fields: dict) -> None:
    if not LOG.isEnabledFor(level):
        return
    record = {"level": logging.getLevelName(level).lower(), "event": event, **fields}
    LOG.log(level, json.dumps(record, default=str))


def log_debug(event: str, **kwargs: object) -> None:
    """Log a debug event as structured JSON."""
    _emit(logging.DEBUG, event, kwargs)


def log_info(event: str, **kwargs: object) -> None:
    """Log an informational event as structured JSON."""
    _emit(logging.INFO, event, kwargs)


def log_warning(event: str, **kwargs: object) -> None:
    """Log a warning event as structured JSON."""
    _emit(logging.WARNING, event, kwargs)


def log_error(event: str, **kwargs: object) -> None:
    """Log an error event as structured JSON."""
    _emit(logging.ERROR, event, kwargs)


_SENSITIVE_HEADERS = frozenset({"authorization", "x-api-key", "cookie"})


def _redact_headers(headers: dict) -> dict:
    """Redact API keys and credentials from a header mapping."""
    return {
        k: "<redacted>" if k.lower() in _SENSITIVE_HEADERS else v
        for k, v in headers.items()
    }


class RequestLogMiddleware(BaseHTTPMiddleware):
    """Structured HTTP request logging middleware.

    Card texts are short, so the body preview normally carries the whole
    card that was submitted for parsing or verification.
    """

    def __init__(self, app, max_body: int = 2048) -> None:
        super().__init__(app)
        self.max_body = max_body

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rid = request.headers.get("x-request-id", str(uuid.uuid4()))
        start = time.monotonic()

        body_preview = ""
        if request.method in {"POST", "PUT", "PATCH"}:
            raw = await request.body()
            body_preview = raw[: self.max_body].decode("utf-8", errors="replace")

            async def receive() -> dict:
                return {"type": "http.request", "body": raw, "more_body": False}

            request._receive = receive  # Starlette internal, OK in middleware

        response = await call_next(request)

        log_info(
            "http_request",
            request_id=rid,
            method=request.method,
            path=request.url.path,
            query=dict(request.query_params),
            headers=_redact_headers(dict(request.headers)),
            body_preview=body_preview,
            status=response.status_code,
            duration_ms=int((time.monotonic() - start) * 1000),
        )
        response.headers["x-request-id"] = rid
        return response
