"""
=============================================================================
ACCESS LOG MIDDLEWARE
=============================================================================

One log line per handled request, on the "orderboard.access" logger.

    TEXT (default):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ 127.0.0.1 - - [18/Oct/2026:10:55:36 +0000] "POST /order" 201 214 0.84ms
    │ ─────────          ─────────────────────    ───────────  ─── ─── ──────
    │ client             timestamp                method/path  st  size duration
    └─────────────────────────────────────────────────────────────────────┘

    JSON (--log-format json):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ {"request_id": "a1b2c3d4", "method": "POST", "path": "/order",      │
    │  "client_ip": "127.0.0.1", "user_agent": "curl/8.5.0",              │
    │  "status_code": 201, "content_length": 214, "duration_ms": 0.84,    │
    │  "timestamp": "18/Oct/2026:10:55:36 +0000"}                         │
    └─────────────────────────────────────────────────────────────────────┘

The request id only lives in the log line. It is not echoed back as a
header: the response header block is fixed.

Request bodies are never logged. They are small, but they are the
client's data.

=============================================================================
"""

import time
import json
import uuid
import logging
from dataclasses import dataclass, asdict

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


# Configure separately from the application loggers, e.g.
#   logging.getLogger("orderboard.access").setLevel(logging.WARNING)
logger = logging.getLogger("orderboard.access")

LOG_FORMATS = ("text", "json")


@dataclass
class RequestLog:
    """One access-log entry."""

    request_id: str
    method: str
    path: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        """Apache-style line."""
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.path}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


class LoggingMiddleware(Middleware):
    """
    Times each request and logs the outcome.

    Sits first in the pipeline so the duration covers routing, decoding
    and the store call.

        pipeline.add(LoggingMiddleware())                   # text
        pipeline.add(LoggingMiddleware(log_format="json"))  # json
    """

    def __init__(
        self,
        log_format: str = "text",
        log_level: int = logging.INFO,
    ):
        """
        Args:
            log_format: "text" or "json"
            log_level: Level the access lines are emitted at
        """
        if log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {LOG_FORMATS}, got {log_format!r}")

        self.log_format = log_format
        self.log_level = log_level

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        request_id = uuid.uuid4().hex[:8]
        start_time = time.perf_counter()

        try:
            response = next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"[{request_id}] Request failed: {request.method} {request.path} "
                f"- {type(e).__name__}: {e} ({duration_ms:.2f}ms)"
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000

        entry = RequestLog(
            request_id=request_id,
            method=request.method,
            path=request.path,
            client_ip=request.client_address[0] or "-",
            user_agent=request.user_agent or "-",
            status_code=int(response.status),
            content_length=len(response.body),
            duration_ms=duration_ms,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        if self.log_format == "json":
            logger.log(self.log_level, json.dumps(entry.to_dict()))
        else:
            logger.log(self.log_level, entry.to_text())

        return response
