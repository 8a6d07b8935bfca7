"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

The minimal slice of HTTP/1.1 the order board speaks: one request in, one
response out, connection closed.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ REQUEST PARSER (request.py)                                         │
    │   b"POST /order HTTP/1.1\r\n...\r\n\r\n{...}"                       │
    │       → HTTPRequest(method="POST", path="/order", body="{...}")     │
    ├─────────────────────────────────────────────────────────────────────┤
    │ ROUTER (router.py)                                                  │
    │   (method, path) → handler, with /order/*id style captures          │
    ├─────────────────────────────────────────────────────────────────────┤
    │ RESPONSE ENCODER (response.py)                                      │
    │   HTTPResponse(status=201, body=...) → status line, fixed CORS      │
    │   header block, Content-Length, body                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │ STATUS CODES (status_codes.py)                                      │
    │   HTTPStatus.CREATED → 201, phrase "Created"                        │
    └─────────────────────────────────────────────────────────────────────┘

What is deliberately missing: keep-alive, pipelining, chunked bodies,
Content-Length-driven reads. Each connection carries exactly one
exchange.

=============================================================================
"""

from .request import HTTPRequest, RequestParser, HTTPParseError, MalformedRequestLine
from .response import (
    HTTPResponse,
    json_response,
    preflight_response,
    error_response,
    message_response,
    ok,             # 200 OK
    created,        # 201 Created
    bad_request,    # 400 Bad Request
    not_found,      # 404 Not Found
    internal_error, # 500 Internal Server Error
)
from .router import Router, Route
from .status_codes import HTTPStatus

__all__ = [
    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "MalformedRequestLine",

    # Response encoding
    "HTTPResponse",
    "json_response",
    "preflight_response",
    "error_response",
    "message_response",
    "ok",
    "created",
    "bad_request",
    "not_found",
    "internal_error",

    # Routing
    "Router",
    "Route",

    # Status codes
    "HTTPStatus",
]
