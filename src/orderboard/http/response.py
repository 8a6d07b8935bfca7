"""
=============================================================================
HTTP RESPONSE ENCODER
=============================================================================

Builds the bytes the order board writes back on a connection.

=============================================================================
WHAT GOES ON THE WIRE
=============================================================================

Every response uses the same fixed header block. There is no Date, no
Server and no Connection header: the connection is closed right after
the write, which is all the framing the client needs besides
Content-Length.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     JSON RESPONSE                                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   HTTP/1.1 201 Created\r\n                                          │
    │   Content-Type: application/json\r\n                                │
    │   Access-Control-Allow-Origin: *\r\n                                │
    │   Access-Control-Allow-Methods: GET, POST, DELETE, OPTIONS\r\n      │
    │   Access-Control-Allow-Headers: Content-Type, Origin, Accept\r\n    │
    │   Content-Length: 142\r\n           ← byte length, not char length  │
    │   \r\n                                                              │
    │   {"id":"...","kind":"buy",...}                                     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     PREFLIGHT RESPONSE                              │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   HTTP/1.1 204 No Content\r\n                                       │
    │   Access-Control-Allow-Origin: *\r\n                                │
    │   Access-Control-Allow-Methods: GET, POST, DELETE, OPTIONS\r\n      │
    │   Access-Control-Allow-Headers: Content-Type, Origin, Accept\r\n    │
    │   Access-Control-Max-Age: 86400\r\n ← browser may cache for a day   │
    │   Content-Length: 0\r\n                                             │
    │   \r\n                                                              │
    │                                     ← no body, no Content-Type      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
WHY THE CORS HEADERS ARE ALWAYS THERE
=============================================================================

The board is consumed by a browser app served from a different origin.
Browsers refuse to hand a cross-origin response to JavaScript unless
Access-Control-Allow-Origin permits it, and they send an OPTIONS
"preflight" before any POST with a JSON body or any DELETE. Allowing
every origin on every response keeps both paths working.

=============================================================================
"""

import json
from dataclasses import dataclass, field
from typing import Dict, Union

from .status_codes import HTTPStatus


CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Origin, Accept",
}

PREFLIGHT_MAX_AGE = 86400


@dataclass
class HTTPResponse:
    """
    A response ready to be serialized.

    Headers are written in insertion order. Content-Length is appended
    last unless a handler already set it.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """e.g. "HTTP/1.1 404 Not Found" """
        return f"{self.version} {self.status} {self.status.phrase}"

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a header. Returns self for chaining."""
        self.headers[name] = value
        return self

    def set_body(self, body: Union[str, bytes]) -> "HTTPResponse":
        """Set the body; strings are encoded as UTF-8."""
        self.body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    @property
    def text(self) -> str:
        """Body decoded as UTF-8 (handy in tests and logs)."""
        return self.body.decode("utf-8")

    def to_bytes(self) -> bytes:
        """
        Serialize for socket.sendall().

            status line CRLF
            (name: value CRLF)*
            CRLF
            body
        """
        headers = dict(self.headers)
        if "Content-Length" not in headers:
            headers["Content-Length"] = str(len(self.body))

        lines = [self.status_line]
        lines.extend(f"{name}: {value}" for name, value in headers.items())
        lines.append("")

        head = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return head + self.body


# =============================================================================
# CONSTRUCTORS
# =============================================================================
#
# Handlers build responses through these, never by hand, so the header
# block stays identical across endpoints.
#
#     return json_response(HTTPStatus.OK, "[]")
#     return not_found(f"Order {order_id} not found")
#
# =============================================================================

def json_response(status: HTTPStatus, body: str) -> HTTPResponse:
    """
    A JSON response with the standard header block.

    Args:
        status: Status code
        body: Already-encoded JSON text, sent verbatim
    """
    headers = {"Content-Type": "application/json"}
    headers.update(CORS_HEADERS)
    return HTTPResponse(status=status, headers=headers).set_body(body)


def preflight_response() -> HTTPResponse:
    """204 answer to an OPTIONS preflight: CORS headers, no body."""
    headers = dict(CORS_HEADERS)
    headers["Access-Control-Max-Age"] = str(PREFLIGHT_MAX_AGE)
    headers["Content-Length"] = "0"
    return HTTPResponse(status=HTTPStatus.NO_CONTENT, headers=headers)


def error_response(status: HTTPStatus, message: str) -> HTTPResponse:
    """Error bodies always look like {"error": "<message>"}."""
    return json_response(status, json.dumps({"error": message}))


def message_response(status: HTTPStatus, message: str) -> HTTPResponse:
    """Informational bodies look like {"message": "<message>"}."""
    return json_response(status, json.dumps({"message": message}))


def ok(body: str) -> HTTPResponse:
    """200 OK with a pre-encoded JSON body."""
    return json_response(HTTPStatus.OK, body)


def created(body: str) -> HTTPResponse:
    """201 Created with a pre-encoded JSON body."""
    return json_response(HTTPStatus.CREATED, body)


def bad_request(message: str = "Bad Request") -> HTTPResponse:
    return error_response(HTTPStatus.BAD_REQUEST, message)


def not_found(message: str = "Not Found") -> HTTPResponse:
    return error_response(HTTPStatus.NOT_FOUND, message)


def internal_error(message: str = "Internal Server Error") -> HTTPResponse:
    """
    500 Internal Server Error.

    Store failures pass the database message straight through, which
    tells a client something about our schema. Acceptable for a
    bulletin board; keep it in mind before reusing this elsewhere.
    """
    return error_response(HTTPStatus.INTERNAL_SERVER_ERROR, message)
