"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status codes the order board answers with, and their reason phrases
(RFC 7231 Section 6).

    HTTP/1.1 404 Not Found
             ─── ─────────
              │      │
              │      └── Reason phrase (HTTPStatus.phrase)
              └───────── Status code   (int(HTTPStatus))

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes with reason phrases.

    IntEnum, so members compare and format as plain integers:

        >>> HTTPStatus.CREATED == 201
        True
        >>> f"{HTTPStatus.CREATED}"
        '201'
        >>> HTTPStatus.CREATED.phrase
        'Created'
    """

    # 2xx SUCCESS
    OK = 200                        # GET /orders, DELETE /order/*id
    CREATED = 201                   # POST /order
    NO_CONTENT = 204                # OPTIONS preflight

    # 4xx CLIENT ERRORS
    BAD_REQUEST = 400               # Missing or malformed order body
    NOT_FOUND = 404                 # Unknown order id or unknown endpoint

    # 5xx SERVER ERRORS
    INTERNAL_SERVER_ERROR = 500     # Database or encoding failure

    def __str__(self) -> str:
        return str(self.value)

    def __format__(self, format_spec: str) -> str:
        return format(self.value, format_spec)

    @property
    def phrase(self) -> str:
        """Reason phrase for the status line."""
        return _STATUS_PHRASES.get(self, "Unknown")


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.NO_CONTENT: "No Content",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
}
