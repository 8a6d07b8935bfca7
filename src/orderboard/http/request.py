"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns the bytes read from one connection into an HTTPRequest.

=============================================================================
WHAT WE LOOK AT
=============================================================================

The board only needs three things from a request: the method, the path,
and the body. Headers are carried along but never interpreted.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP REQUEST STRUCTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   POST /order HTTP/1.1\r\n          ← request line                  │
    │   ──┬─ ───┬──                                                       │
    │     │     └── path    (token 2)                                     │
    │     └──────── method  (token 1)                                     │
    │                                                                      │
    │   Host: localhost:8080\r\n          ← headers (ignored)             │
    │   Content-Type: application/json\r\n                                │
    │   \r\n                              ← blank line                    │
    │   {"kind":"buy", ...}               ← body: everything after it     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PARSING RULES
=============================================================================

1. Decode as UTF-8, replacing invalid sequences with U+FFFD.
   A client sending Latin-1 gets a 400 from the JSON decoder later,
   not a crash here.

2. The request line is the first line. It is split on whitespace:
   - fewer than 2 tokens → MalformedRequestLine
   - the version token, if any, is kept but not validated

3. The body is everything after the FIRST blank line.
   - "\r\n\r\n" is the standard separator; "\n\n" is accepted too
   - no separator at all → body is None (not "")

4. There is no Content-Length handling. The connection reads once, so
   whatever arrived in that read is the whole request.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


class HTTPParseError(Exception):
    """
    Raised when request bytes can't be parsed.

    Carries the status code a server would answer with. The order board
    never answers a request it can't parse (it just closes the
    connection), but the code is kept for logging.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class MalformedRequestLine(HTTPParseError):
    """The request line has fewer than two whitespace-separated tokens."""


@dataclass
class HTTPRequest:
    """
    A parsed request.

    Attributes:
        method:         Request method as sent ("GET", "POST", ...)
        path:           Request target as sent, query string included
        body:           Text after the blank line, or None if there was none
        version:        Third request-line token if present ("HTTP/1.1")
        headers:        Header lines, lowercase names (informational only)
        path_params:    Filled in by the router ("/order/*id" → {"id": ...})
        client_address: (ip, port) of the peer, for logs
        raw:            The bytes this request was parsed from
    """

    method: str
    path: str
    body: Optional[str] = None
    version: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    path_params: Dict[str, str] = field(default_factory=dict)
    client_address: Tuple[str, int] = ("", 0)
    raw: bytes = field(default=b"", repr=False)

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent", "")


class RequestParser:
    """
    Parses raw request bytes into HTTPRequest objects.

    Stateless; one instance is shared by all connection workers.

        Raw bytes
            │
            ▼
        decode (utf-8, errors="replace")
            │
            ├──► split off body at first blank line
            │
            ├──► first line → split() → method, path[, version]
            │         fewer than 2 tokens → MalformedRequestLine
            │
            └──► remaining head lines → headers dict
            │
            ▼
        HTTPRequest
    """

    # Checked in order; the earliest match in the text wins.
    BODY_SEPARATORS = ("\r\n\r\n", "\n\n")

    def parse(
        self,
        data: bytes,
        client_address: Tuple[str, int] = ("", 0),
    ) -> HTTPRequest:
        """
        Parse one request.

        Args:
            data: Bytes read from the connection
            client_address: Peer (ip, port)

        Returns:
            HTTPRequest

        Raises:
            MalformedRequestLine: Request line has fewer than 2 tokens.
        """
        text = data.decode("utf-8", errors="replace")

        head, body = self._split_body(text)
        lines = head.splitlines()
        request_line = lines[0] if lines else ""

        method, path, version = self._parse_request_line(request_line)

        return HTTPRequest(
            method=method,
            path=path,
            body=body,
            version=version,
            headers=self._parse_headers(lines[1:]),
            client_address=client_address,
            raw=data,
        )

    def _split_body(self, text: str) -> Tuple[str, Optional[str]]:
        """
        Split at the first blank line.

        Returns:
            (head, body) where body is None if no blank line exists.
        """
        best = None
        for separator in self.BODY_SEPARATORS:
            index = text.find(separator)
            if index != -1 and (best is None or index < best[0]):
                best = (index, separator)

        if best is None:
            return text, None

        index, separator = best
        return text[:index], text[index + len(separator):]

    def _parse_request_line(self, line: str) -> Tuple[str, str, str]:
        """
        "POST /order HTTP/1.1" → ("POST", "/order", "HTTP/1.1")

        Any run of whitespace separates tokens. Extra tokens after the
        version are ignored.
        """
        parts = line.split()
        if len(parts) < 2:
            raise MalformedRequestLine(f"Invalid request line: {line!r}")

        version = parts[2] if len(parts) > 2 else ""
        return parts[0], parts[1], version

    def _parse_headers(self, lines: list) -> Dict[str, str]:
        """
        Collect "Name: Value" lines. Malformed lines are skipped, and a
        repeated header keeps its last value.
        """
        headers: Dict[str, str] = {}
        for line in lines:
            name, sep, value = line.partition(":")
            if not sep or not name.strip():
                continue
            headers[name.strip().lower()] = value.strip()
        return headers


def parse_request(
    data: bytes,
    client_address: Tuple[str, int] = ("", 0),
) -> HTTPRequest:
    """Parse with a throwaway RequestParser."""
    return RequestParser().parse(data, client_address)
