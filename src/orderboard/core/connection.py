"""
=============================================================================
CONNECTION HANDLING
=============================================================================

Wraps one accepted client socket for the length of a single exchange.

=============================================================================
ONE READ, ONE WRITE
=============================================================================

TCP is a byte stream: a request may arrive split across several packets,
and a robust HTTP server keeps reading until it has the headers and then
Content-Length more bytes. The order board does not. It reads ONCE:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   accept()                                                           │
    │      │                                                               │
    │      ▼                                                               │
    │   recv(read_buffer_size)     ← whatever has arrived, up to the cap  │
    │      │                                                               │
    │      ▼                                                               │
    │   parse → route → handle                                             │
    │      │                                                               │
    │      ▼                                                               │
    │   sendall(response)                                                  │
    │      │                                                               │
    │      ▼                                                               │
    │   close()                                                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Requests are tiny (one JSON order) and clients write them in one go, so in
practice the single read sees everything. A request larger than the
buffer is silently cut at the buffer boundary, and a cut body usually
fails to decode and gets a 400.

=============================================================================
"""

import socket
import time
import logging
import uuid
from dataclasses import dataclass, field
from typing import Optional, Tuple


logger = logging.getLogger(__name__)


@dataclass
class Connection:
    """
    One client connection.

    Attributes:
        socket:      The accepted client socket
        address:     Peer (ip, port)
        buffer_size: Cap for the single read
        timeout:     Socket timeout in seconds, None to block
        id:          Short id for log lines
    """

    socket: socket.socket
    address: Tuple[str, int]
    buffer_size: int = 4096
    timeout: Optional[float] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    created_at: float = field(default_factory=time.time)
    closed: bool = field(default=False, repr=False)

    def __post_init__(self):
        # settimeout(None) also puts the socket back in blocking mode
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def age(self) -> float:
        return time.time() - self.created_at

    def read_once(self) -> bytes:
        """
        Read up to buffer_size bytes with a single recv().

        Returns:
            The bytes read. b"" means the client closed without sending.

        Raises:
            socket.timeout: Nothing arrived within the timeout.
            OSError: The read failed.
        """
        data = self.socket.recv(self.buffer_size)
        if len(data) == self.buffer_size:
            logger.debug(f"[{self.id}] Read filled the {self.buffer_size}-byte buffer; request may be truncated")
        return data

    def send_response(self, data: bytes) -> bool:
        """
        Write the full response.

        Returns:
            True if sent, False if the client was already gone.
        """
        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send to {self.client_ip} failed: {e}")
            return False

    def close(self) -> None:
        """
        Close the connection.

        SHUT_WR first, so the client sees EOF right after the response.
        Whatever the client sent past the single read is drained briefly
        before close(), otherwise the kernel answers the unread bytes with
        a reset that can destroy the response in flight.
        """
        if self.closed:
            return
        self.closed = True

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # peer already gone

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            pass  # socket.timeout is an OSError too

        try:
            self.socket.close()
        except OSError:
            pass

        logger.debug(f"[{self.id}] Connection from {self.client_ip} closed after {self.age * 1000:.1f}ms")

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
