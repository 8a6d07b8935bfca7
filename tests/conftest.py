"""
pytest configuration and fixtures.
"""

import json
import random
import socket
import threading
from typing import Generator, Optional, Tuple
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from orderboard import OrderBoardServer, ServerConfig
from orderboard.store import OrderStore


BUY_ORDER_JSON = (
    '{"kind":"buy","make_amount":0.001,"make_denomination":"sat",'
    '"take_amount":50.0,"take_denomination":"brl"}'
)


@pytest.fixture
def order_payload() -> dict:
    """A valid create-order payload."""
    return json.loads(BUY_ORDER_JSON)


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample GET /orders request."""
    return (
        b"GET /orders HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: application/json\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample POST /order request with a JSON body."""
    body = BUY_ORDER_JSON.encode()
    return (
        b"POST /order HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"Content-Type: application/json\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"\r\n"
        + body
    )


@pytest.fixture
def memory_store() -> Generator[OrderStore, None, None]:
    """An initialized, empty, in-memory order store."""
    store = OrderStore(":memory:")
    store.initialize()
    yield store
    store.close()


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source for repeatable sample orders."""
    return random.Random(1234)


def send_raw(port: int, data: bytes, timeout: float = 5.0) -> bytes:
    """
    Write raw bytes to the server and read until it closes the connection.
    """
    with socket.create_connection(("127.0.0.1", port), timeout=timeout) as sock:
        sock.sendall(data)
        chunks = []
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


@pytest.fixture
def raw_client():
    """send_raw(port, data) for tests that start their own server."""
    return send_raw


def split_response(raw: bytes) -> Tuple[int, dict, bytes]:
    """Split a raw response into (status code, headers, body)."""
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("utf-8").split("\r\n")
    status = int(lines[0].split()[1])
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers[name.strip()] = value.strip()
    return status, headers, body


class TestServer:
    """Order board running in a background thread."""

    __test__ = False  # not a test class

    def __init__(self, server: OrderBoardServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    @property
    def store(self) -> OrderStore:
        return self.server.store

    def start(self):
        """Start the server and wait until it is listening."""
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"configure_logging": False},
            daemon=True,
        )
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def request(self, method: str, path: str, body: Optional[str] = None) -> Tuple[int, dict, bytes]:
        """Send one request and return (status, headers, body)."""
        raw = f"{method} {path} HTTP/1.1\r\nHost: localhost\r\n"
        if body is not None:
            raw += f"Content-Type: application/json\r\nContent-Length: {len(body.encode())}\r\n"
        raw += "\r\n"
        if body is not None:
            raw += body
        return split_response(send_raw(self.port, raw.encode("utf-8")))

    def send(self, data: bytes) -> bytes:
        return send_raw(self.port, data)


@pytest.fixture
def test_server() -> Generator[TestServer, None, None]:
    """A live order board on an OS-assigned port, backed by an in-memory store."""
    store = OrderStore(":memory:")
    store.initialize()

    server = OrderBoardServer(
        ServerConfig(
            host="127.0.0.1",
            port=0,  # Let OS pick a free port
            timeout=5.0,
            log_level="WARNING",
        ),
        store=store,
    )

    test_srv = TestServer(server)
    test_srv.start()

    yield test_srv

    test_srv.stop()
