"""
=============================================================================
ORDER BOARD SERVER
=============================================================================

Ties the pieces together:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   SocketServer ── accept ──► Connection                              │
    │                                   │                                  │
    │                                   ▼  one thread per connection       │
    │                         read_once() → RequestParser.parse()          │
    │                                   │                                  │
    │                                   ▼                                  │
    │                  MiddlewarePipeline (access log)                     │
    │                                   │                                  │
    │                                   ▼                                  │
    │                  Router.handle → OrderHandlers → OrderStore          │
    │                                   │                                  │
    │                                   ▼                                  │
    │                         send_response() → close()                    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
WHAT A WORKER DOES WITH BAD INPUT
=============================================================================

    client sent nothing, or hung up          → close, no reply
    read timed out / failed                  → close, no reply
    request line has < 2 tokens              → close, no reply
    handler raised something unexpected      → 500 {"error": ...}, logged

None of these reach the accept loop. A worker that dies takes only its own
connection with it.

=============================================================================
"""

import logging
import threading
from typing import Callable, Optional, Set

from .config import ServerConfig
from .core import SocketServer, Connection
from .handlers import OrderHandlers
from .http import (
    HTTPRequest,
    HTTPResponse,
    RequestParser,
    HTTPParseError,
    Router,
    internal_error,
)
from .middleware import MiddlewarePipeline, LoggingMiddleware
from .store import OrderStore


logger = logging.getLogger(__name__)

# Seconds to wait for in-flight workers on shutdown
SHUTDOWN_GRACE = 5.0


class OrderBoardServer:
    """
    The order board HTTP service.

        store = OrderStore("granola.db")
        store.initialize()
        seed_sample_orders(store, 7)

        server = OrderBoardServer(ServerConfig(port=8080), store=store)
        server.run()                  # blocks until Ctrl+C / SIGTERM

    Every connection is served on its own thread, and all of them share
    the one store, which serializes database access internally.
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        store: Optional[OrderStore] = None,
    ):
        self.config = config or ServerConfig()
        self.config.validate()

        self.store = store or OrderStore(self.config.database_path)

        self._socket_server = SocketServer(self.config)
        self._parser = RequestParser()

        self._router = Router()
        OrderHandlers(self.store).register(self._router)

        self._middleware = MiddlewarePipeline()
        if self.config.access_log:
            self._middleware.add(LoggingMiddleware(log_format=self.config.log_format))

        self._handler: Optional[Callable[[HTTPRequest], HTTPResponse]] = None

        self._workers: Set[threading.Thread] = set()
        self._workers_lock = threading.Lock()

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def address(self):
        """(host, port) actually listened on, once running."""
        return self._socket_server.address

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_ready(timeout)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def run(self, configure_logging: bool = True):
        """
        Listen and serve until shutdown() or a signal.

        Args:
            configure_logging: Set up the root logger from the config.
                Tests running the server in-process pass False.
        """
        if configure_logging:
            self.setup_logging()

        self.store.initialize()
        self._handler = self._middleware.wrap(self._router.handle)

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def shutdown(self):
        """Ask the accept loop to stop. run() returns once it has."""
        self._socket_server.shutdown()

    def setup_logging(self):
        """Configure the root logger from config.log_level."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("orderboard").setLevel(level)

    def print_banner(self):
        """Startup summary for interactive runs."""
        host, port = self.address
        print()
        print("=" * 64)
        print(f"  Order board listening on http://{host}:{port}")
        print(f"  Database: {self.store.path}")
        print("  Press Ctrl+C to stop")
        print("=" * 64)
        self._router.print_routes()

    def _shutdown(self):
        """
        Let in-flight workers finish (bounded), then release the store.
        Workers still running after the grace period are daemon threads
        and die with the process.
        """
        with self._workers_lock:
            workers = list(self._workers)

        if workers:
            logger.info(f"Waiting for {len(workers)} in-flight connection(s)...")
        for worker in workers:
            worker.join(timeout=SHUTDOWN_GRACE)

        self.store.close()
        logger.info("Server stopped")

    # =========================================================================
    # CONNECTION HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """Called by the accept loop: one fresh thread per connection."""
        worker = threading.Thread(
            target=self._run_worker,
            args=(conn,),
            name=f"conn-{conn.id}",
            daemon=True,
        )
        with self._workers_lock:
            self._workers.add(worker)
        worker.start()

    def _run_worker(self, conn: Connection):
        try:
            self._process_connection(conn)
        finally:
            with self._workers_lock:
                self._workers.discard(threading.current_thread())

    def _process_connection(self, conn: Connection):
        """
        Serve exactly one request on conn, then close it.

        Runs on the connection's own thread. Nothing raised here may
        escape: the accept loop must never notice a bad client.
        """
        with conn:
            try:
                raw = conn.read_once()
            except OSError as e:
                logger.warning(f"[{conn.id}] Read from {conn.client_ip} failed: {e}")
                return

            if not raw:
                logger.debug(f"[{conn.id}] Client closed without sending")
                return

            try:
                request = self._parser.parse(raw, conn.address)
            except HTTPParseError as e:
                logger.warning(f"[{conn.id}] Dropping unparseable request from {conn.client_ip}: {e}")
                return

            response = self.dispatch(request)
            conn.send_response(response.to_bytes())

    def dispatch(self, request: HTTPRequest) -> HTTPResponse:
        """
        Run a parsed request through middleware and router.

        Unexpected exceptions become a generic 500 so the client always
        gets an answer.
        """
        handler = self._handler or self._middleware.wrap(self._router.handle)
        try:
            return handler(request)
        except Exception as e:
            logger.exception(f"Unhandled error serving {request.method} {request.path}: {e}")
            return internal_error("Internal Server Error")

