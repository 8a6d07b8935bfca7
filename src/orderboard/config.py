"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Every knob the order board has, in one dataclass.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── orderboard --port 3000                                     │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── ORDERBOARD_PORT=3000 orderboard                            │
    │                                                                      │
    │   3. Default values (in this dataclass)                             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The CLI builds its argparse defaults from ServerConfig.from_env(), so an
explicit flag always beats the environment.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


ENV_PREFIX = "ORDERBOARD_"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("text", "json")


@dataclass
class ServerConfig:
    """
    Configuration for the order board server.

    NETWORK
    - host, port, backlog, read_buffer_size, timeout

    STORAGE
    - database_path, seed_count

    LOGGING
    - log_level, log_format, access_log
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"

    port: int = 8080
    """0 lets the OS pick a free port (tests use this)."""

    backlog: int = 128

    read_buffer_size: int = 4096
    """
    Bytes read from each connection, in a single recv().
    Anything the client sends beyond this is never seen.
    """

    timeout: Optional[float] = None
    """
    Per-connection socket timeout in seconds.
    None blocks until the client sends or hangs up.
    """

    # ─────────────────────────────────────────────────────────────────────
    # STORAGE
    # ─────────────────────────────────────────────────────────────────────

    database_path: str = "granola.db"
    """SQLite file, created on first start. ":memory:" works for tests."""

    seed_count: int = 7
    """Sample orders inserted when the board starts out empty."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"

    log_format: str = "text"
    """Access-log format: 'text' or 'json'."""

    access_log: bool = True

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Build a config from ORDERBOARD_* environment variables.

            ORDERBOARD_HOST          bind address      (127.0.0.1)
            ORDERBOARD_PORT          listen port       (8080)
            ORDERBOARD_READ_BUFFER   bytes per read    (4096)
            ORDERBOARD_TIMEOUT       seconds, unset = none
            ORDERBOARD_DB            SQLite path       (granola.db)
            ORDERBOARD_SEED_COUNT    sample orders     (7)
            ORDERBOARD_LOG_LEVEL     DEBUG..CRITICAL   (INFO)
            ORDERBOARD_LOG_FORMAT    text | json       (text)

        Malformed numbers raise ValueError here rather than at first use.
        """
        defaults = cls()
        timeout = os.getenv(ENV_PREFIX + "TIMEOUT")

        return cls(
            host=os.getenv(ENV_PREFIX + "HOST", defaults.host),
            port=int(os.getenv(ENV_PREFIX + "PORT", str(defaults.port))),
            read_buffer_size=int(
                os.getenv(ENV_PREFIX + "READ_BUFFER", str(defaults.read_buffer_size))
            ),
            timeout=float(timeout) if timeout else None,
            database_path=os.getenv(ENV_PREFIX + "DB", defaults.database_path),
            seed_count=int(os.getenv(ENV_PREFIX + "SEED_COUNT", str(defaults.seed_count))),
            log_level=os.getenv(ENV_PREFIX + "LOG_LEVEL", defaults.log_level).upper(),
            log_format=os.getenv(ENV_PREFIX + "LOG_FORMAT", defaults.log_format).lower(),
        )

    def validate(self) -> None:
        """Fail fast at startup on values the server can't run with."""
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError(f"backlog must be >= 1, got {self.backlog}")

        if self.read_buffer_size < 64:
            raise ValueError(
                f"read_buffer_size must be >= 64 bytes, got {self.read_buffer_size}"
            )

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"timeout must be positive or None, got {self.timeout}")

        if self.seed_count < 0:
            raise ValueError(f"seed_count must be >= 0, got {self.seed_count}")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}, got {self.log_level!r}")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {LOG_FORMATS}, got {self.log_format!r}")
