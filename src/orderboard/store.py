"""
=============================================================================
ORDER STORE
=============================================================================

Durable table of orders, shared by every connection worker.

=============================================================================
ONE HANDLE, MANY THREADS
=============================================================================

Each accepted connection runs in its own thread, but there is exactly one
database handle. Every store call takes the store lock for the duration
of that one call and releases it before returning:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     SERIALIZED STORE ACCESS                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   worker-1: parse ─ route ─┐ list_all() ┌─ encode ─ send            │
    │                            └─── LOCK ───┘                            │
    │   worker-2: parse ─ route ──── wait ────┐ insert() ┌─ encode ─ send │
    │                                         └── LOCK ──┘                 │
    │   worker-3: parse ─ route ─ encode ─ send   (404, never locks)      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Parsing, routing and encoding never hold the lock, so connections only
contend when they actually touch the table.

sqlite3 refuses to use a connection from a thread other than its creator
unless check_same_thread=False. We pass it because the lock already
guarantees one thread at a time.

=============================================================================
COLUMN ENCODING
=============================================================================

Enum columns hold the JSON encoding of the tag, quotes included:

    id       | kind  | make_amount | make_denomination | ...
    ---------+-------+-------------+-------------------+----
    9f2c...  | "buy" | 10.0        | "usd"             | ...

This is the format existing granola.db files were written in, so we keep
reading and writing it.

Amount columns are REAL. Existing files hold single-precision values
widened to double (0.10000000149011612); rows go through the Order model
on the way out, which rounds them back to 0.1.

=============================================================================
"""

import json
import logging
import random
import sqlite3
import threading
from typing import List, Optional

from .models import DecodeError, Order, random_order


logger = logging.getLogger(__name__)


class StorageError(Exception):
    """
    Raised when the underlying database fails.

    The message is the driver's message, unchanged. Handlers put it in
    the 500 response body.
    """


class DuplicateIdError(StorageError):
    """An insert hit the primary key: an order with this id already exists."""


SCHEMA = """
    CREATE TABLE IF NOT EXISTS orders (
        id TEXT PRIMARY KEY,
        kind TEXT NOT NULL,
        make_amount REAL NOT NULL,
        make_denomination TEXT NOT NULL,
        take_amount REAL NOT NULL,
        take_denomination TEXT NOT NULL
    )
"""

COLUMNS = "id, kind, make_amount, make_denomination, take_amount, take_denomination"


def encode_tag(member) -> str:
    """Column encoding of an enum member: its tag as a JSON string."""
    return json.dumps(member.value)


def decode_column(raw, field_name: str) -> str:
    """
    Inverse of encode_tag, up to the tag string. The model checks the tag.

    Raises:
        DecodeError: If the column is not a JSON string.
    """
    try:
        value = json.loads(raw)
    except (TypeError, json.JSONDecodeError):
        value = None
    if not isinstance(value, str):
        raise DecodeError(f"invalid stored value for field `{field_name}`: {raw!r}")
    return value


def is_primary_key_clash(error: sqlite3.IntegrityError) -> bool:
    """True only for a duplicate id, not for NOT NULL or CHECK failures."""
    name = getattr(error, "sqlite_errorname", None)
    if name is not None:
        return name == "SQLITE_CONSTRAINT_PRIMARYKEY"
    return str(error).startswith("UNIQUE constraint failed")


class OrderStore:
    """
    Thread-safe access to the orders table.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        OrderStore API                               │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   initialize()          CREATE TABLE IF NOT EXISTS (idempotent)     │
    │   insert(order)         INSERT, DuplicateIdError on PK clash        │
    │   list_all()            SELECT *, undecodable rows dropped          │
    │   delete_by_id(id)      DELETE, True if a row went away             │
    │   count()               SELECT COUNT(*)                             │
    │   close()               release the handle                          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Usage:
        store = OrderStore("granola.db")
        store.initialize()
        store.insert(order)
        orders = store.list_all()
    """

    def __init__(self, path: str = "granola.db"):
        """
        Args:
            path: SQLite database file. ":memory:" gives a private
                  in-memory database (handy in tests).
        """
        self.path = path
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def initialize(self) -> None:
        """
        Open the database and create the table if needed.

        Safe to call on an existing database and safe to call twice.

        Raises:
            StorageError: If the file can't be opened or the schema can't
                          be applied.
        """
        with self._lock:
            try:
                if self._conn is None:
                    self._conn = sqlite3.connect(self.path, check_same_thread=False)
                self._conn.execute(SCHEMA)
                self._conn.commit()
            except sqlite3.Error as e:
                raise StorageError(str(e)) from e
        logger.debug(f"Order store ready at {self.path}")

    def close(self) -> None:
        """Close the handle. Further calls raise StorageError."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def _connection(self) -> sqlite3.Connection:
        # Caller holds the lock.
        if self._conn is None:
            raise StorageError("order store is not initialized")
        return self._conn

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    def insert(self, order: Order) -> None:
        """
        Persist a new order.

        Raises:
            DuplicateIdError: An order with this id already exists.
            StorageError: Any other database failure.
        """
        params = (
            order.id,
            encode_tag(order.kind),
            order.make_amount,
            encode_tag(order.make_denomination),
            order.take_amount,
            encode_tag(order.take_denomination),
        )
        with self._lock:
            conn = self._connection()
            try:
                conn.execute(
                    f"INSERT INTO orders ({COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
                    params,
                )
                conn.commit()
            except sqlite3.IntegrityError as e:
                conn.rollback()
                if is_primary_key_clash(e):
                    raise DuplicateIdError(str(e)) from e
                raise StorageError(str(e)) from e
            except sqlite3.Error as e:
                conn.rollback()
                raise StorageError(str(e)) from e

    def list_all(self) -> List[Order]:
        """
        Return every order, in whatever order SQLite yields them.

        A row whose enum columns don't decode is skipped with a warning
        instead of failing the whole listing.

        Raises:
            StorageError: If the query itself fails.
        """
        with self._lock:
            try:
                rows = self._connection().execute(
                    f"SELECT {COLUMNS} FROM orders"
                ).fetchall()
            except sqlite3.Error as e:
                raise StorageError(str(e)) from e

        orders = []
        for row in rows:
            try:
                orders.append(self._row_to_order(row))
            except DecodeError as e:
                logger.warning(f"Skipping unreadable order row {row[0]!r}: {e}")
        return orders

    def delete_by_id(self, order_id: str) -> bool:
        """
        Remove an order.

        Returns:
            True if a row was deleted, False if no order had that id.

        Raises:
            StorageError: On database failure.
        """
        with self._lock:
            conn = self._connection()
            try:
                cursor = conn.execute("DELETE FROM orders WHERE id = ?", (order_id,))
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                raise StorageError(str(e)) from e
        return cursor.rowcount > 0

    def count(self) -> int:
        """Number of stored orders."""
        with self._lock:
            try:
                (total,) = self._connection().execute(
                    "SELECT COUNT(*) FROM orders"
                ).fetchone()
            except sqlite3.Error as e:
                raise StorageError(str(e)) from e
        return total

    @staticmethod
    def _row_to_order(row) -> Order:
        order_id, kind, make_amount, make_denom, take_amount, take_denom = row
        return Order.from_dict({
            "id": order_id,
            "kind": decode_column(kind, "kind"),
            "make_amount": make_amount,
            "make_denomination": decode_column(make_denom, "make_denomination"),
            "take_amount": take_amount,
            "take_denomination": decode_column(take_denom, "take_denomination"),
        })


def seed_sample_orders(
    store: OrderStore,
    count: int,
    rng: Optional[random.Random] = None,
) -> int:
    """
    Fill an empty board with random sample orders.

    Does nothing when the table already has rows, so restarting the
    server doesn't keep piling up samples.

    Args:
        store: An initialized store
        count: How many orders to create
        rng: Random source (seed it in tests for repeatable samples)

    Returns:
        Number of orders inserted.
    """
    if count <= 0 or store.count() > 0:
        return 0

    rng = rng or random.Random()
    for _ in range(count):
        store.insert(random_order(rng))

    logger.info(f"Seeded {count} sample orders")
    return count


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# One SQLite handle, one lock, four operations. Callers never see a
# sqlite3 exception: everything is either a StorageError (500) or a
# normal return value.
# =============================================================================
