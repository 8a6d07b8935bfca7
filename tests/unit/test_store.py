"""
Unit tests for the SQLite order store.
"""

import random
import sqlite3
import threading

import pytest

from orderboard.models import Currency, Order, OrderType, random_order
from orderboard.store import (
    DuplicateIdError,
    OrderStore,
    StorageError,
    encode_tag,
    seed_sample_orders,
)


def make_order(order_id: str = "a" * 64) -> Order:
    return Order(
        id=order_id,
        kind=OrderType.BUY,
        make_amount=0.001,
        make_denomination=Currency.SAT,
        take_amount=50.0,
        take_denomination=Currency.BRL,
    )


class TestOrderStore:
    """Tests for OrderStore operations."""

    def test_empty_store_lists_nothing(self, memory_store: OrderStore):
        assert memory_store.list_all() == []
        assert memory_store.count() == 0

    def test_insert_and_list(self, memory_store: OrderStore):
        order = make_order()
        memory_store.insert(order)

        assert memory_store.list_all() == [order]

    def test_duplicate_id_rejected(self, memory_store: OrderStore):
        memory_store.insert(make_order("dup"))

        with pytest.raises(DuplicateIdError):
            memory_store.insert(make_order("dup"))

        assert memory_store.count() == 1

    def test_duplicate_is_storage_error(self):
        assert issubclass(DuplicateIdError, StorageError)

    def test_other_constraint_failure_is_not_duplicate(self, memory_store: OrderStore):
        """A NOT NULL failure is a plain storage error."""
        unvalidated = Order.model_construct(
            id="nan",
            kind=OrderType.BUY,
            make_amount=float("nan"),
            make_denomination=Currency.SAT,
            take_amount=1.0,
            take_denomination=Currency.USD,
        )

        with pytest.raises(StorageError, match="NOT NULL") as exc_info:
            memory_store.insert(unvalidated)

        assert not isinstance(exc_info.value, DuplicateIdError)
        assert memory_store.count() == 0

    def test_delete_existing(self, memory_store: OrderStore):
        memory_store.insert(make_order("x"))

        assert memory_store.delete_by_id("x") is True
        assert memory_store.list_all() == []

    def test_delete_missing(self, memory_store: OrderStore):
        assert memory_store.delete_by_id("nope") is False

    def test_delete_twice(self, memory_store: OrderStore):
        memory_store.insert(make_order("x"))

        assert memory_store.delete_by_id("x") is True
        assert memory_store.delete_by_id("x") is False

    def test_delete_leaves_others(self, memory_store: OrderStore):
        memory_store.insert(make_order("keep"))
        memory_store.insert(make_order("drop"))

        memory_store.delete_by_id("drop")

        assert [o.id for o in memory_store.list_all()] == ["keep"]

    def test_initialize_is_idempotent(self, memory_store: OrderStore):
        memory_store.insert(make_order())
        memory_store.initialize()

        assert memory_store.count() == 1

    def test_not_initialized(self):
        store = OrderStore(":memory:")

        with pytest.raises(StorageError, match="not initialized"):
            store.list_all()

    def test_closed_store_raises(self):
        store = OrderStore(":memory:")
        store.initialize()
        store.close()

        with pytest.raises(StorageError):
            store.insert(make_order())

    def test_persists_across_handles(self, tmp_path):
        path = str(tmp_path / "board.db")

        first = OrderStore(path)
        first.initialize()
        first.insert(make_order("persisted"))
        first.close()

        second = OrderStore(path)
        second.initialize()
        try:
            assert [o.id for o in second.list_all()] == ["persisted"]
        finally:
            second.close()

    def test_enum_columns_hold_quoted_tags(self, tmp_path):
        """Stored as JSON strings, quotes included."""
        path = str(tmp_path / "board.db")
        store = OrderStore(path)
        store.initialize()
        store.insert(make_order("q"))
        store.close()

        with sqlite3.connect(path) as conn:
            row = conn.execute(
                "SELECT kind, make_denomination, take_denomination FROM orders"
            ).fetchone()

        assert row == ('"buy"', '"sat"', '"brl"')
        assert encode_tag(Currency.EUR) == '"eur"'

    def test_unreadable_row_skipped(self, tmp_path, caplog):
        path = str(tmp_path / "board.db")
        store = OrderStore(path)
        store.initialize()
        store.insert(make_order("good"))

        with sqlite3.connect(path) as conn:
            conn.execute(
                "INSERT INTO orders VALUES (?, ?, ?, ?, ?, ?)",
                ("bad", '"hold"', 1.0, '"sat"', 2.0, '"usd"'),
            )

        try:
            orders = store.list_all()
        finally:
            store.close()

        assert [o.id for o in orders] == ["good"]
        assert "bad" in caplog.text

    def test_widened_single_amounts_read_back_short(self, tmp_path):
        path = str(tmp_path / "board.db")
        store = OrderStore(path)
        store.initialize()

        with sqlite3.connect(path) as conn:
            conn.execute(
                "INSERT INTO orders VALUES (?, ?, ?, ?, ?, ?)",
                ("old", '"sell"', 0.10000000149011612, '"usd"', 16777216.0, '"sat"'),
            )

        try:
            (order,) = store.list_all()
        finally:
            store.close()

        assert order.make_amount == 0.1
        assert order.take_amount == 16777216.0

    def test_null_amount_row_skipped(self, tmp_path):
        path = str(tmp_path / "board.db")
        store = OrderStore(path)
        store.initialize()

        with sqlite3.connect(path) as conn:
            conn.execute("DROP TABLE orders")
            conn.execute(
                "CREATE TABLE orders (id TEXT PRIMARY KEY, kind TEXT, make_amount REAL,"
                " make_denomination TEXT, take_amount REAL, take_denomination TEXT)"
            )
            conn.execute(
                "INSERT INTO orders VALUES (?, ?, ?, ?, ?, ?)",
                ("null", '"buy"', None, '"sat"', 1.0, '"usd"'),
            )

        try:
            assert store.list_all() == []
        finally:
            store.close()

    def test_concurrent_inserts(self, memory_store: OrderStore):
        rng_lock = threading.Lock()
        rng = random.Random(7)

        def worker():
            for _ in range(20):
                with rng_lock:
                    order = random_order(rng)
                memory_store.insert(order)

        threads = [threading.Thread(target=worker) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert memory_store.count() == 100


class TestSeeding:
    """Tests for seed_sample_orders."""

    def test_seeds_empty_store(self, memory_store: OrderStore, rng: random.Random):
        inserted = seed_sample_orders(memory_store, 7, rng=rng)

        assert inserted == 7
        assert memory_store.count() == 7

    def test_skips_non_empty_store(self, memory_store: OrderStore, rng: random.Random):
        memory_store.insert(make_order())

        assert seed_sample_orders(memory_store, 7, rng=rng) == 0
        assert memory_store.count() == 1

    def test_zero_count(self, memory_store: OrderStore):
        assert seed_sample_orders(memory_store, 0) == 0
        assert memory_store.count() == 0

    def test_seeded_orders_in_range(self, memory_store: OrderStore, rng: random.Random):
        seed_sample_orders(memory_store, 10, rng=rng)

        for order in memory_store.list_all():
            assert 1.0 <= order.make_amount <= 100.0
            assert 1.0 <= order.take_amount <= 100.0
