"""Unit tests for the SQLite document store."""

import sqlite3
import threading
from unittest.mock import patch

import pytest

import vyra.storage.sqlite as sqlite_store
from vyra.storage import SERVER_TIMESTAMP, Increment, SQLiteDocumentStore
from vyra.utils.exceptions import PersistenceError


@pytest.fixture
def db(tmp_path) -> SQLiteDocumentStore:
    store = SQLiteDocumentStore(tmp_path / "store.db", busy_timeout=2.0)
    store.initialize()
    return store


@pytest.mark.unit
class TestBasicDocuments:
    def test_get_missing_returns_none(self, db):
        assert db.get("users", "u1") is None

    def test_set_then_get(self, db):
        db.set("users", "u1", {"xp": 10, "name": "a"})
        assert db.get("users", "u1") == {"xp": 10, "name": "a"}

    def test_set_without_merge_replaces(self, db):
        db.set("users", "u1", {"xp": 10, "isPremium": True})
        db.set("users", "u1", {"xp": 20})
        assert db.get("users", "u1") == {"xp": 20}

    def test_set_with_merge_keeps_other_fields(self, db):
        db.set("users", "u1", {"xp": 10, "isPremium": True})
        db.set("users", "u1", {"xp": 20}, merge=True)
        assert db.get("users", "u1") == {"xp": 20, "isPremium": True}

    def test_collections_are_separate(self, db):
        db.set("users", "k", {"a": 1})
        db.set("generations", "k", {"b": 2})
        assert db.get("users", "k") == {"a": 1}
        assert db.get("generations", "k") == {"b": 2}

    def test_initialize_is_idempotent(self, db):
        db.initialize()
        db.set("users", "u1", {"xp": 1})
        db.initialize()
        assert db.get("users", "u1") == {"xp": 1}


@pytest.mark.unit
class TestSentinels:
    def test_increment_missing_field_starts_at_zero(self, db):
        db.set("users", "u1", {"xp": Increment(10)}, merge=True)
        assert db.get("users", "u1")["xp"] == 10

    def test_increment_existing_field(self, db):
        db.set("users", "u1", {"xp": 5, "totalGenerations": 2})
        db.set("users", "u1", {"xp": Increment(10), "totalGenerations": Increment()}, merge=True)
        assert db.get("users", "u1") == {"xp": 15, "totalGenerations": 3}

    def test_server_timestamp_resolved(self, db):
        db.set("generations", "g1", {"timestamp": SERVER_TIMESTAMP})
        value = db.get("generations", "g1")["timestamp"]
        assert isinstance(value, str)
        assert value.endswith("+00:00")

    def test_server_timestamps_strictly_increase(self, db):
        for i in range(5):
            db.set("generations", f"g{i}", {"timestamp": SERVER_TIMESTAMP})
        stamps = [db.get("generations", f"g{i}")["timestamp"] for i in range(5)]
        assert stamps == sorted(stamps)
        assert len(set(stamps)) == 5


@pytest.mark.unit
class TestQuery:
    def test_filter_and_order(self, db):
        def write(tx):
            tx.set("generations", "a", {"uid": "u1", "timestamp": "2026-01-01"})
            tx.set("generations", "b", {"uid": "u1", "timestamp": "2026-01-03"})
            tx.set("generations", "c", {"uid": "u2", "timestamp": "2026-01-02"})
            tx.set("generations", "d", {"uid": "u1", "timestamp": "2026-01-02"})

        db.run_transaction(write)
        docs = db.query("generations", {"uid": "u1"}, order_by="timestamp", descending=True)
        assert [d["id"] for d in docs] == ["b", "d", "a"]
        ascending = db.query("generations", {"uid": "u1"}, order_by="timestamp")
        assert [d["id"] for d in ascending] == ["a", "d", "b"]

    def test_limit(self, db):
        for i in range(4):
            db.set("generations", f"g{i}", {"uid": "u1", "timestamp": f"2026-01-0{i + 1}"})
        docs = db.query("generations", {"uid": "u1"}, order_by="timestamp", limit=2)
        assert [d["id"] for d in docs] == ["g0", "g1"]

    def test_no_match(self, db):
        assert db.query("generations", {"uid": "nobody"}) == []


@pytest.mark.unit
class TestTransactions:
    def test_returns_function_result(self, db):
        assert db.run_transaction(lambda tx: 42) == 42

    def test_reads_see_committed_state(self, db):
        db.set("users", "u1", {"xp": 3})
        assert db.run_transaction(lambda tx: tx.get("users", "u1")) == {"xp": 3}

    def test_insert_returns_unique_ids(self, db):
        ids = db.run_transaction(
            lambda tx: [tx.insert("generations", {"n": i}) for i in range(3)]
        )
        assert len(set(ids)) == 3
        for i, key in enumerate(ids):
            assert db.get("generations", key) == {"n": i}

    def test_exception_in_function_writes_nothing(self, db):
        def write(tx):
            tx.set("users", "u1", {"xp": 1})
            raise ValueError("boom")

        with pytest.raises(ValueError):
            db.run_transaction(write)
        assert db.get("users", "u1") is None

    def test_failure_during_apply_rolls_back_earlier_writes(self, db):
        real_write = sqlite_store._write_document

        def failing_write(conn, collection, key, data, merge):
            if collection == "generations":
                raise RuntimeError("disk gone")
            real_write(conn, collection, key, data, merge)

        def write(tx):
            tx.set("users", "u1", {"xp": 1})
            tx.insert("generations", {"uid": "u1"})

        with patch("vyra.storage.sqlite._write_document", side_effect=failing_write):
            with pytest.raises(RuntimeError):
                db.run_transaction(write)
        assert db.get("users", "u1") is None
        assert db.query("generations", {"uid": "u1"}) == []

    def test_contention_is_retried(self, db):
        attempts = []

        def write(tx):
            attempts.append(1)
            if len(attempts) == 1:
                raise sqlite3.OperationalError("database is locked")
            tx.set("users", "u1", {"xp": 1})
            return "ok"

        assert db.run_transaction(write, max_attempts=3) == "ok"
        assert len(attempts) == 2
        assert db.get("users", "u1") == {"xp": 1}

    def test_non_contention_operational_error_not_retried(self, db):
        attempts = []

        def write(tx):
            attempts.append(1)
            raise sqlite3.OperationalError("no such table: nope")

        with pytest.raises(PersistenceError) as exc_info:
            db.run_transaction(write, max_attempts=3)
        assert len(attempts) == 1
        assert exc_info.value.attempts == 1

    def test_exhausted_attempts_raise_persistence_error(self, tmp_path):
        path = tmp_path / "locked.db"
        store = SQLiteDocumentStore(path, busy_timeout=0.05, max_attempts=2)
        store.initialize()
        blocker = sqlite3.connect(str(path), isolation_level=None)
        blocker.execute("BEGIN IMMEDIATE")
        try:
            with pytest.raises(PersistenceError) as exc_info:
                store.run_transaction(lambda tx: tx.set("users", "u1", {"xp": 1}))
        finally:
            blocker.execute("ROLLBACK")
            blocker.close()
        assert exc_info.value.attempts == 2
        assert "contention" in str(exc_info.value)
        assert store.get("users", "u1") is None

    def test_concurrent_increments_are_serialized(self, db):
        def bump():
            db.set("users", "u1", {"xp": Increment(1)}, merge=True)

        threads = [threading.Thread(target=bump) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert db.get("users", "u1") == {"xp": 10}


@pytest.mark.unit
class TestStoreErrors:
    def test_unopenable_path_raises_persistence_error(self, tmp_path):
        store = SQLiteDocumentStore(tmp_path / "missing" / "dir" / "x.db")
        with pytest.raises(PersistenceError):
            store.initialize()
