"""
Tests for the key-value store implementations.
"""
from datetime import datetime

import pytest

from models.db import db
from models.kv_entry import KvEntry
from utils.kv_store import MemoryKeyValueStore, SqlKeyValueStore, StoreError


class TestMemoryStore:
    def test_put_get(self, clock):
        store = MemoryKeyValueStore(clock)
        store.put("a", {"x": 1}, 10)
        assert store.get("a") == {"x": 1}

    def test_missing_key(self, clock):
        assert MemoryKeyValueStore(clock).get("nope") is None

    def test_expiry(self, clock):
        store = MemoryKeyValueStore(clock)
        store.put("a", True, 10)
        clock.advance(9)
        assert store.get("a") is True
        clock.advance(1)
        assert store.get("a") is None

    def test_no_ttl_never_expires(self, clock):
        store = MemoryKeyValueStore(clock)
        store.put("a", "v", None)
        store.put("b", "v", 0)
        clock.advance(10 ** 9)
        assert store.get("a") == "v"
        assert store.get("b") == "v"

    def test_overwrite_resets_ttl(self, clock):
        store = MemoryKeyValueStore(clock)
        store.put("a", 1, 10)
        clock.advance(8)
        store.put("a", 2, 10)
        clock.advance(8)
        assert store.get("a") == 2

    def test_delete(self, clock):
        store = MemoryKeyValueStore(clock)
        store.put("a", 1, 10)
        store.delete("a")
        store.delete("never-set")
        assert store.get("a") is None

    def test_unserializable_value(self, clock):
        with pytest.raises(StoreError):
            MemoryKeyValueStore(clock).put("a", object(), 10)


class TestSqlStore:
    def test_put_get(self, app, clock):
        store = SqlKeyValueStore(clock)
        store.put("session:abc", {"username": "admin"}, 60)
        assert store.get("session:abc") == {"username": "admin"}

    def test_expired_row_is_absent_and_purged(self, app, clock):
        store = SqlKeyValueStore(clock)
        store.put("totp_pending:abc", True, 300)
        clock.advance(300)
        assert store.get("totp_pending:abc") is None
        assert KvEntry.query.filter_by(key="totp_pending:abc").first() is None

    def test_overwrite(self, app, clock):
        store = SqlKeyValueStore(clock)
        store.put("k", 1, None)
        store.put("k", 2, None)
        assert store.get("k") == 2
        assert KvEntry.query.filter_by(key="k").count() == 1

    def test_delete(self, app, clock):
        store = SqlKeyValueStore(clock)
        store.put("k", 1, 60)
        store.delete("k")
        assert store.get("k") is None

    def test_purge_expired(self, app, clock):
        store = SqlKeyValueStore(clock)
        store.put("short", 1, 10)
        store.put("long", 1, 1000)
        store.put("forever", 1, None)
        clock.advance(20)
        assert store.purge_expired() == 1
        assert store.get("long") == 1
        assert store.get("forever") == 1

    def test_concurrent_insert_becomes_update(self, app, clock):
        class RacingStore(SqlKeyValueStore):
            # first lookup misses, as if another writer inserted in between
            missed = False

            def _find(self, key):
                if not self.missed:
                    self.missed = True
                    return None
                return super()._find(key)

        SqlKeyValueStore(clock).put("k", 1, None)
        RacingStore(clock).put("k", 2, 60)

        assert KvEntry.query.filter_by(key="k").count() == 1
        assert SqlKeyValueStore(clock).get("k") == 2

    def test_database_error_raises_store_error(self, app, clock):
        store = SqlKeyValueStore(clock)
        db.session.commit()
        KvEntry.__table__.drop(db.engine)

        with pytest.raises(StoreError):
            store.put("k", 1, 60)
        with pytest.raises(StoreError):
            store.get("k")
        with pytest.raises(StoreError):
            store.delete("k")

        # the session was rolled back and is usable again
        KvEntry.__table__.create(db.engine)
        store.put("k", 1, 60)
        assert store.get("k") == 1

    def test_timestamps_are_naive_utc(self, app, clock):
        assert SqlKeyValueStore(clock)._now() == datetime(2023, 11, 14, 22, 13, 20)
