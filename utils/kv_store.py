"""
Key-value storage with per-key expiry.

Pending login tokens, admin sessions, rate-limit windows and dashboard
settings all live behind this contract. Values are JSON-serializable;
``get`` returns None both for keys that were never set and for keys whose
TTL has passed.
"""
import json
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models.db import db
from models.kv_entry import KvEntry


class StoreError(Exception):
    """Raised when the backing store cannot be reached or written."""


class KeyValueStore:
    def put(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        raise NotImplementedError

    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


def _encode(value: Any) -> str:
    try:
        return json.dumps(value)
    except (TypeError, ValueError) as exc:
        raise StoreError(f"Value for store is not serializable: {exc}") from exc


def _decode(raw: str) -> Optional[Any]:
    try:
        return json.loads(raw)
    except ValueError:
        return None


class MemoryKeyValueStore(KeyValueStore):
    """
    Process-local store. Expiry is evaluated against ``clock`` (seconds since
    the epoch), so tests can move time forward without sleeping.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._data: Dict[str, Tuple[str, Optional[float]]] = {}

    def put(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        expires_at = self._clock() + ttl_seconds if ttl_seconds else None
        self._data[key] = (_encode(value), expires_at)

    def get(self, key: str) -> Optional[Any]:
        item = self._data.get(key)
        if item is None:
            return None
        raw, expires_at = item
        if expires_at is not None and expires_at <= self._clock():
            self._data.pop(key, None)
            return None
        return _decode(raw)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class SqlKeyValueStore(KeyValueStore):
    """
    Store backed by the ``kv_entries`` table. Needs an app context.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock

    def _now(self) -> datetime:
        # naive UTC, matching the DateTime columns
        return datetime.fromtimestamp(self._clock(), tz=timezone.utc).replace(tzinfo=None)

    def _find(self, key: str) -> Optional[KvEntry]:
        return KvEntry.query.filter_by(key=key).first()

    def put(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        raw = _encode(value)
        expires_at = self._now() + timedelta(seconds=ttl_seconds) if ttl_seconds else None
        try:
            row = self._find(key)
            if not row:
                db.session.add(KvEntry(key=key, value_json=raw, expires_at=expires_at))
            else:
                row.value_json = raw
                row.expires_at = expires_at
            try:
                db.session.commit()
            except IntegrityError:
                # Another writer inserted the key first
                db.session.rollback()
                row = self._find(key)
                if row is None:
                    raise
                row.value_json = raw
                row.expires_at = expires_at
                db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreError(f"Failed to write key {key!r}") from exc

    def get(self, key: str) -> Optional[Any]:
        try:
            row = KvEntry.query.filter_by(key=key).first()
            if not row:
                return None

            # Purge lazily on read
            if row.expires_at is not None and row.expires_at <= self._now():
                db.session.delete(row)
                db.session.commit()
                return None
            return _decode(row.value_json)
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreError(f"Failed to read key {key!r}") from exc

    def delete(self, key: str) -> None:
        try:
            KvEntry.query.filter_by(key=key).delete()
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreError(f"Failed to delete key {key!r}") from exc

    def purge_expired(self) -> int:
        try:
            count = KvEntry.query.filter(
                KvEntry.expires_at.isnot(None),
                KvEntry.expires_at <= self._now(),
            ).delete(synchronize_session=False)
            db.session.commit()
            return count
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreError("Failed to purge expired keys") from exc
