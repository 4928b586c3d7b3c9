import secrets
from dataclasses import asdict, dataclass, fields
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from utils.kv_store import KeyValueStore

PENDING_PREFIX = "totp_pending:"
SESSION_PREFIX = "session:"

PENDING_TOKEN_TTL_SECONDS = 300
SESSION_LIFETIME_SECONDS = 24 * 60 * 60


def new_token() -> str:
    # 256 bits from the OS CSPRNG, hex-encoded
    return secrets.token_hex(32)


def pending_key(token: str) -> str:
    return PENDING_PREFIX + token


def session_key(token: str) -> str:
    return SESSION_PREFIX + token


@dataclass(frozen=True)
class AdminSession:
    user_id: str
    username: str
    created_at: str
    expires_at: str
    ip_address: str

    @classmethod
    def start(cls, username: str, ip_address: str, now: float, lifetime_seconds: int) -> "AdminSession":
        created = datetime.fromtimestamp(now, tz=timezone.utc)
        return cls(
            user_id=username,
            username=username,
            created_at=created.isoformat(),
            expires_at=(created + timedelta(seconds=lifetime_seconds)).isoformat(),
            ip_address=ip_address or "",
        )

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_value(cls, value: Any) -> Optional["AdminSession"]:
        """Rebuild a session from a stored value; None if it is not one."""
        if not isinstance(value, dict):
            return None
        names = [f.name for f in fields(cls)]
        if any(not isinstance(value.get(name), str) for name in names):
            return None
        return cls(**{name: value[name] for name in names})


def store_session(store: KeyValueStore, token: str, session: AdminSession, lifetime_seconds: int) -> None:
    store.put(session_key(token), session.to_dict(), lifetime_seconds)


def load_session(store: KeyValueStore, token: str) -> Optional[AdminSession]:
    if not token:
        return None
    return AdminSession.from_value(store.get(session_key(token)))


def revoke_session(store: KeyValueStore, token: str) -> bool:
    if not token:
        return False
    if load_session(store, token) is None:
        return False
    store.delete(session_key(token))
    return True
