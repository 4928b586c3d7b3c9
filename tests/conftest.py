import pytest

from app import create_app
from config import Config
from models import db
from security.login_flow import LoginFlow
from security.password import legacy_digest
from utils.kv_store import MemoryKeyValueStore, StoreError
from utils.secret_provider import ConfigSecrets

# RFC 6238 appendix B seed ("12345678901234567890") in base32
RFC_SECRET = "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"
ADMIN_PASSWORD = "correct-pass"
START_TIME = 1_700_000_000.0


class FakeClock:
    def __init__(self, start=START_TIME):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class RecordingStore(MemoryKeyValueStore):
    """Memory store that remembers every call made to it."""

    def __init__(self, clock):
        super().__init__(clock)
        self.calls = []

    def put(self, key, value, ttl_seconds=None):
        self.calls.append(("put", key, ttl_seconds))
        super().put(key, value, ttl_seconds)

    def get(self, key):
        self.calls.append(("get", key))
        return super().get(key)

    def delete(self, key):
        self.calls.append(("delete", key))
        super().delete(key)


class BrokenStore(MemoryKeyValueStore):
    """Fails the operations named in ``broken``."""

    def __init__(self, clock, broken=("put", "get", "delete")):
        super().__init__(clock)
        self.broken = set(broken)

    def put(self, key, value, ttl_seconds=None):
        if "put" in self.broken:
            raise StoreError("put failed")
        super().put(key, value, ttl_seconds)

    def get(self, key):
        if "get" in self.broken:
            raise StoreError("get failed")
        return super().get(key)

    def delete(self, key):
        if "delete" in self.broken:
            raise StoreError("delete failed")
        super().delete(key)


class AdminTestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    ADMIN_USERNAME = "admin"
    ADMIN_PASSWORD_HASH = legacy_digest(ADMIN_PASSWORD)
    TOTP_SECRET = RFC_SECRET
    TOTP_REPLAY_PROTECTION = False
    LOGIN_RATE_MAX_REQUESTS = 15


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return RecordingStore(clock)


@pytest.fixture
def secrets_map():
    return {
        "ADMIN_PASSWORD_HASH": legacy_digest(ADMIN_PASSWORD),
        "TOTP_SECRET": RFC_SECRET,
    }


@pytest.fixture
def flow(store, secrets_map, clock):
    return LoginFlow(store=store, secrets=ConfigSecrets(secrets_map), clock=clock)


@pytest.fixture
def app(store, clock):
    app = create_app(AdminTestConfig, store=store, clock=clock)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()
