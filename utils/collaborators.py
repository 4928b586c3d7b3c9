import time

from flask import current_app

from security.login_flow import LoginFlow
from utils.kv_store import KeyValueStore
from utils.secret_provider import SecretsProvider

EXT_STORE = "admin_kv_store"
EXT_SECRETS = "admin_secrets"
EXT_CLOCK = "admin_clock"


def get_store() -> KeyValueStore:
    return current_app.extensions[EXT_STORE]


def get_secrets() -> SecretsProvider:
    return current_app.extensions[EXT_SECRETS]


def get_clock():
    return current_app.extensions.get(EXT_CLOCK, time.time)


def build_login_flow() -> LoginFlow:
    cfg = current_app.config
    return LoginFlow(
        store=get_store(),
        secrets=get_secrets(),
        admin_username=cfg.get("ADMIN_USERNAME", "admin"),
        clock=get_clock(),
        pending_ttl_seconds=cfg.get("PENDING_TOKEN_TTL_SECONDS", 300),
        session_lifetime_seconds=cfg.get("SESSION_LIFETIME_SECONDS", 86400),
        valid_window=cfg.get("TOTP_VALID_WINDOW", 1),
        replay_protection=cfg.get("TOTP_REPLAY_PROTECTION", False),
    )
