import logging
from typing import Optional

from security.session import AdminSession, load_session
from utils.kv_store import KeyValueStore, StoreError

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def extract_bearer(auth_header: Optional[str]) -> Optional[str]:
    """
    Token from an Authorization header. Without the "Bearer " prefix the
    raw header value is used as-is (older admin clients send it bare).
    """
    if not auth_header:
        return None
    if auth_header.startswith(BEARER_PREFIX):
        token = auth_header[len(BEARER_PREFIX):]
    else:
        token = auth_header
    return token or None


def current_session(store: KeyValueStore, auth_header: Optional[str]) -> Optional[AdminSession]:
    # Liveness is the store's TTL; expires_at is not re-checked here.
    token = extract_bearer(auth_header)
    if token is None:
        return None
    try:
        return load_session(store, token)
    except StoreError:
        logger.warning("Session store unavailable; denying access")
        return None


def authorize(store: KeyValueStore, auth_header: Optional[str]) -> bool:
    return current_session(store, auth_header) is not None
