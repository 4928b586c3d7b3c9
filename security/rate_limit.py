from flask import current_app

from security.errors import StoreUnavailable
from utils.client_ip import client_ip
from utils.collaborators import get_clock, get_store
from utils.kv_store import StoreError

RATE_PREFIX = "rate:admin_login:"

def check_and_increment_login_rate() -> tuple[bool, int]:
    """
    Returns (allowed, retry_after_seconds).
    Simple fixed window per IP, kept in the key-value store.
    """
    store = get_store()
    key = RATE_PREFIX + client_ip()
    now = get_clock()()

    window_seconds = current_app.config.get("LOGIN_RATE_WINDOW_SECONDS", 60)
    max_requests = current_app.config.get("LOGIN_RATE_MAX_REQUESTS", 15)

    try:
        row = store.get(key)
        if not isinstance(row, dict) or now >= row.get("window_start", 0) + window_seconds:
            row = {"window_start": now, "count": 0}

        row["count"] += 1
        window_end = row["window_start"] + window_seconds
        store.put(key, row, max(int(window_end - now), 1))
    except StoreError as exc:
        raise StoreUnavailable("rate limit store unavailable") from exc

    if row["count"] > max_requests:
        retry_after = int(window_end - now)
        return False, max(retry_after, 1)

    return True, 0
