"""
Two-phase admin login: password, then TOTP code.

    AwaitingPassword --submit_password--> AwaitingTotp --submit_totp--> Authenticated

The phase is not tracked anywhere except by the presence of the pending
token in the store: if it has expired the caller is back at the password
step. Failures never create or destroy state, apart from the pending token
being consumed by a successful TOTP check.
"""
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from security import totp
from security.errors import ServiceNotConfigured, StoreUnavailable
from security.password import check_credentials
from security.session import (
    PENDING_TOKEN_TTL_SECONDS,
    SESSION_LIFETIME_SECONDS,
    AdminSession,
    new_token,
    pending_key,
    store_session,
)
from utils.kv_store import KeyValueStore, StoreError
from utils.secret_provider import ADMIN_PASSWORD_HASH, TOTP_SECRET, SecretsProvider

logger = logging.getLogger(__name__)

TOTP_LAST_STEP_KEY = "totp_last_step"

MSG_INVALID_CREDENTIALS = "Invalid credentials"
MSG_PASSWORD_OK = "Password verified. Enter TOTP code."
MSG_MISSING_TOKEN = "Missing token"
MSG_EXPIRED = "Session expired. Please login again."
MSG_INVALID_CODE = "Invalid TOTP code"
MSG_LOGIN_OK = "Login successful"


@dataclass(frozen=True)
class LoginResult:
    success: bool
    message: str
    token: Optional[str] = None
    requires_totp: bool = False

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "message": self.message,
            "token": self.token,
            "requires_totp": self.requires_totp,
        }


@dataclass(frozen=True)
class TotpResult:
    valid: bool
    message: str
    session_token: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "message": self.message,
            "session_token": self.session_token,
        }


class LoginFlow:
    def __init__(
        self,
        store: KeyValueStore,
        secrets: SecretsProvider,
        admin_username: str = "admin",
        clock: Callable[[], float] = time.time,
        pending_ttl_seconds: int = PENDING_TOKEN_TTL_SECONDS,
        session_lifetime_seconds: int = SESSION_LIFETIME_SECONDS,
        valid_window: int = totp.VALID_WINDOW,
        replay_protection: bool = False,
    ):
        self.store = store
        self.secrets = secrets
        self.admin_username = admin_username
        self.clock = clock
        self.pending_ttl_seconds = pending_ttl_seconds
        self.session_lifetime_seconds = session_lifetime_seconds
        self.valid_window = valid_window
        self.replay_protection = replay_protection

    def _require_secret(self, name: str, what: str) -> str:
        value = self.secrets.get(name)
        if value is None:
            raise ServiceNotConfigured(what)
        return value

    def submit_password(self, username: str, password: str) -> LoginResult:
        password_hash = self._require_secret(ADMIN_PASSWORD_HASH, "Admin")

        if not check_credentials(username, password, self.admin_username, password_hash):
            return LoginResult(success=False, message=MSG_INVALID_CREDENTIALS)

        token = new_token()
        try:
            self.store.put(pending_key(token), True, self.pending_ttl_seconds)
        except StoreError as exc:
            raise StoreUnavailable("could not record pending login") from exc

        return LoginResult(success=True, message=MSG_PASSWORD_OK, token=token, requires_totp=True)

    def submit_totp(self, pending_token: Optional[str], code: str, ip_address: str = "") -> TotpResult:
        if not pending_token:
            return TotpResult(valid=False, message=MSG_MISSING_TOKEN)

        try:
            pending = self.store.get(pending_key(pending_token))
        except StoreError as exc:
            raise StoreUnavailable("could not read pending login") from exc
        if pending is None:
            return TotpResult(valid=False, message=MSG_EXPIRED)

        secret = self._require_secret(TOTP_SECRET, "TOTP")
        now = self.clock()

        step = totp.matching_step(secret, code, for_time=now, valid_window=self.valid_window)
        if step is None or not self._step_unused(step):
            # pending token stays so the user can retry within its window
            return TotpResult(valid=False, message=MSG_INVALID_CODE)

        session_token = new_token()
        session = AdminSession.start(self.admin_username, ip_address, now, self.session_lifetime_seconds)
        try:
            if self.replay_protection:
                self.store.put(TOTP_LAST_STEP_KEY, step, totp.STEP_SECONDS * (2 * self.valid_window + 2))
            store_session(self.store, session_token, session, self.session_lifetime_seconds)
        except StoreError as exc:
            raise StoreUnavailable("could not record session") from exc

        try:
            self.store.delete(pending_key(pending_token))
        except StoreError:
            logger.warning("Failed to delete pending login token; it will expire on its own")

        return TotpResult(valid=True, message=MSG_LOGIN_OK, session_token=session_token)

    def _step_unused(self, step: int) -> bool:
        if not self.replay_protection:
            return True
        try:
            last_step = self.store.get(TOTP_LAST_STEP_KEY)
        except StoreError as exc:
            raise StoreUnavailable("could not read TOTP replay marker") from exc
        return not isinstance(last_step, int) or step > last_step
