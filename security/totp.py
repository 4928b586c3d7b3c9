"""
Time-based one-time passwords (RFC 6238, HMAC-SHA1) on top of pyotp.

Codes are 6 digits over 30 second steps; verification accepts the
current step and one step either side to absorb clock drift.
"""
import base64
import binascii
import time
from datetime import datetime, timezone
from typing import Optional

import pyotp
from pyotp.utils import strings_equal

STEP_SECONDS = 30
VALID_WINDOW = 1


def normalize_secret(secret: str) -> Optional[str]:
    """
    Canonical form of an unpadded RFC 4648 base32 secret, or None when it
    is not one. Lower case and embedded spaces are tolerated.
    """
    if not isinstance(secret, str):
        return None
    cleaned = secret.strip().replace(" ", "").upper()
    if not cleaned or "=" in cleaned:
        return None

    missing_padding = len(cleaned) % 8
    try:
        base64.b32decode(cleaned + "=" * ((8 - missing_padding) % 8))
    except (binascii.Error, ValueError):
        return None
    return cleaned


def _totp(secret: str) -> Optional[pyotp.TOTP]:
    cleaned = normalize_secret(secret)
    if cleaned is None:
        return None
    return pyotp.TOTP(cleaned, interval=STEP_SECONDS)


def _utc(for_time: float) -> datetime:
    # aware datetimes keep pyotp off the local-time mktime path
    return datetime.fromtimestamp(for_time, tz=timezone.utc)


def code_at(secret: str, for_time: float) -> str:
    otp = _totp(secret)
    if otp is None:
        raise ValueError("secret is not valid base32")
    return otp.at(_utc(for_time))


def matching_step(
    secret: str,
    code: str,
    for_time: Optional[float] = None,
    valid_window: int = VALID_WINDOW,
) -> Optional[int]:
    """
    Return the time step whose code equals ``code``, or None.
    A secret that does not decode never matches.
    """
    otp = _totp(secret)
    if otp is None or not isinstance(code, str):
        return None

    when = _utc(time.time() if for_time is None else for_time)
    current = otp.timecode(when)

    for offset in range(-valid_window, valid_window + 1):
        if current + offset < 0:
            continue
        if strings_equal(code, otp.at(when, counter_offset=offset)):
            return current + offset
    return None


def verify(secret: str, code: str, for_time: Optional[float] = None, valid_window: int = VALID_WINDOW) -> bool:
    otp = _totp(secret)
    if otp is None or not isinstance(code, str):
        return False
    when = _utc(time.time() if for_time is None else for_time)
    return otp.verify(code, for_time=when, valid_window=valid_window)


def random_base32() -> str:
    return pyotp.random_base32()


def provisioning_uri(secret: str, name: str, issuer: Optional[str] = None) -> str:
    """otpauth:// URI for enrolling the secret in an authenticator app."""
    return pyotp.TOTP(secret, interval=STEP_SECONDS).provisioning_uri(name=name, issuer_name=issuer)
