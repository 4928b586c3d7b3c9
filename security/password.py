import hashlib
import hmac

import bcrypt

_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


def hash_password(plain_password: str) -> str:
    if not isinstance(plain_password, str) or len(plain_password) == 0:
        raise ValueError("Password must be a non-empty string")

    # bcrypt expects bytes
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(plain_password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def legacy_digest(plain_password: str) -> str:
    """Unsalted SHA-1 hex digest, the format of older ADMIN_PASSWORD_HASH values."""
    return hashlib.sha1(plain_password.encode("utf-8")).hexdigest()


def is_bcrypt_hash(password_hash: str) -> bool:
    return password_hash.startswith(_BCRYPT_PREFIXES)


def verify_password(plain_password: str, password_hash: str) -> bool:
    if not plain_password or not password_hash:
        return False

    if is_bcrypt_hash(password_hash):
        try:
            return bcrypt.checkpw(
                plain_password.encode("utf-8"),
                password_hash.encode("utf-8")
            )
        except ValueError:
            return False

    return hmac.compare_digest(
        legacy_digest(plain_password).encode("ascii"),
        password_hash.strip().lower().encode("utf-8"),
    )


def check_credentials(username: str, password: str, expected_username: str, password_hash: str) -> bool:
    """
    Single admin identity check. Both comparisons always run so the
    response time does not reveal which field was wrong.
    """
    username_ok = hmac.compare_digest(
        (username or "").encode("utf-8"),
        (expected_username or "").encode("utf-8"),
    )
    password_ok = verify_password(password, password_hash)
    return bool(username_ok & password_ok)
