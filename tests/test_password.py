"""
Tests for the admin credential checker.
"""
import pytest

from security.password import (
    check_credentials,
    hash_password,
    is_bcrypt_hash,
    legacy_digest,
    verify_password,
)


class TestHashing:
    def test_legacy_digest_is_sha1_hex(self):
        assert legacy_digest("abc") == "a9993e364706816aba3e25717850c26c9cd0d89d"

    def test_legacy_digest_is_deterministic(self):
        assert legacy_digest("correct-pass") == legacy_digest("correct-pass")

    def test_hash_password_uses_bcrypt(self):
        hashed = hash_password("correct-pass")
        assert is_bcrypt_hash(hashed)
        assert hashed != hash_password("correct-pass")

    def test_hash_password_rejects_empty(self):
        with pytest.raises(ValueError):
            hash_password("")


class TestVerifyPassword:
    def test_legacy_match(self):
        assert verify_password("correct-pass", legacy_digest("correct-pass")) is True

    def test_legacy_match_ignores_hex_case(self):
        assert verify_password("correct-pass", legacy_digest("correct-pass").upper()) is True

    def test_legacy_mismatch(self):
        assert verify_password("wrong-pass", legacy_digest("correct-pass")) is False

    def test_bcrypt_match(self):
        hashed = hash_password("correct-pass")
        assert verify_password("correct-pass", hashed) is True
        assert verify_password("wrong-pass", hashed) is False

    def test_corrupt_bcrypt_hash(self):
        assert verify_password("correct-pass", "$2b$12$notarealhash") is False

    @pytest.mark.parametrize("password,stored", [("", "abc"), ("x", ""), (None, "abc")])
    def test_missing_values(self, password, stored):
        assert verify_password(password, stored) is False


class TestCheckCredentials:
    HASH = legacy_digest("correct-pass")

    def test_correct(self):
        assert check_credentials("admin", "correct-pass", "admin", self.HASH) is True

    def test_wrong_password(self):
        assert check_credentials("admin", "nope", "admin", self.HASH) is False

    def test_wrong_username(self):
        assert check_credentials("root", "correct-pass", "admin", self.HASH) is False

    def test_username_is_case_sensitive(self):
        assert check_credentials("Admin", "correct-pass", "admin", self.HASH) is False

    def test_both_wrong(self):
        assert check_credentials("root", "nope", "admin", self.HASH) is False

    def test_missing_username(self):
        assert check_credentials(None, "correct-pass", "admin", self.HASH) is False
