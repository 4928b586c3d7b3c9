class AuthError(Exception):
    """Base class for non-authentication failures of the admin login core."""


class ServiceNotConfigured(AuthError):
    """A required secret (password hash, TOTP secret) is not provisioned."""

    def __init__(self, what: str):
        super().__init__(f"{what} not configured")
        self.what = what


class StoreUnavailable(AuthError):
    """The session store failed; callers must deny access."""
