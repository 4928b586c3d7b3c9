from typing import Mapping, Optional

ADMIN_PASSWORD_HASH = "ADMIN_PASSWORD_HASH"
TOTP_SECRET = "TOTP_SECRET"


class SecretsProvider:
    def get(self, name: str) -> Optional[str]:
        raise NotImplementedError


class ConfigSecrets(SecretsProvider):
    """
    Reads secrets from a mapping (normally ``app.config``).
    Blank values are reported as missing.
    """

    def __init__(self, source: Mapping):
        self._source = source

    def get(self, name: str) -> Optional[str]:
        value = self._source.get(name)
        if not isinstance(value, str) or not value.strip():
            return None
        return value.strip()
