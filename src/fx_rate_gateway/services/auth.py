"""Bearer token authentication for rate requests.

Two modes:
- plain: the bearer token must equal the shared secret.
- hashed: the token must equal sha256(secret + FROM + TO), which binds a
  credential to one currency pair so it cannot be replayed for another.

Both comparisons are constant time.
"""

import hashlib
import re
import secrets
from collections.abc import Mapping

from fx_rate_gateway.exceptions import AuthenticationError
from fx_rate_gateway.logging_config import get_logger

logger = get_logger(__name__)

_BEARER_RE = re.compile(r"^Bearer\s+(\S.*)$", re.IGNORECASE)
_HEADER_NAMES = ("authorization", "http_authorization")


def extract_bearer_token(headers: Mapping[str, str]) -> str | None:
    """Pull the token out of an ``Authorization: Bearer <token>`` header.

    Header names are matched case-insensitively. Returns None when the
    header is absent or uses another scheme.
    """
    value = None
    for name, header_value in headers.items():
        if name.lower() in _HEADER_NAMES:
            value = header_value
            break
    if not value:
        return None
    match = _BEARER_RE.match(value.strip())
    if match is None:
        return None
    return match.group(1).strip()


class Authenticator:
    def __init__(
        self,
        secret: str,
        *,
        use_hash_validation: bool = False,
        enabled: bool = True,
    ) -> None:
        if enabled and not secret:
            raise ValueError("secret must be provided when authentication is enabled")
        self._secret = secret
        self._use_hash_validation = use_hash_validation
        self._enabled = enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def uses_hash_validation(self) -> bool:
        return self._use_hash_validation

    def _pair_hash(self, from_currency: str, to_currency: str) -> str:
        material = f"{self._secret}{from_currency}{to_currency}"
        return hashlib.sha256(material.encode("utf-8")).hexdigest()

    def validate(
        self,
        headers: Mapping[str, str],
        from_currency: str = "",
        to_currency: str = "",
    ) -> bool:
        """Check the request's bearer credential.

        Always True when authentication is disabled.
        """
        if not self._enabled:
            return True

        token = extract_bearer_token(headers)
        if token is None:
            logger.info("auth_missing_bearer")
            return False

        expected = self.generate_token(from_currency, to_currency)
        valid = secrets.compare_digest(
            token.encode("utf-8"), expected.encode("utf-8")
        )
        if not valid:
            logger.info(
                "auth_rejected",
                mode="hashed" if self._use_hash_validation else "plain",
            )
        return valid

    def authenticate(
        self,
        headers: Mapping[str, str],
        from_currency: str = "",
        to_currency: str = "",
    ) -> None:
        """Like validate, but raise AuthenticationError on failure."""
        if not self.validate(headers, from_currency, to_currency):
            raise AuthenticationError()

    def generate_token(self, from_currency: str = "", to_currency: str = "") -> str:
        """Mint a credential the active mode accepts.

        Trusted issuers use this to hand out credentials; validate compares
        incoming tokens against the same value.
        """
        if self._use_hash_validation:
            return self._pair_hash(from_currency, to_currency)
        return self._secret
