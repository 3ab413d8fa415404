"""Security utilities for signing and verifying bearer tokens."""

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from core.config import settings
from core.exceptions import InvalidOrExpiredToken


class TokenSigner:
    """
    Sign and verify claim sets as compact JWTs.

    `exp` and `iat` are always set by `sign` and always required by `verify`,
    so a token without an expiry is never accepted.
    """

    def __init__(self, secret: str, algorithm: str = "HS256"):
        self.secret = secret
        self.algorithm = algorithm

    def sign(self, claims: dict[str, Any], ttl: timedelta, issued_at: datetime | None = None) -> str:
        issued_at = issued_at or datetime.now(timezone.utc)
        payload = dict(claims)
        payload["iat"] = issued_at
        payload["exp"] = issued_at + ttl
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> dict[str, Any]:
        """Return the claims of a valid token or raise InvalidOrExpiredToken."""
        if not token:
            raise InvalidOrExpiredToken("Token is required")
        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise InvalidOrExpiredToken("Token has expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidOrExpiredToken("Invalid token") from e


def get_token_signer() -> TokenSigner:
    return TokenSigner(settings.signature_token_secret, settings.signature_token_algorithm)
