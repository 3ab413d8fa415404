"""Signature tokens binding a deal to the recipient allowed to sign it."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from core.config import settings
from core.exceptions import InvalidOrExpiredToken
from core.security import TokenSigner, get_token_signer


@dataclass(frozen=True)
class SignatureClaims:
    deal_id: str
    recipient_email: str
    issued_at: datetime
    expires_at: datetime


class SignatureTokenService:
    """
    Issue and verify signature tokens.

    Verification only checks the signature and the expiry; whether the deal
    still exists is for the caller to find out.
    """

    def __init__(self, signer: TokenSigner, ttl: timedelta = timedelta(days=30)):
        self.signer = signer
        self.ttl = ttl

    def issue(self, deal_id: str, recipient_email: str, now: datetime | None = None) -> str:
        return self.signer.sign(
            {"dealId": str(deal_id), "email": recipient_email},
            ttl=self.ttl,
            issued_at=now,
        )

    def verify(self, token: str) -> SignatureClaims:
        claims = self.signer.verify(token)
        deal_id = claims.get("dealId")
        email = claims.get("email")
        if not deal_id or not email:
            raise InvalidOrExpiredToken("Invalid token")
        return SignatureClaims(
            deal_id=deal_id,
            recipient_email=email,
            issued_at=datetime.fromtimestamp(claims["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
        )


def get_signature_token_service() -> SignatureTokenService:
    return SignatureTokenService(
        get_token_signer(),
        ttl=timedelta(days=settings.signature_token_ttl_days),
    )
