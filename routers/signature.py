"""
Signature requests and remote acceptance of quotes.

`send-signature` is used by operators; `verify-signature` and
`process-signature` are public and authorized by the signed token alone.
"""
from fastapi import APIRouter, Depends

from core.config import settings
from core.dependencies import get_lifecycle
from schemas.deal import (
    PublicDealSummary,
    SignatureRequestCreate,
    SignatureRequestResponse,
    SignatureResponse,
    SignatureSubmit,
    TokenVerificationResponse,
)
from services.lifecycle import DealLifecycle


router = APIRouter(tags=["signature"])


# Sync handler: SMTP delivery blocks
@router.post("/quotes/{deal_id}/send-signature", response_model=SignatureRequestResponse)
def send_signature_request(
    deal_id: str,
    request_data: SignatureRequestCreate,
    lifecycle: DealLifecycle = Depends(get_lifecycle),
):
    """Email the recipient a link to view and sign the quote."""
    result = lifecycle.send_signature_request(
        deal_id,
        request_data.recipient_email,
        request_data.recipient_name,
        settings.frontend_url,
    )
    return SignatureRequestResponse(
        message="Signature request sent successfully",
        signature_url=result.signature_url,
        email_delivered=result.delivered,
    )


@router.get("/quotes/verify-signature/{token}", response_model=TokenVerificationResponse)
async def verify_signature_token(
    token: str,
    lifecycle: DealLifecycle = Depends(get_lifecycle),
):
    """Resolve a signing link (public, no auth required)."""
    verification = lifecycle.verify_signature_token(token)
    deal = verification.deal
    return TokenVerificationResponse(
        deal_id=deal.id,
        email=verification.recipient_email,
        deal=PublicDealSummary(
            name=deal.name,
            quote_number=deal.quote_number,
            total_amount=deal.total_amount,
            currency=deal.currency,
            status=deal.status,
        ),
    )


@router.post("/quotes/process-signature/{token}", response_model=SignatureResponse)
async def process_signature(
    token: str,
    sign_data: SignatureSubmit,
    lifecycle: DealLifecycle = Depends(get_lifecycle),
):
    """Sign a quote electronically (public, no auth required)."""
    deal = lifecycle.apply_signature(
        token,
        name=sign_data.name,
        email=sign_data.email,
        signature_image=sign_data.signature_image,
        title=sign_data.title,
    )
    return SignatureResponse(
        message="Signature processed successfully",
        status=deal.status,
        signature_date=deal.signature_date,
    )
