"""
Quote lifecycle state machine.

    Draft --send_signature_request--> Sent
    Sent/Viewed --verify_signature_token--> Viewed
    Sent/Viewed --apply_signature--> Accepted
    Draft/Sent/Viewed --record_signature--> Accepted
    Draft/Sent/Viewed --update_status--> Sent/Viewed/Accepted/Rejected/Expired/Converted
    any --attach_pdf--> same status

Accepted, Rejected, Expired and Converted are terminal. Every guard is checked
before the deal is touched, so a failed transition leaves it unchanged.
"""

import html
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from core.exceptions import (
    AlreadySigned,
    DealLocked,
    DeliveryError,
    InvalidSignature,
    InvalidStatusTransition,
)
from db.repository import DealRepository
from models.deal import Deal, utcnow
from models.enums import DealStatus, TERMINAL_STATUSES
from services.mailer import EmailSender
from services.signature_tokens import SignatureTokenService

logger = logging.getLogger("deal_lifecycle")


SIGNABLE_STATUSES = frozenset({DealStatus.SENT, DealStatus.VIEWED})

MANUAL_TARGETS = frozenset({
    DealStatus.SENT,
    DealStatus.VIEWED,
    DealStatus.ACCEPTED,
    DealStatus.REJECTED,
    DealStatus.EXPIRED,
    DealStatus.CONVERTED,
})


def ensure_editable(deal: Deal) -> None:
    """Line items and pricing of a terminal deal are frozen."""
    if deal.status in TERMINAL_STATUSES:
        raise DealLocked(f"Deal {deal.id} is {deal.status.value} and can no longer be edited")


def _require_signature_fields(name: str, email: str, signature_image: str) -> None:
    if not (name and name.strip()) or not (email and email.strip()) or not signature_image:
        raise InvalidSignature("Name, email, and signature image are required")


@dataclass(frozen=True)
class SignatureRequest:
    deal: Deal
    token: str
    signature_url: str
    delivered: bool


@dataclass(frozen=True)
class SignatureVerification:
    deal: Deal
    recipient_email: str


def render_signature_email(deal: Deal, recipient_name: str, signature_url: str) -> str:
    name = html.escape(deal.name)
    quote_number = html.escape(deal.quote_number or "")
    url = html.escape(signature_url, quote=True)
    return f"""
        <h2>Signature Request</h2>
        <p>Dear {html.escape(recipient_name)},</p>
        <p>You have received a quote.</p>
        <p><strong>Quote Details:</strong></p>
        <ul>
          <li>Quote Number: {quote_number}</li>
          <li>Quote Name: {name}</li>
          <li>Amount: {html.escape(deal.currency)} {deal.total_amount:.2f}</li>
        </ul>
        <p>Please click the link below to view and sign the quote:</p>
        <p><a href="{url}" style="display: inline-block; padding: 10px 20px; background-color: #4CAF50; color: white; text-decoration: none; border-radius: 4px;">View and Sign Quote</a></p>
        <p>Or copy and paste this URL into your browser:</p>
        <p>{url}</p>
        <p>This link will expire in 30 days.</p>
    """


class DealLifecycle:
    def __init__(
        self,
        repository: DealRepository,
        tokens: SignatureTokenService,
        email_sender: EmailSender,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.repository = repository
        self.tokens = tokens
        self.email_sender = email_sender
        self.clock = clock

    def send_signature_request(
        self,
        deal_id: str,
        recipient_email: str,
        recipient_name: str,
        base_url: str,
    ) -> SignatureRequest:
        """
        Move a draft to Sent and email the recipient a signing link.

        Repeating the request while Sent or Viewed keeps the status and sends
        a fresh link. Delivery is best-effort: a failed email is logged and the
        transition stands.
        """
        deal = self.repository.load_deal(deal_id)
        if deal.status in TERMINAL_STATUSES:
            raise InvalidStatusTransition(deal.id, deal.status.value, DealStatus.SENT.value)

        now = self.clock()
        token = self.tokens.issue(deal.id, recipient_email, now=now)
        signature_url = f"{base_url.rstrip('/')}/signature/{token}"

        if deal.status == DealStatus.DRAFT:
            deal.status = DealStatus.SENT
            deal = self.repository.save_deal(deal)
            logger.info(f"Deal {deal.id} ({deal.quote_number}) Draft -> Sent")
        else:
            logger.debug(f"Deal {deal.id} already {deal.status.value}, resending signature request")

        delivered = True
        try:
            self.email_sender.deliver(
                recipient_email,
                f"Signature Request: {deal.name} ({deal.quote_number})",
                render_signature_email(deal, recipient_name, signature_url),
            )
        except DeliveryError as e:
            delivered = False
            logger.error(f"Signature request email for deal {deal.id} to {recipient_email} failed: {e}")

        return SignatureRequest(deal=deal, token=token, signature_url=signature_url, delivered=delivered)

    def verify_signature_token(self, token: str) -> SignatureVerification:
        """Resolve a signing link; the first visit of a sent quote marks it Viewed."""
        claims = self.tokens.verify(token)
        deal = self.repository.load_deal(claims.deal_id)

        if deal.status == DealStatus.SENT:
            deal.status = DealStatus.VIEWED
            deal = self.repository.save_deal(deal)
            logger.info(f"Deal {deal.id} ({deal.quote_number}) Sent -> Viewed")

        return SignatureVerification(deal=deal, recipient_email=claims.recipient_email)

    def apply_signature(
        self,
        token: str,
        name: str,
        email: str,
        signature_image: str,
        title: str | None = None,
    ) -> Deal:
        _require_signature_fields(name, email, signature_image)
        claims = self.tokens.verify(token)
        deal = self.repository.load_deal(claims.deal_id)

        if deal.status == DealStatus.ACCEPTED:
            raise AlreadySigned(f"Deal {deal.id} has already been accepted")
        if deal.status not in SIGNABLE_STATUSES:
            raise InvalidStatusTransition(deal.id, deal.status.value, DealStatus.ACCEPTED.value)

        return self._sign(deal, name, email, signature_image, title)

    def record_signature(
        self,
        deal_id: str,
        name: str,
        email: str,
        signature_image: str,
        title: str | None = None,
    ) -> Deal:
        """
        Capture a signature collected by an operator (in person, on paper).

        Any open deal can be signed this way, including a draft. An accepted
        deal raises AlreadySigned, like a second signature through the link.
        """
        _require_signature_fields(name, email, signature_image)
        deal = self.repository.load_deal(deal_id)

        if deal.status == DealStatus.ACCEPTED:
            raise AlreadySigned(f"Deal {deal.id} has already been accepted")
        if deal.status in TERMINAL_STATUSES:
            raise InvalidStatusTransition(deal.id, deal.status.value, DealStatus.ACCEPTED.value)

        return self._sign(deal, name, email, signature_image, title)

    def _sign(self, deal: Deal, name: str, email: str, signature_image: str, title: str | None) -> Deal:
        previous = deal.status
        deal.signer_name = name.strip()
        deal.signer_email = email.strip()
        deal.signer_title = title
        deal.signature_image = signature_image
        deal.signature_date = self.clock()
        deal.status = DealStatus.ACCEPTED
        deal = self.repository.save_deal(deal)
        logger.info(f"Deal {deal.id} ({deal.quote_number}) signed, {previous.value} -> Accepted")
        return deal

    def update_status(self, deal_id: str, status: DealStatus) -> Deal:
        status = DealStatus(status)
        deal = self.repository.load_deal(deal_id)

        if deal.status == status:
            logger.debug(f"Deal {deal.id} already {status.value}")
            return deal
        if deal.status in TERMINAL_STATUSES or status not in MANUAL_TARGETS:
            raise InvalidStatusTransition(deal.id, deal.status.value, status.value)

        previous = deal.status
        deal.status = status
        if status == DealStatus.ACCEPTED and not deal.signature_date:
            deal.signature_date = self.clock()
        deal = self.repository.save_deal(deal)
        logger.info(f"Deal {deal.id} ({deal.quote_number}) {previous.value} -> {status.value} (manual)")
        return deal

    def attach_pdf(self, deal_id: str, pdf_ref: str) -> Deal:
        deal = self.repository.load_deal(deal_id)
        deal.pdf_url = pdf_ref
        return self.repository.save_deal(deal)
