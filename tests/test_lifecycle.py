"""Tests for the quote lifecycle state machine."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from core.exceptions import (
    AlreadySigned,
    DealLocked,
    DealNotFound,
    DeliveryError,
    InvalidOrExpiredToken,
    InvalidSignature,
    InvalidStatusTransition,
)
from db.repository import InMemoryDealRepository
from models.deal import Deal, LineItem
from models.enums import DealStatus
from services.lifecycle import DealLifecycle, ensure_editable

SIGNATURE_IMAGE = "data:image/png;base64,iVBORw0KGgo="


class FrozenClock:
    def __init__(self):
        self.now = datetime.now(timezone.utc).replace(microsecond=0)

    def __call__(self):
        return self.now


class FailingSender:
    def deliver(self, to, subject, html_body):
        raise DeliveryError("SMTP server unavailable")


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def repository(clock):
    return InMemoryDealRepository(clock=clock)


@pytest.fixture
def lifecycle(repository, token_service, email_sender, clock):
    return DealLifecycle(repository, token_service, email_sender, clock=clock)


@pytest.fixture
def draft_deal(repository) -> Deal:
    deal = Deal(name="Website Redesign", currency="USD", tax_rate=Decimal("5"))
    deal.line_items = [
        LineItem(description="Design", quantity=Decimal("2"), unit_price=Decimal("100"),
                 discount_percent=Decimal("10"), tax_percent=Decimal("5")),
    ]
    return repository.save_deal(deal)


def send(lifecycle, deal):
    return lifecycle.send_signature_request(deal.id, "buyer@example.com", "Buyer", "https://crm.example.com/")


def test_send_moves_draft_to_sent(lifecycle, draft_deal, email_sender):
    result = send(lifecycle, draft_deal)

    assert result.deal.status == DealStatus.SENT
    assert result.delivered is True
    assert result.signature_url == f"https://crm.example.com/signature/{result.token}"

    assert len(email_sender.outbox) == 1
    message = email_sender.outbox[0]
    assert message["to"] == "buyer@example.com"
    assert message["subject"] == f"Signature Request: Website Redesign ({draft_deal.quote_number})"
    assert result.signature_url in message["html"]
    assert "USD 198.45" in message["html"]


def test_send_again_is_not_an_error(lifecycle, draft_deal, email_sender):
    send(lifecycle, draft_deal)
    result = send(lifecycle, draft_deal)

    assert result.deal.status == DealStatus.SENT
    assert len(email_sender.outbox) == 2


def test_send_keeps_viewed_status(lifecycle, draft_deal):
    token = send(lifecycle, draft_deal).token
    lifecycle.verify_signature_token(token)

    result = send(lifecycle, draft_deal)
    assert result.deal.status == DealStatus.VIEWED


def test_failed_delivery_does_not_roll_back(repository, token_service, clock, draft_deal):
    lifecycle = DealLifecycle(repository, token_service, FailingSender(), clock=clock)
    result = send(lifecycle, draft_deal)

    assert result.delivered is False
    assert repository.load_deal(draft_deal.id).status == DealStatus.SENT


def test_send_for_terminal_deal_is_rejected(lifecycle, draft_deal):
    lifecycle.update_status(draft_deal.id, DealStatus.REJECTED)
    with pytest.raises(InvalidStatusTransition):
        send(lifecycle, draft_deal)


def test_send_for_unknown_deal(lifecycle):
    with pytest.raises(DealNotFound):
        lifecycle.send_signature_request("missing", "buyer@example.com", "Buyer", "https://crm.example.com")


def test_verify_marks_sent_deal_viewed(lifecycle, draft_deal):
    token = send(lifecycle, draft_deal).token
    verification = lifecycle.verify_signature_token(token)

    assert verification.recipient_email == "buyer@example.com"
    assert verification.deal.status == DealStatus.VIEWED

    # A second visit changes nothing
    assert lifecycle.verify_signature_token(token).deal.status == DealStatus.VIEWED


def test_verify_expired_token_leaves_deal_untouched(lifecycle, draft_deal, token_service):
    send(lifecycle, draft_deal)
    stale = token_service.issue(
        draft_deal.id, "buyer@example.com",
        now=datetime.now(timezone.utc) - timedelta(days=31),
    )

    with pytest.raises(InvalidOrExpiredToken):
        lifecycle.verify_signature_token(stale)
    assert draft_deal.status == DealStatus.SENT


def test_apply_signature_accepts_deal(lifecycle, draft_deal, clock):
    token = send(lifecycle, draft_deal).token
    deal = lifecycle.apply_signature(token, "Jane Buyer", "jane@example.com", SIGNATURE_IMAGE, title="CTO")

    assert deal.status == DealStatus.ACCEPTED
    assert deal.signature_date == clock.now
    assert deal.signed_by == {
        "name": "Jane Buyer",
        "email": "jane@example.com",
        "title": "CTO",
        "signature_image": SIGNATURE_IMAGE,
    }


def test_second_signature_raises_already_signed(lifecycle, draft_deal, clock):
    token = send(lifecycle, draft_deal).token
    lifecycle.apply_signature(token, "Jane Buyer", "jane@example.com", SIGNATURE_IMAGE)
    signed_at = draft_deal.signature_date

    clock.now += timedelta(hours=1)
    with pytest.raises(AlreadySigned):
        lifecycle.apply_signature(token, "Someone Else", "else@example.com", SIGNATURE_IMAGE)

    assert draft_deal.status == DealStatus.ACCEPTED
    assert draft_deal.signature_date == signed_at
    assert draft_deal.signer_name == "Jane Buyer"


def test_signature_after_viewing(lifecycle, draft_deal):
    token = send(lifecycle, draft_deal).token
    lifecycle.verify_signature_token(token)

    deal = lifecycle.apply_signature(token, "Jane Buyer", "jane@example.com", SIGNATURE_IMAGE)
    assert deal.status == DealStatus.ACCEPTED


def test_signature_with_expired_token_does_not_mutate(lifecycle, draft_deal, token_service):
    send(lifecycle, draft_deal)
    stale = token_service.issue(
        draft_deal.id, "buyer@example.com",
        now=datetime.now(timezone.utc) - timedelta(days=30, seconds=1),
    )

    with pytest.raises(InvalidOrExpiredToken):
        lifecycle.apply_signature(stale, "Jane Buyer", "jane@example.com", SIGNATURE_IMAGE)

    assert draft_deal.status == DealStatus.SENT
    assert draft_deal.signer_name is None
    assert draft_deal.signature_date is None


@pytest.mark.parametrize("name,email,image", [
    ("", "jane@example.com", SIGNATURE_IMAGE),
    ("Jane Buyer", "", SIGNATURE_IMAGE),
    ("Jane Buyer", "jane@example.com", ""),
])
def test_signature_requires_all_fields(lifecycle, draft_deal, name, email, image):
    token = send(lifecycle, draft_deal).token
    with pytest.raises(InvalidSignature):
        lifecycle.apply_signature(token, name, email, image)
    assert draft_deal.status == DealStatus.SENT


def test_signature_for_unknown_deal(lifecycle, token_service):
    token = token_service.issue("deleted-deal", "buyer@example.com")
    with pytest.raises(DealNotFound):
        lifecycle.apply_signature(token, "Jane Buyer", "jane@example.com", SIGNATURE_IMAGE)


def test_signature_on_draft_is_rejected(lifecycle, draft_deal, token_service):
    token = token_service.issue(draft_deal.id, "buyer@example.com")
    with pytest.raises(InvalidStatusTransition):
        lifecycle.apply_signature(token, "Jane Buyer", "jane@example.com", SIGNATURE_IMAGE)
    assert draft_deal.status == DealStatus.DRAFT


def test_manual_status_updates(lifecycle, draft_deal):
    deal = lifecycle.update_status(draft_deal.id, DealStatus.REJECTED)
    assert deal.status == DealStatus.REJECTED

    with pytest.raises(InvalidStatusTransition):
        lifecycle.update_status(draft_deal.id, DealStatus.CONVERTED)


def test_manual_accept_sets_signature_date(lifecycle, draft_deal, clock):
    deal = lifecycle.update_status(draft_deal.id, DealStatus.ACCEPTED)
    assert deal.status == DealStatus.ACCEPTED
    assert deal.signature_date == clock.now
    assert deal.signed_by is None


def test_manual_update_to_same_status_is_a_noop(lifecycle, draft_deal):
    updated_at = draft_deal.updated_at
    deal = lifecycle.update_status(draft_deal.id, DealStatus.DRAFT)
    assert deal.status == DealStatus.DRAFT
    assert deal.updated_at == updated_at


def test_cannot_return_to_draft(lifecycle, draft_deal):
    send(lifecycle, draft_deal)
    with pytest.raises(InvalidStatusTransition):
        lifecycle.update_status(draft_deal.id, DealStatus.DRAFT)


def test_attach_pdf_keeps_status(lifecycle, draft_deal):
    send(lifecycle, draft_deal)
    deal = lifecycle.attach_pdf(draft_deal.id, "/uploads/quotes/quote_Q2504_0001.pdf")

    assert deal.pdf_url == "/uploads/quotes/quote_Q2504_0001.pdf"
    assert deal.status == DealStatus.SENT


def test_terminal_deals_are_locked(lifecycle, draft_deal):
    ensure_editable(draft_deal)
    lifecycle.update_status(draft_deal.id, DealStatus.CONVERTED)
    with pytest.raises(DealLocked):
        ensure_editable(draft_deal)


def test_operator_signature_on_draft(lifecycle, draft_deal, clock):
    deal = lifecycle.record_signature(draft_deal.id, "Jane Buyer", "jane@example.com", SIGNATURE_IMAGE)
    assert deal.status == DealStatus.ACCEPTED
    assert deal.signature_date == clock.now

    with pytest.raises(AlreadySigned):
        lifecycle.record_signature(draft_deal.id, "Other", "other@example.com", SIGNATURE_IMAGE)


def test_operator_signature_on_closed_deal(lifecycle, draft_deal):
    lifecycle.update_status(draft_deal.id, DealStatus.EXPIRED)
    with pytest.raises(InvalidStatusTransition):
        lifecycle.record_signature(draft_deal.id, "Jane Buyer", "jane@example.com", SIGNATURE_IMAGE)
    assert draft_deal.signer_name is None


def test_operator_signature_for_unknown_deal(lifecycle):
    with pytest.raises(DealNotFound):
        lifecycle.record_signature("missing", "Jane Buyer", "jane@example.com", SIGNATURE_IMAGE)
