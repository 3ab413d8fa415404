from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from core.dependencies import get_clock
from core.exceptions import DealNotFound, QuoteNumberCollision
from db.repository import InMemoryDealRepository, SqlDealRepository
from models.deal import Deal, LineItem, utcnow
from services.lifecycle import DealLifecycle

APRIL_2025 = datetime(2025, 4, 10, 9, 30, tzinfo=timezone.utc)


def fixed_clock():
    return APRIL_2025


def make_deal(name="Support Contract", prices=("5000", "3000", "2000")) -> Deal:
    deal = Deal(name=name, discount_value=Decimal("10"), tax_rate=Decimal("5"))
    deal.line_items = [
        LineItem(description=f"Item {index}", unit_price=Decimal(price), order=index)
        for index, price in enumerate(prices)
    ]
    return deal


@pytest.fixture
def repository(session: Session):
    return SqlDealRepository(session, clock=fixed_clock)


def test_save_assigns_quote_number_and_totals(repository):
    deal = repository.save_deal(make_deal())

    assert deal.quote_number == "Q2504-0001"
    assert deal.subtotal == Decimal("10000.00")
    assert deal.tax_amount == Decimal("450.00")
    assert deal.total_amount == Decimal("9450.00")
    assert deal.amount == Decimal("9450.00")


def test_quote_numbers_are_sequential(repository):
    numbers = [repository.save_deal(make_deal(name=f"Deal {i}")).quote_number for i in range(3)]
    assert numbers == ["Q2504-0001", "Q2504-0002", "Q2504-0003"]


def test_quote_number_is_kept_on_later_saves(session, repository):
    deal = repository.save_deal(make_deal())

    later = SqlDealRepository(session, clock=lambda: datetime(2026, 1, 2, tzinfo=timezone.utc))
    deal.name = "Renamed"
    deal = later.save_deal(deal)

    assert deal.quote_number == "Q2504-0001"
    assert later.next_quote_sequence() == 2


def test_collision_retries_with_next_number(session, repository):
    # A number handed out elsewhere occupies the slot the counter points at
    session.add(Deal(name="Imported", quote_number="Q2504-0002"))
    session.commit()

    deal = repository.save_deal(make_deal())
    assert deal.quote_number == "Q2504-0003"


def test_collision_gives_up_after_max_attempts(session):
    session.add(Deal(name="Imported", quote_number="Q2504-0002"))
    session.commit()

    repository = SqlDealRepository(session, max_attempts=1, clock=fixed_clock)
    deal = make_deal()
    with pytest.raises(QuoteNumberCollision):
        repository.save_deal(deal)
    assert deal.quote_number is None


def test_load_missing_deal(repository):
    with pytest.raises(DealNotFound):
        repository.load_deal("does-not-exist")


def test_replacing_line_items_deletes_old_rows(session, repository):
    deal = repository.save_deal(make_deal())
    deal.line_items = [LineItem(description="Single", unit_price=Decimal("42"))]
    deal = repository.save_deal(deal)

    rows = session.exec(select(LineItem)).all()
    assert len(rows) == 1
    assert deal.subtotal == Decimal("42.00")


def test_list_deals_paginates(repository):
    for i in range(3):
        repository.save_deal(make_deal(name=f"Deal {i}"))

    deals, total = repository.list_deals(offset=0, limit=2)
    assert total == 3
    assert len(deals) == 2


def test_in_memory_repository_matches_sql_numbering():
    repository = InMemoryDealRepository(clock=fixed_clock)

    first = repository.save_deal(make_deal())
    second = repository.save_deal(make_deal(name="Second"))
    first = repository.save_deal(first)

    assert first.quote_number == "Q2504-0001"
    assert second.quote_number == "Q2504-0002"
    assert first.total_amount == Decimal("9450.00")
    assert repository.load_deal(second.id) is second

    with pytest.raises(DealNotFound):
        repository.load_deal("does-not-exist")


def test_failed_update_leaves_session_usable(repository):
    first = repository.save_deal(make_deal(name="First"))
    second = repository.save_deal(make_deal(name="Second"))
    second_id = second.id

    second.quote_number = first.quote_number
    with pytest.raises(IntegrityError):
        repository.save_deal(second)

    assert repository.load_deal(second_id).quote_number == "Q2504-0002"
    assert repository.save_deal(make_deal(name="Third")).quote_number == "Q2504-0003"


def test_next_quote_sequence_is_a_read(repository):
    repository.save_deal(make_deal())
    assert repository.next_quote_sequence() == 2
    assert repository.next_quote_sequence() == 2


def test_in_memory_next_quote_sequence_is_a_read():
    repository = InMemoryDealRepository(clock=fixed_clock)
    assert repository.next_quote_sequence() == 1
    assert repository.next_quote_sequence() == 1

    repository.save_deal(make_deal())
    assert repository.next_quote_sequence() == 2
    assert repository.save_deal(make_deal(name="Second")).quote_number == "Q2504-0002"


def test_delete_deal_removes_line_items(session, repository):
    deal = repository.save_deal(make_deal())
    repository.delete_deal(deal.id)

    with pytest.raises(DealNotFound):
        repository.load_deal(deal.id)
    assert session.exec(select(LineItem)).all() == []
    with pytest.raises(DealNotFound):
        repository.delete_deal(deal.id)


def test_numbering_after_delete_skips_taken_numbers(repository):
    first = repository.save_deal(make_deal(name="First"))
    repository.save_deal(make_deal(name="Second"))
    repository.delete_deal(first.id)

    # One numbered deal left, so the counter points at the number still in use
    assert repository.save_deal(make_deal(name="Third")).quote_number == "Q2504-0003"


def test_in_memory_numbering_after_delete():
    repository = InMemoryDealRepository(clock=fixed_clock)
    first = repository.save_deal(make_deal(name="First"))
    repository.save_deal(make_deal(name="Second"))
    repository.delete_deal(first.id)

    assert repository.save_deal(make_deal(name="Third")).quote_number == "Q2504-0003"


def test_default_clock_is_shared(session):
    assert SqlDealRepository(session).clock is utcnow
    assert InMemoryDealRepository().clock is utcnow
    assert DealLifecycle(None, None, None).clock is utcnow
    assert get_clock() is utcnow
    assert utcnow().tzinfo is not None
