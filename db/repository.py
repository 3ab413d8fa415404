"""
Deal persistence collaborators.

Both repositories recompute every derived total right before a write and
assign the quote number exactly once, on the first successful save.
Callers are expected to serialize writes to the same deal.
"""

import logging
from datetime import datetime
from typing import Callable, Protocol

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, func, select

from core.exceptions import DealNotFound, QuoteNumberCollision
from models.deal import Deal, utcnow
from services.quote_number import generate_quote_number
from services.totals import recompute_totals

logger = logging.getLogger("deal_repository")


class DealRepository(Protocol):
    def load_deal(self, deal_id: str) -> Deal: ...

    def save_deal(self, deal: Deal) -> Deal: ...

    def next_quote_sequence(self) -> int: ...

    def delete_deal(self, deal_id: str) -> None: ...


class SqlDealRepository:
    """SQLModel-backed repository; the unique index on quote_number guards allocation."""

    def __init__(self, session: Session, max_attempts: int = 5, clock: Callable[[], datetime] = utcnow):
        self.session = session
        self.max_attempts = max_attempts
        self.clock = clock

    def load_deal(self, deal_id: str) -> Deal:
        deal = self.session.get(Deal, deal_id)
        if not deal:
            raise DealNotFound(deal_id)
        return deal

    def list_deals(self, offset: int = 0, limit: int = 10) -> tuple[list[Deal], int]:
        total = self.session.exec(select(func.count()).select_from(Deal)).one()
        statement = select(Deal).order_by(Deal.created_at.desc()).offset(offset).limit(limit)
        return list(self.session.exec(statement).all()), total

    def next_quote_sequence(self) -> int:
        count = self.session.exec(
            select(func.count()).select_from(Deal).where(Deal.quote_number.is_not(None))
        ).one()
        return count + 1

    def delete_deal(self, deal_id: str) -> None:
        deal = self.load_deal(deal_id)
        self.session.delete(deal)
        self.session.commit()
        logger.info(f"Deal {deal_id} ({deal.quote_number}) deleted")

    def save_deal(self, deal: Deal) -> Deal:
        recompute_totals(deal)
        now = self.clock()
        deal.updated_at = now

        if deal.quote_number:
            self.session.add(deal)
            try:
                self.session.commit()
            except SQLAlchemyError:
                self.session.rollback()
                raise
            self.session.refresh(deal)
            return deal

        existing = self.next_quote_sequence() - 1
        for attempt in range(self.max_attempts):
            deal.quote_number = generate_quote_number(existing + attempt, now)
            self.session.add(deal)
            try:
                self.session.commit()
            except IntegrityError as e:
                self.session.rollback()
                if "quote_number" not in str(e.orig):
                    deal.quote_number = None
                    raise
                logger.warning(
                    f"Quote number {deal.quote_number} already taken "
                    f"(attempt {attempt + 1}/{self.max_attempts})"
                )
                continue
            self.session.refresh(deal)
            logger.info(f"Deal {deal.id} assigned quote number {deal.quote_number}")
            return deal

        deal.quote_number = None
        raise QuoteNumberCollision(
            f"Could not allocate a quote number after {self.max_attempts} attempts"
        )


class InMemoryDealRepository:
    """Dict-backed repository for tests and database-less development."""

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self.clock = clock
        self.deals: dict[str, Deal] = {}

    def load_deal(self, deal_id: str) -> Deal:
        try:
            return self.deals[deal_id]
        except KeyError:
            raise DealNotFound(deal_id) from None

    def list_deals(self, offset: int = 0, limit: int = 10) -> tuple[list[Deal], int]:
        ordered = sorted(self.deals.values(), key=lambda d: d.created_at, reverse=True)
        return ordered[offset:offset + limit], len(ordered)

    def next_quote_sequence(self) -> int:
        return sum(1 for deal in self.deals.values() if deal.quote_number) + 1

    def delete_deal(self, deal_id: str) -> None:
        self.load_deal(deal_id)
        del self.deals[deal_id]

    def save_deal(self, deal: Deal) -> Deal:
        recompute_totals(deal)
        now = self.clock()
        deal.updated_at = now
        if not deal.quote_number:
            taken = {d.quote_number for d in self.deals.values()}
            existing = self.next_quote_sequence() - 1
            candidate = generate_quote_number(existing, now)
            while candidate in taken:
                existing += 1
                candidate = generate_quote_number(existing, now)
            deal.quote_number = candidate
        self.deals[deal.id] = deal
        return deal
