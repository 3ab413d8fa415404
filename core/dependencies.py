"""FastAPI dependencies wiring the deal services to their collaborators."""

from datetime import datetime
from typing import Callable

from fastapi import Depends
from sqlmodel import Session

from core.config import settings
from db.repository import SqlDealRepository
from db.session import get_session
from models.deal import utcnow
from services.lifecycle import DealLifecycle
from services.mailer import EmailSender, get_email_sender
from services.signature_tokens import SignatureTokenService, get_signature_token_service


def get_clock() -> Callable[[], datetime]:
    return utcnow


def get_repository(
    db: Session = Depends(get_session),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> SqlDealRepository:
    return SqlDealRepository(db, max_attempts=settings.quote_number_max_attempts, clock=clock)


def get_lifecycle(
    repository: SqlDealRepository = Depends(get_repository),
    tokens: SignatureTokenService = Depends(get_signature_token_service),
    email_sender: EmailSender = Depends(get_email_sender),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> DealLifecycle:
    return DealLifecycle(repository, tokens, email_sender, clock=clock)