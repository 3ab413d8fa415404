import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from core.security import TokenSigner
from db.session import get_session
from main import app
from services.mailer import LoggingEmailSender, get_email_sender
from services.pdf_generator import PdfRenderer, get_pdf_renderer
from services.signature_tokens import SignatureTokenService, get_signature_token_service

TEST_SECRET = "test-signature-secret-0123456789abcdef"


@pytest.fixture(name="session")
def session_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture
def email_sender():
    return LoggingEmailSender()


@pytest.fixture
def token_service():
    return SignatureTokenService(TokenSigner(TEST_SECRET))


@pytest.fixture(name="client")
def client_fixture(session: Session, email_sender, token_service, tmp_path):
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_email_sender] = lambda: email_sender
    app.dependency_overrides[get_signature_token_service] = lambda: token_service
    app.dependency_overrides[get_pdf_renderer] = lambda: PdfRenderer(
        str(tmp_path), "/uploads/quotes", "Test Company"
    )

    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
