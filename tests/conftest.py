"""Test configuration and fixtures for route and service tests."""

import os
import uuid
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Override settings before importing app modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_lettertrack.db"
os.environ["MISTRAL_API_KEY"] = "test-mistral-key"
os.environ["MAIL_RELAY_URL"] = "http://relay.test/send"
os.environ["MAIL_RELAY_API_KEY"] = "test-relay-key"
os.environ["MAIL_FROM_ADDRESS"] = "letters@example.com"
os.environ["FRONTEND_URL"] = "http://localhost:3000"

from lettertrack.database import Base, get_db
from lettertrack.dependencies import get_mail_relay, get_recognition_service
from lettertrack.enums import LetterStatus, Urgency
from lettertrack.models import Bureau, Letter
from lettertrack.services.mail import MailRelay
from lettertrack.services.ocr import RecognitionService, RecognizedPage
from main import app

SAMPLE_LETTER_TEXT = """Ministry of Works
Plot 12, Kampala Road
Date: August 15, 2025
To: The Permanent Secretary
Subject: Request for Road Maintenance Funds
Dear Sir,
This is an urgent request for priority attention to the damaged roads.
Contact us at works@example.org or +256 700 123 456.
Yours Faithfully, Jane Okello
"""

test_engine = create_async_engine(os.environ["DATABASE_URL"], echo=False)
test_async_session = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@pytest.fixture
async def setup_database():
    """Create the schema for a test and drop it afterwards."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
async def db_session(setup_database) -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test."""
    async with test_async_session() as session:
        yield session


@pytest.fixture
async def override_db(db_session: AsyncSession):
    """Override the get_db dependency to use test database."""

    async def _get_test_db():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = _get_test_db
    yield
    app.dependency_overrides.clear()


@pytest.fixture
async def client(override_db) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def test_letter(db_session: AsyncSession) -> Letter:
    """Create a logged letter with an attachment and a receiver email."""
    letter = Letter(
        id=uuid.uuid4(),
        title="Request for Road Maintenance Funds",
        sender_name="Jane Okello",
        sender_email="works@example.org",
        receiver_email="secretary@example.com",
        content="This is an urgent request for road maintenance funds.",
        priority=Urgency.URGENT,
        status=LetterStatus.RECEIVED,
        received_by="Registry Clerk",
        attachment_url="https://files.example.com/letters/road-funds.pdf",
    )
    db_session.add(letter)
    await db_session.flush()
    return letter


@pytest.fixture
async def test_bureau(db_session: AsyncSession) -> Bureau:
    """Create a bureau with two members."""
    bureau = Bureau(
        id=uuid.uuid4(),
        name="Finance",
        members=["alice@example.com", "bob@example.com"],
    )
    db_session.add(bureau)
    await db_session.flush()
    return bureau


# Mock fixtures for external services


@pytest.fixture
def mock_relay() -> MailRelay:
    """Mail relay whose send succeeds with a predictable message id."""
    relay = MailRelay(
        url="http://relay.test/send",
        api_key="test-relay-key",
        from_address="letters@example.com",
    )
    relay.send = AsyncMock(side_effect=lambda email: f"msg-{email.to}")
    app.dependency_overrides[get_mail_relay] = lambda: relay
    yield relay
    app.dependency_overrides.pop(get_mail_relay, None)


@pytest.fixture
def mock_ocr():
    """OCR engine returning SAMPLE_LETTER_TEXT as a one-page document."""
    ocr = MagicMock()
    ocr.recognize = AsyncMock(
        return_value=RecognizedPage(
            text=SAMPLE_LETTER_TEXT.strip(),
            page_count=1,
            mime_type="image/png",
        )
    )
    service = RecognitionService(ocr=ocr, max_size=1024 * 1024)
    app.dependency_overrides[get_recognition_service] = lambda: service
    yield ocr
    app.dependency_overrides.pop(get_recognition_service, None)
