import os

# Set testing environment variables before the app reads its settings
os.environ["TESTING"] = "1"
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import func, select  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from newsletter.core.database import enable_sqlite_foreign_keys, get_db  # noqa: E402
from newsletter.core.errors import MailError  # noqa: E402
from newsletter.core.service_dependencies import get_mailer  # noqa: E402
from newsletter.main import app  # noqa: E402
from newsletter.models import Base, Subscriber, SubscriptionToken  # noqa: E402
from newsletter.repositories.unit_of_work import SqlAlchemyUnitOfWork  # noqa: E402
from newsletter.services.email import ConsoleMailer  # noqa: E402


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FailingMailer(ConsoleMailer):
    """Mailer whose transport always refuses the connection."""

    async def send_confirmation(self, recipient, subject, html_body, text_body):
        try:
            raise ConnectionRefusedError(111, "Connection refused")
        except ConnectionRefusedError as e:
            raise MailError(f"SMTP delivery to {recipient} failed") from e


@pytest_asyncio.fixture
async def async_engine():
    """Create an async engine for testing."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def async_session(async_engine):
    """Create an async session for testing."""
    async_session_maker = async_sessionmaker(
        async_engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def uow(async_session):
    return SqlAlchemyUnitOfWork(async_session)


@pytest.fixture
def mailer():
    return ConsoleMailer()


@pytest.fixture
def failing_mailer():
    return FailingMailer()


@pytest_asyncio.fixture
async def override_get_db(async_session):
    """Override the get_db dependency."""

    async def _override_get_db():
        try:
            yield async_session
            await async_session.commit()
        except Exception:
            await async_session.rollback()
            raise

    return _override_get_db


async def _make_client(override_get_db, mailer):
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest_asyncio.fixture
async def client(override_get_db, mailer):
    """Create test client with overridden database and a recording mailer."""
    async with await _make_client(override_get_db, mailer) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def failing_mail_client(override_get_db, failing_mailer):
    """Create test client whose mailer always fails."""
    async with await _make_client(override_get_db, failing_mailer) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def subscriber_data():
    """Sample subscription form data."""
    return {"name": "le guin", "email": "ursula_le_guin@gmail.com"}


@pytest.fixture
def count_rows(async_session):
    """Count rows in the subscribers and subscription_tokens tables."""

    async def _count_rows():
        subscribers = await async_session.execute(select(func.count()).select_from(Subscriber))
        tokens = await async_session.execute(select(func.count()).select_from(SubscriptionToken))
        return subscribers.scalar(), tokens.scalar()

    return _count_rows
