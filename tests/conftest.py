import os

# settings are read at import time
os.environ.setdefault("SECRET_KEY", "test_secret_key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("EMAILS_FROM_EMAIL", "test@example.com")

import pytest
import uuid
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from unittest.mock import AsyncMock, MagicMock

from identity.core.security import TokenIssuer, get_password_hash, get_token_issuer
from identity.db.session import get_db
from identity.main import app
from identity.models.base import Base
from identity.models.users import User, UserRole, Verification
from identity.repositories.users import UserRepository
from identity.repositories.verifications import VerificationRepository
from identity.services.accounts import AccountService
from identity.services.notifier import get_notifier

TEST_SECRET = "test_secret_key"


@pytest.fixture
async def test_engine():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(test_engine):
    """Clean database session for each test"""
    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def users_repo(db_session):
    return UserRepository(db_session)


@pytest.fixture
def verifications_repo(db_session):
    return VerificationRepository(db_session)


@pytest.fixture
def token_issuer():
    return TokenIssuer(TEST_SECRET)


@pytest.fixture
def mock_notifier():
    """Notifier that records calls instead of sending mail"""
    notifier = MagicMock()
    notifier.send_verification_email = AsyncMock(return_value=None)
    return notifier


@pytest.fixture
def account_service(users_repo, verifications_repo, mock_notifier, token_issuer):
    """AccountService over the in-memory database"""
    return AccountService(
        users=users_repo,
        verifications=verifications_repo,
        notifier=mock_notifier,
        token_issuer=token_issuer,
    )


@pytest.fixture
def mocked_repositories():
    users = MagicMock(spec=UserRepository)
    users.create.side_effect = lambda **fields: User(**fields)
    users.save.side_effect = lambda user: user
    users.find_by_email.return_value = None

    verifications = MagicMock(spec=VerificationRepository)
    verifications.create.side_effect = lambda user: Verification(user=user, code="code")
    verifications.save.side_effect = lambda verification: verification
    verifications.delete_by_id.return_value = 1
    return users, verifications


@pytest.fixture
def mocked_service(mocked_repositories, mock_notifier):
    """AccountService with every collaborator mocked"""
    users, verifications = mocked_repositories
    token_issuer = MagicMock(spec=TokenIssuer)
    token_issuer.issue.return_value = "signed-token"
    return AccountService(
        users=users,
        verifications=verifications,
        notifier=mock_notifier,
        token_issuer=token_issuer,
    )


@pytest.fixture
async def test_user(db_session):
    """Verified user stored in the database"""
    user = User(
        id=uuid.uuid4(),
        email="test@example.com",
        password_hash=get_password_hash("password123"),
        role=UserRole.CLIENT,
        verified=True,
    )
    db_session.add(user)
    await db_session.commit()
    return {
        "user": user,
        "email": "test@example.com",
        "password": "password123",
        "id": user.id,
    }


@pytest.fixture
async def client(db_session, mock_notifier, token_issuer):
    """Test client with database, notifier and token issuer overridden"""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: mock_notifier
    app.dependency_overrides[get_token_issuer] = lambda: token_issuer

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides = {}


@pytest.fixture
def authorized_client(client, test_user, token_issuer):
    client.headers["Authorization"] = f"Bearer {token_issuer.issue(test_user['id'])}"
    return client
