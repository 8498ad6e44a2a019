"""Pytest configuration and shared fixtures.

API tests drive the FastAPI app in-process through httpx against a throwaway
SQLite database; the session and mailer dependencies are overridden.
"""

import os

# must be set before the app (and its settings) are imported
os.environ.setdefault("DATABASE_ASYNC_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing-only")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("MAIL_SUPPRESS_SEND", "true")

import uuid
from collections.abc import AsyncGenerator
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.core.security import SecurityService
from app.db.models.database import Admin, Base, Course, Enquiry, Institute, Review, User
from app.db.session import get_session
from app.main import app
from app.services.shares.mailer import MailerService

DEFAULT_PASSWORD = "secret123"


# =============================================================================
# Mail
# =============================================================================


class FakeMailer:
    """Records outgoing mail instead of talking to SMTP."""

    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []

    async def send_welcome_email(self, email: str, name: str, account_type: str) -> bool:
        self.sent.append({"template": "welcome", "to": email, "account_type": account_type})
        return True

    async def send_enquiry_reply_email(
        self, email: str, name: str, institute_name: str, enquiry_message: str, reply: str
    ) -> bool:
        self.sent.append(
            {"template": "enquiry_reply", "to": email, "institute": institute_name, "reply": reply}
        )
        return True


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


# =============================================================================
# Database
# =============================================================================


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """Fresh SQLite file per test, schema created from the ORM metadata."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'edulist_test.db'}", poolclass=NullPool
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory, mailer) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[MailerService] = lambda: mailer

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# =============================================================================
# Factories
# =============================================================================


def _email(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}@example.com"


@pytest.fixture
def make_institute(db):
    async def _make(**overrides) -> Institute:
        data = {
            "name": "Sunrise Academy",
            "email": _email("institute"),
            "password": await SecurityService.hash_password(DEFAULT_PASSWORD),
            "category": "coaching",
            "description": "Coaching for competitive exams",
            "address": {"city": "Pune", "state": "Maharashtra"},
            "approval_status": "approved",
            "verified": True,
        }
        data.update(overrides)
        institute = Institute(**data)
        db.add(institute)
        await db.commit()
        return institute

    return _make


@pytest.fixture
def make_user(db):
    async def _make(role: str = "user", institute: Institute | None = None, **overrides) -> User:
        data = {
            "name": "Asha Verma",
            "email": _email(role),
            "password": await SecurityService.hash_password(DEFAULT_PASSWORD),
            "role": role,
            "institute_id": institute.id if institute else None,
        }
        data.update(overrides)
        user = User(**data)
        db.add(user)
        await db.commit()
        return user

    return _make


@pytest.fixture
def make_admin(db):
    async def _make(**overrides) -> Admin:
        data = {
            "name": "Platform Admin",
            "email": _email("admin"),
            "password": await SecurityService.hash_password(DEFAULT_PASSWORD),
            "role": "superadmin",
        }
        data.update(overrides)
        admin = Admin(**data)
        db.add(admin)
        await db.commit()
        return admin

    return _make


@pytest.fixture
def make_review(db):
    async def _make(user: User, institute: Institute, rating: int = 4, **overrides) -> Review:
        data = {
            "user_id": user.id,
            "institute_id": institute.id,
            "rating": rating,
            "comment": "Great teachers and a helpful staff.",
            "approved": True,
        }
        data.update(overrides)
        review = Review(**data)
        db.add(review)
        await db.commit()
        return review

    return _make


@pytest.fixture
def make_course(db):
    async def _make(institute: Institute, **overrides) -> Course:
        data = {
            "title": "JEE Foundation",
            "description": "Two year foundation programme for JEE aspirants",
            "duration": "2 years",
            "price": 45000.0,
            "original_price": 50000.0,
            "institute_id": institute.id,
            "category": "competitive",
            "status": "active",
        }
        data.update(overrides)
        course = Course(**data)
        db.add(course)
        await db.commit()
        return course

    return _make


@pytest.fixture
def make_enquiry(db):
    async def _make(institute: Institute, **overrides) -> Enquiry:
        data = {
            "name": "Rohan Mehta",
            "email": "rohan@example.com",
            "message": "What are the batch timings for the weekend course?",
            "institute_id": institute.id,
        }
        data.update(overrides)
        enquiry = Enquiry(**data)
        db.add(enquiry)
        await db.commit()
        return enquiry

    return _make


# =============================================================================
# Auth helpers
# =============================================================================


@pytest.fixture
def auth_headers():
    """Bearer header for any account row; `account` selects the table the token points at."""

    async def _headers(entity: Any, account: str = "user") -> dict[str, str]:
        token = await SecurityService().create_access_token(str(entity.id), account=account)
        return {"Authorization": f"Bearer {token}"}

    return _headers
