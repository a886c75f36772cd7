# Copyright (C) 2024 LeFlow Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Pytest fixtures. The app runs against an in-memory SQLite database and a
recording mailer; no external services are needed."""

import re

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from leflow_server import rate_limit
from leflow_server.auth import hash_password
from leflow_server.database import get_db
from leflow_server.main import app
from leflow_server.models import Base, User, UserRole
from leflow_server.services.email import EmailDeliveryError, get_mailer

PASSWORD = "password123"


class FakeMailer:
    """Records messages instead of sending them. Set ``fail`` to simulate an outage."""

    def __init__(self) -> None:
        self.sent: list[dict] = []
        self.fail = False

    async def send(self, to: str, subject: str, html_body: str) -> str:
        if self.fail:
            raise EmailDeliveryError("simulated outage")
        self.sent.append({"to": to, "subject": subject, "html": html_body})
        return f"test-{len(self.sent)}"

    def last_code(self) -> str:
        match = re.search(r">(\d{6})<", self.sent[-1]["html"])
        assert match, "no verification code in last email"
        return match.group(1)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    rate_limit.reset()
    yield
    rate_limit.reset()


@pytest.fixture
async def session_factory(anyio_backend):
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    await engine.dispose()


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
async def client(session_factory, mailer):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session_factory):
    """Insert a user directly and return it."""

    async def _make_user(
        username: str,
        *,
        email: str | None = None,
        password: str = PASSWORD,
        verified: bool = True,
        terms: bool = True,
        admin: bool = False,
        banned: bool = False,
    ) -> User:
        async with session_factory() as db:
            user = User(
                username=username,
                email=email or f"{username}@example.com",
                password_hash=hash_password(password),
                role=UserRole.ADMIN if admin else UserRole.USER,
                email_verified=verified,
                terms_accepted=terms,
                banned=banned,
            )
            db.add(user)
            await db.commit()
            await db.refresh(user)
            return user

    return _make_user


@pytest.fixture
def login(client: AsyncClient):
    """Log in and return an Authorization header for the new session."""

    async def _login(username: str, password: str = PASSWORD) -> dict[str, str]:
        r = await client.post("/api/login", json={"username": username, "password": password})
        assert r.status_code == 200, r.text
        return {"Authorization": f"Bearer {r.json()['accessToken']}"}

    return _login
