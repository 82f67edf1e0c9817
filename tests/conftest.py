"""Shared fixtures: in-memory DB, seeded users, catalog, channels, fake sockets."""

from __future__ import annotations

import asyncio
import json
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from workshop.db import crud
from workshop.models import Base
from workshop.services.auth import AuthContext, hash_password
from workshop.services.ws_manager import ConnectionRegistry, Dispatcher

PASSWORD = "secret123"
_PASSWORD_HASH = hash_password(PASSWORD)


@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


async def _user(db, username, role, language="en"):
    return await crud.create_user(
        db,
        full_name=username.title(),
        email=f"{username}@example.com",
        username=username,
        password_hash=_PASSWORD_HASH,
        role=role,
        preferred_language=language,
    )


@pytest_asyncio.fixture
async def users(db):
    """admin, supervisor, sales, two engineers (E2 prefers Arabic), two customers."""
    return {
        "admin": await _user(db, "admin", "admin"),
        "supervisor": await _user(db, "supervisor", "supervisor"),
        "sales": await _user(db, "sales", "sales"),
        "e1": await _user(db, "e1", "engineer"),
        "e2": await _user(db, "e2", "engineer", language="ar"),
        "u1": await _user(db, "u1", "customer"),
        "u2": await _user(db, "u2", "customer", language="ar"),
    }


@pytest.fixture
def ctx(users):
    """ctx('e1') -> AuthContext for that seeded user."""
    def _ctx(name: str) -> AuthContext:
        return AuthContext.from_user(users[name])
    return _ctx


@pytest_asyncio.fixture
async def catalog(db):
    service = await crud.create_service(db, "Battery Check", "فحص البطارية", Decimal("150.00"))
    part = await crud.create_part(db, "Brake Pad Set", "طقم فحمات", Decimal("45.00"), part_code="BRK-1")
    retired = await crud.create_part(db, "Old Filter", "فلتر قديم", Decimal("10.00"))
    await crud.deactivate_part(db, retired)
    return {"service": service, "part": part, "retired_part": retired}


@pytest_asyncio.fixture
async def channels(db):
    return {
        "general": await crud.create_channel(db, "General", "general"),
        "tech": await crud.create_channel(db, "Tech", "tech"),
    }


class FakeWebSocket:
    """Records every JSON frame sent to it.

    ``fail=True`` simulates a dead peer, ``failures=n`` fails only the next
    n sends, ``delay`` stalls every send by that many seconds.
    """

    def __init__(self, fail: bool = False, failures: int = 0, delay: float = 0.0):
        self.sent: list[dict] = []
        self.fail = fail
        self.failures = failures
        self.delay = delay
        self.closed_code: int | None = None

    async def send_text(self, text: str) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError("connection closed")
        if self.failures:
            self.failures -= 1
            raise RuntimeError("send failed")
        self.sent.append(json.loads(text))

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self.closed_code = code

    def of_type(self, type_: str) -> list[dict]:
        return [m for m in self.sent if m["type"] == type_]


@pytest.fixture
def make_ws():
    return FakeWebSocket


@pytest.fixture
def registry():
    return ConnectionRegistry()


@pytest.fixture
def dispatcher(registry):
    return Dispatcher(registry, send_timeout=1.0)


@pytest.fixture
def password():
    """Plain-text password shared by every seeded user."""
    return PASSWORD
