import os

# settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("TELEMETRY_ENABLED", "false")
os.environ.setdefault("SESSION_TOKEN_PEPPER", "test-pepper")
os.environ.setdefault("INTERNAL_ADMIN_KEY", "test-internal")

import datetime as dt
from types import SimpleNamespace

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import pool, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from opshub.core.db import get_db
from opshub.core.security import generate_session_token, hash_password
from opshub.main import app
from opshub.models import Base
from opshub.models.enums import Role
from opshub.models.profile import Profile
from opshub.models.server import Server
from opshub.models.session_token import SessionToken
from opshub.models.team import Team
from opshub.services.auth import Actor

PASSWORD = "correct-horse"
PASSWORD_HASH = hash_password(PASSWORD)


def _test_db_url(tmp_path) -> str:
    # a file database so concurrent sessions really use separate connections
    return os.getenv("DATABASE_URL_TEST") or f"sqlite+aiosqlite:///{tmp_path / 'opshub-test.db'}"


@pytest_asyncio.fixture
async def async_engine(tmp_path):
    engine = create_async_engine(_test_db_url(tmp_path), future=True, poolclass=pool.NullPool)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(async_engine):
    return async_sessionmaker(bind=async_engine, expire_on_commit=False, class_=AsyncSession)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    """
    HTTP client; every request gets its own session, like production.
    """
    async def _override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _member(session: AsyncSession, *, name: str, role: Role, team_id: str | None) -> SimpleNamespace:
    profile = Profile(
        name=name,
        email=f"{name.lower()}@opshub.io",
        password_hash=PASSWORD_HASH,
        role=role.value,
        team_id=team_id,
        created_by="test",
        updated_by="test",
    )
    session.add(profile)
    await session.flush()

    token = generate_session_token()
    session.add(SessionToken(
        profile_id=profile.id,
        token_prefix=token.prefix,
        token_hash=token.hashed,
        is_active=True,
        expires_at=dt.datetime.now(dt.timezone.utc) + dt.timedelta(days=1),
    ))
    await session.flush()

    return SimpleNamespace(
        id=profile.id,
        email=profile.email,
        token=token.plain,
        headers={"Authorization": f"Bearer {token.plain}"},
        actor=Actor(user_id=profile.id, role=role, team_id=team_id, name=name, email=profile.email),
    )


@pytest_asyncio.fixture
async def world(db_session):
    """
    Two teams.
    T1: leader L1, mailers M1 and M1B. T2: leader L2, mailer M2.
    Plus an admin and a user still pending approval.
    """
    t1 = Team(name="Team One", created_by="test", updated_by="test")
    t2 = Team(name="Team Two", created_by="test", updated_by="test")
    db_session.add_all([t1, t2])
    await db_session.flush()

    w = SimpleNamespace(t1=t1.id, t2=t2.id)
    w.admin = await _member(db_session, name="Admin", role=Role.ADMIN, team_id=None)
    w.l1 = await _member(db_session, name="L1", role=Role.TEAM_LEADER, team_id=t1.id)
    w.l2 = await _member(db_session, name="L2", role=Role.TEAM_LEADER, team_id=t2.id)
    w.m1 = await _member(db_session, name="M1", role=Role.MAILER, team_id=t1.id)
    w.m1b = await _member(db_session, name="M1B", role=Role.MAILER, team_id=t1.id)
    w.m2 = await _member(db_session, name="M2", role=Role.MAILER, team_id=t2.id)
    w.pending = await _member(db_session, name="Newcomer", role=Role.PENDING_APPROVAL, team_id=None)

    # lifecycle operations roll back on failure; seed data must survive that
    await db_session.commit()
    return w


@pytest.fixture
def make_server(session_factory):
    async def _make(owner: SimpleNamespace, *, status: str = "active", ip_address: str = "10.0.0.1", **fields) -> str:
        async with session_factory() as session:
            row = Server(
                provider="Hetzner",
                ip_address=ip_address,
                status=status,
                owner_mailer_id=owner.id,
                team_id=owner.actor.team_id,
                created_by=owner.id,
                updated_by=owner.id,
                **fields,
            )
            session.add(row)
            await session.commit()
            return row.id

    return _make


@pytest.fixture
def fetch_status(session_factory):
    """Reads the committed status through a fresh session."""
    async def _fetch(model, resource_id: str) -> str | None:
        async with session_factory() as session:
            return (await session.execute(select(model.status).where(model.id == resource_id))).scalar_one_or_none()

    return _fetch


@pytest.fixture
def fetch_row(session_factory):
    async def _fetch(model, row_id: str):
        async with session_factory() as session:
            return (await session.execute(select(model).where(model.id == row_id))).scalar_one_or_none()

    return _fetch
