"""
tests.conftest

Shared fixtures.

Responsibilities:
- Fixed/advancing fake clock.
- One RSA key per test session (key generation is slow) wrapped in a fresh key ring.
- Per-test SQLite database, sessionmaker and in-process HTTP client.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from datetime import UTC, datetime, timedelta

import httpx
import pytest
import pytest_asyncio
from cryptography.hazmat.primitives.asymmetric import rsa
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from prosa_gate.api.app import create_app
from prosa_gate.auth.jwt import JwtConfig, SessionTokenCodec
from prosa_gate.auth.keys import KeyMaterialProvider, generate_private_key
from prosa_gate.auth.models import Role
from prosa_gate.auth.secrets import hash_password
from prosa_gate.db.init_db import init_db
from prosa_gate.db.models import User
from prosa_gate.db.repositories.users import UserRepo
from prosa_gate.db.session import create_engine, create_sessionmaker
from prosa_gate.settings import Settings

START = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)
ADMIN_KEY = "test-admin-key"


class FakeClock:
    """
    Returns `now`, then moves forward by `step` on every call.
    """

    def __init__(self, now: datetime = START, step: timedelta = timedelta(0)) -> None:
        self.now = now
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    # Advances a millisecond per read so creation order is observable.
    return FakeClock(step=timedelta(milliseconds=1))


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    return generate_private_key()


@pytest.fixture(scope="session")
def other_rsa_key() -> rsa.RSAPrivateKey:
    return generate_private_key()


@pytest.fixture
def keys(rsa_key: rsa.RSAPrivateKey) -> KeyMaterialProvider:
    return KeyMaterialProvider(current_kid="prosa-key-1", current_key=rsa_key)


@pytest.fixture
def codec(keys: KeyMaterialProvider, clock: FakeClock) -> SessionTokenCodec:
    return SessionTokenCodec(
        cfg=JwtConfig(issuer="prosa", ttl=timedelta(minutes=15)),
        keys=keys,
        clock=clock,
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'prosa.db'}",
        jwt_key_path=None,
        admin_key=ADMIN_KEY,
    )


@pytest_asyncio.fixture
async def sessionmaker(settings: Settings) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = create_engine(settings)
    await init_db(engine)
    try:
        yield create_sessionmaker(engine)
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def db(sessionmaker: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    async with sessionmaker() as session:
        yield session


@pytest.fixture
def make_user(db: AsyncSession) -> Callable[..., Awaitable[User]]:
    async def _make(username: str, *, role: Role = Role.standard, password: str = "secret-pass") -> User:
        user = await UserRepo(db).create(
            username=username,
            password_hash=hash_password(password),
            role=role,
        )
        await db.commit()
        return user

    return _make


@pytest_asyncio.fixture
async def client(
    settings: Settings, clock: FakeClock, keys: KeyMaterialProvider
) -> AsyncIterator[httpx.AsyncClient]:
    app = create_app(settings=settings, clock=clock, keys=keys)
    # httpx ASGITransport does not manage lifespan automatically; do it explicitly.
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
            yield http


# --- Module Notes -----------------------------------------------------------
# `client` builds its own engine inside the lifespan; unit tests use `db` directly.
