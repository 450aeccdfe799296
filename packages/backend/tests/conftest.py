"""Test fixtures — isolated in-memory databases and pre-authenticated clients.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Environment is pinned *before* the app is imported, so the module-level
   engine points at SQLite and the lifespan never touches real services.
2. Each test gets its own in-memory SQLite database (aiosqlite + StaticPool,
   so every session shares the one connection) with the schema created
   from the ORM metadata. Services can commit freely; the database simply
   vanishes when the engine is disposed.
3. A real user row backs the overridden identity, so joins on author /
   organizer / uploader resolve like they do in production.
"""

import os

os.environ.setdefault("INTRAPORTAL_JWT_SECRET", "test-secret-with-at-least-32-bytes-of-entropy")
os.environ.setdefault("INTRAPORTAL_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("INTRAPORTAL_AUTO_CREATE_SCHEMA", "false")
os.environ.setdefault("INTRAPORTAL_REDIS_URL", "redis://127.0.0.1:1/0")
os.environ.setdefault("INTRAPORTAL_WS_HEARTBEAT_INTERVAL", "3600")

import json  # noqa: E402
import uuid  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from intraportal.auth.dependencies import CurrentIdentity, get_current_user  # noqa: E402
from intraportal.db.engine import get_db  # noqa: E402
from intraportal.db.models import Base, PortalPreferences, User  # noqa: E402
from intraportal.main import app  # noqa: E402
from intraportal.realtime.registry import Connection, ConnectionRegistry  # noqa: E402

TEST_DB_URL = "sqlite+aiosqlite://"
TEST_USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
TEST_USER_EMAIL = "tester@example.com"


@pytest_asyncio.fixture()
async def db_session():
    """Per-test session on a fresh in-memory database."""
    engine = create_async_engine(
        TEST_DB_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session = AsyncSession(engine, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.close()
        await engine.dispose()


@pytest_asyncio.fixture()
async def test_user(db_session):
    """The user every `client` request is authenticated as."""
    user = User(
        id=TEST_USER_ID,
        email=TEST_USER_EMAIL,
        name="Test User",
        role="user",
        timezone="UTC",
    )
    db_session.add(user)
    db_session.add(PortalPreferences(user_id=TEST_USER_ID))
    await db_session.commit()
    return user


@pytest_asyncio.fixture()
async def client(db_session, test_user):
    """HTTP client with the app's get_db and auth overridden for testing.

    Learn: We override get_current_user to return the test user's identity
    so all protected routes work without real JWT tokens. This means tests
    don't need to register+login before each test case.
    """
    async def override_get_db():
        yield db_session

    def override_get_current_user():
        return CurrentIdentity(
            user_id=str(TEST_USER_ID),
            email=TEST_USER_EMAIL,
            role="user",
        )

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def unauthenticated_client(db_session):
    """HTTP client WITHOUT auth override — for testing real JWT flows.

    Learn: The regular `client` fixture overrides get_current_user so that
    all protected routes pass. Auth tests need the real auth pipeline to
    validate real tokens. This fixture only overrides get_db.
    """
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ─── Real-time fakes ─────────────────────────────────────


class FakeTransport:
    """In-memory stand-in for a WebSocket, recording everything sent."""

    def __init__(self, *, open_: bool = True, fail_send: bool = False, fail_ping: bool = False):
        self.open = open_
        self.fail_send = fail_send
        self.fail_ping = fail_ping
        self.sent: list[str] = []
        self.pings = 0
        self.closed_with: tuple[int, str] | None = None
        self.terminated = False

    @property
    def is_open(self) -> bool:
        return self.open and not self.terminated

    async def send_text(self, data: str) -> None:
        if self.fail_send:
            raise ConnectionError("socket write failed")
        self.sent.append(data)

    async def ping(self) -> None:
        if self.fail_ping:
            raise ConnectionError("socket write failed")
        self.pings += 1

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self.closed_with = (code, reason)
        self.open = False

    async def terminate(self) -> None:
        self.terminated = True
        self.open = False

    def frames(self) -> list[dict]:
        return [json.loads(s) for s in self.sent]


@pytest.fixture()
def fake_transport():
    """Factory: fake_transport(fail_send=True, ...) → FakeTransport."""
    return FakeTransport


@pytest.fixture()
def registry():
    return ConnectionRegistry()


@pytest.fixture()
def connect(registry, fake_transport):
    """Factory: register a connection for `user_id` over a fresh fake transport."""
    async def _connect(user_id: str = "user-1", **transport_kwargs) -> Connection:
        conn = Connection(user_id=user_id, transport=fake_transport(**transport_kwargs))
        assert await registry.add(conn)
        return conn

    return _connect
