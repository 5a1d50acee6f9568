"""
Test infrastructure for the Postboard API.

Strategy
--------
- SQLite in-memory via aiosqlite, so no Postgres is needed in CI.
- StaticPool keeps every task on the same in-memory connection; a second
  connection would see an empty database.
- ``database.async_session`` is rebound to the SQLite factory; ``get_db``
  and the sign-in middleware both resolve it at call time.
- Tables are created before each test and dropped after.
- Redis is disabled by setting ``cache._redis = None``; the CacheManager
  treats that as a permanent miss.
- bcrypt runs at its minimum cost so signups stay fast.
"""
import base64
import os

os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest_asyncio  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from postboard import database  # noqa: E402
from postboard.cache import cache  # noqa: E402
from postboard.database import Base  # noqa: E402
from postboard.main import app  # noqa: E402
from postboard.middleware import install_query_counter  # noqa: E402

# ---------------------------------------------------------------------------
# Test database engine — SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

install_query_counter(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)

database.async_session = async_session_test


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def basic_auth(email: str, password: str) -> dict[str, str]:
    """Return an Authorization header for HTTP Basic credentials."""
    token = base64.b64encode(f"{email}:{password}".encode()).decode()
    return {"Authorization": f"Basic {token}"}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """A live session for tests that call services and repositories directly."""
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """An httpx client wired to the app through ASGITransport, Redis disabled."""
    cache._redis = None
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def lenient_client() -> AsyncClient:
    """Like ``async_client`` but lets unhandled errors come back as 500s."""
    cache._redis = None
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def author(async_client: AsyncClient) -> dict:
    """Sign up a user through the API and return its credentials and headers."""
    credentials = {"email": "author@example.com", "password": "authorpass1"}
    resp = await async_client.post("/api/auth/signup", json=credentials)
    assert resp.status_code == 201
    return {
        **credentials,
        "id": resp.json()["user"]["id"],
        "headers": basic_auth(credentials["email"], credentials["password"]),
    }


@pytest_asyncio.fixture
async def intruder(async_client: AsyncClient) -> dict:
    """A second registered user who owns none of the author's posts."""
    credentials = {"email": "intruder@example.com", "password": "intruderpass1"}
    resp = await async_client.post("/api/auth/signup", json=credentials)
    assert resp.status_code == 201
    return {
        **credentials,
        "id": resp.json()["user"]["id"],
        "headers": basic_auth(credentials["email"], credentials["password"]),
    }
