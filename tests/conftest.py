"""
Test infrastructure for the Blog API.

Strategy
--------
- SQLite in-memory via aiosqlite eliminates the need for a running Postgres
  instance in CI, keeping the suite fast and self-contained.
- StaticPool forces all async tasks to share the same in-memory database
  connection, which is required because SQLite in-memory databases are
  connection-scoped; a new connection would see an empty database.
- The app is built by ``create_app`` around a test ``Settings`` value and the
  test engine; ``get_db`` is still overridden so every request uses the test
  session factory.
- All tables are created fresh before each test and dropped after, giving
  each test a clean isolated state without needing transactions or truncation.
"""
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

from blogapi.config import Settings
from blogapi.database import Base, build_engine, build_session_factory, get_db
from blogapi.main import create_app
from blogapi.tokens import decode_token

# ---------------------------------------------------------------------------
# Test settings, engine and app
# ---------------------------------------------------------------------------

TEST_SECRET = "test-secret-key-that-is-at-least-32-bytes"

settings_test = Settings(
    DATABASE_URL="sqlite+aiosqlite:///:memory:",
    JWT_SECRET=TEST_SECRET,
    APP_ENV="test",
)

# build_engine registers the query counter and the SQLite foreign-key pragma.
engine_test = build_engine(settings_test, poolclass=StaticPool)
async_session_test = build_session_factory(engine_test)

app = create_app(settings_test, engine=engine_test)


# ---------------------------------------------------------------------------
# Dependency override: replace get_db with the test session factory
# ---------------------------------------------------------------------------

async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


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
    """
    Yield a live AsyncSession for tests that need to interact with the
    database directly (e.g. seeding data, asserting row counts).
    """
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """Yield an httpx.AsyncClient wired to the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def make_user(async_client: AsyncClient):
    """
    Return a coroutine that signs a user up and yields the ``authorization``
    header for them.
    """

    async def _make(email: str, password: str = "secret1", name: str | None = None) -> dict:
        payload = {"email": email, "password": password}
        if name is not None:
            payload["name"] = name
        resp = await async_client.post("/api/v1/user/signup", json=payload)
        assert resp.status_code == 200, resp.text
        return {"authorization": resp.json()["token"]}

    return _make


@pytest_asyncio.fixture
async def alice(make_user) -> dict:
    return await make_user("alice@example.com", name="Alice")


@pytest_asyncio.fixture
async def bob(make_user) -> dict:
    return await make_user("bob@example.com", name="Bob")


def user_id_of(headers: dict) -> int:
    """The user id carried by an ``authorization`` header built by ``make_user``."""
    return decode_token(headers["authorization"], TEST_SECRET)
