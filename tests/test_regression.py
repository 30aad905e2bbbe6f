"""
Regression tests for cross-cutting behaviour.

1. Uniqueness violations that escape a service must return 409 (not 500)
2. X-Query-Count header must report the actual query count
3. CORS must not set allow_credentials=true with allow_origins=*
4. Every error body has the ``{"error": ..., "details"?: ...}`` shape
"""
import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import IntegrityError, OperationalError

from blogapi.errors import install_error_handlers


def _error_app() -> FastAPI:
    """A bare app with the error handlers and routes that raise."""
    app = FastAPI()
    install_error_handlers(app)

    @app.get("/integrity")
    async def integrity():
        raise IntegrityError("INSERT ...", {}, Exception("UNIQUE constraint failed"))

    @app.get("/database")
    async def database():
        raise OperationalError("SELECT ...", {}, Exception("database is locked"))

    @app.get("/boom")
    async def boom():
        raise RuntimeError("boom")

    return app


# ---------------------------------------------------------------------------
# 1. Unique constraint violations -> 409
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_duplicate_email_returns_409(async_client: AsyncClient):
    """Signing up twice with one email returns 409, not 500."""
    payload = {"email": "same@example.com", "password": "secret1"}
    await async_client.post("/api/v1/user/signup", json=payload)
    resp = await async_client.post("/api/v1/user/signup", json=payload)
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_escaped_integrity_error_returns_409():
    transport = ASGITransport(app=_error_app())
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get("/integrity")
    assert resp.status_code == 409
    assert resp.json() == {"error": "Resource already exists"}


# ---------------------------------------------------------------------------
# 2. X-Query-Count reports actual query count
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_query_count_header_exact_for_post_list(async_client: AsyncClient, alice):
    """
    X-Query-Count must reflect ALL SQL statements including selectinload
    internals.  Post list issues: COUNT + SELECT(joinedload author) +
    selectinload(images) + selectinload(tags) = 4 queries.
    """
    await async_client.post("/api/v1/post", headers=alice, json={"title": "QC", "content": "C"})

    resp = await async_client.get("/api/v1/post", headers=alice)
    assert resp.status_code == 200
    count = int(resp.headers["x-query-count"])
    assert count == 4, f"Expected exactly 4 queries for post list, got {count}"


@pytest.mark.asyncio
async def test_query_count_header_exact_for_post_detail(async_client: AsyncClient, alice):
    """
    X-Query-Count for post detail must count: SELECT(joinedload author) +
    selectinload of images, tags, likes and comments(joinedload user) = 5.
    """
    created = await async_client.post(
        "/api/v1/post", headers=alice, json={"title": "QC", "content": "C"}
    )

    resp = await async_client.get(f"/api/v1/post/{created.json()['id']}", headers=alice)
    assert resp.status_code == 200
    count = int(resp.headers["x-query-count"])
    assert count == 5, f"Expected exactly 5 queries for post detail, got {count}"


@pytest.mark.asyncio
async def test_rejected_request_runs_no_queries(async_client: AsyncClient):
    """The auth gate short-circuits before any persistence access."""
    resp = await async_client.get("/api/v1/post")
    assert resp.status_code == 403
    assert resp.headers["x-query-count"] == "0"


@pytest.mark.asyncio
async def test_response_time_header_present(async_client: AsyncClient):
    resp = await async_client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"
    assert float(resp.headers["x-response-time-ms"]) >= 0


# ---------------------------------------------------------------------------
# 3. CORS headers
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_cors_no_credentials_with_wildcard_origin(async_client: AsyncClient):
    """
    When allow_origins=["*"], the response must NOT include
    Access-Control-Allow-Credentials: true, per the CORS specification.
    """
    resp = await async_client.options(
        "/api/v1/post",
        headers={
            "Origin": "https://example.com",
            "Access-Control-Request-Method": "GET",
        },
    )
    assert resp.headers.get("access-control-allow-origin") == "*"
    cred_header = resp.headers.get("access-control-allow-credentials", "").lower()
    assert cred_header != "true", (
        "CORS must not combine allow_origins=* with allow_credentials=true"
    )


# ---------------------------------------------------------------------------
# 4. Error body shape
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_unknown_route_uses_error_shape(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/nothing-here")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Not Found"}


@pytest.mark.asyncio
async def test_database_error_returns_500():
    transport = ASGITransport(app=_error_app())
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get("/database")
    assert resp.status_code == 500
    assert resp.json() == {"error": "Database error"}


@pytest.mark.asyncio
async def test_unexpected_error_returns_500():
    # Starlette re-raises after the 500 handler runs; let the transport swallow it.
    transport = ASGITransport(app=_error_app(), raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get("/boom")
    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal server error"}
