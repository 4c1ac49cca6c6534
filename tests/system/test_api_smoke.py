"""
System smoke test: the HTTP API in-process over a temp-file SQLite store.
Verifies health, resource CRUD, sharing, activity, search and error mapping.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from daxstore.exceptions import MigrationFailed
from daxstore.kernel.identity.identity_service import IdentityService
from daxstore.main import create_app
from daxstore.schemas.user import UserCreate
from daxstore.store import DataStore

ADMIN = {"X-User-Id": "admin"}
BOB = {"X-User-Id": "bob"}


@pytest_asyncio.fixture
async def client(store: DataStore) -> AsyncGenerator[AsyncClient, None]:
    """Client for an app serving an initialized store with user bob."""
    async with store.session() as session:
        await IdentityService(session).create_user(
            UserCreate(id="bob", username="bob", email="bob@example.com")
        )

    app = create_app(store=store)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


async def _put_doc(client: AsyncClient, doc_id: str, headers=ADMIN, **payload):
    return await client.put(
        "/api/v1/resources/document",
        json={"id": doc_id, "payload": payload},
        headers=headers,
    )


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["database"] == "ready"
    assert data["schema_version"] == 2


@pytest.mark.asyncio
async def test_request_id_echoed(client: AsyncClient):
    response = await client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"

    generated = await client.get("/health")
    assert generated.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_caller_header_required(client: AsyncClient):
    response = await client.get("/api/v1/resources/document")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_document_sharing_flow(client: AsyncClient):
    """Admin shares doc-1 read-only with bob over HTTP."""
    created = await _put_doc(client, "doc-1", title="Quarterly plan")
    assert created.status_code == 200
    assert created.json()["user_id"] == "admin"

    denied = await client.get("/api/v1/resources/document/doc-1", headers=BOB)
    assert denied.status_code == 403
    assert denied.json()["code"] == "PermissionDenied"

    shared = await client.put(
        "/api/v1/acl/document/doc-1",
        json={"user_id": "bob", "permissions": ["read"]},
        headers=ADMIN,
    )
    assert shared.status_code == 200
    assert shared.json()["permissions"] == ["read"]

    allowed = await client.get("/api/v1/resources/document/doc-1", headers=BOB)
    assert allowed.status_code == 200
    assert allowed.json()["payload"]["title"] == "Quarterly plan"

    acl = await client.get("/api/v1/acl/document/doc-1", headers=BOB)
    assert [entry["user_id"] for entry in acl.json()] == ["bob"]

    not_deleted = await client.delete("/api/v1/resources/document/doc-1", headers=BOB)
    assert not_deleted.status_code == 403

    deleted = await client.delete("/api/v1/resources/document/doc-1", headers=ADMIN)
    assert deleted.status_code == 204

    gone = await client.get("/api/v1/resources/document/doc-1", headers=ADMIN)
    assert gone.status_code == 404


@pytest.mark.asyncio
async def test_list_is_owner_scoped(client: AsyncClient):
    await _put_doc(client, "admin-doc")
    await _put_doc(client, "bob-doc", headers=BOB)

    response = await client.get("/api/v1/resources/document", headers=BOB)
    assert response.status_code == 200
    assert [r["id"] for r in response.json()] == ["bob-doc"]


@pytest.mark.asyncio
async def test_list_with_type_filter(client: AsyncClient):
    for node_id, node_type in (("n1", "data"), ("n2", "output")):
        await client.put(
            "/api/v1/resources/canvas_node",
            json={"id": node_id, "payload": {"type": node_type, "title": node_id}},
            headers=ADMIN,
        )
    response = await client.get("/api/v1/resources/canvas_node?type=output", headers=ADMIN)
    assert [r["id"] for r in response.json()] == ["n2"]


@pytest.mark.asyncio
async def test_unknown_kind_is_422(client: AsyncClient):
    response = await client.put(
        "/api/v1/resources/spreadsheet",
        json={"payload": {}},
        headers=ADMIN,
    )
    assert response.status_code == 422
    assert response.json()["code"] == "MalformedResource"


@pytest.mark.asyncio
async def test_invalid_payload_is_422(client: AsyncClient):
    response = await client.put(
        "/api/v1/resources/canvas_node",
        json={"payload": {"type": "widget", "title": "x"}},
        headers=ADMIN,
    )
    assert response.status_code == 422
    assert response.json()["errors"][0]["field"] == "type"


@pytest.mark.asyncio
async def test_invalid_permission_is_422(client: AsyncClient):
    await _put_doc(client, "doc-1")
    response = await client.put(
        "/api/v1/acl/document/doc-1",
        json={"user_id": "bob", "permissions": ["own"]},
        headers=ADMIN,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_activity(client: AsyncClient):
    await _put_doc(client, "doc-1")
    await _put_doc(client, "doc-2")

    response = await client.get("/api/v1/activity?limit=2", headers=ADMIN)
    assert response.status_code == 200
    entries = response.json()
    assert [e["resource_id"] for e in entries] == ["doc-2", "doc-1"]
    assert entries[0]["action"] == "document_saved"


@pytest.mark.asyncio
async def test_search(client: AsyncClient):
    await _put_doc(client, "doc-1", title="Roadmap")
    await _put_doc(client, "doc-2", title="roadmap draft", headers=BOB)

    response = await client.get("/api/v1/search", params={"q": "roadmap"}, headers=BOB)
    assert [r["id"] for r in response.json()] == ["doc-2"]

    response = await client.get(
        "/api/v1/search",
        params={"q": "Roadmap", "case_sensitive": "true"},
        headers=ADMIN,
    )
    assert [r["id"] for r in response.json()] == ["doc-1"]


@pytest.mark.asyncio
async def test_failed_store_returns_503(settings, tmp_path):
    directory = tmp_path / "migrations"
    directory.mkdir()
    (directory / "000_broken.sql").write_text("NOT SQL AT ALL;")

    store = DataStore(settings, migrations_dir=directory)
    with pytest.raises(MigrationFailed):
        await store.initialize()

    app = create_app(store=store)
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            health = await ac.get("/health")
            assert health.status_code == 503
            assert health.json()["database"] == "failed"

            response = await ac.get("/api/v1/resources/document", headers=ADMIN)
            assert response.status_code == 503
            assert response.json()["code"] == "MigrationFailed"
    finally:
        await store.close()


@pytest.mark.asyncio
async def test_user_admin_endpoints(client: AsyncClient):
    payload = {"id": "carol", "username": "carol", "email": "Carol@Example.com"}

    forbidden = await client.post("/api/v1/users", json=payload, headers=BOB)
    assert forbidden.status_code == 403

    created = await client.post("/api/v1/users", json=payload, headers=ADMIN)
    assert created.status_code == 201
    assert created.json()["email"] == "carol@example.com"
    assert created.json()["role"] == "user"

    duplicate = await client.post("/api/v1/users", json=payload, headers=ADMIN)
    assert duplicate.status_code == 400

    fetched = await client.get("/api/v1/users/carol", headers=BOB)
    assert fetched.json()["username"] == "carol"

    missing = await client.get("/api/v1/users/nobody", headers=BOB)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_stats_admin_only(client: AsyncClient):
    await _put_doc(client, "doc-1")

    assert (await client.get("/api/v1/stats", headers=BOB)).status_code == 403

    response = await client.get("/api/v1/stats", headers=ADMIN)
    assert response.status_code == 200
    data = response.json()
    assert data["users"] == 2
    assert data["resources"]["document"] == 1


@pytest.mark.asyncio
async def test_user_username_normalized(client: AsyncClient):
    padded = {"id": "bob2", "username": " bob ", "email": "bob2@example.com"}
    duplicate = await client.post("/api/v1/users", json=padded, headers=ADMIN)
    assert duplicate.status_code == 400

    blank = {"id": "dan", "username": "   ", "email": "dan@example.com"}
    rejected = await client.post("/api/v1/users", json=blank, headers=ADMIN)
    assert rejected.status_code == 422
