"""Integration tests for API endpoints."""

from __future__ import annotations

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from workshop.db.engine import get_db
from workshop.main import create_app
from workshop.services.auth import issue_credential


@pytest_asyncio.fixture
async def app(session_factory):
    app = create_app(session_factory=session_factory, with_lifespan=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def headers(db, users):
    """headers['e1'] -> Authorization header for that seeded user."""
    out = {}
    for name, user in users.items():
        out[name] = {"Authorization": f"Bearer {await issue_credential(user, db)}"}
    return out


async def _open(client, headers, users, catalog, customer="u1"):
    resp = await client.post(
        "/api/work-orders",
        json={
            "customerId": users[customer].id,
            "serviceId": catalog["service"].id,
            "vehicleIdent": "ABC-1234",
            "vehicleMake": "Nissan",
        },
        headers=headers["sales"],
    )
    assert resp.status_code == 201
    return resp.json()


async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["ok"] is True


async def test_login_me_logout(client, users, password):
    resp = await client.post("/api/auth/login", json={"username": "e1", "password": password})
    assert resp.status_code == 200
    data = resp.json()
    assert data["user"]["role"] == "engineer"
    assert "password_hash" not in data["user"]
    auth = {"Authorization": f"Bearer {data['token']}"}

    resp = await client.get("/api/auth/me", headers=auth)
    assert resp.json()["username"] == "e1"

    assert (await client.post("/api/auth/logout", headers=auth)).status_code == 200
    resp = await client.get("/api/auth/me", headers=auth)
    assert resp.status_code == 401
    assert resp.json()["error"] == "unauthenticated"


async def test_bad_login(client, users):
    resp = await client.post("/api/auth/login", json={"username": "e1", "password": "nope"})
    assert resp.status_code == 401


async def test_requires_token(client):
    resp = await client.get("/api/work-orders")
    assert resp.status_code == 401


async def test_register_creates_customer_and_signs_in(client):
    resp = await client.post(
        "/api/auth/register",
        json={
            "fullName": "Salem Ali",
            "email": "salem@example.com",
            "username": "salem",
            "password": "pw123456",
            "preferredLanguage": "ar",
            "role": "admin",
        },
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["user"]["role"] == "customer"
    assert data["user"]["preferred_language"] == "ar"

    resp = await client.get("/api/users/me", headers={"Authorization": f"Bearer {data['token']}"})
    assert resp.json()["username"] == "salem"

    resp = await client.post("/api/auth/login", json={"username": "salem", "password": "pw123456"})
    assert resp.status_code == 200


async def test_register_rejects_duplicates_and_bad_input(client, users):
    resp = await client.post(
        "/api/auth/register",
        json={"fullName": "Dup", "email": "new@example.com", "username": "u1", "password": "pw123456"},
    )
    assert resp.status_code == 409
    assert resp.json()["error"] == "conflict"

    resp = await client.post(
        "/api/auth/register",
        json={"fullName": "Short", "email": "s@example.com", "username": "short", "password": "123"},
    )
    assert resp.status_code == 422

    resp = await client.post(
        "/api/auth/register",
        json={
            "fullName": "French", "email": "fr@example.com", "username": "french",
            "password": "pw123456", "preferredLanguage": "fr",
        },
    )
    assert resp.status_code == 422


async def test_admin_manages_users(client, headers, users):
    resp = await client.post(
        "/api/users",
        json={
            "fullName": "New Engineer",
            "email": "e3@example.com",
            "username": "e3",
            "password": "pw123456",
            "role": "engineer",
            "specialization": "hybrid",
        },
        headers=headers["admin"],
    )
    assert resp.status_code == 201
    created = resp.json()
    assert created["role"] == "engineer"
    assert created["specialization"] == "hybrid"

    resp = await client.get("/api/users?role=engineer", headers=headers["supervisor"])
    assert sorted(u["username"] for u in resp.json()) == ["e1", "e2", "e3"]

    resp = await client.patch(
        f"/api/users/{created['id']}",
        json={"role": "supervisor", "preferredLanguage": "ar"},
        headers=headers["admin"],
    )
    assert resp.status_code == 200
    assert resp.json()["role"] == "supervisor"
    assert resp.json()["preferred_language"] == "ar"

    resp = await client.delete(f"/api/users/{created['id']}", headers=headers["admin"])
    assert resp.status_code == 200
    assert resp.json()["is_active"] is False

    resp = await client.post("/api/auth/login", json={"username": "e3", "password": "pw123456"})
    assert resp.status_code == 401


async def test_user_management_is_admin_only(client, headers, users):
    body = {"fullName": "X", "email": "x@example.com", "username": "xuser", "password": "pw123456"}
    for name in ("supervisor", "sales", "e1", "u1"):
        resp = await client.post("/api/users", json=body, headers=headers[name])
        assert resp.status_code == 403
        assert resp.json()["error"] == "unauthorized"

    resp = await client.patch(f"/api/users/{users['e1'].id}", json={"role": "admin"}, headers=headers["e1"])
    assert resp.status_code == 403
    resp = await client.delete(f"/api/users/{users['u2'].id}", headers=headers["supervisor"])
    assert resp.status_code == 403

    assert (await client.get("/api/users", headers=headers["e1"])).status_code == 403
    assert (await client.get("/api/users", headers=headers["u1"])).status_code == 403
    assert (await client.get("/api/users", headers=headers["sales"])).status_code == 200


async def test_last_admin_is_protected(client, headers, users):
    admin_id = users["admin"].id

    resp = await client.delete(f"/api/users/{admin_id}", headers=headers["admin"])
    assert resp.status_code == 422

    resp = await client.patch(f"/api/users/{admin_id}", json={"role": "sales"}, headers=headers["admin"])
    assert resp.status_code == 422
    assert resp.json()["detail"] == "Cannot remove the last admin"

    resp = await client.patch("/api/users/missing", json={"role": "sales"}, headers=headers["admin"])
    assert resp.status_code == 404

    resp = await client.patch(f"/api/users/{users['e1'].id}", json={"role": "wizard"}, headers=headers["admin"])
    assert resp.status_code == 422


async def test_profile_language_applies_to_new_notifications(client, headers, users, catalog):
    resp = await client.put("/api/users/me", json={"preferredLanguage": "ar"}, headers=headers["e1"])
    assert resp.status_code == 200
    assert resp.json()["preferred_language"] == "ar"
    assert resp.json()["role"] == "engineer"

    wo = await _open(client, headers, users, catalog)
    await client.post(
        f"/api/work-orders/{wo['id']}/assign",
        json={"engineerId": users["e1"].id},
        headers=headers["supervisor"],
    )

    items = (await client.get("/api/notifications", headers=headers["e1"])).json()
    assert items[0]["title"] == "تم تعيين أمر عمل جديد"


async def test_profile_update_cannot_change_role(client, headers, users):
    resp = await client.put("/api/users/me", json={"role": "admin", "fullName": "Sneaky"}, headers=headers["u1"])
    assert resp.status_code == 200
    assert resp.json()["role"] == "customer"
    assert resp.json()["full_name"] == "Sneaky"


async def test_lifecycle_over_http(client, headers, users, catalog):
    wo = await _open(client, headers, users, catalog)
    assert wo["status"] == "new"
    wo_id = wo["id"]

    resp = await client.post(
        f"/api/work-orders/{wo_id}/assign",
        json={"engineerId": users["e1"].id},
        headers=headers["supervisor"],
    )
    assert resp.status_code == 200
    assert resp.json()["assigned_engineer_id"] == users["e1"].id

    resp = await client.post(f"/api/work-orders/{wo_id}/start", headers=headers["e1"])
    assert resp.json()["status"] == "in_progress"

    resp = await client.post(
        f"/api/work-orders/{wo_id}/parts",
        json={"partId": catalog["part"].id, "qty": "2"},
        headers=headers["e1"],
    )
    assert resp.status_code == 201
    assert float(resp.json()["line_total"]) == 90.0

    resp = await client.post(f"/api/work-orders/{wo_id}/finish", headers=headers["e1"])
    assert resp.json()["status"] == "done"

    resp = await client.post(f"/api/work-orders/{wo_id}/deliver", headers=headers["sales"])
    body = resp.json()
    assert body["status"] == "delivered"
    assert float(body["total_cost"]) == 90.0
    assert [e["event_type"] for e in body["events"]] == [
        "created", "assigned", "started", "part_added", "finished", "delivered",
    ]

    resp = await client.get(f"/api/work-orders/{wo_id}", headers=headers["u1"])
    assert resp.status_code == 200
    assert len(resp.json()["parts"]) == 1


async def test_error_bodies(client, headers, users, catalog):
    wo = await _open(client, headers, users, catalog)

    resp = await client.post(f"/api/work-orders/{wo['id']}/start", headers=headers["e1"])
    assert resp.status_code == 409
    assert resp.json()["error"] == "invalid_transition"

    resp = await client.post(f"/api/work-orders/{wo['id']}/cancel", headers=headers["sales"])
    assert resp.status_code == 403
    assert resp.json()["error"] == "unauthorized"

    resp = await client.get(f"/api/work-orders/{wo['id']}", headers=headers["u2"])
    assert resp.status_code == 403

    resp = await client.get("/api/work-orders/01HZZZZZZZZZZZZZZZZZZZZZZZ", headers=headers["admin"])
    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"

    resp = await client.post(
        f"/api/work-orders/{wo['id']}/assign",
        json={"engineerId": users["u2"].id},
        headers=headers["admin"],
    )
    assert resp.status_code == 422
    assert resp.json()["error"] == "validation_error"


async def test_cancel_with_notes(client, headers, users, catalog):
    wo = await _open(client, headers, users, catalog)
    resp = await client.post(
        f"/api/work-orders/{wo['id']}/cancel",
        json={"notes": "duplicate ticket"},
        headers=headers["admin"],
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelled"
    assert resp.json()["events"][-1]["notes"] == "duplicate ticket"


async def test_list_filtered_by_status(client, headers, users, catalog):
    await _open(client, headers, users, catalog, customer="u1")
    await _open(client, headers, users, catalog, customer="u2")

    resp = await client.get("/api/work-orders", params={"status": "new"}, headers=headers["admin"])
    assert len(resp.json()) == 2
    resp = await client.get("/api/work-orders", headers=headers["u2"])
    assert len(resp.json()) == 1
    resp = await client.get("/api/work-orders", params={"status": "parked"}, headers=headers["admin"])
    assert resp.status_code == 422


async def test_notification_endpoints(client, headers, users, catalog):
    wo = await _open(client, headers, users, catalog)
    await client.post(
        f"/api/work-orders/{wo['id']}/assign",
        json={"engineerId": users["e2"].id},
        headers=headers["supervisor"],
    )

    resp = await client.get("/api/notifications", headers=headers["e2"])
    items = resp.json()
    assert len(items) == 1
    assert items[0]["related_entity_id"] == wo["id"]
    notif_id = items[0]["id"]

    resp = await client.patch(f"/api/notifications/{notif_id}/read", headers=headers["e1"])
    assert resp.status_code == 403

    resp = await client.patch(f"/api/notifications/{notif_id}/read", headers=headers["e2"])
    assert resp.json()["is_read"] is True

    resp = await client.patch("/api/notifications/read-all", headers=headers["e2"])
    assert resp.json()["updated"] == 0

    resp = await client.delete(f"/api/notifications/{notif_id}", headers=headers["e2"])
    assert resp.status_code == 204
    assert (await client.get("/api/notifications", headers=headers["e2"])).json() == []


async def test_chat_rest(client, app, headers, ctx, channels, users, make_ws):
    registry = app.state.registry
    ws = make_ws()
    listener = registry.register(ws)
    registry.authenticate(listener, ctx("e2"))
    registry.join(listener, channels["general"].id)

    resp = await client.post(
        "/api/chat/messages",
        json={"channelId": channels["general"].id, "body": "hello shop"},
        headers=headers["e1"],
    )
    assert resp.status_code == 201
    msg = resp.json()
    assert ws.of_type("new_message")[0]["message"]["id"] == msg["id"]

    resp = await client.get(f"/api/chat/channels/{channels['general'].id}/messages", headers=headers["u1"])
    assert [m["body"] for m in resp.json()] == ["hello shop"]

    resp = await client.post(
        "/api/chat/messages",
        json={"recipientId": users["u1"].id, "body": "car ready"},
        headers=headers["sales"],
    )
    assert resp.status_code == 201
    resp = await client.get(f"/api/chat/direct/{users['sales'].id}", headers=headers["u1"])
    assert [m["body"] for m in resp.json()] == ["car ready"]

    resp = await client.post("/api/chat/messages", json={"body": "nowhere"}, headers=headers["u1"])
    assert resp.status_code == 422

    resp = await client.get("/api/chat/channels", headers=headers["u1"])
    assert {c["name"] for c in resp.json()} == {"General", "Tech"}


async def test_catalog_lists_active_items(client, headers, catalog):
    resp = await client.get("/api/catalog/parts", headers=headers["e1"])
    assert [p["name_en"] for p in resp.json()] == ["Brake Pad Set"]
    resp = await client.get("/api/catalog/services", headers=headers["e1"])
    assert len(resp.json()) == 1
