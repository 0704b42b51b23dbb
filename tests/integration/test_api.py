"""Integration tests for API endpoints."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from starlette.websockets import WebSocketDisconnect

import chc_rental.main as main_module
from chc_rental.agents.llm_provider import FunctionCall, LLMProvider, ModelReply
from chc_rental.db.engine import get_db
from chc_rental.dependencies import get_catalog_cache, get_llm
from chc_rental.main import app
from chc_rental.models import Base, Center, Equipment, Order, User, UserSession
from chc_rental.services import auth as auth_service
from chc_rental.services.auth import SESSION_COOKIE_NAME, _hash_token
from chc_rental.services.catalog import CatalogCache
from chc_rental.services.order_stream import order_feed

_MEMBER_TOKEN = "test-member-token-abc123"
_STAFF_TOKEN = "test-staff-token-def456"
_OTHER_TOKEN = "test-other-token-ghi789"
_CENTER_ID = "01TESTCENTER0000"
_TRACTOR_ID = "01TESTTRACTOR000"
_FREE_ID = "01TESTFREEPLOUGH"
_MEMBER_ID = "01TESTMEMBER0000"
_STAFF = {"Authorization": f"Bearer {_STAFF_TOKEN}"}
_OTHER = {"Authorization": f"Bearer {_OTHER_TOKEN}"}

_llm_holder: dict = {"llm": None}


class CapturingSender:
    def __init__(self):
        self.sent = []

    async def send(self, phone_number, text):
        self.sent.append((phone_number, text))

    @property
    def last_code(self):
        return self.sent[-1][1].rsplit(" ", 1)[-1]


@pytest_asyncio.fixture
async def client():
    """Test client with an in-memory database and a logged-in member (cookie)."""
    test_engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    test_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with test_factory() as db:
        db.add(Center(id=_CENTER_ID, name="Test CHC"))
        await db.flush()
        db.add(Equipment(id=_TRACTOR_ID, center_id=_CENTER_ID, name="Tractor", rent=Decimal("50")))
        db.add(Equipment(id=_FREE_ID, center_id=_CENTER_ID, name="Free Plough", rent=Decimal("0")))
        member = User(center_id=_CENTER_ID, name="Ravi", phone_number="+919000000002", address="Village Road 1")
        other = User(center_id=_CENTER_ID, name="Sita", phone_number="+919000000003")
        staff = User(center_id=_CENTER_ID, name="Staff", phone_number="+919000000001", role="staff")
        db.add_all([member, other, staff])
        await db.flush()

        expires = datetime.now(timezone.utc) + timedelta(hours=24)
        for user, token in ((member, _MEMBER_TOKEN), (staff, _STAFF_TOKEN), (other, _OTHER_TOKEN)):
            db.add(UserSession(user_id=user.id, token_hash=_hash_token(token), expires_at=expires))
        await db.commit()

    async def override_get_db():
        async with test_factory() as session:
            yield session

    cache = CatalogCache(ttl=300)
    _llm_holder["llm"] = None
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_catalog_cache] = lambda: cache
    app.dependency_overrides[get_llm] = lambda: _llm_holder["llm"]

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        cookies={SESSION_COOKIE_NAME: _MEMBER_TOKEN},
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
    await test_engine.dispose()


# ── Health / auth ─────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_healthz(client):
    r = await client.get("/healthz")
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_me(client):
    r = await client.get("/api/auth/me")
    assert r.status_code == 200
    data = r.json()
    assert data["name"] == "Ravi"
    assert data["center_name"] == "Test CHC"
    assert data["role"] == "member"


@pytest.mark.asyncio
async def test_unauthenticated_request_rejected(client):
    client.cookies.clear()
    r = await client.get("/api/orders")
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_centers_are_public(client):
    client.cookies.clear()
    r = await client.get("/api/centers")
    assert r.status_code == 200
    assert [c["name"] for c in r.json()] == ["Test CHC"]


@pytest.mark.asyncio
async def test_signup_flow(client, monkeypatch):
    sender = CapturingSender()
    monkeypatch.setattr(auth_service, "sms_sender", sender)
    client.cookies.clear()

    r = await client.post("/api/auth/otp", json={
        "phone_number": "98765 43210", "purpose": "signup", "center_id": _CENTER_ID,
    })
    assert r.status_code == 202
    assert r.json()["phone_number"] == "+919876543210"

    r = await client.post("/api/auth/signup", json={
        "phone_number": "9876543210", "code": sender.last_code,
        "name": "Meena", "address": "Farm 7", "center_id": _CENTER_ID,
    })
    assert r.status_code == 201
    data = r.json()
    assert data["user"]["center_name"] == "Test CHC"

    r = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['token']}"})
    assert r.json()["name"] == "Meena"


@pytest.mark.asyncio
async def test_signup_otp_rejects_existing_phone(client):
    r = await client.post("/api/auth/otp", json={
        "phone_number": "+919000000002", "purpose": "signup", "center_id": _CENTER_ID,
    })
    assert r.status_code == 400
    assert "already exists" in r.json()["detail"]


@pytest.mark.asyncio
async def test_login_flow(client, monkeypatch):
    sender = CapturingSender()
    monkeypatch.setattr(auth_service, "sms_sender", sender)
    client.cookies.clear()

    r = await client.post("/api/auth/otp", json={"phone_number": "9000000002", "purpose": "login"})
    assert r.status_code == 202

    r = await client.post("/api/auth/login", json={"phone_number": "9000000002", "code": "not-it"})
    assert r.status_code == 401

    r = await client.post("/api/auth/login", json={"phone_number": "9000000002", "code": sender.last_code})
    assert r.status_code == 200
    assert r.json()["user"]["name"] == "Ravi"


@pytest.mark.asyncio
async def test_login_unknown_phone(client):
    r = await client.post("/api/auth/otp", json={"phone_number": "9111111111", "purpose": "login"})
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_logout_invalidates_session(client):
    r = await client.post("/api/auth/logout", headers=_OTHER)
    assert r.status_code == 200
    r = await client.get("/api/auth/me", headers=_OTHER)
    assert r.status_code == 401


# ── Catalog ───────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_list_and_filter_equipment(client):
    r = await client.get("/api/equipment")
    assert {e["name"] for e in r.json()} == {"Tractor", "Free Plough"}

    r = await client.get("/api/equipment", params={"q": "trac"})
    assert [e["id"] for e in r.json()] == [_TRACTOR_ID]


@pytest.mark.asyncio
async def test_equipment_detail_and_quote(client):
    r = await client.get(f"/api/equipment/{_TRACTOR_ID}")
    assert r.status_code == 200

    r = await client.get(f"/api/equipment/{_TRACTOR_ID}/quote", params={"hours": 3})
    assert r.status_code == 200
    assert Decimal(r.json()["estimated_cost"]) == Decimal("150")

    r = await client.get("/api/equipment/01MISSING/quote")
    assert r.status_code == 404


# ── Orders ────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_manual_booking(client):
    r = await client.post("/api/orders", json={
        "equipment_id": _TRACTOR_ID, "booking_hrs": 4, "equipment_rent": 1,
    })
    assert r.status_code == 201
    data = r.json()
    assert data["success"] is True
    assert data["booking_mode"] == "app"
    assert Decimal(data["estimated_cost"]) == Decimal("200")
    assert data["message"].endswith("Estimated cost: ₹200.")

    r = await client.get("/api/orders")
    orders = r.json()
    assert [o["id"] for o in orders] == [data["order_id"]]
    assert orders[0]["status"] == "Pending"

    r = await client.get(f"/api/orders/{data['order_id']}")
    assert r.status_code == 200
    assert r.json()["delivery_otp"] == data["delivery_otp"]


@pytest.mark.asyncio
async def test_booking_unknown_equipment(client):
    r = await client.post("/api/orders", json={"equipment_id": "01MISSING", "booking_hrs": 2})
    assert r.status_code == 404
    assert r.json()["code"] == "equipment_not_found"
    assert (await client.get("/api/orders")).json() == []


@pytest.mark.asyncio
async def test_booking_zero_rate(client):
    r = await client.post("/api/orders", json={"equipment_id": _FREE_ID, "booking_hrs": 2})
    assert r.status_code == 422
    assert r.json()["detail"] == "Equipment rate is missing or zero. Cannot book."


@pytest.mark.asyncio
async def test_booking_hours_out_of_range(client):
    r = await client.post("/api/orders", json={"equipment_id": _TRACTOR_ID, "booking_hrs": 25})
    assert r.status_code == 400
    assert r.json()["code"] == "invalid_duration"


@pytest.mark.asyncio
async def test_hour_options(client):
    r = await client.get("/api/orders/hour-options")
    assert r.json() == {"hours": list(range(1, 25)), "default": 2}


@pytest.mark.asyncio
async def test_order_hidden_from_other_member(client):
    r = await client.post("/api/orders", json={"equipment_id": _TRACTOR_ID, "booking_hrs": 2})
    order_id = r.json()["order_id"]

    assert (await client.get(f"/api/orders/{order_id}")).status_code == 200
    assert (await client.get(f"/api/orders/{order_id}", headers=_OTHER)).status_code == 404
    assert (await client.get(f"/api/orders/{order_id}", headers=_STAFF)).status_code == 404


# ── Back office ───────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_backoffice_requires_staff(client):
    r = await client.post("/api/backoffice/equipment", json={"name": "Harrow", "rent": "90"})
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_rented_out_equipment_cannot_be_booked(client):
    url = f"/api/backoffice/equipment/{_TRACTOR_ID}/availability"
    r = await client.post(url, json={"available": False}, headers=_STAFF)
    assert r.status_code == 200
    assert r.json()["available"] is False

    r = await client.post("/api/orders", json={"equipment_id": _TRACTOR_ID, "booking_hrs": 2})
    assert r.status_code == 409
    assert r.json()["code"] == "equipment_unavailable"
    assert (await client.get(f"/api/equipment/{_TRACTOR_ID}/quote")).status_code == 409
    assert (await client.get("/api/orders")).json() == []

    await client.post(url, json={"available": True}, headers=_STAFF)
    r = await client.post("/api/orders", json={"equipment_id": _TRACTOR_ID, "booking_hrs": 2})
    assert r.status_code == 201


@pytest.mark.asyncio
async def test_availability_toggle_requires_staff(client):
    r = await client.post(f"/api/backoffice/equipment/{_TRACTOR_ID}/availability", json={"available": False})
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_backoffice_status_transitions(client):
    r = await client.post("/api/orders", json={"equipment_id": _TRACTOR_ID, "booking_hrs": 2})
    order_id = r.json()["order_id"]
    url = f"/api/backoffice/orders/{order_id}/status"

    assert (await client.post(url, json={"status": "Delivered"}, headers=_STAFF)).status_code == 409
    assert (await client.post(url, json={"status": "Lost"}, headers=_STAFF)).status_code == 400

    r = await client.post(url, json={"status": "Allocated"}, headers=_STAFF)
    assert r.status_code == 200
    assert r.json()["status"] == "Allocated"
    assert Decimal(r.json()["estimated_cost"]) == Decimal("100")


@pytest.mark.asyncio
async def test_backoffice_add_equipment_visible_to_assistant(client):
    r = await client.get("/api/assistant/welcome")
    assert r.json()["equipment_count"] == 2

    r = await client.post("/api/backoffice/equipment", json={"name": "Harrow", "rent": "90"}, headers=_STAFF)
    assert r.status_code == 201

    r = await client.get("/api/assistant/welcome")
    assert r.json()["equipment_count"] == 3


# ── Assistant ─────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_assistant_books_voice_order(client):
    llm = MagicMock(spec=LLMProvider)
    llm.call_with_tools = AsyncMock(return_value=ModelReply(
        function_call=FunctionCall("createOrder", {"equipmentName": "tractor", "bookingHrs": 3}),
    ))
    _llm_holder["llm"] = llm

    r = await client.post("/api/assistant/messages", json={"text": "Book tractor for 3 hours"})
    assert r.status_code == 200
    data = r.json()
    assert data["booked"] is True
    assert data["navigate_to"] == "orders"

    r = await client.get(f"/api/orders/{data['order_id']}")
    assert r.json()["booking_mode"] == "voice-bot"
    assert Decimal(r.json()["estimated_cost"]) == Decimal("150")


@pytest.mark.asyncio
async def test_assistant_without_model(client):
    r = await client.post("/api/assistant/messages", json={"text": "hello"})
    assert r.status_code == 200
    assert r.json()["booked"] is False
    assert "not available" in r.json()["reply"]


@pytest.mark.asyncio
async def test_assistant_rejects_empty_message(client):
    r = await client.post("/api/assistant/messages", json={"text": "   "})
    assert r.status_code == 400


# ── WebSocket ─────────────────────────────────────────────────────────

def test_order_stream_requires_token():
    async def no_db():
        yield None

    app.dependency_overrides[get_db] = no_db
    try:
        with pytest.raises(WebSocketDisconnect) as exc:
            with TestClient(app).websocket_connect("/api/ws/orders"):
                pass
        assert exc.value.code == 4001
    finally:
        app.dependency_overrides.clear()


async def _stream_database():
    """In-memory database with one member, one staff user and a Pending order."""
    test_engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    test_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with test_factory() as db:
        db.add(Center(id=_CENTER_ID, name="Test CHC"))
        await db.flush()
        member = User(id=_MEMBER_ID, center_id=_CENTER_ID, name="Ravi", phone_number="+919000000002")
        staff = User(center_id=_CENTER_ID, name="Staff", phone_number="+919000000001", role="staff")
        db.add_all([member, staff])
        await db.flush()

        expires = datetime.now(timezone.utc) + timedelta(hours=24)
        db.add(UserSession(user_id=member.id, token_hash=_hash_token(_MEMBER_TOKEN), expires_at=expires))
        db.add(UserSession(user_id=staff.id, token_hash=_hash_token(_STAFF_TOKEN), expires_at=expires))
        order = Order(
            center_id=_CENTER_ID, equipment_id=_TRACTOR_ID, equipment_name="Tractor",
            equipment_rent=Decimal("50"), booking_hrs=2, estimated_cost=Decimal("100"),
            delivery_otp="4821", booking_mode="app", user_id=_MEMBER_ID, user_name="Ravi",
        )
        db.add(order)
        await db.commit()
        order_id = order.id

    return test_engine, test_factory, order_id


def test_order_stream_snapshot_and_notification(monkeypatch):
    async def skip_create_all():
        pass

    monkeypatch.setattr(main_module, "create_all", skip_create_all)

    with TestClient(app) as tc:
        test_engine, test_factory, order_id = tc.portal.call(_stream_database)

        async def override_get_db():
            async with test_factory() as session:
                yield session

        app.dependency_overrides[get_db] = override_get_db
        try:
            with tc.websocket_connect(f"/api/ws/orders?token={_MEMBER_TOKEN}") as ws:
                first = ws.receive_json()
                assert first["event"] == "orders_snapshot"
                assert [o["id"] for o in first["data"]["orders"]] == [order_id]
                assert first["data"]["orders"][0]["status"] == "Pending"
                assert order_feed.subscriber_count(_CENTER_ID, _MEMBER_ID) == 1

                r = tc.post(
                    f"/api/backoffice/orders/{order_id}/status",
                    json={"status": "Allocated"}, headers=_STAFF,
                )
                assert r.status_code == 200

                snapshot = ws.receive_json()
                assert snapshot["event"] == "orders_snapshot"
                assert snapshot["data"]["orders"][0]["status"] == "Allocated"

                note = ws.receive_json()
                assert note["event"] == "order_notification"
                assert note["data"] == {
                    "order_id": order_id,
                    "status": "Allocated",
                    "type": "info",
                    "message": f"Order #{order_id[:4]} allocated!",
                }

            assert order_feed.subscriber_count(_CENTER_ID, _MEMBER_ID) == 0
        finally:
            app.dependency_overrides.clear()
            tc.portal.call(test_engine.dispose)
