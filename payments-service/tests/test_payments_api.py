from decimal import Decimal

import httpx
import pytest
import pytest_asyncio

from payments_service.collaborators import get_order_service
from payments_service.db import get_session
from payments_service.gateway import ChargeResult, PaymentGateway, reset_gateway, set_gateway
from payments_service.models import PaymentStatus
from payments_service.main import app


@pytest_asyncio.fixture
async def client(session_factory, orders):
    async def override_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_order_service] = lambda: orders

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
    reset_gateway()


class DecliningGateway(PaymentGateway):
    def charge(self, order_id, amount, payment_method):
        return ChargeResult(PaymentStatus.FAILED, "TXN-DECLINED")


PAYMENT = {"orderId": 1, "paymentMethod": "CREDIT_CARD", "amount": 100.00}


def assert_error(resp, status):
    assert resp.status_code == status
    body = resp.json()
    assert set(body) == {"timestamp", "status", "error", "message", "path"}
    assert body["status"] == status
    return body


@pytest.mark.asyncio
async def test_process_payment_returns_201(client, order_upstream):
    resp = await client.post("/api/payments", json=PAYMENT)

    assert resp.status_code == 201
    body = resp.json()
    assert body["orderId"] == 1
    assert body["userId"] == 7
    assert body["status"] == "COMPLETED"
    assert body["transactionId"].startswith("TXN-")
    assert Decimal(str(body["amount"])) == Decimal("100.00")
    assert "paymentDate" in body and "lastUpdated" in body
    assert order_upstream.status_updates == [(1, "PROCESSING")]


@pytest.mark.asyncio
async def test_declined_charge_marks_order_payment_failed(client, order_upstream):
    set_gateway(DecliningGateway())

    resp = await client.post("/api/payments", json=PAYMENT)

    assert resp.status_code == 201
    assert resp.json()["status"] == "FAILED"
    assert resp.json()["transactionId"] == "TXN-DECLINED"
    assert order_upstream.status_updates == [(1, "PAYMENT_FAILED")]


@pytest.mark.asyncio
async def test_unexpected_order_payload_is_503(client, order_upstream):
    order_upstream.orders[1]["totalAmount"] = None

    body = assert_error(await client.post("/api/payments", json=PAYMENT), 503)
    assert body["error"] == "Service Unavailable"
    assert (await client.get("/api/payments")).json() == []


@pytest.mark.asyncio
async def test_payment_is_created_even_when_order_callback_fails(client, order_upstream):
    order_upstream.fail_update_status = 500

    resp = await client.post("/api/payments", json=PAYMENT)

    assert resp.status_code == 201
    assert (await client.get("/api/payments/order/1")).status_code == 200


@pytest.mark.asyncio
async def test_duplicate_payment_is_409(client):
    await client.post("/api/payments", json=PAYMENT)

    body = assert_error(await client.post("/api/payments", json=PAYMENT), 409)
    assert body["message"] == "Payment already exists for order ID: 1"
    assert body["path"] == "/api/payments"


@pytest.mark.asyncio
async def test_amount_mismatch_is_400(client):
    body = assert_error(await client.post("/api/payments", json={**PAYMENT, "amount": 99.99}), 400)
    assert body["message"] == "Payment amount mismatch for order ID: 1"


@pytest.mark.asyncio
async def test_order_not_pending_is_400(client, order_upstream):
    order_upstream.orders[1]["status"] = "SHIPPED"

    body = assert_error(await client.post("/api/payments", json=PAYMENT), 400)
    assert "Current status: SHIPPED" in body["message"]


@pytest.mark.asyncio
async def test_unknown_order_is_404(client):
    body = assert_error(await client.post("/api/payments", json={**PAYMENT, "orderId": 9}), 404)
    assert body["message"] == "Order not found with ID: 9"


@pytest.mark.asyncio
async def test_order_service_down_is_503(client, order_upstream):
    order_upstream.unreachable = True

    assert_error(await client.post("/api/payments", json=PAYMENT), 503)
    assert (await client.get("/api/payments")).json() == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {**PAYMENT, "amount": 0},
        {**PAYMENT, "amount": -5},
        {**PAYMENT, "paymentMethod": ""},
        {**PAYMENT, "paymentMethod": "   "},
        {"orderId": 1, "amount": 100.00},
        {**PAYMENT, "orderId": 0},
    ],
)
async def test_malformed_payment_request_is_400(client, order_upstream, payload):
    assert_error(await client.post("/api/payments", json=payload), 400)
    assert order_upstream.requests == []


@pytest.mark.asyncio
async def test_read_update_and_delete(client):
    created = (await client.post("/api/payments", json=PAYMENT)).json()
    payment_id = created["id"]

    assert (await client.get(f"/api/payments/{payment_id}")).json()["orderId"] == 1
    assert [p["id"] for p in (await client.get("/api/payments")).json()] == [payment_id]

    resp = await client.put(f"/api/payments/{payment_id}/status", params={"status": "FAILED"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "FAILED"

    assert_error(await client.put(f"/api/payments/{payment_id}/status", params={"status": "REFUNDED"}), 400)

    assert (await client.delete(f"/api/payments/{payment_id}")).status_code == 204
    assert_error(await client.get(f"/api/payments/{payment_id}"), 404)
    assert_error(await client.get("/api/payments/order/1"), 404)
    assert_error(await client.delete(f"/api/payments/{payment_id}"), 404)


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.json() == {"status": "ok", "service": "payments"}
