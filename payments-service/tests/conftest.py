import os

os.environ.setdefault("PAYMENTS_DATABASE_URL", "sqlite+aiosqlite://")

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from interservice import InterServiceClient
from payments_service import models  # noqa: F401
from payments_service.collaborators import OrderService
from payments_service.db import Base
from payments_service.gateway import SimulatedGateway
from payments_service.service import PaymentWorkflowCoordinator
from payments_service.workers import Reconciler


class FakeOrderService:
    """Scripted order service: ``GET /orders/{id}`` and ``PUT /orders/{id}/status``."""

    def __init__(self):
        self.orders = {
            1: {"id": 1, "userId": 7, "status": "PENDING", "totalAmount": 100.00, "orderItems": []},
        }
        self.requests: list[httpx.Request] = []
        self.status_updates: list[tuple[int, str]] = []
        self.fail_lookup_status: int | None = None
        self.fail_update_status: int | None = None
        self.unreachable = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)

        order_id = int(request.url.path.split("/")[3])
        if request.method == "PUT":
            if self.fail_update_status is not None:
                return httpx.Response(self.fail_update_status, text="order service down")
            if order_id not in self.orders:
                return httpx.Response(404, text="Order not found")
            status = request.url.params["status"]
            self.orders[order_id]["status"] = status
            self.status_updates.append((order_id, status))
            return httpx.Response(200, json=self.orders[order_id])

        if self.fail_lookup_status is not None:
            return httpx.Response(self.fail_lookup_status, text="order service down")
        order = self.orders.get(order_id)
        if order is None:
            return httpx.Response(404, text="Order not found")
        return httpx.Response(200, json=order)

    def lookups(self) -> int:
        return sum(1 for r in self.requests if r.method == "GET")


@pytest.fixture
def order_upstream():
    return FakeOrderService()


@pytest.fixture
def orders(order_upstream):
    client = InterServiceClient(
        "order-service", "http://order-service:8082/api", transport=httpx.MockTransport(order_upstream.handler)
    )
    return OrderService(client)


@pytest.fixture
def reconciler(orders):
    return Reconciler(orders, max_attempts=3, backoff_seconds=0, backoff_max_seconds=0)


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'payments.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def coordinator(session, orders, reconciler):
    return PaymentWorkflowCoordinator(session, orders, SimulatedGateway(), reconciler)
