import os

os.environ.setdefault("ORDERS_DATABASE_URL", "sqlite+aiosqlite://")

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from interservice import InterServiceClient
from orders_service.collaborators import ProductCatalog, UserDirectory
from orders_service.db import Base
from orders_service import models  # noqa: F401
from orders_service.service import OrderWorkflowCoordinator


class FakeUpstream:
    """Scripted user and product services behind an httpx.MockTransport."""

    def __init__(self):
        self.users = {1: {"id": 1, "username": "alice"}}
        self.products = {
            10: {"id": 10, "name": "Keyboard", "price": 40.00, "stockQuantity": 5},
            20: {"id": 20, "name": "Mouse", "price": 20.00, "stockQuantity": 3},
        }
        self.requests: list[httpx.Request] = []
        self.fail_status: int | None = None
        self.unreachable = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)
        if self.fail_status is not None:
            return httpx.Response(self.fail_status, text="upstream error")

        _, _, kind, ident = request.url.path.split("/")
        table = self.users if kind == "users" else self.products
        record = table.get(int(ident))
        if record is None:
            return httpx.Response(404, text=f"{kind[:-1]} not found")
        return httpx.Response(200, json=record)

    def paths(self, kind: str) -> list[str]:
        return [r.url.path for r in self.requests if f"/{kind}/" in r.url.path]


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def users(upstream):
    client = InterServiceClient(
        "user-service", "http://user-service:8080/api", transport=httpx.MockTransport(upstream.handler)
    )
    return UserDirectory(client)


@pytest.fixture
def products(upstream):
    client = InterServiceClient(
        "product-service", "http://product-service:8081/api", transport=httpx.MockTransport(upstream.handler)
    )
    return ProductCatalog(client)


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}")
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
def coordinator(session, users, products):
    return OrderWorkflowCoordinator(session, users, products)
