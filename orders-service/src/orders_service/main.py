import logging
from typing import List

from fastapi import Depends, FastAPI, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession
import uvicorn

from interservice import install_error_handlers
from orders_service import schemas
from orders_service.collaborators import (
    ProductCatalog,
    UserDirectory,
    close_clients,
    get_product_catalog,
    get_user_directory,
)
from orders_service.config import settings
from orders_service.db import Base, engine, get_session
from orders_service.models import OrderStatus
from orders_service.service import OrderWorkflowCoordinator

logger = logging.getLogger(__name__)
app = FastAPI(title="Orders Service")
install_error_handlers(app)

@app.on_event("startup")
async def startup_event():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("[Orders] Schema ready")

@app.on_event("shutdown")
async def shutdown_event():
    await close_clients()
    await engine.dispose()


def get_coordinator(
    session: AsyncSession = Depends(get_session),
    users: UserDirectory = Depends(get_user_directory),
    products: ProductCatalog = Depends(get_product_catalog),
) -> OrderWorkflowCoordinator:
    return OrderWorkflowCoordinator(session, users, products)


@app.get("/health")
async def health():
    return {"status": "ok", "service": "orders"}

@app.post("/api/orders", response_model=schemas.OrderRead, status_code=201)
async def create_order(
    order_in: schemas.OrderCreateRequest,
    coordinator: OrderWorkflowCoordinator = Depends(get_coordinator)
):
    order = await coordinator.create_order(order_in.user_id, order_in.order_items)
    return schemas.OrderRead.model_validate(order)

@app.get("/api/orders/user/{user_id}", response_model=List[schemas.OrderRead])
async def list_orders_by_user(
    user_id: int,
    coordinator: OrderWorkflowCoordinator = Depends(get_coordinator)
):
    orders = await coordinator.list_orders_by_user(user_id)
    return [schemas.OrderRead.model_validate(o) for o in orders]

@app.get("/api/orders/{order_id}", response_model=schemas.OrderRead)
async def get_order(
    order_id: int,
    coordinator: OrderWorkflowCoordinator = Depends(get_coordinator)
):
    return schemas.OrderRead.model_validate(await coordinator.get_order(order_id))

@app.put("/api/orders/{order_id}/status", response_model=schemas.OrderRead)
async def update_order_status(
    order_id: int,
    status: OrderStatus = Query(...),
    coordinator: OrderWorkflowCoordinator = Depends(get_coordinator)
):
    order = await coordinator.update_order_status(order_id, status)
    return schemas.OrderRead.model_validate(order)

@app.delete("/api/orders/{order_id}", status_code=204)
async def delete_order(
    order_id: int,
    coordinator: OrderWorkflowCoordinator = Depends(get_coordinator)
):
    await coordinator.delete_order(order_id)
    return Response(status_code=204)


if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL)
    uvicorn.run("orders_service.main:app", host="0.0.0.0", port=8082)
