import asyncio
import logging
from typing import List

from fastapi import Depends, FastAPI, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession
import uvicorn

from interservice import install_error_handlers
from payments_service import schemas, workers
from payments_service.collaborators import OrderService, close_clients, get_order_service
from payments_service.config import settings
from payments_service.db import Base, engine, get_session
from payments_service.gateway import PaymentGateway, get_gateway
from payments_service.models import PaymentStatus
from payments_service.service import PaymentWorkflowCoordinator

logger = logging.getLogger(__name__)
app = FastAPI(title="Payments Service")
install_error_handlers(app)

@app.on_event("startup")
async def startup_event():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    app.state.reconciliation_task = asyncio.create_task(workers.reconciliation_publisher())

@app.on_event("shutdown")
async def shutdown_event():
    app.state.reconciliation_task.cancel()
    await close_clients()
    await engine.dispose()


def get_coordinator(
    session: AsyncSession = Depends(get_session),
    orders: OrderService = Depends(get_order_service),
    gateway: PaymentGateway = Depends(get_gateway),
) -> PaymentWorkflowCoordinator:
    return PaymentWorkflowCoordinator(session, orders, gateway, workers.Reconciler(orders))


@app.get("/health")
async def health():
    return {"status": "ok", "service": "payments"}

@app.post("/api/payments", response_model=schemas.PaymentRead, status_code=201)
async def process_payment(
    payment_in: schemas.PaymentRequest,
    coordinator: PaymentWorkflowCoordinator = Depends(get_coordinator)
):
    payment = await coordinator.process_payment(
        payment_in.order_id, payment_in.payment_method, payment_in.amount
    )
    return schemas.PaymentRead.model_validate(payment)

@app.get("/api/payments", response_model=List[schemas.PaymentRead])
async def list_payments(coordinator: PaymentWorkflowCoordinator = Depends(get_coordinator)):
    return [schemas.PaymentRead.model_validate(p) for p in await coordinator.list_payments()]

@app.get("/api/payments/order/{order_id}", response_model=schemas.PaymentRead)
async def get_payment_by_order_id(
    order_id: int,
    coordinator: PaymentWorkflowCoordinator = Depends(get_coordinator)
):
    return schemas.PaymentRead.model_validate(await coordinator.get_payment_by_order_id(order_id))

@app.get("/api/payments/{payment_id}", response_model=schemas.PaymentRead)
async def get_payment(
    payment_id: int,
    coordinator: PaymentWorkflowCoordinator = Depends(get_coordinator)
):
    return schemas.PaymentRead.model_validate(await coordinator.get_payment(payment_id))

@app.put("/api/payments/{payment_id}/status", response_model=schemas.PaymentRead)
async def update_payment_status(
    payment_id: int,
    status: PaymentStatus = Query(...),
    coordinator: PaymentWorkflowCoordinator = Depends(get_coordinator)
):
    payment = await coordinator.update_payment_status(payment_id, status)
    return schemas.PaymentRead.model_validate(payment)

@app.delete("/api/payments/{payment_id}", status_code=204)
async def delete_payment(
    payment_id: int,
    coordinator: PaymentWorkflowCoordinator = Depends(get_coordinator)
):
    await coordinator.delete_payment(payment_id)
    return Response(status_code=204)


if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL)
    uvicorn.run("payments_service.main:app", host="0.0.0.0", port=8083)
