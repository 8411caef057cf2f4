import logging

from interservice import InterServiceClient, OrderNotFound
from payments_service.config import settings
from payments_service.schemas import OrderDetails

logger = logging.getLogger("payments.collaborators")


class OrderService:
    """Order lookup and status-update capabilities of the order service."""

    def __init__(self, client: InterServiceClient):
        self.client = client

    async def get_order(self, order_id: int) -> OrderDetails:
        logger.info("[Payments] Fetching order %s from %s", order_id, self.client.base_url)
        return await self.client.get_model(
            f"/orders/{order_id}",
            OrderDetails,
            not_found=lambda: OrderNotFound(f"Order not found with ID: {order_id}"),
        )

    async def update_order_status(self, order_id: int, status: str) -> None:
        # any error, 404 included, is a communication failure here
        await self.client.request("PUT", f"/orders/{order_id}/status", params={"status": status})
        logger.info("[Payments] Order %s status set to %s in order service", order_id, status)


order_client: InterServiceClient | None = None

def get_order_service() -> OrderService:
    global order_client
    if order_client is None:
        order_client = InterServiceClient(
            "order-service", settings.ORDER_SERVICE_URL, timeout=settings.HTTP_TIMEOUT_SECONDS
        )
    return OrderService(order_client)

async def close_clients() -> None:
    global order_client
    if order_client is not None:
        await order_client.aclose()
        order_client = None
        logger.info("[Payments] Order service client closed")
