import logging

from interservice import InterServiceClient, ProductNotFound, UserNotFound
from orders_service.config import settings
from orders_service.schemas import ProductDetails, UserDetails

logger = logging.getLogger("orders.collaborators")


class UserDirectory:
    """User lookup capability: ``GET /users/{id}``."""

    def __init__(self, client: InterServiceClient):
        self.client = client

    async def get_user(self, user_id: int) -> UserDetails:
        logger.info("[Orders] Validating user %s against %s", user_id, self.client.base_url)
        return await self.client.get_model(
            f"/users/{user_id}",
            UserDetails,
            not_found=lambda: UserNotFound(f"User not found with ID: {user_id}"),
        )


class ProductCatalog:
    """Product lookup capability: ``GET /products/{id}``."""

    def __init__(self, client: InterServiceClient):
        self.client = client

    async def get_product(self, product_id: int) -> ProductDetails:
        logger.info("[Orders] Fetching product %s from %s", product_id, self.client.base_url)
        return await self.client.get_model(
            f"/products/{product_id}",
            ProductDetails,
            not_found=lambda: ProductNotFound(f"Product not found with ID: {product_id}"),
        )


user_client:    InterServiceClient | None = None
product_client: InterServiceClient | None = None

def get_user_directory() -> UserDirectory:
    global user_client
    if user_client is None:
        user_client = InterServiceClient(
            "user-service", settings.USER_SERVICE_URL, timeout=settings.HTTP_TIMEOUT_SECONDS
        )
    return UserDirectory(user_client)

def get_product_catalog() -> ProductCatalog:
    global product_client
    if product_client is None:
        product_client = InterServiceClient(
            "product-service", settings.PRODUCT_SERVICE_URL, timeout=settings.HTTP_TIMEOUT_SECONDS
        )
    return ProductCatalog(product_client)

async def close_clients() -> None:
    global user_client, product_client
    for client in (user_client, product_client):
        if client is not None:
            await client.aclose()
    user_client = product_client = None
    logger.info("[Orders] Collaborator clients closed")
