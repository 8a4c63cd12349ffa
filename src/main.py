"""Main application entry point for the food stand service.

This module provides the FastAPI application factory and configuration
for running the service locally or in production.
"""

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Any

import boto3
from fastapi import FastAPI

from food_stand_service.handlers.api_handler import create_app
from food_stand_service.observability import configure_logging, setup_observability
from food_stand_service.repositories.inventory_repositories import (
    IngredientRepository,
    MenuItemRepository,
    OrderRepository,
)
from food_stand_service.repositories.storage import (
    INGREDIENTS,
    MENU_ITEMS,
    ORDERS,
    DynamoDBStorage,
    InMemoryStorage,
    JsonFileStorage,
    StorageBackend,
)
from food_stand_service.services.catalog_service import InventoryService, MenuService
from food_stand_service.services.operating_day import OperatingDayClock
from food_stand_service.services.order_service import OrderService
from food_stand_service.services.report_service import ReportService

logger = logging.getLogger(__name__)

STORAGE_BACKENDS = ("memory", "json", "dynamodb")


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def get_dynamodb_resource() -> Any:
    """Create DynamoDB resource with appropriate configuration.

    Returns:
        Boto3 DynamoDB resource configured for environment
    """
    endpoint_url = os.getenv("DYNAMODB_ENDPOINT")
    region = os.getenv("AWS_REGION", "us-east-1")

    if endpoint_url:
        logger.info(f"Using local DynamoDB at {endpoint_url}")
        return boto3.resource(
            "dynamodb",
            endpoint_url=endpoint_url,
            region_name=region,
            aws_access_key_id=os.getenv("AWS_ACCESS_KEY_ID"),
            aws_secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY"),
        )

    logger.info(f"Using AWS DynamoDB in region {region}")
    return boto3.resource("dynamodb", region_name=region)


def create_storage_backend() -> StorageBackend:
    """Build the storage backend named by STORAGE_BACKEND.

    Returns:
        An unconnected storage backend

    Raises:
        ValueError: If STORAGE_BACKEND names an unknown backend
    """
    backend = os.getenv("STORAGE_BACKEND", "json").strip().lower()
    seed = _env_flag("SEED_DATA", "true")

    if backend == "memory":
        logger.info(f"Using in-memory storage (seeded: {seed})")
        return InMemoryStorage(seed=seed)

    if backend == "json":
        db_path = os.getenv("DB_PATH", "inventory.json")
        logger.info(f"Using JSON file storage at {db_path}")
        return JsonFileStorage(db_path, seed=seed)

    if backend == "dynamodb":
        table_names = {
            INGREDIENTS: os.getenv("DYNAMODB_INGREDIENTS_TABLE", "food-stand-ingredients"),
            MENU_ITEMS: os.getenv("DYNAMODB_MENU_ITEMS_TABLE", "food-stand-menu-items"),
            ORDERS: os.getenv("DYNAMODB_ORDERS_TABLE", "food-stand-orders"),
        }
        return DynamoDBStorage(get_dynamodb_resource(), table_names)

    raise ValueError(
        f"Unknown STORAGE_BACKEND '{backend}'. Expected one of: {', '.join(STORAGE_BACKENDS)}"
    )


def create_application() -> FastAPI:
    """Create and configure the FastAPI application with all dependencies.

    This factory function:
    1. Configures logging
    2. Creates the storage backend
    3. Initializes repositories and the operating-day clock
    4. Creates services
    5. Creates the FastAPI app, whose lifespan connects and closes storage
    6. Sets up observability

    Returns:
        Configured FastAPI application instance
    """
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    logger.info("Initializing food stand service...")

    storage = create_storage_backend()

    ingredient_repository = IngredientRepository(storage)
    menu_item_repository = MenuItemRepository(storage)
    order_repository = OrderRepository(storage)

    timezone = os.getenv("BUSINESS_TIMEZONE", "America/Merida")
    start_hour = int(os.getenv("DAY_START_HOUR", "0"))
    clock = OperatingDayClock(timezone=timezone, start_hour=start_hour)
    logger.info(f"Operating day starts at {start_hour:02d}:00 {timezone}")

    low_stock_threshold = Decimal(os.getenv("LOW_STOCK_THRESHOLD", "10"))

    inventory_service = InventoryService(ingredient_repository, low_stock_threshold=low_stock_threshold)
    menu_service = MenuService(menu_item_repository, ingredient_repository)
    order_service = OrderService(ingredient_repository, menu_item_repository, order_repository, clock)
    report_service = ReportService(
        ingredient_repository,
        menu_item_repository,
        order_repository,
        clock,
        critical_stock_threshold=low_stock_threshold,
    )

    logger.info("Services initialized")

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        storage.connect()
        logger.info("Storage connected")
        try:
            yield
        finally:
            storage.close()
            logger.info("Storage closed")

    app = create_app(
        inventory_service=inventory_service,
        menu_service=menu_service,
        order_service=order_service,
        report_service=report_service,
        clock=clock,
        lifespan=lifespan,
    )

    setup_observability(app)

    logger.info("Food stand service initialized successfully")

    return app


# Create the FastAPI application instance (only when not in test mode)
# This prevents the app from being created during test collection
if os.getenv("ENVIRONMENT") != "test":  # noqa: SIM108
    app = create_application()
else:
    # Create a placeholder app for test imports
    app = FastAPI()


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "8001"))
    host = os.getenv("HOST", "0.0.0.0")

    logger.info(f"Starting development server on {host}:{port}")
    logger.info(f"API documentation available at http://{host}:{port}/docs")

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=True,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
