"""
Root conftest for the pytest test suite.

This file contains the main fixtures that are used across the entire test suite.

Each test that touches the database gets a fresh, isolated in-memory SQLite
schema, initialized manually in the test's own event loop.

Key Fixtures:
- `db`: Creates a fresh DB schema for the test and closes it afterwards.
- `shop`: An installed shop with an Admin API token.
- `auth_headers`: Bearer session-token headers for `shop`.
- `fake_queue`: A queue that records messages instead of sending them.
- `client`: An httpx.AsyncClient talking to the FastAPI app in-process.
- `make_order`: Builds `Order` snapshots with sensible defaults.
"""

from typing import Any, AsyncGenerator, Dict, List, Optional

import httpx
import pytest
import pytest_asyncio
from tortoise import Tortoise

from sales_reports.core.config import MODEL_MODULES
from sales_reports.features.orders.schemas import Order
from sales_reports.features.report_jobs.queue import InMemoryReportQueue
from sales_reports.features.report_jobs.router import get_report_queue
from sales_reports.features.shops.models import Shop
from sales_reports.features.shops.security import create_session_token

# Import the app
from sales_reports.main import app as actual_app

TEST_DB_CONFIG = {
    "connections": {"default": "sqlite://:memory:"},
    "apps": {
        "models": {
            "models": [*MODEL_MODULES, "aerich.models"],
            "default_connection": "default",
        }
    },
    "use_tz": True,
    "timezone": "UTC",
}


@pytest_asyncio.fixture(scope="function")
async def db() -> AsyncGenerator[None, None]:
    """
    Initializes a fresh in-memory database and schema for one test.
    """
    await Tortoise.init(config=TEST_DB_CONFIG)
    await Tortoise.generate_schemas()

    yield

    await Tortoise.close_connections()


@pytest_asyncio.fixture(scope="function")
async def shop(db) -> Shop:
    return await Shop.create(shop_domain="demo.myshopify.com", access_token="shpat_demo")


@pytest_asyncio.fixture(scope="function")
async def other_shop(db) -> Shop:
    return await Shop.create(shop_domain="other.myshopify.com", access_token="shpat_other")


@pytest.fixture(scope="function")
def auth_headers(shop: Shop) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_session_token(shop.shop_domain)}"}


@pytest.fixture(scope="function")
def fake_queue() -> InMemoryReportQueue:
    return InMemoryReportQueue()


@pytest_asyncio.fixture(scope="function")
async def client(db, fake_queue: InMemoryReportQueue) -> AsyncGenerator[httpx.AsyncClient, Any]:
    """
    Provides an httpx client bound to the app. The production lifespan is not
    run, so the `db` fixture owns the database and `fake_queue` the queue.
    """
    actual_app.dependency_overrides[get_report_queue] = lambda: fake_queue
    transport = httpx.ASGITransport(app=actual_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
    actual_app.dependency_overrides.clear()


def _line_item(order_name: str, position: int, overrides: Dict[str, Any]) -> Dict[str, Any]:
    item = {
        "id": f"gid://shopify/LineItem/{order_name}-{position}",
        "title": "Mug",
        "variant_title": None,
        "sku": None,
        "quantity": 1,
        "vendor": None,
        "unit_price": "10.00",
        "line_total": "10.00",
        "custom_attributes": [],
        "selected_options": [],
    }
    item.update(overrides)
    return item


@pytest.fixture
def make_order():
    """Returns a builder: make_order(name, created_at, items=[{...}], **order_fields)."""

    def _make(
        name: str = "#1001",
        created_at: str = "2024-03-05T14:30:00Z",
        items: Optional[List[Dict[str, Any]]] = None,
        **fields: Any,
    ) -> Order:
        item_overrides = items if items is not None else [{}]
        data = {
            "id": f"gid://shopify/Order/{name.lstrip('#')}",
            "name": name,
            "created_at": created_at,
            "currency_code": "USD",
            "display_financial_status": "PAID",
            "display_fulfillment_status": "UNFULFILLED",
            "customer": {"display_name": "Ada Lovelace", "email": "ada@example.com"},
            "shipping_address": None,
            "line_items": [
                _line_item(name, position, overrides)
                for position, overrides in enumerate(item_overrides, start=1)
            ],
        }
        data.update(fields)
        return Order.model_validate(data)

    return _make
