import datetime
import json
from decimal import Decimal

import httpx
import pytest

from sales_reports.features.orders.schemas import Order, OrderQuery
from sales_reports.features.orders.service import (
    OrderFetchError,
    ShopifyOrderClient,
    build_order_filter,
)
from sales_reports.features.shops.schemas import ShopCredential

CREDENTIAL = ShopCredential(shop_domain="demo.myshopify.com", access_token="shpat_test")


def order_node(name: str, created_at: str = "2024-03-05T14:30:00Z") -> dict:
    return {
        "id": f"gid://shopify/Order/{name.strip('#')}",
        "name": name,
        "createdAt": created_at,
        "currencyCode": "USD",
        "displayFinancialStatus": "PAID",
        "displayFulfillmentStatus": "UNFULFILLED",
        "customer": {"displayName": "Ada Lovelace", "email": "ada@example.com"},
        "shippingAddress": None,
        "lineItems": {
            "edges": [
                {
                    "node": {
                        "id": "gid://shopify/LineItem/1",
                        "title": "Mug",
                        "variantTitle": "Blue",
                        "sku": "MUG-BLUE",
                        "quantity": 2,
                        "vendor": "Acme",
                        "variant": {"selectedOptions": [{"name": "Color", "value": "Blue"}]},
                        "originalUnitPriceSet": {"shopMoney": {"amount": "12.5", "currencyCode": "USD"}},
                        "discountedTotalSet": {"shopMoney": {"amount": "25.0", "currencyCode": "USD"}},
                        "customAttributes": [{"key": "text", "value": "Hello"}],
                    }
                }
            ]
        },
    }


def page(nodes, has_next: bool, cursor=None) -> dict:
    return {
        "data": {
            "orders": {
                "pageInfo": {"hasNextPage": has_next, "endCursor": cursor},
                "edges": [{"node": n} for n in nodes],
            }
        }
    }


def make_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_filter_with_default_statuses():
    query = OrderQuery(
        start_date=datetime.date(2024, 1, 1),
        end_date=datetime.date(2024, 1, 31),
        financial_status=["paid", "partially_paid"],
    )
    assert build_order_filter(query) == (
        "created_at:>='2024-01-01' AND created_at:<='2024-01-31'"
        " AND (financial_status:PAID OR financial_status:PARTIALLY_PAID)"
    )


def test_filter_any_status_and_fulfillment():
    query = OrderQuery(
        start_date=datetime.date(2024, 1, 1),
        end_date=datetime.date(2024, 1, 2),
        financial_status=["any", "paid"],
        fulfillment_status="shipped",
    )
    assert build_order_filter(query) == (
        "created_at:>='2024-01-01' AND created_at:<='2024-01-02' AND fulfillment_status:SHIPPED"
    )


def test_filter_without_statuses():
    query = OrderQuery(start_date=datetime.date(2024, 1, 1), end_date=datetime.date(2024, 1, 1))
    assert build_order_filter(query) == "created_at:>='2024-01-01' AND created_at:<='2024-01-01'"


async def test_fetch_orders_follows_cursors():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        requests.append((request, payload))
        if payload["variables"]["after"] is None:
            return httpx.Response(200, json=page([order_node("#1001"), order_node("#1002")], True, "c1"))
        return httpx.Response(200, json=page([order_node("#1003")], False))

    query = OrderQuery(start_date=datetime.date(2024, 3, 1), end_date=datetime.date(2024, 3, 31))
    async with make_client(handler) as http_client:
        client = ShopifyOrderClient(http_client, api_version="2024-10", page_size=2)
        orders = await client.fetch_orders(CREDENTIAL, query)

    assert [o.name for o in orders] == ["#1001", "#1002", "#1003"]
    assert len(requests) == 2
    first_request, first_payload = requests[0]
    assert str(first_request.url) == "https://demo.myshopify.com/admin/api/2024-10/graphql.json"
    assert first_request.headers["X-Shopify-Access-Token"] == "shpat_test"
    assert first_payload["variables"]["first"] == 2
    assert requests[1][1]["variables"]["after"] == "c1"


async def test_fetched_order_is_flattened():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=page([order_node("#1001")], False))

    query = OrderQuery(start_date=datetime.date(2024, 3, 1), end_date=datetime.date(2024, 3, 31))
    async with make_client(handler) as http_client:
        orders = await ShopifyOrderClient(http_client).fetch_orders(CREDENTIAL, query)

    order = orders[0]
    assert isinstance(order, Order)
    assert order.customer_name == "Ada Lovelace"
    assert order.created_at_raw == "2024-03-05T14:30:00Z"
    item = order.line_items[0]
    assert item.unit_price == Decimal("12.5")
    assert item.line_total == Decimal("25.0")
    assert item.selected_options[0].name == "Color"
    assert item.custom_attributes[0].value == "Hello"


async def test_missing_orders_payload_raises_with_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"errors": [{"message": "Throttled"}]})

    query = OrderQuery(start_date=datetime.date(2024, 3, 1), end_date=datetime.date(2024, 3, 31))
    async with make_client(handler) as http_client:
        with pytest.raises(OrderFetchError) as exc_info:
            await ShopifyOrderClient(http_client).fetch_orders(CREDENTIAL, query)
    assert exc_info.value.errors == ["Throttled"]
    assert "Throttled" in str(exc_info.value)


async def test_http_error_propagates():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"errors": "Invalid API key"})

    query = OrderQuery(start_date=datetime.date(2024, 3, 1), end_date=datetime.date(2024, 3, 31))
    async with make_client(handler) as http_client:
        with pytest.raises(httpx.HTTPStatusError):
            await ShopifyOrderClient(http_client).fetch_orders(CREDENTIAL, query)


def test_filter_any_status_is_case_insensitive():
    query = OrderQuery(
        start_date=datetime.date(2024, 1, 1),
        end_date=datetime.date(2024, 1, 2),
        financial_status=["ANY"],
    )
    assert build_order_filter(query) == "created_at:>='2024-01-01' AND created_at:<='2024-01-02'"


@pytest.mark.parametrize("end_cursor", [None, "c1"])
async def test_next_page_without_new_cursor_raises(end_cursor):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(json.loads(request.content))
        if len(requests) > 5:
            return httpx.Response(200, json=page([], False))
        return httpx.Response(200, json=page([order_node("#1001")], True, end_cursor))

    query = OrderQuery(start_date=datetime.date(2024, 3, 1), end_date=datetime.date(2024, 3, 31))
    async with make_client(handler) as http_client:
        with pytest.raises(OrderFetchError, match="hasNextPage without a new endCursor"):
            await ShopifyOrderClient(http_client).fetch_orders(CREDENTIAL, query)

    # a missing cursor fails on the first page, a repeated one on the second
    assert len(requests) == (1 if end_cursor is None else 2)


async def test_page_without_edges_is_empty():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": {"orders": {"pageInfo": {"hasNextPage": False}}}})

    query = OrderQuery(start_date=datetime.date(2024, 3, 1), end_date=datetime.date(2024, 3, 31))
    async with make_client(handler) as http_client:
        assert await ShopifyOrderClient(http_client).fetch_orders(CREDENTIAL, query) == []
