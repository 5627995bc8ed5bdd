"""
Order fetching from the Shopify Admin GraphQL API.

``ShopifyOrderClient`` pages through the ``orders`` connection for one shop
and returns every matching order as an ``Order`` snapshot. Filtering happens
server side through the search-syntax query built by ``build_order_filter``;
the client does no retries and no caching.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from ...core.config import ORDERS_PAGE_SIZE, SHOPIFY_API_VERSION
from ..shops.schemas import ShopCredential
from .schemas import Order, OrderQuery, connection_nodes

logger = logging.getLogger(__name__)

ORDERS_QUERY = """
query getOrders($first: Int!, $after: String, $query: String!) {
  orders(first: $first, after: $after, query: $query) {
    pageInfo {
      hasNextPage
      endCursor
    }
    edges {
      node {
        id
        name
        createdAt
        currencyCode
        displayFinancialStatus
        displayFulfillmentStatus
        customer {
          displayName
          email
        }
        shippingAddress {
          name
          address1
          address2
          city
          province
          zip
          country
        }
        lineItems(first: 250) {
          edges {
            node {
              id
              title
              variantTitle
              sku
              quantity
              vendor
              variant {
                selectedOptions {
                  name
                  value
                }
              }
              originalUnitPriceSet {
                shopMoney {
                  amount
                  currencyCode
                }
              }
              discountedTotalSet {
                shopMoney {
                  amount
                  currencyCode
                }
              }
              customAttributes {
                key
                value
              }
            }
          }
        }
      }
    }
  }
}
"""


class OrderFetchError(Exception):
    """The GraphQL response carried no ``orders`` payload."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.errors = errors or []
        if self.errors:
            message = f"{message}: {'; '.join(self.errors)}"
        super().__init__(message)


def build_order_filter(query: OrderQuery) -> str:
    """Builds the Shopify search-syntax filter for an order query.

    The date bounds are inclusive and use the date part only. A financial
    status list containing ``any`` disables status filtering.

    Example:
        ``created_at:>='2024-01-01' AND created_at:<='2024-01-31'
        AND (financial_status:PAID OR financial_status:PARTIALLY_PAID)``
    """
    expression = (
        f"created_at:>='{query.start_date.isoformat()}' "
        f"AND created_at:<='{query.end_date.isoformat()}'"
    )
    statuses = [s for s in query.financial_status if s]
    if statuses and "any" not in (s.lower() for s in statuses):
        status_filter = " OR ".join(f"financial_status:{s.upper()}" for s in statuses)
        expression += f" AND ({status_filter})"
    if query.fulfillment_status:
        expression += f" AND fulfillment_status:{query.fulfillment_status.upper()}"
    return expression


def _graphql_error_messages(body: Dict[str, Any]) -> List[str]:
    return [
        str(error.get("message", error)) if isinstance(error, dict) else str(error)
        for error in body.get("errors") or []
    ]


class ShopifyOrderClient:
    """Fetches orders for a shop through the Admin GraphQL ``orders`` connection.

    The ``httpx.AsyncClient`` is owned by the caller, which also decides its
    timeout and transport (tests pass one backed by ``httpx.MockTransport``).
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_version: str = SHOPIFY_API_VERSION,
        page_size: int = ORDERS_PAGE_SIZE,
    ):
        self.http_client = http_client
        self.api_version = api_version
        self.page_size = page_size

    def endpoint(self, shop_domain: str) -> str:
        return f"https://{shop_domain}/admin/api/{self.api_version}/graphql.json"

    async def fetch_orders(self, credential: ShopCredential, query: OrderQuery) -> List[Order]:
        """Returns every order matching ``query``, following cursors to the end.

        Raises:
            OrderFetchError: If a page comes back without an ``orders`` payload.
            httpx.HTTPError: On transport failures or non-2xx responses.
        """
        search = build_order_filter(query)
        url = self.endpoint(credential.shop_domain)
        headers = {
            "X-Shopify-Access-Token": credential.access_token,
            "Content-Type": "application/json",
        }
        logger.info(f"Fetching orders for {credential.shop_domain} with filter: {search}")

        orders: List[Order] = []
        cursor: Optional[str] = None
        page = 0
        while True:
            page += 1
            variables = {"first": self.page_size, "after": cursor, "query": search}
            response = await self.http_client.post(
                url, json={"query": ORDERS_QUERY, "variables": variables}, headers=headers
            )
            response.raise_for_status()
            body = response.json()

            connection = (body.get("data") or {}).get("orders")
            if connection is None:
                errors = _graphql_error_messages(body)
                logger.error(f"No orders payload on page {page} for {credential.shop_domain}: {errors}")
                raise OrderFetchError("Order query returned no orders payload", errors)

            nodes = connection_nodes(connection) if "edges" in connection else []
            orders.extend(Order.model_validate(node) for node in nodes)
            logger.debug(f"Page {page}: {len(nodes)} orders")

            page_info = connection.get("pageInfo") or {}
            if not page_info.get("hasNextPage"):
                break
            next_cursor = page_info.get("endCursor")
            if not next_cursor or next_cursor == cursor:
                logger.error(f"Page {page} for {credential.shop_domain} has no new endCursor: {next_cursor!r}")
                raise OrderFetchError(f"Order query reported hasNextPage without a new endCursor on page {page}")
            cursor = next_cursor

        logger.info(f"Fetched {len(orders)} orders in {page} page(s) for {credential.shop_domain}")
        return orders
