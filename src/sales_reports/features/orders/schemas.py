"""Order snapshots read from the Shopify Admin GraphQL API.

Orders are never persisted: each report job fetches them, formats them and
drops them. The models accept the GraphQL node shape directly (camelCase keys,
``edges``/``node`` connections and ``shopMoney`` amounts) so the fetcher can
hand raw page nodes to ``Order.model_validate``.
"""
from decimal import Decimal
from typing import Any, List, Optional
import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class GraphQLModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True, protected_namespaces=()
    )


def connection_nodes(value: Any) -> Any:
    """Unwraps ``{"edges": [{"node": ...}]}`` into a plain list of nodes."""
    if isinstance(value, dict) and "edges" in value:
        return [edge["node"] for edge in value.get("edges") or [] if edge.get("node")]
    return value


def _shop_money(value: Any) -> Any:
    """Extracts the amount from a ``{"shopMoney": {"amount": ...}}`` money bag."""
    if isinstance(value, dict):
        money = value.get("shopMoney") or {}
        return money.get("amount") or "0"
    return value


class CustomAttribute(GraphQLModel):
    key: Optional[str] = None
    value: Optional[str] = None


class SelectedOption(GraphQLModel):
    name: Optional[str] = None
    value: Optional[str] = None


class Customer(GraphQLModel):
    display_name: Optional[str] = None
    email: Optional[str] = None


class ShippingAddress(GraphQLModel):
    name: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None


class LineItem(GraphQLModel):
    id: str
    title: str = ""
    variant_title: Optional[str] = None
    sku: Optional[str] = None
    quantity: int = 0
    vendor: Optional[str] = None
    unit_price: Decimal = Field(Decimal("0"), description="Original unit price, shop currency")
    line_total: Decimal = Field(Decimal("0"), description="Discounted line total, shop currency")
    custom_attributes: List[CustomAttribute] = Field(default_factory=list)
    selected_options: List[SelectedOption] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _flatten_graphql_node(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "originalUnitPriceSet" in data:
            data["unitPrice"] = _shop_money(data.pop("originalUnitPriceSet"))
        if "discountedTotalSet" in data:
            data["lineTotal"] = _shop_money(data.pop("discountedTotalSet"))
        variant = data.pop("variant", None)
        if isinstance(variant, dict) and "selectedOptions" not in data:
            data["selectedOptions"] = variant.get("selectedOptions") or []
        for key in ("customAttributes", "selectedOptions"):
            if data.get(key) is None:
                data.pop(key, None)
        return data


class Order(GraphQLModel):
    id: str
    name: str = ""
    created_at: datetime.datetime
    currency_code: str = ""
    display_financial_status: Optional[str] = None
    display_fulfillment_status: Optional[str] = None
    customer: Optional[Customer] = None
    shipping_address: Optional[ShippingAddress] = None
    line_items: List[LineItem] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _flatten_line_items(cls, data: Any) -> Any:
        if isinstance(data, dict) and "lineItems" in data:
            data = dict(data)
            data["lineItems"] = connection_nodes(data["lineItems"]) or []
        return data

    @property
    def created_at_raw(self) -> str:
        """The creation timestamp as Shopify reports it (UTC, ``Z`` suffix)."""
        return self.created_at.astimezone(datetime.timezone.utc).isoformat().replace("+00:00", "Z")

    @property
    def customer_name(self) -> str:
        return (self.customer.display_name if self.customer else None) or ""

    @property
    def customer_email(self) -> str:
        return (self.customer.email if self.customer else None) or ""


class OrderQuery(BaseModel):
    """Filter for one fetch: an inclusive date range plus optional statuses."""

    start_date: datetime.date
    end_date: datetime.date
    financial_status: List[str] = Field(default_factory=list)
    fulfillment_status: Optional[str] = None
