"""
Row formatters for the three sales-detail report types.

Each formatter is a pure function from fetched orders to a list of frozen
rows, sorted deterministically. Dates are taken in the reporting timezone so
an order placed late on the 1st in New York does not land on the 2nd.
"""
import datetime
import logging
import re
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Sequence, Tuple

from ..orders.schemas import LineItem, Order, ShippingAddress
from .memo import INTERNAL_VENDORS_MEMO, QB_MEMO, STANDARD_MEMO, format_memo
from .schemas import InternalVendorsRow, QbRow, StandardRow

logger = logging.getLogger(__name__)

_LEADING_DIGITS = re.compile(r"^\d+")
_CENTS = Decimal("0.01")


def format_money(amount: Decimal) -> str:
    return str(Decimal(amount).quantize(_CENTS, rounding=ROUND_HALF_UP))


def local_date(order: Order, tz: datetime.tzinfo) -> datetime.date:
    return order.created_at.astimezone(tz).date()


def us_date(value: datetime.date) -> str:
    return value.strftime("%m/%d/%Y")


def order_number(order: Order) -> str:
    """``#20551`` -> ``20551``."""
    return order.name[1:] if order.name.startswith("#") else order.name


def numeric_order_number(num: str) -> int:
    match = _LEADING_DIGITS.match(num)
    return int(match.group(0)) if match else 0


def format_address(address: Optional[ShippingAddress]) -> str:
    """Multi-line shipping address: name, street lines, then "city, province, zip"."""
    if address is None:
        return ""
    parts = [part for part in (address.name, address.address1, address.address2) if part]
    locality = ", ".join(part for part in (address.city, address.province, address.zip) if part)
    if locality:
        parts.append(locality)
    return "\n".join(parts)


def format_standard_rows(orders: Sequence[Order], tz: datetime.tzinfo) -> List[StandardRow]:
    rows = []
    for order in orders:
        if not order.line_items:
            logger.debug(f"Order {order.name} has no line items")
            continue
        order_date = local_date(order, tz).isoformat()
        for item in order.line_items:
            rows.append(
                StandardRow(
                    order_created_at=order.created_at_raw,
                    order_date=order_date,
                    order_name=order.name,
                    order_id=order.id,
                    customer_name=order.customer_name,
                    customer_email=order.customer_email,
                    line_item_title=item.title,
                    variant_title=item.variant_title or "",
                    sku=item.sku or "",
                    quantity=item.quantity,
                    unit_price=format_money(item.unit_price),
                    line_total=format_money(item.line_total),
                    currency=order.currency_code,
                    memo=format_memo(item.custom_attributes, STANDARD_MEMO),
                    line_item_id=item.id,
                )
            )
    rows.sort(key=lambda r: (r.order_date, r.order_name, r.line_item_id))
    return rows


def _line_memo(item: LineItem, options) -> str:
    return format_memo(
        item.custom_attributes, options, selected_options=item.selected_options,
        variant_title=item.variant_title,
    )


def format_qb_rows(orders: Sequence[Order], tz: datetime.tzinfo) -> List[QbRow]:
    """QuickBooks style rows, grouped by day with a quantity subtotal per day.

    Within a day only the first row carries the date; the group is followed
    by a ``Total orders for MM/DD/YYYY`` row flagged ``is_subtotal``.
    """
    entries: List[Tuple[Tuple[datetime.date, int, str, str], QbRow]] = []
    for order in orders:
        if not order.line_items:
            continue
        day = local_date(order, tz)
        num = order_number(order)
        for item in order.line_items:
            row = QbRow(
                date=us_date(day),
                customer=order.customer_name,
                num=num,
                product_service=item.title,
                qty=item.quantity,
                memo_description=_line_memo(item, QB_MEMO),
                sku=item.sku or "",
                vendor=item.vendor or "",
            )
            entries.append(((day, numeric_order_number(num), item.title.casefold(), item.title), row))
    entries.sort(key=lambda entry: entry[0])

    rows: List[QbRow] = []
    group_day: Optional[datetime.date] = None
    group_qty = 0
    for (day, *_), row in entries:
        if day != group_day:
            if group_day is not None:
                rows.append(_qb_subtotal(group_day, group_qty))
            group_day, group_qty = day, 0
            rows.append(row)
        else:
            rows.append(row.model_copy(update={"date": ""}))
        group_qty += row.qty
    if group_day is not None:
        rows.append(_qb_subtotal(group_day, group_qty))
    return rows


def _qb_subtotal(day: datetime.date, qty: int) -> QbRow:
    return QbRow(customer=f"Total orders for {us_date(day)}", qty=qty, is_subtotal=True)


def format_internal_vendors_rows(orders: Sequence[Order], tz: datetime.tzinfo) -> List[InternalVendorsRow]:
    entries = []
    for order in orders:
        if not order.line_items:
            continue
        day = local_date(order, tz)
        num = order_number(order)
        address = format_address(order.shipping_address)
        for item in order.line_items:
            vendor = item.vendor or ""
            memo = _line_memo(item, INTERNAL_VENDORS_MEMO)
            product_lines = [item.title]
            if memo:
                product_lines.append(memo)
            if item.sku:
                product_lines.append(f"SKU: {item.sku}")
            row = InternalVendorsRow(
                address=address,
                date=us_date(day),
                customer=order.customer_name,
                num=num,
                memo_description=f"{vendor}:{item.title}" if vendor else item.title,
                qty=item.quantity,
                product_service="\n".join(product_lines),
                vendor=vendor,
            )
            entries.append(((day, numeric_order_number(num)), row))
    # stable: rows of one order keep their line item order
    entries.sort(key=lambda entry: entry[0])
    return [row for _, row in entries]
