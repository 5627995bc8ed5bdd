"""
PDF rendering of the standard sales-detail report.

The report is laid out as HTML from a Jinja2 template and printed to A4 by
headless Chromium through Playwright. ``render_html`` is split out so the
layout can be checked without a browser.
"""
import datetime
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright
from pydantic import BaseModel

from ..orders.schemas import Order
from .formatters import format_money, local_date
from .memo import STANDARD_MEMO, format_memo

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"
PDF_TEMPLATE = "sales_detail.html"
PDF_MARGIN = {"top": "20mm", "right": "15mm", "bottom": "20mm", "left": "15mm"}


class PdfRenderError(Exception):
    """Chromium failed to load or print the report HTML."""


class ReportContext(BaseModel):
    shop_domain: str
    start_date: datetime.date
    end_date: datetime.date


def _order_view(order: Order) -> Dict:
    return {
        "name": order.name,
        "customer_name": order.customer_name or "N/A",
        "customer_email": order.customer_email or "N/A",
        "financial_status": order.display_financial_status or "",
        "fulfillment_status": order.display_fulfillment_status or "",
        "line_items": [
            {
                "title": item.title,
                "variant_title": item.variant_title or "",
                "sku": item.sku or "",
                "quantity": item.quantity,
                "unit_price": f"{order.currency_code} {format_money(item.unit_price)}",
                "line_total": f"{order.currency_code} {format_money(item.line_total)}",
                "memo": format_memo(item.custom_attributes, STANDARD_MEMO),
            }
            for item in order.line_items
        ],
    }


def group_orders_by_date(orders: Sequence[Order], tz: datetime.tzinfo) -> List[Dict]:
    """Date sections in ascending order, orders within a day by creation time."""
    by_date: Dict[datetime.date, List[Order]] = {}
    for order in sorted(orders, key=lambda o: o.created_at):
        by_date.setdefault(local_date(order, tz), []).append(order)
    return [
        {"date": day.isoformat(), "orders": [_order_view(o) for o in by_date[day]]}
        for day in sorted(by_date)
    ]


class PdfRenderer:
    def __init__(self, tz: Optional[datetime.tzinfo] = None):
        self.tz = tz or datetime.timezone.utc
        self.env = Environment(
            loader=FileSystemLoader(TEMPLATES_DIR),
            autoescape=select_autoescape(["html"]),
        )

    def render_html(self, orders: Sequence[Order], context: ReportContext) -> str:
        template = self.env.get_template(PDF_TEMPLATE)
        return template.render(
            shop_domain=context.shop_domain,
            start_date=context.start_date.isoformat(),
            end_date=context.end_date.isoformat(),
            sections=group_orders_by_date(orders, self.tz),
        )

    async def render(self, orders: Sequence[Order], context: ReportContext) -> bytes:
        """Prints the report to an A4 PDF and returns its bytes.

        Raises:
            PdfRenderError: If Chromium cannot be launched or printing fails.
        """
        html = self.render_html(orders, context)
        try:
            async with async_playwright() as playwright:
                browser = await playwright.chromium.launch()
                try:
                    page = await browser.new_page()
                    await page.set_content(html, wait_until="networkidle")
                    pdf = await page.pdf(format="A4", margin=PDF_MARGIN, print_background=True)
                finally:
                    await browser.close()
        except PlaywrightError as e:
            logger.error(f"PDF rendering failed for {context.shop_domain}: {e}")
            raise PdfRenderError(f"PDF rendering failed: {e}") from e
        logger.info(f"Rendered PDF for {context.shop_domain}: {len(pdf)} bytes")
        return pdf
