import datetime
from zoneinfo import ZoneInfo

import pytest
from playwright.async_api import Error as PlaywrightError

from sales_reports.features.reports import pdf as pdf_module
from sales_reports.features.reports.pdf import PdfRenderError, PdfRenderer, ReportContext, group_orders_by_date

CONTEXT = ReportContext(
    shop_domain="demo.myshopify.com",
    start_date=datetime.date(2024, 3, 1),
    end_date=datetime.date(2024, 3, 31),
)


def test_orders_grouped_by_date_ascending(make_order):
    orders = [
        make_order("#1003", "2024-03-03T09:00:00Z"),
        make_order("#1001", "2024-03-01T09:00:00Z"),
        make_order("#1002", "2024-03-01T08:00:00Z"),
    ]
    sections = group_orders_by_date(orders, datetime.timezone.utc)

    assert [s["date"] for s in sections] == ["2024-03-01", "2024-03-03"]
    assert [o["name"] for o in sections[0]["orders"]] == ["#1002", "#1001"]


def test_grouping_honours_reporting_timezone(make_order):
    orders = [make_order("#1001", "2024-03-02T02:00:00Z")]
    sections = group_orders_by_date(orders, ZoneInfo("America/Chicago"))
    assert sections[0]["date"] == "2024-03-01"


def test_html_contains_order_details(make_order):
    order = make_order(
        "#1001",
        items=[{
            "title": "Mug",
            "variant_title": "Blue",
            "sku": "MUG-1",
            "quantity": 2,
            "unit_price": "12.5",
            "line_total": "25",
            "custom_attributes": [{"key": "Text", "value": "Hello"}, {"key": "Font", "value": "Serif"}],
        }],
    )
    html = PdfRenderer().render_html([order], CONTEXT)

    assert "Sales Detail Report" in html
    assert "demo.myshopify.com" in html
    assert "2024-03-01 to 2024-03-31" in html
    assert "Ada Lovelace (ada@example.com)" in html
    assert "PAID / UNFULFILLED" in html
    assert "USD 12.50" in html
    assert "USD 25.00" in html
    assert "Text: Hello\nFont: Serif" in html
    assert "white-space: pre-wrap" in html


def test_html_is_escaped(make_order):
    order = make_order("#1001", items=[{"title": "<script>alert(1)</script>"}])
    html = PdfRenderer().render_html([order], CONTEXT)
    assert "<script>alert(1)</script>" not in html
    assert "&lt;script&gt;" in html


def test_empty_report_html():
    html = PdfRenderer().render_html([], CONTEXT)
    assert "No orders in this date range." in html


class _FailingChromium:
    async def launch(self, **kwargs):
        raise PlaywrightError("Executable doesn't exist at /ms-playwright/chromium")


class _FakePlaywright:
    chromium = _FailingChromium()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


async def test_browser_failure_raises_pdf_render_error(monkeypatch, make_order):
    monkeypatch.setattr(pdf_module, "async_playwright", lambda: _FakePlaywright())
    renderer = PdfRenderer(datetime.timezone.utc)

    with pytest.raises(PdfRenderError, match="Executable doesn't exist"):
        await renderer.render([make_order("#1001")], CONTEXT)
