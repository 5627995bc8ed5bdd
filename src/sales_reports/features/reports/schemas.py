"""Row and column schemas for the sales-detail report types."""

from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class ReportColumn(BaseModel):
    key: str = Field(..., description="Attribute name on the row model")
    title: str = Field(..., description="Header text written to CSV/XLSX")
    width: float = 15
    wrap: bool = False
    align: Optional[Literal["left", "center", "right"]] = None

    model_config = ConfigDict(frozen=True)


class ReportRow(BaseModel):
    model_config = ConfigDict(frozen=True, protected_namespaces=())

    is_subtotal: bool = Field(False, exclude=True, description="Bold totals row, not a data row")

    def cell(self, column: ReportColumn):
        return getattr(self, column.key)


class StandardRow(ReportRow):
    order_created_at: str
    order_date: str
    order_name: str
    order_id: str
    customer_name: str = ""
    customer_email: str = ""
    line_item_title: str = ""
    variant_title: str = ""
    sku: str = ""
    quantity: int = 0
    unit_price: str = "0.00"
    line_total: str = "0.00"
    currency: str = ""
    memo: str = ""
    line_item_id: str = ""


class QbRow(ReportRow):
    date: str = ""
    customer: str = ""
    num: str = ""
    product_service: str = ""
    qty: int = 0
    memo_description: str = ""
    sku: str = ""
    vendor: str = ""


class InternalVendorsRow(ReportRow):
    address: str = ""
    drop_ship: str = ""
    date: str = ""
    customer: str = ""
    num: str = ""
    memo_description: str = ""
    qty: int = 0
    product_service: str = ""
    spacer: str = ""
    vendor: str = ""


STANDARD_COLUMNS: Tuple[ReportColumn, ...] = (
    ReportColumn(key="order_created_at", title="Order Created At", width=22),
    ReportColumn(key="order_date", title="Order Date", width=12),
    ReportColumn(key="order_name", title="Order Name", width=12),
    ReportColumn(key="order_id", title="Order ID", width=30),
    ReportColumn(key="customer_name", title="Customer Name", width=25),
    ReportColumn(key="customer_email", title="Customer Email", width=30),
    ReportColumn(key="line_item_title", title="Line Item Title", width=30),
    ReportColumn(key="variant_title", title="Variant Title", width=20),
    ReportColumn(key="sku", title="SKU", width=15),
    ReportColumn(key="quantity", title="Quantity", width=10, align="right"),
    ReportColumn(key="unit_price", title="Unit Price", width=12, align="right"),
    ReportColumn(key="line_total", title="Line Total", width=12, align="right"),
    ReportColumn(key="currency", title="Currency", width=10),
    ReportColumn(key="memo", title="Memo", width=50, wrap=True),
    ReportColumn(key="line_item_id", title="Line Item ID", width=35),
)

QB_COLUMNS: Tuple[ReportColumn, ...] = (
    ReportColumn(key="date", title="Date", width=12),
    ReportColumn(key="customer", title="Customer", width=25),
    ReportColumn(key="num", title="Num", width=10, align="center"),
    ReportColumn(key="product_service", title="Product/Service", width=30),
    ReportColumn(key="qty", title="Qty", width=8, align="right"),
    ReportColumn(key="memo_description", title="Memo/Description", width=50, wrap=True),
    ReportColumn(key="sku", title="SKU", width=15),
    ReportColumn(key="vendor", title="Vendor", width=20),
)

INTERNAL_VENDORS_COLUMNS: Tuple[ReportColumn, ...] = (
    ReportColumn(key="address", title="ADDRESS", width=30, wrap=True),
    ReportColumn(key="drop_ship", title="DROP SHIP (Y or N)", width=15),
    ReportColumn(key="date", title="Date", width=12),
    ReportColumn(key="customer", title="Customer", width=25),
    ReportColumn(key="num", title="Num", width=10, align="center"),
    ReportColumn(key="memo_description", title="Memo/Description", width=30, wrap=True),
    ReportColumn(key="qty", title="Qty", width=8, align="right"),
    ReportColumn(key="product_service", title="Product/Service", width=50, wrap=True),
    ReportColumn(key="spacer", title="", width=10),
    ReportColumn(key="vendor", title="Vendor", width=20),
)
