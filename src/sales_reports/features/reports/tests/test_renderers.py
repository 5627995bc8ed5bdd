import csv
import datetime
import io

from openpyxl import load_workbook

from sales_reports.features.reports.formatters import (
    format_internal_vendors_rows,
    format_qb_rows,
    format_standard_rows,
)
from sales_reports.features.reports.renderers import render_csv, render_xlsx
from sales_reports.features.reports.schemas import (
    INTERNAL_VENDORS_COLUMNS,
    QB_COLUMNS,
    STANDARD_COLUMNS,
)

UTC = datetime.timezone.utc


def read_csv(data: bytes):
    return list(csv.reader(io.StringIO(data.decode("utf-8"), newline="")))


def test_empty_input_renders_header_only_csv():
    data = render_csv([], STANDARD_COLUMNS)
    assert not data.startswith(b"\xef\xbb\xbf")
    assert read_csv(data) == [[c.title for c in STANDARD_COLUMNS]]
    assert read_csv(data)[0][:3] == ["Order Created At", "Order Date", "Order Name"]


def test_csv_round_trip_preserves_multiline_and_quotes(make_order):
    order = make_order(
        "#1001",
        items=[{
            "title": 'Mug "Large", glazed',
            "custom_attributes": [
                {"key": "Text", "value": "Line one"},
                {"key": "Font", "value": "Serif, bold"},
            ],
        }],
    )
    rows = format_standard_rows([order], UTC)
    parsed = read_csv(render_csv(rows, STANDARD_COLUMNS))

    assert len(parsed) == 2
    record = dict(zip([c.title for c in STANDARD_COLUMNS], parsed[1]))
    assert record["Line Item Title"] == 'Mug "Large", glazed'
    assert record["Memo"] == "Text: Line one\nFont: Serif, bold"
    assert record["Quantity"] == "1"
    assert record["Unit Price"] == "10.00"


def test_internal_vendors_csv_header():
    header = read_csv(render_csv([], INTERNAL_VENDORS_COLUMNS))[0]
    assert header == [
        "ADDRESS", "DROP SHIP (Y or N)", "Date", "Customer", "Num",
        "Memo/Description", "Qty", "Product/Service", "", "Vendor",
    ]


def test_qb_xlsx_styling(make_order):
    orders = [
        make_order("#1001", "2024-03-01T10:00:00Z", items=[{
            "title": "Mug",
            "quantity": 2,
            "custom_attributes": [
                {"key": "a", "value": "1"},
                {"key": "b", "value": "2"},
                {"key": "c", "value": "3"},
            ],
        }]),
    ]
    rows = format_qb_rows(orders, UTC)
    wb = load_workbook(io.BytesIO(render_xlsx(rows, QB_COLUMNS, "QB Report")))
    ws = wb["QB Report"]

    assert [ws.cell(row=1, column=i).value for i in range(1, 9)] == [c.title for c in QB_COLUMNS]
    header = ws["A1"]
    assert header.font.bold
    assert header.fill.fgColor.rgb == "FFE0E0E0"
    assert header.alignment.horizontal == "center"
    assert ws.row_dimensions[1].height == 15

    # data row: memo has three lines
    assert ws["F2"].alignment.wrap_text
    assert ws["F2"].alignment.vertical == "top"
    assert ws["C2"].alignment.horizontal == "center"
    assert ws["E2"].alignment.horizontal == "right"
    assert ws.row_dimensions[2].height == 45

    # subtotal row
    assert ws["B3"].value == "Total orders for 03/01/2024"
    assert ws["E3"].value == 2
    assert ws["B3"].font.bold
    assert ws["B3"].fill.fgColor.rgb == "FFF0F0F0"
    assert not ws["B2"].font.bold

    assert ws.column_dimensions["F"].width == 50


def test_internal_vendors_xlsx_row_height_uses_tallest_wrap_cell(make_order):
    order = make_order(
        "#1001",
        shipping_address={"name": "Ada", "address1": "1 Main St", "city": "Springfield"},
        items=[{"title": "Mug", "sku": "MUG-1"}],
    )
    rows = format_internal_vendors_rows([order], UTC)
    ws = load_workbook(io.BytesIO(render_xlsx(rows, INTERNAL_VENDORS_COLUMNS, "Internal Vendors"))).active

    assert ws.title == "Internal Vendors"
    assert ws["A2"].value == "Ada\n1 Main St\nSpringfield"
    assert ws["H2"].value == "Mug\nSKU: MUG-1"
    assert ws.row_dimensions[2].height == 45
    assert ws.column_dimensions["A"].width == 30
    assert ws.column_dimensions["H"].width == 50


def test_xlsx_drops_control_characters_from_text(make_order):
    order = make_order("#1001", "2024-03-01T10:00:00Z", items=[{
        "title": "Card",
        "custom_attributes": [{"key": "text", "value": "Happy\x0bBirthday"}],
    }])
    rows = format_qb_rows([order], UTC)
    ws = load_workbook(io.BytesIO(render_xlsx(rows, QB_COLUMNS, "QB Report"))).active

    assert ws["F2"].value == "Text: HappyBirthday"
    # the CSV keeps the text untouched
    assert read_csv(render_csv(rows, QB_COLUMNS))[1][5] == "Text: Happy\x0bBirthday"


def test_xlsx_stores_leading_equals_as_text(make_order):
    formula = '=HYPERLINK("http://x","y")'
    order = make_order(
        "#1001",
        "2024-03-01T10:00:00Z",
        customer={"display_name": formula, "email": "x@example.com"},
        items=[{"title": "=1+1", "vendor": "Acme"}],
    )
    rows = format_qb_rows([order], UTC)
    ws = load_workbook(io.BytesIO(render_xlsx(rows, QB_COLUMNS, "QB Report"))).active

    assert ws["B2"].value == formula
    assert ws["B2"].data_type == "s"
    assert ws["D2"].value == "=1+1"
    assert ws["D2"].data_type == "s"
    assert ws["E2"].data_type == "n"
