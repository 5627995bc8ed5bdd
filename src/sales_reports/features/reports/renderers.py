"""CSV and XLSX rendering of formatted report rows. Both return bytes."""
import csv
import io
import logging
from typing import Sequence

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from .schemas import ReportColumn, ReportRow

logger = logging.getLogger(__name__)

HEADER_FILL = PatternFill(fill_type="solid", start_color="FFE0E0E0", end_color="FFE0E0E0")
SUBTOTAL_FILL = PatternFill(fill_type="solid", start_color="FFF0F0F0", end_color="FFF0F0F0")
BOLD = Font(bold=True)
LINE_HEIGHT = 15


def _text(value) -> str:
    return "" if value is None else str(value)


def render_csv(rows: Sequence[ReportRow], columns: Sequence[ReportColumn]) -> bytes:
    """Header of column titles, then one record per row. UTF-8, no BOM."""
    out = io.StringIO(newline="")
    writer = csv.writer(out, quoting=csv.QUOTE_MINIMAL)
    writer.writerow([column.title for column in columns])
    for row in rows:
        writer.writerow([_text(row.cell(column)) for column in columns])
    return out.getvalue().encode("utf-8")


def _sheet_value(value):
    """Drops control characters openpyxl refuses to write."""
    if isinstance(value, str):
        return ILLEGAL_CHARACTERS_RE.sub("", value)
    return value


def _row_height(values: Sequence, columns: Sequence[ReportColumn]) -> int:
    lines = [
        _text(value).count("\n") + 1
        for value, column in zip(values, columns)
        if column.wrap
    ]
    return max(LINE_HEIGHT, LINE_HEIGHT * max(lines, default=1))


def render_xlsx(rows: Sequence[ReportRow], columns: Sequence[ReportColumn], sheet_title: str) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_title

    for col_idx, column in enumerate(columns, start=1):
        ws.column_dimensions[get_column_letter(col_idx)].width = column.width
        cell = ws.cell(row=1, column=col_idx, value=column.title)
        cell.font = BOLD
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(vertical="center", horizontal="center")
    ws.row_dimensions[1].height = _row_height([c.title for c in columns], columns)

    for row_idx, row in enumerate(rows, start=2):
        values = [_sheet_value(row.cell(column)) for column in columns]
        for col_idx, (column, value) in enumerate(zip(columns, values), start=1):
            cell = ws.cell(row=row_idx, column=col_idx, value=value)
            if isinstance(value, str):
                # storefront text is never a formula
                cell.data_type = "s"
            if column.wrap:
                cell.alignment = Alignment(wrap_text=True, vertical="top")
            else:
                cell.alignment = Alignment(vertical="top", horizontal=column.align)
            if row.is_subtotal:
                cell.font = BOLD
                cell.fill = SUBTOTAL_FILL
        ws.row_dimensions[row_idx].height = _row_height(values, columns)

    bio = io.BytesIO()
    wb.save(bio)
    logger.debug(f"Rendered {len(rows)} rows to sheet {sheet_title!r}")
    return bio.getvalue()
