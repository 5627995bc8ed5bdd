"""
Report type registry.

A ``ReportDefinition`` bundles everything that differs between report types:
how rows are formatted, which columns they have and which artifact formats
are produced. Callers look a definition up by ``ReportType`` and never branch
on the type themselves.
"""
import datetime
import enum
import logging
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Sequence, Tuple

from ..orders.schemas import Order, OrderQuery
from .formatters import format_internal_vendors_rows, format_qb_rows, format_standard_rows
from .pdf import PdfRenderer, ReportContext
from .renderers import render_csv, render_xlsx
from .schemas import (
    INTERNAL_VENDORS_COLUMNS,
    QB_COLUMNS,
    STANDARD_COLUMNS,
    ReportColumn,
    ReportRow,
)

if TYPE_CHECKING:
    from ..report_jobs.schemas import ReportJobParams

logger = logging.getLogger(__name__)


class ReportType(str, enum.Enum):
    STANDARD = "standard"
    QB = "qb"
    INTERNAL_VENDORS = "internal_vendors"


class ArtifactFormat(str, enum.Enum):
    CSV = "csv"
    XLSX = "xlsx"
    PDF = "pdf"

    @property
    def media_type(self) -> str:
        return {
            ArtifactFormat.CSV: "text/csv; charset=utf-8",
            ArtifactFormat.XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            ArtifactFormat.PDF: "application/pdf",
        }[self]


RowFormatter = Callable[[Sequence[Order], datetime.tzinfo], List[ReportRow]]


class ReportDefinition:
    def __init__(
        self,
        report_type: ReportType,
        format_rows: RowFormatter,
        columns: Tuple[ReportColumn, ...],
        formats: Tuple[ArtifactFormat, ...],
        sheet_title: Optional[str] = None,
    ):
        self.report_type = report_type
        self.format_rows = format_rows
        self.columns = columns
        self.formats = formats
        self.sheet_title = sheet_title

    def order_query(self, params: "ReportJobParams") -> OrderQuery:
        return OrderQuery(
            start_date=params.start_date,
            end_date=params.end_date,
            financial_status=list(params.financial_status),
            fulfillment_status=params.fulfillment_status,
        )

    async def render(
        self,
        orders: Sequence[Order],
        tz: datetime.tzinfo,
        context: ReportContext,
        pdf_renderer: PdfRenderer,
    ) -> Dict[ArtifactFormat, bytes]:
        """Formats the orders once and renders every format this type produces."""
        rows = self.format_rows(orders, tz)
        artifacts: Dict[ArtifactFormat, bytes] = {}
        for fmt in self.formats:
            if fmt is ArtifactFormat.CSV:
                artifacts[fmt] = render_csv(rows, self.columns)
            elif fmt is ArtifactFormat.XLSX:
                artifacts[fmt] = render_xlsx(rows, self.columns, self.sheet_title or self.report_type.value)
            elif fmt is ArtifactFormat.PDF:
                artifacts[fmt] = await pdf_renderer.render(orders, context)
        logger.info(
            f"{self.report_type.value} report: {len(rows)} rows rendered to "
            f"{', '.join(f.value for f in artifacts)}"
        )
        return artifacts


REPORT_DEFINITIONS: Dict[ReportType, ReportDefinition] = {
    ReportType.STANDARD: ReportDefinition(
        ReportType.STANDARD,
        format_standard_rows,
        STANDARD_COLUMNS,
        (ArtifactFormat.CSV, ArtifactFormat.PDF),
    ),
    ReportType.QB: ReportDefinition(
        ReportType.QB,
        format_qb_rows,
        QB_COLUMNS,
        (ArtifactFormat.CSV, ArtifactFormat.XLSX),
        sheet_title="QB Report",
    ),
    ReportType.INTERNAL_VENDORS: ReportDefinition(
        ReportType.INTERNAL_VENDORS,
        format_internal_vendors_rows,
        INTERNAL_VENDORS_COLUMNS,
        (ArtifactFormat.CSV, ArtifactFormat.XLSX),
        sheet_title="Internal Vendors",
    ),
}


def get_report_definition(report_type: ReportType) -> ReportDefinition:
    return REPORT_DEFINITIONS[ReportType(report_type)]
