"""
Report rendering.

Turns a ``PlannerState`` and its ``CapacitySummary`` into PDF, CSV or plain
text. Renderers only format figures that ``capacity.summarize`` already
computed.
"""

import csv
import io
from dataclasses import dataclass

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from runner_sizer.capacity import CapacitySummary, summarize
from runner_sizer.errors import ExportError
from runner_sizer.ip_math import format_ips
from runner_sizer.logger import get_logger
from runner_sizer.models import PlannerState

logger = get_logger(__name__)

REPORT_BASENAME = "capacity-planning"

CSV_COLUMNS = [
    "Record Type",
    "Name/Runner",
    "Region",
    "AZ",
    "Subnet/CIDR",
    "Available IPs",
    "Planned Users",
    "Capacity",
]


@dataclass(frozen=True)
class ReportFile:
    filename: str
    mime: str
    data: bytes


def _subnet_list(names: list[str]) -> str:
    return ", ".join(names) or "None"


# ------------------------------
# PDF
# ------------------------------

PDF_MARGIN = 56
PDF_COLUMN_WIDTH = 90
PDF_LINE = 16


class _PdfWriter:
    """Top-down text cursor over a reportlab canvas with automatic page breaks."""

    def __init__(self, buffer: io.BytesIO):
        self.canvas = canvas.Canvas(buffer, pagesize=A4)
        self.width, self.height = A4
        self.y = self.height - PDF_MARGIN

    def _advance(self, step: float) -> None:
        self.y -= step
        if self.y < PDF_MARGIN:
            self.canvas.showPage()
            self.y = self.height - PDF_MARGIN

    def heading(self, text: str, size: int = 14) -> None:
        self._advance(PDF_LINE / 2)
        self.canvas.setFont("Helvetica-Bold", size)
        self.canvas.drawString(PDF_MARGIN, self.y, text)
        self._advance(PDF_LINE + 4)

    def line(self, text: str) -> None:
        self.canvas.setFont("Helvetica", 11)
        self.canvas.drawString(PDF_MARGIN, self.y, text)
        self._advance(PDF_LINE)

    def row(self, cells: list[str], bold: bool = False) -> None:
        self.canvas.setFont("Helvetica-Bold" if bold else "Helvetica", 10)
        for index, cell in enumerate(cells):
            self.canvas.drawString(PDF_MARGIN + index * PDF_COLUMN_WIDTH, self.y, cell)
        self._advance(PDF_LINE)

    def save(self) -> None:
        self.canvas.showPage()
        self.canvas.save()


def render_pdf(state: PlannerState, summary: CapacitySummary) -> bytes:
    buffer = io.BytesIO()
    pdf = _PdfWriter(buffer)

    pdf.heading("Capacity Planning Summary", size=16)
    pdf.line(f"Total Users: {state.total_users}")
    pdf.line(f"Environments per User: {state.environments_per_user}")
    pdf.line(f"AZ Count: {state.az_count}")
    pdf.line(f"VPC Primary CIDR Block Size: /{state.subnet_size}")

    pdf.heading("Subnet Configuration")
    pdf.row(["Name", "Region", "AZ", "CIDR Size", "Available IPs"], bold=True)
    for subnet in state.subnets:
        pdf.row(
            [
                subnet.name,
                subnet.region,
                subnet.az_label,
                f"/{subnet.cidr_size}",
                format_ips(subnet.available_ips),
            ]
        )

    pdf.heading("Runner Configuration")
    pdf.row(["Runner", "Region", "Planned Users", "Subnets", "Capacity"], bold=True)
    for usage in summary.runner_usage:
        pdf.row(
            [
                usage.runner.name,
                usage.runner.region,
                str(usage.planned_utilization),
                _subnet_list(usage.subnet_names),
                format_ips(usage.runner.capacity),
            ]
        )

    pdf.heading("Capacity Summary")
    pdf.line(f"Planned Users: {format_ips(summary.total_planned_utilization)}")
    pdf.line(f"Total Capacity: {format_ips(summary.total_capacity)}")
    pdf.line(f"Utilization: {summary.utilization_percentage}%")

    pdf.save()
    return buffer.getvalue()


# ------------------------------
# CSV and text
# ------------------------------


def render_csv(state: PlannerState, summary: CapacitySummary) -> str:
    """One row per subnet, then one row per runner, over a shared column set."""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS, lineterminator="\n")
    writer.writeheader()

    for subnet in state.subnets:
        writer.writerow(
            {
                "Record Type": "Subnet",
                "Name/Runner": subnet.name,
                "Region": subnet.region,
                "AZ": subnet.az_label,
                "Subnet/CIDR": f"/{subnet.cidr_size}",
                "Available IPs": subnet.available_ips,
                "Planned Users": "",
                "Capacity": subnet.available_ips,
            }
        )

    for usage in summary.runner_usage:
        writer.writerow(
            {
                "Record Type": "Runner",
                "Name/Runner": usage.runner.name,
                "Region": usage.runner.region,
                "AZ": "",
                "Subnet/CIDR": _subnet_list(usage.subnet_names),
                "Available IPs": "",
                "Planned Users": usage.planned_utilization,
                "Capacity": usage.runner.capacity,
            }
        )

    return buffer.getvalue()


def render_text(state: PlannerState, summary: CapacitySummary) -> str:
    lines = [
        "Capacity Planning Summary",
        "",
        f"Total Users: {state.total_users}",
        f"Environments per User: {state.environments_per_user}",
        f"AZ Count: {state.az_count}",
        f"VPC Primary CIDR Block Size: /{state.subnet_size}",
        "",
        "Subnet Configuration:",
    ]
    for subnet in state.subnets:
        lines += [
            "",
            f"{subnet.name}:",
            f"  Region: {subnet.region}",
            f"  AZ: {subnet.az_label}",
            f"  CIDR Size: /{subnet.cidr_size}",
            f"  Available IPs: {format_ips(subnet.available_ips)}",
        ]

    lines += ["", "Runners:"]
    for usage in summary.runner_usage:
        lines += [
            "",
            f"{usage.runner.name}:",
            f"  Region: {usage.runner.region}",
            f"  Planned Users: {format_ips(usage.planned_utilization)}",
            f"  Subnets: {_subnet_list(usage.subnet_names)}",
            f"  Capacity: {format_ips(usage.runner.capacity)}",
        ]

    lines += [
        "",
        "Capacity Summary:",
        f"Planned Users: {format_ips(summary.total_planned_utilization)}",
        f"Total Capacity: {format_ips(summary.total_capacity)}",
        f"Utilization: {summary.utilization_percentage}%",
    ]
    return "\n".join(lines) + "\n"


# ------------------------------
# Export entry point
# ------------------------------

RENDERERS = {
    "pdf": ("application/pdf", render_pdf),
    "csv": ("text/csv", render_csv),
    "txt": ("text/plain", render_text),
}


def export_report(fmt: str, state: PlannerState) -> ReportFile:
    """
    Render ``state`` as ``fmt`` (pdf, csv or txt).

    Raises:
        ExportError: unknown format, or the renderer failed.
    """
    if fmt not in RENDERERS:
        raise ExportError("unknown format", fmt)

    mime, renderer = RENDERERS[fmt]
    try:
        rendered = renderer(state, summarize(state))
    except Exception as e:
        logger.exception(f"Failed to render {fmt} report: {e}")
        raise ExportError(str(e), fmt) from e

    data = rendered.encode("utf-8") if isinstance(rendered, str) else rendered
    return ReportFile(filename=f"{REPORT_BASENAME}.{fmt}", mime=mime, data=data)
