"""
Invoice-Style PDF Export

Renders one client's projects as an invoice-style summary:
a branded header, a "Bill to" block, the money totals, and a table
with one row per project.

The table rows come from invoice_rows(), which uses the same amounts()
derivation as the dashboard, so the PDF can never disagree with the
figures on screen.
"""

import re
from datetime import datetime
from decimal import Decimal
from io import BytesIO
from typing import Optional, Sequence

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.platypus import SimpleDocTemplate, Spacer, Table, TableStyle

from src.config import get_settings
from src.finance import aggregate, amounts
from src.models.studio import Client, Project
from src.queries import format_date


INVOICE_COLUMNS = [
    "Project",
    "Type",
    "Budget",
    "Advance",
    "Received",
    "Pending",
    "Work",
    "Payment",
    "Deadline",
]

HEADER_FILL = colors.Color(247 / 255, 240 / 255, 229 / 255)
INK_DARK = colors.Color(55 / 255, 35 / 255, 15 / 255)
INK_SOFT = colors.Color(90 / 255, 60 / 255, 25 / 255)

PAGE_WIDTH, PAGE_HEIGHT = A4
TABLE_START_Y = 70 * mm  # distance from the page top to the first table row
TOP_MARGIN = 14 * mm

# The built-in Helvetica only covers cp1252, so symbols outside it are spelled out.
PDF_CURRENCY_TEXT = {"₹": "Rs.", "₦": "NGN ", "₱": "PHP ", "₩": "KRW "}


def pdf_currency(symbol: str) -> str:
    """The currency symbol as the invoice PDF can draw it."""
    try:
        symbol.encode("cp1252")
    except UnicodeEncodeError:
        return PDF_CURRENCY_TEXT.get(symbol, "")
    return symbol


def _plain(value: Decimal) -> str:
    """1000 -> '1000', 1000.50 -> '1000.5'."""
    if value == value.to_integral_value():
        return str(int(value))
    return str(value.normalize())


def _status_text(value) -> str:
    if value is None:
        return ""
    return getattr(value, "value", str(value))


def invoice_rows(projects: Sequence[Project]) -> list[list[str]]:
    """Project rows for the invoice table, in INVOICE_COLUMNS order."""
    rows = []
    for project in projects:
        figures = amounts(project)
        rows.append([
            project.name,
            project.type or "",
            _plain(figures.cost),
            _plain(figures.advance),
            _plain(figures.received),
            _plain(figures.pending),
            _status_text(project.work_status),
            _status_text(project.payment_status),
            format_date(project.deadline) if project.deadline else "",
        ])
    return rows


def invoice_filename(client_name: Optional[str]) -> str:
    """
    A filesystem-safe file name for a client's invoice.

    "Acme & Sons Ltd." -> "acme_sons_ltd_invoice.pdf"
    """
    safe = re.sub(r"[^a-z0-9]+", "_", (client_name or "client").lower()).strip("_")
    return f"{safe or 'client'}_invoice.pdf"


class InvoicePdfExporter:
    """
    Builds invoice PDFs with ReportLab.

    The header blocks are drawn on the first page's canvas; the project
    table is a flowable, so ReportLab paginates it across as many pages
    as needed.
    """

    def __init__(
        self,
        studio_name: Optional[str] = None,
        subtitle: Optional[str] = None,
        currency_symbol: Optional[str] = None,
    ):
        studio = get_settings().studio
        self._studio_name = studio_name or studio.name
        self._subtitle = subtitle or studio.invoice_subtitle
        symbol = currency_symbol if currency_symbol is not None else studio.currency_symbol
        self._currency = pdf_currency(symbol)

    def _money(self, value: Decimal) -> str:
        return f"{self._currency}{value:.0f}"

    def render(
        self,
        client: Client,
        projects: Sequence[Project],
        generated_at: Optional[datetime] = None,
    ) -> bytes:
        """Render the invoice and return the PDF bytes."""
        generated_at = generated_at or datetime.now()
        totals = aggregate(projects)
        buffer = BytesIO()

        def draw_first_page(canvas, doc):
            canvas.saveState()
            top = PAGE_HEIGHT

            # Header band
            canvas.setFillColor(HEADER_FILL)
            canvas.rect(0, top - 35 * mm, PAGE_WIDTH, 35 * mm, stroke=0, fill=1)

            canvas.setFillColor(INK_DARK)
            canvas.setFont("Helvetica-Bold", 18)
            canvas.drawString(14 * mm, top - 16 * mm, self._studio_name)

            canvas.setFillColor(INK_SOFT)
            canvas.setFont("Helvetica", 11)
            canvas.drawString(14 * mm, top - 22 * mm, self._subtitle)
            canvas.setFont("Helvetica", 9)
            canvas.drawString(
                14 * mm, top - 28 * mm,
                f"Generated: {generated_at.strftime('%d %b %Y, %H:%M')}",
            )

            canvas.setFont("Helvetica-Bold", 14)
            canvas.drawString(150 * mm, top - 16 * mm, "INVOICE")
            canvas.setFont("Helvetica", 10)
            canvas.drawString(150 * mm, top - 22 * mm, f"Client ID: {client.id}")

            # Bill to
            canvas.setFillColor(INK_DARK)
            y = top - 42 * mm
            canvas.setFont("Helvetica-Bold", 12)
            canvas.drawString(14 * mm, y, "Bill to:")
            y -= 6 * mm
            canvas.setFont("Helvetica", 11)
            for line in (client.name or "-", client.email, client.phone):
                if line:
                    canvas.drawString(14 * mm, y, line)
                    y -= 5 * mm

            # Totals
            x = 130 * mm
            y = top - 42 * mm
            for label, value in (
                ("Total budget:", totals.total),
                ("Received:", totals.received),
                ("Pending:", totals.pending),
            ):
                canvas.drawString(x, y, label)
                canvas.drawString(x + 40 * mm, y, self._money(value))
                y -= 5 * mm

            canvas.restoreState()

        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=14 * mm,
            rightMargin=14 * mm,
            topMargin=TOP_MARGIN,
            bottomMargin=14 * mm,
            title=f"{client.name} invoice",
            author=self._studio_name,
        )

        table = Table(
            [INVOICE_COLUMNS] + invoice_rows(projects),
            repeatRows=1,
        )
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), INK_SOFT),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 8),
            ("ALIGN", (2, 1), (5, -1), "RIGHT"),
            ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, HEADER_FILL]),
            ("GRID", (0, 0), (-1, -1), 0.25, colors.lightgrey),
        ]))

        story = [Spacer(1, TABLE_START_Y - TOP_MARGIN), table]
        doc.build(story, onFirstPage=draw_first_page)
        return buffer.getvalue()
