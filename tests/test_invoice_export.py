"""Tests for invoice PDF export."""

import re
from datetime import date, datetime
from decimal import Decimal

from src.models.studio import Client, Project
from src.services.export import (
    INVOICE_COLUMNS,
    InvoicePdfExporter,
    invoice_filename,
    invoice_rows,
    pdf_currency,
)


CLIENT = Client(id=1, name="Acme Weddings", email="hi@acme.in", phone="98450 11111")

PROJECTS = [
    Project(
        id=10, client_id=1, name="Wedding film", type="Film",
        cost=Decimal("10000"), advance=Decimal("2500.50"),
        payment_status="partial", work_status="editing",
        deadline=date(2024, 7, 1),
    ),
    Project(
        id=11, client_id=1, name="Reel",
        cost=Decimal("1200"), payment_status="paid", work_status="delivered",
    ),
]


class TestInvoiceRows:

    def test_row_per_project_in_column_order(self):
        rows = invoice_rows(PROJECTS)
        assert len(INVOICE_COLUMNS) == 9
        assert rows[0] == [
            "Wedding film", "Film", "10000", "2500.5", "2500.5", "7499.5",
            "editing", "partial", "2024-07-01",
        ]

    def test_missing_type_and_deadline_are_blank(self):
        row = invoice_rows(PROJECTS)[1]
        assert row[1] == ""
        assert row[8] == ""
        assert row[4] == "1200"
        assert row[5] == "0"


class TestInvoiceFilename:

    def test_slugified(self):
        assert invoice_filename("Acme & Sons Ltd.") == "acme_sons_ltd_invoice.pdf"

    def test_empty_name_falls_back(self):
        assert invoice_filename("") == "client_invoice.pdf"
        assert invoice_filename("!!!") == "client_invoice.pdf"


class TestInvoicePdfExporter:

    def setup_method(self):
        self.exporter = InvoicePdfExporter(
            studio_name="Test Studio",
            subtitle="Video production",
            currency_symbol="Rs.",
        )

    def test_renders_pdf(self):
        pdf = self.exporter.render(CLIENT, PROJECTS, generated_at=datetime(2024, 6, 10, 9, 30))
        assert pdf.startswith(b"%PDF")
        assert len(pdf) > 1000

    def test_renders_with_no_projects(self):
        pdf = self.exporter.render(Client(id=2, name="Empty"), [])
        assert pdf.startswith(b"%PDF")

    def test_long_project_list_spans_pages(self):
        many = [
            Project(client_id=1, name=f"Reel {i}", cost=Decimal("100"))
            for i in range(120)
        ]
        short = self.exporter.render(CLIENT, many[:2])
        long = self.exporter.render(CLIENT, many)
        page_counts = [int(n) for n in re.findall(rb"/Count (\d+)", long)]
        assert max(page_counts) >= 2
        assert len(long) > len(short)

    def test_rupee_symbol_is_spelled_out(self):
        exporter = InvoicePdfExporter(studio_name="Test Studio", currency_symbol="₹")
        assert exporter._money(Decimal("2500")) == "Rs.2500"
        pdf = exporter.render(CLIENT, PROJECTS)
        assert pdf.startswith(b"%PDF")


class TestPdfCurrency:
    """Tests for the currency text drawn in Helvetica."""

    def test_cp1252_symbols_pass_through(self):
        assert pdf_currency("$") == "$"
        assert pdf_currency("€") == "€"
        assert pdf_currency("Rs.") == "Rs."

    def test_symbols_without_a_glyph_are_replaced(self):
        assert pdf_currency("₹") == "Rs."
        assert pdf_currency("₩") == "KRW "

    def test_unknown_symbol_is_dropped(self):
        assert pdf_currency("₿") == ""
