"""Invoice export package."""

from src.services.export.invoice_pdf import (
    INVOICE_COLUMNS,
    InvoicePdfExporter,
    invoice_filename,
    invoice_rows,
    pdf_currency,
)

__all__ = [
    "INVOICE_COLUMNS",
    "InvoicePdfExporter",
    "invoice_filename",
    "invoice_rows",
    "pdf_currency",
]
