"""
Invoicing Invoices - Public API
===============================
ORM models live in invoicing.invoices.models and are imported lazily by
the Django persistence; importing this package does not need app loading.
"""

from invoicing.invoices.assembler import (
    InvoiceAssembler,
    compute_line_amounts,
    compute_totals,
    describe_item,
)
from invoicing.invoices.drafts import (
    InvoiceDraft,
    InvoiceLineDraft,
    InvoiceStatus,
    InvoiceTotals,
    LineAmounts,
    SavedInvoice,
    to_cents,
)
from invoicing.invoices.persistence import (
    DjangoDocumentPersistence,
    DocumentPersistence,
    InMemoryDocumentPersistence,
)
from invoicing.invoices.unit_of_work import InMemoryUnitOfWork, UnitOfWork

__all__ = [
    "InvoiceAssembler",
    "compute_line_amounts",
    "compute_totals",
    "describe_item",
    "InvoiceDraft",
    "InvoiceLineDraft",
    "InvoiceStatus",
    "InvoiceTotals",
    "LineAmounts",
    "SavedInvoice",
    "to_cents",
    "DocumentPersistence",
    "DjangoDocumentPersistence",
    "InMemoryDocumentPersistence",
    "InMemoryUnitOfWork",
    "UnitOfWork",
]
