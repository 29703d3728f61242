"""
Invoicing Invoices - Drafts
===========================
Immutable, framework-free shapes of an invoice before and after it is
written. The assembler produces them, persistence stores them and the
renderer prints them. None of them touches the ORM; InvoiceStatus is a
plain TextChoices enum shared with the Invoice model.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from django.db import models

from invoicing.numbering.models import DocumentType
from invoicing.organizations.directory import OrganizationProfile
from invoicing.records.models import Counterparty

CENT = Decimal("0.01")


class InvoiceStatus(models.TextChoices):
    DRAFT = "draft", "Draft"
    SENT = "sent", "Sent"
    PAID = "paid", "Paid"
    OVERDUE = "overdue", "Overdue"
    CANCELLED = "cancelled", "Cancelled"


def to_cents(value: Decimal) -> Decimal:
    """Round half-up to two decimals."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class LineAmounts:
    """Exact (unrounded) amounts of one line, in computation order."""

    subtotal: Decimal
    discount: Decimal
    base: Decimal
    tax: Decimal
    withholding: Decimal


@dataclass(frozen=True)
class InvoiceLineDraft:
    position: int
    description: str
    quantity: Decimal
    unit_price: Decimal
    discount_percentage: Decimal
    tax_rate: Decimal
    withholding_rate: Decimal
    amounts: LineAmounts
    source_record_id: Optional[str] = None

    def __post_init__(self):
        if self.position < 1:
            raise ValueError("position must be >= 1.")
        if self.quantity <= 0:
            raise ValueError("quantity must be > 0.")
        if self.unit_price < 0:
            raise ValueError("unit_price must not be negative.")

    @property
    def line_amount(self) -> Decimal:
        return to_cents(self.amounts.base)


@dataclass(frozen=True)
class InvoiceTotals:
    base: Decimal
    tax: Decimal
    withholding: Decimal
    discount: Decimal
    total: Decimal

    def __post_init__(self):
        if self.total != self.base + self.tax - self.withholding:
            raise ValueError("total must equal base + tax - withholding.")


@dataclass(frozen=True)
class InvoiceDraft:
    """
    Everything needed to write and print one invoice.

    number/sequence_number come from the NumberAllocator inside the unit
    of work; the rest is settled before allocation.
    """

    organization_id: int
    issuer: OrganizationProfile
    counterparty: Counterparty
    number: str
    sequence_number: int
    issue_date: date
    document_type: DocumentType
    totals: InvoiceTotals
    status: str
    payment_method: str
    payment_method_other: str = ""
    notes: str = ""
    currency: str = "EUR"

    def __post_init__(self):
        if not self.number:
            raise ValueError("number must be non-empty.")
        if self.sequence_number < 1:
            raise ValueError("sequence_number must be >= 1.")
        if self.status not in InvoiceStatus.values:
            raise ValueError(f"status '{self.status}' is not an invoice status.")


@dataclass(frozen=True)
class SavedInvoice:
    """Result of a successful write."""

    invoice_id: int
    draft: InvoiceDraft
    lines: tuple[InvoiceLineDraft, ...]
    document_url: str = ""
