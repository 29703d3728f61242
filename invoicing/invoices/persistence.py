"""
Invoicing Invoices - DocumentPersistence
========================================
The write path for invoices and their lines.

Write flow:
    1. Invoice row and line rows in ONE transaction
    2. Any DatabaseError (IntegrityError included) -> PersistenceError,
       nothing written
    3. Document URL attached later, after commit, by a separate call

Two-level dedup:
    - exists_line_for_source_record() is the application check, run by the
      orchestrator before a number is allocated
    - the unique source_record_id column is the database backstop for a
      concurrent run that slipped past the check. Its violation raises
      SourceRecordConflict so the caller can re-run the application check.
"""

from __future__ import annotations

import logging
import threading
from typing import Protocol, Sequence

from django.db import DatabaseError, IntegrityError, transaction

from invoicing.errors import PersistenceError, SourceRecordConflict
from invoicing.invoices.drafts import InvoiceDraft, InvoiceLineDraft, SavedInvoice

logger = logging.getLogger("invoicing.persistence")


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------

class DocumentPersistence(Protocol):
    def save_invoice(
        self,
        invoice: InvoiceDraft,
        lines: Sequence[InvoiceLineDraft],
    ) -> int:
        """Write invoice + lines atomically and return the invoice id."""
        ...

    def exists_line_for_source_record(self, record_id: str) -> bool:
        ...

    def attach_document(self, invoice_id: int, url: str) -> None:
        ...


# ---------------------------------------------------------------------------
# Django ORM persistence
# ---------------------------------------------------------------------------

def _is_source_record_conflict(exc: IntegrityError) -> bool:
    return "source_record_id" in str(exc)


class DjangoDocumentPersistence:

    def save_invoice(
        self,
        invoice: InvoiceDraft,
        lines: Sequence[InvoiceLineDraft],
    ) -> int:
        from invoicing.invoices.models import Invoice, InvoiceLine

        if not lines:
            raise PersistenceError(f"Invoice {invoice.number} has no lines.")
        totals = invoice.totals
        try:
            with transaction.atomic():
                row = Invoice.objects.create(
                    organization_id=invoice.organization_id,
                    counterparty_id=invoice.counterparty.counterparty_id,
                    counterparty_name=invoice.counterparty.display_name,
                    number=invoice.number,
                    sequence_number=invoice.sequence_number,
                    issue_date=invoice.issue_date,
                    document_type=invoice.document_type.value,
                    base_amount=totals.base,
                    tax_amount=totals.tax,
                    withholding_amount=totals.withholding,
                    discount_amount=totals.discount,
                    total_amount=totals.total,
                    status=invoice.status,
                    notes=invoice.notes,
                    payment_method=invoice.payment_method,
                    payment_method_other=invoice.payment_method_other,
                )
                InvoiceLine.objects.bulk_create(
                    [
                        InvoiceLine(
                            invoice=row,
                            position=line.position,
                            description=line.description,
                            quantity=line.quantity,
                            unit_price=line.unit_price,
                            discount_percentage=line.discount_percentage,
                            tax_rate=line.tax_rate,
                            withholding_rate=line.withholding_rate,
                            line_amount=line.line_amount,
                            source_record_id=line.source_record_id,
                        )
                        for line in lines
                    ]
                )
        except IntegrityError as exc:
            logger.warning("Invoice %s rejected by the database: %s", invoice.number, exc)
            if _is_source_record_conflict(exc):
                raise SourceRecordConflict(
                    f"Invoice {invoice.number}: a record is already billed.", cause=exc
                ) from exc
            raise PersistenceError(
                f"Invoice {invoice.number} conflicts with an existing invoice.", cause=exc
            ) from exc
        except DatabaseError as exc:
            raise PersistenceError(
                f"Invoice {invoice.number} could not be saved: {exc}", cause=exc
            ) from exc
        logger.debug("Saved invoice %s (%d lines)", invoice.number, len(lines))
        return row.pk

    def exists_line_for_source_record(self, record_id: str) -> bool:
        from invoicing.invoices.models import InvoiceLine

        try:
            return InvoiceLine.objects.filter(source_record_id=record_id).exists()
        except DatabaseError as exc:
            raise PersistenceError(
                f"Could not check record {record_id}: {exc}", cause=exc
            ) from exc

    def attach_document(self, invoice_id: int, url: str) -> None:
        from invoicing.invoices.models import Invoice

        try:
            updated = Invoice.objects.filter(pk=invoice_id).update(document_url=url)
        except DatabaseError as exc:
            raise PersistenceError(
                f"Could not attach document to invoice {invoice_id}: {exc}", cause=exc
            ) from exc
        if updated != 1:
            raise PersistenceError(f"Invoice {invoice_id} not found.")


# ---------------------------------------------------------------------------
# InMemory persistence (used in tests)
# ---------------------------------------------------------------------------

class InMemoryDocumentPersistence:
    """
    Enforces the same uniqueness rules as the database:
    (organization, document type, number) and source_record_id.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._next_id = 1
        self._invoices: dict[int, SavedInvoice] = {}
        self._source_records: dict[str, int] = {}

    def save_invoice(
        self,
        invoice: InvoiceDraft,
        lines: Sequence[InvoiceLineDraft],
    ) -> int:
        if not lines:
            raise PersistenceError(f"Invoice {invoice.number} has no lines.")
        with self._lock:
            key = (invoice.organization_id, invoice.document_type, invoice.number)
            for saved in self._invoices.values():
                existing = saved.draft
                if (existing.organization_id, existing.document_type, existing.number) == key:
                    raise PersistenceError(
                        f"Invoice {invoice.number} conflicts with an existing invoice."
                    )
            record_ids = [line.source_record_id for line in lines if line.source_record_id]
            if len(set(record_ids)) != len(record_ids):
                raise PersistenceError(f"Invoice {invoice.number} repeats a source record.")
            if any(r in self._source_records for r in record_ids):
                raise SourceRecordConflict(f"Invoice {invoice.number}: a record is already billed.")

            invoice_id = self._next_id
            self._next_id += 1
            self._invoices[invoice_id] = SavedInvoice(
                invoice_id=invoice_id, draft=invoice, lines=tuple(lines)
            )
            for record_id in record_ids:
                self._source_records[record_id] = invoice_id
            return invoice_id

    def exists_line_for_source_record(self, record_id: str) -> bool:
        with self._lock:
            return record_id in self._source_records

    def attach_document(self, invoice_id: int, url: str) -> None:
        with self._lock:
            saved = self._invoices.get(invoice_id)
            if saved is None:
                raise PersistenceError(f"Invoice {invoice_id} not found.")
            self._invoices[invoice_id] = SavedInvoice(
                invoice_id=saved.invoice_id,
                draft=saved.draft,
                lines=saved.lines,
                document_url=url,
            )

    def get(self, invoice_id: int) -> SavedInvoice:
        with self._lock:
            return self._invoices[invoice_id]

    def all(self) -> list[SavedInvoice]:
        with self._lock:
            return [self._invoices[k] for k in sorted(self._invoices)]

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "next_id": self._next_id,
                "invoices": dict(self._invoices),
                "source_records": dict(self._source_records),
            }

    def restore(self, state: dict) -> None:
        with self._lock:
            self._next_id = state["next_id"]
            self._invoices = dict(state["invoices"])
            self._source_records = dict(state["source_records"])
