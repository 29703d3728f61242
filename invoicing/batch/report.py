"""
Invoicing Batch - GenerationReport
==================================
The single accumulating result of one batch run.

Doctrine:
- One report per run, threaded through the loop, returned once.
- errors: per-group failures ("{counterparty}: {message}") and records
  that could not be grouped. These are what "generation failed" counts.
- document_failures: render/store problems of invoices that DO exist.
  Never mixed into errors.
- not_selected: groups in the scope the operator left out of the run.
  Neither generated nor erred.
- Never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum
from typing import Any, Optional


class BatchPhase(str, Enum):
    VALIDATING = "validating"
    GENERATING = "generating"
    BUNDLING = "bundling"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass(frozen=True)
class BatchProgress:
    """Snapshot handed to the progress callback."""

    phase: BatchPhase
    current: int
    total: int
    message: str
    current_counterparty: Optional[str] = None


@dataclass(frozen=True)
class GeneratedInvoice:
    invoice_id: int
    number: str
    sequence_number: int
    counterparty_id: int
    counterparty_name: str
    total: Decimal
    line_count: int
    document_url: Optional[str] = None


@dataclass(frozen=True)
class IneligibleGroup:
    counterparty_id: int
    counterparty_name: str
    missing_fields: tuple[str, ...]
    record_count: int


@dataclass(frozen=True)
class DocumentFailure:
    invoice_id: int
    number: str
    counterparty_name: str
    message: str


@dataclass
class GenerationReport:
    organization_id: int
    document_type: str
    phase: BatchPhase = BatchPhase.VALIDATING
    total_groups: int = 0
    eligible: int = 0
    skipped: int = 0
    already_billed_records: int = 0
    already_invoiced_groups: int = 0
    not_selected: int = 0
    nothing_to_do: bool = False
    cancelled: bool = False
    errors: list[str] = field(default_factory=list)
    ineligible: list[IneligibleGroup] = field(default_factory=list)
    document_failures: list[DocumentFailure] = field(default_factory=list)
    invoices: list[GeneratedInvoice] = field(default_factory=list)
    bundle: Optional[bytes] = None

    @property
    def generated(self) -> int:
        return len(self.invoices)

    # -- accumulation --------------------------------------------------------

    def add_error(self, counterparty_name: str, message: str) -> None:
        self.errors.append(f"{counterparty_name}: {message}")

    def add_skipped_record(self, message: str) -> None:
        self.errors.append(message)
        self.skipped += 1

    def add_ineligible(self, group: IneligibleGroup) -> None:
        self.ineligible.append(group)
        self.skipped += 1

    def add_invoice(self, invoice: GeneratedInvoice) -> None:
        self.invoices.append(invoice)

    def set_document_url(self, invoice_id: int, url: str) -> None:
        for index, invoice in enumerate(self.invoices):
            if invoice.invoice_id == invoice_id:
                self.invoices[index] = replace(invoice, document_url=url)
                return
        raise KeyError(invoice_id)

    def add_document_failure(self, failure: DocumentFailure) -> None:
        self.document_failures.append(failure)

    def fail(self, message: str) -> None:
        self.errors.append(message)
        self.phase = BatchPhase.ERROR

    def to_dict(self) -> dict[str, Any]:
        return {
            "organization_id": self.organization_id,
            "document_type": self.document_type,
            "phase": self.phase.value,
            "total_groups": self.total_groups,
            "eligible": self.eligible,
            "generated": self.generated,
            "skipped": self.skipped,
            "already_billed_records": self.already_billed_records,
            "already_invoiced_groups": self.already_invoiced_groups,
            "not_selected": self.not_selected,
            "nothing_to_do": self.nothing_to_do,
            "cancelled": self.cancelled,
            "errors": list(self.errors),
            "ineligible": [
                {
                    "counterparty_id": g.counterparty_id,
                    "counterparty_name": g.counterparty_name,
                    "missing_fields": list(g.missing_fields),
                }
                for g in self.ineligible
            ],
            "document_failures": [
                {"number": f.number, "message": f.message} for f in self.document_failures
            ],
            "invoices": [
                {
                    "invoice_id": i.invoice_id,
                    "number": i.number,
                    "counterparty_name": i.counterparty_name,
                    "total": str(i.total),
                    "document_url": i.document_url,
                }
                for i in self.invoices
            ],
            "has_bundle": self.bundle is not None,
        }
