"""
Invoicing Batch - BatchOrchestrator
===================================
Drives one batch run end to end and returns a GenerationReport.

Phases:
    validating -> generating -> [bundling] -> completed
    validating -> error          (organization, config or records unusable)

Per eligible (and, when counterparty_ids is given, selected) group,
sequential, stable order:
    1. Dedup: drop records already on an invoice line. Nothing left ->
       the group counts as already invoiced, no number is allocated.
    2. Resolve the payment method ("other" needs a detail).
    3. Assemble lines + totals.
    4. Unit of work: allocate number -> save invoice + lines -> bookkeeping.
       A failure anywhere rolls all three back; no gap is left. A
       DatabaseError from the transaction itself becomes PersistenceError.
    5. After commit, best effort: render -> store -> attach URL.
       Failures go to document_failures, never to errors.

Doctrine:
- The orchestrator is the ONLY component that turns a per-group error
  into a report entry. One bad counterparty never aborts the run.
- The only retry is after a source-record conflict with a concurrent
  run: dedup again, then issue the remainder. Re-running over the same
  scope is safe: the dedup check and the unique source_record_id column
  prevent double billing.
- No lock is held across rendering or storage.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Iterable, Optional

from django.db import DatabaseError, transaction

from invoicing.batch.cancellation import CancellationToken
from invoicing.batch.payment import PaymentInstruction, PaymentOverrides, resolve_payment
from invoicing.batch.report import (
    BatchPhase,
    BatchProgress,
    DocumentFailure,
    GeneratedInvoice,
    GenerationReport,
    IneligibleGroup,
)
from invoicing.clock import Clock, SystemClock
from invoicing.config import InvoicingSettings
from invoicing.documents.bundle import BundleEntry, build_document_bundle
from invoicing.documents.pdf_renderer import Renderer
from invoicing.documents.storage import Storage
from invoicing.errors import InvoicingError, PersistenceError, SourceRecordConflict
from invoicing.invoices.assembler import InvoiceAssembler
from invoicing.invoices.drafts import InvoiceDraft, SavedInvoice
from invoicing.invoices.persistence import DocumentPersistence
from invoicing.invoices.unit_of_work import UnitOfWork
from invoicing.numbering.allocator import NumberAllocator
from invoicing.numbering.models import DocumentType, parse_document_type
from invoicing.organizations.directory import OrganizationDirectory, OrganizationProfile
from invoicing.records.aggregator import RecordAggregator
from invoicing.records.completeness import CompletenessValidator
from invoicing.records.models import BillingScope, Counterparty, CounterpartyGroup

logger = logging.getLogger("invoicing.batch")

ProgressCallback = Callable[[BatchProgress], None]

CONFLICT_ATTEMPTS = 2


def _fmt_day(day: date) -> str:
    return day.strftime("%d/%m/%Y")


def build_notes(counterparty: Counterparty, scope: BillingScope) -> str:
    """Client data line, blank line, generation note."""
    location = " ".join(p for p in (counterparty.postal_code, counterparty.city) if p)
    address = ", ".join(p for p in (counterparty.address, location, counterparty.province) if p)
    client_line = (
        f"Client: {counterparty.display_name}, "
        f"Tax ID: {counterparty.tax_id}, "
        f"Address: {address}"
    )
    if scope.end_date and scope.end_date != scope.start_date:
        period = f"from {_fmt_day(scope.start_date)} to {_fmt_day(scope.end_date)}"
    else:
        period = f"on {_fmt_day(scope.start_date)}"
    return f"{client_line}\n\nInvoice generated automatically for services {period}"


class BatchOrchestrator:

    def __init__(
        self,
        *,
        organizations: OrganizationDirectory,
        aggregator: RecordAggregator,
        validator: CompletenessValidator,
        allocator: NumberAllocator,
        assembler: InvoiceAssembler,
        persistence: DocumentPersistence,
        renderer: Renderer,
        storage: Storage,
        unit_of_work: Optional[UnitOfWork] = None,
        settings: Optional[InvoicingSettings] = None,
        clock: Optional[Clock] = None,
    ):
        self._organizations = organizations
        self._aggregator = aggregator
        self._validator = validator
        self._allocator = allocator
        self._assembler = assembler
        self._persistence = persistence
        self._renderer = renderer
        self._storage = storage
        self._unit_of_work = unit_of_work or transaction.atomic
        self._settings = settings or InvoicingSettings()
        self._clock = clock or SystemClock()

    # ══════════════════════════════════════════════════════════════
    # RUN
    # ══════════════════════════════════════════════════════════════

    def run(
        self,
        scope: BillingScope,
        *,
        document_type: DocumentType | str = DocumentType.NORMAL,
        payment_methods: Optional[PaymentOverrides] = None,
        cancellation: Optional[CancellationToken] = None,
        progress: Optional[ProgressCallback] = None,
        bundle_documents: bool = False,
        counterparty_ids: Optional[Iterable[int]] = None,
    ) -> GenerationReport:
        """
        counterparty_ids restricts the run to the clients the operator picked.
        None bills every group in the scope; groups outside the selection are
        only counted in report.not_selected.
        """
        document_type = parse_document_type(document_type)
        organization_id = scope.organization_id
        report = GenerationReport(
            organization_id=organization_id,
            document_type=document_type.value,
        )
        started = self._clock.now_utc()
        logger.info(
            "Batch run started: organization=%s type=%s scope=%s..%s",
            organization_id, document_type.value, scope.start_date, scope.last_date,
        )
        self._emit(progress, BatchPhase.VALIDATING, 0, 0, "Validating client data")

        # -- validating ------------------------------------------------------
        try:
            issuer = self._organizations.get_profile(organization_id)
            self._organizations.get_numbering_config(organization_id)
            aggregation = self._aggregator.collect(scope)
        except InvoicingError as exc:
            report.fail(str(exc))
            logger.error("Batch run aborted for organization %s: %s", organization_id, exc)
            self._emit(progress, BatchPhase.ERROR, 0, 0, str(exc))
            return report

        for message in aggregation.skipped:
            report.add_skipped_record(message)
        report.total_groups = len(aggregation.groups)

        groups = aggregation.groups
        if counterparty_ids is not None:
            selected = set(counterparty_ids)
            groups = tuple(g for g in groups if g.counterparty.counterparty_id in selected)
            report.not_selected = len(aggregation.groups) - len(groups)

        if not groups:
            report.nothing_to_do = True
            return self._complete(report, progress, started)

        eligible, ineligible = self._validator.partition(groups)
        for group, missing in ineligible:
            report.add_ineligible(
                IneligibleGroup(
                    counterparty_id=group.counterparty.counterparty_id,
                    counterparty_name=group.counterparty.display_name,
                    missing_fields=missing,
                    record_count=len(group.items),
                )
            )
        report.eligible = len(eligible)

        # -- generating ------------------------------------------------------
        report.phase = BatchPhase.GENERATING
        self._emit(progress, BatchPhase.GENERATING, 0, len(eligible), "Generating invoices")
        rendered: list[BundleEntry] = []

        for index, group in enumerate(eligible, start=1):
            if cancellation is not None and cancellation.is_cancelled:
                report.cancelled = True
                logger.info(
                    "Batch run cancelled before group %d of %d: %s",
                    index, len(eligible), cancellation.reason,
                )
                break

            name = group.counterparty.display_name
            self._emit(
                progress,
                BatchPhase.GENERATING,
                index,
                len(eligible),
                f"Generating invoice {index} of {len(eligible)}",
                name,
            )
            try:
                saved = self._generate(
                    scope, issuer, group, document_type, payment_methods, report
                )
            except (InvoicingError, ValueError) as exc:
                report.add_error(name, str(exc))
                logger.warning("Invoice for %s failed: %s", name, exc)
                continue
            if saved is None:
                continue

            report.add_invoice(
                GeneratedInvoice(
                    invoice_id=saved.invoice_id,
                    number=saved.draft.number,
                    sequence_number=saved.draft.sequence_number,
                    counterparty_id=group.counterparty.counterparty_id,
                    counterparty_name=name,
                    total=saved.draft.totals.total,
                    line_count=len(saved.lines),
                )
            )
            pdf = self._deliver(saved, report)
            if pdf is not None:
                rendered.append(BundleEntry(number=saved.draft.number, client_name=name, pdf=pdf))

        # -- bundling --------------------------------------------------------
        if bundle_documents and rendered:
            report.phase = BatchPhase.BUNDLING
            self._emit(
                progress, BatchPhase.BUNDLING, len(rendered), len(rendered),
                f"Bundling {len(rendered)} documents",
            )
            report.bundle = build_document_bundle(rendered)

        return self._complete(report, progress, started)

    # ══════════════════════════════════════════════════════════════
    # ONE GROUP
    # ══════════════════════════════════════════════════════════════

    def _generate(
        self,
        scope: BillingScope,
        issuer: OrganizationProfile,
        group: CounterpartyGroup,
        document_type: DocumentType,
        payment_methods: Optional[PaymentOverrides],
        report: GenerationReport,
    ) -> Optional[SavedInvoice]:
        # A concurrent run can bill a record between the dedup check and the
        # insert. The unique column rejects it; dedup again and retry once.
        for attempt in range(1, CONFLICT_ATTEMPTS + 1):
            group = self._drop_billed(group, report)
            if group is None:
                return None
            try:
                return self._issue(scope, issuer, group, document_type, payment_methods)
            except SourceRecordConflict as exc:
                if attempt == CONFLICT_ATTEMPTS:
                    raise
                logger.info(
                    "%s: records billed concurrently, checking again (%s)",
                    group.counterparty.display_name, exc,
                )
        return None

    def _drop_billed(
        self,
        group: CounterpartyGroup,
        report: GenerationReport,
    ) -> Optional[CounterpartyGroup]:
        billed = [
            record_id for record_id in group.record_ids
            if self._persistence.exists_line_for_source_record(record_id)
        ]
        if not billed:
            return group
        report.already_billed_records += len(billed)
        group = group.without(billed)
        if not group.items:
            report.already_invoiced_groups += 1
            logger.debug("%s already invoiced", group.counterparty.display_name)
            return None
        return group

    def _issue(
        self,
        scope: BillingScope,
        issuer: OrganizationProfile,
        group: CounterpartyGroup,
        document_type: DocumentType,
        payment_methods: Optional[PaymentOverrides],
    ) -> SavedInvoice:
        payment: PaymentInstruction = resolve_payment(
            group.counterparty,
            default_method=self._settings.default_payment_method,
            overrides=payment_methods,
        )
        lines, totals = self._assembler.assemble(group)
        organization_id = scope.organization_id

        try:
            with self._unit_of_work():
                allocation = self._allocator.allocate(organization_id, document_type)
                draft = InvoiceDraft(
                    organization_id=organization_id,
                    issuer=issuer,
                    counterparty=group.counterparty,
                    number=allocation.formatted,
                    sequence_number=allocation.raw,
                    issue_date=scope.last_date,
                    document_type=document_type,
                    totals=totals,
                    status=self._settings.batch_invoice_status,
                    payment_method=payment.method,
                    payment_method_other=payment.other,
                    notes=build_notes(group.counterparty, scope),
                    currency=self._settings.currency,
                )
                invoice_id = self._persistence.save_invoice(draft, lines)
                self._organizations.record_last_number(
                    organization_id, document_type, allocation.raw
                )
        except DatabaseError as exc:
            # raised by the transaction itself: opening, savepoint or commit
            raise PersistenceError(
                f"Invoice could not be committed: {exc}", cause=exc
            ) from exc

        logger.info(
            "Invoice %s created for %s (%d lines, total %s)",
            draft.number, group.counterparty.display_name, len(lines), totals.total,
        )
        return SavedInvoice(invoice_id=invoice_id, draft=draft, lines=lines)

    def _deliver(self, saved: SavedInvoice, report: GenerationReport) -> Optional[bytes]:
        """Render, store, attach. Returns the PDF when rendering worked."""
        number = saved.draft.number
        name = saved.draft.counterparty.display_name
        try:
            pdf = self._renderer.render(saved.draft, saved.lines)
        except Exception as exc:
            logger.error("Rendering invoice %s failed", number, exc_info=True)
            report.add_document_failure(
                DocumentFailure(saved.invoice_id, number, name, f"render failed: {exc}")
            )
            return None

        document_name = (
            f"{saved.draft.organization_id}/{self._settings.document_name(number)}"
        )
        try:
            url = self._storage.store(pdf, document_name)
        except Exception as exc:
            logger.error("Storing invoice %s failed", number, exc_info=True)
            report.add_document_failure(
                DocumentFailure(saved.invoice_id, number, name, f"store failed: {exc}")
            )
            return pdf

        try:
            self._persistence.attach_document(saved.invoice_id, url)
        except Exception as exc:
            logger.error("Attaching %s to invoice %s failed", url, number, exc_info=True)
            report.add_document_failure(
                DocumentFailure(saved.invoice_id, number, name, f"attach failed: {exc}")
            )
            return pdf

        report.set_document_url(saved.invoice_id, url)
        return pdf

    # ══════════════════════════════════════════════════════════════
    # HELPERS
    # ══════════════════════════════════════════════════════════════

    def _complete(self, report, progress, started) -> GenerationReport:
        report.phase = BatchPhase.COMPLETED
        elapsed = (self._clock.now_utc() - started).total_seconds()
        logger.info(
            "Batch run finished: organization=%s generated=%d/%d errors=%d "
            "skipped=%d already_billed=%d cancelled=%s (%.2fs)",
            report.organization_id, report.generated, report.eligible,
            len(report.errors), report.skipped, report.already_billed_records,
            report.cancelled, elapsed,
        )
        if report.nothing_to_do:
            message = "Nothing to invoice"
        else:
            message = f"Generated {report.generated} of {report.eligible} invoices"
        self._emit(progress, BatchPhase.COMPLETED, report.generated, report.eligible, message)
        return report

    @staticmethod
    def _emit(
        progress: Optional[ProgressCallback],
        phase: BatchPhase,
        current: int,
        total: int,
        message: str,
        counterparty: Optional[str] = None,
    ) -> None:
        if progress is not None:
            progress(BatchProgress(phase, current, total, message, counterparty))
