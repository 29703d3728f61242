from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from invoicing.batch import BatchPhase, build_default_orchestrator
from invoicing.clock import FixedClock
from invoicing.documents import InMemoryStorage
from invoicing.errors import PersistenceError, SourceRecordConflict
from invoicing.invoices import DjangoDocumentPersistence, InvoiceAssembler, InvoiceDraft
from invoicing.invoices.models import Invoice, InvoiceLine
from invoicing.numbering import DocumentType
from invoicing.organizations import OrganizationProfile
from invoicing.organizations.models import Organization
from invoicing.records import (
    BILL_ALL_STATUSES,
    BillableItem,
    BillingScope,
    Counterparty,
    CounterpartyGroup,
    InMemoryRecordSource,
    SourceRecord,
)
from invoicing.sequences.models import SequenceCounter

pytestmark = pytest.mark.django_db(transaction=True)

DAY = date(2024, 3, 15)
CLOCK = FixedClock(datetime(2024, 3, 15, 20, 0, 0, tzinfo=timezone.utc))


def _organization() -> Organization:
    return Organization.objects.create(
        name="Clinica Sol",
        tax_id="B12345678",
        address="Gran Via 2",
        postal_code="28013",
        city="Madrid",
        invoice_prefix="FACT",
    )


def _client(cid: int, name: str) -> Counterparty:
    return Counterparty(
        counterparty_id=cid,
        legal_name=name,
        tax_id=f"0000000{cid}X",
        address="Calle Mayor 1",
        postal_code="28001",
        city="Madrid",
    )


def _record(org_id: int, record_id: str, client, hour: int = 9) -> SourceRecord:
    return SourceRecord(
        record_id=record_id,
        organization_id=org_id,
        occurred_at=datetime(2024, 3, 15, hour, 0, tzinfo=timezone.utc),
        status="completed",
        counterparty=client,
        service_name="Physiotherapy",
        service_price=Decimal("45.00"),
        tax_rate=Decimal("21"),
        withholding_rate=Decimal("15"),
    )


def _draft(org: Organization, client: Counterparty, number: str, raw: int, totals) -> InvoiceDraft:
    return InvoiceDraft(
        organization_id=org.pk,
        issuer=OrganizationProfile(org.pk, org.name),
        counterparty=client,
        number=number,
        sequence_number=raw,
        issue_date=DAY,
        document_type=DocumentType.NORMAL,
        totals=totals,
        status="sent",
        payment_method="card",
    )


def _assembled(org: Organization, client: Counterparty, *record_ids: str):
    group = CounterpartyGroup(
        counterparty=client,
        items=tuple(
            BillableItem(record=_record(org.pk, rid, client), unit_price=Decimal("45.00"))
            for rid in record_ids
        ),
    )
    return InvoiceAssembler().assemble(group)


# ---------------------------------------------------------------------------
# DjangoDocumentPersistence
# ---------------------------------------------------------------------------

def test_save_invoice_writes_invoice_and_lines() -> None:
    org = _organization()
    client = _client(1, "Ana Moreno")
    lines, totals = _assembled(org, client, "r1", "r2")
    persistence = DjangoDocumentPersistence()

    invoice_id = persistence.save_invoice(_draft(org, client, "FACT0001", 1, totals), lines)

    invoice = Invoice.objects.get(pk=invoice_id)
    assert invoice.number == "FACT0001"
    assert invoice.counterparty_name == "Ana Moreno"
    assert invoice.base_amount == Decimal("90.00")
    assert invoice.tax_amount == Decimal("18.90")
    assert invoice.withholding_amount == Decimal("13.50")
    assert invoice.total_amount == Decimal("95.40")
    assert list(invoice.lines.values_list("source_record_id", flat=True)) == ["r1", "r2"]
    assert persistence.exists_line_for_source_record("r1")
    assert not persistence.exists_line_for_source_record("r3")


def test_already_billed_record_rolls_back_whole_invoice() -> None:
    org = _organization()
    client = _client(1, "Ana Moreno")
    persistence = DjangoDocumentPersistence()
    lines, totals = _assembled(org, client, "r1")
    persistence.save_invoice(_draft(org, client, "FACT0001", 1, totals), lines)

    lines, totals = _assembled(org, client, "r2", "r1")
    with pytest.raises(SourceRecordConflict, match="already billed"):
        persistence.save_invoice(_draft(org, client, "FACT0002", 2, totals), lines)

    assert Invoice.objects.count() == 1
    assert not InvoiceLine.objects.filter(source_record_id="r2").exists()


def test_duplicate_number_is_rejected() -> None:
    org = _organization()
    client = _client(1, "Ana Moreno")
    persistence = DjangoDocumentPersistence()
    lines, totals = _assembled(org, client, "r1")
    persistence.save_invoice(_draft(org, client, "FACT0001", 1, totals), lines)

    lines, totals = _assembled(org, client, "r2")
    with pytest.raises(PersistenceError, match="conflicts"):
        persistence.save_invoice(_draft(org, client, "FACT0001", 1, totals), lines)


def test_attach_document() -> None:
    org = _organization()
    client = _client(1, "Ana Moreno")
    persistence = DjangoDocumentPersistence()
    lines, totals = _assembled(org, client, "r1")
    invoice_id = persistence.save_invoice(_draft(org, client, "FACT0001", 1, totals), lines)

    persistence.attach_document(invoice_id, "https://docs.example/1/invoice-FACT0001.pdf")
    assert Invoice.objects.get(pk=invoice_id).document_url.endswith("invoice-FACT0001.pdf")

    with pytest.raises(PersistenceError, match="not found"):
        persistence.attach_document(invoice_id + 100, "https://docs.example/x.pdf")


# ---------------------------------------------------------------------------
# Full batch on the ORM stack
# ---------------------------------------------------------------------------

class FailingDjangoPersistence(DjangoDocumentPersistence):
    def __init__(self, fail_for: int):
        self.fail_for = fail_for

    def save_invoice(self, invoice, lines):
        if invoice.counterparty.counterparty_id == self.fail_for:
            raise PersistenceError("database unavailable")
        return super().save_invoice(invoice, lines)


def _orchestrator(records, persistence=None):
    return build_default_orchestrator(
        source=InMemoryRecordSource(records),
        status_policy=BILL_ALL_STATUSES,
        storage=InMemoryStorage(),
        persistence=persistence,
        clock=CLOCK,
    )


def test_batch_run_is_idempotent_on_the_orm() -> None:
    org = _organization()
    ana, bruno = _client(1, "Ana Moreno"), _client(2, "Bruno Diaz")
    records = [_record(org.pk, "r1", ana), _record(org.pk, "r2", bruno, 10)]
    orchestrator = _orchestrator(records)
    scope = BillingScope.for_day(org.pk, DAY)

    first = orchestrator.run(scope)
    second = orchestrator.run(scope)

    assert first.phase is BatchPhase.COMPLETED
    assert [i.number for i in first.invoices] == ["FACT0001", "FACT0002"]
    assert second.generated == 0
    assert second.already_billed_records == 2
    assert Invoice.objects.count() == 2
    assert InvoiceLine.objects.count() == 2
    assert all(i.document_url for i in Invoice.objects.all())

    org.refresh_from_db()
    assert org.last_invoice_number == 2


def test_failed_persist_leaves_no_gap_on_the_orm() -> None:
    org = _organization()
    clients = [_client(1, "Ana Moreno"), _client(2, "Bruno Diaz"), _client(3, "Carla Ruiz")]
    records = [_record(org.pk, f"r{c.counterparty_id}", c) for c in clients]
    orchestrator = _orchestrator(records, persistence=FailingDjangoPersistence(fail_for=2))

    report = orchestrator.run(BillingScope.for_day(org.pk, DAY))

    assert report.generated == 2
    assert report.errors == ["Bruno Diaz: database unavailable"]
    assert list(Invoice.objects.order_by("sequence_number").values_list("number", flat=True)) == [
        "FACT0001",
        "FACT0002",
    ]
    counter = SequenceCounter.objects.get(organization_id=org.pk, document_type="normal")
    assert counter.last_issued == 2


def test_missing_organization_on_the_orm() -> None:
    orchestrator = build_default_orchestrator(
        source=InMemoryRecordSource(),
        status_policy=BILL_ALL_STATUSES,
        storage=InMemoryStorage(),
        clock=CLOCK,
    )
    report = orchestrator.run(BillingScope.for_day(424242, DAY))
    assert report.phase is BatchPhase.ERROR
    assert report.errors == ["Organization 424242 not found."]
    assert not SequenceCounter.objects.exists()
