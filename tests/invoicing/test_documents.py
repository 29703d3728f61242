from __future__ import annotations

import io
import re
import zipfile
from datetime import date
from decimal import Decimal

import pytest

from invoicing.documents import (
    BundleEntry,
    FileSystemStorage,
    InMemoryStorage,
    InvoicePdfRenderer,
    build_document_bundle,
    bundle_entry_name,
)
from invoicing.errors import DocumentDeliveryError
from invoicing.invoices import InvoiceDraft, InvoiceLineDraft, compute_line_amounts, compute_totals
from invoicing.numbering import DocumentType
from invoicing.organizations import OrganizationProfile
from invoicing.records import Counterparty


def _invoice(number="FACT0001", notes="Client: Ana Moreno\n\nGenerated automatically", status="sent"):
    amounts = compute_line_amounts(Decimal("1"), Decimal("45.00"), Decimal("0"), Decimal("21"), Decimal("0"))
    lines = (
        InvoiceLineDraft(
            position=1,
            description="Physiotherapy - Dr. Ruiz (09:00-09:45)",
            quantity=Decimal("1"),
            unit_price=Decimal("45.00"),
            discount_percentage=Decimal("0"),
            tax_rate=Decimal("21"),
            withholding_rate=Decimal("0"),
            amounts=amounts,
            source_record_id="r1",
        ),
    )
    draft = InvoiceDraft(
        organization_id=1,
        issuer=OrganizationProfile(1, "Clinica Sol", "B12345678", "Gran Via 2", "28013", "Madrid"),
        counterparty=Counterparty(
            counterparty_id=1,
            legal_name="Ana Moreno",
            tax_id="00000001X",
            address="Calle Mayor 1",
            postal_code="28001",
            city="Madrid",
        ),
        number=number,
        sequence_number=1,
        issue_date=date(2024, 3, 15),
        document_type=DocumentType.NORMAL,
        totals=compute_totals(lines),
        status=status,
        payment_method="card",
        notes=notes,
    )
    return draft, lines


class TestInvoicePdfRenderer:
    def test_render_returns_pdf_bytes(self):
        pdf = InvoicePdfRenderer().render(*_invoice())
        assert pdf.startswith(b"%PDF-1.4")
        assert b"%%EOF" in pdf
        assert b"/Count 1" in pdf

    def test_render_is_deterministic(self):
        invoice, lines = _invoice()
        assert InvoicePdfRenderer().render(invoice, lines) == InvoicePdfRenderer().render(invoice, lines)

    def test_render_contains_number_and_totals(self):
        pdf = InvoicePdfRenderer().render(*_invoice())
        assert b"Normal invoice FACT0001" in pdf
        assert b"54.45 EUR" in pdf

    def test_parentheses_are_escaped(self):
        pdf = InvoicePdfRenderer().render(*_invoice(notes="Session (follow-up)"))
        assert b"Session \\(follow-up\\)" in pdf

    def test_long_descriptions_are_truncated_to_column(self):
        pdf = InvoicePdfRenderer().render(*_invoice())
        assert b"Physiotherapy - Dr. Ruiz \\(09:00..." in pdf

    def test_non_ascii_is_replaced(self):
        pdf = InvoicePdfRenderer().render(*_invoice(notes="Clínica"))
        assert b"Cl?nica" in pdf

    def test_long_notes_paginate(self):
        notes = "\n".join(f"Line {n}" for n in range(120))
        pdf = InvoicePdfRenderer().render(*_invoice(notes=notes))
        pages = int(re.search(rb"/Count (\d+)", pdf).group(1))
        assert pages > 1

    def test_unknown_status_is_rejected(self):
        with pytest.raises(ValueError, match="not an invoice status"):
            _invoice(status="archived")

    def test_render_requires_lines(self):
        invoice, _ = _invoice()
        with pytest.raises(ValueError, match="without lines"):
            InvoicePdfRenderer().render(invoice, ())


class TestFileSystemStorage:
    def test_store_writes_file_and_returns_file_uri(self, tmp_path):
        url = FileSystemStorage(tmp_path).store(b"%PDF-x", "1/invoice-FACT0001.pdf")
        assert (tmp_path / "1" / "invoice-FACT0001.pdf").read_bytes() == b"%PDF-x"
        assert url.startswith("file://")
        assert url.endswith("/1/invoice-FACT0001.pdf")

    def test_store_with_base_url(self, tmp_path):
        storage = FileSystemStorage(tmp_path, base_url="https://docs.example/")
        assert storage.store(b"x", "1/a.pdf") == "https://docs.example/1/a.pdf"

    def test_store_replaces_existing_blob(self, tmp_path):
        storage = FileSystemStorage(tmp_path)
        storage.store(b"old", "a.pdf")
        storage.store(b"new", "a.pdf")
        assert (tmp_path / "a.pdf").read_bytes() == b"new"
        assert [p.name for p in tmp_path.iterdir()] == ["a.pdf"]

    @pytest.mark.parametrize("name", ["../escape.pdf", "/etc/passwd", ""])
    def test_unsafe_names_are_rejected(self, tmp_path, name):
        with pytest.raises(DocumentDeliveryError, match="Unsafe"):
            FileSystemStorage(tmp_path).store(b"x", name)

    def test_os_error_becomes_delivery_error(self, tmp_path):
        blocker = tmp_path / "blocked"
        blocker.write_bytes(b"not a directory")
        with pytest.raises(DocumentDeliveryError, match="Could not store"):
            FileSystemStorage(blocker).store(b"x", "a.pdf")


class TestInMemoryStorage:
    def test_store_and_get(self):
        storage = InMemoryStorage(base_url="memory://x/")
        assert storage.store(b"abc", "1/a.pdf") == "memory://x/1/a.pdf"
        assert storage.get("1/a.pdf") == b"abc"
        assert storage.names == ["1/a.pdf"]


class TestBundle:
    def test_entry_name_is_cleaned_and_truncated(self):
        assert bundle_entry_name("FACT0001", "Ana Moreno") == "FACT0001_Ana_Moreno.pdf"
        assert bundle_entry_name("FACT0002", "O'Brien & Sons, S.L.") == "FACT0002_O_Brien_Sons_S_L.pdf"
        long_name = bundle_entry_name("F1", "A" * 50)
        assert long_name == "F1_" + "A" * 30 + ".pdf"

    def test_bundle_keeps_order_and_content(self):
        data = build_document_bundle(
            [
                BundleEntry("FACT0001", "Ana Moreno", b"pdf-1"),
                BundleEntry("FACT0002", "Bruno Diaz", b"pdf-2"),
            ]
        )
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            assert archive.namelist() == ["FACT0001_Ana_Moreno.pdf", "FACT0002_Bruno_Diaz.pdf"]
            assert archive.read("FACT0002_Bruno_Diaz.pdf") == b"pdf-2"

    def test_empty_bundle_is_rejected(self):
        with pytest.raises(ValueError, match="No documents"):
            build_document_bundle([])
