"""
Invoicing Documents - PDF Renderer
==================================
Default Renderer: a minimal, deterministic PDF 1.4 invoice.

Implementation: pure Python stdlib, Helvetica text (built-in PDF font).

Doctrine:
- Same invoice + lines -> same PDF bytes.
- All text is escaped for PDF string encoding; non-ASCII becomes '?'.
- Visual layout is deliberately plain. Anything richer plugs in through
  the Renderer protocol.
"""

from __future__ import annotations

import io
from decimal import Decimal
from typing import Protocol, Sequence

from invoicing.invoices.drafts import InvoiceDraft, InvoiceLineDraft


class Renderer(Protocol):
    def render(
        self,
        invoice: InvoiceDraft,
        lines: Sequence[InvoiceLineDraft],
    ) -> bytes:
        ...


# A4 in points
PAGE_SIZE = (595, 842)
LEFT, RIGHT = 50, 545
TOP, BOTTOM = 790, 50
ROW_HEIGHT = 16
VALUE_OFFSET = 120

_FONTS = (
    "<< /F1 << /Type /Font /Subtype /Type1 /BaseFont /Helvetica >> "
    "/F2 << /Type /Font /Subtype /Type1 /BaseFont /Helvetica-Bold >> >>"
)


def _escape(text: str) -> str:
    text = text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
    return "".join(c if ord(c) < 128 else "?" for c in text)


def _fit(text: str, width: float) -> str:
    # ~6pt per character at 10pt Helvetica
    limit = max(4, int(width / 6))
    return text if len(text) <= limit else text[: limit - 3] + "..."


def _money(value: Decimal, currency: str) -> str:
    return f"{value:.2f} {currency}"


def _pct(value: Decimal) -> str:
    return f"{Decimal(value).normalize():f}%"


# ---------------------------------------------------------------------------
# Page writer
# ---------------------------------------------------------------------------

class _PdfWriter:
    """
    Positioned Helvetica text on A4 pages, paginated top to bottom.

    Pages are kept as lists of content operators until build(), which
    numbers the objects: 1 Catalog, 2 Pages, then one content stream and
    one page object per page.
    """

    def __init__(self):
        self._pages: list[list[str]] = [[]]
        self._y: float = TOP

    def _reserve(self, height: float) -> None:
        if self._y - height < BOTTOM:
            self._pages.append([])
            self._y = TOP

    def _text(self, x: float, text: str, *, bold: bool = False, size: int = 10) -> None:
        font = "/F2" if bold else "/F1"
        self._pages[-1].append(
            f"BT {font} {size} Tf {x:.2f} {self._y:.2f} Td ({_escape(text)}) Tj ET"
        )

    def heading(self, text: str, *, size: int = 13) -> None:
        self._reserve(28)
        self._y -= 6
        self._text(LEFT, text, bold=True, size=size)
        self._y -= 20

    def field(self, label: str, value: str) -> None:
        self._reserve(ROW_HEIGHT)
        self._text(LEFT, f"{label}:", bold=True)
        self._text(LEFT + VALUE_OFFSET, value)
        self._y -= ROW_HEIGHT

    def paragraph(self, text: str) -> None:
        self._reserve(ROW_HEIGHT)
        self._text(LEFT, text)
        self._y -= ROW_HEIGHT

    def columns(self, cells: Sequence[str], widths: Sequence[float], *, bold: bool = False) -> None:
        self._reserve(ROW_HEIGHT)
        x = float(LEFT)
        for text, width in zip(cells, widths):
            self._text(x, _fit(text, width), bold=bold)
            x += width
        self._y -= ROW_HEIGHT

    def rule(self, gap: float = 4) -> None:
        self._reserve(2 * gap)
        self._y -= gap
        self._pages[-1].append(f"{LEFT} {self._y:.2f} m {RIGHT} {self._y:.2f} l S")
        self._y -= gap

    def build(self) -> bytes:
        objects = ["<< /Type /Catalog /Pages 2 0 R >>", ""]
        kids = []
        for operators in self._pages:
            content = "\n".join(operators)
            objects.append(
                f"<< /Length {len(content.encode('latin-1'))} >>\n"
                f"stream\n{content}\nendstream"
            )
            objects.append(
                f"<< /Type /Page /Parent 2 0 R "
                f"/MediaBox [0 0 {PAGE_SIZE[0]} {PAGE_SIZE[1]}] "
                f"/Contents {len(objects)} 0 R /Resources << /Font {_FONTS} >> >>"
            )
            kids.append(f"{len(objects)} 0 R")
        objects[1] = f"<< /Type /Pages /Kids [{' '.join(kids)}] /Count {len(kids)} >>"

        out = io.BytesIO()
        out.write(b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n")
        offsets = []
        for number, body in enumerate(objects, start=1):
            offsets.append(out.tell())
            out.write(f"{number} 0 obj\n{body}\nendobj\n".encode("latin-1"))

        xref_at = out.tell()
        xref = [f"xref\n0 {len(objects) + 1}\n", "0000000000 65535 f \n"]
        xref.extend(f"{offset:010d} 00000 n \n" for offset in offsets)
        xref.append(
            f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\n"
            f"startxref\n{xref_at}\n%%EOF\n"
        )
        out.write("".join(xref).encode("latin-1"))
        return out.getvalue()


# ---------------------------------------------------------------------------
# Invoice renderer
# ---------------------------------------------------------------------------

_LINE_COLUMNS = ("Description", "Qty", "Unit price", "Disc.", "Tax", "W/h", "Amount")
_LINE_WIDTHS = (205.0, 35.0, 65.0, 40.0, 40.0, 40.0, 70.0)


class InvoicePdfRenderer:
    """
    Usage:
        pdf_bytes = InvoicePdfRenderer().render(invoice, lines)
    """

    def render(
        self,
        invoice: InvoiceDraft,
        lines: Sequence[InvoiceLineDraft],
    ) -> bytes:
        if not lines:
            raise ValueError("Cannot render an invoice without lines.")

        pdf = _PdfWriter()
        currency = invoice.currency
        issuer = invoice.issuer
        client = invoice.counterparty

        pdf.heading(f"{invoice.document_type.label} invoice {invoice.number}", size=16)
        pdf.rule()
        pdf.field("Issue date", invoice.issue_date.strftime("%d/%m/%Y"))
        pdf.field("Status", invoice.status)

        pdf.heading("Issuer")
        pdf.field("Name", issuer.name)
        pdf.field("Tax ID", issuer.tax_id)
        pdf.field("Address", f"{issuer.address}, {issuer.postal_code} {issuer.city}")

        pdf.heading("Client")
        pdf.field("Name", client.display_name)
        pdf.field("Tax ID", client.tax_id)
        pdf.field("Address", f"{client.address}, {client.postal_code} {client.city}")

        pdf.heading("Items")
        pdf.columns(_LINE_COLUMNS, _LINE_WIDTHS, bold=True)
        for line in lines:
            pdf.columns(
                (
                    line.description,
                    f"{line.quantity.normalize():f}",
                    _money(line.unit_price, currency),
                    _pct(line.discount_percentage),
                    _pct(line.tax_rate),
                    _pct(line.withholding_rate),
                    _money(line.line_amount, currency),
                ),
                _LINE_WIDTHS,
            )

        totals = invoice.totals
        pdf.heading("Totals")
        pdf.field("Discount", _money(totals.discount, currency))
        pdf.field("Base", _money(totals.base, currency))
        pdf.field("Tax", _money(totals.tax, currency))
        pdf.field("Withholding", _money(totals.withholding, currency))
        pdf.field("Total", _money(totals.total, currency))

        payment = invoice.payment_method
        if invoice.payment_method_other:
            payment = f"{payment} ({invoice.payment_method_other})"
        pdf.field("Payment method", payment)

        if invoice.notes:
            pdf.heading("Notes")
            for text in invoice.notes.splitlines():
                if text.strip():
                    pdf.paragraph(text)

        pdf.rule()
        pdf.paragraph(f"{issuer.name} | {invoice.number}")
        return pdf.build()
