"""
Invoicing Invoices - Persistent Models
======================================
Invoice + InvoiceLine rows.

RULES:
- Rows are written only through DocumentPersistence, invoice and lines in
  one transaction.
- (organization, document_type, number) is unique.
- source_record_id is unique across ALL lines: one billable record maps to
  at most one line. This is the database backstop of the dedup check.
- Status transitions and deletion happen outside this package.
"""

from __future__ import annotations

from django.db import models

from invoicing.invoices.drafts import InvoiceStatus
from invoicing.numbering.models import DOCUMENT_TYPE_CHOICES, DocumentType


class Invoice(models.Model):
    organization = models.ForeignKey(
        "invoicing_organizations.Organization",
        on_delete=models.PROTECT,
        related_name="invoices",
    )
    counterparty_id = models.BigIntegerField()
    counterparty_name = models.CharField(max_length=255)
    number = models.CharField(max_length=64)
    sequence_number = models.PositiveBigIntegerField(
        help_text="Raw counter value behind the formatted number.",
    )
    issue_date = models.DateField()
    document_type = models.CharField(
        max_length=20,
        choices=DOCUMENT_TYPE_CHOICES,
        default=DocumentType.NORMAL.value,
    )
    base_amount = models.DecimalField(max_digits=12, decimal_places=2)
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2)
    withholding_amount = models.DecimalField(max_digits=12, decimal_places=2)
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(
        max_length=20,
        choices=InvoiceStatus.choices,
        default=InvoiceStatus.SENT,
    )
    notes = models.TextField(blank=True, default="")
    payment_method = models.CharField(max_length=20)
    payment_method_other = models.CharField(max_length=255, blank=True, default="")
    document_url = models.CharField(max_length=500, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "invoicing_invoices"
        ordering = ["organization_id", "document_type", "sequence_number"]
        constraints = [
            models.UniqueConstraint(
                fields=("organization", "document_type", "number"),
                name="uq_invoice_org_type_number",
            ),
        ]
        indexes = [
            models.Index(fields=["organization", "issue_date"], name="idx_invoice_org_issue"),
        ]

    def __str__(self) -> str:
        return f"{self.number} ({self.status})"


class InvoiceLine(models.Model):
    invoice = models.ForeignKey(
        Invoice,
        on_delete=models.CASCADE,
        related_name="lines",
    )
    position = models.PositiveIntegerField()
    description = models.CharField(max_length=500)
    quantity = models.DecimalField(max_digits=10, decimal_places=2)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    discount_percentage = models.DecimalField(max_digits=5, decimal_places=2, default=0)
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=0)
    withholding_rate = models.DecimalField(max_digits=5, decimal_places=2, default=0)
    line_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Post-discount line base, rounded to cents.",
    )
    source_record_id = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        unique=True,
    )

    class Meta:
        db_table = "invoicing_invoice_lines"
        ordering = ["invoice_id", "position"]

    def __str__(self) -> str:
        return f"{self.invoice_id}#{self.position}"
