"""
Invoicing Organizations - Organization Model
============================================
Issuer identity plus numbering configuration.

The last_*_number fields are the organization's EXPOSED bookkeeping of
issued numbers (what operators see in settings screens). The authoritative
counters live in invoicing.sequences; bookkeeping only ever moves upwards.
"""

from __future__ import annotations

from django.db import models


class Organization(models.Model):
    name = models.CharField(max_length=255)
    tax_id = models.CharField(max_length=32, blank=True, default="")
    address = models.CharField(max_length=255, blank=True, default="")
    postal_code = models.CharField(max_length=16, blank=True, default="")
    city = models.CharField(max_length=120, blank=True, default="")
    invoice_prefix = models.CharField(
        max_length=20,
        blank=True,
        default="",
        help_text="Prefix of normal invoice numbers (e.g. FACT).",
    )
    invoice_padding_length = models.PositiveSmallIntegerField(
        default=4,
        help_text="Zero-padding width of the numeric part.",
    )
    last_invoice_number = models.PositiveBigIntegerField(default=0)
    last_rectificative_invoice_number = models.PositiveBigIntegerField(default=0)
    last_simplified_invoice_number = models.PositiveBigIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "invoicing_organizations"
        ordering = ["id"]

    def __str__(self) -> str:
        return f"{self.name} ({self.pk})"
