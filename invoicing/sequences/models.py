"""
Invoicing Sequences - Counter Model
===================================
One row per (organization, document type), created lazily at zero.

RULES:
- last_issued is mutated ONLY through SequenceStore (atomic UPDATE)
- last_issued never decreases; a value once issued is never reused
"""

from __future__ import annotations

from django.db import models

from invoicing.numbering.models import DOCUMENT_TYPE_CHOICES


class SequenceCounter(models.Model):
    organization_id = models.BigIntegerField(
        help_text="Owner organization. Counters are tenant-scoped.",
    )
    document_type = models.CharField(
        max_length=20,
        choices=DOCUMENT_TYPE_CHOICES,
    )
    last_issued = models.PositiveBigIntegerField(
        default=0,
        help_text="Last raw sequence value handed out. 0 = nothing issued yet.",
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "invoicing_sequence_counters"
        ordering = ["organization_id", "document_type"]
        constraints = [
            models.UniqueConstraint(
                fields=("organization_id", "document_type"),
                name="uq_seq_org_doc_type",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.organization_id}/{self.document_type} @ {self.last_issued}"
