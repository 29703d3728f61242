"""
Invoicing Batch - Default Wiring
================================
Production composition: Django ORM stores, transaction.atomic as the unit
of work, the default PDF renderer and filesystem storage.
"""

from __future__ import annotations

from typing import Optional

from invoicing.batch.orchestrator import BatchOrchestrator
from invoicing.clock import Clock, SystemClock
from invoicing.config import InvoicingSettings, get_invoicing_settings
from invoicing.documents.pdf_renderer import InvoicePdfRenderer, Renderer
from invoicing.documents.storage import FileSystemStorage, Storage
from invoicing.invoices.assembler import InvoiceAssembler
from invoicing.invoices.persistence import DjangoDocumentPersistence, DocumentPersistence
from invoicing.numbering.allocator import NumberAllocator
from invoicing.organizations.directory import DjangoOrganizationDirectory
from invoicing.records.aggregator import RecordAggregator
from invoicing.records.completeness import CompletenessValidator
from invoicing.records.policies import PriceLookup, StatusPolicy
from invoicing.records.source import RecordSource
from invoicing.sequences.store import DjangoSequenceStore


def build_default_orchestrator(
    *,
    source: RecordSource,
    status_policy: StatusPolicy,
    price_lookup: Optional[PriceLookup] = None,
    renderer: Optional[Renderer] = None,
    storage: Optional[Storage] = None,
    persistence: Optional[DocumentPersistence] = None,
    settings: Optional[InvoicingSettings] = None,
    clock: Optional[Clock] = None,
) -> BatchOrchestrator:
    settings = settings or get_invoicing_settings()
    clock = clock or SystemClock()
    organizations = DjangoOrganizationDirectory(default_padding=settings.default_padding)
    return BatchOrchestrator(
        organizations=organizations,
        aggregator=RecordAggregator(
            source=source,
            status_policy=status_policy,
            fallback_price=settings.fallback_price,
            price_lookup=price_lookup,
        ),
        validator=CompletenessValidator(),
        allocator=NumberAllocator(
            store=DjangoSequenceStore(),
            organizations=organizations,
            clock=clock,
        ),
        assembler=InvoiceAssembler(),
        persistence=persistence or DjangoDocumentPersistence(),
        renderer=renderer or InvoicePdfRenderer(),
        storage=storage or FileSystemStorage(settings.document_storage_root),
        settings=settings,
        clock=clock,
    )
