"""
Invoicing Core
==============
Sequential document numbering and batch invoice generation for clinics.

Subpackages (leaf-first):
    sequences      durable per-organization, per-document-type counters
    organizations  numbering configuration + exposed "last number" bookkeeping
    numbering      NumberAllocator (atomic allocate, floor override, preview)
    records        source records, aggregation, completeness validation
    invoices       assembly, ORM models, transactional persistence
    documents      default PDF renderer, storage backends, ZIP bundle
    batch          BatchOrchestrator and its GenerationReport
"""
