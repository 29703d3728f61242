"""
Invoicing Documents - Public API
================================
"""

from invoicing.documents.bundle import BundleEntry, build_document_bundle, bundle_entry_name
from invoicing.documents.pdf_renderer import InvoicePdfRenderer, Renderer
from invoicing.documents.storage import FileSystemStorage, InMemoryStorage, Storage

__all__ = [
    "Renderer",
    "InvoicePdfRenderer",
    "Storage",
    "FileSystemStorage",
    "InMemoryStorage",
    "BundleEntry",
    "build_document_bundle",
    "bundle_entry_name",
]
