"""
Invoicing Numbering - Public API
================================
"""

from invoicing.numbering.allocator import NumberAllocator
from invoicing.numbering.models import (
    DOCUMENT_TYPE_CHOICES,
    Allocation,
    DocumentType,
    NumberingConfig,
    NumberingPreview,
    parse_document_type,
)

__all__ = [
    "NumberAllocator",
    "DocumentType",
    "DOCUMENT_TYPE_CHOICES",
    "NumberingConfig",
    "Allocation",
    "NumberingPreview",
    "parse_document_type",
]
