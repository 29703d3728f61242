"""
Invoicing Sequences - Public API
================================
"""

from invoicing.sequences.store import (
    DjangoSequenceStore,
    InMemorySequenceStore,
    SequenceStore,
)

__all__ = [
    "SequenceStore",
    "DjangoSequenceStore",
    "InMemorySequenceStore",
]
