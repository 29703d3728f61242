"""
Invoicing Numbering - Models
============================
Document types, per-organization numbering configuration and the
formatting rules that turn a raw counter value into a document number.

Doctrine:
- Same (config, document type, raw value, year) → same number.
- Formatting happens AFTER the atomic increment; it never reads a counter.
- The year is passed explicitly, never read from the system clock here.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


# ---------------------------------------------------------------------------
# Document types
# ---------------------------------------------------------------------------

class DocumentType(str, Enum):
    """Each type has its own counter and its own formatting rule."""

    NORMAL = "normal"
    RECTIFICATIVE = "rectificative"
    SIMPLIFIED = "simplified"

    @property
    def label(self) -> str:
        return self.value.title()


DOCUMENT_TYPE_CHOICES = tuple((item.value, item.label) for item in DocumentType)

RECTIFICATIVE_PREFIX = "REC"
SIMPLIFIED_PREFIX = "SIMP"

_DOCUMENT_TYPE_ALIASES = {
    "normal": DocumentType.NORMAL,
    "rectificative": DocumentType.RECTIFICATIVE,
    "rectificativa": DocumentType.RECTIFICATIVE,
    "simplified": DocumentType.SIMPLIFIED,
    "simplificada": DocumentType.SIMPLIFIED,
    "simple": DocumentType.SIMPLIFIED,
}


def parse_document_type(value: DocumentType | str) -> DocumentType:
    """
    Resolve a document type from its value or a known alias.

    Unknown values are rejected; there is no fallback to NORMAL.
    """
    if isinstance(value, DocumentType):
        return value
    if not isinstance(value, str):
        raise ValueError("document_type must be a string.")
    resolved = _DOCUMENT_TYPE_ALIASES.get(value.strip().lower())
    if resolved is None:
        raise ValueError(
            f"document_type '{value}' is not valid. "
            f"Must be one of: {sorted(_DOCUMENT_TYPE_ALIASES)}"
        )
    return resolved


# ---------------------------------------------------------------------------
# NumberingConfig
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NumberingConfig:
    """
    Numbering configuration of one organization.

    Fields:
        organization_id: owner of the counters
        prefix: prepended to NORMAL numbers (e.g. "FACT")
        padding: minimum digit width of the counter value (e.g. 4 → "0042")
    """
    organization_id: int
    prefix: str = ""
    padding: int = 4

    def __post_init__(self):
        if not isinstance(self.prefix, str):
            raise ValueError("prefix must be a string.")
        if not isinstance(self.padding, int) or self.padding < 1:
            raise ValueError("padding must be int >= 1.")

    def format_number(self, document_type: DocumentType, raw: int, *, year: int) -> str:
        """
        Format a document number from a raw counter value.

        normal        → {prefix}{raw padded}
        rectificative → REC{year}{raw padded}
        simplified    → SIMP{raw padded}
        """
        if not isinstance(raw, int) or raw < 1:
            raise ValueError("raw must be int >= 1.")
        padded = str(raw).zfill(self.padding)
        if document_type is DocumentType.RECTIFICATIVE:
            return f"{RECTIFICATIVE_PREFIX}{year}{padded}"
        if document_type is DocumentType.SIMPLIFIED:
            return f"{SIMPLIFIED_PREFIX}{padded}"
        return f"{self.prefix}{padded}"


# ---------------------------------------------------------------------------
# Allocation results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Allocation:
    document_type: DocumentType
    formatted: str
    raw: int


@dataclass(frozen=True)
class NumberingPreview:
    """Read-only view of a counter: what the next allocation would issue."""

    document_type: DocumentType
    prefix: str
    padding: int
    current: int
    next_number: str
