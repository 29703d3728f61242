"""
Invoicing Core - Errors
=======================
Error taxonomy shared by every invoicing component.

Propagation rules:
- Components raise; they never log-and-continue.
- BatchOrchestrator is the only place where a per-group error is
  converted into a report entry.
"""

from __future__ import annotations


class InvoicingError(Exception):
    """Base error for the invoicing core."""

    def __init__(self, message: str, *, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


# ══════════════════════════════════════════════════════════════
# CONFIGURATION (fatal to a whole batch run)
# ══════════════════════════════════════════════════════════════

class ConfigurationError(InvoicingError):
    """Organization or settings are missing or invalid."""


class OrganizationNotFound(ConfigurationError):

    def __init__(self, organization_id):
        self.organization_id = organization_id
        super().__init__(f"Organization {organization_id} not found.")


class RecordSourceError(InvoicingError):
    """Billable records or their prices could not be loaded for a scope."""


# ══════════════════════════════════════════════════════════════
# NUMBERING
# ══════════════════════════════════════════════════════════════

class SequenceStoreError(InvoicingError):
    """The counter store could not complete an atomic operation."""


class AllocationError(InvoicingError):
    """A document number could not be allocated for one invoice."""


class NumberingValidationError(InvoicingError, ValueError):
    """An administrative counter override was rejected."""


# ══════════════════════════════════════════════════════════════
# PER-GROUP FAILURES
# ══════════════════════════════════════════════════════════════

class CounterpartyValidationError(InvoicingError):
    """Counterparty data turned out to be unusable while generating."""


class PersistenceError(InvoicingError):
    """Invoice + lines could not be written; nothing was persisted."""


class SourceRecordConflict(PersistenceError):
    """A line references a source record that is already on another invoice."""


class DocumentDeliveryError(InvoicingError):
    """Rendering or storing the invoice document failed."""
