"""
Invoicing Batch - Public API
============================
"""

from invoicing.batch.cancellation import CancellationToken
from invoicing.batch.orchestrator import BatchOrchestrator, ProgressCallback, build_notes
from invoicing.batch.payment import PaymentInstruction, resolve_payment
from invoicing.batch.report import (
    BatchPhase,
    BatchProgress,
    DocumentFailure,
    GeneratedInvoice,
    GenerationReport,
    IneligibleGroup,
)
from invoicing.batch.wiring import build_default_orchestrator

__all__ = [
    "BatchOrchestrator",
    "build_default_orchestrator",
    "build_notes",
    "ProgressCallback",
    "CancellationToken",
    "PaymentInstruction",
    "resolve_payment",
    "BatchPhase",
    "BatchProgress",
    "DocumentFailure",
    "GeneratedInvoice",
    "GenerationReport",
    "IneligibleGroup",
]
