"""
Invoicing Records - RecordSource
================================
Where billable records come from.

Scheduling data lives outside this package. Surrounding application code
adapts it to RecordSource; the InMemory source serves tests and scripts.
"""

from __future__ import annotations

import threading
from typing import Iterable, Protocol

from invoicing.records.models import BillingScope, SourceRecord


class RecordSource(Protocol):
    def list_billable(
        self,
        organization_id: int,
        scope: BillingScope,
    ) -> list[SourceRecord]:
        """All records of the organization inside the scope, whatever their status."""
        ...


class InMemoryRecordSource:

    def __init__(self, records: Iterable[SourceRecord] = ()):
        self._lock = threading.Lock()
        self._records: list[SourceRecord] = list(records)

    def add(self, record: SourceRecord) -> None:
        with self._lock:
            self._records.append(record)

    def list_billable(
        self,
        organization_id: int,
        scope: BillingScope,
    ) -> list[SourceRecord]:
        with self._lock:
            return [
                r for r in self._records
                if r.organization_id == organization_id and scope.contains(r.occurred_at)
            ]
