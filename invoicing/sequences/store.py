"""
Invoicing Sequences - SequenceStore
===================================
Protocol + Django ORM and InMemory implementations of the durable counter.

Doctrine:
- Read-increment-write is ONE atomic unit. A read followed by a separate
  write is never acceptable: two allocators would observe the same value.
- Django store: a single UPDATE with an F() expression inside atomic().
  The row stays write-locked until the surrounding transaction ends, so
  the value read back is the one this call produced.
- InMemory store: a single lock around every counter mutation.
- Contention is scoped per (organization, document type).
"""

from __future__ import annotations

import threading
from typing import Protocol

from django.db import DatabaseError, transaction
from django.db.models import F
from django.db.models.functions import Now

from invoicing.errors import SequenceStoreError
from invoicing.numbering.models import DocumentType, parse_document_type


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------

class SequenceStore(Protocol):
    def atomic_increment(self, organization_id: int, document_type: DocumentType) -> int:
        """Advance the counter by one and return the new value."""
        ...

    def atomic_set_floor(
        self,
        organization_id: int,
        document_type: DocumentType,
        new_floor: int,
    ) -> bool:
        """
        Compare-and-set: raise the counter to new_floor only if new_floor is
        still greater than the counter at the moment of the write.
        """
        ...

    def current_value(self, organization_id: int, document_type: DocumentType) -> int:
        """Last issued value (0 when nothing was issued). Read only."""
        ...


# ---------------------------------------------------------------------------
# Django ORM store
# ---------------------------------------------------------------------------

class DjangoSequenceStore:
    """Counter rows in ``invoicing_sequence_counters``."""

    def _counters(self, organization_id: int, document_type: DocumentType):
        from invoicing.sequences.models import SequenceCounter

        return SequenceCounter.objects.filter(
            organization_id=organization_id,
            document_type=document_type.value,
        )

    def _ensure_counter(self, organization_id: int, document_type: DocumentType) -> None:
        from invoicing.sequences.models import SequenceCounter

        # get_or_create absorbs the IntegrityError of a concurrent first insert
        SequenceCounter.objects.get_or_create(
            organization_id=organization_id,
            document_type=document_type.value,
        )

    def atomic_increment(self, organization_id: int, document_type: DocumentType) -> int:
        document_type = parse_document_type(document_type)
        try:
            with transaction.atomic():
                self._ensure_counter(organization_id, document_type)
                counters = self._counters(organization_id, document_type)
                updated = counters.update(
                    last_issued=F("last_issued") + 1,
                    updated_at=Now(),
                )
                if updated != 1:
                    raise SequenceStoreError(
                        f"Counter {organization_id}/{document_type.value} "
                        f"vanished during increment."
                    )
                return counters.values_list("last_issued", flat=True).get()
        except DatabaseError as exc:
            raise SequenceStoreError(
                f"Counter store unavailable for "
                f"{organization_id}/{document_type.value}: {exc}",
                cause=exc,
            ) from exc

    def atomic_set_floor(
        self,
        organization_id: int,
        document_type: DocumentType,
        new_floor: int,
    ) -> bool:
        document_type = parse_document_type(document_type)
        try:
            with transaction.atomic():
                self._ensure_counter(organization_id, document_type)
                updated = (
                    self._counters(organization_id, document_type)
                    .filter(last_issued__lt=new_floor)
                    .update(last_issued=new_floor, updated_at=Now())
                )
        except DatabaseError as exc:
            raise SequenceStoreError(
                f"Counter store unavailable for "
                f"{organization_id}/{document_type.value}: {exc}",
                cause=exc,
            ) from exc
        return updated == 1

    def current_value(self, organization_id: int, document_type: DocumentType) -> int:
        document_type = parse_document_type(document_type)
        try:
            value = (
                self._counters(organization_id, document_type)
                .values_list("last_issued", flat=True)
                .first()
            )
        except DatabaseError as exc:
            raise SequenceStoreError(
                f"Counter store unavailable for "
                f"{organization_id}/{document_type.value}: {exc}",
                cause=exc,
            ) from exc
        return value or 0


# ---------------------------------------------------------------------------
# InMemory store (thread-safe, used in tests)
# ---------------------------------------------------------------------------

class InMemorySequenceStore:
    """
    Thread-safe in-memory counters.

    snapshot()/restore() let InMemoryUnitOfWork roll an increment back when
    the surrounding invoice write fails. Restoring is only sound while a
    single batch run owns the store.
    """

    def __init__(self, initial: dict[tuple[int, DocumentType], int] | None = None):
        self._lock = threading.Lock()
        self._counters: dict[tuple[int, DocumentType], int] = dict(initial or {})

    def atomic_increment(self, organization_id: int, document_type: DocumentType) -> int:
        key = (organization_id, parse_document_type(document_type))
        with self._lock:
            value = self._counters.get(key, 0) + 1
            self._counters[key] = value
            return value

    def atomic_set_floor(
        self,
        organization_id: int,
        document_type: DocumentType,
        new_floor: int,
    ) -> bool:
        key = (organization_id, parse_document_type(document_type))
        with self._lock:
            if new_floor <= self._counters.get(key, 0):
                return False
            self._counters[key] = new_floor
            return True

    def current_value(self, organization_id: int, document_type: DocumentType) -> int:
        key = (organization_id, parse_document_type(document_type))
        with self._lock:
            return self._counters.get(key, 0)

    def snapshot(self) -> dict:
        with self._lock:
            return dict(self._counters)

    def restore(self, state: dict) -> None:
        with self._lock:
            self._counters = dict(state)
