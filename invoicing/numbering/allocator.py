"""
Invoicing Numbering - NumberAllocator
=====================================
Atomic allocation of formatted document numbers.

Doctrine:
- Config first, counter second: an unknown organization consumes nothing.
- One atomic_increment per allocation. The allocator never reads a counter
  to compute the next value.
- The floor override is a compare-and-set; it can only move a counter up.
- Allocation, invoice write and bookkeeping share the caller's unit of
  work, so a rolled-back invoice also rolls back its number.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from invoicing.clock import Clock, SystemClock
from invoicing.errors import (
    AllocationError,
    NumberingValidationError,
    SequenceStoreError,
)
from invoicing.numbering.models import (
    Allocation,
    DocumentType,
    NumberingPreview,
    parse_document_type,
)

if TYPE_CHECKING:
    from invoicing.organizations.directory import OrganizationDirectory
    from invoicing.sequences.store import SequenceStore

logger = logging.getLogger("invoicing.numbering")


class NumberAllocator:
    """
    Usage:
        allocator = NumberAllocator(store=store, organizations=directory)
        allocation = allocator.allocate(org_id, DocumentType.NORMAL)
        allocation.formatted  # "FACT0042"
    """

    def __init__(
        self,
        *,
        store: SequenceStore,
        organizations: OrganizationDirectory,
        clock: Optional[Clock] = None,
    ):
        self._store = store
        self._organizations = organizations
        self._clock = clock or SystemClock()

    def allocate(
        self,
        organization_id: int,
        document_type: DocumentType | str = DocumentType.NORMAL,
    ) -> Allocation:
        document_type = parse_document_type(document_type)
        # Raises OrganizationNotFound before the counter moves
        config = self._organizations.get_numbering_config(organization_id)

        try:
            raw = self._store.atomic_increment(organization_id, document_type)
        except SequenceStoreError as exc:
            raise AllocationError(
                f"Could not allocate a {document_type.value} number: {exc}",
                cause=exc,
            ) from exc

        formatted = config.format_number(
            document_type, raw, year=self._clock.now_utc().year
        )
        logger.debug(
            "Allocated %s (raw=%d) for organization %s",
            formatted, raw, organization_id,
        )
        return Allocation(document_type=document_type, formatted=formatted, raw=raw)

    def raise_floor(
        self,
        organization_id: int,
        document_type: DocumentType | str,
        new_floor: int,
    ) -> None:
        """
        Raise the counter to new_floor so the next allocation is new_floor + 1.

        Raises NumberingValidationError when new_floor is not above the
        current counter, including when a concurrent allocation overtook it
        between the check and the write.
        """
        document_type = parse_document_type(document_type)
        if isinstance(new_floor, bool) or not isinstance(new_floor, int) or new_floor < 1:
            raise NumberingValidationError("new_floor must be int >= 1.")

        self._organizations.get_numbering_config(organization_id)
        try:
            current = self._store.current_value(organization_id, document_type)
            if new_floor <= current:
                raise NumberingValidationError(
                    f"new_floor {new_floor} must be greater than the current "
                    f"{document_type.value} counter ({current})."
                )
            accepted = self._store.atomic_set_floor(
                organization_id, document_type, new_floor
            )
        except SequenceStoreError as exc:
            raise AllocationError(
                f"Could not raise the {document_type.value} counter: {exc}",
                cause=exc,
            ) from exc

        if not accepted:
            raise NumberingValidationError(
                f"new_floor {new_floor} is no longer greater than the "
                f"{document_type.value} counter."
            )

        self._organizations.record_last_number(organization_id, document_type, new_floor)
        logger.info(
            "Raised %s counter of organization %s to %d",
            document_type.value, organization_id, new_floor,
        )

    def preview(
        self,
        organization_id: int,
        document_type: DocumentType | str = DocumentType.NORMAL,
    ) -> NumberingPreview:
        """What the next allocation would issue. Consumes nothing."""
        document_type = parse_document_type(document_type)
        config = self._organizations.get_numbering_config(organization_id)
        try:
            current = self._store.current_value(organization_id, document_type)
        except SequenceStoreError as exc:
            raise AllocationError(
                f"Could not read the {document_type.value} counter: {exc}",
                cause=exc,
            ) from exc
        return NumberingPreview(
            document_type=document_type,
            prefix=config.prefix,
            padding=config.padding,
            current=current,
            next_number=config.format_number(
                document_type, current + 1, year=self._clock.now_utc().year
            ),
        )
