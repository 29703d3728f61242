"""
Invoicing Records - CompletenessValidator
=========================================
Gate between aggregation and generation.

Only complete counterparties are billed automatically. An incomplete one
is reported with its missing fields so an operator can fix the client
record; it is never billed with blanks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from invoicing.records.models import CounterpartyGroup

REQUIRED_FIELDS = ("legal_name", "tax_id", "address", "postal_code", "city")


@dataclass(frozen=True)
class CompletenessResult:
    is_eligible: bool
    missing_fields: tuple[str, ...] = ()


class CompletenessValidator:

    def __init__(self, required_fields: tuple[str, ...] = REQUIRED_FIELDS):
        if not required_fields:
            raise ValueError("required_fields must be non-empty.")
        self._required = tuple(required_fields)

    @property
    def required_fields(self) -> tuple[str, ...]:
        return self._required

    def validate(self, group: CounterpartyGroup) -> CompletenessResult:
        counterparty = group.counterparty
        missing = tuple(
            name for name in self._required
            if not str(getattr(counterparty, name, "") or "").strip()
        )
        return CompletenessResult(is_eligible=not missing, missing_fields=missing)

    def partition(
        self,
        groups: Iterable[CounterpartyGroup],
    ) -> tuple[list[CounterpartyGroup], list[tuple[CounterpartyGroup, tuple[str, ...]]]]:
        """Split into (eligible, [(ineligible group, missing fields)]), order kept."""
        eligible: list[CounterpartyGroup] = []
        ineligible: list[tuple[CounterpartyGroup, tuple[str, ...]]] = []
        for group in groups:
            result = self.validate(group)
            if result.is_eligible:
                eligible.append(group)
            else:
                ineligible.append((group, result.missing_fields))
        return eligible, ineligible
