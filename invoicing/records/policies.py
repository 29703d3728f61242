"""
Invoicing Records - Billing Policies
====================================
Which records are billable and what they cost.

Both are explicit constructor arguments of RecordAggregator. The observed
behaviour of the clinic bills every status (cancelled-looking records
included); BILL_ALL_STATUSES names that choice instead of hiding it.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Optional

from invoicing.records.models import SourceRecord

PriceLookup = Callable[[SourceRecord], Optional[Decimal]]


@dataclass(frozen=True)
class StatusPolicy:
    """
    statuses=None bills every status. Otherwise only the listed statuses.
    """

    name: str
    statuses: Optional[frozenset[str]] = None

    def __post_init__(self):
        if not self.name:
            raise ValueError("name must be non-empty.")
        if self.statuses is not None and not self.statuses:
            raise ValueError("statuses must be None or a non-empty set.")

    @classmethod
    def only(cls, *statuses: str) -> "StatusPolicy":
        return cls(
            name="only:" + ",".join(sorted(statuses)),
            statuses=frozenset(statuses),
        )

    def is_billable(self, record: SourceRecord) -> bool:
        return self.statuses is None or record.status in self.statuses


BILL_ALL_STATUSES = StatusPolicy(name="all")


def service_price_lookup(record: SourceRecord) -> Optional[Decimal]:
    """Default lookup: the price of the record's service, if any."""
    return record.service_price
