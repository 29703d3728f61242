"""
Invoicing Records - Models
==========================
Read-only billable source records and the groups built from them.

Doctrine:
- Source records are produced by scheduling code outside this package.
  Nothing here mutates them.
- Money is Decimal, never float.
- Groups are immutable snapshots; the orchestrator works on copies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

RECORD_KIND_APPOINTMENT = "appointment"
RECORD_KIND_GROUP_ACTIVITY = "group_activity"

VALID_RECORD_KINDS = frozenset({RECORD_KIND_APPOINTMENT, RECORD_KIND_GROUP_ACTIVITY})


def _decimal(value, name: str) -> Decimal:
    if isinstance(value, float):
        raise ValueError(f"{name} must be Decimal or int, not float.")
    return Decimal(value)


# ---------------------------------------------------------------------------
# Counterparty
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Counterparty:
    """
    The billed party.

    payment_method / payment_method_other carry the client's preferred
    payment method; None means "use the configured default".
    """

    counterparty_id: int
    legal_name: str
    tax_id: str = ""
    address: str = ""
    postal_code: str = ""
    city: str = ""
    province: str = ""
    payment_method: Optional[str] = None
    payment_method_other: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.legal_name, str):
            raise ValueError("legal_name must be a string.")

    @property
    def display_name(self) -> str:
        return self.legal_name.strip() or f"Counterparty {self.counterparty_id}"


# ---------------------------------------------------------------------------
# SourceRecord
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SourceRecord:
    """
    A billable event (completed appointment or group activity seat).

    record_id is the traceability key stored on the invoice line; it must
    be unique across every record kind.
    """

    record_id: str
    organization_id: int
    occurred_at: datetime
    status: str
    counterparty: Optional[Counterparty] = None
    kind: str = RECORD_KIND_APPOINTMENT
    service_name: str = ""
    service_price: Optional[Decimal] = None
    tax_rate: Decimal = Decimal("0")
    withholding_rate: Decimal = Decimal("0")
    professional_name: str = ""
    start_time: str = ""
    end_time: str = ""
    activity_name: str = ""

    def __post_init__(self):
        if not self.record_id:
            raise ValueError("record_id must be non-empty.")
        if self.kind not in VALID_RECORD_KINDS:
            raise ValueError(
                f"kind '{self.kind}' not valid. Must be one of: {sorted(VALID_RECORD_KINDS)}"
            )
        if not isinstance(self.occurred_at, datetime):
            raise ValueError("occurred_at must be datetime.")
        if self.service_price is not None:
            object.__setattr__(
                self, "service_price", _decimal(self.service_price, "service_price")
            )
        object.__setattr__(self, "tax_rate", _decimal(self.tax_rate, "tax_rate"))
        object.__setattr__(
            self, "withholding_rate", _decimal(self.withholding_rate, "withholding_rate")
        )


# ---------------------------------------------------------------------------
# Scope
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BillingScope:
    """An organization plus an inclusive date range."""

    organization_id: int
    start_date: date
    end_date: Optional[date] = None

    def __post_init__(self):
        if not isinstance(self.start_date, date):
            raise ValueError("start_date must be date.")
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date.")

    @classmethod
    def for_day(cls, organization_id: int, day: date) -> "BillingScope":
        return cls(organization_id=organization_id, start_date=day)

    @property
    def last_date(self) -> date:
        return self.end_date or self.start_date

    def contains(self, moment: datetime) -> bool:
        return self.start_date <= moment.date() <= self.last_date


# ---------------------------------------------------------------------------
# Aggregation output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BillableItem:
    record: SourceRecord
    unit_price: Decimal


@dataclass(frozen=True)
class CounterpartyGroup:
    counterparty: Counterparty
    items: tuple[BillableItem, ...]
    total: Decimal = Decimal("0")

    @property
    def record_ids(self) -> tuple[str, ...]:
        return tuple(item.record.record_id for item in self.items)

    def without(self, record_ids) -> "CounterpartyGroup":
        """Copy of this group minus the given records, with the total recomputed."""
        excluded = set(record_ids)
        items = tuple(i for i in self.items if i.record.record_id not in excluded)
        return CounterpartyGroup(
            counterparty=self.counterparty,
            items=items,
            total=sum((i.unit_price for i in items), Decimal("0")),
        )


@dataclass(frozen=True)
class AggregationResult:
    groups: tuple[CounterpartyGroup, ...] = ()
    skipped: tuple[str, ...] = field(default_factory=tuple)
