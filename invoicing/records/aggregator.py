"""
Invoicing Records - RecordAggregator
====================================
Collects billable records for a scope and groups them by counterparty.

Doctrine:
- The status policy is explicit; there is no implicit filtering.
- A record without a counterparty is never grouped. It becomes a skipped
  error string in the AggregationResult.
- Ordering is deterministic: groups by counterparty name (case-insensitive)
  then id; items by occurred_at then record id.
- A source that cannot be read, or a price that is not a Decimal, raises
  RecordSourceError. Nothing is grouped from a partial read.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Optional

from django.db import DatabaseError

from invoicing.errors import RecordSourceError
from invoicing.records.models import (
    AggregationResult,
    BillableItem,
    BillingScope,
    Counterparty,
    CounterpartyGroup,
)
from invoicing.records.policies import PriceLookup, StatusPolicy, service_price_lookup
from invoicing.records.source import RecordSource


class RecordAggregator:

    def __init__(
        self,
        *,
        source: RecordSource,
        status_policy: StatusPolicy,
        fallback_price: Decimal = Decimal("50.00"),
        price_lookup: Optional[PriceLookup] = None,
    ):
        if status_policy is None:
            raise ValueError("status_policy is required.")
        if fallback_price < 0:
            raise ValueError("fallback_price must not be negative.")
        self._source = source
        self._status_policy = status_policy
        self._fallback_price = Decimal(fallback_price)
        self._price_lookup = price_lookup or service_price_lookup

    @property
    def status_policy(self) -> StatusPolicy:
        return self._status_policy

    def resolve_price(self, record) -> Decimal:
        price = self._price_lookup(record)
        if price is None:
            return self._fallback_price
        if isinstance(price, float):
            raise RecordSourceError(
                f"Price for record {record.record_id} must be Decimal or int, not float."
            )
        try:
            return Decimal(price)
        except (InvalidOperation, TypeError, ValueError) as exc:
            raise RecordSourceError(
                f"Price for record {record.record_id} is not a decimal: {price!r}", cause=exc
            ) from exc

    def collect(self, scope: BillingScope) -> AggregationResult:
        try:
            records = list(self._source.list_billable(scope.organization_id, scope))
        except DatabaseError as exc:
            raise RecordSourceError(
                f"Billable records for organization {scope.organization_id} "
                f"could not be read: {exc}",
                cause=exc,
            ) from exc

        buckets: dict[int, tuple[Counterparty, list[BillableItem]]] = {}
        skipped: list[str] = []

        for record in records:
            if not self._status_policy.is_billable(record):
                continue
            if record.counterparty is None:
                skipped.append(f"Record {record.record_id}: no counterparty assigned")
                continue
            key = record.counterparty.counterparty_id
            if key not in buckets:
                buckets[key] = (record.counterparty, [])
            buckets[key][1].append(
                BillableItem(record=record, unit_price=self.resolve_price(record))
            )

        groups = []
        for counterparty, items in buckets.values():
            items.sort(key=lambda i: (i.record.occurred_at, i.record.record_id))
            groups.append(
                CounterpartyGroup(
                    counterparty=counterparty,
                    items=tuple(items),
                    total=sum((i.unit_price for i in items), Decimal("0")),
                )
            )
        groups.sort(
            key=lambda g: (g.counterparty.legal_name.casefold(), g.counterparty.counterparty_id)
        )
        return AggregationResult(groups=tuple(groups), skipped=tuple(skipped))
