"""
Invoicing Records - Public API
==============================
"""

from invoicing.records.aggregator import RecordAggregator
from invoicing.records.completeness import (
    REQUIRED_FIELDS,
    CompletenessResult,
    CompletenessValidator,
)
from invoicing.records.models import (
    RECORD_KIND_APPOINTMENT,
    RECORD_KIND_GROUP_ACTIVITY,
    AggregationResult,
    BillableItem,
    BillingScope,
    Counterparty,
    CounterpartyGroup,
    SourceRecord,
)
from invoicing.records.policies import (
    BILL_ALL_STATUSES,
    PriceLookup,
    StatusPolicy,
    service_price_lookup,
)
from invoicing.records.source import InMemoryRecordSource, RecordSource

__all__ = [
    "RecordAggregator",
    "CompletenessValidator",
    "CompletenessResult",
    "REQUIRED_FIELDS",
    "RECORD_KIND_APPOINTMENT",
    "RECORD_KIND_GROUP_ACTIVITY",
    "AggregationResult",
    "BillableItem",
    "BillingScope",
    "Counterparty",
    "CounterpartyGroup",
    "SourceRecord",
    "BILL_ALL_STATUSES",
    "PriceLookup",
    "StatusPolicy",
    "service_price_lookup",
    "RecordSource",
    "InMemoryRecordSource",
]
