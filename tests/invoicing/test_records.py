"""
Invoicing Records tests
=======================
Aggregation by counterparty, status policy, price fallback and the
completeness gate.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from django.db import OperationalError

from invoicing.errors import RecordSourceError
from invoicing.records import (
    BILL_ALL_STATUSES,
    RECORD_KIND_GROUP_ACTIVITY,
    BillingScope,
    CompletenessValidator,
    Counterparty,
    CounterpartyGroup,
    InMemoryRecordSource,
    RecordAggregator,
    SourceRecord,
    StatusPolicy,
)

ORG = 1
DAY = date(2024, 3, 15)


def _client(cid: int, name: str, **overrides) -> Counterparty:
    fields = dict(
        counterparty_id=cid,
        legal_name=name,
        tax_id=f"0000000{cid}X",
        address="Calle Mayor 1",
        postal_code="28001",
        city="Madrid",
    )
    fields.update(overrides)
    return Counterparty(**fields)


def _record(record_id: str, client, *, hour=9, status="completed", price="40.00", **kw) -> SourceRecord:
    return SourceRecord(
        record_id=record_id,
        organization_id=kw.pop("organization_id", ORG),
        occurred_at=kw.pop("occurred_at", datetime(2024, 3, 15, hour, 0, tzinfo=timezone.utc)),
        status=status,
        counterparty=client,
        service_name="Physiotherapy",
        service_price=None if price is None else Decimal(price),
        **kw,
    )


def _aggregator(records, *, policy=BILL_ALL_STATUSES, **kw) -> RecordAggregator:
    return RecordAggregator(
        source=InMemoryRecordSource(records),
        status_policy=policy,
        **kw,
    )


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class TestModels:
    def test_scope_rejects_inverted_range(self):
        with pytest.raises(ValueError, match="end_date"):
            BillingScope(ORG, date(2024, 3, 15), date(2024, 3, 14))

    def test_scope_for_day_contains_only_that_day(self):
        scope = BillingScope.for_day(ORG, DAY)
        assert scope.contains(datetime(2024, 3, 15, 23, 59, tzinfo=timezone.utc))
        assert not scope.contains(datetime(2024, 3, 16, 0, 0, tzinfo=timezone.utc))

    def test_record_rejects_float_money(self):
        with pytest.raises(ValueError, match="float"):
            _record("r1", _client(1, "Ana"), price=None, tax_rate=21.0)

    def test_record_rejects_unknown_kind(self):
        with pytest.raises(ValueError, match="kind"):
            _record("r1", _client(1, "Ana"), kind="consultation")

    def test_group_without_recomputes_total(self):
        client = _client(1, "Ana")
        records = [_record("r1", client), _record("r2", client, hour=10, price="60.00")]
        group = _aggregator(records).collect(BillingScope.for_day(ORG, DAY)).groups[0]
        remaining = group.without(["r1"])
        assert remaining.record_ids == ("r2",)
        assert remaining.total == Decimal("60.00")


# ---------------------------------------------------------------------------
# RecordAggregator
# ---------------------------------------------------------------------------

class TestRecordAggregator:
    def test_groups_by_counterparty_with_running_total(self):
        ana, bruno = _client(1, "Ana Moreno"), _client(2, "Bruno Diaz")
        result = _aggregator(
            [
                _record("r1", ana, hour=9),
                _record("r2", bruno, hour=10),
                _record("r3", ana, hour=11, price="25.50"),
            ]
        ).collect(BillingScope.for_day(ORG, DAY))

        assert [g.counterparty.legal_name for g in result.groups] == ["Ana Moreno", "Bruno Diaz"]
        assert result.groups[0].record_ids == ("r1", "r3")
        assert result.groups[0].total == Decimal("65.50")
        assert result.skipped == ()

    def test_record_without_counterparty_is_skipped_not_grouped(self):
        result = _aggregator(
            [_record("r1", None), _record("r2", _client(1, "Ana"))]
        ).collect(BillingScope.for_day(ORG, DAY))

        assert len(result.groups) == 1
        assert result.skipped == ("Record r1: no counterparty assigned",)

    def test_all_statuses_are_billed_by_default_policy(self):
        client = _client(1, "Ana")
        result = _aggregator(
            [
                _record("r1", client, status="completed"),
                _record("r2", client, hour=10, status="cancelled"),
                _record("r3", client, hour=11, status="no_show"),
            ]
        ).collect(BillingScope.for_day(ORG, DAY))
        assert result.groups[0].record_ids == ("r1", "r2", "r3")

    def test_explicit_status_policy_restricts(self):
        client = _client(1, "Ana")
        result = _aggregator(
            [
                _record("r1", client, status="completed"),
                _record("r2", client, hour=10, status="cancelled"),
            ],
            policy=StatusPolicy.only("completed"),
        ).collect(BillingScope.for_day(ORG, DAY))
        assert result.groups[0].record_ids == ("r1",)

    def test_status_policy_is_mandatory(self):
        with pytest.raises(ValueError, match="status_policy"):
            RecordAggregator(source=InMemoryRecordSource(), status_policy=None)

    def test_fallback_price_when_none_resolves(self):
        client = _client(1, "Ana")
        result = _aggregator(
            [_record("r1", client, price=None)],
        ).collect(BillingScope.for_day(ORG, DAY))
        assert result.groups[0].items[0].unit_price == Decimal("50.00")

    def test_custom_price_lookup_and_fallback(self):
        client = _client(1, "Ana")
        prices = {"r1": Decimal("70.00")}
        result = _aggregator(
            [_record("r1", client), _record("r2", client, hour=10)],
            price_lookup=lambda record: prices.get(record.record_id),
            fallback_price=Decimal("35.00"),
        ).collect(BillingScope.for_day(ORG, DAY))
        assert [i.unit_price for i in result.groups[0].items] == [
            Decimal("70.00"),
            Decimal("35.00"),
        ]

    def test_float_price_from_lookup_is_rejected(self):
        client = _client(1, "Ana")
        aggregator = _aggregator([_record("r1", client)], price_lookup=lambda record: 0.1)
        with pytest.raises(RecordSourceError, match="not float"):
            aggregator.collect(BillingScope.for_day(ORG, DAY))

    def test_non_decimal_price_from_lookup_is_rejected(self):
        client = _client(1, "Ana")
        aggregator = _aggregator([_record("r1", client)], price_lookup=lambda record: "free")
        with pytest.raises(RecordSourceError, match="not a decimal"):
            aggregator.collect(BillingScope.for_day(ORG, DAY))

    def test_database_error_from_source_is_translated(self):
        class UnreachableSource(InMemoryRecordSource):
            def list_billable(self, organization_id, scope):
                raise OperationalError("connection refused")

        aggregator = RecordAggregator(source=UnreachableSource(), status_policy=BILL_ALL_STATUSES)
        with pytest.raises(RecordSourceError, match="could not be read") as exc_info:
            aggregator.collect(BillingScope.for_day(ORG, DAY))
        assert isinstance(exc_info.value.cause, OperationalError)

    def test_ordering_is_case_insensitive_then_by_id(self):
        result = _aggregator(
            [
                _record("r1", _client(3, "carla")),
                _record("r2", _client(2, "Bruno")),
                _record("r3", _client(1, "bruno")),
            ]
        ).collect(BillingScope.for_day(ORG, DAY))
        assert [g.counterparty.counterparty_id for g in result.groups] == [1, 2, 3]

    def test_items_ordered_by_time_then_record_id(self):
        client = _client(1, "Ana")
        result = _aggregator(
            [
                _record("r9", client, hour=12),
                _record("r5", client, hour=8),
                _record("r2", client, hour=12),
            ]
        ).collect(BillingScope.for_day(ORG, DAY))
        assert result.groups[0].record_ids == ("r5", "r2", "r9")

    def test_scope_filters_other_days_and_organizations(self):
        client = _client(1, "Ana")
        result = _aggregator(
            [
                _record("r1", client),
                _record("r2", client, occurred_at=datetime(2024, 3, 16, 9, tzinfo=timezone.utc)),
                _record("r3", client, organization_id=2),
            ]
        ).collect(BillingScope.for_day(ORG, DAY))
        assert result.groups[0].record_ids == ("r1",)

    def test_date_range_scope(self):
        client = _client(1, "Ana")
        result = _aggregator(
            [
                _record("r1", client),
                _record("r2", client, occurred_at=datetime(2024, 3, 17, 9, tzinfo=timezone.utc)),
            ]
        ).collect(BillingScope(ORG, DAY, date(2024, 3, 17)))
        assert result.groups[0].record_ids == ("r1", "r2")

    def test_group_activity_records_group_like_appointments(self):
        client = _client(1, "Ana")
        result = _aggregator(
            [_record("ga_7_1", client, kind=RECORD_KIND_GROUP_ACTIVITY, activity_name="Pilates")]
        ).collect(BillingScope.for_day(ORG, DAY))
        assert result.groups[0].items[0].record.activity_name == "Pilates"


# ---------------------------------------------------------------------------
# CompletenessValidator
# ---------------------------------------------------------------------------

def _group(client) -> CounterpartyGroup:
    return CounterpartyGroup(counterparty=client, items=(), total=Decimal("0"))


class TestCompletenessValidator:
    def test_complete_counterparty_is_eligible(self):
        result = CompletenessValidator().validate(_group(_client(1, "Ana")))
        assert result.is_eligible
        assert result.missing_fields == ()

    def test_missing_postal_code_is_named(self):
        result = CompletenessValidator().validate(_group(_client(1, "Ana", postal_code="")))
        assert not result.is_eligible
        assert result.missing_fields == ("postal_code",)

    def test_whitespace_counts_as_blank(self):
        result = CompletenessValidator().validate(
            _group(_client(1, "  ", tax_id=" ", city="\t"))
        )
        assert result.missing_fields == ("legal_name", "tax_id", "city")

    def test_partition_keeps_order(self):
        groups = [
            _group(_client(1, "Ana")),
            _group(_client(2, "Bruno", address="")),
            _group(_client(3, "Carla")),
        ]
        eligible, ineligible = CompletenessValidator().partition(groups)
        assert [g.counterparty.counterparty_id for g in eligible] == [1, 3]
        assert [(g.counterparty.counterparty_id, m) for g, m in ineligible] == [(2, ("address",))]

    def test_validation_does_not_mutate(self):
        client = _client(1, "Ana", city="")
        group = _group(client)
        CompletenessValidator().validate(group)
        assert group.counterparty is client
        assert client.city == ""
