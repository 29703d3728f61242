"""
Invoicing Invoices - InvoiceAssembler
=====================================
Line items and totals from a counterparty group.

Order of operations per line (fixed; reordering changes rounding):
    1. subtotal    = quantity x unit_price
    2. discount    = subtotal x discount_pct / 100
    3. base        = subtotal - discount
    4. tax         = base x tax_rate / 100
    5. withholding = base x withholding_rate / 100

Aggregates are exact sums of the line amounts, rounded half-up to cents
once. total = base + tax - withholding is computed on the ROUNDED
aggregates so the stored figures always satisfy the identity.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from invoicing.invoices.drafts import (
    InvoiceLineDraft,
    InvoiceTotals,
    LineAmounts,
    to_cents,
)
from invoicing.records.models import (
    RECORD_KIND_GROUP_ACTIVITY,
    BillableItem,
    CounterpartyGroup,
)

HUNDRED = Decimal("100")
ZERO = Decimal("0")

DEFAULT_SERVICE_NAME = "Medical service"


def compute_line_amounts(
    quantity: Decimal,
    unit_price: Decimal,
    discount_pct: Decimal = ZERO,
    tax_rate: Decimal = ZERO,
    withholding_rate: Decimal = ZERO,
) -> LineAmounts:
    subtotal = Decimal(quantity) * Decimal(unit_price)
    discount = subtotal * Decimal(discount_pct) / HUNDRED
    base = subtotal - discount
    tax = base * Decimal(tax_rate) / HUNDRED
    withholding = base * Decimal(withholding_rate) / HUNDRED
    return LineAmounts(
        subtotal=subtotal,
        discount=discount,
        base=base,
        tax=tax,
        withholding=withholding,
    )


def compute_totals(lines: Iterable[InvoiceLineDraft]) -> InvoiceTotals:
    base = tax = withholding = discount = ZERO
    for line in lines:
        base += line.amounts.base
        tax += line.amounts.tax
        withholding += line.amounts.withholding
        discount += line.amounts.discount

    base, tax = to_cents(base), to_cents(tax)
    withholding, discount = to_cents(withholding), to_cents(discount)
    return InvoiceTotals(
        base=base,
        tax=tax,
        withholding=withholding,
        discount=discount,
        total=base + tax - withholding,
    )


def describe_item(item: BillableItem) -> str:
    record = item.record
    if record.kind == RECORD_KIND_GROUP_ACTIVITY:
        label = f"Group activity: {record.activity_name or record.service_name}"
    else:
        label = record.service_name or DEFAULT_SERVICE_NAME

    parts = [label]
    if record.professional_name:
        parts.append(record.professional_name)
    description = " - ".join(parts)
    if record.start_time and record.end_time:
        description += f" ({record.start_time}-{record.end_time})"
    return description


class InvoiceAssembler:
    """
    One line per record: quantity 1, resolved unit price, no discount,
    the record's tax and withholding rates.
    """

    def build_line(self, position: int, item: BillableItem) -> InvoiceLineDraft:
        record = item.record
        quantity = Decimal("1")
        return InvoiceLineDraft(
            position=position,
            description=describe_item(item),
            quantity=quantity,
            unit_price=item.unit_price,
            discount_percentage=ZERO,
            tax_rate=record.tax_rate,
            withholding_rate=record.withholding_rate,
            amounts=compute_line_amounts(
                quantity,
                item.unit_price,
                ZERO,
                record.tax_rate,
                record.withholding_rate,
            ),
            source_record_id=record.record_id,
        )

    def assemble(
        self,
        group: CounterpartyGroup,
    ) -> tuple[tuple[InvoiceLineDraft, ...], InvoiceTotals]:
        if not group.items:
            raise ValueError(
                f"Group of {group.counterparty.display_name} has no billable items."
            )
        lines = tuple(
            self.build_line(position, item)
            for position, item in enumerate(group.items, start=1)
        )
        return lines, compute_totals(lines)
