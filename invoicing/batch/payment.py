"""
Invoicing Batch - Payment Instructions
======================================
Which payment method an invoice carries.

Resolution order: explicit per-counterparty instruction from the caller,
then the counterparty's own preference, then the configured default.
Method "other" needs a free-text detail; without one the group fails
with CounterpartyValidationError.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Union

from invoicing.config import PAYMENT_METHODS
from invoicing.errors import CounterpartyValidationError
from invoicing.records.models import Counterparty

PAYMENT_METHOD_OTHER = "other"


@dataclass(frozen=True)
class PaymentInstruction:
    method: str
    other: str = ""

    def validate(self) -> "PaymentInstruction":
        if self.method not in PAYMENT_METHODS:
            raise CounterpartyValidationError(
                f"Payment method '{self.method}' is not valid. "
                f"Must be one of: {sorted(PAYMENT_METHODS)}"
            )
        if self.method == PAYMENT_METHOD_OTHER and not self.other.strip():
            raise CounterpartyValidationError("Payment method 'other' without detail")
        if self.method != PAYMENT_METHOD_OTHER:
            return PaymentInstruction(method=self.method)
        return PaymentInstruction(method=self.method, other=self.other.strip())


PaymentOverrides = Mapping[int, Union[PaymentInstruction, str]]


def resolve_payment(
    counterparty: Counterparty,
    *,
    default_method: str,
    overrides: Optional[PaymentOverrides] = None,
) -> PaymentInstruction:
    override = (overrides or {}).get(counterparty.counterparty_id)
    if isinstance(override, str):
        instruction = PaymentInstruction(method=override)
    elif override is not None:
        instruction = override
    elif counterparty.payment_method:
        instruction = PaymentInstruction(
            method=counterparty.payment_method,
            other=counterparty.payment_method_other or "",
        )
    else:
        instruction = PaymentInstruction(method=default_method)
    return instruction.validate()
