"""
Invoicing Core - Settings
=========================
Admin-tunable values for numbering and batch generation.

Values come from the ``INVOICING`` dict in Django settings and are
validated into a frozen InvoicingSettings. Nothing in the core reads
``django.conf.settings`` directly; it asks get_invoicing_settings().
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Mapping

from invoicing.errors import ConfigurationError
from invoicing.invoices.drafts import InvoiceStatus

PAYMENT_METHODS = frozenset({"card", "cash", "transfer", "bizum", "direct_debit", "other"})

_SETTING_KEYS = {
    "DEFAULT_PADDING": "default_padding",
    "FALLBACK_PRICE": "fallback_price",
    "BATCH_INVOICE_STATUS": "batch_invoice_status",
    "DEFAULT_PAYMENT_METHOD": "default_payment_method",
    "DOCUMENT_NAME_TEMPLATE": "document_name_template",
    "CURRENCY": "currency",
    "DOCUMENT_STORAGE_ROOT": "document_storage_root",
}


@dataclass(frozen=True)
class InvoicingSettings:
    """
    Fields:
        default_padding: zero-padding width when an organization has none
        fallback_price: unit price used when no price resolves for a record
        batch_invoice_status: status given to invoices created by a batch
        default_payment_method: payment method when the caller gives none
        document_name_template: storage name, formatted with ``number``
        currency: ISO currency code printed on documents
        document_storage_root: directory for FileSystemStorage
    """

    default_padding: int = 4
    fallback_price: Decimal = Decimal("50.00")
    batch_invoice_status: str = "sent"
    default_payment_method: str = "card"
    document_name_template: str = "invoice-{number}.pdf"
    currency: str = "EUR"
    document_storage_root: Path = Path("var") / "documents"

    def __post_init__(self):
        if not isinstance(self.default_padding, int) or self.default_padding < 1:
            raise ConfigurationError("DEFAULT_PADDING must be int >= 1.")
        if self.fallback_price < 0:
            raise ConfigurationError("FALLBACK_PRICE must not be negative.")
        if self.batch_invoice_status not in InvoiceStatus.values:
            raise ConfigurationError(
                f"BATCH_INVOICE_STATUS '{self.batch_invoice_status}' is not valid. "
                f"Must be one of: {sorted(InvoiceStatus.values)}"
            )
        if self.default_payment_method not in PAYMENT_METHODS:
            raise ConfigurationError(
                f"DEFAULT_PAYMENT_METHOD '{self.default_payment_method}' is not valid. "
                f"Must be one of: {sorted(PAYMENT_METHODS)}"
            )
        if "{number}" not in self.document_name_template:
            raise ConfigurationError("DOCUMENT_NAME_TEMPLATE must contain '{number}'.")
        if len(self.currency) != 3:
            raise ConfigurationError("CURRENCY must be a 3-letter code.")

    def document_name(self, number: str) -> str:
        return self.document_name_template.format(number=number)


def _coerce(attr: str, value: Any) -> Any:
    if attr == "fallback_price":
        try:
            return Decimal(str(value))
        except InvalidOperation as exc:
            raise ConfigurationError(
                f"FALLBACK_PRICE '{value}' is not a decimal.", cause=exc
            ) from exc
    if attr == "document_storage_root":
        return Path(value)
    if attr == "currency":
        return str(value).upper()
    return value


def build_invoicing_settings(raw: Mapping[str, Any] | None) -> InvoicingSettings:
    """Validate a raw ``INVOICING`` mapping into InvoicingSettings."""
    raw = dict(raw or {})
    unknown = sorted(set(raw) - set(_SETTING_KEYS))
    if unknown:
        raise ConfigurationError(f"Unknown INVOICING settings: {unknown}")

    kwargs = {
        _SETTING_KEYS[key]: _coerce(_SETTING_KEYS[key], value)
        for key, value in raw.items()
    }
    return InvoicingSettings(**kwargs)


def get_invoicing_settings() -> InvoicingSettings:
    from django.conf import settings

    return build_invoicing_settings(getattr(settings, "INVOICING", None))

