"""
Invoicing Organizations - OrganizationDirectory
===============================================
Protocol + Django ORM and InMemory implementations.

Doctrine:
- get_numbering_config() is a read. A missing organization raises
  OrganizationNotFound before any counter is touched.
- record_last_number() is monotonic: the exposed bookkeeping never moves
  backwards, whatever order concurrent runs commit in.
- Bookkeeping is a mirror. The authoritative counter is the SequenceStore.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Protocol

from django.db import DatabaseError

from invoicing.errors import OrganizationNotFound, PersistenceError
from invoicing.numbering.models import DocumentType, NumberingConfig, parse_document_type

LAST_NUMBER_FIELDS = {
    DocumentType.NORMAL: "last_invoice_number",
    DocumentType.RECTIFICATIVE: "last_rectificative_invoice_number",
    DocumentType.SIMPLIFIED: "last_simplified_invoice_number",
}


@dataclass(frozen=True)
class OrganizationProfile:
    """Issuer data printed on invoices."""

    organization_id: int
    name: str
    tax_id: str = ""
    address: str = ""
    postal_code: str = ""
    city: str = ""


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------

class OrganizationDirectory(Protocol):
    def get_profile(self, organization_id: int) -> OrganizationProfile:
        ...

    def get_numbering_config(self, organization_id: int) -> NumberingConfig:
        ...

    def record_last_number(
        self,
        organization_id: int,
        document_type: DocumentType,
        raw: int,
    ) -> None:
        """Advance the exposed bookkeeping to raw if it is behind."""
        ...

    def last_number(self, organization_id: int, document_type: DocumentType) -> int:
        ...


# ---------------------------------------------------------------------------
# Django ORM directory
# ---------------------------------------------------------------------------

class DjangoOrganizationDirectory:
    """Reads and updates rows of ``invoicing_organizations``."""

    def __init__(self, default_padding: int = 4):
        self._default_padding = default_padding

    def _get(self, organization_id: int):
        from invoicing.organizations.models import Organization

        try:
            return Organization.objects.get(pk=organization_id)
        except Organization.DoesNotExist:
            raise OrganizationNotFound(organization_id) from None

    def get_profile(self, organization_id: int) -> OrganizationProfile:
        org = self._get(organization_id)
        return OrganizationProfile(
            organization_id=org.pk,
            name=org.name,
            tax_id=org.tax_id,
            address=org.address,
            postal_code=org.postal_code,
            city=org.city,
        )

    def get_numbering_config(self, organization_id: int) -> NumberingConfig:
        org = self._get(organization_id)
        return NumberingConfig(
            organization_id=org.pk,
            prefix=org.invoice_prefix or "",
            padding=org.invoice_padding_length or self._default_padding,
        )

    def record_last_number(
        self,
        organization_id: int,
        document_type: DocumentType,
        raw: int,
    ) -> None:
        from invoicing.organizations.models import Organization

        field = LAST_NUMBER_FIELDS[parse_document_type(document_type)]
        try:
            # Conditional UPDATE: a slower run can never lower the value.
            Organization.objects.filter(
                pk=organization_id, **{f"{field}__lt": raw}
            ).update(**{field: raw})
        except DatabaseError as exc:
            raise PersistenceError(
                f"Could not record last number for organization {organization_id}: {exc}",
                cause=exc,
            ) from exc

    def last_number(self, organization_id: int, document_type: DocumentType) -> int:
        field = LAST_NUMBER_FIELDS[parse_document_type(document_type)]
        return getattr(self._get(organization_id), field)


# ---------------------------------------------------------------------------
# InMemory directory (used in tests)
# ---------------------------------------------------------------------------

class InMemoryOrganizationDirectory:
    """
    Organizations registered at construction time.

    Usage:
        directory = InMemoryOrganizationDirectory()
        directory.register(OrganizationProfile(1, "Clinic"), prefix="FACT")
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._profiles: dict[int, OrganizationProfile] = {}
        self._configs: dict[int, NumberingConfig] = {}
        self._last: dict[tuple[int, DocumentType], int] = {}

    def register(
        self,
        profile: OrganizationProfile,
        *,
        prefix: str = "",
        padding: int = 4,
    ) -> None:
        with self._lock:
            self._profiles[profile.organization_id] = profile
            self._configs[profile.organization_id] = NumberingConfig(
                organization_id=profile.organization_id,
                prefix=prefix,
                padding=padding,
            )

    def _require(self, organization_id: int) -> None:
        if organization_id not in self._profiles:
            raise OrganizationNotFound(organization_id)

    def get_profile(self, organization_id: int) -> OrganizationProfile:
        with self._lock:
            self._require(organization_id)
            return self._profiles[organization_id]

    def get_numbering_config(self, organization_id: int) -> NumberingConfig:
        with self._lock:
            self._require(organization_id)
            return self._configs[organization_id]

    def record_last_number(
        self,
        organization_id: int,
        document_type: DocumentType,
        raw: int,
    ) -> None:
        key = (organization_id, parse_document_type(document_type))
        with self._lock:
            self._require(organization_id)
            if raw > self._last.get(key, 0):
                self._last[key] = raw

    def last_number(self, organization_id: int, document_type: DocumentType) -> int:
        key = (organization_id, parse_document_type(document_type))
        with self._lock:
            self._require(organization_id)
            return self._last.get(key, 0)

    def snapshot(self) -> dict:
        with self._lock:
            return dict(self._last)

    def restore(self, state: dict) -> None:
        with self._lock:
            self._last = dict(state)
