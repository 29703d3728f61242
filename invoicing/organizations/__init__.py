"""
Invoicing Organizations - Public API
====================================
"""

from invoicing.organizations.directory import (
    LAST_NUMBER_FIELDS,
    DjangoOrganizationDirectory,
    InMemoryOrganizationDirectory,
    OrganizationDirectory,
    OrganizationProfile,
)

__all__ = [
    "LAST_NUMBER_FIELDS",
    "OrganizationDirectory",
    "OrganizationProfile",
    "DjangoOrganizationDirectory",
    "InMemoryOrganizationDirectory",
]
