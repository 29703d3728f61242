"""
Invoicing Organizations - App Configuration
===========================================
Organization numbering configuration and "last number" bookkeeping.
"""

from django.apps import AppConfig


class OrganizationsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "invoicing.organizations"
    label = "invoicing_organizations"
    verbose_name = "Invoicing Organizations"
