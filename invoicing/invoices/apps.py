"""
Invoicing Invoices - App Configuration
======================================
Persisted invoices and their lines.
"""

from django.apps import AppConfig


class InvoicesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "invoicing.invoices"
    label = "invoicing_invoices"
    verbose_name = "Invoicing Invoices"
