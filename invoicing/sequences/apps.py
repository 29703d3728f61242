"""
Invoicing Sequences - App Configuration
=======================================
Durable per-organization, per-document-type counters.
"""

from django.apps import AppConfig


class SequencesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "invoicing.sequences"
    label = "invoicing_sequences"
    verbose_name = "Invoicing Sequences"
