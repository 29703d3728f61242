import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("invoicing_organizations", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Invoice",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("counterparty_id", models.BigIntegerField()),
                ("counterparty_name", models.CharField(max_length=255)),
                ("number", models.CharField(max_length=64)),
                (
                    "sequence_number",
                    models.PositiveBigIntegerField(
                        help_text="Raw counter value behind the formatted number.",
                    ),
                ),
                ("issue_date", models.DateField()),
                (
                    "document_type",
                    models.CharField(
                        choices=[
                            ("normal", "Normal"),
                            ("rectificative", "Rectificative"),
                            ("simplified", "Simplified"),
                        ],
                        default="normal",
                        max_length=20,
                    ),
                ),
                ("base_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("tax_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("withholding_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("discount_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("total_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("sent", "Sent"),
                            ("paid", "Paid"),
                            ("overdue", "Overdue"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="sent",
                        max_length=20,
                    ),
                ),
                ("notes", models.TextField(blank=True, default="")),
                ("payment_method", models.CharField(max_length=20)),
                (
                    "payment_method_other",
                    models.CharField(blank=True, default="", max_length=255),
                ),
                ("document_url", models.CharField(blank=True, default="", max_length=500)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "organization",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="invoices",
                        to="invoicing_organizations.organization",
                    ),
                ),
            ],
            options={
                "db_table": "invoicing_invoices",
                "ordering": ["organization_id", "document_type", "sequence_number"],
            },
        ),
        migrations.CreateModel(
            name="InvoiceLine",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("position", models.PositiveIntegerField()),
                ("description", models.CharField(max_length=500)),
                ("quantity", models.DecimalField(decimal_places=2, max_digits=10)),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=12)),
                (
                    "discount_percentage",
                    models.DecimalField(decimal_places=2, default=0, max_digits=5),
                ),
                ("tax_rate", models.DecimalField(decimal_places=2, default=0, max_digits=5)),
                (
                    "withholding_rate",
                    models.DecimalField(decimal_places=2, default=0, max_digits=5),
                ),
                (
                    "line_amount",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Post-discount line base, rounded to cents.",
                        max_digits=12,
                    ),
                ),
                (
                    "source_record_id",
                    models.CharField(blank=True, max_length=64, null=True, unique=True),
                ),
                (
                    "invoice",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="lines",
                        to="invoicing_invoices.invoice",
                    ),
                ),
            ],
            options={
                "db_table": "invoicing_invoice_lines",
                "ordering": ["invoice_id", "position"],
            },
        ),
        migrations.AddConstraint(
            model_name="invoice",
            constraint=models.UniqueConstraint(
                fields=("organization", "document_type", "number"),
                name="uq_invoice_org_type_number",
            ),
        ),
        migrations.AddIndex(
            model_name="invoice",
            index=models.Index(
                fields=["organization", "issue_date"],
                name="idx_invoice_org_issue",
            ),
        ),
    ]
