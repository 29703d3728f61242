from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Organization",
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
                ("name", models.CharField(max_length=255)),
                ("tax_id", models.CharField(blank=True, default="", max_length=32)),
                ("address", models.CharField(blank=True, default="", max_length=255)),
                ("postal_code", models.CharField(blank=True, default="", max_length=16)),
                ("city", models.CharField(blank=True, default="", max_length=120)),
                (
                    "invoice_prefix",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Prefix of normal invoice numbers (e.g. FACT).",
                        max_length=20,
                    ),
                ),
                (
                    "invoice_padding_length",
                    models.PositiveSmallIntegerField(
                        default=4,
                        help_text="Zero-padding width of the numeric part.",
                    ),
                ),
                ("last_invoice_number", models.PositiveBigIntegerField(default=0)),
                (
                    "last_rectificative_invoice_number",
                    models.PositiveBigIntegerField(default=0),
                ),
                (
                    "last_simplified_invoice_number",
                    models.PositiveBigIntegerField(default=0),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "db_table": "invoicing_organizations",
                "ordering": ["id"],
            },
        ),
    ]
