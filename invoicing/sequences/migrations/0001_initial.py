from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="SequenceCounter",
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
                (
                    "organization_id",
                    models.BigIntegerField(
                        help_text="Owner organization. Counters are tenant-scoped.",
                    ),
                ),
                (
                    "document_type",
                    models.CharField(
                        choices=[
                            ("normal", "Normal"),
                            ("rectificative", "Rectificative"),
                            ("simplified", "Simplified"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "last_issued",
                    models.PositiveBigIntegerField(
                        default=0,
                        help_text="Last raw sequence value handed out. 0 = nothing issued yet.",
                    ),
                ),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "invoicing_sequence_counters",
                "ordering": ["organization_id", "document_type"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("organization_id", "document_type"),
                        name="uq_seq_org_doc_type",
                    )
                ],
            },
        ),
    ]
