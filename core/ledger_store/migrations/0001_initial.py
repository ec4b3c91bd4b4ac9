import django.core.serializers.json
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="LedgerNode",
            fields=[
                (
                    "path",
                    models.CharField(
                        help_text="Full record path, e.g. 'materials/m-1'.",
                        max_length=255,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "collection",
                    models.CharField(
                        db_index=True,
                        help_text="First path segment, e.g. 'materials'.",
                        max_length=64,
                    ),
                ),
                (
                    "record_id",
                    models.CharField(
                        help_text="Second path segment.",
                        max_length=190,
                    ),
                ),
                (
                    "value",
                    models.JSONField(
                        encoder=django.core.serializers.json.DjangoJSONEncoder,
                        help_text="Record payload (full snapshot).",
                    ),
                ),
                (
                    "version",
                    models.PositiveIntegerField(
                        default=1,
                        help_text="Incremented on every write. 0 is reserved for 'absent'.",
                    ),
                ),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "fieldsync_ledger_node",
                "ordering": ["path"],
            },
        ),
        migrations.AddConstraint(
            model_name="ledgernode",
            constraint=models.UniqueConstraint(
                fields=("collection", "record_id"),
                name="uq_ledger_collection_record",
            ),
        ),
    ]
