"""
FieldSync Ledger Store — Persistent Node Model
================================================
One row per ledger record ('collection/id').

The JSON value is the record's full payload as written by the
owning component's to_record(). version increments on every write
and backs compare-and-swap commits.
"""

from django.core.serializers.json import DjangoJSONEncoder
from django.db import models


class LedgerNode(models.Model):
    path = models.CharField(
        max_length=255,
        primary_key=True,
        help_text="Full record path, e.g. 'materials/m-1'.",
    )

    collection = models.CharField(
        max_length=64,
        db_index=True,
        help_text="First path segment, e.g. 'materials'.",
    )

    record_id = models.CharField(
        max_length=190,
        help_text="Second path segment.",
    )

    value = models.JSONField(
        encoder=DjangoJSONEncoder,
        help_text="Record payload (full snapshot).",
    )

    version = models.PositiveIntegerField(
        default=1,
        help_text="Incremented on every write. 0 is reserved for 'absent'.",
    )

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "ledger_store"
        db_table = "fieldsync_ledger_node"
        ordering = ["path"]
        constraints = [
            models.UniqueConstraint(
                fields=("collection", "record_id"),
                name="uq_ledger_collection_record",
            ),
        ]

    def __str__(self):
        return f"{self.path}@{self.version}"
