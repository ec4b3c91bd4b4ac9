"""
FieldSync Ledger Store — Django Persistence
=============================================
Ledger store backed by the LedgerNode table.

Commit flow (NON-NEGOTIABLE):
    1. Lock every target row (select_for_update) inside transaction.atomic()
    2. Check expected versions for the whole batch
    3. Apply all writes
    4. Publish snapshots AFTER commit only (transaction.on_commit)

If ANY step fails → nothing is written. Database failures surface
as StoreIOError; version mismatches as VersionConflict.

Subscriptions are process-local: only writes made through this
store instance are published to its subscribers.
"""

from __future__ import annotations

import logging
from typing import Dict, List

from django.db import DatabaseError, transaction

from core.ledger_store.base import BaseLedgerStore
from core.ledger_store.errors import LedgerStoreError, StoreIOError, VersionConflict
from core.ledger_store.models import LedgerNode
from core.ledger_store.paths import split_path
from core.ledger_store.snapshot import Snapshot, Write, WriteMode

logger = logging.getLogger("fieldsync.ledger")


class DjangoLedgerStore(BaseLedgerStore):
    """Ledger store persisted through the Django ORM."""

    def __init__(self, using: str = "default"):
        super().__init__()
        self._using = using

    def _read(self, path: str) -> Snapshot:
        collection, record_id = split_path(path)
        try:
            if record_id is None:
                rows = list(
                    LedgerNode.objects.using(self._using)
                    .filter(collection=collection)
                    .order_by("record_id")
                )
                children = {row.record_id: row.value for row in rows}
                version = max((row.version for row in rows), default=0)
                return Snapshot(path=collection, value=children or None, version=version)

            row = LedgerNode.objects.using(self._using).filter(path=path).first()
        except DatabaseError as exc:
            raise StoreIOError(f"Ledger read failed for '{path}': {exc}") from exc

        if row is None:
            return Snapshot(path=path, value=None, version=0)
        return Snapshot(path=path, value=row.value, version=row.version)

    def _apply(self, writes: List[Write]) -> Dict[str, int]:
        paths = [w.path for w in writes]
        versions: Dict[str, int] = {}

        try:
            with transaction.atomic(using=self._using):
                rows = {
                    row.path: row
                    for row in LedgerNode.objects.using(self._using)
                    .select_for_update()
                    .filter(path__in=paths)
                }

                for w in writes:
                    if w.expected_version is None:
                        continue
                    row = rows.get(w.path)
                    actual = row.version if row else 0
                    if actual != w.expected_version:
                        raise VersionConflict(w.path, w.expected_version, actual)

                for w in writes:
                    versions[w.path] = self._apply_one(w, rows.get(w.path))

                transaction.on_commit(
                    lambda: self._enqueue(self._snapshots_for(paths)),
                    using=self._using,
                )

        except LedgerStoreError:
            raise
        except DatabaseError as exc:
            logger.error(f"Ledger commit aborted for {paths}: {exc}", exc_info=True)
            raise StoreIOError(f"Ledger commit aborted: {exc}") from exc

        return versions

    def _apply_one(self, w: Write, row: LedgerNode | None) -> int:
        if w.mode == WriteMode.DELETE:
            if row is not None:
                row.delete(using=self._using)
            return 0

        if row is None:
            collection, record_id = split_path(w.path)
            row = LedgerNode(
                path=w.path,
                collection=collection,
                record_id=record_id,
                value=dict(w.value),
                version=1,
            )
            row.save(using=self._using, force_insert=True)
            return row.version

        if w.mode == WriteMode.UPDATE:
            row.value = {**row.value, **w.value}
        else:
            row.value = dict(w.value)
        row.version += 1
        row.save(using=self._using, update_fields=["value", "version", "updated_at"])
        return row.version
