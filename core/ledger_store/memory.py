"""
FieldSync Ledger Store — In-Memory Implementation
===================================================
Process-local ledger store for tests and single-process deployments.

Values are deep-copied on the way in and out: no caller ever holds
a reference into store state.
"""

from __future__ import annotations

from copy import deepcopy
from threading import RLock
from typing import Dict, List, Optional, Tuple

from core.ledger_store.base import BaseLedgerStore
from core.ledger_store.errors import VersionConflict
from core.ledger_store.paths import normalize_path, split_path
from core.ledger_store.snapshot import Snapshot, Write, WriteMode


class InMemoryLedgerStore(BaseLedgerStore):
    """
    In-memory ledger.

    Layout: {collection: {record_id: (value, version)}}.
    Collection snapshots report the store revision (one per commit).
    """

    def __init__(self, initial: Optional[Dict[str, dict]] = None):
        super().__init__()
        self._records: Dict[str, Dict[str, Tuple[dict, int]]] = {}
        self._revision = 0
        self._data_lock = RLock()

        for path, value in (initial or {}).items():
            collection, record_id = split_path(path)
            if record_id is None:
                raise ValueError(f"Seed data must target records, got '{path}'.")
            self._records.setdefault(collection, {})[record_id] = (deepcopy(value), 1)

    @property
    def revision(self) -> int:
        return self._revision

    def _read(self, path: str) -> Snapshot:
        collection, record_id = split_path(path)
        with self._data_lock:
            records = self._records.get(collection, {})
            if record_id is None:
                children = {
                    rid: deepcopy(value)
                    for rid, (value, _) in sorted(records.items())
                }
                return Snapshot(path=collection, value=children or None,
                                version=self._revision)

            entry = records.get(record_id)
            if entry is None:
                return Snapshot(path=path, value=None, version=0)
            value, version = entry
            return Snapshot(path=path, value=deepcopy(value), version=version)

    def _version_of(self, path: str) -> int:
        collection, record_id = split_path(path)
        entry = self._records.get(collection, {}).get(record_id)
        return entry[1] if entry else 0

    def _apply(self, writes: List[Write]) -> Dict[str, int]:
        with self._data_lock:
            # Validate the whole batch before touching anything
            for w in writes:
                if w.expected_version is None:
                    continue
                actual = self._version_of(w.path)
                if actual != w.expected_version:
                    raise VersionConflict(w.path, w.expected_version, actual)

            versions: Dict[str, int] = {}
            for w in writes:
                path = normalize_path(w.path)
                collection, record_id = split_path(path)
                records = self._records.setdefault(collection, {})
                current = records.get(record_id)

                if w.mode == WriteMode.DELETE:
                    records.pop(record_id, None)
                    versions[w.path] = 0
                    continue

                if w.mode == WriteMode.UPDATE and current is not None:
                    value = {**current[0], **deepcopy(w.value)}
                else:
                    value = deepcopy(w.value)

                version = (current[1] if current else 0) + 1
                records[record_id] = (value, version)
                versions[w.path] = version

            self._revision += 1
            self._enqueue(self._snapshots_for([w.path for w in writes]))

        return versions
