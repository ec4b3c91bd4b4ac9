"""
FieldSync Requests Engine — Request Ledger
============================================
RequestLedger owns material_requests/{id}.

Requests are appended as pending and resolved exactly once by the
fulfillment coordinator. The ledger only builds the writes; the
coordinator commits them together with stock and budget changes.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional, Tuple

from core.commands.errors import NotFound
from core.ledger_store import MATERIAL_REQUESTS, LedgerStore, Write, record_path
from core.primitives import MaterialRequest, RequestStatus
from core.primitives.coercion import datetime_to_iso

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class RequestLedger:

    def __init__(self, store: LedgerStore):
        self._store = store

    @staticmethod
    def path(request_id: str) -> str:
        return record_path(MATERIAL_REQUESTS, request_id)

    # ── Reads ─────────────────────────────────────────────────

    def read(self, request_id: str) -> Tuple[MaterialRequest, int]:
        snapshot = self._store.read_once(self.path(request_id))
        if not snapshot.exists:
            raise NotFound("Material request", request_id)
        return MaterialRequest.from_record(request_id, snapshot.value), snapshot.version

    def get(self, request_id: str) -> MaterialRequest:
        return self.read(request_id)[0]

    def list_requests(self, status: Optional[RequestStatus] = None) -> List[MaterialRequest]:
        """All requests, newest first, optionally filtered by status."""
        snapshot = self._store.read_once(MATERIAL_REQUESTS)
        return requests_from_children(snapshot.children(), status)

    # ── Writes ────────────────────────────────────────────────

    def append_pending(self, request: MaterialRequest) -> MaterialRequest:
        if request.status != RequestStatus.PENDING:
            raise ValueError("Only pending requests can be appended.")
        self._store.commit([Write.create(self.path(request.request_id), request.to_record())])
        return request

    def resolution_write(self, request: MaterialRequest, expected_version: int) -> Write:
        """Status, responded_at and response_message of a resolved request."""
        return Write.update(
            self.path(request.request_id),
            {
                "status": request.status.value,
                "responded_at": datetime_to_iso(request.responded_at),
                "response_message": request.response_message,
            },
            expected_version=expected_version,
        )

    def delivery_assigned_write(self, request_id: str, expected_version: int) -> Write:
        """Conditional on the request version, so a deleted request is never recreated."""
        if expected_version < 1:
            raise ValueError("delivery_assigned needs the version of an existing request.")
        return Write.update(
            self.path(request_id),
            {"delivery_assigned": True},
            expected_version=expected_version,
        )


def requests_from_children(
    children: dict,
    status: Optional[RequestStatus] = None,
) -> List[MaterialRequest]:
    """Typed requests from a material_requests collection snapshot, newest first."""
    requests = [
        MaterialRequest.from_record(request_id, raw)
        for request_id, raw in children.items()
    ]
    if status is not None:
        requests = [r for r in requests if r.status == status]
    return sorted(requests, key=lambda r: (r.requested_at or _EPOCH, r.request_id), reverse=True)
