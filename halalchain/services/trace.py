from typing import List, Optional
from urllib.parse import quote
from sqlmodel import Session, select

from halalchain.core.config import settings
from halalchain.db.schema import Batch, HistoryEntry, LedgerEvent
from halalchain.models.batch import (
    BatchRead, BatchTrace, HistoryEntryRead, QRCodeRead
)
from halalchain.models.event import LedgerEventRead
from halalchain.services.batch_store import BatchStore
from halalchain.services.history_log import HistoryLog
from halalchain.services.role_registry import RoleRegistry
from halalchain.utils.qr import render_trace_qr


class TraceService:
    """
    Read-only projections over batches, history, roles and notifications.
    Nothing here writes to the ledger tables.
    """

    def __init__(self, session: Session):
        self.session = session
        self.roles = RoleRegistry(session)
        self.batches = BatchStore(session)
        self.history = HistoryLog(session)

    def get_batch(self, batch_id: str) -> Batch:
        return self.batches.get(batch_id)

    def get_history(self, batch_id: str) -> List[HistoryEntry]:
        # Distinguish "no such batch" from an empty history
        self.batches.get(batch_id)
        return self.history.list(batch_id)

    def list_batch_ids(self) -> List[str]:
        return self.batches.list_ids()

    def batch_count(self) -> int:
        return self.batches.count()

    def list_batches(self, owner: Optional[str] = None, status: Optional[str] = None) -> List[Batch]:
        return self.batches.list(owner=owner, status=status)

    def has_role(self, role_name: str, address: str) -> bool:
        return self.roles.has(role_name, address)

    def admin(self) -> str:
        return self.roles.admin()

    def trace(self, batch_id: str) -> BatchTrace:
        """
        Consumer-facing provenance: the batch and every recorded status change.
        """
        batch = self.batches.get(batch_id)
        entries = self.history.list(batch_id)
        return BatchTrace(
            batch=BatchRead.from_batch(batch),
            certified=bool(batch.halal_cert_hash),
            history=[
                HistoryEntryRead(
                    status=e.status, timestamp=e.timestamp, updated_by=e.updated_by)
                for e in entries
            ],
        )

    def trace_url(self, batch_id: str) -> str:
        # Served by the public trace route, which accepts ids containing '/'
        return f"{settings.public_trace_url}/{quote(batch_id, safe='')}"

    def trace_qr(self, batch_id: str) -> QRCodeRead:
        self.batches.get(batch_id)
        url = self.trace_url(batch_id)
        return QRCodeRead(
            trace_url=url,
            qr_code_url=render_trace_qr(batch_id, url),
        )

    def list_events(self, after_id: int = 0, limit: int = 100) -> List[LedgerEventRead]:
        events = self.session.exec(
            select(LedgerEvent)
            .where(LedgerEvent.id > after_id)
            .order_by(LedgerEvent.id)
            .limit(limit)
        ).all()
        return [
            LedgerEventRead(
                id=e.id,
                event_type=e.event_type,
                batch_id=e.batch_id,
                payload=e.payload,
                timestamp=e.timestamp,
            )
            for e in events
        ]
