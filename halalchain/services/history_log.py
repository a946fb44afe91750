from datetime import datetime
from typing import List
from sqlmodel import Session, select, func

from halalchain.core.exceptions import InvalidArgument
from halalchain.db.schema import HistoryEntry


class HistoryLog:
    """
    Append-only status history per batch. Entries are never updated,
    reordered or deleted; append order is the autoincrement id.
    """

    def __init__(self, session: Session):
        self.session = session

    def append(self, batch_id: str, status: str, updated_by: str, timestamp: datetime) -> HistoryEntry:
        if not status:
            raise InvalidArgument("Status must not be empty")

        entry = HistoryEntry(
            batch_id=batch_id,
            status=status,
            updated_by=updated_by,
            timestamp=timestamp,
        )
        self.session.add(entry)
        self.session.flush()
        return entry

    def list(self, batch_id: str) -> List[HistoryEntry]:
        return list(self.session.exec(
            select(HistoryEntry)
            .where(HistoryEntry.batch_id == batch_id)
            .order_by(HistoryEntry.id)
        ).all())

    def count(self, batch_id: str) -> int:
        return self.session.exec(
            select(func.count()).select_from(HistoryEntry).where(
                HistoryEntry.batch_id == batch_id)
        ).one()
