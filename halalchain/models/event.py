from typing import Any, Dict, Optional
from datetime import datetime
from sqlmodel import SQLModel

from halalchain.db.schema import LedgerEventType


class LedgerNotification(SQLModel):
    """
    A notification as delivered to subscribers and returned to indexers.
    """
    event_type: LedgerEventType
    batch_id: Optional[str] = None
    payload: Dict[str, Any] = {}
    timestamp: datetime


class LedgerEventRead(LedgerNotification):
    id: int
