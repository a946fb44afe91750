from datetime import datetime
from typing import List, Optional
from sqlmodel import Session, select, func

from halalchain.core.exceptions import AlreadyExists, InvalidArgument, NotFound
from halalchain.db.schema import Batch, BatchIndex, BatchStatus


class BatchStore:
    """
    Current state of every batch, keyed by batch id, plus the creation-order
    index used for enumeration.

    The set_* mutators write without any authorization. They are meant to be
    called by the LifecycleEngine only, which pairs each status change with a
    history entry inside the same transaction.
    """

    def __init__(self, session: Session):
        self.session = session

    def exists(self, batch_id: str) -> bool:
        if not batch_id:
            return False
        return self.session.get(Batch, batch_id) is not None

    def get(self, batch_id: str) -> Batch:
        batch = self.session.get(Batch, batch_id) if batch_id else None
        if not batch:
            raise NotFound(f"Batch '{batch_id}' does not exist")
        return batch

    def create(self, batch_id: str, product_name: str, producer: str, timestamp: datetime) -> Batch:
        if not batch_id:
            raise InvalidArgument("Batch ID must not be empty")
        if not product_name:
            raise InvalidArgument("Product name must not be empty")
        if self.exists(batch_id):
            raise AlreadyExists(f"Batch '{batch_id}' already exists")

        batch = Batch(
            batch_id=batch_id,
            product_name=product_name,
            producer=producer,
            current_owner=producer,
            status=BatchStatus.PRODUCED.value,
            halal_cert_hash="",
            created_at=timestamp,
        )
        self.session.add(batch)
        # Parent row must be flushed before the index row references it
        self.session.flush()

        self.session.add(BatchIndex(batch_id=batch_id))
        self.session.flush()
        return batch

    def set_certificate(self, batch_id: str, cert_hash: str) -> Batch:
        batch = self.get(batch_id)
        batch.halal_cert_hash = cert_hash
        self.session.add(batch)
        return batch

    def set_status(self, batch_id: str, status: str) -> Batch:
        batch = self.get(batch_id)
        batch.status = status
        self.session.add(batch)
        return batch

    def set_owner(self, batch_id: str, owner: str) -> Batch:
        batch = self.get(batch_id)
        batch.current_owner = owner
        self.session.add(batch)
        return batch

    def list_ids(self) -> List[str]:
        return list(self.session.exec(
            select(BatchIndex.batch_id).order_by(BatchIndex.position)
        ).all())

    def count(self) -> int:
        return self.session.exec(select(func.count()).select_from(BatchIndex)).one()

    def list(self, owner: Optional[str] = None, status: Optional[str] = None) -> List[Batch]:
        """
        Batches in creation order, optionally narrowed to an owner and/or status.
        """
        statement = (
            select(Batch)
            .join(BatchIndex, BatchIndex.batch_id == Batch.batch_id)
            .order_by(BatchIndex.position)
        )
        if owner:
            statement = statement.where(Batch.current_owner == owner)
        if status:
            statement = statement.where(Batch.status == status)
        return list(self.session.exec(statement).all())
