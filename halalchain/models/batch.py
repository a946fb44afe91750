from typing import List
from datetime import datetime
from sqlmodel import SQLModel, Field

from halalchain.db.schema import is_custom_status


class BatchCreate(SQLModel):
    """
    Payload for registering a new batch. Emptiness is checked by the
    lifecycle engine so the caller gets an InvalidArgument error.
    """
    batch_id: str = Field(max_length=128, description="Unique batch identifier (e.g. B1)")
    product_name: str = Field(max_length=255, description="Product label")


class CertificateSet(SQLModel):
    cert_hash: str = Field(
        max_length=255, description="Content address of the certificate (e.g. IPFS CID)")


class StatusUpdate(SQLModel):
    status: str = Field(
        max_length=128, description="New status. Conventional or custom.")


class TransferRequest(SQLModel):
    to: str = Field(description="Identity receiving ownership")


class BatchRead(SQLModel):
    batch_id: str
    product_name: str
    producer: str
    current_owner: str
    status: str
    halal_cert_hash: str
    created_at: datetime
    is_custom_status: bool = False

    @classmethod
    def from_batch(cls, batch) -> "BatchRead":
        return cls(
            batch_id=batch.batch_id,
            product_name=batch.product_name,
            producer=batch.producer,
            current_owner=batch.current_owner,
            status=batch.status,
            halal_cert_hash=batch.halal_cert_hash,
            created_at=batch.created_at,
            is_custom_status=is_custom_status(batch.status),
        )


class HistoryEntryRead(SQLModel):
    status: str
    timestamp: datetime
    updated_by: str


class BatchIdList(SQLModel):
    count: int
    batch_ids: List[str]


class BatchTrace(SQLModel):
    """
    Public provenance view: the batch plus its complete status history.
    """
    batch: BatchRead
    certified: bool
    history: List[HistoryEntryRead] = []


class QRCodeRead(SQLModel):
    trace_url: str
    qr_code_url: str
