from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status

from halalchain.core.dependencies import (
    get_current_caller,
    get_lifecycle_engine,
    get_trace_service,
)
from halalchain.models.batch import (
    BatchCreate, BatchIdList, BatchRead, CertificateSet,
    HistoryEntryRead, QRCodeRead, StatusUpdate, TransferRequest
)
from halalchain.services.lifecycle import LifecycleEngine
from halalchain.services.trace import TraceService


router = APIRouter()


@router.post(
    "/",
    response_model=BatchRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Batch",
    description="Registers a new batch owned by the calling producer, in status 'Produced'."
)
def create_batch(
    payload: BatchCreate,
    caller: str = Depends(get_current_caller),
    engine: LifecycleEngine = Depends(get_lifecycle_engine)
):
    batch = engine.create_batch(
        payload.batch_id, payload.product_name, caller=caller)
    return BatchRead.from_batch(batch)


@router.get(
    "/",
    response_model=List[BatchRead],
    summary="List Batches",
    description="All batches in creation order."
)
def list_batches(
    owner: Optional[str] = Query(None, description="Filter by current owner"),
    status: Optional[str] = Query(None, description="Filter by status"),
    service: TraceService = Depends(get_trace_service)
):
    return [BatchRead.from_batch(b) for b in service.list_batches(owner=owner, status=status)]


@router.get(
    "/ids",
    response_model=BatchIdList,
    summary="List Batch IDs"
)
def list_batch_ids(
    service: TraceService = Depends(get_trace_service)
):
    ids = service.list_batch_ids()
    return BatchIdList(count=len(ids), batch_ids=ids)


@router.get(
    "/{batch_id}",
    response_model=BatchRead,
    summary="Get Batch"
)
def get_batch(
    batch_id: str,
    service: TraceService = Depends(get_trace_service)
):
    return BatchRead.from_batch(service.get_batch(batch_id))


@router.get(
    "/{batch_id}/history",
    response_model=List[HistoryEntryRead],
    summary="Get Batch History",
    description="Every status change, oldest first."
)
def get_batch_history(
    batch_id: str,
    service: TraceService = Depends(get_trace_service)
):
    return [
        HistoryEntryRead(status=e.status, timestamp=e.timestamp, updated_by=e.updated_by)
        for e in service.get_history(batch_id)
    ]


@router.post(
    "/{batch_id}/certificate",
    response_model=BatchRead,
    summary="Certify Halal"
)
def set_halal_certificate(
    batch_id: str,
    payload: CertificateSet,
    caller: str = Depends(get_current_caller),
    engine: LifecycleEngine = Depends(get_lifecycle_engine)
):
    """
    Halal authorities only. Moves the batch to 'CertifiedHalal' from any status.
    """
    batch = engine.set_halal_certificate(
        batch_id, payload.cert_hash, caller=caller)
    return BatchRead.from_batch(batch)


@router.post(
    "/{batch_id}/status",
    response_model=BatchRead,
    summary="Update Status"
)
def update_status(
    batch_id: str,
    payload: StatusUpdate,
    caller: str = Depends(get_current_caller),
    engine: LifecycleEngine = Depends(get_lifecycle_engine)
):
    """
    Current owner or a halal authority. Any non-empty status is accepted,
    including custom values and earlier stages.
    """
    batch = engine.update_status(batch_id, payload.status, caller=caller)
    return BatchRead.from_batch(batch)


@router.post(
    "/{batch_id}/transfer",
    response_model=BatchRead,
    summary="Transfer Batch"
)
def transfer_batch(
    batch_id: str,
    payload: TransferRequest,
    caller: str = Depends(get_current_caller),
    engine: LifecycleEngine = Depends(get_lifecycle_engine)
):
    """
    Current owner only. The recipient must hold producer, distributor or retailer.
    """
    batch = engine.transfer_batch(batch_id, payload.to, caller=caller)
    return BatchRead.from_batch(batch)


@router.get(
    "/{batch_id}/qr",
    response_model=QRCodeRead,
    summary="Batch QR Code",
    description="Renders a QR code linking to the public trace page of the batch."
)
def get_batch_qr(
    batch_id: str,
    service: TraceService = Depends(get_trace_service)
):
    return service.trace_qr(batch_id)
