from fastapi import APIRouter, Depends

from halalchain.core.dependencies import get_trace_service
from halalchain.models.batch import BatchTrace
from halalchain.services.trace import TraceService


router = APIRouter()


@router.get(
    "/{batch_id:path}",
    response_model=BatchTrace,
    summary="Public Trace",
    description="Public access point for QR codes. Batch details and full provenance, no authentication.",
    tags=["Public"]
)
def get_trace(
    batch_id: str,
    service: TraceService = Depends(get_trace_service)
):
    return service.trace(batch_id)
