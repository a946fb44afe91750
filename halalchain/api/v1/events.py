from typing import List
from fastapi import APIRouter, Depends, Query

from halalchain.core.dependencies import get_trace_service
from halalchain.models.event import LedgerEventRead
from halalchain.services.trace import TraceService


router = APIRouter()


@router.get(
    "/",
    response_model=List[LedgerEventRead],
    summary="List Notifications",
    description="Committed ledger notifications in commit order. Page with the last seen id."
)
def list_events(
    after: int = Query(0, ge=0, description="Return events with a greater id"),
    limit: int = Query(100, ge=1, le=1000),
    service: TraceService = Depends(get_trace_service)
):
    return service.list_events(after_id=after, limit=limit)
