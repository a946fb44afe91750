from fastapi import APIRouter, Depends, status

from halalchain.core.dependencies import (
    get_current_caller,
    get_lifecycle_engine,
    get_trace_service,
)
from halalchain.models.role import AdminRead, RoleChange, RoleCheckRead
from halalchain.services.lifecycle import LifecycleEngine
from halalchain.services.trace import TraceService


router = APIRouter()


@router.get(
    "/admin",
    response_model=AdminRead,
    summary="Get Admin",
    description="The identity allowed to grant and revoke roles."
)
def get_admin(
    service: TraceService = Depends(get_trace_service)
):
    return AdminRead(admin_address=service.admin())


@router.post(
    "/grant",
    response_model=RoleCheckRead,
    status_code=status.HTTP_200_OK,
    summary="Grant Role"
)
def grant_role(
    payload: RoleChange,
    caller: str = Depends(get_current_caller),
    engine: LifecycleEngine = Depends(get_lifecycle_engine)
):
    """
    Admin only. Granting a role the account already holds is a no-op
    that is still announced.
    """
    role = engine.assign_role(payload.role, payload.account, caller=caller)
    return RoleCheckRead(role=role.value, account=payload.account, has_role=True)


@router.post(
    "/revoke",
    response_model=RoleCheckRead,
    status_code=status.HTTP_200_OK,
    summary="Revoke Role"
)
def revoke_role(
    payload: RoleChange,
    caller: str = Depends(get_current_caller),
    engine: LifecycleEngine = Depends(get_lifecycle_engine)
):
    """
    Admin only. Does not affect batches the account already owns.
    """
    role = engine.revoke_role(payload.role, payload.account, caller=caller)
    return RoleCheckRead(role=role.value, account=payload.account, has_role=False)


@router.get(
    "/{role}/{account}",
    response_model=RoleCheckRead,
    summary="Check Role",
    description="Unknown role names are reported as not held."
)
def has_role(
    role: str,
    account: str,
    service: TraceService = Depends(get_trace_service)
):
    return RoleCheckRead(role=role, account=account, has_role=service.has_role(role, account))
