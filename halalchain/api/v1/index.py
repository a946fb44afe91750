from fastapi import APIRouter, Depends, HTTPException, status
from halalchain.db.core import get_session
from halalchain.services.role_registry import RoleRegistry
from sqlmodel import Session, text
from loguru import logger

router = APIRouter()


@router.get("/", status_code=status.HTTP_200_OK)
def index():
    return {"status": "API is running"}


@router.get("/readiness", status_code=status.HTTP_200_OK)
def readiness_check(session: Session = Depends(get_session)):
    """
    Ready once the database answers and the ledger has its admin.
    """
    try:
        session.exec(text("SELECT 1"))
    except Exception:
        logger.exception("Database readiness check failed")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database not ready"
        )

    try:
        admin = RoleRegistry(session).admin()
    except RuntimeError:
        logger.warning("Readiness check: ledger has no admin yet")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Ledger not initialized"
        )

    return {"status": "ready", "database": "online", "admin_address": admin}
