from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session

from halalchain.db.core import get_session
from halalchain.services.identity import IdentityService
from halalchain.services.lifecycle import LifecycleEngine
from halalchain.services.trace import TraceService

# Tokens come from the upstream identity provider, not from this service
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")


def get_identity_service() -> IdentityService:
    return IdentityService()


def get_lifecycle_engine(session: Session = Depends(get_session)) -> LifecycleEngine:
    """Creates a LifecycleEngine bound to the active DB session."""
    return LifecycleEngine(session)


def get_trace_service(session: Session = Depends(get_session)) -> TraceService:
    return TraceService(session)


def get_current_caller(
    token: str = Depends(oauth2_scheme),
    service: IdentityService = Depends(get_identity_service)
) -> str:
    """
    Resolves the caller identity from the bearer token.
    Every state-changing route depends on this.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    token_data = service.verify_access_token(token)
    if not token_data:
        raise credentials_exception

    return token_data.address
