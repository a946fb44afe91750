from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from halalchain.core.config import settings
from halalchain.models.auth import TokenData


class IdentityService:
    """
    Resolves the caller identity from bearer tokens.

    Tokens are issued by the upstream identity provider, signed with the
    shared secret; the `sub` claim carries the caller's address. The ledger
    trusts a valid access token and performs no further authentication.
    """
    ALGORITHM = "HS256"

    def __init__(self, secret_key: Optional[str] = None):
        self.secret_key = secret_key or settings.secret_key

    def issue_access_token(self, address: str, expires_delta: Optional[timedelta] = None) -> str:
        if expires_delta is None:
            expires_delta = timedelta(
                minutes=settings.access_token_expire_minutes)
        to_encode = {
            "sub": address,
            "exp": datetime.now(timezone.utc) + expires_delta,
            "type": "access"
        }
        return jwt.encode(to_encode, self.secret_key, algorithm=self.ALGORITHM)

    def verify_access_token(self, token: str) -> Optional[TokenData]:
        try:
            payload = jwt.decode(token, self.secret_key,
                                 algorithms=[self.ALGORITHM])
        except jwt.PyJWTError:
            return None

        address = payload.get("sub")
        if not address or payload.get("type") != "access":
            return None

        return TokenData(address=address)
