from datetime import datetime
from typing import Iterable, Optional, Union
from loguru import logger
from sqlmodel import Session

from halalchain.core.exceptions import InvalidArgument, Unauthorized
from halalchain.db.schema import LedgerConfig, Role, RoleAssignment


NULL_ADDRESS = "0x0000000000000000000000000000000000000000"


def is_null_identity(address: Optional[str]) -> bool:
    return not address or address == NULL_ADDRESS


class RoleRegistry:
    """
    Role membership per identity, plus the single admin identity.

    Roles are independent flags, not a hierarchy: an identity may hold any
    combination of them. Only the admin may grant or revoke.
    """

    def __init__(self, session: Session):
        self.session = session

    def _config(self) -> Optional[LedgerConfig]:
        return self.session.get(LedgerConfig, 1)

    def initialize(self, admin_address: str, timestamp: datetime) -> LedgerConfig:
        """
        Records the admin identity on first start. An existing ledger keeps
        its original admin whatever is passed here.
        """
        config = self._config()
        if config:
            if config.admin_address != admin_address:
                logger.warning(
                    f"Ledger already administered by {config.admin_address}; ignoring configured admin {admin_address}")
            return config

        if is_null_identity(admin_address):
            raise InvalidArgument("Admin address must not be empty")

        config = LedgerConfig(admin_address=admin_address, created_at=timestamp)
        self.session.add(config)
        return config

    def admin(self) -> str:
        config = self._config()
        if not config:
            raise RuntimeError("Ledger has not been initialized.")
        return config.admin_address

    def require_admin(self, caller: str):
        if caller != self.admin():
            raise Unauthorized("Only admin can perform this action")

    def has(self, role: Union[Role, str, None], address: Optional[str]) -> bool:
        """
        Membership check. Unrecognized role names are simply not held.
        """
        resolved = role if isinstance(role, Role) else Role.parse(role)
        if resolved is None or not address:
            return False
        return self.session.get(RoleAssignment, (address, resolved)) is not None

    def holds_any(self, address: str, roles: Iterable[Role]) -> bool:
        return any(self.has(role, address) for role in roles)

    def _resolve(self, role: Union[Role, str]) -> Role:
        resolved = role if isinstance(role, Role) else Role.parse(role)
        if resolved is None:
            raise InvalidArgument(f"Unknown role '{role}'")
        return resolved

    def grant(self, caller: str, role: Union[Role, str], address: str, timestamp: datetime) -> Role:
        self.require_admin(caller)
        resolved = self._resolve(role)
        if is_null_identity(address):
            raise InvalidArgument("Account must not be empty")

        assignment = self.session.get(RoleAssignment, (address, resolved))
        if assignment:
            assignment.granted_at = timestamp
        else:
            assignment = RoleAssignment(
                address=address, role=resolved, granted_at=timestamp)
        self.session.add(assignment)
        self.session.flush()
        return resolved

    def revoke(self, caller: str, role: Union[Role, str], address: str) -> Role:
        self.require_admin(caller)
        resolved = self._resolve(role)
        if is_null_identity(address):
            raise InvalidArgument("Account must not be empty")

        assignment = self.session.get(RoleAssignment, (address, resolved))
        if assignment:
            self.session.delete(assignment)
            self.session.flush()
        return resolved
