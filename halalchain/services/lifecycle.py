import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Union
from loguru import logger
from sqlmodel import Session

from halalchain.core.exceptions import InvalidArgument, LedgerError, Unauthorized
from halalchain.core.notifications import NotificationBus, bus as default_bus
from halalchain.db.schema import (
    Batch, BatchStatus, LedgerConfig, LedgerEvent, LedgerEventType,
    Role, CUSTODIAN_ROLES
)
from halalchain.models.event import LedgerNotification
from halalchain.services.batch_store import BatchStore
from halalchain.services.history_log import HistoryLog
from halalchain.services.role_registry import RoleRegistry, is_null_identity


# One state-changing operation at a time, process-wide
_write_lock = threading.Lock()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UnitOfWork:
    """
    Everything one operation writes: a single commit timestamp and the
    notifications to deliver once the transaction has committed.
    """

    def __init__(self, session: Session, timestamp: datetime):
        self.session = session
        self.timestamp = timestamp
        self.notifications: List[LedgerNotification] = []

    def record(self, event_type: LedgerEventType, payload: Dict[str, Any], batch_id: Optional[str] = None):
        self.session.add(LedgerEvent(
            event_type=event_type,
            batch_id=batch_id,
            payload=payload,
            timestamp=self.timestamp,
        ))
        self.notifications.append(LedgerNotification(
            event_type=event_type,
            batch_id=batch_id,
            payload=payload,
            timestamp=self.timestamp,
        ))


class LifecycleEngine:
    """
    Authorization and state transitions for batches and roles.

    Every public method runs under the process-wide write lock inside one
    database transaction. Batch state, history, role membership and the
    persisted notification either all commit or are all rolled back.
    Notifications reach subscribers only after a successful commit.

    Status is deliberately an open string: any identity allowed to update a
    batch may set any non-empty value, including an earlier lifecycle stage.
    """

    def __init__(
        self,
        session: Session,
        clock: Callable[[], datetime] = utcnow,
        notifications: NotificationBus = default_bus,
    ):
        self.session = session
        self.clock = clock
        self.notifications = notifications
        self.roles = RoleRegistry(session)
        self.batches = BatchStore(session)
        self.history = HistoryLog(session)

    @contextmanager
    def _transaction(self, operation: str):
        with _write_lock:
            work = UnitOfWork(self.session, self.clock())
            try:
                yield work
                self.session.commit()
            except LedgerError as e:
                self.session.rollback()
                logger.warning(f"{operation} rejected: {e}")
                raise
            except Exception:
                self.session.rollback()
                logger.exception(f"{operation} failed")
                raise

        self.notifications.publish(work.notifications)

    # --- Setup ---

    def initialize(self, admin_address: str) -> LedgerConfig:
        with self._transaction("initialize") as work:
            config = self.roles.initialize(admin_address, work.timestamp)
        logger.info(f"Ledger administered by {config.admin_address}")
        return config

    # --- Roles ---

    def assign_role(self, role: Union[Role, str], account: str, caller: str) -> Role:
        with self._transaction("assign_role") as work:
            granted = self.roles.grant(caller, role, account, work.timestamp)
            work.record(LedgerEventType.ROLE_ASSIGNED, {
                "role": granted.value,
                "account": account,
            })
        logger.info(f"Role {granted.value} granted to {account}")
        return granted

    def revoke_role(self, role: Union[Role, str], account: str, caller: str) -> Role:
        with self._transaction("revoke_role") as work:
            revoked = self.roles.revoke(caller, role, account)
            work.record(LedgerEventType.ROLE_REVOKED, {
                "role": revoked.value,
                "account": account,
            })
        logger.info(f"Role {revoked.value} revoked from {account}")
        return revoked

    # --- Batches ---

    def create_batch(self, batch_id: str, product_name: str, caller: str) -> Batch:
        with self._transaction("create_batch") as work:
            if not self.roles.has(Role.PRODUCER, caller):
                raise Unauthorized("Caller is not a producer")

            batch = self.batches.create(
                batch_id, product_name, caller, work.timestamp)
            self.history.append(
                batch_id, BatchStatus.PRODUCED.value, caller, work.timestamp)

            work.record(LedgerEventType.BATCH_CREATED, {
                "batch_id": batch_id,
                "product_name": product_name,
                "producer": caller,
            }, batch_id=batch_id)

        logger.info(f"Batch {batch_id} created by {caller}")
        return batch

    def set_halal_certificate(self, batch_id: str, cert_hash: str, caller: str) -> Batch:
        """
        Attaches a certificate and marks the batch CertifiedHalal, whatever
        its current status.
        """
        with self._transaction("set_halal_certificate") as work:
            if not self.roles.has(Role.HALAL_AUTHORITY, caller):
                raise Unauthorized("Caller is not a halal authority")

            self.batches.get(batch_id)
            if not cert_hash:
                raise InvalidArgument("Certificate hash must not be empty")

            self.batches.set_certificate(batch_id, cert_hash)
            batch = self.batches.set_status(
                batch_id, BatchStatus.CERTIFIED_HALAL.value)
            self.history.append(
                batch_id, BatchStatus.CERTIFIED_HALAL.value, caller, work.timestamp)

            work.record(LedgerEventType.HALAL_CERTIFIED, {
                "batch_id": batch_id,
                "cert_hash": cert_hash,
                "certifier": caller,
            }, batch_id=batch_id)

        logger.info(f"Batch {batch_id} certified halal by {caller}")
        return batch

    def update_status(self, batch_id: str, new_status: str, caller: str) -> Batch:
        with self._transaction("update_status") as work:
            batch = self.batches.get(batch_id)

            if caller != batch.current_owner and not self.roles.has(Role.HALAL_AUTHORITY, caller):
                raise Unauthorized("Caller is neither the owner nor a halal authority")

            if not new_status:
                raise InvalidArgument("Status must not be empty")

            batch = self.batches.set_status(batch_id, new_status)
            self.history.append(batch_id, new_status, caller, work.timestamp)

            work.record(LedgerEventType.STATUS_UPDATED, {
                "batch_id": batch_id,
                "status": new_status,
                "updated_by": caller,
            }, batch_id=batch_id)

        logger.info(f"Batch {batch_id} status set to {new_status} by {caller}")
        return batch

    def transfer_batch(self, batch_id: str, to: str, caller: str) -> Batch:
        """
        Moves ownership to `to`. A distributor recipient puts the batch
        InTransit, otherwise a retailer recipient puts it AtRetailer.

        A recipient holding only the producer role takes ownership without
        any status change or history entry.
        """
        with self._transaction("transfer_batch") as work:
            batch = self.batches.get(batch_id)

            if caller != batch.current_owner:
                raise Unauthorized("Caller is not the current owner")

            if is_null_identity(to):
                raise InvalidArgument("Recipient must not be empty")
            if to == caller:
                raise InvalidArgument("Cannot transfer to self")
            if not self.roles.holds_any(to, CUSTODIAN_ROLES):
                raise InvalidArgument(
                    "Recipient must be a producer, distributor or retailer")

            previous_owner = batch.current_owner
            batch = self.batches.set_owner(batch_id, to)

            new_status = None
            if self.roles.has(Role.DISTRIBUTOR, to):
                new_status = BatchStatus.IN_TRANSIT.value
            elif self.roles.has(Role.RETAILER, to):
                new_status = BatchStatus.AT_RETAILER.value

            if new_status:
                batch = self.batches.set_status(batch_id, new_status)
                self.history.append(
                    batch_id, new_status, caller, work.timestamp)

            work.record(LedgerEventType.BATCH_TRANSFERRED, {
                "batch_id": batch_id,
                "from": previous_owner,
                "to": to,
            }, batch_id=batch_id)

        logger.info(f"Batch {batch_id} transferred from {previous_owner} to {to}")
        return batch
