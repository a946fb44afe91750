from typing import Optional, Dict, Any
from datetime import datetime, timezone
from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator
from sqlmodel import SQLModel, Field, JSON
from enum import Enum


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware UTC timestamps on every backend. SQLite keeps no offset,
    so values read back without one are UTC by construction.
    """
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


class Role(str, Enum):
    PRODUCER = "producer"
    HALAL_AUTHORITY = "halal_authority"
    DISTRIBUTOR = "distributor"
    RETAILER = "retailer"

    @classmethod
    def parse(cls, name: Optional[str]) -> Optional["Role"]:
        """
        Resolves a role by value ('producer'), member name ('PRODUCER') or
        conventional constant name ('PRODUCER_ROLE'). Case-insensitive.
        Returns None for anything unrecognized.
        """
        if not name:
            return None
        key = name.strip().lower()
        if key.endswith("_role"):
            key = key[:-len("_role")]
        try:
            return cls(key)
        except ValueError:
            return None


# Roles allowed to receive ownership of a batch
CUSTODIAN_ROLES = (Role.PRODUCER, Role.DISTRIBUTOR, Role.RETAILER)


class BatchStatus(str, Enum):
    """
    Conventional lifecycle stages. Status stays an open string on the batch:
    any other non-empty value is a custom status.
    """
    PRODUCED = "Produced"
    CERTIFIED_HALAL = "CertifiedHalal"
    IN_TRANSIT = "InTransit"
    AT_RETAILER = "AtRetailer"
    SOLD = "Sold"


def is_custom_status(value: str) -> bool:
    return value not in {s.value for s in BatchStatus}


class LedgerEventType(str, Enum):
    BATCH_CREATED = "BatchCreated"
    HALAL_CERTIFIED = "HalalCertified"
    STATUS_UPDATED = "StatusUpdated"
    BATCH_TRANSFERRED = "BatchTransferred"
    ROLE_ASSIGNED = "RoleAssigned"
    ROLE_REVOKED = "RoleRevoked"


class LedgerConfig(SQLModel, table=True):
    """
    Singleton row written once when the ledger is initialized.
    The admin identity recorded here is the only identity allowed to grant
    or revoke roles, and it never changes afterwards.
    """
    id: int = Field(
        default=1,
        primary_key=True,
        description="Always 1. There is exactly one ledger per database."
    )
    admin_address: str = Field(
        description="Identity of the ledger administrator. Example: '0xA11CE'"
    )
    created_at: datetime = Field(
        sa_type=UTCDateTime,
        description="Timestamp of ledger initialization."
    )


class RoleAssignment(SQLModel, table=True):
    """
    Membership of one identity in one role.
    A row exists while the role is held; revocation deletes the row.
    """
    address: str = Field(
        primary_key=True,
        description="The identity holding the role. Example: '0xB0B'"
    )
    role: Role = Field(
        primary_key=True,
        description="The role held. Example: 'distributor'"
    )
    granted_at: datetime = Field(
        sa_type=UTCDateTime,
        description="Commit timestamp of the most recent grant."
    )


class Batch(SQLModel, table=True):
    """
    Current state of a tracked product batch.
    Rows are never deleted, so presence of a row is the existence flag.
    """
    batch_id: str = Field(
        primary_key=True,
        description="Caller-supplied unique identifier. Example: 'B1'"
    )
    product_name: str = Field(
        description="Immutable product label. Example: 'Widget'"
    )
    producer: str = Field(
        index=True,
        description="Identity that created the batch. Immutable."
    )
    current_owner: str = Field(
        index=True,
        description="Identity with transfer and update rights."
    )
    status: str = Field(
        default=BatchStatus.PRODUCED.value,
        index=True,
        description="Lifecycle stage. Conventional values or a custom string. Example: 'InTransit'"
    )
    halal_cert_hash: str = Field(
        default="",
        description="Content address of the halal certificate document. Empty until certified. Example: 'Qm123'"
    )
    created_at: datetime = Field(
        sa_type=UTCDateTime,
        description="Commit timestamp of creation. Immutable."
    )


class BatchIndex(SQLModel, table=True):
    """
    Enumeration order of every batch id ever created.
    """
    position: Optional[int] = Field(
        default=None,
        primary_key=True,
        description="Autoincrementing creation order."
    )
    batch_id: str = Field(
        foreign_key="batch.batch_id",
        unique=True,
        description="The indexed batch."
    )


class HistoryEntry(SQLModel, table=True):
    """
    Immutable record of a single status change on a batch.
    Entries are only ever inserted; the autoincrement id is the append order.
    """
    id: Optional[int] = Field(
        default=None,
        primary_key=True,
        description="Append sequence number across all batches."
    )
    batch_id: str = Field(
        foreign_key="batch.batch_id",
        index=True,
        description="The batch this entry belongs to."
    )
    status: str = Field(
        description="The status the batch moved to. Example: 'CertifiedHalal'"
    )
    timestamp: datetime = Field(
        sa_type=UTCDateTime,
        description="Commit timestamp of the change."
    )
    updated_by: str = Field(
        description="Identity that caused the change."
    )


class LedgerEvent(SQLModel, table=True):
    """
    Persisted copy of a ledger notification, written in the same transaction
    as the change it reports. External indexers page through it by id.
    """
    id: Optional[int] = Field(
        default=None,
        primary_key=True,
        description="Commit order of the notification."
    )
    event_type: LedgerEventType = Field(
        index=True,
        description="Notification name. Example: 'BatchTransferred'"
    )
    batch_id: Optional[str] = Field(
        default=None,
        index=True,
        description="The batch concerned, if any. Role notifications have none."
    )
    payload: Dict[str, Any] = Field(
        default_factory=dict,
        sa_type=JSON,
        description="Notification fields as JSON."
    )
    timestamp: datetime = Field(
        sa_type=UTCDateTime,
        description="Commit timestamp of the operation."
    )
