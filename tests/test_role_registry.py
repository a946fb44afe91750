import pytest

from halalchain.core.exceptions import InvalidArgument, Unauthorized
from halalchain.db.schema import Role, CUSTODIAN_ROLES
from halalchain.services.role_registry import RoleRegistry, is_null_identity

from conftest import ADMIN, DISTRIBUTOR, NOBODY, PRODUCER


@pytest.mark.parametrize("name,expected", [
    ("producer", Role.PRODUCER),
    ("PRODUCER", Role.PRODUCER),
    ("PRODUCER_ROLE", Role.PRODUCER),
    ("halal_authority", Role.HALAL_AUTHORITY),
    ("HALAL_AUTHORITY_ROLE", Role.HALAL_AUTHORITY),
    (" Retailer ", Role.RETAILER),
    ("distributor_role", Role.DISTRIBUTOR),
    ("ADMIN_ROLE", None),
    ("inspector", None),
    ("", None),
    (None, None),
])
def test_role_parse(name, expected):
    assert Role.parse(name) is expected


def test_null_identity():
    assert is_null_identity("")
    assert is_null_identity(None)
    assert is_null_identity("0x0000000000000000000000000000000000000000")
    assert not is_null_identity("0xA")


def test_admin_is_fixed_at_initialization(ledger):
    assert ledger.roles.admin() == ADMIN

    config = ledger.initialize("0xSOMEONE_ELSE")

    assert config.admin_address == ADMIN
    assert ledger.roles.admin() == ADMIN


def test_uninitialized_ledger_has_no_admin(session):
    with pytest.raises(RuntimeError):
        RoleRegistry(session).admin()


def test_grant_and_revoke(ledger):
    assert not ledger.roles.has(Role.PRODUCER, PRODUCER)

    ledger.assign_role(Role.PRODUCER, PRODUCER, caller=ADMIN)
    assert ledger.roles.has(Role.PRODUCER, PRODUCER)
    assert ledger.roles.has("PRODUCER_ROLE", PRODUCER)

    ledger.revoke_role("producer", PRODUCER, caller=ADMIN)
    assert not ledger.roles.has(Role.PRODUCER, PRODUCER)


def test_roles_are_independent(ledger):
    ledger.assign_role("producer", PRODUCER, caller=ADMIN)
    ledger.assign_role("distributor", PRODUCER, caller=ADMIN)

    assert ledger.roles.has(Role.PRODUCER, PRODUCER)
    assert ledger.roles.has(Role.DISTRIBUTOR, PRODUCER)

    ledger.revoke_role("producer", PRODUCER, caller=ADMIN)
    assert not ledger.roles.has(Role.PRODUCER, PRODUCER)
    assert ledger.roles.has(Role.DISTRIBUTOR, PRODUCER)
    assert ledger.roles.holds_any(PRODUCER, CUSTODIAN_ROLES)
    assert not ledger.roles.has("halal_authority", PRODUCER)


def test_grant_twice_is_idempotent(ledger, received):
    ledger.assign_role("retailer", DISTRIBUTOR, caller=ADMIN)
    ledger.assign_role("retailer", DISTRIBUTOR, caller=ADMIN)

    assert ledger.roles.has(Role.RETAILER, DISTRIBUTOR)
    assert not ledger.roles.holds_any(DISTRIBUTOR, (Role.PRODUCER, Role.DISTRIBUTOR))
    assert [n.event_type.value for n in received] == ["RoleAssigned", "RoleAssigned"]


def test_revoking_unheld_role_succeeds(ledger, received):
    ledger.revoke_role("retailer", NOBODY, caller=ADMIN)

    assert not ledger.roles.has("retailer", NOBODY)
    assert received[0].payload == {"role": "retailer", "account": NOBODY}


def test_only_admin_can_change_roles(ledger, received):
    ledger.assign_role("producer", PRODUCER, caller=ADMIN)
    received.clear()

    with pytest.raises(Unauthorized):
        ledger.assign_role("producer", NOBODY, caller=PRODUCER)
    with pytest.raises(Unauthorized):
        ledger.revoke_role("producer", PRODUCER, caller=PRODUCER)

    assert not ledger.roles.has("producer", NOBODY)
    assert ledger.roles.has("producer", PRODUCER)
    assert received == []


def test_unknown_role_query_is_false(ledger):
    ledger.assign_role("producer", PRODUCER, caller=ADMIN)

    assert ledger.roles.has("ADMIN_ROLE", ADMIN) is False
    assert ledger.roles.has("superuser", PRODUCER) is False
    assert ledger.roles.has("", PRODUCER) is False
    assert ledger.roles.has("producer", "") is False


def test_unknown_role_grant_rejected(ledger):
    with pytest.raises(InvalidArgument):
        ledger.assign_role("superuser", PRODUCER, caller=ADMIN)


@pytest.mark.parametrize("account", ["", "0x0000000000000000000000000000000000000000"])
def test_grant_to_null_identity_rejected(ledger, account):
    with pytest.raises(InvalidArgument):
        ledger.assign_role("producer", account, caller=ADMIN)


def test_role_notification_payload(ledger, received, clock):
    ledger.assign_role("HALAL_AUTHORITY_ROLE", "0xH", caller=ADMIN)

    (notification,) = received
    assert notification.event_type.value == "RoleAssigned"
    assert notification.batch_id is None
    assert notification.payload == {"role": "halal_authority", "account": "0xH"}
    assert notification.timestamp == clock.current
