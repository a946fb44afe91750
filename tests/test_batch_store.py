from datetime import datetime, timezone

import pytest

from halalchain.core.exceptions import AlreadyExists, InvalidArgument, NotFound
from halalchain.db.schema import BatchStatus, is_custom_status
from halalchain.services.batch_store import BatchStore


NOW = datetime(2024, 3, 1, 9, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def store(session) -> BatchStore:
    return BatchStore(session)


def test_create_and_get(store):
    store.create("B1", "Widget", "0xA", NOW)

    batch = store.get("B1")
    assert batch.current_owner == "0xA"
    assert batch.status == BatchStatus.PRODUCED.value
    assert batch.created_at == NOW
    assert store.exists("B1")


def test_get_missing(store):
    with pytest.raises(NotFound) as exc:
        store.get("B404")
    assert "B404" in exc.value.detail
    assert not store.exists("B404")
    assert not store.exists("")


def test_create_validation(store):
    with pytest.raises(InvalidArgument):
        store.create("", "Widget", "0xA", NOW)
    with pytest.raises(InvalidArgument):
        store.create("B1", "", "0xA", NOW)

    store.create("B1", "Widget", "0xA", NOW)
    with pytest.raises(AlreadyExists):
        store.create("B1", "Widget", "0xA", NOW)


def test_mutators(store):
    store.create("B1", "Widget", "0xA", NOW)

    store.set_certificate("B1", "Qm1")
    store.set_status("B1", "Packed")
    store.set_owner("B1", "0xB")

    batch = store.get("B1")
    assert (batch.halal_cert_hash, batch.status, batch.current_owner) == ("Qm1", "Packed", "0xB")
    assert batch.producer == "0xA"

    with pytest.raises(NotFound):
        store.set_status("B2", "Packed")


def test_list_filters(store):
    store.create("B1", "Widget", "0xA", NOW)
    store.create("B2", "Gadget", "0xB", NOW)
    store.create("B3", "Gizmo", "0xA", NOW)
    store.set_status("B3", "Sold")

    assert [b.batch_id for b in store.list()] == ["B1", "B2", "B3"]
    assert [b.batch_id for b in store.list(owner="0xA")] == ["B1", "B3"]
    assert [b.batch_id for b in store.list(status="Produced")] == ["B1", "B2"]
    assert [b.batch_id for b in store.list(owner="0xA", status="Sold")] == ["B3"]
    assert store.count() == 3


def test_custom_status_detection():
    assert not is_custom_status("Produced")
    assert not is_custom_status("AtRetailer")
    assert is_custom_status("Recalled")
    assert is_custom_status("produced")
