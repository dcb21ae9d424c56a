from __future__ import annotations

import pytest

from marbete_client_sdk.capture_store import (
    DynamicLocationSession,
    FixedLocationSession,
    LocalCaptureStore,
    resolve_effective_location,
)
from marbete_client_sdk.local_db import LocalDatabase
from marbete_client_sdk.validation import (
    BatchLimitReachedError,
    ClientValidationError,
    LocationRequiredError,
    PendingEntriesError,
)


def _fixed(**overrides) -> FixedLocationSession:
    values = {"tenant_id": "t1", "control_batch_id": "M-1", "location": "A1", "actor_id": "c1"}
    values.update(overrides)
    return FixedLocationSession(**values)


def test_rescans_increment_a_single_entry(local_db) -> None:
    store = LocalCaptureStore(local_db)
    session = _fixed()

    for _ in range(5):
        store.record_scan(session, " P1 ")

    (entry,) = store.list_all()
    assert entry.product_code == "P1"
    assert entry.location == "A1"
    assert entry.quantity == 5
    assert entry.updated_at >= entry.created_at


def test_same_code_on_different_locations_are_separate_entries(local_db) -> None:
    store = LocalCaptureStore(local_db)
    session = DynamicLocationSession(tenant_id="t1", control_batch_id="M-1")

    store.record_scan(session, "P1", "A1")
    store.record_scan(session, "P1", "B2")
    store.record_scan(session, "P1", " A1 ")

    assert [(entry.location, entry.quantity) for entry in store.list_all()] == [("A1", 2), ("B2", 1)]


def test_empty_code_is_rejected(local_db) -> None:
    store = LocalCaptureStore(local_db)

    with pytest.raises(ClientValidationError):
        store.record_scan(_fixed(), "   ")
    assert store.count() == 0


def test_session_requires_control_batch() -> None:
    with pytest.raises(ClientValidationError):
        _fixed(control_batch_id=" ")


def test_dynamic_session_requires_a_location() -> None:
    session = DynamicLocationSession(tenant_id="t1", control_batch_id="M-1")

    with pytest.raises(LocationRequiredError):
        resolve_effective_location(session, "  ")
    assert resolve_effective_location(session, " Z9 ") == "Z9"
    assert resolve_effective_location(_fixed(), "ignored") == "A1"


def test_batch_limit_blocks_new_keys_but_allows_increments(local_db) -> None:
    store = LocalCaptureStore(local_db, batch_limit=2)
    session = _fixed()
    store.record_scan(session, "P1")
    store.record_scan(session, "P2")

    with pytest.raises(BatchLimitReachedError):
        store.record_scan(session, "P3")
    store.record_scan(session, "P1")

    assert store.count() == 2
    assert store.total_pieces() == 3


@pytest.mark.parametrize(("raw", "expected"), [("7", 7), (-2, -2), ("", 0), ("abc", 0), ("3.9", 3), (None, 0)])
def test_edit_quantity_coerces_input(local_db, raw, expected) -> None:
    store = LocalCaptureStore(local_db)
    entry = store.record_scan(_fixed(), "P1")

    edited = store.edit_quantity(entry.id, raw)

    assert edited.quantity == expected


def test_abandon_requires_confirmation_when_entries_exist(local_db) -> None:
    store = LocalCaptureStore(local_db)
    session = _fixed()
    store.save_session(session)
    store.record_scan(session, "P1")

    with pytest.raises(PendingEntriesError):
        store.abandon()
    assert store.count() == 1

    store.abandon(confirm=True)
    assert store.count() == 0
    assert store.load_session() is None


def test_entries_and_session_survive_a_restart(tmp_path) -> None:
    path = tmp_path / "device.db"
    first = LocalDatabase.at_path(path)
    store = LocalCaptureStore(first)
    session = DynamicLocationSession(tenant_id="t1", control_batch_id="M-1", area="North", actor_name="Ana")
    store.save_session(session)
    store.record_scan(session, "P1", "A1")
    first.dispose()

    reopened = LocalCaptureStore(LocalDatabase.at_path(path))

    restored = reopened.load_session()
    assert isinstance(restored, DynamicLocationSession)
    assert restored.area == "North"
    assert restored.control_batch_id == "M-1"
    (entry,) = reopened.list_all()
    assert entry.area == "North"
    assert entry.quantity == 1


def test_switching_batches_refuses_unsynced_entries(local_db) -> None:
    store = LocalCaptureStore(local_db)
    first = _fixed(control_batch_id="M-1")
    second = _fixed(control_batch_id="M-2")
    store.save_session(first)
    store.record_scan(first, "P1")

    with pytest.raises(PendingEntriesError):
        store.end_session()
    with pytest.raises(PendingEntriesError):
        store.save_session(second)
    with pytest.raises(PendingEntriesError):
        store.record_scan(second, "P1")

    (entry,) = store.list_all()
    assert (entry.control_batch_id, entry.quantity) == ("M-1", 1)
    assert store.load_session().control_batch_id == "M-1"


def test_confirmed_batch_switch_starts_a_clean_store(local_db) -> None:
    store = LocalCaptureStore(local_db)
    first = _fixed(control_batch_id="M-1")
    second = _fixed(control_batch_id="M-2")
    store.save_session(first)
    store.record_scan(first, "P1")

    store.save_session(second, confirm=True)
    entry = store.record_scan(second, "P1")

    assert (entry.control_batch_id, entry.quantity) == ("M-2", 1)
    assert [item.control_batch_id for item in store.list_all()] == ["M-2"]
    assert store.load_session().control_batch_id == "M-2"


def test_end_session_after_sync_or_with_confirmation(local_db) -> None:
    store = LocalCaptureStore(local_db)
    session = _fixed()
    store.save_session(session)
    store.record_scan(session, "P1")

    store.end_session(confirm=True)

    assert store.count() == 0
    assert store.load_session() is None
    store.save_session(session)
    store.end_session()
    assert store.load_session() is None


def test_dynamic_scans_may_name_their_area(local_db) -> None:
    store = LocalCaptureStore(local_db)
    session = DynamicLocationSession(tenant_id="t1", control_batch_id="M-1", area="North")

    store.record_scan(session, "P1", "A1", scanned_area=" South ")
    store.record_scan(session, "P2", "A2")
    store.record_scan(_fixed(area="East"), "P3", scanned_area="ignored")

    assert [entry.area for entry in store.list_all()] == ["South", "North", "East"]
