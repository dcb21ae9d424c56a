from __future__ import annotations

import json

import pytest
import responses

from marbete_client_sdk import load_config
from marbete_client_sdk.capture_store import DynamicLocationSession, FixedLocationSession, LocalCaptureStore
from marbete_client_sdk.clients.counting_client import CountingClient
from marbete_client_sdk.exceptions import SyncCancelledError, SyncFailedError, SyncInProgressError
from marbete_client_sdk.http_client import HttpClient
from marbete_client_sdk.sync import BatchSyncClient, partition
from marbete_client_sdk.tracing import TraceContext

SYNC_URL = "https://api.example.com/marbete/counting/sync"
OK_BODY = {"message": "Scans synced", "count": 2, "synced_at": "2026-03-02T10:00:00"}


def _client(base_url: str) -> HttpClient:
    cfg = load_config()
    object.__setattr__(cfg, "api_base_url", base_url)
    return HttpClient(cfg, trace=TraceContext(), sleep=lambda _: None)


@pytest.fixture()
def counting(monkeypatch) -> CountingClient:
    monkeypatch.setenv("MARBETE_API_BASE_URL", "https://api.example.com")
    monkeypatch.setenv("MARBETE_RETRIES", "2")
    return CountingClient(http=_client("https://api.example.com"))


def _session(**overrides) -> FixedLocationSession:
    values = {"tenant_id": "t1", "control_batch_id": "M-1", "location": "A1", "actor_id": "c1", "actor_name": "Ana"}
    values.update(overrides)
    return FixedLocationSession(**values)


def _fill(store: LocalCaptureStore, session, count: int) -> None:
    for index in range(count):
        store.record_scan(session, f"P{index}")


def test_partition_splits_into_fixed_size_chunks() -> None:
    assert partition(list(range(5)), 2) == [[0, 1], [2, 3], [4]]
    assert partition([], 2) == []


def test_empty_store_is_a_noop(counting, local_db) -> None:
    result = BatchSyncClient(counting, LocalCaptureStore(local_db)).sync(_session())

    assert result.is_noop
    assert result.records_synced == 0


@responses.activate
def test_successful_sync_clears_the_store(counting, local_db) -> None:
    store = LocalCaptureStore(local_db)
    session = _session()
    _fill(store, session, 3)
    store.record_scan(session, "P0")
    responses.add(responses.POST, SYNC_URL, json=OK_BODY, status=201)

    result = BatchSyncClient(counting, store, chunk_size=2).sync(session)

    assert result.chunks_committed == 2
    assert result.records_synced == 3
    assert store.count() == 0
    sent = json.loads(responses.calls[0].request.body)["items"][0]
    assert sent["product_code"] == "P0"
    assert sent["quantity"] == 2
    assert sent["location"] == "A1"
    assert sent["tenant_id"] == "t1"
    assert sent["control_batch_id"] == "M-1"
    assert sent["actor_id"] == "c1"
    assert sent["actor_name"] == "Ana"
    assert sent["session_start"] and sent["session_end"] and sent["scanned_at"]
    assert "X-Trace-ID" in responses.calls[0].request.headers


@responses.activate
def test_failed_chunk_keeps_every_entry_and_reports_progress(counting, local_db) -> None:
    store = LocalCaptureStore(local_db)
    session = _session()
    _fill(store, session, 5)
    responses.add(responses.POST, SYNC_URL, json=OK_BODY, status=201)
    responses.add(responses.POST, SYNC_URL, json=OK_BODY, status=201)
    responses.add(responses.POST, SYNC_URL, json={"code": "INTERNAL_ERROR", "message": "down"}, status=500)

    with pytest.raises(SyncFailedError) as excinfo:
        BatchSyncClient(counting, store, chunk_size=2, retries=1, sleep=lambda _: None).sync(session)

    assert excinfo.value.chunks_committed == 2
    assert excinfo.value.total_chunks == 3
    assert excinfo.value.records_confirmed == 4
    assert store.count() == 5
    assert len(responses.calls) == 4


@responses.activate
def test_rejected_chunk_is_not_retried(counting, local_db) -> None:
    store = LocalCaptureStore(local_db)
    session = _session()
    _fill(store, session, 1)
    responses.add(responses.POST, SYNC_URL, json={"code": "VALIDATION_ERROR", "message": "bad"}, status=422)

    with pytest.raises(SyncFailedError) as excinfo:
        BatchSyncClient(counting, store, retries=3, sleep=lambda _: None).sync(session)

    assert excinfo.value.chunks_committed == 0
    assert len(responses.calls) == 1
    assert store.count() == 1


@responses.activate
def test_transient_failure_is_retried_with_backoff(counting, local_db) -> None:
    store = LocalCaptureStore(local_db)
    session = _session()
    _fill(store, session, 1)
    delays: list[float] = []
    responses.add(responses.POST, SYNC_URL, json={"code": "INTERNAL_ERROR"}, status=503)
    responses.add(responses.POST, SYNC_URL, json={"code": "RATE_LIMITED"}, status=429)
    responses.add(responses.POST, SYNC_URL, json=OK_BODY, status=201)

    result = BatchSyncClient(counting, store, retries=3, backoff_seconds=0.3, sleep=delays.append).sync(session)

    assert result.records_synced == 1
    assert delays == [0.3, 0.6]
    assert store.count() == 0


@responses.activate
def test_area_and_location_fall_back_to_session(counting, local_db) -> None:
    store = LocalCaptureStore(local_db)
    store.record_scan(DynamicLocationSession(tenant_id="t1", control_batch_id="M-1"), "P1", "B7")
    responses.add(responses.POST, SYNC_URL, json=OK_BODY, status=201)

    BatchSyncClient(counting, store).sync(DynamicLocationSession(tenant_id="t1", control_batch_id="M-1", area="North"))

    sent = json.loads(responses.calls[0].request.body)["items"][0]
    assert sent["area"] == "North"
    assert sent["location"] == "B7"


@responses.activate
def test_second_sync_while_running_is_rejected(counting, local_db) -> None:
    store = LocalCaptureStore(local_db)
    session = _session()
    _fill(store, session, 1)
    sync_client = BatchSyncClient(counting, store)
    nested: list[Exception] = []

    def _callback(request):
        try:
            sync_client.sync(session)
        except SyncInProgressError as exc:
            nested.append(exc)
        return 201, {}, json.dumps(OK_BODY)

    responses.add_callback(responses.POST, SYNC_URL, callback=_callback, content_type="application/json")

    sync_client.sync(session)

    assert len(nested) == 1
    assert not sync_client.in_progress


@responses.activate
def test_cancel_stops_before_the_next_chunk(counting, local_db) -> None:
    store = LocalCaptureStore(local_db)
    session = _session()
    _fill(store, session, 3)
    sync_client = BatchSyncClient(counting, store, chunk_size=1)

    def _callback(request):
        sync_client.cancel()
        return 201, {}, json.dumps(OK_BODY)

    responses.add_callback(responses.POST, SYNC_URL, callback=_callback, content_type="application/json")

    with pytest.raises(SyncCancelledError) as excinfo:
        sync_client.sync(session)

    assert excinfo.value.chunks_committed == 1
    assert excinfo.value.records_confirmed == 1
    assert len(responses.calls) == 1
    assert store.count() == 3
