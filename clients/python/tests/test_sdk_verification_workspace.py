from __future__ import annotations

import json
from datetime import datetime, timedelta

import pytest
import responses

from marbete_client_sdk import load_config
from marbete_client_sdk.clients.verification_client import VerificationClient
from marbete_client_sdk.exceptions import MarbeteClosedError, ServerError
from marbete_client_sdk.http_client import HttpClient
from marbete_client_sdk.tracing import TraceContext
from marbete_client_sdk.validation import ClientValidationError
from marbete_client_sdk.verification_workspace import VerificationWorkspace

MARBETE_URL = "https://api.example.com/marbete/verification/M-1"
COMMIT_URL = "https://api.example.com/marbete/verification/commit"

FUSION = {
    "control_batch_id": "M-1",
    "items": [
        {
            "product_code": "P1",
            "description": "Widget",
            "system_quantity": 3,
            "counted_quantity": 3,
            "verified_quantity": 3,
            "variance": 0,
            "area": None,
            "location": "A1",
            "in_master_catalog": True,
        },
        {
            "product_code": "P2",
            "description": "NOT IN CATALOG",
            "system_quantity": 0,
            "counted_quantity": 1,
            "verified_quantity": 1,
            "variance": 1,
            "area": None,
            "location": "A1",
            "in_master_catalog": False,
        },
    ],
}


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2026, 3, 2, 9, 0, 0)

    def __call__(self) -> datetime:
        return self.now


def _client(base_url: str) -> HttpClient:
    cfg = load_config()
    object.__setattr__(cfg, "api_base_url", base_url)
    return HttpClient(cfg, trace=TraceContext(), sleep=lambda _: None)


@pytest.fixture()
def clock() -> _Clock:
    return _Clock()


@pytest.fixture()
def workspace(monkeypatch, local_db, clock) -> VerificationWorkspace:
    monkeypatch.setenv("MARBETE_API_BASE_URL", "https://api.example.com")
    client = VerificationClient(http=_client("https://api.example.com"))
    return VerificationWorkspace(client, local_db, clock=clock)


@responses.activate
def test_open_edit_and_list_differences(workspace) -> None:
    responses.add(responses.GET, MARBETE_URL, json=FUSION)

    items = workspace.open("t1", "M-1", verifier_id="v1", verifier_name="Val")

    assert [item.product_code for item in items] == ["P1", "P2"]
    assert [item.product_code for item in workspace.differences()] == ["P2"]

    edited = workspace.set_verified_quantity("P1", "")
    assert edited.verified_quantity == 0
    assert edited.variance == -3
    assert [item.product_code for item in workspace.differences()] == ["P1", "P2"]
    assert [item.product_code for item in workspace.items("widg")] == ["P1"]
    assert [item.product_code for item in workspace.items("not in")] == ["P2"]


@responses.activate
def test_commit_sends_duration_and_clears_workspace(workspace, clock) -> None:
    responses.add(responses.GET, MARBETE_URL, json=FUSION)
    responses.add(responses.POST, COMMIT_URL, json={"message": "ok", "control_batch_id": "M-1", "count": 2}, status=201)
    workspace.open("t1", "M-1", verifier_id="v1")
    workspace.set_verified_quantity("P2", 0)
    clock.now += timedelta(minutes=4, seconds=5)

    response = workspace.commit()

    assert response.count == 2
    sent = json.loads(responses.calls[1].request.body)
    assert sent["duration_seconds"] == 245
    assert sent["verifier_id"] == "v1"
    assert sent["tenant_id"] == "t1"
    assert [item["verified_quantity"] for item in sent["items"]] == [3, 0]
    assert {item["control_batch_id"] for item in sent["items"]} == {"M-1"}
    assert workspace.info() is None


@responses.activate
def test_failed_commit_keeps_local_edits(workspace) -> None:
    responses.add(responses.GET, MARBETE_URL, json=FUSION)
    responses.add(responses.POST, COMMIT_URL, json={"code": "PERSISTENCE_ERROR"}, status=500)
    workspace.open("t1", "M-1")
    workspace.set_verified_quantity("P1", 5)

    with pytest.raises(ServerError):
        workspace.commit()

    assert workspace.info() is not None
    assert {item.product_code: item.verified_quantity for item in workspace.items()}["P1"] == 5


@responses.activate
def test_closed_marbete_cannot_be_opened(workspace) -> None:
    responses.add(
        responses.GET,
        MARBETE_URL,
        json={"code": "MARBETE_ALREADY_CLOSED", "message": "closed", "details": None, "trace_id": "t"},
        status=409,
    )

    with pytest.raises(MarbeteClosedError):
        workspace.open("t1", "M-1")
    assert workspace.info() is None


@responses.activate
def test_only_one_marbete_open_at_a_time(workspace) -> None:
    responses.add(responses.GET, MARBETE_URL, json=FUSION)
    workspace.open("t1", "M-1")

    assert len(workspace.open("t1", "M-1")) == 2
    with pytest.raises(ClientValidationError):
        workspace.open("t1", "M-2")

    workspace.abandon()
    assert workspace.items() == []
    assert len(responses.calls) == 1


def test_elapsed_time_without_open_marbete(workspace) -> None:
    assert workspace.elapsed_seconds() == 0
