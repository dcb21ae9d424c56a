from sqlalchemy.exc import OperationalError

from app.marbete.db.models import VerificationRecord
from app.marbete.repos.verifications import VerificationRepository
from tests.marbete_helpers import commit_payload, import_catalog, read_marbete, scan, sync_scans


def _prepare(client):
    import_catalog(client, [{"product_code": "P1", "description": "Widget", "quantity": 5}])
    sync_scans(client, [scan("P1", 4), scan("P2", 1)])
    response = read_marbete(client)
    assert response.status_code == 200
    return response.json()


def test_commit_closes_the_batch(client, db_session):
    fusion = _prepare(client)

    response = client.post("/marbete/verification/commit", json=commit_payload(fusion))

    assert response.status_code == 201
    assert response.json()["count"] == 2
    rows = db_session.query(VerificationRecord).order_by(VerificationRecord.id).all()
    assert {row.state for row in rows} == {"verified"}
    assert [row.forced for row in rows] == [False, True]

    again = read_marbete(client)
    assert again.status_code == 409
    assert again.json()["code"] == "MARBETE_ALREADY_CLOSED"


def test_commit_recomputes_variance_server_side(client, db_session):
    fusion = _prepare(client)
    payload = commit_payload(fusion)
    payload["items"][0]["verified_quantity"] = 7
    payload["items"][0]["variance"] = 999
    payload["items"][1]["verified_quantity"] = ""

    response = client.post("/marbete/verification/commit", json=payload)

    assert response.status_code == 201
    rows = {row.product_code: row for row in db_session.query(VerificationRecord).all()}
    assert rows["P1"].variance == 2
    assert rows["P2"].verified_quantity == 0
    assert rows["P2"].variance == 0
    assert rows["P2"].product_counted is True


def test_commit_records_shortage_as_negative_variance(client, db_session):
    import_catalog(client, [{"product_code": "S1", "description": "Short", "quantity": 50}])
    sync_scans(client, [scan("S1", 41, control_batch_id="M-9")])
    fusion = read_marbete(client, "M-9").json()
    assert fusion["items"][0]["variance"] == -9
    payload = commit_payload(fusion)
    payload["items"][0]["variance"] = 9

    response = client.post("/marbete/verification/commit", json=payload)

    assert response.status_code == 201
    (row,) = db_session.query(VerificationRecord).filter(VerificationRecord.control_batch_id == "M-9").all()
    assert row.system_quantity == 50
    assert row.verified_quantity == 41
    assert row.variance == -9


def test_second_commit_is_rejected(client):
    fusion = _prepare(client)
    first = client.post("/marbete/verification/commit", json=commit_payload(fusion))
    assert first.status_code == 201

    second = client.post("/marbete/verification/commit", json=commit_payload(fusion))

    assert second.status_code == 409
    assert second.json()["code"] == "MARBETE_ALREADY_CLOSED"


def test_commit_rejects_items_from_another_batch(client, db_session):
    fusion = _prepare(client)
    payload = commit_payload(fusion)
    payload["items"][1]["control_batch_id"] = "M-2"

    response = client.post("/marbete/verification/commit", json=payload)

    assert response.status_code == 422
    assert response.json()["code"] == "CONTROL_BATCH_MISMATCH"
    assert db_session.query(VerificationRecord).count() == 0


def test_commit_rejects_empty_items(client):
    response = client.post(
        "/marbete/verification/commit",
        json={"tenant_id": "tenant-a", "control_batch_id": "M-1", "items": []},
    )

    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_failed_commit_leaves_batch_open(client, monkeypatch):
    fusion = _prepare(client)

    def _boom(self, records):
        raise OperationalError("INSERT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(VerificationRepository, "add_all", _boom)
    response = client.post("/marbete/verification/commit", json=commit_payload(fusion))
    monkeypatch.undo()

    assert response.status_code == 500
    assert response.json()["code"] == "PERSISTENCE_ERROR"
    assert read_marbete(client).status_code == 200


def test_commit_refreshes_verifier_stats(client):
    fusion = _prepare(client)
    payload = commit_payload(fusion, duration_seconds=600)
    payload["items"][0]["verified_quantity"] = 5
    client.post("/marbete/verification/commit", json=payload)

    session = client.get("/marbete/stats/session/verifier-1", params={"role": "verifier"}).json()
    lifetime = client.get("/marbete/stats/lifetime/verifier-1").json()

    assert session["pieces"] == 6
    assert session["differences"] == 1
    assert session["active_seconds"] == 1200
    assert lifetime["total_verifications"] == 2
    assert lifetime["precision"] == 50.0
    assert lifetime["hours_estimated"] is False


def test_stats_failure_does_not_fail_the_commit(client, monkeypatch):
    from app.marbete.services.stats import StatsService

    fusion = _prepare(client)

    def _broken(self, *args, **kwargs):
        raise RuntimeError("stats unavailable")

    monkeypatch.setattr(StatsService, "recompute_session", _broken)
    response = client.post("/marbete/verification/commit", json=commit_payload(fusion))

    assert response.status_code == 201
    metrics = client.get("/marbete/ops/metrics")
    assert 'stats_recompute_failures_total{role="verifier"}' in metrics.text


def test_verification_history_lists_committed_rows(client):
    fusion = _prepare(client)
    client.post("/marbete/verification/commit", json=commit_payload(fusion))

    response = client.get("/marbete/verification/history/verifier-1")

    assert response.status_code == 200
    history = response.json()["history"]
    assert {row["product_code"] for row in history} == {"P1", "P2"}
    assert {row["control_batch_id"] for row in history} == {"M-1"}
