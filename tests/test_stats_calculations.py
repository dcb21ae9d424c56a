from datetime import date, datetime, timedelta
from types import SimpleNamespace

from app.marbete.services.stats import (
    compute_counter_session,
    compute_lifetime,
    compute_precision,
    compute_velocity,
    compute_verifier_session,
    format_active_time,
)

DAY = date(2026, 3, 2)


def _verification(variance=0, system_quantity=10, verified_quantity=None, duration=0, code="X", tenant="t1"):
    return SimpleNamespace(
        product_code=code,
        tenant_id=tenant,
        system_quantity=system_quantity,
        variance=variance,
        verified_quantity=system_quantity + variance if verified_quantity is None else verified_quantity,
        verification_duration_seconds=duration,
    )


def _scan(quantity=1, code="X", tenant="t1", started=None, ended=None):
    return SimpleNamespace(
        product_code=code,
        tenant_id=tenant,
        quantity=quantity,
        scan_started_at=started,
        scan_ended_at=ended,
    )


def test_lifetime_precision_counts_zero_variance_rows():
    rows = [_verification(variance=0) for _ in range(97)] + [_verification(variance=2) for _ in range(3)]

    summary = compute_lifetime([], rows, [])

    assert summary.total_verifications == 100
    assert summary.precision == 97.00


def test_lifetime_precision_defaults_to_100_without_verifications():
    assert compute_lifetime([], [], []).precision == 100.0


def test_lifetime_hours_are_estimated_when_no_time_was_tracked():
    summary = compute_lifetime([_scan(quantity=800)], [], [])

    assert summary.hours_estimated is True
    assert summary.lifetime_hours == 2.0
    assert summary.average_velocity == 400


def test_lifetime_uses_tracked_session_time():
    sessions = [SimpleNamespace(active_seconds=3600), SimpleNamespace(active_seconds=3600)]

    summary = compute_lifetime([_scan(quantity=300)], [_verification(verified_quantity=100)], sessions)

    assert summary.total_pieces == 400
    assert summary.hours_estimated is False
    assert summary.lifetime_hours == 2.0
    assert summary.average_velocity == 200


def test_lifetime_distinct_sets_span_both_roles():
    summary = compute_lifetime(
        [_scan(code="A", tenant="t1"), _scan(code="B", tenant="t2")],
        [_verification(code="B", tenant="t2"), _verification(code="C", tenant="t3")],
        [],
    )

    assert summary.distinct_skus == 3
    assert summary.distinct_tenants_worked == 3


def test_session_precision_uses_variance_over_system_total():
    rows = [_verification(variance=-2, system_quantity=50), _verification(variance=1, system_quantity=50)]

    assert compute_precision(rows) == 97.0


def test_session_precision_without_system_total():
    assert compute_precision([_verification(variance=0, system_quantity=0)]) == 100.0
    assert compute_precision([_verification(variance=3, system_quantity=0)]) == 0.0


def test_session_precision_is_clamped_at_zero():
    assert compute_precision([_verification(variance=30, system_quantity=10)]) == 0.0


def test_velocity_falls_back_to_per_minute_rate_for_tiny_sessions():
    assert compute_velocity(120, 7200) == 60
    assert compute_velocity(5, 20) == 300


def test_counter_session_ignores_implausible_intervals():
    start = datetime(2026, 3, 2, 8, 0, 0)
    scans = [
        _scan(quantity=4, code="A", started=start, ended=start + timedelta(minutes=30)),
        _scan(quantity=2, code="B", started=start, ended=start - timedelta(minutes=5)),
        _scan(quantity=1, code="A", started=start, ended=start + timedelta(hours=25)),
        _scan(quantity=3, code="C"),
    ]

    summary = compute_counter_session(DAY, scans, [_verification(variance=1), _verification(variance=0)])

    assert summary.pieces == 10
    assert summary.distinct_skus == 3
    assert summary.active_seconds == 1800
    assert summary.velocity == 20
    assert summary.differences == 1
    assert summary.precision == 95.0


def test_verifier_session_sums_durations_and_verified_pieces():
    rows = [_verification(verified_quantity=30, duration=900), _verification(verified_quantity=30, duration=900)]

    summary = compute_verifier_session(DAY, rows)

    assert summary.pieces == 60
    assert summary.active_seconds == 1800
    assert summary.velocity == 120


def test_active_time_is_rendered_as_hours_and_minutes():
    assert format_active_time(3 * 3600 + 25 * 60 + 59) == "3 hours 25 minutes"
