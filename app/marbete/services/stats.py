from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable

from app.marbete.core.config import settings
from app.marbete.core.error_catalog import AppError, ErrorCatalog
from app.marbete.core.metrics import metrics
from app.marbete.db.models import LifetimeStats, SessionStats
from app.marbete.repos.scans import ScanRepository
from app.marbete.repos.stats import StatsRepository
from app.marbete.repos.verifications import VerificationRepository

logger = logging.getLogger(__name__)

ROLE_COUNTER = "counter"
ROLE_VERIFIER = "verifier"
ROLES = (ROLE_COUNTER, ROLE_VERIFIER)

MAX_SCAN_INTERVAL = timedelta(hours=24)


@dataclass
class SessionSummary:
    role: str
    session_date: date
    tenant_id: str | None
    pieces: int
    distinct_skus: int
    differences: int
    active_seconds: int
    velocity: int
    precision: float


@dataclass
class LifetimeSummary:
    pieces_counted: int
    pieces_verified: int
    total_pieces: int
    distinct_skus: int
    distinct_tenants_worked: int
    total_verifications: int
    precision: float
    lifetime_hours: float
    hours_estimated: bool
    average_velocity: int


def utc_day_window(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def format_active_time(seconds: int) -> str:
    hours, remainder = divmod(max(int(seconds), 0), 3600)
    return f"{hours} hours {remainder // 60} minutes"


def compute_velocity(pieces: int, active_seconds: int) -> int:
    hours = active_seconds / 3600
    if hours > 0.01:
        return round(pieces / hours)
    # Too little tracked time: treat the pieces as a per-minute figure.
    return pieces * 60


def compute_precision(verification_rows: Iterable) -> float:
    total_system = 0
    total_variance = 0
    for row in verification_rows:
        total_system += int(row.system_quantity or 0)
        total_variance += abs(int(row.variance or 0))
    if total_system <= 0:
        return 100.0 if total_variance == 0 else 0.0
    ratio = 1 - total_variance / total_system
    return round(min(max(ratio, 0.0), 1.0) * 100, 2)


def count_differences(verification_rows: Iterable) -> int:
    return sum(1 for row in verification_rows if int(row.variance or 0) != 0)


def _scan_active_seconds(scans: Iterable) -> int:
    total = 0.0
    for scan in scans:
        if scan.scan_started_at is None or scan.scan_ended_at is None:
            continue
        delta = scan.scan_ended_at - scan.scan_started_at
        if timedelta(0) < delta < MAX_SCAN_INTERVAL:
            total += delta.total_seconds()
    return int(total)


def _latest_tenant(rows: list) -> str | None:
    return rows[-1].tenant_id if rows else None


def compute_counter_session(session_date: date, scans: list, verification_rows: list) -> SessionSummary:
    """Summarise a counter's day.

    ``verification_rows`` are the verified rows of every control batch the
    counter scanned that day; they drive precision and differences.
    """
    pieces = sum(int(scan.quantity or 0) for scan in scans)
    active_seconds = _scan_active_seconds(scans)
    return SessionSummary(
        role=ROLE_COUNTER,
        session_date=session_date,
        tenant_id=_latest_tenant(scans),
        pieces=pieces,
        distinct_skus=len({scan.product_code for scan in scans}),
        differences=count_differences(verification_rows),
        active_seconds=active_seconds,
        velocity=compute_velocity(pieces, active_seconds),
        precision=compute_precision(verification_rows),
    )


def compute_verifier_session(session_date: date, verification_rows: list) -> SessionSummary:
    pieces = sum(int(row.verified_quantity or 0) for row in verification_rows)
    active_seconds = sum(int(row.verification_duration_seconds or 0) for row in verification_rows)
    return SessionSummary(
        role=ROLE_VERIFIER,
        session_date=session_date,
        tenant_id=_latest_tenant(verification_rows),
        pieces=pieces,
        distinct_skus=len({row.product_code for row in verification_rows}),
        differences=count_differences(verification_rows),
        active_seconds=active_seconds,
        velocity=compute_velocity(pieces, active_seconds),
        precision=compute_precision(verification_rows),
    )


def compute_lifetime(
    scans: list,
    verification_rows: list,
    sessions: list,
    *,
    legacy_pieces_per_hour: int = 400,
) -> LifetimeSummary:
    pieces_counted = sum(int(scan.quantity or 0) for scan in scans)
    pieces_verified = sum(int(row.verified_quantity or 0) for row in verification_rows)
    total_pieces = pieces_counted + pieces_verified
    total_verifications = len(verification_rows)
    matches = sum(1 for row in verification_rows if int(row.variance or 0) == 0)
    precision = round(matches / total_verifications * 100, 2) if total_verifications else 100.0

    hours = sum(int(session.active_seconds or 0) for session in sessions) / 3600
    hours_estimated = False
    if hours == 0 and total_pieces > 0:
        # Older activity has no tracked time; estimate from a nominal rate.
        hours = total_pieces / legacy_pieces_per_hour
        hours_estimated = True
    average_velocity = round(total_pieces / hours) if hours > 0.1 else 0

    skus = {scan.product_code for scan in scans} | {row.product_code for row in verification_rows}
    tenants = {scan.tenant_id for scan in scans} | {row.tenant_id for row in verification_rows}
    return LifetimeSummary(
        pieces_counted=pieces_counted,
        pieces_verified=pieces_verified,
        total_pieces=total_pieces,
        distinct_skus=len(skus),
        distinct_tenants_worked=len(tenants),
        total_verifications=total_verifications,
        precision=precision,
        lifetime_hours=round(hours, 2),
        hours_estimated=hours_estimated,
        average_velocity=average_velocity,
    )


class StatsService:
    def __init__(self, db):
        self.db = db
        self.scans = ScanRepository(db)
        self.verifications = VerificationRepository(db)
        self.repo = StatsRepository(db)

    def summarize_session(self, actor_id: str, role: str, session_date: date) -> SessionSummary:
        if role not in ROLES:
            raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "role must be counter or verifier"})
        since, until = utc_day_window(session_date)
        if role == ROLE_COUNTER:
            scans = self.scans.list_for_actor(actor_id, since=since, until=until)
            batch_keys = {(scan.tenant_id, scan.control_batch_id) for scan in scans}
            return compute_counter_session(session_date, scans, self.verifications.list_for_batches(batch_keys))
        rows = self.verifications.list_for_verifier(actor_id, since=since, until=until)
        return compute_verifier_session(session_date, rows)

    def recompute_session(self, actor_id: str, role: str, session_date: date | None = None) -> SessionSummary:
        session_date = session_date or datetime.utcnow().date()
        summary = self.summarize_session(actor_id, role, session_date)
        row = self.repo.get_session(actor_id=actor_id, role=role, session_date=session_date)
        now = datetime.utcnow()
        if row is None:
            if summary.pieces <= 0:
                return summary
            row = self.repo.add(
                SessionStats(actor_id=actor_id, role=role, session_date=session_date, started_at=now, updated_at=now)
            )
        row.tenant_id = summary.tenant_id or row.tenant_id
        row.pieces = summary.pieces
        row.distinct_skus = summary.distinct_skus
        row.differences = summary.differences
        row.active_seconds = summary.active_seconds
        row.velocity = summary.velocity
        row.precision = summary.precision
        row.updated_at = now
        self.db.flush()
        return summary

    def recompute_lifetime(self, actor_id: str) -> LifetimeStats:
        summary = compute_lifetime(
            self.scans.list_for_actor(actor_id),
            self.verifications.list_for_verifier(actor_id),
            self.repo.list_sessions(actor_id),
            legacy_pieces_per_hour=settings.LEGACY_PIECES_PER_HOUR,
        )
        row = self.repo.get_lifetime(actor_id)
        if row is None:
            row = self.repo.add(LifetimeStats(actor_id=actor_id))
        for field, value in vars(summary).items():
            setattr(row, field, value)
        row.updated_at = datetime.utcnow()
        self.db.flush()
        return row

    def refresh_actor(self, actor_id: str | None, role: str, session_dates: Iterable[date] = ()) -> None:
        """Recompute and commit session and lifetime stats after a write.

        Failures are logged and counted; the caller's write is already
        committed and stays valid.
        """
        if not actor_id:
            return
        try:
            for session_date in sorted(set(session_dates)) or [datetime.utcnow().date()]:
                self.recompute_session(actor_id, role, session_date)
            self.recompute_lifetime(actor_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            metrics.increment_stats_recompute_failure(role)
            logger.exception("stats_recompute_failed", extra={"actor_id": actor_id, "role": role})
