from datetime import date

from fastapi import APIRouter, Depends, Query

from app.marbete.db.session import get_db
from app.marbete.schemas.stats import LifetimeStatsResponse, Role, SessionStatsResponse
from app.marbete.services.stats import StatsService, format_active_time

router = APIRouter()


@router.get("/marbete/stats/session/{actor_id}", response_model=SessionStatsResponse)
def session_stats(
    actor_id: str,
    role: Role = Query(...),
    session_date: date | None = Query(None),
    db=Depends(get_db),
):
    summary = StatsService(db).recompute_session(actor_id, role, session_date)
    db.commit()
    return SessionStatsResponse(
        actor_id=actor_id,
        role=summary.role,
        session_date=summary.session_date,
        tenant_id=summary.tenant_id,
        pieces=summary.pieces,
        distinct_skus=summary.distinct_skus,
        differences=summary.differences,
        active_seconds=summary.active_seconds,
        active_time=format_active_time(summary.active_seconds),
        velocity=summary.velocity,
        precision=summary.precision,
    )


@router.get("/marbete/stats/lifetime/{actor_id}", response_model=LifetimeStatsResponse)
def lifetime_stats(actor_id: str, db=Depends(get_db)):
    row = StatsService(db).recompute_lifetime(actor_id)
    db.commit()
    return LifetimeStatsResponse(
        actor_id=row.actor_id,
        pieces_counted=row.pieces_counted,
        pieces_verified=row.pieces_verified,
        total_pieces=row.total_pieces,
        distinct_skus=row.distinct_skus,
        distinct_tenants_worked=row.distinct_tenants_worked,
        total_verifications=row.total_verifications,
        precision=row.precision,
        lifetime_hours=row.lifetime_hours,
        hours_estimated=row.hours_estimated,
        average_velocity=row.average_velocity,
    )
