from __future__ import annotations

from datetime import date

from sqlalchemy import select

from app.marbete.db.models import LifetimeStats, SessionStats


class StatsRepository:
    def __init__(self, db):
        self.db = db

    def get_session(self, *, actor_id: str, role: str, session_date: date) -> SessionStats | None:
        query = select(SessionStats).where(
            SessionStats.actor_id == actor_id,
            SessionStats.role == role,
            SessionStats.session_date == session_date,
        )
        return self.db.execute(query).scalar_one_or_none()

    def list_sessions(self, actor_id: str) -> list[SessionStats]:
        query = select(SessionStats).where(SessionStats.actor_id == actor_id).order_by(SessionStats.id.asc())
        return list(self.db.execute(query).scalars().all())

    def get_lifetime(self, actor_id: str) -> LifetimeStats | None:
        return self.db.get(LifetimeStats, actor_id)

    def add(self, row):
        self.db.add(row)
        self.db.flush()
        return row
