from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from ..models import LifetimeStats, SessionStats
from .base import BaseClient


@dataclass
class StatsClient(BaseClient):
    def session(self, actor_id: str, role: str, session_date: date | None = None) -> SessionStats:
        params: dict[str, str] = {"role": role}
        if session_date is not None:
            params["session_date"] = session_date.isoformat()
        payload = self._request_object(
            "GET",
            f"/marbete/stats/session/{actor_id}",
            "session stats",
            params=params,
            module="stats",
            operation="session",
        )
        return SessionStats.model_validate(payload)

    def lifetime(self, actor_id: str) -> LifetimeStats:
        payload = self._request_object(
            "GET",
            f"/marbete/stats/lifetime/{actor_id}",
            "lifetime stats",
            module="stats",
            operation="lifetime",
        )
        return LifetimeStats.model_validate(payload)
