from datetime import date
from typing import Literal

from pydantic import BaseModel

Role = Literal["counter", "verifier"]


class SessionStatsResponse(BaseModel):
    actor_id: str
    role: Role
    session_date: date
    tenant_id: str | None
    pieces: int
    distinct_skus: int
    differences: int
    active_seconds: int
    active_time: str
    velocity: int
    precision: float


class LifetimeStatsResponse(BaseModel):
    actor_id: str
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
