from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class ScanPayload(BaseModel):
    product_code: str
    quantity: int
    area: str | None = None
    location: str | None = None
    control_batch_id: str
    actor_id: str | None = None
    actor_name: str | None = None
    session_start: datetime | None = None
    session_end: datetime | None = None
    scanned_at: datetime | None = None
    tenant_id: str


class ScanIngestResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    message: str | None = None
    count: int
    synced_at: datetime | None = None


class FusionItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    product_code: str
    description: str
    system_quantity: int = 0
    counted_quantity: int = 0
    verified_quantity: int = 0
    variance: int = 0
    area: str | None = None
    location: str | None = None
    in_master_catalog: bool = True


class FusionResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    control_batch_id: str
    items: list[FusionItem] = Field(default_factory=list)


class CommitItem(BaseModel):
    product_code: str
    description: str | None = None
    system_quantity: int = 0
    counted_quantity: int = 0
    verified_quantity: int = 0
    area: str | None = None
    location: str | None = None
    in_master_catalog: bool = True
    control_batch_id: str | None = None


class CommitRequest(BaseModel):
    tenant_id: str
    control_batch_id: str
    verifier_id: str | None = None
    verifier_name: str | None = None
    duration_seconds: int = 0
    items: list[CommitItem]


class CommitResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    message: str | None = None
    control_batch_id: str | None = None
    count: int


class CatalogRow(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int | None = None
    product_code: str
    description: str | None = None
    quantity: int = 0
    area: str | None = None
    location: str | None = None
    barcode: str | None = None
    unit_of_measure: str | None = None


class CatalogPage(BaseModel):
    model_config = ConfigDict(extra="allow")

    count: int | None = None
    page: int = 1
    page_size: int
    inventory: list[CatalogRow] = Field(default_factory=list)


class SessionStats(BaseModel):
    model_config = ConfigDict(extra="allow")

    actor_id: str
    role: str
    session_date: date
    tenant_id: str | None = None
    pieces: int
    distinct_skus: int
    differences: int
    active_seconds: int
    active_time: str | None = None
    velocity: int
    precision: float


class LifetimeStats(BaseModel):
    model_config = ConfigDict(extra="allow")

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


class CountingHistoryRow(BaseModel):
    model_config = ConfigDict(extra="allow")

    control_batch_id: str
    product_code: str
    quantity: int
    scanned_at: datetime


class VerificationHistoryRow(BaseModel):
    model_config = ConfigDict(extra="allow")

    control_batch_id: str
    product_code: str
    variance: int
    verified_quantity: int
    system_quantity: int
    committed_at: datetime
