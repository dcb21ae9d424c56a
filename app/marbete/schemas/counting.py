from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.marbete.schemas.common import clean_optional_text, clean_required_text, to_naive_utc


class ScanPayload(BaseModel):
    tenant_id: str = Field(min_length=1, max_length=64)
    control_batch_id: str = Field(min_length=1, max_length=100)
    product_code: str = Field(min_length=1, max_length=100)
    quantity: int = 0
    area: str | None = Field(default=None, max_length=100)
    location: str | None = Field(default=None, max_length=100)
    actor_id: str | None = Field(default=None, max_length=64)
    actor_name: str | None = Field(default=None, max_length=255)
    session_start: datetime | None = None
    session_end: datetime | None = None
    scanned_at: datetime | None = None
    is_recount: bool = False

    @field_validator("tenant_id", "control_batch_id", "product_code", mode="before")
    @classmethod
    def _strip_required(cls, value):
        return clean_required_text(value)

    @field_validator("area", "location", "actor_id", "actor_name", mode="before")
    @classmethod
    def _strip_optional(cls, value):
        return clean_optional_text(value)

    @field_validator("quantity", mode="before")
    @classmethod
    def _coerce_quantity(cls, value):
        if value in (None, ""):
            return 0
        return value

    @field_validator("session_start", "session_end", "scanned_at")
    @classmethod
    def _naive_utc(cls, value):
        return to_naive_utc(value)


class ScanIngestRequest(BaseModel):
    items: list[ScanPayload] = Field(min_length=1)


class ScanIngestResponse(BaseModel):
    message: str
    count: int
    synced_at: datetime


class CountingHistoryRow(BaseModel):
    control_batch_id: str
    product_code: str
    quantity: int
    scanned_at: datetime


class CountingHistoryResponse(BaseModel):
    history: list[CountingHistoryRow]
