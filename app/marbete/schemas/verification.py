from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.marbete.schemas.common import clean_optional_text, clean_required_text


class FusionItem(BaseModel):
    product_code: str
    description: str
    system_quantity: int
    counted_quantity: int
    verified_quantity: int
    variance: int
    area: str | None
    location: str | None
    in_master_catalog: bool


class FusionResponse(BaseModel):
    control_batch_id: str
    items: list[FusionItem]


class CommitItem(BaseModel):
    product_code: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=255)
    system_quantity: int = 0
    counted_quantity: int = 0
    verified_quantity: int = 0
    # Accepted for wire compatibility; the stored variance is always recomputed.
    variance: int | None = None
    area: str | None = Field(default=None, max_length=100)
    location: str | None = Field(default=None, max_length=100)
    in_master_catalog: bool = True
    control_batch_id: str | None = None

    @field_validator("product_code", mode="before")
    @classmethod
    def _strip_code(cls, value):
        return clean_required_text(value)

    @field_validator("description", "area", "location", "control_batch_id", mode="before")
    @classmethod
    def _strip_optional(cls, value):
        return clean_optional_text(value)

    @field_validator("system_quantity", "counted_quantity", "verified_quantity", mode="before")
    @classmethod
    def _blank_is_zero(cls, value):
        if value in (None, ""):
            return 0
        return value


class CommitRequest(BaseModel):
    tenant_id: str = Field(min_length=1, max_length=64)
    control_batch_id: str = Field(min_length=1, max_length=100)
    verifier_id: str | None = Field(default=None, max_length=64)
    verifier_name: str | None = Field(default=None, max_length=255)
    duration_seconds: int = Field(default=0, ge=0)
    items: list[CommitItem] = Field(min_length=1)

    @field_validator("tenant_id", "control_batch_id", mode="before")
    @classmethod
    def _strip_required(cls, value):
        return clean_required_text(value)


class CommitResponse(BaseModel):
    message: str
    control_batch_id: str
    count: int


class VerificationHistoryRow(BaseModel):
    control_batch_id: str
    product_code: str
    variance: int
    verified_quantity: int
    system_quantity: int
    committed_at: datetime


class VerificationHistoryResponse(BaseModel):
    history: list[VerificationHistoryRow]
