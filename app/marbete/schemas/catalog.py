from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.marbete.schemas.common import clean_optional_text, clean_required_text


class CatalogRow(BaseModel):
    id: int
    product_code: str
    description: str
    quantity: int
    area: str | None
    location: str | None
    barcode: str | None
    unit_of_measure: str
    loaded_at: datetime


class CatalogPageResponse(BaseModel):
    count: int
    page: int
    page_size: int
    inventory: list[CatalogRow]


class CatalogImportItem(BaseModel):
    product_code: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=255)
    quantity: int = 0
    area: str | None = Field(default=None, max_length=100)
    location: str | None = Field(default=None, max_length=100)
    control_batch_id: str | None = Field(default=None, max_length=100)
    barcode: str | None = Field(default=None, max_length=100)
    unit_cost: float = 0
    unit_of_measure: str | None = Field(default=None, max_length=20)
    category: str | None = Field(default=None, max_length=100)

    @field_validator("product_code", mode="before")
    @classmethod
    def _strip_code(cls, value):
        return clean_required_text(value)

    @field_validator(
        "description", "area", "location", "control_batch_id", "barcode", "unit_of_measure", "category",
        mode="before",
    )
    @classmethod
    def _strip_optional(cls, value):
        return clean_optional_text(value)

    @field_validator("quantity", "unit_cost", mode="before")
    @classmethod
    def _blank_is_zero(cls, value):
        if value in (None, ""):
            return 0
        return value


class CatalogImportRequest(BaseModel):
    tenant_id: str = Field(min_length=1, max_length=64)
    items: list[CatalogImportItem] = Field(min_length=1)


class CatalogImportResponse(BaseModel):
    message: str
    count: int
