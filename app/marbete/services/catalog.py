from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from app.marbete.core.config import settings
from app.marbete.core.error_catalog import AppError, ErrorCatalog
from app.marbete.db.models import MasterCatalogItem
from app.marbete.repos.catalog import CatalogRepository
from app.marbete.schemas.catalog import CatalogImportRequest, CatalogPageResponse, CatalogRow

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "No description"
DEFAULT_UNIT_OF_MEASURE = "UN"


class CatalogService:
    def __init__(self, db):
        self.db = db
        self.repo = CatalogRepository(db)

    def page(self, *, tenant_id: str, page: int, page_size: int) -> CatalogPageResponse:
        if not tenant_id:
            raise AppError(ErrorCatalog.TENANT_SCOPE_REQUIRED)
        page_size = min(page_size, settings.CATALOG_MAX_PAGE_SIZE)
        rows, total = self.repo.page(tenant_id=tenant_id, page=page, page_size=page_size)
        return CatalogPageResponse(
            count=total,
            page=page,
            page_size=page_size,
            inventory=[
                CatalogRow(
                    id=row.id,
                    product_code=row.product_code,
                    description=row.description,
                    quantity=row.quantity,
                    area=row.area,
                    location=row.location,
                    barcode=row.barcode,
                    unit_of_measure=row.unit_of_measure,
                    loaded_at=row.loaded_at,
                )
                for row in rows
            ],
        )

    def import_items(self, payload: CatalogImportRequest) -> int:
        if len(payload.items) > settings.INGEST_MAX_ITEMS:
            raise AppError(
                ErrorCatalog.INGEST_LIMIT_EXCEEDED,
                details={"max_items": settings.INGEST_MAX_ITEMS, "received": len(payload.items)},
            )
        loaded_at = datetime.utcnow()
        rows = [
            MasterCatalogItem(
                tenant_id=payload.tenant_id,
                product_code=item.product_code,
                description=item.description or DEFAULT_DESCRIPTION,
                quantity=item.quantity,
                area=item.area,
                location=item.location,
                control_batch_id=item.control_batch_id,
                barcode=item.barcode,
                unit_cost=item.unit_cost,
                unit_of_measure=item.unit_of_measure or DEFAULT_UNIT_OF_MEASURE,
                category=item.category,
                loaded_at=loaded_at,
            )
            for item in payload.items
        ]
        try:
            self.repo.add_all(rows)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise AppError(ErrorCatalog.PERSISTENCE_ERROR, details={"message": "catalog import failed"}) from exc
        logger.info("catalog_imported", extra={"tenant_id": payload.tenant_id, "count": len(rows)})
        return len(rows)
