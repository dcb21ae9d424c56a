from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from app.marbete.core.config import settings
from app.marbete.core.error_catalog import AppError, ErrorCatalog
from app.marbete.repos.catalog import CatalogRepository
from app.marbete.repos.scans import ScanRepository
from app.marbete.repos.verifications import VerificationRepository
from app.marbete.schemas.verification import FusionItem, FusionResponse

logger = logging.getLogger(__name__)


@dataclass
class ScanAggregate:
    product_code: str
    counted_quantity: int = 0
    area: str | None = None
    location: str | None = None


def aggregate_scans(scans: Iterable) -> list[ScanAggregate]:
    """Collapse scan rows into one aggregate per product code.

    Rows must arrive in primary key order. Quantities are summed; area and
    location keep the last non-null value seen. The result preserves the
    order in which each code was first scanned.
    """
    aggregates: dict[str, ScanAggregate] = {}
    for scan in scans:
        aggregate = aggregates.get(scan.product_code)
        if aggregate is None:
            aggregate = ScanAggregate(product_code=scan.product_code)
            aggregates[scan.product_code] = aggregate
        aggregate.counted_quantity += int(scan.quantity or 0)
        if scan.area is not None:
            aggregate.area = scan.area
        if scan.location is not None:
            aggregate.location = scan.location
    return list(aggregates.values())


def fuse(aggregates: list[ScanAggregate], catalog: dict) -> list[FusionItem]:
    items: list[FusionItem] = []
    for aggregate in aggregates:
        master = catalog.get(aggregate.product_code)
        system_quantity = int(master.quantity or 0) if master is not None else 0
        items.append(
            FusionItem(
                product_code=aggregate.product_code,
                description=master.description if master is not None else settings.NOT_IN_CATALOG_LABEL,
                system_quantity=system_quantity,
                counted_quantity=aggregate.counted_quantity,
                verified_quantity=aggregate.counted_quantity,
                variance=aggregate.counted_quantity - system_quantity,
                area=aggregate.area if aggregate.area is not None else getattr(master, "area", None),
                location=aggregate.location if aggregate.location is not None else getattr(master, "location", None),
                in_master_catalog=master is not None,
            )
        )
    return items


class FusionService:
    def __init__(self, db):
        self.scans = ScanRepository(db)
        self.catalog = CatalogRepository(db)
        self.verifications = VerificationRepository(db)

    def build(self, *, tenant_id: str, control_batch_id: str) -> FusionResponse:
        if not tenant_id:
            raise AppError(ErrorCatalog.TENANT_SCOPE_REQUIRED)
        if not control_batch_id:
            raise AppError(ErrorCatalog.CONTROL_BATCH_REQUIRED)
        if self.verifications.is_closed(tenant_id=tenant_id, control_batch_id=control_batch_id):
            raise AppError(
                ErrorCatalog.MARBETE_ALREADY_CLOSED,
                details={"control_batch_id": control_batch_id},
            )

        aggregates = aggregate_scans(
            self.scans.list_for_batch(tenant_id=tenant_id, control_batch_id=control_batch_id)
        )
        catalog = self.catalog.lookup_codes(
            tenant_id=tenant_id,
            product_codes=[aggregate.product_code for aggregate in aggregates],
        )
        items = fuse(aggregates, catalog)
        logger.info(
            "marbete_fused",
            extra={
                "tenant_id": tenant_id,
                "control_batch_id": control_batch_id,
                "products": len(items),
                "not_in_catalog": sum(1 for item in items if not item.in_master_catalog),
            },
        )
        return FusionResponse(control_batch_id=control_batch_id, items=items)
