from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from app.marbete.core.config import settings
from app.marbete.core.error_catalog import AppError, ErrorCatalog
from app.marbete.core.metrics import metrics
from app.marbete.db.models import SCAN_STATE_PENDING, ScanRecord
from app.marbete.repos.scans import ScanRepository
from app.marbete.schemas.counting import ScanPayload
from app.marbete.services.stats import ROLE_COUNTER, StatsService

logger = logging.getLogger(__name__)


def build_scan_record(item: ScanPayload, synced_at: datetime) -> ScanRecord:
    return ScanRecord(
        tenant_id=item.tenant_id,
        control_batch_id=item.control_batch_id,
        product_code=item.product_code,
        quantity=item.quantity,
        area=item.area,
        location=item.location,
        actor_id=item.actor_id,
        actor_name=item.actor_name or "Unknown",
        scanned_at=item.scanned_at or item.session_start or synced_at,
        scan_started_at=item.session_start,
        scan_ended_at=item.session_end,
        is_recount=item.is_recount,
        state=SCAN_STATE_PENDING,
        synced_at=synced_at,
    )


class IngestionService:
    def __init__(self, db):
        self.db = db
        self.repo = ScanRepository(db)

    def ingest(self, items: list[ScanPayload]) -> tuple[int, datetime]:
        if not items:
            raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "items must not be empty"})
        if len(items) > settings.INGEST_MAX_ITEMS:
            raise AppError(
                ErrorCatalog.INGEST_LIMIT_EXCEEDED,
                details={"max_items": settings.INGEST_MAX_ITEMS, "received": len(items)},
            )
        synced_at = datetime.utcnow()
        records = [build_scan_record(item, synced_at) for item in items]
        try:
            self.repo.add_all(records)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise AppError(ErrorCatalog.PERSISTENCE_ERROR, details={"message": str(exc.__class__.__name__)}) from exc

        metrics.increment_scans_ingested(len(records))
        logger.info(
            "scans_ingested",
            extra={"count": len(records), "tenants": sorted({record.tenant_id for record in records})},
        )

        days_by_actor: dict[str, set] = defaultdict(set)
        for record in records:
            if record.actor_id:
                days_by_actor[record.actor_id].add(record.scanned_at.date())
        stats = StatsService(self.db)
        for actor_id, days in days_by_actor.items():
            stats.refresh_actor(actor_id, ROLE_COUNTER, days)
        return len(records), synced_at
