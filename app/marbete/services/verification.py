from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from app.marbete.core.config import settings
from app.marbete.core.error_catalog import AppError, ErrorCatalog
from app.marbete.core.metrics import metrics
from app.marbete.db.models import VERIFICATION_STATE_VERIFIED, VerificationRecord
from app.marbete.repos.verifications import VerificationRepository
from app.marbete.schemas.verification import CommitItem, CommitRequest
from app.marbete.services.stats import ROLE_VERIFIER, StatsService

logger = logging.getLogger(__name__)


def build_verification_record(
    item: CommitItem,
    payload: CommitRequest,
    committed_at: datetime,
) -> VerificationRecord:
    return VerificationRecord(
        tenant_id=payload.tenant_id,
        control_batch_id=payload.control_batch_id,
        product_code=item.product_code,
        description=item.description or settings.NOT_IN_CATALOG_LABEL,
        system_quantity=item.system_quantity,
        counted_quantity=item.counted_quantity,
        verified_quantity=item.verified_quantity,
        variance=item.verified_quantity - item.system_quantity,
        area=item.area,
        location=item.location,
        in_master_catalog=item.in_master_catalog,
        forced=not item.in_master_catalog,
        product_counted=item.counted_quantity > 0,
        verifier_id=payload.verifier_id,
        verifier_name=payload.verifier_name or "Unknown",
        verification_duration_seconds=payload.duration_seconds,
        committed_at=committed_at,
        state=VERIFICATION_STATE_VERIFIED,
    )


class VerificationCommitService:
    def __init__(self, db):
        self.db = db
        self.repo = VerificationRepository(db)

    def commit(self, payload: CommitRequest) -> int:
        if not payload.items:
            raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "items must not be empty"})
        mismatched = sorted(
            {
                item.control_batch_id
                for item in payload.items
                if item.control_batch_id is not None and item.control_batch_id != payload.control_batch_id
            }
        )
        if mismatched:
            raise AppError(
                ErrorCatalog.CONTROL_BATCH_MISMATCH,
                details={"control_batch_id": payload.control_batch_id, "item_control_batch_ids": mismatched},
            )
        if self.repo.is_closed(tenant_id=payload.tenant_id, control_batch_id=payload.control_batch_id):
            raise AppError(
                ErrorCatalog.MARBETE_ALREADY_CLOSED,
                details={"control_batch_id": payload.control_batch_id},
            )

        committed_at = datetime.utcnow()
        records = [build_verification_record(item, payload, committed_at) for item in payload.items]
        try:
            self.repo.add_all(records)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception(
                "verification_commit_failed",
                extra={"tenant_id": payload.tenant_id, "control_batch_id": payload.control_batch_id},
            )
            raise AppError(
                ErrorCatalog.PERSISTENCE_ERROR,
                details={"control_batch_id": payload.control_batch_id},
            ) from exc

        metrics.increment_marbete_closed()
        logger.info(
            "marbete_closed",
            extra={
                "tenant_id": payload.tenant_id,
                "control_batch_id": payload.control_batch_id,
                "verifier_id": payload.verifier_id,
                "count": len(records),
                "differences": sum(1 for record in records if record.variance != 0),
            },
        )
        StatsService(self.db).refresh_actor(payload.verifier_id, ROLE_VERIFIER, [committed_at.date()])
        return len(records)
