from __future__ import annotations

from datetime import datetime

from sqlalchemy import select

from app.marbete.db.models import ScanRecord


class ScanRepository:
    def __init__(self, db):
        self.db = db

    def add_all(self, records: list[ScanRecord]) -> list[ScanRecord]:
        self.db.add_all(records)
        self.db.flush()
        return records

    def list_for_batch(self, *, tenant_id: str, control_batch_id: str) -> list[ScanRecord]:
        # Primary key order fixes which scan contributes the area/location last.
        query = (
            select(ScanRecord)
            .where(
                ScanRecord.tenant_id == tenant_id,
                ScanRecord.control_batch_id == control_batch_id,
            )
            .order_by(ScanRecord.id.asc())
        )
        return list(self.db.execute(query).scalars().all())

    def list_for_actor(
        self,
        actor_id: str,
        *,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> list[ScanRecord]:
        query = select(ScanRecord).where(ScanRecord.actor_id == actor_id)
        if since is not None:
            query = query.where(ScanRecord.scanned_at >= since)
        if until is not None:
            query = query.where(ScanRecord.scanned_at < until)
        return list(self.db.execute(query.order_by(ScanRecord.id.asc())).scalars().all())

    def history_for_actor(self, actor_id: str, *, limit: int) -> list[ScanRecord]:
        query = (
            select(ScanRecord)
            .where(ScanRecord.actor_id == actor_id)
            .order_by(ScanRecord.scanned_at.desc(), ScanRecord.id.desc())
            .limit(limit)
        )
        return list(self.db.execute(query).scalars().all())
