from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import select

from app.marbete.db.models import VERIFICATION_STATE_VERIFIED, VerificationRecord


class VerificationRepository:
    def __init__(self, db):
        self.db = db

    def is_closed(self, *, tenant_id: str, control_batch_id: str) -> bool:
        query = (
            select(VerificationRecord.id)
            .where(
                VerificationRecord.tenant_id == tenant_id,
                VerificationRecord.control_batch_id == control_batch_id,
                VerificationRecord.state == VERIFICATION_STATE_VERIFIED,
            )
            .limit(1)
        )
        return self.db.execute(query).scalar_one_or_none() is not None

    def add_all(self, records: list[VerificationRecord]) -> list[VerificationRecord]:
        self.db.add_all(records)
        self.db.flush()
        return records

    def list_for_verifier(
        self,
        verifier_id: str,
        *,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> list[VerificationRecord]:
        query = select(VerificationRecord).where(VerificationRecord.verifier_id == verifier_id)
        if since is not None:
            query = query.where(VerificationRecord.committed_at >= since)
        if until is not None:
            query = query.where(VerificationRecord.committed_at < until)
        return list(self.db.execute(query.order_by(VerificationRecord.id.asc())).scalars().all())

    def list_for_batches(self, batch_keys: Iterable[tuple[str, str]]) -> list[VerificationRecord]:
        keys = set(batch_keys)
        if not keys:
            return []
        batch_ids = {control_batch_id for _, control_batch_id in keys}
        query = (
            select(VerificationRecord)
            .where(
                VerificationRecord.control_batch_id.in_(sorted(batch_ids)),
                VerificationRecord.state == VERIFICATION_STATE_VERIFIED,
            )
            .order_by(VerificationRecord.id.asc())
        )
        rows = self.db.execute(query).scalars().all()
        return [row for row in rows if (row.tenant_id, row.control_batch_id) in keys]

    def history_for_verifier(self, verifier_id: str, *, limit: int) -> list[VerificationRecord]:
        query = (
            select(VerificationRecord)
            .where(VerificationRecord.verifier_id == verifier_id)
            .order_by(VerificationRecord.committed_at.desc(), VerificationRecord.id.desc())
            .limit(limit)
        )
        return list(self.db.execute(query).scalars().all())
