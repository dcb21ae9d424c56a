from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from sqlalchemy import delete, select

from .clients.verification_client import VerificationClient
from .local_db import LocalDatabase, VerificationEntryRow, VerificationMetaRow
from .models import CommitItem, CommitRequest, CommitResponse
from .validation import ClientValidationError, ValidationIssue, coerce_quantity, require_text

logger = logging.getLogger(__name__)

_META_ROW_ID = 1


@dataclass(frozen=True)
class WorkspaceItem:
    product_code: str
    description: str
    system_quantity: int
    counted_quantity: int
    verified_quantity: int
    area: str | None
    location: str | None
    in_master_catalog: bool

    @property
    def variance(self) -> int:
        return self.verified_quantity - self.system_quantity

    @classmethod
    def from_row(cls, row: VerificationEntryRow) -> "WorkspaceItem":
        return cls(
            product_code=row.product_code,
            description=row.description,
            system_quantity=row.system_quantity,
            counted_quantity=row.counted_quantity,
            verified_quantity=row.verified_quantity,
            area=row.area,
            location=row.location,
            in_master_catalog=row.in_master_catalog,
        )


@dataclass(frozen=True)
class WorkspaceInfo:
    tenant_id: str
    control_batch_id: str
    verifier_id: str | None
    verifier_name: str | None
    opened_at: datetime


class VerificationWorkspace:
    """Local copy of one marbete while a verifier reconciles it.

    Edits stay on the device until ``commit``; a failed commit leaves the
    workspace as it was so the verifier can retry.
    """

    def __init__(
        self,
        client: VerificationClient,
        db: LocalDatabase,
        *,
        clock: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self.client = client
        self.db = db
        self.clock = clock

    def info(self) -> WorkspaceInfo | None:
        with self.db.session() as db:
            row = db.get(VerificationMetaRow, _META_ROW_ID)
            if row is None:
                return None
            return WorkspaceInfo(
                tenant_id=row.tenant_id,
                control_batch_id=row.control_batch_id,
                verifier_id=row.verifier_id,
                verifier_name=row.verifier_name,
                opened_at=row.opened_at,
            )

    def open(
        self,
        tenant_id: str,
        control_batch_id: str,
        *,
        verifier_id: str | None = None,
        verifier_name: str | None = None,
    ) -> list[WorkspaceItem]:
        tenant_id = require_text(tenant_id, "tenant_id")
        control_batch_id = require_text(control_batch_id, "control_batch_id")
        current = self.info()
        if current is not None:
            if current.tenant_id == tenant_id and current.control_batch_id == control_batch_id:
                return self.items()
            raise ClientValidationError(
                [ValidationIssue(None, "control_batch_id", f"marbete {current.control_batch_id} is still open")]
            )

        fusion = self.client.get_marbete(tenant_id, control_batch_id)
        with self.db.session() as db:
            db.add(
                VerificationMetaRow(
                    id=_META_ROW_ID,
                    tenant_id=tenant_id,
                    control_batch_id=fusion.control_batch_id,
                    verifier_id=verifier_id,
                    verifier_name=verifier_name,
                    opened_at=self.clock(),
                )
            )
            db.add_all(
                [
                    VerificationEntryRow(
                        product_code=item.product_code,
                        description=item.description,
                        system_quantity=item.system_quantity,
                        counted_quantity=item.counted_quantity,
                        verified_quantity=item.verified_quantity,
                        area=item.area,
                        location=item.location,
                        in_master_catalog=item.in_master_catalog,
                    )
                    for item in fusion.items
                ]
            )
        logger.info(
            "verification_opened",
            extra={"tenant_id": tenant_id, "control_batch_id": control_batch_id, "items": len(fusion.items)},
        )
        return self.items()

    def items(self, filter_text: str | None = None) -> list[WorkspaceItem]:
        with self.db.session() as db:
            rows = db.execute(select(VerificationEntryRow).order_by(VerificationEntryRow.id.asc())).scalars().all()
            items = [WorkspaceItem.from_row(row) for row in rows]
        needle = (filter_text or "").strip().lower()
        if not needle:
            return items
        return [
            item
            for item in items
            if needle in item.product_code.lower() or needle in (item.description or "").lower()
        ]

    def differences(self) -> list[WorkspaceItem]:
        return [item for item in self.items() if item.variance != 0]

    def set_verified_quantity(self, product_code: str, value) -> WorkspaceItem:
        code = require_text(product_code, "product_code")
        with self.db.session() as db:
            row = db.execute(
                select(VerificationEntryRow).where(VerificationEntryRow.product_code == code)
            ).scalar_one_or_none()
            if row is None:
                raise ClientValidationError([ValidationIssue(None, "product_code", f"{code} is not in this marbete")])
            row.verified_quantity = coerce_quantity(value)
            db.flush()
            return WorkspaceItem.from_row(row)

    def elapsed_seconds(self) -> int:
        current = self.info()
        if current is None:
            return 0
        return max(int((self.clock() - current.opened_at).total_seconds()), 0)

    def commit(self) -> CommitResponse:
        current = self.info()
        if current is None:
            raise ClientValidationError([ValidationIssue(None, "control_batch_id", "no marbete is open")])
        items = self.items()
        if not items:
            raise ClientValidationError([ValidationIssue(None, "items", "marbete has no items to commit")])
        request = CommitRequest(
            tenant_id=current.tenant_id,
            control_batch_id=current.control_batch_id,
            verifier_id=current.verifier_id,
            verifier_name=current.verifier_name,
            duration_seconds=self.elapsed_seconds(),
            items=[
                CommitItem(
                    product_code=item.product_code,
                    description=item.description,
                    system_quantity=item.system_quantity,
                    counted_quantity=item.counted_quantity,
                    verified_quantity=item.verified_quantity,
                    area=item.area,
                    location=item.location,
                    in_master_catalog=item.in_master_catalog,
                    control_batch_id=current.control_batch_id,
                )
                for item in items
            ],
        )
        response = self.client.commit(request)
        self.abandon()
        logger.info(
            "verification_committed",
            extra={"control_batch_id": current.control_batch_id, "count": response.count},
        )
        return response

    def abandon(self) -> None:
        with self.db.session() as db:
            db.execute(delete(VerificationEntryRow))
            db.execute(delete(VerificationMetaRow))
