from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Union

from sqlalchemy import delete, func, select

from .local_db import SYNC_STATE_PENDING, CaptureEntryRow, CaptureSessionRow, LocalDatabase
from .validation import (
    BatchLimitReachedError,
    ClientValidationError,
    LocationRequiredError,
    PendingEntriesError,
    ValidationIssue,
    coerce_quantity,
    require_text,
)

logger = logging.getLogger(__name__)

SESSION_KIND_FIXED = "fixed"
SESSION_KIND_DYNAMIC = "dynamic"
_SESSION_ROW_ID = 1


def _optional_text(value) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class FixedLocationSession:
    """Every scan lands on the location chosen when the session started."""

    tenant_id: str
    control_batch_id: str
    location: str
    area: str | None = None
    actor_id: str | None = None
    actor_name: str | None = None
    started_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tenant_id", require_text(self.tenant_id, "tenant_id"))
        object.__setattr__(self, "control_batch_id", require_text(self.control_batch_id, "control_batch_id"))
        object.__setattr__(self, "location", require_text(self.location, "location"))
        object.__setattr__(self, "area", _optional_text(self.area))


@dataclass(frozen=True)
class DynamicLocationSession:
    """Each scan names its own location."""

    tenant_id: str
    control_batch_id: str
    area: str | None = None
    actor_id: str | None = None
    actor_name: str | None = None
    started_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tenant_id", require_text(self.tenant_id, "tenant_id"))
        object.__setattr__(self, "control_batch_id", require_text(self.control_batch_id, "control_batch_id"))
        object.__setattr__(self, "area", _optional_text(self.area))

    @property
    def location(self) -> None:
        return None


CaptureSession = Union[FixedLocationSession, DynamicLocationSession]


def resolve_effective_location(session: CaptureSession, scanned_location: str | None = None) -> str:
    if isinstance(session, FixedLocationSession):
        return session.location
    location = _optional_text(scanned_location)
    if location is None:
        raise LocationRequiredError()
    return location


def resolve_effective_area(session: CaptureSession, scanned_area: str | None = None) -> str | None:
    """Fixed sessions keep the session area; dynamic ones may name it per scan."""
    if isinstance(session, DynamicLocationSession):
        return _optional_text(scanned_area) or session.area
    return session.area


@dataclass(frozen=True)
class CaptureEntry:
    id: int
    product_code: str
    location: str | None
    area: str | None
    control_batch_id: str
    quantity: int
    sync_state: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: CaptureEntryRow) -> "CaptureEntry":
        return cls(
            id=row.id,
            product_code=row.product_code,
            location=row.location,
            area=row.area,
            control_batch_id=row.control_batch_id,
            quantity=row.quantity,
            sync_state=row.sync_state,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )


class LocalCaptureStore:
    """Offline scan buffer keyed by ``(control_batch_id, product_code, location)``.

    Re-scanning a key increments its quantity instead of adding a row. The
    store refuses new keys once it holds ``batch_limit`` entries; existing
    keys can still be incremented. Entries survive restarts and are only
    removed by ``clear``, ``abandon`` or a confirmed batch switch.
    """

    def __init__(self, db: LocalDatabase, *, batch_limit: int = 800) -> None:
        self.db = db
        self.batch_limit = batch_limit

    def record_scan(
        self,
        session: CaptureSession,
        product_code: str,
        scanned_location: str | None = None,
        scanned_area: str | None = None,
    ) -> CaptureEntry:
        code = require_text(product_code, "product_code")
        location = resolve_effective_location(session, scanned_location)
        area = resolve_effective_area(session, scanned_area)
        stale = self.pending_for_other_batches(session.control_batch_id)
        if stale:
            raise PendingEntriesError(stale)
        now = datetime.utcnow()
        with self.db.session() as db:
            row = db.execute(
                select(CaptureEntryRow).where(
                    CaptureEntryRow.control_batch_id == session.control_batch_id,
                    CaptureEntryRow.product_code == code,
                    CaptureEntryRow.location == location,
                )
            ).scalar_one_or_none()
            if row is not None:
                row.quantity += 1
                row.updated_at = now
            else:
                held = db.execute(select(func.count()).select_from(CaptureEntryRow)).scalar_one()
                if held >= self.batch_limit:
                    raise BatchLimitReachedError(self.batch_limit)
                row = CaptureEntryRow(
                    product_code=code,
                    location=location,
                    area=area,
                    control_batch_id=session.control_batch_id,
                    quantity=1,
                    sync_state=SYNC_STATE_PENDING,
                    created_at=now,
                    updated_at=now,
                )
                db.add(row)
            db.flush()
            return CaptureEntry.from_row(row)

    def edit_quantity(self, entry_id: int, new_quantity) -> CaptureEntry:
        with self.db.session() as db:
            row = db.get(CaptureEntryRow, entry_id)
            if row is None:
                raise ClientValidationError([ValidationIssue(None, "entry_id", f"unknown entry {entry_id}")])
            row.quantity = coerce_quantity(new_quantity)
            row.updated_at = datetime.utcnow()
            db.flush()
            return CaptureEntry.from_row(row)

    def remove(self, entry_id: int) -> None:
        with self.db.session() as db:
            db.execute(delete(CaptureEntryRow).where(CaptureEntryRow.id == entry_id))

    def list_all(self) -> list[CaptureEntry]:
        with self.db.session() as db:
            rows = db.execute(select(CaptureEntryRow).order_by(CaptureEntryRow.id.asc())).scalars().all()
            return [CaptureEntry.from_row(row) for row in rows]

    def count(self) -> int:
        with self.db.session() as db:
            return int(db.execute(select(func.count()).select_from(CaptureEntryRow)).scalar_one())

    def total_pieces(self) -> int:
        with self.db.session() as db:
            return int(db.execute(select(func.coalesce(func.sum(CaptureEntryRow.quantity), 0))).scalar_one())

    def clear(self) -> None:
        with self.db.session() as db:
            db.execute(delete(CaptureEntryRow))

    def abandon(self, confirm: bool = False) -> None:
        pending = self.count()
        if pending and not confirm:
            raise PendingEntriesError(pending)
        with self.db.session() as db:
            db.execute(delete(CaptureEntryRow))
            db.execute(delete(CaptureSessionRow))
        logger.info("capture_abandoned", extra={"discarded_entries": pending})

    def pending_for_other_batches(self, control_batch_id: str) -> int:
        with self.db.session() as db:
            return int(
                db.execute(
                    select(func.count())
                    .select_from(CaptureEntryRow)
                    .where(CaptureEntryRow.control_batch_id != control_batch_id)
                ).scalar_one()
            )

    def save_session(self, session: CaptureSession, confirm: bool = False) -> None:
        """Persist the active session.

        Switching to another control batch while entries of a different batch
        are unsynced raises ``PendingEntriesError``; with ``confirm`` those
        entries are discarded.
        """
        stale = self.pending_for_other_batches(session.control_batch_id)
        if stale and not confirm:
            raise PendingEntriesError(stale)
        kind = SESSION_KIND_FIXED if isinstance(session, FixedLocationSession) else SESSION_KIND_DYNAMIC
        with self.db.session() as db:
            if stale:
                db.execute(delete(CaptureEntryRow).where(CaptureEntryRow.control_batch_id != session.control_batch_id))
            row = db.get(CaptureSessionRow, _SESSION_ROW_ID)
            if row is None:
                row = CaptureSessionRow(id=_SESSION_ROW_ID)
                db.add(row)
            row.kind = kind
            row.tenant_id = session.tenant_id
            row.control_batch_id = session.control_batch_id
            row.actor_id = session.actor_id
            row.actor_name = session.actor_name
            row.area = session.area
            row.location = session.location
            row.started_at = session.started_at

    def load_session(self) -> CaptureSession | None:
        with self.db.session() as db:
            row = db.get(CaptureSessionRow, _SESSION_ROW_ID)
            if row is None:
                return None
            common = {
                "tenant_id": row.tenant_id,
                "control_batch_id": row.control_batch_id,
                "area": row.area,
                "actor_id": row.actor_id,
                "actor_name": row.actor_name,
                "started_at": row.started_at,
            }
            if row.kind == SESSION_KIND_FIXED:
                return FixedLocationSession(location=row.location, **common)
            return DynamicLocationSession(**common)

    def end_session(self, confirm: bool = False) -> None:
        """Close the persisted session; unsynced entries need ``confirm`` and are discarded."""
        pending = self.count()
        if pending and not confirm:
            raise PendingEntriesError(pending)
        with self.db.session() as db:
            db.execute(delete(CaptureEntryRow))
            db.execute(delete(CaptureSessionRow))
        if pending:
            logger.info("capture_session_ended", extra={"discarded_entries": pending})
