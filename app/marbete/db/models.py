from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Float, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


SCAN_STATE_PENDING = "pending"
VERIFICATION_STATE_VERIFIED = "verified"


class ScanRecord(Base):
    """One synced capture entry. Pure append: retries may produce duplicates."""

    __tablename__ = "scan_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    control_batch_id: Mapped[str] = mapped_column(String(100), nullable=False)
    product_code: Mapped[str] = mapped_column(String(100), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    area: Mapped[str | None] = mapped_column(String(100), nullable=True)
    location: Mapped[str | None] = mapped_column(String(100), nullable=True)
    actor_id: Mapped[str | None] = mapped_column(String(64), index=True, nullable=True)
    actor_name: Mapped[str] = mapped_column(String(255), nullable=False, default="Unknown")
    scanned_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    scan_started_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    scan_ended_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    is_recount: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    state: Mapped[str] = mapped_column(String(20), nullable=False, default=SCAN_STATE_PENDING)
    synced_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class MasterCatalogItem(Base):
    __tablename__ = "master_catalog_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    product_code: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    area: Mapped[str | None] = mapped_column(String(100), nullable=True)
    location: Mapped[str | None] = mapped_column(String(100), nullable=True)
    control_batch_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    barcode: Mapped[str | None] = mapped_column(String(100), nullable=True)
    unit_cost: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    unit_of_measure: Mapped[str] = mapped_column(String(20), nullable=False, default="UN")
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    loaded_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class VerificationRecord(Base):
    """Immutable reconciliation outcome; any verified row closes its control batch."""

    __tablename__ = "verification_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    control_batch_id: Mapped[str] = mapped_column(String(100), nullable=False)
    product_code: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    system_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    counted_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    verified_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    variance: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    area: Mapped[str | None] = mapped_column(String(100), nullable=True)
    location: Mapped[str | None] = mapped_column(String(100), nullable=True)
    in_master_catalog: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    forced: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    product_counted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    verifier_id: Mapped[str | None] = mapped_column(String(64), index=True, nullable=True)
    verifier_name: Mapped[str] = mapped_column(String(255), nullable=False, default="Unknown")
    verification_duration_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    committed_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    state: Mapped[str] = mapped_column(String(20), nullable=False, default=VERIFICATION_STATE_VERIFIED)


class SessionStats(Base):
    __tablename__ = "session_stats"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    actor_id: Mapped[str] = mapped_column(String(64), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    session_date: Mapped[date] = mapped_column(Date, nullable=False)
    tenant_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    pieces: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    distinct_skus: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    differences: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    active_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    velocity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    precision: Mapped[float] = mapped_column(Float, nullable=False, default=100.0)
    started_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("actor_id", "role", "session_date", name="uq_session_stats_actor_role_day"),
    )


class LifetimeStats(Base):
    __tablename__ = "lifetime_stats"

    actor_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    pieces_counted: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    pieces_verified: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_pieces: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    distinct_skus: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    distinct_tenants_worked: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_verifications: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    precision: Mapped[float] = mapped_column(Float, nullable=False, default=100.0)
    lifetime_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    hours_estimated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    average_velocity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


Index("ix_scan_records_tenant_batch", ScanRecord.tenant_id, ScanRecord.control_batch_id)
Index("ix_master_catalog_tenant_code", MasterCatalogItem.tenant_id, MasterCatalogItem.product_code)
Index("ix_verification_tenant_batch_state", VerificationRecord.tenant_id, VerificationRecord.control_batch_id, VerificationRecord.state)
