from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator

from sqlalchemy import Boolean, DateTime, Integer, String, create_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from .config import ClientConfig

SYNC_STATE_PENDING = "pending"
SYNC_STATE_SYNCED = "synced"


class LocalBase(DeclarativeBase):
    pass


class CaptureEntryRow(LocalBase):
    __tablename__ = "capture_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_code: Mapped[str] = mapped_column(String(100), nullable=False)
    location: Mapped[str | None] = mapped_column(String(100), nullable=True)
    area: Mapped[str | None] = mapped_column(String(100), nullable=True)
    control_batch_id: Mapped[str] = mapped_column(String(100), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    sync_state: Mapped[str] = mapped_column(String(20), nullable=False, default=SYNC_STATE_PENDING)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


class CaptureSessionRow(LocalBase):
    """The single active capture session of this device."""

    __tablename__ = "capture_session"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    control_batch_id: Mapped[str] = mapped_column(String(100), nullable=False)
    actor_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    actor_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    area: Mapped[str | None] = mapped_column(String(100), nullable=True)
    location: Mapped[str | None] = mapped_column(String(100), nullable=True)
    started_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class CatalogProductRow(LocalBase):
    __tablename__ = "catalog_products"

    product_code: Mapped[str] = mapped_column(String(100), primary_key=True)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    area: Mapped[str | None] = mapped_column(String(100), nullable=True)
    location: Mapped[str | None] = mapped_column(String(100), nullable=True)
    barcode: Mapped[str | None] = mapped_column(String(100), nullable=True)
    unit_of_measure: Mapped[str] = mapped_column(String(20), nullable=False, default="UN")
    downloaded_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


class VerificationMetaRow(LocalBase):
    __tablename__ = "verification_meta"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    control_batch_id: Mapped[str] = mapped_column(String(100), nullable=False)
    verifier_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    verifier_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    opened_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class VerificationEntryRow(LocalBase):
    __tablename__ = "verification_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_code: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    system_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    counted_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    verified_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    area: Mapped[str | None] = mapped_column(String(100), nullable=True)
    location: Mapped[str | None] = mapped_column(String(100), nullable=True)
    in_master_catalog: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class LocalDatabase:
    """SQLite file holding everything the device keeps between restarts."""

    def __init__(self, url: str) -> None:
        self.url = url
        self.engine = create_engine(url, connect_args={"check_same_thread": False})
        LocalBase.metadata.create_all(self.engine)
        self._sessionmaker = sessionmaker(bind=self.engine, expire_on_commit=False)

    @classmethod
    def from_config(cls, config: ClientConfig) -> "LocalDatabase":
        Path(config.data_dir).mkdir(parents=True, exist_ok=True)
        return cls(config.local_db_url)

    @classmethod
    def at_path(cls, path: str | Path) -> "LocalDatabase":
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        return cls(f"sqlite+pysqlite:///{path}")

    @contextmanager
    def session(self) -> Iterator[Session]:
        db = self._sessionmaker()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def dispose(self) -> None:
        self.engine.dispose()
