from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from sqlalchemy import delete, func, or_, select

from .clients.catalog_client import CatalogClient
from .local_db import CatalogProductRow, LocalDatabase
from .models import CatalogRow
from .retry import fetch_in_chunks

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "No description"


@dataclass(frozen=True)
class CachedProduct:
    product_code: str
    description: str
    quantity: int
    area: str | None
    location: str | None
    barcode: str | None
    unit_of_measure: str

    @classmethod
    def from_row(cls, row: CatalogProductRow) -> "CachedProduct":
        return cls(
            product_code=row.product_code,
            description=row.description,
            quantity=row.quantity,
            area=row.area,
            location=row.location,
            barcode=row.barcode,
            unit_of_measure=row.unit_of_measure,
        )


def dedupe_by_code(rows: list[CatalogRow]) -> dict[str, CatalogRow]:
    """Keep one row per trimmed product code; later rows win."""
    products: dict[str, CatalogRow] = {}
    for row in rows:
        code = (row.product_code or "").strip()
        if code:
            products[code] = row
    return products


class CatalogCache:
    def __init__(
        self,
        client: CatalogClient,
        db: LocalDatabase,
        *,
        page_size: int = 1000,
        retries: int = 3,
        backoff_seconds: float = 0.3,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client
        self.db = db
        self.page_size = page_size
        self.retries = retries
        self.backoff_seconds = backoff_seconds
        self.sleep = sleep

    @classmethod
    def from_config(cls, client: CatalogClient, db: LocalDatabase) -> "CatalogCache":
        config = client.http.config
        return cls(
            client,
            db,
            page_size=config.catalog_page_size,
            retries=config.retries,
            backoff_seconds=config.retry_backoff_seconds,
            sleep=client.http.sleep,
        )

    def download(self, tenant_id: str) -> int:
        """Fetch the whole tenant catalog and replace the local copy.

        The local copy is untouched if any page fails.
        """

        def fetch_page(page: int, page_size: int):
            result = self.client.get_page(tenant_id, page, page_size, retry=False)
            return result.inventory, result.count

        rows: list[CatalogRow] = []
        for chunk in fetch_in_chunks(
            fetch_page,
            page_size=self.page_size,
            retries=self.retries,
            backoff_seconds=self.backoff_seconds,
            sleep=self.sleep,
        ):
            rows.extend(chunk)
        products = dedupe_by_code(rows)
        self.replace_all(products)
        logger.info(
            "catalog_downloaded",
            extra={"tenant_id": tenant_id, "rows": len(rows), "products": len(products)},
        )
        return len(products)

    def replace_all(self, products: dict[str, CatalogRow]) -> None:
        downloaded_at = datetime.utcnow()
        with self.db.session() as db:
            db.execute(delete(CatalogProductRow))
            db.add_all(
                [
                    CatalogProductRow(
                        product_code=code,
                        description=row.description or DEFAULT_DESCRIPTION,
                        quantity=int(row.quantity or 0),
                        area=row.area,
                        location=row.location,
                        barcode=row.barcode,
                        unit_of_measure=row.unit_of_measure or "UN",
                        downloaded_at=downloaded_at,
                    )
                    for code, row in products.items()
                ]
            )

    def lookup(self, product_code: str) -> CachedProduct | None:
        code = (product_code or "").strip()
        if not code:
            return None
        with self.db.session() as db:
            row = db.get(CatalogProductRow, code)
            if row is None:
                row = db.execute(
                    select(CatalogProductRow).where(CatalogProductRow.barcode == code).limit(1)
                ).scalar_one_or_none()
            return CachedProduct.from_row(row) if row is not None else None

    def search(self, term: str, *, limit: int = 50) -> list[CachedProduct]:
        text = (term or "").strip().lower()
        if not text:
            return []
        pattern = f"%{text}%"
        with self.db.session() as db:
            rows = db.execute(
                select(CatalogProductRow)
                .where(
                    or_(
                        func.lower(CatalogProductRow.product_code).like(pattern),
                        func.lower(CatalogProductRow.description).like(pattern),
                    )
                )
                .order_by(CatalogProductRow.product_code.asc())
                .limit(limit)
            ).scalars().all()
            return [CachedProduct.from_row(row) for row in rows]

    def count(self) -> int:
        with self.db.session() as db:
            return int(db.execute(select(func.count()).select_from(CatalogProductRow)).scalar_one())
