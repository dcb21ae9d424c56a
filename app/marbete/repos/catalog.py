from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import func, select

from app.marbete.db.models import MasterCatalogItem


class CatalogRepository:
    def __init__(self, db):
        self.db = db

    def lookup_codes(self, *, tenant_id: str, product_codes: Iterable[str]) -> dict[str, MasterCatalogItem]:
        """Resolve many product codes with a single IN query.

        The table tolerates repeated codes; the row with the highest id wins.
        """
        codes = sorted(set(product_codes))
        if not codes:
            return {}
        query = (
            select(MasterCatalogItem)
            .where(
                MasterCatalogItem.tenant_id == tenant_id,
                MasterCatalogItem.product_code.in_(codes),
            )
            .order_by(MasterCatalogItem.id.asc())
        )
        lookup: dict[str, MasterCatalogItem] = {}
        for row in self.db.execute(query).scalars():
            lookup[row.product_code] = row
        return lookup

    def page(self, *, tenant_id: str, page: int, page_size: int) -> tuple[list[MasterCatalogItem], int]:
        base_query = select(MasterCatalogItem).where(MasterCatalogItem.tenant_id == tenant_id)
        total = self.db.execute(
            select(func.count()).select_from(base_query.subquery())
        ).scalar_one()
        query = base_query.order_by(MasterCatalogItem.id.asc()).offset((page - 1) * page_size).limit(page_size)
        return list(self.db.execute(query).scalars().all()), int(total)

    def add_all(self, items: list[MasterCatalogItem]) -> list[MasterCatalogItem]:
        self.db.add_all(items)
        self.db.flush()
        return items
