from __future__ import annotations

from dataclasses import dataclass

from ..models import CatalogPage
from .base import BaseClient


@dataclass
class CatalogClient(BaseClient):
    def get_page(self, tenant_id: str, page: int, page_size: int, *, retry: bool = True) -> CatalogPage:
        payload = self._request_object(
            "GET",
            "/marbete/catalog",
            "catalog page",
            params={"tenant_id": tenant_id, "page": page, "page_size": page_size},
            retry=retry,
            module="catalog",
            operation="get_page",
        )
        return CatalogPage.model_validate(payload)
