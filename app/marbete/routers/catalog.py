from fastapi import APIRouter, Depends, Query

from app.marbete.db.session import get_db
from app.marbete.schemas.catalog import CatalogImportRequest, CatalogImportResponse, CatalogPageResponse
from app.marbete.services.catalog import CatalogService

router = APIRouter()


@router.get("/marbete/catalog", response_model=CatalogPageResponse)
def list_catalog(
    tenant_id: str = Query(..., min_length=1),
    page: int = Query(1, ge=1),
    page_size: int = Query(1000, ge=1),
    db=Depends(get_db),
):
    return CatalogService(db).page(tenant_id=tenant_id, page=page, page_size=page_size)


@router.post("/marbete/catalog/import", response_model=CatalogImportResponse, status_code=201)
def import_catalog(payload: CatalogImportRequest, db=Depends(get_db)):
    count = CatalogService(db).import_items(payload)
    return CatalogImportResponse(message="Catalog imported", count=count)
