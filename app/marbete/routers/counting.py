from fastapi import APIRouter, Depends, Query

from app.marbete.core.config import settings
from app.marbete.db.session import get_db
from app.marbete.repos.scans import ScanRepository
from app.marbete.schemas.counting import (
    CountingHistoryResponse,
    CountingHistoryRow,
    ScanIngestRequest,
    ScanIngestResponse,
)
from app.marbete.services.ingestion import IngestionService

router = APIRouter()


@router.post("/marbete/counting/sync", response_model=ScanIngestResponse, status_code=201)
def sync_scans(payload: ScanIngestRequest, db=Depends(get_db)):
    count, synced_at = IngestionService(db).ingest(payload.items)
    return ScanIngestResponse(message="Scans synced", count=count, synced_at=synced_at)


@router.get("/marbete/counting/history/{actor_id}", response_model=CountingHistoryResponse)
def counting_history(
    actor_id: str,
    limit: int = Query(settings.COUNTING_HISTORY_LIMIT, ge=1),
    db=Depends(get_db),
):
    rows = ScanRepository(db).history_for_actor(actor_id, limit=min(limit, settings.COUNTING_HISTORY_LIMIT))
    return CountingHistoryResponse(
        history=[
            CountingHistoryRow(
                control_batch_id=row.control_batch_id,
                product_code=row.product_code,
                quantity=row.quantity,
                scanned_at=row.scanned_at,
            )
            for row in rows
        ]
    )
