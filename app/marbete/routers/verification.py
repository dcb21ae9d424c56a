from fastapi import APIRouter, Depends, Query

from app.marbete.core.config import settings
from app.marbete.db.session import get_db
from app.marbete.repos.verifications import VerificationRepository
from app.marbete.schemas.verification import (
    CommitRequest,
    CommitResponse,
    FusionResponse,
    VerificationHistoryResponse,
    VerificationHistoryRow,
)
from app.marbete.services.fusion import FusionService
from app.marbete.services.verification import VerificationCommitService

router = APIRouter()


@router.post("/marbete/verification/commit", response_model=CommitResponse, status_code=201)
def commit_verification(payload: CommitRequest, db=Depends(get_db)):
    count = VerificationCommitService(db).commit(payload)
    return CommitResponse(message="Marbete verified", control_batch_id=payload.control_batch_id, count=count)


@router.get("/marbete/verification/history/{verifier_id}", response_model=VerificationHistoryResponse)
def verification_history(
    verifier_id: str,
    limit: int = Query(settings.VERIFICATION_HISTORY_LIMIT, ge=1),
    db=Depends(get_db),
):
    rows = VerificationRepository(db).history_for_verifier(
        verifier_id, limit=min(limit, settings.VERIFICATION_HISTORY_LIMIT)
    )
    return VerificationHistoryResponse(
        history=[
            VerificationHistoryRow(
                control_batch_id=row.control_batch_id,
                product_code=row.product_code,
                variance=row.variance,
                verified_quantity=row.verified_quantity,
                system_quantity=row.system_quantity,
                committed_at=row.committed_at,
            )
            for row in rows
        ]
    )


@router.get("/marbete/verification/{control_batch_id}", response_model=FusionResponse)
def read_marbete(control_batch_id: str, tenant_id: str = Query(..., min_length=1), db=Depends(get_db)):
    return FusionService(db).build(tenant_id=tenant_id.strip(), control_batch_id=control_batch_id.strip())
