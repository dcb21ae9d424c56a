from __future__ import annotations

from dataclasses import dataclass

from ..models import CommitRequest, CommitResponse, FusionResponse, VerificationHistoryRow
from .base import BaseClient


@dataclass
class VerificationClient(BaseClient):
    def get_marbete(self, tenant_id: str, control_batch_id: str) -> FusionResponse:
        payload = self._request_object(
            "GET",
            f"/marbete/verification/{control_batch_id}",
            "marbete",
            params={"tenant_id": tenant_id},
            module="verification",
            operation="get_marbete",
        )
        return FusionResponse.model_validate(payload)

    def commit(self, request: CommitRequest) -> CommitResponse:
        payload = self._request_object(
            "POST",
            "/marbete/verification/commit",
            "verification commit",
            json_body=request.model_dump(mode="json"),
            module="verification",
            operation="commit",
        )
        return CommitResponse.model_validate(payload)

    def history(self, verifier_id: str, *, limit: int | None = None) -> list[VerificationHistoryRow]:
        params = {"limit": limit} if limit else None
        payload = self._request_object(
            "GET",
            f"/marbete/verification/history/{verifier_id}",
            "verification history",
            params=params,
            module="verification",
            operation="history",
        )
        return [VerificationHistoryRow.model_validate(row) for row in payload.get("history", [])]
