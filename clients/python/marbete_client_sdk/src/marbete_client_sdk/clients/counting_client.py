from __future__ import annotations

from dataclasses import dataclass

from ..models import CountingHistoryRow, ScanIngestResponse, ScanPayload
from .base import BaseClient


@dataclass
class CountingClient(BaseClient):
    def sync_scans(self, items: list[ScanPayload]) -> ScanIngestResponse:
        """POST one chunk to bulk ingestion.

        Not retried here; the sync client owns retries for chunk posts.
        """
        payload = self._request_object(
            "POST",
            "/marbete/counting/sync",
            "scan ingest",
            json_body={"items": [item.model_dump(mode="json") for item in items]},
            retry=False,
            module="counting",
            operation="sync_scans",
        )
        return ScanIngestResponse.model_validate(payload)

    def history(self, actor_id: str, *, limit: int | None = None) -> list[CountingHistoryRow]:
        params = {"limit": limit} if limit else None
        payload = self._request_object(
            "GET",
            f"/marbete/counting/history/{actor_id}",
            "counting history",
            params=params,
            module="counting",
            operation="history",
        )
        return [CountingHistoryRow.model_validate(row) for row in payload.get("history", [])]
