from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from .capture_store import CaptureEntry, CaptureSession, LocalCaptureStore
from .clients.counting_client import CountingClient
from .exceptions import SyncCancelledError, SyncFailedError, SyncInProgressError
from .models import ScanPayload
from .retry import call_with_retry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncResult:
    records_synced: int
    chunks_committed: int
    total_chunks: int
    synced_at: datetime | None = None

    @property
    def is_noop(self) -> bool:
        return self.total_chunks == 0


def partition(entries: list, chunk_size: int) -> list[list]:
    return [entries[start:start + chunk_size] for start in range(0, len(entries), chunk_size)]


def build_scan_payload(entry: CaptureEntry, session: CaptureSession, session_end: datetime) -> ScanPayload:
    return ScanPayload(
        product_code=entry.product_code,
        quantity=entry.quantity,
        area=entry.area or session.area,
        location=entry.location or session.location,
        control_batch_id=entry.control_batch_id or session.control_batch_id,
        actor_id=session.actor_id,
        actor_name=session.actor_name,
        session_start=session.started_at,
        session_end=session_end,
        scanned_at=entry.created_at,
        tenant_id=session.tenant_id,
    )


class BatchSyncClient:
    """Pushes the capture store to the server in sequential chunks.

    The store is cleared only after every chunk is confirmed. A chunk that
    still fails after its retries, or a ``cancel()``, stops the run and
    raises with the progress made so far. Only one sync runs at a time.
    """

    def __init__(
        self,
        counting: CountingClient,
        store: LocalCaptureStore,
        *,
        chunk_size: int = 500,
        retries: int = 3,
        backoff_seconds: float = 0.3,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.counting = counting
        self.store = store
        self.chunk_size = chunk_size
        self.retries = retries
        self.backoff_seconds = backoff_seconds
        self.sleep = sleep
        self._lock = threading.Lock()
        self._cancelled = threading.Event()

    @classmethod
    def from_config(cls, counting: CountingClient, store: LocalCaptureStore) -> "BatchSyncClient":
        config = counting.http.config
        return cls(
            counting,
            store,
            chunk_size=config.sync_chunk_size,
            retries=config.retries,
            backoff_seconds=config.retry_backoff_seconds,
            sleep=counting.http.sleep,
        )

    @property
    def in_progress(self) -> bool:
        return self._lock.locked()

    def cancel(self) -> None:
        self._cancelled.set()

    def sync(self, session: CaptureSession) -> SyncResult:
        if not self._lock.acquire(blocking=False):
            raise SyncInProgressError("A sync is already running")
        try:
            self._cancelled.clear()
            return self._run(session)
        finally:
            self._lock.release()

    def _run(self, session: CaptureSession) -> SyncResult:
        entries = self.store.list_all()
        if not entries:
            return SyncResult(records_synced=0, chunks_committed=0, total_chunks=0)

        session_end = datetime.utcnow()
        chunks = partition(entries, self.chunk_size)
        total_chunks = len(chunks)
        confirmed = 0
        synced_at = None
        logger.info(
            "sync_started",
            extra={"records": len(entries), "chunks": total_chunks, "control_batch_id": session.control_batch_id},
        )
        for index, chunk in enumerate(chunks):
            if self._cancelled.is_set():
                logger.info("sync_cancelled", extra={"chunks_committed": index, "total_chunks": total_chunks})
                raise SyncCancelledError(
                    "Sync cancelled before all chunks were sent",
                    chunks_committed=index,
                    total_chunks=total_chunks,
                    records_confirmed=confirmed,
                )
            payload = [build_scan_payload(entry, session, session_end) for entry in chunk]
            try:
                response = call_with_retry(
                    lambda: self.counting.sync_scans(payload),
                    retries=self.retries,
                    backoff_seconds=self.backoff_seconds,
                    sleep=self.sleep,
                    label=f"sync chunk {index + 1}/{total_chunks}",
                )
            except Exception as exc:
                logger.warning(
                    "sync_failed",
                    extra={"chunks_committed": index, "total_chunks": total_chunks, "error": type(exc).__name__},
                )
                raise SyncFailedError(
                    f"Sync stopped at chunk {index + 1} of {total_chunks}",
                    chunks_committed=index,
                    total_chunks=total_chunks,
                    records_confirmed=confirmed,
                    cause=exc,
                ) from exc
            confirmed += len(chunk)
            synced_at = response.synced_at

        self.store.clear()
        logger.info("sync_completed", extra={"records": confirmed, "chunks": total_chunks})
        return SyncResult(
            records_synced=confirmed,
            chunks_committed=total_chunks,
            total_chunks=total_chunks,
            synced_at=synced_at,
        )
