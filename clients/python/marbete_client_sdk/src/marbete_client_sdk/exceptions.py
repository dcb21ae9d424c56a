from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ApiError(Exception):
    code: str
    message: str
    details: object | None
    trace_id: str | None
    status_code: int
    raw_payload: object | None = None

    def __str__(self) -> str:
        trace = f" trace_id={self.trace_id}" if self.trace_id else ""
        return f"[{self.status_code}] {self.code}: {self.message}{trace}"


class NotFoundError(ApiError):
    pass


class ValidationError(ApiError):
    pass


class ConflictError(ApiError):
    """409 or conflict-style errors."""


class MarbeteClosedError(ConflictError):
    """The control batch already has verified records."""


class PayloadTooLargeError(ValidationError):
    pass


class RateLimitError(ApiError):
    """429 throttling error."""


class ServerError(ApiError):
    """5xx server-side failures."""


class TransportError(ApiError):
    """Network/transport failure before an HTTP response was returned."""


class SyncInProgressError(RuntimeError):
    """Another sync is already running on this client."""


class SyncFailedError(RuntimeError):
    """A sync stopped before every chunk was confirmed; local data is kept."""

    def __init__(
        self,
        message: str,
        *,
        chunks_committed: int,
        total_chunks: int,
        records_confirmed: int,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.chunks_committed = chunks_committed
        self.total_chunks = total_chunks
        self.records_confirmed = records_confirmed
        self.cause = cause


class SyncCancelledError(SyncFailedError):
    pass


class IncompleteFetchError(RuntimeError):
    """A paged download ended before the reported total was reached."""

    def __init__(self, *, seen: int, total: int) -> None:
        super().__init__(f"Paged fetch ended after {seen} of {total} rows")
        self.seen = seen
        self.total = total
