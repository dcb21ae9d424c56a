from .capture_store import (
    CaptureEntry,
    CaptureSession,
    DynamicLocationSession,
    FixedLocationSession,
    LocalCaptureStore,
    resolve_effective_area,
    resolve_effective_location,
)
from .catalog_cache import CachedProduct, CatalogCache
from .config import ClientConfig, ConfigError, load_config
from .exceptions import (
    ApiError,
    ConflictError,
    IncompleteFetchError,
    MarbeteClosedError,
    NotFoundError,
    SyncCancelledError,
    SyncFailedError,
    SyncInProgressError,
    TransportError,
    ValidationError,
)
from .http_client import HttpClient
from .local_db import LocalDatabase
from .retry import call_with_retry, fetch_in_chunks
from .sync import BatchSyncClient, SyncResult
from .tracing import TraceContext
from .validation import (
    BatchLimitReachedError,
    ClientValidationError,
    LocationRequiredError,
    PendingEntriesError,
    ValidationIssue,
)
from .verification_workspace import VerificationWorkspace, WorkspaceItem

__all__ = [
    "ApiError",
    "BatchLimitReachedError",
    "BatchSyncClient",
    "CachedProduct",
    "CaptureEntry",
    "CaptureSession",
    "CatalogCache",
    "ClientConfig",
    "ClientValidationError",
    "ConfigError",
    "ConflictError",
    "IncompleteFetchError",
    "DynamicLocationSession",
    "FixedLocationSession",
    "HttpClient",
    "LocalCaptureStore",
    "LocalDatabase",
    "LocationRequiredError",
    "MarbeteClosedError",
    "NotFoundError",
    "PendingEntriesError",
    "SyncCancelledError",
    "SyncFailedError",
    "SyncInProgressError",
    "SyncResult",
    "TraceContext",
    "TransportError",
    "ValidationError",
    "ValidationIssue",
    "VerificationWorkspace",
    "WorkspaceItem",
    "call_with_retry",
    "fetch_in_chunks",
    "load_config",
    "resolve_effective_area",
    "resolve_effective_location",
]
