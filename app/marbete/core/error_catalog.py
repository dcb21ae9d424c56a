from dataclasses import dataclass
from fastapi import status


@dataclass(frozen=True)
class ErrorDefinition:
    code: str
    message: str
    status_code: int


class ErrorCatalog:
    TENANT_SCOPE_REQUIRED = ErrorDefinition(
        "TENANT_SCOPE_REQUIRED",
        "Tenant scope is required",
        status.HTTP_400_BAD_REQUEST,
    )
    CONTROL_BATCH_REQUIRED = ErrorDefinition(
        "CONTROL_BATCH_REQUIRED",
        "Control batch identifier is required",
        status.HTTP_400_BAD_REQUEST,
    )
    CONTROL_BATCH_MISMATCH = ErrorDefinition(
        "CONTROL_BATCH_MISMATCH",
        "All items must belong to the same control batch",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    INGEST_LIMIT_EXCEEDED = ErrorDefinition(
        "INGEST_LIMIT_EXCEEDED",
        "Too many items in a single request",
        status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    )
    MARBETE_ALREADY_CLOSED = ErrorDefinition(
        "MARBETE_ALREADY_CLOSED",
        "Control batch was already verified",
        status.HTTP_409_CONFLICT,
    )
    DB_UNAVAILABLE = ErrorDefinition(
        "DB_UNAVAILABLE",
        "Database unavailable",
        status.HTTP_503_SERVICE_UNAVAILABLE,
    )
    LOCK_TIMEOUT = ErrorDefinition(
        "LOCK_TIMEOUT",
        "Lock wait timeout",
        status.HTTP_409_CONFLICT,
    )
    VALIDATION_ERROR = ErrorDefinition(
        "VALIDATION_ERROR",
        "Validation error",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    PERSISTENCE_ERROR = ErrorDefinition(
        "PERSISTENCE_ERROR",
        "Failed to persist records",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    INTERNAL_ERROR = ErrorDefinition(
        "INTERNAL_ERROR",
        "Internal server error",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


class AppError(Exception):
    def __init__(self, error: ErrorDefinition, details: object | None = None):
        self.error = error
        self.details = details
        super().__init__(error.message)
