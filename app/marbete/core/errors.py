from datetime import date, datetime

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from app.marbete.core.error_catalog import AppError, ErrorCatalog, ErrorDefinition
from app.marbete.core.metrics import metrics


_HTTP_STATUS_CODES = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
}

_LOCK_MARKERS = ("lock timeout", "deadlock detected", "database is locked", "could not obtain lock")
_LOCATION_PREFIXES = {"body", "query", "path", "header"}


def _trace_id(request: Request) -> str:
    return getattr(request.state, "trace_id", "")


def _is_lock_timeout(exc: Exception) -> bool:
    if not isinstance(exc, OperationalError):
        return False
    message = str(exc).lower()
    return any(marker in message for marker in _LOCK_MARKERS)


def _json_safe(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, Exception):
        return str(value)
    return value


def error_response(code: str, message: str, details: object, trace_id: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"code": code, "message": message, "details": details, "trace_id": trace_id},
    )


def _render(request: Request, error: ErrorDefinition, details: object, exc: Exception) -> JSONResponse:
    request.state.error_code = error.code
    request.state.error_class = exc.__class__.__name__
    return error_response(error.code, error.message, _json_safe(details), _trace_id(request), error.status_code)


def _field_errors(exc: RequestValidationError) -> dict:
    """Flatten pydantic errors into ``{field, message, type}`` entries.

    ``field`` is the dotted location without the request part, so an item
    error in a sync body reads ``items.3.product_code``.
    """
    errors = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ())]
        field = ".".join(part for part in loc if part not in _LOCATION_PREFIXES) or None
        errors.append(
            {
                "field": field,
                "message": error.get("msg", "Invalid value"),
                "type": error.get("type", "validation_error"),
                "input": error.get("input"),
            }
        )
    return {"errors": errors}


def setup_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.error is ErrorCatalog.MARBETE_ALREADY_CLOSED:
            metrics.increment_closed_batch_conflict()
        return _render(request, exc.error, exc.details, exc)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        code = _HTTP_STATUS_CODES.get(exc.status_code, "HTTP_ERROR")
        request.state.error_code = code
        request.state.error_class = exc.__class__.__name__
        detail = exc.detail
        if isinstance(detail, dict):
            message = str(detail.get("message", "HTTP error"))
            details = {key: value for key, value in detail.items() if key != "message"} or None
        else:
            message = str(detail) if detail is not None else "HTTP error"
            details = None
        return error_response(code, message, details, _trace_id(request), exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return _render(request, ErrorCatalog.VALIDATION_ERROR, _field_errors(exc), exc)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        if _is_lock_timeout(exc):
            metrics.increment_lock_wait_timeout()
            return _render(request, ErrorCatalog.LOCK_TIMEOUT, {"type": exc.__class__.__name__}, exc)
        return _render(request, ErrorCatalog.INTERNAL_ERROR, {"type": exc.__class__.__name__}, exc)
