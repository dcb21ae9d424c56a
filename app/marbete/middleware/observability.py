from __future__ import annotations

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.marbete.core.logging import log_json
from app.marbete.core.metrics import metrics
from app.marbete.db.session import get_db_time_ms, start_db_timer, stop_db_timer

logger = logging.getLogger("marbete.request")

_ACTOR_PARAMS = ("actor_id", "verifier_id")


def route_template(request: Request) -> str:
    """Matched route path (``/marbete/verification/{control_batch_id}``), else the raw path."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


def build_request_log_payload(
    *,
    request: Request,
    response: Response | None,
    latency_ms: float,
    db_time_ms: float | None,
) -> dict:
    path_params = request.scope.get("path_params") or {}
    actor_id = next((path_params[name] for name in _ACTOR_PARAMS if name in path_params), None)
    return {
        "event": "http_request",
        "trace_id": getattr(request.state, "trace_id", ""),
        "route": route_template(request),
        "method": request.method,
        "status_code": response.status_code if response is not None else 500,
        "latency_ms": round(latency_ms, 2),
        "db_time_ms": None if db_time_ms is None else round(db_time_ms, 2),
        "tenant_id": request.query_params.get("tenant_id"),
        "control_batch_id": path_params.get("control_batch_id"),
        "actor_id": actor_id,
        "error_code": getattr(request.state, "error_code", None),
        "error_class": getattr(request.state, "error_class", None),
    }


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        token = start_db_timer()
        response: Response | None = None
        try:
            response = await call_next(request)
            return response
        finally:
            latency_ms = (time.perf_counter() - started) * 1000
            db_time_ms = get_db_time_ms()
            stop_db_timer(token)
            payload = build_request_log_payload(
                request=request, response=response, latency_ms=latency_ms, db_time_ms=db_time_ms
            )
            log_json(logger, payload)
            metrics.record_http_request(
                route=payload["route"],
                method=payload["method"],
                status_code=payload["status_code"],
                latency_ms=latency_ms,
            )
