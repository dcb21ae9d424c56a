from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter

from .config import ClientConfig
from .error_mapper import map_error
from .exceptions import ApiError, TransportError
from .tracing import TRACE_HEADER, TraceContext

logger = logging.getLogger(__name__)

ResponseHook = Callable[[requests.Response], None]
RequestHook = Callable[[str, str, dict[str, Any]], None]

RETRYABLE_METHODS = frozenset({"GET", "HEAD"})


@dataclass
class LastOperation:
    module: str
    operation: str
    duration_ms: int
    result: str
    trace_id: str | None


@dataclass
class HttpClient:
    """JSON-over-HTTP transport shared by the resource clients.

    Reads (GET/HEAD) are retried on transport errors and 5xx with
    ``retry_backoff_seconds * 2**attempt`` waits. Writes are sent once; the
    sync client runs its own retry loop around chunk posts.
    """

    config: ClientConfig
    trace: TraceContext | None = None
    session: requests.Session | None = None
    before_request: RequestHook | None = None
    after_response: ResponseHook | None = None
    sleep: Callable[[float], None] = time.sleep
    last_operation: LastOperation | None = None

    def __post_init__(self) -> None:
        if self.session is None:
            self.session = requests.Session()
            adapter = HTTPAdapter(
                pool_connections=self.config.max_connections,
                pool_maxsize=self.config.max_connections,
            )
            self.session.mount("http://", adapter)
            self.session.mount("https://", adapter)

    def url_for(self, path: str) -> str:
        return urljoin(self.config.api_base_url.rstrip("/") + "/", path.lstrip("/"))

    def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        retry: bool = True,
        module: str = "unknown",
        operation: str = "unknown",
    ) -> dict[str, Any] | list[Any] | None:
        verb = method.upper()
        url = self.url_for(path)
        trace = self.trace or TraceContext()
        request_headers = {"Accept": "application/json", **(headers or {}), TRACE_HEADER: trace.ensure()}
        if self.before_request:
            self.before_request(verb, url, {"headers": request_headers, "json_body": json_body, "params": params})

        attempts = self.config.retries + 1 if retry and verb in RETRYABLE_METHODS else 1
        started = time.monotonic()
        response = None
        for attempt in range(attempts):
            last_attempt = attempt == attempts - 1
            try:
                response = self._send(verb, url, request_headers, json_body, params)
            except TransportError as exc:
                if last_attempt:
                    exc.trace_id = trace.trace_id
                    self._finish(module, operation, started, "error", trace)
                    raise
                logger.warning("http_transport_retry", extra={"url": url, "attempt": attempt + 1})
            else:
                if response.status_code < 500 or last_attempt:
                    break
                logger.warning(
                    "http_server_error_retry",
                    extra={"url": url, "attempt": attempt + 1, "status_code": response.status_code},
                )
            self.sleep(self.config.retry_backoff_seconds * (2**attempt))

        if self.after_response:
            self.after_response(response)
        trace.update_from_headers(response.headers)
        if response.ok:
            self._finish(module, operation, started, "success", trace)
            return response.json() if response.content else None

        error = self._error_from(response, trace)
        self._finish(module, operation, started, "error", trace)
        raise error

    def _send(self, verb, url, headers, json_body, params) -> requests.Response:
        if self.session is None:
            raise RuntimeError("HTTP session not initialized")
        try:
            return self.session.request(
                method=verb,
                url=url,
                headers=headers,
                json=json_body,
                params=params,
                timeout=(self.config.connect_timeout_seconds, self.config.read_timeout_seconds),
                verify=self.config.verify_ssl,
            )
        except requests.RequestException as exc:
            raise TransportError(
                code="TRANSPORT_ERROR",
                message=str(exc),
                details={"type": type(exc).__name__},
                trace_id=None,
                status_code=0,
                raw_payload=None,
            ) from exc

    @staticmethod
    def _error_from(response: requests.Response, trace: TraceContext) -> ApiError:
        try:
            payload = response.json()
        except json.JSONDecodeError:
            payload = {"message": response.text}
        if not isinstance(payload, dict):
            payload = {"message": str(payload)}
        trace.update_from_payload(payload)
        return map_error(response.status_code, payload, trace.trace_id)

    def _finish(self, module: str, operation: str, started: float, result: str, trace: TraceContext) -> None:
        self.last_operation = LastOperation(
            module=module,
            operation=operation,
            duration_ms=int((time.monotonic() - started) * 1000),
            result=result,
            trace_id=trace.trace_id,
        )
