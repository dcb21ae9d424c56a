from __future__ import annotations

from dataclasses import dataclass

from ..http_client import HttpClient


@dataclass
class BaseClient:
    http: HttpClient

    def _request(self, method: str, path: str, **kwargs):
        return self.http.request(method, path, **kwargs)

    def _request_object(self, method: str, path: str, what: str, **kwargs) -> dict:
        payload = self._request(method, path, **kwargs)
        if not isinstance(payload, dict):
            raise ValueError(f"Expected {what} response to be a JSON object")
        return payload
