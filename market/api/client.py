"""
HTTP client for the marketplace data API.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx


class MarketAPIError(RuntimeError):
    def __init__(self, operation: str, status_code: int, body: str) -> None:
        super().__init__(f"{operation} failed ({status_code}): {body}")
        self.operation = str(operation)
        self.status_code = int(status_code)
        self.body = str(body or "")


class MarketUnauthorizedError(MarketAPIError):
    def __init__(self, status_code: int, body: str) -> None:
        super().__init__("Market API unauthorized", status_code, body)


@dataclass
class MarketClient:
    base_url: str
    api_prefix: str
    timeout_seconds: int
    # Tests swap in httpx.MockTransport here
    transport: Optional[httpx.BaseTransport] = None

    def _url(self, path: str) -> str:
        base = self.base_url.rstrip("/")
        prefix = (self.api_prefix or "").strip()
        if prefix and not prefix.startswith("/"):
            prefix = "/" + prefix
        prefix = prefix.rstrip("/")
        path = path if path.startswith("/") else "/" + path
        return f"{base}{prefix}{path}"

    def _headers(self, json: bool = False) -> Dict[str, str]:
        h: Dict[str, str] = {"accept": "application/json"}
        if json:
            h["Content-Type"] = "application/json"
        return h

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self.timeout_seconds, transport=self.transport)

    def _raise_if_unauthorized(self, resp: httpx.Response) -> None:
        if resp.status_code in (401, 403):
            raise MarketUnauthorizedError(resp.status_code, resp.text)

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        with self._client() as client:
            resp = client.get(self._url(path), headers=self._headers(), params=params)
        self._raise_if_unauthorized(resp)
        return resp

    def post(self, path: str, json: Dict[str, Any]) -> httpx.Response:
        with self._client() as client:
            resp = client.post(self._url(path), headers=self._headers(json=True), json=json)
        self._raise_if_unauthorized(resp)
        return resp

    def patch(self, path: str, json: Dict[str, Any]) -> httpx.Response:
        with self._client() as client:
            resp = client.patch(self._url(path), headers=self._headers(json=True), json=json)
        self._raise_if_unauthorized(resp)
        return resp

    def delete(self, path: str) -> httpx.Response:
        with self._client() as client:
            resp = client.delete(self._url(path), headers=self._headers())
        self._raise_if_unauthorized(resp)
        return resp


def ensure_ok(resp: httpx.Response, operation: str) -> None:
    if not resp.is_success:
        raise MarketAPIError(operation, resp.status_code, resp.text)


def json_object(resp: httpx.Response, operation: str) -> Dict[str, Any]:
    data = resp.json() if resp.content else {}
    if not isinstance(data, dict):
        raise MarketAPIError(operation, resp.status_code, "non-object JSON")
    return data
