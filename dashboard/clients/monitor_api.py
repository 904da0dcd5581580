from __future__ import annotations

import logging
from typing import Any, Mapping

import requests
from pydantic import ValidationError

from dashboard.config import settings
from dashboard.models import CheckResult, EndpointCheck, MonitorConfig
from dashboard.ranges import HistoryQuery

logger = logging.getLogger(__name__)


class MonitorApiError(RuntimeError):
    """Backend unreachable or answering garbage. Safe to retry."""


class MonitorApiResponseError(MonitorApiError):
    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(body or f"Monitor API returned HTTP {status_code}")


class EndpointNotFoundError(MonitorApiError):
    def __init__(self, endpoint_id: str) -> None:
        self.endpoint_id = endpoint_id
        super().__init__(f"Endpoint not found: {endpoint_id}")


class MonitorApiClient:
    def __init__(
        self,
        base_url: str | None = None,
        *,
        prefix: str | None = None,
        timeout_s: float | None = None,
        cookies: Mapping[str, str] | None = None,
    ) -> None:
        self.base_url = (base_url or settings.MONITOR_API_BASE_URL).rstrip("/")
        self.prefix = "/" + (
            settings.MONITOR_API_PREFIX if prefix is None else prefix
        ).strip("/")
        self.timeout_s = timeout_s or settings.MONITOR_API_TIMEOUT_SECONDS
        # Session cookies are passed through untouched.
        self.cookies = dict(cookies or {})

    def _url(self, path: str) -> str:
        prefix = "" if self.prefix == "/" else self.prefix
        return f"{self.base_url}{prefix}{path}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
    ) -> requests.Response:
        url = self._url(path)
        try:
            resp = requests.request(
                method,
                url,
                params=params,
                json=json,
                cookies=self.cookies,
                timeout=self.timeout_s,
            )
        except requests.Timeout as exc:
            logger.error("%s %s timed out after %ss", method, url, self.timeout_s)
            raise MonitorApiError(
                f"Monitor API timed out after {self.timeout_s}s"
            ) from exc
        except requests.ConnectionError as exc:
            logger.error("%s %s connection error: %s", method, url, exc)
            raise MonitorApiError(
                f"Monitor API connection error: {exc.__class__.__name__}: {exc}"
            ) from exc
        except requests.RequestException as exc:
            logger.error("%s %s failed: %s", method, url, exc)
            raise MonitorApiError(
                f"Failed to reach Monitor API: {exc.__class__.__name__}: {exc}"
            ) from exc

        if resp.status_code >= 400:
            body = (resp.text or "").strip()
            logger.error("%s %s returned HTTP %s: %s", method, url, resp.status_code, body[:240])
            raise MonitorApiResponseError(resp.status_code, body)
        return resp

    def _json(self, resp: requests.Response) -> Any:
        try:
            return resp.json()
        except ValueError as exc:
            snippet = (resp.text or "")[:240].replace("\n", "\\n")
            raise MonitorApiError(f"Monitor API returned invalid JSON: {snippet}") from exc

    def get_config(self) -> MonitorConfig:
        payload = self._json(self._request("GET", "/config"))
        try:
            return MonitorConfig.model_validate(payload or {})
        except ValidationError as exc:
            raise MonitorApiError(f"Monitor API returned an unexpected config: {exc}") from exc

    def replace_config(self, config: MonitorConfig) -> None:
        self._request("POST", "/config", json=config.to_payload())

    def get_endpoint(self, endpoint_id: str) -> EndpointCheck:
        ep = self.get_config().find_endpoint(endpoint_id)
        if ep is None:
            raise EndpointNotFoundError(endpoint_id)
        return ep

    def create_endpoint(self, record: EndpointCheck) -> None:
        payload = record.to_payload()
        payload.pop("id", None)
        self._request("POST", "/config/endpoints", json=payload)

    def update_endpoint(self, endpoint_id: str, record: EndpointCheck) -> None:
        payload = record.to_payload()
        payload["id"] = endpoint_id
        try:
            self._request("PUT", f"/config/endpoints/{endpoint_id}", json=payload)
        except MonitorApiResponseError as exc:
            if exc.status_code == 404:
                raise EndpointNotFoundError(endpoint_id) from exc
            raise

    def delete_endpoint(self, endpoint_id: str) -> None:
        try:
            self._request("DELETE", f"/config/endpoints/{endpoint_id}")
        except MonitorApiResponseError as exc:
            if exc.status_code != 404:
                raise
            logger.info("Endpoint %s already deleted", endpoint_id)

    def get_history(self, endpoint_id: str, query: HistoryQuery) -> list[CheckResult]:
        payload = self._json(
            self._request("GET", f"/endpoints/{endpoint_id}/history", params=query.params())
        )
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise MonitorApiError("Monitor API history payload is not a JSON array")
        try:
            results = [CheckResult.model_validate(item) for item in payload]
        except ValidationError as exc:
            raise MonitorApiError(f"Monitor API returned malformed history: {exc}") from exc
        for result in results:
            result.endpoint_id = result.endpoint_id or endpoint_id
        return results

    def current_user(self) -> dict[str, Any] | None:
        try:
            resp = self._request("GET", "/auth/me")
        except MonitorApiResponseError:
            return None
        payload = self._json(resp)
        return payload if isinstance(payload, dict) else None

    def logout(self) -> None:
        self._request("POST", "/logout")
