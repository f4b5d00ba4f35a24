from __future__ import annotations

from typing import Any, Collection, Dict, Mapping, Optional
import random
import time

import requests
from requests.adapters import HTTPAdapter

from lime_streamcore.backend.common.errors import (
    AuthenticationError,
    NotFoundError,
    ProviderError,
    ServiceUnavailableError,
)
from lime_streamcore.backend.common.logging import get_logger
from lime_streamcore.backend.common.types import HttpResult
from lime_streamcore.backend.network_handlers.url_manager import URLManager
from lime_streamcore.config.settings import get_settings

log = get_logger(__name__)

# Statuses treated as "the provider itself is down".
SERVICE_DOWN_STATUSES = frozenset({500, 502, 503, 504})


def map_http_error(status: int) -> ProviderError:
    if status in (401, 403):
        return AuthenticationError(f"{status} credential rejected", status_code=status)
    if status == 404:
        return NotFoundError("404 Not Found", status_code=status)
    if status == 408 or 500 <= status < 600:
        return ServiceUnavailableError(f"{status} Upstream error", status_code=status)
    if status == 429:
        return ProviderError("429 Too Many Requests", status_code=status)

    return ProviderError(f"{status} HTTP error", status_code=status)

def _sleep_with_jitter(base_ms: int, attempt: int, max_ms: int, jitter_ms: int):
    backoff = min(max_ms, int((2 ** (attempt - 1)) * base_ms))
    jitter = random.randint(0, max(0, jitter_ms))
    time.sleep((backoff + jitter) / 1000.0)


# ---------------- Main Session ----------------

class HttpSession:
    """
    Central HTTP client for every provider integration:
      - URL building + per-service headers via URLManager
      - explicit per-request timeout (a timeout is a service-health signal)
      - optional exponential backoff + jitter when retry_attempts > 1
      - typed error mapping onto the provider error taxonomy
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        *,
        retry_attempts: Optional[int] = None,
        url_manager: Optional[URLManager] = None,
    ):
        cfg = get_settings()
        self.urlm = url_manager or URLManager()
        self.timeout = timeout if timeout is not None else cfg.request_timeout
        self.retry_max_attempts = max(1, retry_attempts if retry_attempts is not None else cfg.retry_attempts)
        self.base_backoff_ms = 300
        self.max_backoff_ms = 6000
        self.jitter_ms = 250

        self._session = requests.Session()
        self._session.mount("http://", HTTPAdapter(pool_connections=8, pool_maxsize=16))
        self._session.mount("https://", HTTPAdapter(pool_connections=8, pool_maxsize=16))

    # -------- public API --------

    def get(
        self,
        service: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        allowed_statuses: Optional[Collection[int]] = None,
    ) -> requests.Response:

        return self._request(
            "GET",
            service,
            path,
            params=params,
            headers=headers,
            allowed_statuses=allowed_statuses,
        )

    def post(
        self,
        service: str,
        path: str,
        *,
        data: Optional[Mapping[str, Any]] = None,
        json_body: Optional[Mapping[str, Any]] = None,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        allowed_statuses: Optional[Collection[int]] = None,
    ) -> requests.Response:

        return self._request(
            "POST",
            service,
            path,
            params=params,
            data=data,
            json_body=json_body,
            headers=headers,
            allowed_statuses=allowed_statuses,
        )

    def endpoint_path(self, service: str, key: str, **fmt: Any) -> str:
        template = self.urlm.get_endpoint(service, key)
        if template is None:
            raise ValueError(f"Unknown endpoint '{key}' for service '{service}'")
        return template.format(**fmt)

    def close(self) -> None:
        self._session.close()

    # -------- internals --------

    def _request(
        self,
        method: str,
        service: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]],
        data: Optional[Mapping[str, Any]] = None,
        json_body: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        allowed_statuses: Optional[Collection[int]] = None,
    ) -> requests.Response:

        url, base_headers = self.urlm.build(service, path, params)
        hdrs: Dict[str, str] = dict(base_headers or {})
        if headers:
            hdrs.update(headers)

        allowed = set(allowed_statuses or ())
        attempt = 1

        while True:
            started = time.monotonic()
            try:
                resp = self._session.request(
                    method=method,
                    url=url,
                    headers=hdrs,
                    data=data,
                    json=json_body,
                    timeout=self.timeout,
                )
            except requests.exceptions.Timeout as e:
                self._record(service, url, 0, started, error="timeout")
                if attempt >= self.retry_max_attempts:
                    raise ServiceUnavailableError(f"{service} timed out after {self.timeout}s") from e
            except requests.exceptions.ConnectionError as e:
                self._record(service, url, 0, started, error="connection_failed")
                if attempt >= self.retry_max_attempts:
                    raise ServiceUnavailableError(f"{service} unreachable: {e}") from e
            else:
                status = resp.status_code
                self._record(service, url, status, started)

                if status < 400 or status in allowed:
                    return resp

                err = map_http_error(status)
                retryable = status == 429 or isinstance(err, ServiceUnavailableError)
                if not retryable or attempt >= self.retry_max_attempts:
                    raise err

            attempt += 1
            _sleep_with_jitter(self.base_backoff_ms, attempt, self.max_backoff_ms, self.jitter_ms)

    def _record(self, service: str, url: str, status: int, started: float, *, error: Optional[str] = None) -> None:
        result = HttpResult.finished(service, url, started, status_code=status, error=error)
        log.debug("http_request", extra=result.log_fields())
