"""Shared HTTP connection pool for vendor requests."""

from __future__ import annotations

import logging
import time
from typing import Any, Mapping

import httpx

from .errors import TransportError

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json;charset=utf8"


class HttpClientPool:
    """A small bounded pool of keep-alive connections.

    Callers block for up to ``pool_timeout`` seconds when every connection is
    busy. Timeouts and connection failures are retried ``max_retries`` times;
    everything else is returned or raised to the caller untouched.
    """

    def __init__(
        self,
        *,
        size: int = 3,
        timeout: float = 10.0,
        pool_timeout: float = 5.0,
        max_retries: int = 2,
        retry_interval: float = 0.5,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.max_retries = max_retries
        self.retry_interval = retry_interval
        self._client = httpx.Client(
            limits=httpx.Limits(
                max_connections=size,
                max_keepalive_connections=size,
            ),
            timeout=httpx.Timeout(timeout, pool=pool_timeout),
            transport=transport,
        )

    def post(
        self,
        url: str,
        *,
        json_body: Mapping[str, Any],
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        request_headers = {"Content-Type": JSON_CONTENT_TYPE}
        if headers:
            request_headers.update(headers)

        attempt = 0
        while True:
            try:
                return self._client.post(url, json=dict(json_body), headers=request_headers)
            except httpx.PoolTimeout as exc:
                raise TransportError(
                    f"No free connection to {url} within the pool timeout."
                ) from exc
            except (httpx.TimeoutException, httpx.ConnectError) as exc:
                attempt += 1
                if attempt > self.max_retries:
                    raise TransportError(
                        f"Request to {url} failed after {attempt} attempts: {exc}"
                    ) from exc
                logger.warning(
                    "Request to %s failed (attempt %s of %s): %s. Retrying...",
                    url,
                    attempt,
                    self.max_retries + 1,
                    exc,
                )
                time.sleep(self.retry_interval)
            except httpx.HTTPError as exc:
                raise TransportError(f"Request to {url} failed: {exc}") from exc

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpClientPool":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
