"""IAM token issuing and caching."""

from __future__ import annotations

import json
import logging
import threading
import time
from typing import Callable, Dict, Optional, Protocol, Tuple

from .errors import TokenAcquisitionError
from .transport import HttpClientPool

logger = logging.getLogger(__name__)

ISSUE_TOKEN_URI = "https://iam.{project_name}.myhuaweicloud.com/v3/auth/tokens"
TOKEN_HEADER = "X-Subject-Token"
ACCESS_TOKEN_KEY = "huaweicloud-translator"
# Tokens live for 24 hours on the vendor side.
TOKEN_TTL_SECONDS = 23 * 60 * 60


class TokenCache(Protocol):
    """Key-value store with per-entry expiry."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str, ttl: float) -> None:
        ...


class InMemoryTokenCache:
    """Process-local :class:`TokenCache` implementation."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[str, float]] = {}

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: str, ttl: float) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl)


def cache_key(project_id: str) -> str:
    return f"{ACCESS_TOKEN_KEY}-{project_id}"


class TokenIssuer:
    """Returns a cached IAM token, requesting a new one when it expired."""

    def __init__(
        self,
        *,
        pool: HttpClientPool,
        cache: TokenCache,
        project_name: str,
        project_id: str,
        domain_name: str,
        username: str,
        password: str,
        ttl: float = TOKEN_TTL_SECONDS,
    ) -> None:
        self.pool = pool
        self.cache = cache
        self.project_name = project_name
        self.project_id = project_id
        self.domain_name = domain_name
        self.username = username
        self.password = password
        self.ttl = ttl

    @property
    def key(self) -> str:
        return cache_key(self.project_id)

    def access_token(self) -> str:
        existing = self.cache.get(self.key)
        if existing:
            logger.debug("Using cached access token")
            return existing

        token = self._request_token()
        self.cache.set(self.key, token, self.ttl)
        return token

    def _request_body(self) -> dict:
        return {
            "auth": {
                "identity": {
                    "methods": ["password"],
                    "password": {
                        "user": {
                            "domain": {"name": self.domain_name},
                            "name": self.username,
                            "password": self.password,
                        }
                    },
                },
                "scope": {
                    "project": {
                        "id": self.project_id,
                        "name": self.project_name,
                    }
                },
            }
        }

    def _request_token(self) -> str:
        url = ISSUE_TOKEN_URI.format(project_name=self.project_name)
        response = self.pool.post(url, json_body=self._request_body())

        token = response.headers.get(TOKEN_HEADER)
        if response.status_code == 201 and token:
            return token

        logger.error(
            "Failed to obtain access token. Status: %s, Body: %s",
            response.status_code,
            response.text,
        )
        raise TokenAcquisitionError(self._describe_failure(response.text))

    @staticmethod
    def _describe_failure(body: str) -> str:
        if not body.strip():
            return "Missing token in the IAM response."
        try:
            error = json.loads(body).get("error") or {}
        except (json.JSONDecodeError, AttributeError):
            error = {}
        if not isinstance(error, dict):
            error = {}
        code = error.get("code") or "unknown"
        message = error.get("message") or "unknown error"
        return f"{code}: {message}"
