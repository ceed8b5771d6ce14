import json
from typing import Any, Callable, Dict, List

import httpx
import pytest

from huaweicloud_translator.configuration import build_settings
from huaweicloud_translator.transport import HttpClientPool


class FakeHuaweiCloud:
    """Routes requests to the IAM, detection and translation endpoints."""

    def __init__(self) -> None:
        self.token = "token-123"
        self.token_status = 201
        self.token_body = ""
        self.detect_status = 200
        self.detect_payload: Any = {"detected_language": "en"}
        self.translate_status = 200
        self.translate_payload: Any = None
        self.translate: Callable[[Dict[str, Any]], Any] = lambda body: {
            "translated_text": body["text"]
        }
        self.requests: List[httpx.Request] = []

    def calls(self, suffix: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith(suffix)]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        body = json.loads(request.content) if request.content else {}
        path = request.url.path
        if path.endswith("/auth/tokens"):
            headers = {"X-Subject-Token": self.token} if self.token else {}
            return httpx.Response(self.token_status, headers=headers, text=self.token_body)
        if path.endswith("/language-detection"):
            return httpx.Response(self.detect_status, json=self.detect_payload)
        if path.endswith("/text-translation"):
            payload = self.translate_payload
            if payload is None:
                payload = self.translate(body)
            if isinstance(payload, str):
                return httpx.Response(self.translate_status, text=payload)
            return httpx.Response(self.translate_status, json=payload)
        return httpx.Response(404, json={"error_msg": "unknown endpoint"})


@pytest.fixture
def fake_cloud() -> FakeHuaweiCloud:
    return FakeHuaweiCloud()


@pytest.fixture
def pool(fake_cloud: FakeHuaweiCloud) -> HttpClientPool:
    client_pool = HttpClientPool(
        transport=httpx.MockTransport(fake_cloud.handler),
        retry_interval=0,
    )
    yield client_pool
    client_pool.close()


@pytest.fixture
def settings():
    return build_settings(
        {
            "HUAWEICLOUD_PROJECT_NAME": "cn-north-4",
            "HUAWEICLOUD_PROJECT_ID": "project-1",
            "HUAWEICLOUD_DOMAIN_NAME": "forum-domain",
            "HUAWEICLOUD_USERNAME": "forum-bot",
            "HUAWEICLOUD_PASSWORD": "s3cret",
        }
    )
