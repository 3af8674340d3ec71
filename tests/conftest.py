"""
Pytest Configuration and Centralized Fixtures.

Provides reusable stubs for the Huawei endpoints:
- A fake vendor that answers token and verification requests
- httpx.AsyncClient wired to the fake vendor via MockTransport
- A controllable clock for token expiry
"""

import json
from collections.abc import AsyncGenerator
from typing import Any

import httpx
import pytest
import pytest_asyncio

from huawei_iap.config import Settings
from huawei_iap.models.huawei import Credentials
from huawei_iap.services.huawei_iap_client import HuaweiIAPClient

TOKEN_URL = "https://oauth.test/oauth2/v2/token"
ORDER_URL = "https://orders.test/applications/purchases/tokens/verify"
SUBSCRIPTION_URL = "https://subscr.test/sub/applications/v2/purchases/get"


class FakeClock:
    """Manually advanced epoch clock."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeHuaweiVendor:
    """Records requests and replays configured responses per endpoint."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.token_responses: list[httpx.Response] = []
        self.order_response = httpx.Response(200, json={"purchaseTokenData": '{"x": 1}'})
        self.subscription_response = httpx.Response(
            200, json={"inappPurchaseData": '{"subIsvalid": true}'}
        )
        self._token_counter = 0

    def _next_token_response(self) -> httpx.Response:
        if self.token_responses:
            return self.token_responses.pop(0)
        self._token_counter += 1
        return httpx.Response(
            200, json={"access_token": f"T{self._token_counter}", "expires_in": 3600}
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        if url == TOKEN_URL:
            return self._next_token_response()
        if url == ORDER_URL:
            return self.order_response
        if url == SUBSCRIPTION_URL:
            return self.subscription_response
        return httpx.Response(404, text="not found")

    def requests_to(self, url: str) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url) == url]

    @property
    def token_requests(self) -> list[httpx.Request]:
        return self.requests_to(TOKEN_URL)

    def json_body(self, request: httpx.Request) -> Any:
        return json.loads(request.content)


@pytest.fixture
def settings() -> Settings:
    """Settings pointing at the fake vendor."""
    return Settings(
        _env_file=None,
        token_url=TOKEN_URL,
        order_verify_url=ORDER_URL,
        subscription_verify_url=SUBSCRIPTION_URL,
    )


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(client_id="101234567", client_secret="s3cr3t")


@pytest.fixture
def vendor() -> FakeHuaweiVendor:
    return FakeHuaweiVendor()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest_asyncio.fixture
async def http_client(vendor: FakeHuaweiVendor) -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(transport=httpx.MockTransport(vendor.handler)) as client:
        yield client


@pytest.fixture
def iap_client(
    credentials: Credentials,
    settings: Settings,
    http_client: httpx.AsyncClient,
    clock: FakeClock,
) -> HuaweiIAPClient:
    return HuaweiIAPClient(credentials, settings=settings, http_client=http_client, clock=clock)
