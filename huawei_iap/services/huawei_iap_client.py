"""
Huawei IAP Client Implementation.

Uses the Huawei OAuth 2.0 client-credentials flow for an app-level access
token, then calls the Order and Subscription services to verify purchase
tokens.
https://developer.huawei.com/consumer/en/doc/HMSCore-References/api-order-verify-purchase-token-0000001050746113
"""

import json
import time
from collections.abc import Callable
from contextlib import AbstractContextManager, nullcontext
from types import TracebackType
from typing import Any

import httpx
from structlog import get_logger

from huawei_iap.config import Settings, get_settings
from huawei_iap.exceptions import TokenAcquisitionError, VerificationRejectedError
from huawei_iap.models.huawei import (
    AccessToken,
    Credentials,
    OrderVerificationRequest,
    SubscriptionVerificationRequest,
    VerificationResult,
)
from huawei_iap.observability.metrics import IAPMetrics, Outcome, metrics

logger = get_logger(__name__)


class HuaweiIAPClient:
    """
    Huawei In-App Purchases verification client.

    Holds one access token at a time, fetched on first use and replaced once
    it is about to expire. No locking: concurrent callers that observe an
    expired token may each refresh it.
    """

    def __init__(
        self,
        credentials: Credentials,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize Huawei IAP client.

        Args:
            credentials: OAuth client id and secret from AppGallery Connect
            settings: Endpoint and observability settings (defaults to env)
            http_client: Shared HTTP client; one is created lazily if omitted
            clock: Source of epoch seconds, used for token expiry
        """
        self.credentials = credentials
        self.settings = settings or get_settings()
        self._http_client = http_client
        self._owns_http_client = http_client is None
        self._clock = clock
        self._token: AccessToken | None = None
        self._metrics: IAPMetrics | None = metrics if self.settings.metrics_enabled else None

        logger.info("huawei_iap_client_initialized", client_id=credentials.client_id)

    @property
    def client_id(self) -> str:
        return self.credentials.client_id

    @property
    def http_client(self) -> httpx.AsyncClient:
        """Get HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient()
        return self._http_client

    @property
    def token(self) -> AccessToken | None:
        """Current access token, if one has been acquired."""
        return self._token

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "HuaweiIAPClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def _acquire_token(self) -> AccessToken:
        """
        Exchange client credentials for a new access token.

        Raises:
            TokenAcquisitionError: If the exchange fails or the body is incomplete
        """
        logger.debug("acquiring_huawei_access_token", client_id=self.client_id)

        data = {
            "grant_type": "client_credentials",
            "client_id": self.credentials.client_id,
            "client_secret": self.credentials.client_secret,
        }

        try:
            response = await self.http_client.post(self.settings.token_url, data=data)
            response.raise_for_status()
            token = AccessToken.from_response(response.json(), now=self._clock())

        except TokenAcquisitionError:
            self._record_token_request(Outcome.FAILURE)
            logger.error("huawei_token_response_incomplete", client_id=self.client_id)
            raise
        except httpx.HTTPStatusError as exc:
            self._record_token_request(Outcome.FAILURE)
            logger.error(
                "huawei_token_request_failed",
                client_id=self.client_id,
                status=exc.response.status_code,
                error=exc.response.text,
            )
            raise TokenAcquisitionError(
                f"Token endpoint returned {exc.response.status_code}"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            self._record_token_request(Outcome.FAILURE)
            logger.error("huawei_token_request_error", client_id=self.client_id, error=str(exc))
            raise TokenAcquisitionError(str(exc)) from exc

        self._token = token
        self._record_token_request(Outcome.SUCCESS)
        logger.info(
            "huawei_access_token_acquired",
            client_id=self.client_id,
            expires_in=token.expires_in,
        )
        return token

    async def _ensure_authenticated(self) -> AccessToken:
        """Return a usable token, acquiring or refreshing it when needed."""
        if self._token is None:
            return await self._acquire_token()

        remaining = self._token.remaining(self._clock())
        if remaining <= self.settings.token_refresh_margin_seconds:
            logger.info("huawei_access_token_expired", client_id=self.client_id)
            return await self._acquire_token()

        logger.debug(
            "huawei_access_token_reused",
            client_id=self.client_id,
            expires_in_seconds=round(remaining, 3),
        )
        return self._token

    async def _post_authenticated(self, url: str, payload: dict[str, str]) -> Any:
        """POST a JSON body with the current token. Transport errors propagate as-is."""
        token = await self._ensure_authenticated()
        response = await self.http_client.post(
            url,
            json=payload,
            headers={"Authorization": token.authorization_header},
        )
        response.raise_for_status()
        return response.json()

    async def _verify(
        self,
        operation: str,
        url: str,
        payload: dict[str, str],
        success_field: str,
    ) -> VerificationResult:
        try:
            with self._time_verification(operation):
                envelope = await self._post_authenticated(url, payload)
        except Exception:
            self._record_verification(operation, Outcome.ERROR)
            raise

        # Non-object bodies carry no success field and no responseCode/responseMessage
        fields: dict[str, Any] = envelope if isinstance(envelope, dict) else {}

        purchase_data = fields.get(success_field)
        if purchase_data:
            self._record_verification(operation, Outcome.SUCCESS)
            return VerificationResult(data=json.loads(purchase_data), raw=envelope)

        code = fields.get("responseCode")
        message = fields.get("responseMessage")
        self._record_verification(operation, Outcome.REJECTED)
        logger.warning(
            "huawei_verification_rejected",
            operation=operation,
            client_id=self.client_id,
            response_code=code,
            response_message=message,
        )
        raise VerificationRejectedError(message=message, code=code)

    async def get_order(self, request: OrderVerificationRequest) -> VerificationResult:
        """
        Verify a one-time product purchase token.

        Args:
            request: Product id and purchase token from the device

        Returns:
            Parsed purchaseTokenData plus the raw envelope

        Raises:
            TokenAcquisitionError: If no access token could be obtained
            VerificationRejectedError: If the envelope has no purchaseTokenData
            httpx.HTTPError: If the verification request itself fails
        """
        logger.info("verifying_huawei_order", product_id=request.product_id)

        result = await self._verify(
            "order",
            self.settings.order_verify_url,
            request.to_payload(),
            "purchaseTokenData",
        )

        logger.info("huawei_order_verified", product_id=request.product_id)
        return result

    async def get_subscription(
        self,
        request: SubscriptionVerificationRequest,
    ) -> VerificationResult:
        """
        Verify a subscription purchase token.

        Args:
            request: Subscription id and purchase token from the device

        Returns:
            Parsed inappPurchaseData plus the raw envelope

        Raises:
            TokenAcquisitionError: If no access token could be obtained
            VerificationRejectedError: If the envelope has no inappPurchaseData
            httpx.HTTPError: If the verification request itself fails
        """
        logger.info("verifying_huawei_subscription", subscription_id=request.subscription_id)

        result = await self._verify(
            "subscription",
            self.settings.subscription_verify_url,
            request.to_payload(),
            "inappPurchaseData",
        )

        logger.info("huawei_subscription_verified", subscription_id=request.subscription_id)
        return result

    def _record_token_request(self, outcome: Outcome) -> None:
        if self._metrics is not None:
            self._metrics.record_token_request(outcome)

    def _record_verification(self, operation: str, outcome: Outcome) -> None:
        if self._metrics is not None:
            self._metrics.record_verification(operation, outcome)

    def _time_verification(self, operation: str) -> AbstractContextManager[None]:
        if self._metrics is None:
            return nullcontext()
        return self._metrics.time_verification(operation)
