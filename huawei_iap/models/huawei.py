"""
Huawei IAP domain models - Immutable dataclasses for token and purchase verification.

Credentials, tokens and requests are typed. Vendor payloads stay plain dicts:
VerificationResult carries them as returned, and to_payload() builds the wire body.
"""

import base64
from dataclasses import dataclass, field
from typing import Any

from huawei_iap.exceptions import TokenAcquisitionError


@dataclass(frozen=True)
class Credentials:
    """OAuth2 client credentials issued by AppGallery Connect."""

    client_id: str
    client_secret: str = field(repr=False)


@dataclass(frozen=True)
class AccessToken:
    """Access token obtained via the client-credentials exchange."""

    access_token: str = field(repr=False)
    expires_in: int  # seconds, as returned by the token endpoint
    expires_at: float  # absolute epoch seconds

    @classmethod
    def from_response(cls, payload: Any, now: float) -> "AccessToken":
        """Build a token from the token endpoint JSON body."""
        if not isinstance(payload, dict):
            raise TokenAcquisitionError("Response is not a JSON object")
        access_token = payload.get("access_token")
        expires_in = payload.get("expires_in")
        if not access_token:
            raise TokenAcquisitionError("Response missing access_token")
        if expires_in is None:
            raise TokenAcquisitionError("Response missing expires_in")

        try:
            expires_in = int(expires_in)
        except (TypeError, ValueError) as exc:
            raise TokenAcquisitionError(f"Invalid expires_in: {expires_in!r}") from exc

        return cls(
            access_token=str(access_token),
            expires_in=expires_in,
            expires_at=now + expires_in,
        )

    def remaining(self, now: float) -> float:
        """Seconds left before the token expires (negative once expired)."""
        return self.expires_at - now

    @property
    def authorization_header(self) -> str:
        """Value for the Authorization header of verification requests."""
        credential = f"APPAT:{self.access_token}".encode()
        return f"Basic {base64.b64encode(credential).decode('ascii')}"


@dataclass(frozen=True)
class OrderVerificationRequest:
    """One-time purchase to verify. Fields are passed through as-is."""

    product_id: str
    purchase_token: str

    def to_payload(self) -> dict[str, str]:
        return {"productId": self.product_id, "purchaseToken": self.purchase_token}


@dataclass(frozen=True)
class SubscriptionVerificationRequest:
    """Subscription purchase to verify. Fields are passed through as-is."""

    subscription_id: str
    purchase_token: str

    def to_payload(self) -> dict[str, str]:
        return {"subscriptionId": self.subscription_id, "purchaseToken": self.purchase_token}


@dataclass(frozen=True)
class VerificationResult:
    """Successful verification: parsed purchase data plus the full envelope."""

    data: dict[str, Any]
    raw: dict[str, Any]
