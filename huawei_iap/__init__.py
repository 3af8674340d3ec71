"""
Huawei IAP - Verify AppGallery in-app purchase and subscription tokens.
"""

from huawei_iap.config import Settings, get_settings
from huawei_iap.exceptions import (
    ConfigurationError,
    HuaweiIAPError,
    TokenAcquisitionError,
    VerificationRejectedError,
)
from huawei_iap.models.huawei import (
    AccessToken,
    Credentials,
    OrderVerificationRequest,
    SubscriptionVerificationRequest,
    VerificationResult,
)
from huawei_iap.services.client_registry import ClientRegistry, create_client, default_registry
from huawei_iap.services.huawei_iap_client import HuaweiIAPClient

__version__ = "0.1.0"

__all__ = [
    "AccessToken",
    "ClientRegistry",
    "ConfigurationError",
    "Credentials",
    "HuaweiIAPClient",
    "HuaweiIAPError",
    "OrderVerificationRequest",
    "Settings",
    "SubscriptionVerificationRequest",
    "TokenAcquisitionError",
    "VerificationRejectedError",
    "VerificationResult",
    "create_client",
    "default_registry",
    "get_settings",
]
