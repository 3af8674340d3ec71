"""
SDK Configuration - Pydantic Settings for type-safe config.

NO DICTIONARIES - All configuration is strongly typed.
FAIL FAST - Invalid endpoints and options are rejected at construction.
"""

from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from huawei_iap.exceptions import ConfigurationError
from huawei_iap.models.huawei import Credentials


class Settings(BaseSettings):
    """SDK settings loaded from HUAWEI_IAP_* environment variables."""

    # Vendor endpoints (Europe site)
    token_url: str = "https://oauth-login.cloud.huawei.com/oauth2/v2/token"
    order_verify_url: str = (
        "https://orders-dre.iap.hicloud.com/applications/purchases/tokens/verify"
    )
    subscription_verify_url: str = (
        "https://subscr-dre.iap.hicloud.com/sub/applications/v2/purchases/get"
    )

    # Token is refreshed once its remaining lifetime drops to this value
    token_refresh_margin_seconds: float = 0.03

    # Credentials - optional, the embedding application may pass its own
    client_id: str = ""
    client_secret: SecretStr = SecretStr("")

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # json or console
    service_name: str = "huawei-iap"

    # Metrics
    metrics_enabled: bool = True

    model_config = SettingsConfigDict(
        env_prefix="HUAWEI_IAP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_config(self) -> "Settings":
        """Reject settings that could never produce a working client."""
        errors: list[str] = []

        for name in ("token_url", "order_verify_url", "subscription_verify_url"):
            if not getattr(self, name).startswith("https://"):
                errors.append(f"{name} must be an https:// URL")

        if self.token_refresh_margin_seconds < 0:
            errors.append("token_refresh_margin_seconds must not be negative")

        if self.log_format not in ("json", "console"):
            errors.append(f"log_format must be 'json' or 'console', got: {self.log_format}")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    def credentials(self) -> Credentials:
        """Build client credentials from settings."""
        secret = self.client_secret.get_secret_value()
        if not self.client_id or not secret:
            raise ConfigurationError(
                "HUAWEI_IAP_CLIENT_ID and HUAWEI_IAP_CLIENT_SECRET are required"
            )
        return Credentials(client_id=self.client_id, client_secret=secret)


@lru_cache
def get_settings() -> Settings:
    """Get SDK settings instance."""
    return Settings()
