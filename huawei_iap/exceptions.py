"""
Exception Classes - Strongly typed exception hierarchy.

NO DICTIONARIES - All exceptions have typed attributes.
"""


class HuaweiIAPError(Exception):
    """Base exception for all Huawei IAP errors."""

    pass


class ConfigurationError(HuaweiIAPError):
    """Raised when SDK configuration is missing or invalid."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Configuration error: {message}")


class TokenAcquisitionError(HuaweiIAPError):
    """Raised when an access token cannot be obtained from the token endpoint."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Token acquisition failed: {message}")


class VerificationRejectedError(HuaweiIAPError):
    """
    Raised when the vendor envelope signals failure.

    Both fields are copied verbatim from the envelope's
    responseMessage/responseCode and may be None when absent.
    """

    def __init__(self, message: str | None, code: str | None) -> None:
        self.message = message
        self.code = code
        super().__init__(message if message is not None else f"Verification rejected: {code}")
