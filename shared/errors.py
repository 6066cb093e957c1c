"""
Shared error handling for the KeyAuth consumer.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel

from shared.logging import request_id_var


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class KeyAuthException(Exception):
    """Base exception for consumer services."""

    status_code = 400

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id_var.get(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class ProviderUnreachableError(KeyAuthException):
    """The provider could not be reached or did not answer in time."""

    status_code = 502

    def __init__(self, provider: str, message: str = "Provider unreachable", details: Optional[Dict[str, Any]] = None):
        self.provider = provider
        super().__init__("PROVIDER_UNREACHABLE", f"{provider}: {message}", details)


class AssetUnavailableError(KeyAuthException):
    """A static consumer asset is not loaded."""

    status_code = 503

    def __init__(self, asset: str, message: str = "Asset unavailable", details: Optional[Dict[str, Any]] = None):
        self.asset = asset
        super().__init__("ASSET_UNAVAILABLE", f"{asset}: {message}", details)


class ConfigurationError(KeyAuthException):
    """Invalid consumer configuration."""

    status_code = 500

    def __init__(self, message: str = "Invalid configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)
