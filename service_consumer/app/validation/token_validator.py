"""
Token validation against the issuing provider.
"""

from typing import Optional
from pydantic import BaseModel

from shared.logging import get_logger
from ..provider.resolver import ProviderReference
from ..provider.responses import ParseFailure, decode_body
from ..provider.transport import TransportClient

VALIDATE_PATH = "/auth/validate"


class ValidationResult(BaseModel):
    """Outcome of a validate call."""
    valid: bool
    token: Optional[str] = None


class TokenValidator:
    """Asks the provider whether a token it minted is valid for this consumer."""

    def __init__(self, client_id: str, transport: TransportClient):
        self.client_id = client_id
        self.transport = transport
        self.logger = get_logger("consumer.validator")

    async def validate(self, provider: ProviderReference, token: str) -> ValidationResult:
        """POST the token to ``/auth/validate``.

        ``valid=False`` is an authoritative rejection. Transport failures
        propagate as ``ProviderUnreachableError``.
        """
        response = await self.transport.post(
            provider,
            VALIDATE_PATH,
            {"token": token, "client_id": self.client_id}
        )
        body = decode_body(response.text, response.status_code)

        if isinstance(body, ParseFailure):
            self.logger.warning(
                "Validation response is not JSON",
                provider=provider.address,
                status_code=body.status_code,
                error=body.error
            )
            return ValidationResult(valid=False)

        payload = body.as_object()
        echoed = payload.get("token")
        result = ValidationResult(
            valid=bool(payload.get("valid")),
            token=echoed if isinstance(echoed, str) else None
        )

        if not result.valid:
            self.logger.info(
                "Token rejected by provider",
                provider=provider.address,
                status_code=body.status_code
            )
        return result
