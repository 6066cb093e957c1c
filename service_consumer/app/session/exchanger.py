"""
Exchange of a validated token for the user's identity payload.
"""

from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, Field

from shared.logging import get_logger
from ..provider.resolver import ProviderReference
from ..provider.responses import ParsedBody, ParseFailure, decode_body
from ..provider.transport import TransportClient

SESSION_PATH = "/auth/session"


class SessionErrorPolicy(str, Enum):
    """How an error-shaped session response is recognised."""

    # Wire-compatible: any payload with a "name" field is an error. Identity
    # payloads that carry a "name" attribute are misclassified.
    LEGACY_NAME_FIELD = "name"
    # An "error" key or a non-2xx status marks an error.
    EXPLICIT_ERROR_FIELD = "error"


class SessionExchangeResult(BaseModel):
    """Outcome of a session call."""
    error: bool
    identity: Dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.error and bool(self.identity)


class SessionExchanger:
    """Redeems a token at the provider's session endpoint."""

    def __init__(self, client_id: str, transport: TransportClient,
                 policy: SessionErrorPolicy = SessionErrorPolicy.LEGACY_NAME_FIELD):
        self.client_id = client_id
        self.transport = transport
        self.policy = SessionErrorPolicy(policy)
        self.logger = get_logger("consumer.exchanger")

    async def fetch_session(self, provider: ProviderReference, token: str) -> SessionExchangeResult:
        """POST the token to ``/auth/session`` and classify the answer."""
        response = await self.transport.post(
            provider,
            SESSION_PATH,
            {"token": token, "client_id": self.client_id}
        )
        body = decode_body(response.text, response.status_code)

        if isinstance(body, ParseFailure):
            self.logger.warning(
                "Session response is not JSON",
                provider=provider.address,
                status_code=body.status_code,
                error=body.error
            )
            return SessionExchangeResult(error=False, identity={})

        identity = body.as_object()
        error = self._is_error(body, identity)
        if error:
            self.logger.info(
                "Provider returned an error-shaped session",
                provider=provider.address,
                status_code=body.status_code,
                policy=self.policy.value
            )
        return SessionExchangeResult(error=error, identity=identity)

    def _is_error(self, body: ParsedBody, identity: Dict[str, Any]) -> bool:
        if self.policy is SessionErrorPolicy.LEGACY_NAME_FIELD:
            return "name" in identity
        return "error" in identity or not 200 <= body.status_code < 300
