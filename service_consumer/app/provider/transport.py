"""
Outbound HTTP transport to identity providers.
"""

import time
from dataclasses import dataclass
from typing import Mapping, Optional

import httpx

from shared.circuit_breaker import CircuitBreakerManager, CircuitBreakerOpenException
from shared.errors import ProviderUnreachableError
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from .resolver import ProviderReference

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


@dataclass(frozen=True)
class TransportResponse:
    """Raw provider answer; status is reported, never checked."""
    status_code: int
    text: str


class TransportClient:
    """Issues form-encoded POSTs to providers and collects the full body."""

    def __init__(self,
                 scheme: str = "http",
                 timeout: float = 10.0,
                 failure_threshold: int = 5,
                 recovery_timeout: float = 30.0,
                 metrics: Optional[MetricsCollector] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.scheme = scheme
        self.timeout = timeout
        self.metrics = metrics
        self.transport = transport
        self.logger = get_logger("consumer.transport")
        self.breakers = CircuitBreakerManager(
            failure_threshold=failure_threshold,
            recovery_timeout=recovery_timeout,
            expected_exceptions=(httpx.HTTPError,)
        )

    async def post(self, provider: ProviderReference, path: str,
                   body: Mapping[str, str]) -> TransportResponse:
        """POST ``body`` to ``path`` on ``provider``.

        Any HTTP status, 4xx/5xx included, is returned to the caller as-is.
        Connection errors, timeouts and an open breaker raise
        ``ProviderUnreachableError``.
        """
        url = provider.endpoint(path, self.scheme)
        breaker = self.breakers.get_circuit_breaker(provider.address)

        async def _post() -> TransportResponse:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    url,
                    data=dict(body),
                    headers={"Content-Type": FORM_CONTENT_TYPE}
                )
                return TransportResponse(status_code=response.status_code, text=response.text)

        start_time = time.time()
        try:
            result = await breaker.call(_post)
        except CircuitBreakerOpenException:
            self._record(path, "circuit_open", start_time)
            self.logger.warning("Provider circuit open", provider=provider.address, path=path)
            raise ProviderUnreachableError(
                provider.address,
                "circuit open after repeated failures",
                details={"path": path}
            )
        except httpx.HTTPError as e:
            self._record(path, "unreachable", start_time)
            self.logger.error(
                "Provider HTTP error",
                provider=provider.address,
                path=path,
                error=str(e)
            )
            raise ProviderUnreachableError(
                provider.address,
                details={"path": path, "http_error": str(e) or type(e).__name__}
            )

        self._record(path, str(result.status_code), start_time)
        self.logger.debug(
            "Provider responded",
            provider=provider.address,
            path=path,
            status_code=result.status_code
        )
        return result

    def _record(self, path: str, outcome: str, start_time: float):
        if self.metrics is not None:
            self.metrics.record_provider_request(path, outcome, time.time() - start_time)
