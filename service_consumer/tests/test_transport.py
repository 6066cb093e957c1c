"""
Unit tests for the provider transport client.
"""

import pytest
import httpx
from unittest.mock import AsyncMock, patch

from service_consumer.app.provider.resolver import ProviderReference
from service_consumer.app.provider.transport import TransportClient, FORM_CONTENT_TYPE
from shared.errors import ProviderUnreachableError
from shared.metrics import MetricsCollector


class TestTransportClient:
    """Test cases for TransportClient."""

    @pytest.fixture
    def metrics(self):
        """Create an isolated metrics collector."""
        return MetricsCollector("consumer")

    @pytest.fixture
    def transport_client(self, metrics):
        """Create TransportClient instance."""
        return TransportClient(timeout=5.0, failure_threshold=2, metrics=metrics)

    @pytest.fixture
    def provider(self):
        """Provider reference."""
        return ProviderReference("provider.test", 8081)

    @pytest.mark.asyncio
    async def test_post_returns_raw_body(self, transport_client, provider):
        """Test that the full body is collected as text."""
        with patch('httpx.AsyncClient') as mock_client:
            post = AsyncMock(
                return_value=httpx.Response(
                    status_code=200,
                    content=b'{"valid": true}',
                    request=httpx.Request("POST", "http://provider.test:8081/auth/validate")
                )
            )
            mock_client.return_value.__aenter__.return_value.post = post

            result = await transport_client.post(provider, "/auth/validate", {"token": "t", "client_id": "app"})

            assert result.status_code == 200
            assert result.text == '{"valid": true}'
            post.assert_called_once_with(
                "http://provider.test:8081/auth/validate",
                data={"token": "t", "client_id": "app"},
                headers={"Content-Type": FORM_CONTENT_TYPE}
            )
            mock_client.assert_called_once_with(timeout=5.0, transport=None)

    @pytest.mark.asyncio
    async def test_error_status_is_not_raised(self, transport_client, provider):
        """Test that 4xx/5xx responses are handed back unchanged."""
        with patch('httpx.AsyncClient') as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                return_value=httpx.Response(
                    status_code=500,
                    content=b"Internal Server Error",
                    request=httpx.Request("POST", "http://provider.test:8081/auth/session")
                )
            )

            result = await transport_client.post(provider, "/auth/session", {"token": "t"})

            assert result.status_code == 500
            assert result.text == "Internal Server Error"

    @pytest.mark.asyncio
    async def test_connection_error(self, transport_client, provider, metrics):
        """Test that connection failures surface as ProviderUnreachableError."""
        with patch('httpx.AsyncClient') as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                side_effect=httpx.ConnectError("Connection refused")
            )

            with pytest.raises(ProviderUnreachableError) as exc_info:
                await transport_client.post(provider, "/auth/validate", {"token": "t"})

            assert exc_info.value.provider == "provider.test:8081"
            assert exc_info.value.status_code == 502
            assert metrics.sample(
                "provider_requests_total",
                {"endpoint": "/auth/validate", "outcome": "unreachable"}
            ) == 1.0

    @pytest.mark.asyncio
    async def test_timeout(self, transport_client, provider):
        """Test that a stalled provider raises instead of hanging."""
        with patch('httpx.AsyncClient') as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                side_effect=httpx.ReadTimeout("Request timeout")
            )

            with pytest.raises(ProviderUnreachableError):
                await transport_client.post(provider, "/auth/validate", {"token": "t"})

    @pytest.mark.asyncio
    async def test_circuit_breaker_activation(self, transport_client, provider):
        """Test that repeated failures open the breaker for that provider."""
        with patch('httpx.AsyncClient') as mock_client:
            post = AsyncMock(side_effect=httpx.ConnectError("Service unavailable"))
            mock_client.return_value.__aenter__.return_value.post = post

            for _ in range(2):
                with pytest.raises(ProviderUnreachableError):
                    await transport_client.post(provider, "/auth/validate", {"token": "t"})

            breaker = transport_client.breakers.get_circuit_breaker(provider.address)
            assert breaker.is_open()

            with pytest.raises(ProviderUnreachableError) as exc_info:
                await transport_client.post(provider, "/auth/validate", {"token": "t"})

            assert "circuit open" in exc_info.value.message
            assert post.call_count == 2

    @pytest.mark.asyncio
    async def test_breakers_are_per_provider(self, transport_client, provider):
        """Test that one failing provider does not block another."""
        other = ProviderReference("other.test", 80)

        with patch('httpx.AsyncClient') as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                side_effect=httpx.ConnectError("down")
            )
            for _ in range(2):
                with pytest.raises(ProviderUnreachableError):
                    await transport_client.post(provider, "/auth/validate", {"token": "t"})

        with patch('httpx.AsyncClient') as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                return_value=httpx.Response(
                    status_code=200,
                    content=b"{}",
                    request=httpx.Request("POST", "http://other.test:80/auth/validate")
                )
            )
            result = await transport_client.post(other, "/auth/validate", {"token": "t"})

        assert result.status_code == 200

    @pytest.mark.asyncio
    async def test_injected_transport(self, provider):
        """Test posting through an injected httpx transport."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["content_type"] = request.headers["content-type"]
            seen["body"] = request.content.decode()
            return httpx.Response(200, text="ok")

        client = TransportClient(transport=httpx.MockTransport(handler))
        result = await client.post(provider, "/auth/session", {"token": "abc", "client_id": "my app"})

        assert result.text == "ok"
        assert seen["url"] == "http://provider.test:8081/auth/session"
        assert seen["content_type"] == FORM_CONTENT_TYPE
        assert seen["body"] == "token=abc&client_id=my+app"
