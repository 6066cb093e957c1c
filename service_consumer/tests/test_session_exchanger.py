"""
Unit tests for SessionExchanger.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from service_consumer.app.provider.resolver import ProviderReference
from service_consumer.app.provider.transport import TransportClient, TransportResponse
from service_consumer.app.session.exchanger import (
    SESSION_PATH,
    SessionErrorPolicy,
    SessionExchanger,
)


@pytest.fixture
def transport():
    """Mock transport client."""
    transport = MagicMock(spec=TransportClient)
    transport.post = AsyncMock()
    return transport


@pytest.fixture
def provider():
    return ProviderReference("provider.test", 3000)


class TestLegacyNameFieldPolicy:
    """Test cases for the default, wire-compatible error detection."""

    @pytest.fixture
    def exchanger(self, transport):
        """Create SessionExchanger instance."""
        return SessionExchanger("my-app", transport)

    @pytest.mark.asyncio
    async def test_identity_payload(self, exchanger, transport, provider):
        """Test that {"id": 7} is a valid identity."""
        transport.post.return_value = TransportResponse(200, '{"id": 7}')

        result = await exchanger.fetch_session(provider, "abc")

        assert result.error is False
        assert result.identity == {"id": 7}
        assert result.ok is True
        transport.post.assert_called_once_with(
            provider, SESSION_PATH, {"token": "abc", "client_id": "my-app"}
        )

    @pytest.mark.asyncio
    async def test_error_payload(self, exchanger, transport, provider):
        """Test that a payload carrying "name" is an error."""
        transport.post.return_value = TransportResponse(200, '{"name": "err", "message": "x"}')

        result = await exchanger.fetch_session(provider, "abc")

        assert result.error is True
        assert result.ok is False

    @pytest.mark.asyncio
    async def test_identity_with_name_is_misclassified(self, exchanger, transport, provider):
        """Test the known ambiguity: identities with a name read as errors."""
        transport.post.return_value = TransportResponse(200, '{"id": 1, "name": "John Doe"}')

        result = await exchanger.fetch_session(provider, "abc")

        assert result.error is True

    @pytest.mark.asyncio
    async def test_null_name_is_error(self, exchanger, transport, provider):
        """Test that the name field marks an error by presence, whatever its value."""
        transport.post.return_value = TransportResponse(200, '{"id": 1, "name": null}')

        result = await exchanger.fetch_session(provider, "abc")

        assert result.error is True
        assert result.ok is False

    @pytest.mark.asyncio
    async def test_malformed_body(self, exchanger, transport, provider):
        """Test that non-JSON yields an empty identity and no commit."""
        transport.post.return_value = TransportResponse(502, "Bad Gateway")

        result = await exchanger.fetch_session(provider, "abc")

        assert result.identity == {}
        assert result.ok is False

    @pytest.mark.asyncio
    async def test_empty_object(self, exchanger, transport, provider):
        """Test that an empty identity does not allow a commit."""
        transport.post.return_value = TransportResponse(200, "{}")

        result = await exchanger.fetch_session(provider, "abc")

        assert result.error is False
        assert result.ok is False


class TestExplicitErrorFieldPolicy:
    """Test cases for the explicit error-field policy."""

    @pytest.fixture
    def exchanger(self, transport):
        return SessionExchanger("my-app", transport, SessionErrorPolicy.EXPLICIT_ERROR_FIELD)

    @pytest.mark.asyncio
    async def test_identity_with_name(self, exchanger, transport, provider):
        """Test that "name" is an ordinary attribute under this policy."""
        transport.post.return_value = TransportResponse(200, '{"id": 1, "name": "John Doe"}')

        result = await exchanger.fetch_session(provider, "abc")

        assert result.error is False
        assert result.identity["name"] == "John Doe"

    @pytest.mark.asyncio
    async def test_error_key(self, exchanger, transport, provider):
        """Test that an error key marks an error."""
        transport.post.return_value = TransportResponse(200, '{"error": "invalid_token"}')

        result = await exchanger.fetch_session(provider, "abc")

        assert result.error is True

    @pytest.mark.asyncio
    async def test_error_status(self, exchanger, transport, provider):
        """Test that a non-2xx status marks an error."""
        transport.post.return_value = TransportResponse(401, '{"id": 1}')

        result = await exchanger.fetch_session(provider, "abc")

        assert result.error is True

    def test_policy_from_config_value(self, transport):
        """Test building the policy from its configuration string."""
        exchanger = SessionExchanger("my-app", transport, "error")
        assert exchanger.policy is SessionErrorPolicy.EXPLICIT_ERROR_FIELD
