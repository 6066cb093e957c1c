"""
Unit tests for provider address resolution.
"""

import pytest
from urllib.parse import urlsplit, parse_qs

from service_consumer.app.provider.resolver import (
    DEFAULT_PROVIDER_PORT,
    ProviderReference,
    authorization_url,
    parse_provider_reference,
)


class TestParseProviderReference:
    """Test cases for parse_provider_reference."""

    @pytest.mark.parametrize("host", ["localhost", "auth.example.com", "10.0.0.7"])
    def test_host_only_defaults_port(self, host):
        """Test that a bare host gets port 80."""
        ref = parse_provider_reference(host)
        assert ref.host == host
        assert ref.port == DEFAULT_PROVIDER_PORT == 80

    @pytest.mark.parametrize("host,port", [("localhost", 3000), ("auth.example.com", 8443), ("10.0.0.7", 80)])
    def test_host_and_port(self, host, port):
        """Test that an explicit port is used literally."""
        ref = parse_provider_reference(f"{host}:{port}")
        assert ref.host == host
        assert ref.port == port

    @pytest.mark.parametrize("ref", ["host:", "host:abc", "host:-1", "host:70000", "host:0"])
    def test_malformed_port_falls_back(self, ref):
        """Test that unusable ports fall back to 80 instead of raising."""
        parsed = parse_provider_reference(ref)
        assert parsed.host == "host"
        assert parsed.port == 80

    def test_extra_segments_ignored(self):
        """Test that only the first two segments are read."""
        parsed = parse_provider_reference("host:8080:junk")
        assert parsed == ProviderReference("host", 8080)

    @pytest.mark.parametrize("ref", ["", None])
    def test_empty_reference(self, ref):
        """Test that empty input parses to an empty host."""
        parsed = parse_provider_reference(ref)
        assert parsed.host == ""
        assert parsed.port == 80

    def test_endpoint_url(self):
        """Test server-to-server URL construction."""
        ref = ProviderReference("provider.test", 8081)
        assert ref.address == "provider.test:8081"
        assert ref.endpoint("/auth/validate") == "http://provider.test:8081/auth/validate"
        assert ref.endpoint("auth/session", "https") == "https://provider.test:8081/auth/session"


class TestAuthorizationURL:
    """Test cases for authorization_url."""

    @pytest.mark.parametrize("client_id", ["my-app", "consumer1", "app with spaces", "a&b=c"])
    def test_single_client_id(self, client_id):
        """Test that the URL carries exactly one client_id equal to the consumer name."""
        url = authorization_url("provider.test:3000", client_id)
        query = parse_qs(urlsplit(url).query)

        assert query["client_id"] == [client_id]
        assert query["response_type"] == ["token"]
        assert query["scope"] == ["auth"]

    def test_targets_provider(self):
        """Test that the URL targets the provider host and /auth path."""
        url = authorization_url("provider.test:3000", "my-app")
        parts = urlsplit(url)

        assert parts.scheme == "http"
        assert parts.netloc == "provider.test:3000"
        assert parts.path == "/auth"
        assert url == "http://provider.test:3000/auth?client_id=my-app&response_type=token&scope=auth"

    def test_https_scheme(self):
        """Test configurable scheme."""
        url = authorization_url("provider.test", "my-app", scheme="https")
        assert url.startswith("https://provider.test/auth?")
