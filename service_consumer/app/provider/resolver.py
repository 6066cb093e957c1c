"""
Provider address resolution.

Providers are named by a compact ``host[:port]`` string. Parsing is
permissive on purpose: a malformed reference never raises, it falls back to
defaults and fails later at the provider.
"""

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

DEFAULT_PROVIDER_PORT = 80


@dataclass(frozen=True)
class ProviderReference:
    """A parsed provider endpoint."""
    host: str
    port: int = DEFAULT_PROVIDER_PORT

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    def base_url(self, scheme: str = "http") -> str:
        return f"{scheme}://{self.host}:{self.port}"

    def endpoint(self, path: str, scheme: str = "http") -> str:
        """Absolute URL of a provider endpoint."""
        return self.base_url(scheme) + "/" + path.lstrip("/")


def parse_provider_reference(ref: Optional[str]) -> ProviderReference:
    """Split ``host[:port]``; a missing or unusable port becomes 80."""
    parts = (ref or "").split(":")
    host = parts[0]
    port = DEFAULT_PROVIDER_PORT

    if len(parts) > 1 and parts[1]:
        try:
            candidate = int(parts[1])
        except ValueError:
            candidate = None
        if candidate is not None and 0 < candidate < 65536:
            port = candidate

    return ProviderReference(host=host, port=port)


def authorization_url(provider_name: str, client_id: str, scheme: str = "http") -> str:
    """URL the user agent is sent to for authenticating with the provider."""
    query = urlencode({
        "client_id": client_id,
        "response_type": "token",
        "scope": "auth",
    })
    return f"{scheme}://{provider_name}/auth?{query}"
