"""
KeyAuth consumer service.
"""

import secrets
from typing import Optional

import httpx

from shared.base_service import BaseService
from shared.config import ConsumerConfig, get_config
from .consumer import KeyAuthConsumer


class ConsumerService(BaseService):
    """FastAPI service hosting one KeyAuth consumer."""

    def __init__(self,
                 config: Optional[ConsumerConfig] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self._transport = transport
        super().__init__("consumer", config or get_config())

    def _setup_routes(self):
        super()._setup_routes()

        self.consumer = KeyAuthConsumer(self.config, metrics=self.metrics, transport=self._transport)

        session_secret = self.config.session_secret
        if not session_secret:
            session_secret = secrets.token_hex(32)
            self.logger.warning(
                "KEYAUTH_SESSION_SECRET not set, using a random secret "
                "(sessions won't persist across restarts)"
            )
        self.consumer.install(self.app, session_secret=session_secret)

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": self.service_name,
                "consumer": self.config.name,
                "message": "KeyAuth Consumer",
                "version": "1.0.0"
            }

    async def startup(self):
        await self.consumer.load_assets()

    async def _check_dependencies(self):
        """Report asset readiness and provider circuit state."""
        dependencies = {
            "assets": "ok" if self.consumer.identity.assets_ready else "loading"
        }
        for name, state in self.consumer.transport.breakers.get_all_states().items():
            dependencies[f"provider:{name}"] = state["state"]
        return dependencies


def create_app(config: Optional[ConsumerConfig] = None,
               transport: Optional[httpx.AsyncBaseTransport] = None):
    """Create FastAPI application."""
    service = ConsumerService(config, transport=transport)
    return service.app


if __name__ == "__main__":
    service = ConsumerService()
    service.run()
