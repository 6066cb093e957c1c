"""
KeyAuth consumer facade.

Wires identity, transport, validator, exchanger and login flow from one
``ConsumerConfig`` and exposes them as a mountable route group.
"""

from typing import Any, Mapping, Optional, Union

import httpx
from fastapi import APIRouter, FastAPI
from starlette.middleware.sessions import SessionMiddleware

from shared.config import ConsumerConfig
from shared.errors import ConfigurationError
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from .identity import ConsumerIdentity
from .login.flow import LoginFlowController
from .login.routes import create_router
from .provider.transport import TransportClient
from .session.exchanger import SessionErrorPolicy, SessionExchanger
from .session.middleware import KeyAuthSessionMiddleware
from .validation.token_validator import TokenValidator


class KeyAuthConsumer:
    """The consumer side of the KeyAuth token handshake."""

    def __init__(self,
                 config: Union[ConsumerConfig, Mapping[str, Any]],
                 metrics: Optional[MetricsCollector] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        if not isinstance(config, ConsumerConfig):
            config = ConsumerConfig.from_mapping(config)
        if not config.name:
            raise ConfigurationError("Consumer name must not be empty")

        self.config = config
        self.metrics = metrics
        self.logger = get_logger("consumer.keyauth")

        self.identity = ConsumerIdentity.from_config(config)
        self.transport = TransportClient(
            scheme=config.provider_scheme,
            timeout=config.provider_timeout_seconds,
            failure_threshold=config.provider_failure_threshold,
            recovery_timeout=config.provider_recovery_timeout,
            metrics=metrics,
            transport=transport
        )
        self.validator = TokenValidator(config.name, self.transport)
        self.exchanger = SessionExchanger(
            config.name,
            self.transport,
            SessionErrorPolicy(config.session_error_policy)
        )
        self.flow = LoginFlowController(
            self.identity,
            self.validator,
            self.exchanger,
            scheme=config.provider_scheme,
            metrics=metrics
        )

    async def load_assets(self):
        """Load key and avatar; await before serving traffic."""
        await self.identity.load_assets()

    def router(self) -> APIRouter:
        """Route group to mount under ``config.mount_path``."""
        return create_router(self)

    def install(self, app: FastAPI, session_secret: Optional[str] = None):
        """Mount routes and middleware on ``app``.

        The host application must await ``load_assets()`` in its lifespan.
        """
        app.add_middleware(
            KeyAuthSessionMiddleware,
            mount_path=self.config.mount_path,
            metrics=self.metrics
        )

        secret = session_secret or self.config.session_secret
        if secret:
            app.add_middleware(
                SessionMiddleware,
                secret_key=secret,
                session_cookie=self.config.session_cookie
            )
        else:
            self.logger.info("No session secret configured, relying on host session store")

        app.include_router(self.router(), prefix=self.config.mount_path)
