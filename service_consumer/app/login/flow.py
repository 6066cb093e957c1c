"""
Login flow controller.

A login spans two requests. ``initiate_login`` takes START to
REDIRECTED_OUT; the provider callback is then a short sequential run:

    CALLBACK_RECEIVED -> TOKEN_VALIDATED -> SESSION_FETCHED -> COMMITTED

Any protocol failure ends in REJECTED; a provider that cannot be reached ends
in PROVIDER_UNREACHABLE. Validation always completes before the session call
is made, and the session is written only in the COMMITTED transition.
"""

from enum import Enum
from typing import Any, Dict, List, MutableMapping, Optional

from pydantic import BaseModel, Field
from starlette.responses import RedirectResponse

from shared.errors import ProviderUnreachableError
from shared.logging import get_logger, set_user_context
from shared.metrics import MetricsCollector
from ..identity import ConsumerIdentity
from ..provider.resolver import authorization_url, parse_provider_reference
from ..session.exchanger import SessionExchanger
from ..session.middleware import commit_session
from ..validation.token_validator import TokenValidator

INVALID_TOKEN_MESSAGE = "Cannot validate token. I'm sorry!"
SESSION_FETCH_MESSAGE = "Cannot fetch session. Too bad!"
UNREACHABLE_MESSAGE = "Cannot reach provider."


class LoginState(str, Enum):
    """States of a single login run."""
    START = "start"
    REDIRECTED_OUT = "redirected_out"
    CALLBACK_RECEIVED = "callback_received"
    TOKEN_VALIDATED = "token_validated"
    SESSION_FETCHED = "session_fetched"
    COMMITTED = "committed"
    REJECTED = "rejected"
    PROVIDER_UNREACHABLE = "provider_unreachable"


class LoginOutcome(BaseModel):
    """Terminal result of ``handle_callback``."""
    state: LoginState
    message: Optional[str] = None
    redirect: Optional[str] = None
    identity: Optional[Dict[str, Any]] = None
    history: List[LoginState] = Field(default_factory=list)

    @property
    def committed(self) -> bool:
        return self.state == LoginState.COMMITTED


class LoginFlowController:
    """Drives redirect-out and callback-in for one consumer."""

    def __init__(self,
                 identity: ConsumerIdentity,
                 validator: TokenValidator,
                 exchanger: SessionExchanger,
                 scheme: str = "http",
                 metrics: Optional[MetricsCollector] = None):
        self.identity = identity
        self.validator = validator
        self.exchanger = exchanger
        self.scheme = scheme
        self.metrics = metrics
        self.logger = get_logger("consumer.login")

    def initiate_login(self, provider_name: str) -> RedirectResponse:
        """Send the user agent to the provider's authorization page."""
        url = authorization_url(provider_name or "", self.identity.name, self.scheme)
        if self.metrics is not None:
            self.metrics.record_login_outcome(LoginState.REDIRECTED_OUT.value)
        self.logger.info(
            "Redirecting to provider",
            provider=provider_name,
            state=LoginState.REDIRECTED_OUT.value
        )
        return RedirectResponse(url=url, status_code=302)

    async def handle_callback(self,
                              provider_ref: Optional[str],
                              token: Optional[str],
                              session: MutableMapping[str, Any]) -> LoginOutcome:
        """Validate ``token``, fetch the identity and commit it into ``session``."""
        history = [LoginState.START, LoginState.CALLBACK_RECEIVED]
        set_user_context(provider=provider_ref)

        if not provider_ref or not token:
            self.logger.warning(
                "Callback missing parameters",
                has_provider=bool(provider_ref),
                has_token=bool(token)
            )
            return self._finish(history, LoginState.REJECTED, message=INVALID_TOKEN_MESSAGE)

        provider = parse_provider_reference(provider_ref)

        try:
            validation = await self.validator.validate(provider, token)
            if not validation.valid:
                return self._finish(history, LoginState.REJECTED, message=INVALID_TOKEN_MESSAGE)
            history.append(LoginState.TOKEN_VALIDATED)

            exchange = await self.exchanger.fetch_session(provider, validation.token or token)
            if not exchange.ok:
                return self._finish(history, LoginState.REJECTED, message=SESSION_FETCH_MESSAGE)
            history.append(LoginState.SESSION_FETCHED)

        except ProviderUnreachableError as e:
            self.logger.error("Provider unreachable during login", error=e.message)
            return self._finish(history, LoginState.PROVIDER_UNREACHABLE, message=UNREACHABLE_MESSAGE)

        commit_session(session, exchange.identity)
        return self._finish(
            history,
            LoginState.COMMITTED,
            redirect=self.identity.redirect,
            identity=exchange.identity
        )

    def _finish(self, history: List[LoginState], state: LoginState, **fields) -> LoginOutcome:
        history.append(state)
        if self.metrics is not None:
            self.metrics.record_login_outcome(state.value)

        log = self.logger.info if state == LoginState.COMMITTED else self.logger.warning
        log("Login finished", state=state.value, steps=[s.value for s in history])
        return LoginOutcome(state=state, history=history, **fields)
