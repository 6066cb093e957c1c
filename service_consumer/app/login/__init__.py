from .flow import (
    LoginFlowController,
    LoginOutcome,
    LoginState,
    INVALID_TOKEN_MESSAGE,
    SESSION_FETCH_MESSAGE,
    UNREACHABLE_MESSAGE,
)

__all__ = [
    "LoginFlowController",
    "LoginOutcome",
    "LoginState",
    "INVALID_TOKEN_MESSAGE",
    "SESSION_FETCH_MESSAGE",
    "UNREACHABLE_MESSAGE",
]
