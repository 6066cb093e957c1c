from .exchanger import SessionExchanger, SessionExchangeResult, SessionErrorPolicy
from .middleware import (
    SESSION_KEY,
    KeyAuthContext,
    KeyAuthSessionMiddleware,
    commit_session,
    invalidate_session,
    read_record,
    get_keyauth_context,
    get_current_user,
)

__all__ = [
    "SessionExchanger",
    "SessionExchangeResult",
    "SessionErrorPolicy",
    "SESSION_KEY",
    "KeyAuthContext",
    "KeyAuthSessionMiddleware",
    "commit_session",
    "invalidate_session",
    "read_record",
    "get_keyauth_context",
    "get_current_user",
]
