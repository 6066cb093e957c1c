"""
Session exposure and logout binding.

The hosting application owns the session store (Starlette's
``SessionMiddleware`` by default). This module only reads and writes the
single ``keyauth`` field inside it and publishes the result on
``request.state`` for downstream handlers:

- ``request.state.user``: the committed identity, or ``None``
- ``request.state.keyauth``: a ``KeyAuthContext`` with ``logout(path=None)``

Usage:
    app.add_middleware(KeyAuthSessionMiddleware, mount_path="/auth")
    app.add_middleware(SessionMiddleware, secret_key=...)

``SessionMiddleware`` must be added last so it wraps this middleware.
"""

from typing import Any, Dict, MutableMapping, Optional

from fastapi import HTTPException, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import RedirectResponse

from shared.logging import get_logger, set_user_context
from shared.metrics import MetricsCollector

SESSION_KEY = "keyauth"

logger = get_logger("consumer.session")


def session_of(request: Request) -> Optional[MutableMapping[str, Any]]:
    """The request's session mapping, or ``None`` when no store is installed."""
    if "session" not in request.scope:
        return None
    return request.session


def read_record(session: Optional[MutableMapping[str, Any]]) -> Dict[str, Any]:
    """Return the ``keyauth`` record, normalised; never raises."""
    record = session.get(SESSION_KEY) if session is not None else None
    if not isinstance(record, dict):
        return {"valid": False, "user": None}
    return {"valid": bool(record.get("valid")), "user": record.get("user")}


def commit_session(session: MutableMapping[str, Any], identity: Dict[str, Any]):
    """Mark the session authenticated for ``identity``."""
    session[SESSION_KEY] = {"valid": True, "user": identity}


def invalidate_session(session: MutableMapping[str, Any]):
    session[SESSION_KEY] = {"valid": False, "user": None}


class KeyAuthContext:
    """Per-request view of the authentication state."""

    def __init__(self, request: Request, metrics: Optional[MetricsCollector] = None):
        self.request = request
        self.metrics = metrics
        record = read_record(session_of(request))
        self.valid = record["valid"]
        self.user = record["user"] if record["valid"] else None

    @property
    def authenticated(self) -> bool:
        return self.valid and self.user is not None

    def logout(self, path: Optional[str] = None) -> Optional[RedirectResponse]:
        """Invalidate the session; return a redirect only when ``path`` is given."""
        session = session_of(self.request)
        if session is not None:
            invalidate_session(session)
        self.valid = False
        self.user = None
        self.request.state.user = None

        if self.metrics is not None:
            self.metrics.record_logout()
        logger.info("Session invalidated", redirect=path)

        if path:
            return RedirectResponse(url=path, status_code=302)
        return None


class KeyAuthSessionMiddleware(BaseHTTPMiddleware):
    """Publishes the committed identity and the logout operation.

    Applies to every request under ``mount_path``; never short-circuits.
    """

    def __init__(self, app, mount_path: str = "", metrics: Optional[MetricsCollector] = None):
        super().__init__(app)
        self.mount_path = mount_path.rstrip("/")
        self.metrics = metrics

    def applies_to(self, path: str) -> bool:
        if not self.mount_path:
            return True
        return path == self.mount_path or path.startswith(self.mount_path + "/")

    async def dispatch(self, request: Request, call_next):
        if self.applies_to(request.url.path):
            context = KeyAuthContext(request, self.metrics)
            request.state.keyauth = context
            request.state.user = context.user
            if context.authenticated and isinstance(context.user, dict):
                set_user_context(user_id=_user_label(context.user))

        return await call_next(request)


def _user_label(user: Dict[str, Any]) -> Optional[str]:
    for field in ("id", "user_id", "username", "name"):
        if user.get(field) is not None:
            return str(user[field])
    return None


def get_keyauth_context(request: Request) -> KeyAuthContext:
    """FastAPI dependency returning the request's ``KeyAuthContext``.

    Falls back to building one when the middleware did not run.
    """
    context = getattr(request.state, "keyauth", None)
    if context is None:
        context = KeyAuthContext(request)
        request.state.keyauth = context
    return context


def get_current_user(request: Request) -> Dict[str, Any]:
    """FastAPI dependency requiring an authenticated session."""
    context = get_keyauth_context(request)
    if not context.authenticated:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return context.user
