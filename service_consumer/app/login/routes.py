"""
HTTP routes of the consumer.

- GET  /about            - Consumer metadata
- GET  /avatar           - Avatar bytes
- GET  /key              - Public key bytes
- POST /login            - Redirect to the provider named by form field ``username``
- GET  /login/callback   - Provider callback carrying ``provider`` and ``token``
- GET  /me               - Committed identity of the current session
- POST /logout           - Invalidate the current session
"""

from typing import TYPE_CHECKING, Optional

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import PlainTextResponse, RedirectResponse, Response

from shared.errors import ConfigurationError
from ..session.middleware import KeyAuthContext, get_current_user, get_keyauth_context, session_of
from .flow import LoginState

if TYPE_CHECKING:
    from ..consumer import KeyAuthConsumer

OCTET_STREAM = "application/octet-stream"

STATUS_BY_STATE = {
    LoginState.REJECTED: 401,
    LoginState.PROVIDER_UNREACHABLE: 502,
}


def create_router(consumer: "KeyAuthConsumer") -> APIRouter:
    """Build the route group for ``consumer``."""
    router = APIRouter(tags=["keyauth"])
    identity = consumer.identity
    flow = consumer.flow

    @router.get("/about")
    async def about():
        """Basic profile document."""
        return identity.about_document()

    @router.get("/avatar")
    async def avatar():
        return Response(content=identity.avatar, media_type=identity.avatar_media_type)

    @router.get("/key")
    async def key():
        return Response(content=identity.key, media_type=OCTET_STREAM)

    @router.post("/login")
    async def login(username: Optional[str] = Form(None)):
        """Redirect the user to the provider they named."""
        return flow.initiate_login(username or "")

    @router.get("/login/callback")
    async def login_callback(
        request: Request,
        provider: Optional[str] = Query(None),
        token: Optional[str] = Query(None),
    ):
        """Provider callback: validate, exchange, commit, redirect."""
        session = session_of(request)
        if session is None:
            raise ConfigurationError("SessionMiddleware is not installed")

        outcome = await flow.handle_callback(provider, token, session)
        if outcome.committed:
            return RedirectResponse(url=outcome.redirect, status_code=302)

        return PlainTextResponse(
            outcome.message,
            status_code=STATUS_BY_STATE.get(outcome.state, 400)
        )

    @router.get("/me")
    async def me(user: dict = Depends(get_current_user)):
        return user

    @router.post("/logout")
    async def logout(context: KeyAuthContext = Depends(get_keyauth_context)):
        redirect = context.logout(consumer.config.logout_redirect)
        if redirect is not None:
            return redirect
        return {"message": "Logged out"}

    return router
