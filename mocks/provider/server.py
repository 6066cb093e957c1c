"""
Mock KeyAuth provider exposing the authorization, validation and session
endpoints a consumer talks to.
"""

import secrets
from typing import Dict, Any, Optional
from urllib.parse import urlencode

from fastapi import FastAPI, Form, HTTPException, Query
from fastapi.responses import RedirectResponse

from shared.logging import get_logger


class MockKeyAuthProvider:
    """Mock KeyAuth provider implementation."""

    def __init__(self, host: str = "provider.test", port: int = 80):
        self.host = host
        self.port = port
        self.logger = get_logger("mock.provider")
        self.app = FastAPI(title="Mock KeyAuth Provider", version="1.0.0")

        # Registered consumers and the callback URL of each
        self.consumers: Dict[str, str] = {}

        # Identity payloads carry no "name" field: legacy consumers read it as an error
        self.users: Dict[str, Dict[str, Any]] = {
            "john.doe": {
                "id": 1,
                "username": "john.doe",
                "email": "john.doe@keyauth.test",
                "role": "admin"
            },
            "jane.smith": {
                "id": 2,
                "username": "jane.smith",
                "email": "jane.smith@keyauth.test",
                "role": "user"
            }
        }

        # token -> (client_id, username); removed once the session is fetched
        self.tokens: Dict[str, Dict[str, str]] = {}

        self._setup_routes()

    @property
    def reference(self) -> str:
        return f"{self.host}:{self.port}"

    def register_consumer(self, client_id: str, callback_url: str):
        self.consumers[client_id] = callback_url

    def issue_token(self, client_id: str, username: str) -> str:
        """Mint a token as if ``username`` had just authenticated."""
        if username not in self.users:
            raise KeyError(username)
        token = secrets.token_urlsafe(24)
        self.tokens[token] = {"client_id": client_id, "username": username}
        return token

    def _setup_routes(self):
        """Set up mock provider routes."""

        @self.app.get("/auth")
        async def authorize(
            client_id: str = Query(...),
            response_type: str = Query(...),
            scope: str = Query(...),
            username: Optional[str] = Query(None)
        ):
            """Authorization endpoint; ``username`` stands in for the login form."""
            if response_type != "token" or scope != "auth":
                raise HTTPException(status_code=400, detail="Unsupported request")
            if client_id not in self.consumers:
                raise HTTPException(status_code=400, detail="Unknown client")
            if not username or username not in self.users:
                raise HTTPException(status_code=401, detail="Invalid credentials")

            token = self.issue_token(client_id, username)
            query = urlencode({"provider": self.reference, "token": token})
            return RedirectResponse(url=f"{self.consumers[client_id]}?{query}", status_code=302)

        @self.app.post("/auth/validate")
        async def validate(token: str = Form(""), client_id: str = Form("")):
            """Token validation endpoint."""
            grant = self.tokens.get(token)
            if grant is None or grant["client_id"] != client_id:
                self.logger.info("Rejected token", client_id=client_id)
                return {"valid": False}

            return {"valid": True, "token": token}

        @self.app.post("/auth/session")
        async def session(token: str = Form(""), client_id: str = Form("")):
            """Session endpoint; each token is redeemed once."""
            grant = self.tokens.get(token)
            if grant is None or grant["client_id"] != client_id:
                return {"name": "SessionError", "message": "Unknown or redeemed token"}

            del self.tokens[token]
            return dict(self.users[grant["username"]])


def create_app():
    """Create mock provider application."""
    server = MockKeyAuthProvider()
    return server.app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(create_app(), host="0.0.0.0", port=8081)
