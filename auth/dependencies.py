"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The bearer token travels in the Authorization header:

    Authorization: Bearer <token>

get_current_principal() hands the token (or None) to the AuthorizationGuard
kept on app.state and returns the verified username. The guard raises
AuthenticationError on failure; api/main.py maps that to a 401 envelope.

Layer rule: no imports from core/ or messages/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.guard import AuthorizationGuard

_BEARER_PREFIX = "Bearer "


def bearer_token(request: Request) -> str | None:
    """Return the raw token from the Authorization header, or None."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith(_BEARER_PREFIX):
        token = auth_header[len(_BEARER_PREFIX) :].strip()
        return token or None
    return None


def get_current_principal(request: Request) -> str:
    """Require authentication and return the caller's username.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(principal: str = Depends(get_current_principal)): ...
    """
    guard: AuthorizationGuard = request.app.state.guard
    return guard.require_authenticated(bearer_token(request))
