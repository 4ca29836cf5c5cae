"""
api/routes/v1/users.py -- User directory, detail and per-user message lists.

Routes:
  GET /api/v1/users                     -- list all users (any authenticated user)
  GET /api/v1/users/{username}          -- user detail (self only)
  GET /api/v1/users/{username}/to       -- messages received (self only)
  GET /api/v1/users/{username}/from     -- messages sent (self only)

The ownership check (guard.require_self) runs before any store query for
the target user, so a forbidden caller learns nothing -- not even whether
the username exists.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.models import (
    ReceivedMessageRow,
    ReceivedMessagesResponse,
    SentMessageRow,
    SentMessagesResponse,
    UserDetailResponse,
    UserListResponse,
    UserProfileOut,
    UserSummaryRow,
)
from auth.dependencies import get_current_principal
from auth.guard import AuthorizationGuard
from auth.identity import IdentityManager
from messages.directory import MessageDirectory

# Auth policy:
# - GET /users:                  requires auth (get_current_principal)
# - GET /users/{username}:       requires auth + self
# - GET /users/{username}/to:    requires auth + self
# - GET /users/{username}/from:  requires auth + self
router = APIRouter()


@router.get("/users", response_model=UserListResponse)
def list_users(request: Request, principal: str = Depends(get_current_principal)) -> UserListResponse:
    """List every user's username and name, ordered by username."""
    identity: IdentityManager = request.app.state.identity
    return UserListResponse(users=[UserSummaryRow.model_validate(u) for u in identity.list_all()])


@router.get("/users/{username}", response_model=UserDetailResponse)
def get_user(request: Request, username: str, principal: str = Depends(get_current_principal)) -> UserDetailResponse:
    """Return the caller's own profile (join and last-login timestamps included)."""
    guard: AuthorizationGuard = request.app.state.guard
    guard.require_self(principal, username)

    identity: IdentityManager = request.app.state.identity
    return UserDetailResponse(user=UserProfileOut.model_validate(identity.get_profile(username)))


@router.get("/users/{username}/to", response_model=ReceivedMessagesResponse)
def messages_to(
    request: Request,
    username: str,
    principal: str = Depends(get_current_principal),
) -> ReceivedMessagesResponse:
    """Messages sent to the caller, each with the sender's profile."""
    guard: AuthorizationGuard = request.app.state.guard
    guard.require_self(principal, username)

    directory: MessageDirectory = request.app.state.directory
    return ReceivedMessagesResponse(
        messages=[ReceivedMessageRow.model_validate(m) for m in directory.messages_to(username)]
    )


@router.get("/users/{username}/from", response_model=SentMessagesResponse)
def messages_from(
    request: Request,
    username: str,
    principal: str = Depends(get_current_principal),
) -> SentMessagesResponse:
    """Messages sent by the caller, each with the recipient's profile."""
    guard: AuthorizationGuard = request.app.state.guard
    guard.require_self(principal, username)

    directory: MessageDirectory = request.app.state.directory
    return SentMessagesResponse(messages=[SentMessageRow.model_validate(m) for m in directory.messages_from(username)])
