"""
api/routes/v1/messages.py -- Send, view and mark-read for single messages.

Routes:
  POST /api/v1/messages                -- send a message as the caller
  GET  /api/v1/messages/{message_id}   -- message detail (sender or recipient)
  POST /api/v1/messages/{message_id}/read -- mark read (recipient only)

The detail and mark-read handlers fetch the message to learn its parties,
run the guard, and only then return or mutate it. A third party gets 403
and never sees the body.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.models import MessageCreate, MessageDetailOut, MessageResponse
from auth.dependencies import get_current_principal
from auth.guard import AuthorizationGuard
from messages.directory import MessageDirectory

# Auth policy:
# - POST /messages:                  requires auth
# - GET  /messages/{message_id}:      requires auth + sender or recipient
# - POST /messages/{message_id}/read: requires auth + recipient
router = APIRouter()


@router.post("/messages", response_model=MessageResponse, status_code=201)
def send_message(
    request: Request,
    body: MessageCreate,
    principal: str = Depends(get_current_principal),
) -> MessageResponse:
    """Send a message from the caller to any existing user. 404 for an unknown recipient."""
    directory: MessageDirectory = request.app.state.directory
    message = directory.send(principal, body.to_username, body.body)
    return MessageResponse(message=MessageDetailOut.model_validate(message))


@router.get("/messages/{message_id}", response_model=MessageResponse)
def get_message(
    request: Request,
    message_id: int,
    principal: str = Depends(get_current_principal),
) -> MessageResponse:
    directory: MessageDirectory = request.app.state.directory
    guard: AuthorizationGuard = request.app.state.guard

    message = directory.get(message_id)
    guard.require_party(principal, message)
    return MessageResponse(message=MessageDetailOut.model_validate(message))


@router.post("/messages/{message_id}/read", response_model=MessageResponse)
def mark_message_read(
    request: Request,
    message_id: int,
    principal: str = Depends(get_current_principal),
) -> MessageResponse:
    """Set read_at once. Repeat calls return the original read_at."""
    directory: MessageDirectory = request.app.state.directory
    guard: AuthorizationGuard = request.app.state.guard

    guard.require_recipient(principal, directory.get(message_id))
    message = directory.mark_read(message_id)
    return MessageResponse(message=MessageDetailOut.model_validate(message))
