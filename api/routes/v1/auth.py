"""
api/routes/v1/auth.py -- Registration and login endpoints.

Routes:
  POST /api/v1/auth/register  -- create account; returns {token}
  POST /api/v1/auth/login     -- password login; returns {token}

Security:
  Both handlers are plain `def`, so FastAPI runs them in its worker
  threadpool. bcrypt hashing/verification is CPU-bound and would otherwise
  stall the event loop for every concurrent request.
  Login stamps last_login_at before the token is issued (IdentityManager.login).
  Tokens carry the username only -- never the password.
  Cache-Control: no-store on every token response.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from api.models import LoginRequest, RegisterRequest, TokenResponse
from auth.identity import IdentityManager
from auth.tokens import TokenService

# Auth policy:
# - POST /api/v1/auth/register: public
# - POST /api/v1/auth/login:    public
router = APIRouter()


def _token_response(token: str, status_code: int) -> JSONResponse:
    resp = JSONResponse(status_code=status_code, content=TokenResponse(token=token).model_dump())
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/register", response_model=TokenResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> JSONResponse:
    """Register a new user and log them in.

    409 if the username is taken (ConflictError, mapped in api/main.py).
    """
    identity: IdentityManager = request.app.state.identity
    tokens: TokenService = request.app.state.tokens

    profile = identity.register(
        username=body.username,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        phone=body.phone,
    )
    return _token_response(tokens.issue(profile.username), status_code=201)


@router.post("/auth/login", response_model=TokenResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with username and password.

    Wrong username and wrong password produce the same 401 so the response
    does not reveal which usernames exist.
    """
    identity: IdentityManager = request.app.state.identity
    tokens: TokenService = request.app.state.tokens

    profile = identity.login(body.username, body.password)
    return _token_response(tokens.issue(profile.username), status_code=200)
