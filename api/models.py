"""
API request and response models for Courier REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
messages/models.py, which own the internal domain representation. Response
models are built straight from those dataclasses (from_attributes=True).

No response model has a password or hash field. That is the second line of
defence after the domain projections, which do not carry one either.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/auth/register.

    No field is whitespace-stripped. username and password must reach the
    store exactly as LoginRequest will later present them.
    """

    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=1024, json_schema_extra={"format": "password"})
    first_name: str = Field(min_length=1, max_length=255)
    last_name: str = Field(min_length=1, max_length=255)
    phone: str = Field(min_length=1, max_length=64)


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login. Compared byte for byte, no stripping."""

    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=1024)


class MessageCreate(BaseModel):
    """Request body for POST /api/v1/messages. The sender is always the caller."""

    model_config = ConfigDict(str_strip_whitespace=True)

    to_username: str = Field(min_length=1, max_length=255)
    body: str = Field(min_length=1, max_length=10_000)


# ---------------------------------------------------------------------------
# Auth responses
# ---------------------------------------------------------------------------


class TokenResponse(BaseModel):
    """Response for register and login: the bearer token and nothing else."""

    model_config = ConfigDict(frozen=True)

    token: str


# ---------------------------------------------------------------------------
# User responses
# ---------------------------------------------------------------------------


class UserSummaryRow(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    username: str
    first_name: str
    last_name: str


class UserListResponse(BaseModel):
    """Response for GET /api/v1/users."""

    model_config = ConfigDict(frozen=True)

    users: list[UserSummaryRow]


class UserProfileOut(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    username: str
    first_name: str
    last_name: str
    phone: str
    join_at: str
    last_login_at: Optional[str] = None


class UserDetailResponse(BaseModel):
    """Response for GET /api/v1/users/{username}."""

    model_config = ConfigDict(frozen=True)

    user: UserProfileOut


# ---------------------------------------------------------------------------
# Message responses
# ---------------------------------------------------------------------------


class CounterpartOut(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    username: str
    first_name: str
    last_name: str
    phone: str


class SentMessageRow(BaseModel):
    """One outbox entry -- the counterpart is the recipient."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    body: str
    sent_at: str
    read_at: Optional[str] = None
    to_user: CounterpartOut


class ReceivedMessageRow(BaseModel):
    """One inbox entry -- the counterpart is the sender."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    body: str
    sent_at: str
    read_at: Optional[str] = None
    from_user: CounterpartOut


class SentMessagesResponse(BaseModel):
    """Response for GET /api/v1/users/{username}/from."""

    model_config = ConfigDict(frozen=True)

    messages: list[SentMessageRow]


class ReceivedMessagesResponse(BaseModel):
    """Response for GET /api/v1/users/{username}/to."""

    model_config = ConfigDict(frozen=True)

    messages: list[ReceivedMessageRow]


class MessageDetailOut(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    body: str
    sent_at: str
    read_at: Optional[str] = None
    from_user: CounterpartOut
    to_user: CounterpartOut


class MessageResponse(BaseModel):
    """Response for the single-message routes under /api/v1/messages."""

    model_config = ConfigDict(frozen=True)

    message: MessageDetailOut


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
