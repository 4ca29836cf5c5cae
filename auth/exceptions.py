"""
auth/exceptions.py -- Typed exceptions for identity and access failures.

Domain code raises these; api/main.py maps each kind to an HTTP status:
  ConflictError       -> 409
  NotFoundError       -> 404
  AuthenticationError -> 401
  ForbiddenError      -> 403

Layer rule: no imports from api/, core/, or messages/.
"""


class AccessError(Exception):
    """Base class for every identity/authorization error raised by Courier."""


class ConflictError(AccessError):
    """A record with the same unique key already exists (duplicate username)."""


class NotFoundError(AccessError):
    """A lookup or update referenced a username or message id that does not exist."""


class AuthenticationError(AccessError):
    """
    Bad credentials, or a token that is missing, malformed, expired, or
    signed with a different key.

    The message is deliberately generic -- callers must not learn whether
    the username exists.
    """


class ForbiddenError(AccessError):
    """The principal is authenticated but is not a party to the target resource."""
