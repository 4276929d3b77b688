"""
Custom exception classes and FastAPI exception handlers.

Why custom exceptions?
  The service layer raises domain-specific errors (like CardNotOwnedByUserError)
  without importing HTTP concepts. The handler layer then translates these into
  proper HTTP responses. This means:
    - Service code is testable without HTTP
    - Error responses are consistent across all endpoints
    - Adding new error types is straightforward

Exception hierarchy:
    BankCardsError (base)
    ├── ResourceNotFoundError            — 404
    │   ├── UserNotFoundError
    │   ├── CardNotFoundError
    │   └── CardNotOwnedByUserError      — also 404, see below
    ├── ResourceConflictError            — 409
    │   ├── CardStatusAlreadySetError
    │   └── UsernameAlreadyTakenError
    ├── InvalidCardOperationError        — 400 (inactive card, same card, ...)
    ├── AccessDeniedError                — 403 (guard denied / no principal)
    ├── InvalidCredentialsError          — 401
    └── CipherError                      — 500, logged, never detailed

CardNotOwnedByUserError is deliberately a not-found: "the card exists but is
someone else's" and "the card does not exist" must look identical to the
caller, otherwise card ids of other users could be enumerated.
"""

import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class BankCardsError(Exception):
    """Base exception for all Bank Cards API domain errors."""

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(self.detail)


# ---------------------------------------------------------------------------
# Not found
# ---------------------------------------------------------------------------

class ResourceNotFoundError(BankCardsError):
    """Base for every error surfaced as 404."""


class UserNotFoundError(ResourceNotFoundError):
    """Raised when a user id or username does not resolve to a user."""

    def __init__(self, user_id: uuid.UUID | None = None, username: str | None = None):
        self.user_id = user_id
        self.username = username
        if username is not None:
            super().__init__(f"User not found with username: {username}.")
        else:
            super().__init__(f"User not found with ID: {user_id}.")


class CardNotFoundError(ResourceNotFoundError):
    """Raised when a card id does not resolve to a card (admin paths)."""

    def __init__(self, card_id: uuid.UUID):
        self.card_id = card_id
        super().__init__(f"Card not found with ID: {card_id}.")


class CardNotOwnedByUserError(ResourceNotFoundError):
    """
    Raised when a card is missing OR belongs to someone else.

    The message is the same in both cases on purpose.
    """

    def __init__(self, card_id: uuid.UUID, user_id: uuid.UUID):
        self.card_id = card_id
        self.user_id = user_id
        super().__init__(
            f'Card with ID "{card_id}" isn\'t owned by user with ID "{user_id}" '
            f"or doesn't exist."
        )


# ---------------------------------------------------------------------------
# Conflicts
# ---------------------------------------------------------------------------

class ResourceConflictError(BankCardsError):
    """Base for every error surfaced as 409."""


class CardStatusAlreadySetError(ResourceConflictError):
    """Raised when a status change would not change anything."""

    def __init__(self, card_id: uuid.UUID):
        self.card_id = card_id
        super().__init__(f"Card status already set for id: {card_id}.")


class UsernameAlreadyTakenError(ResourceConflictError):
    """Raised when registering or renaming to a username that's already in use."""

    def __init__(self, username: str):
        self.username = username
        super().__init__(f'User with username "{username}" already exists.')


# ---------------------------------------------------------------------------
# Everything else
# ---------------------------------------------------------------------------

class InvalidCardOperationError(BankCardsError):
    """
    Raised when a card operation is structurally valid but breaks a business rule.

    The detail string is part of the API contract (clients and tests match on it).
    """


class AccessDeniedError(BankCardsError):
    """Raised when the authorization guard denies the current principal."""

    def __init__(self, detail: str = "Access denied."):
        super().__init__(detail)


class InvalidCredentialsError(BankCardsError):
    """Raised when login credentials are incorrect."""

    def __init__(self):
        super().__init__("Bad credentials.")


class CipherError(BankCardsError):
    """Raised when stored card ciphertext cannot be decoded or decrypted."""

    def __init__(self, detail: str = "Card number could not be decrypted"):
        super().__init__(detail)


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

def _error(status_code: int, exc: BankCardsError, error_type: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.detail, "error_type": error_type},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register custom exception handlers with the FastAPI application.

    Each handler maps a domain exception family to an HTTP status code and a
    consistent JSON response format: {"detail": "...", "error_type": "..."}.
    Starlette resolves handlers along the exception's MRO, so registering the
    family base class covers every subclass.

    This is called once during app startup in main.py.
    """

    @app.exception_handler(CardNotOwnedByUserError)
    async def card_not_owned_handler(
        request: Request, exc: CardNotOwnedByUserError
    ) -> JSONResponse:
        return _error(404, exc, "card_not_owned_by_user")

    @app.exception_handler(ResourceNotFoundError)
    async def not_found_handler(
        request: Request, exc: ResourceNotFoundError
    ) -> JSONResponse:
        return _error(404, exc, "not_found")

    @app.exception_handler(ResourceConflictError)
    async def conflict_handler(
        request: Request, exc: ResourceConflictError
    ) -> JSONResponse:
        return _error(409, exc, "conflict")

    @app.exception_handler(InvalidCardOperationError)
    async def invalid_operation_handler(
        request: Request, exc: InvalidCardOperationError
    ) -> JSONResponse:
        return _error(400, exc, "invalid_operation")

    @app.exception_handler(AccessDeniedError)
    async def access_denied_handler(
        request: Request, exc: AccessDeniedError
    ) -> JSONResponse:
        return _error(403, exc, "access_denied")

    @app.exception_handler(InvalidCredentialsError)
    async def invalid_credentials_handler(
        request: Request, exc: InvalidCredentialsError
    ) -> JSONResponse:
        return _error(401, exc, "invalid_credentials")

    @app.exception_handler(CipherError)
    async def cipher_error_handler(
        request: Request, exc: CipherError
    ) -> JSONResponse:
        # Internal failure: log the cause, tell the caller nothing about it
        logger.error("Cipher failure on %s", request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"detail": "An unexpected error occurred.", "error_type": "internal"},
        )
