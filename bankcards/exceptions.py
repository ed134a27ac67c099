"""
Custom exception classes and FastAPI exception handlers.

The service layer raises domain-specific errors (like InsufficientBalanceError)
without importing HTTP concepts. The handler registered here translates them
into HTTP responses with a consistent body:

    {"detail": "<message>", "error_type": "<machine-readable kind>"}

Each error class declares its own status_code and error_type, so adding a new
error never requires a new handler.

Exception hierarchy:
    BankCardsError (base)
    ├── lookup misses (404)
    │   ├── UserNotFoundError
    │   ├── CardNotFoundError
    │   └── RequestNotFoundError
    ├── state-machine conflicts (409)
    │   ├── CardAlreadyBlockedError, CardAlreadyActiveError, CardExpiredError
    │   ├── RequestAlreadyApprovedError, RequestAlreadyDeniedError
    │   └── UserAlreadyActiveError, UserAlreadyDeactivatedError, UserAlreadyHasRoleError
    ├── NotCardOwnerError (403)
    ├── business preconditions
    │   ├── CardBlockedError (409)
    │   └── InsufficientBalanceError (422)
    ├── persistence conflicts (409)
    │   ├── DuplicateCardNumberError, DuplicateUsernameError
    │   ├── CardInUseError
    │   └── ConcurrentUpdateError
    ├── InvalidArgumentError (400)
    ├── InvalidCredentialsError (401)
    └── CryptoError (500, opaque)
        ├── EncryptionFailure
        └── DecryptionFailure

Anything that is not a BankCardsError is logged and answered with an opaque 500.
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

    status_code = 400
    error_type = "bank_cards_error"

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(self.detail)


# ---------------------------------------------------------------------------
# Lookup misses
# ---------------------------------------------------------------------------

class UserNotFoundError(BankCardsError):
    status_code = 404
    error_type = "user_not_found"

    def __init__(self, user_id: uuid.UUID):
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")


class CardNotFoundError(BankCardsError):
    status_code = 404
    error_type = "card_not_found"

    def __init__(self, card_id: uuid.UUID):
        self.card_id = card_id
        super().__init__(f"Card {card_id} not found")


class RequestNotFoundError(BankCardsError):
    status_code = 404
    error_type = "request_not_found"

    def __init__(self, request_id: uuid.UUID):
        self.request_id = request_id
        super().__init__(f"Block request {request_id} not found")


# ---------------------------------------------------------------------------
# State-machine conflicts
# ---------------------------------------------------------------------------

class CardAlreadyBlockedError(BankCardsError):
    status_code = 409
    error_type = "card_already_blocked"

    def __init__(self, card_id: uuid.UUID):
        self.card_id = card_id
        super().__init__("Card already blocked")


class CardAlreadyActiveError(BankCardsError):
    status_code = 409
    error_type = "card_already_active"

    def __init__(self, card_id: uuid.UUID):
        self.card_id = card_id
        super().__init__("Card already active")


class CardExpiredError(BankCardsError):
    """Raised when a status change is attempted on an EXPIRED card."""

    status_code = 409
    error_type = "card_expired"

    def __init__(self, card_id: uuid.UUID):
        self.card_id = card_id
        super().__init__("Card has expired and cannot change status")


class RequestAlreadyApprovedError(BankCardsError):
    status_code = 409
    error_type = "request_already_approved"

    def __init__(self, request_id: uuid.UUID):
        self.request_id = request_id
        super().__init__("Block request already approved")


class RequestAlreadyDeniedError(BankCardsError):
    status_code = 409
    error_type = "request_already_denied"

    def __init__(self, request_id: uuid.UUID):
        self.request_id = request_id
        super().__init__("Block request already declined")


class UserAlreadyActiveError(BankCardsError):
    status_code = 409
    error_type = "user_already_active"

    def __init__(self, user_id: uuid.UUID):
        self.user_id = user_id
        super().__init__("User already active")


class UserAlreadyDeactivatedError(BankCardsError):
    status_code = 409
    error_type = "user_already_deactivated"

    def __init__(self, user_id: uuid.UUID):
        self.user_id = user_id
        super().__init__("User already deactivated")


class UserAlreadyHasRoleError(BankCardsError):
    status_code = 409
    error_type = "user_already_has_role"

    def __init__(self, user_id: uuid.UUID, role: str):
        self.user_id = user_id
        self.role = role
        super().__init__(f"User already has role {role}")


# ---------------------------------------------------------------------------
# Authorization and business preconditions
# ---------------------------------------------------------------------------

class NotCardOwnerError(BankCardsError):
    """Raised when the acting user does not own the card they are operating on."""

    status_code = 403
    error_type = "not_card_owner"

    def __init__(self, detail: str = "You do not own this card"):
        super().__init__(detail)


class CardBlockedError(BankCardsError):
    """Raised when a transfer touches a BLOCKED card."""

    status_code = 409
    error_type = "card_blocked"

    def __init__(self, card_id: uuid.UUID):
        self.card_id = card_id
        super().__init__(f"Card {card_id} is blocked")


class InsufficientBalanceError(BankCardsError):
    """
    Raised when a transfer would drive the source balance below zero.

    Attributes:
        card_id: The card that lacks sufficient funds.
        requested_kopecks: The amount the user tried to move.
        available_kopecks: The current balance of the card.
    """

    status_code = 422
    error_type = "insufficient_balance"

    def __init__(
        self,
        card_id: uuid.UUID,
        requested_kopecks: int,
        available_kopecks: int,
    ):
        self.card_id = card_id
        self.requested_kopecks = requested_kopecks
        self.available_kopecks = available_kopecks
        super().__init__(
            f"Insufficient balance: requested {requested_kopecks} kopecks, "
            f"available {available_kopecks} kopecks"
        )


# ---------------------------------------------------------------------------
# Persistence conflicts
# ---------------------------------------------------------------------------

class DuplicateCardNumberError(BankCardsError):
    """Raised when card-number generation keeps colliding with stored numbers."""

    status_code = 409
    error_type = "duplicate_card_number"

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Could not generate a unique card number in {attempts} attempts")


class DuplicateUsernameError(BankCardsError):
    status_code = 409
    error_type = "duplicate_username"

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Username {username} is already taken")


class CardInUseError(BankCardsError):
    """Raised when deleting a card that is referenced by transfer history."""

    status_code = 409
    error_type = "card_in_use"

    def __init__(self, card_id: uuid.UUID):
        self.card_id = card_id
        super().__init__(f"Card {card_id} has transfer history and cannot be deleted")


class ConcurrentUpdateError(BankCardsError):
    """Raised when a row changed between our read and our write (version mismatch)."""

    status_code = 409
    error_type = "concurrent_update"

    def __init__(self, detail: str = "The resource was modified concurrently, please retry"):
        super().__init__(detail)


# ---------------------------------------------------------------------------
# Input and authentication
# ---------------------------------------------------------------------------

class InvalidArgumentError(BankCardsError):
    """Malformed amount, sort or paging input."""

    status_code = 400
    error_type = "invalid_argument"


class InvalidCredentialsError(BankCardsError):
    status_code = 401
    error_type = "invalid_credentials"

    def __init__(self, detail: str = "Invalid username or password"):
        super().__init__(detail)


# ---------------------------------------------------------------------------
# Cryptographic integrity
# ---------------------------------------------------------------------------

class CryptoError(BankCardsError):
    """Base for cipher failures. The detail is never sent to clients."""

    status_code = 500
    error_type = "internal_error"


class EncryptionFailure(CryptoError):
    def __init__(self, detail: str = "Encryption failed"):
        super().__init__(detail)


class DecryptionFailure(CryptoError):
    def __init__(self, detail: str = "Decryption failed"):
        super().__init__(detail)


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

INTERNAL_ERROR_DETAIL = "An unexpected error occurred"


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI application.

    Domain errors map to their declared status code. Crypto failures and
    unexpected exceptions are logged with their cause and answered with
    the same opaque body, so internal detail never reaches the client.

    This is called once during app startup in main.py.
    """

    @app.exception_handler(BankCardsError)
    async def bank_cards_error_handler(
        request: Request, exc: BankCardsError
    ) -> JSONResponse:
        if isinstance(exc, CryptoError):
            logger.error("Cipher failure on %s %s: %s", request.method, request.url.path, exc.detail)
            detail = INTERNAL_ERROR_DETAIL
        else:
            detail = exc.detail
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": detail, "error_type": exc.error_type},
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.exception("Unexpected error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"detail": INTERNAL_ERROR_DETAIL, "error_type": "internal_error"},
        )
