# storefront/domain/errors.py
from __future__ import annotations
from typing import Any, Optional


class StorefrontError(Exception):
    """Base class for every error raised by the storefront core."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# ----- Preconditions (raised before any network call) -----------------------

class PreconditionError(StorefrontError):
    pass


class OptionIdRequiredError(PreconditionError):
    def __init__(self, message: str = "OPTION_ID_REQUIRED"):
        super().__init__(message)


class InvalidQuantityError(PreconditionError):
    def __init__(self, quantity: Any):
        super().__init__(f"Quantity must be a positive integer, got {quantity!r}")
        self.quantity = quantity


class LineBusyError(PreconditionError):
    def __init__(self, line_id: str):
        super().__init__(f"Cart line {line_id} has a request in flight")
        self.line_id = line_id


class CheckoutInProgressError(PreconditionError):
    def __init__(self, message: str = "An order is already being placed"):
        super().__init__(message)


class EmptyCartError(PreconditionError):
    pass


# ----- Remote ----------------------------------------------------------------

class RemoteError(StorefrontError):
    """
    Non-2xx response, transport failure or malformed payload from the shop API.
    `message` carries the server's `error` field verbatim when it sent one.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        payload: Any = None,
        server_message: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload
        self.server_message = server_message


# ----- Checkout ----------------------------------------------------------------

class CheckoutError(StorefrontError):
    pass


class ValidationError(CheckoutError):
    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class PaymentMethodUnavailableError(CheckoutError):
    def __init__(self, method: str, message: str):
        super().__init__(message)
        self.method = method


def error_message(exc: BaseException, fallback: str) -> str:
    """User-facing text for a failure. Remote failures without a server message get the fallback."""
    if isinstance(exc, RemoteError):
        return exc.server_message or fallback
    if isinstance(exc, StorefrontError) and exc.message:
        return exc.message
    return str(exc) or fallback
