"""Errors raised by the storefront client.

None of them is fatal: each carries a message meant for the customer and
leaves the checkout in a state from which a retry is possible.
"""
from typing import Dict, Optional


class StorefrontError(Exception):
    message = "Something went wrong"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.message
        super().__init__(self.message)


class CheckoutValidationError(StorefrontError):
    message = "Please fix the highlighted fields"

    def __init__(self, errors: Dict[str, str]):
        self.errors = errors
        first = next(iter(errors.values()), None)
        super().__init__(first or self.message)


class PaymentTokenError(StorefrontError):
    message = "Your card could not be processed"


class MissingPaymentToken(StorefrontError):
    message = "Payment information is missing"


class ConnectivityError(StorefrontError):
    message = "No response from server. Please check your connection and try again."


class RequestTimeout(StorefrontError):
    message = "Request timed out. Please try again or contact support."


class ServerError(StorefrontError):
    def __init__(self, status_code: int, message: Optional[str] = None):
        self.status_code = status_code
        super().__init__(f"Order failed: {message or 'Server error'}")


class InvalidStateError(StorefrontError):
    message = "This action is not available right now"
