# cinepay/core/exceptions.py
"""
Payment error taxonomy.

Every error carries the HTTP status it maps to and a message that is safe to
show the client. Routers translate these into responses; services raise them
before any remote or persistence call whenever a precondition fails.
"""
from typing import Any, Dict, List, Optional


class PaymentError(Exception):
    status_code: int = 400
    message: str = "Payment request failed"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message}


class ValidationFailed(PaymentError):
    message = "Validation failed"

    def __init__(self, errors: Optional[List[Dict[str, Any]]] = None, message: Optional[str] = None):
        super().__init__(message)
        self.errors = errors or []

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "errors": self.errors}


class NotFound(PaymentError):
    status_code = 404
    message = "Booking not found"


class Forbidden(PaymentError):
    status_code = 403
    message = "Access denied"


class InvalidState(PaymentError):
    message = "Booking is not in a valid state for this operation"


class InvalidSignature(PaymentError):
    message = "Payment verification failed. Invalid signature."


class AlreadyProcessed(PaymentError):
    message = "Refund already processed"


class InvalidAmount(PaymentError):
    message = "No refund amount available"


class MissingPaymentReference(PaymentError):
    message = "No payment ID found for refund"


class GatewayUnavailable(PaymentError):
    status_code = 503
    message = "Payment service unavailable. Razorpay is not configured."


class UpstreamFailure(PaymentError):
    status_code = 500
    message = "Server error while talking to the payment gateway"
