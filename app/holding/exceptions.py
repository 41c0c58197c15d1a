"""
Holding-specific exceptions.

All inherit from core.exceptions so views can render them with
to_dict() and status_code.

Exception Hierarchy:
    NotFoundError
    └── HoldNotFoundError - No hold with this token
    ValidationError
    └── HoldPaymentUnavailableError - Pay link cannot take a payment
    ConflictError
    ├── HoldAlreadyPaidError - Paid holds cannot be reconfigured
    ├── HoldNotPayableError - Canceled hold received a payment
    └── HoldPaymentInProgressError - A payment for the hold is in flight
"""

from core.exceptions import ConflictError, NotFoundError, ValidationError


class HoldNotFoundError(NotFoundError):
    """Raised when a hold token does not match any HoldingRequest."""

    default_error_code = "hold_not_found"


class HoldAlreadyPaidError(ConflictError):
    """Raised when reconfiguring a hold that has already been paid."""

    default_error_code = "already_paid"


class HoldNotPayableError(ConflictError):
    """Raised when a payment arrives for a hold that is no longer pending."""

    default_error_code = "hold_not_payable"


class HoldPaymentUnavailableError(ValidationError):
    """
    Raised when a pay link cannot open a payment.

    error_code is invalid_or_paid for unknown, paid or canceled holds, and
    no_stripe_account or account_not_active when the firm cannot receive
    the funds.
    """

    default_error_code = "invalid_or_paid"


class HoldPaymentInProgressError(ConflictError):
    """Raised when the hold's PaymentIntent is already processing or paid."""

    default_error_code = "payment_in_progress"
