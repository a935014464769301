"""Typed business-rule errors raised by services.

Each error names the ErrorCode it maps to; the API layer turns the code into
an HTTP status and response envelope through ERROR_REGISTRY.
"""

from typing import Any, Optional

from storefront.domain.error_codes import ErrorCode


class StorefrontError(Exception):
    """Base class for storefront business errors."""

    error_code: ErrorCode = ErrorCode.UNKNOWN

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[dict[str, Any]] = None,
        error_code: Optional[ErrorCode] = None,
    ):
        super().__init__(message or "")
        self.message = message
        self.details = details
        if error_code is not None:
            self.error_code = error_code


class ValidationFailed(StorefrontError):
    """Input passed schema validation but violates a business rule."""

    error_code = ErrorCode.VAL_INVALID_FORMAT


class NotFoundError(StorefrontError):
    """Referenced entity does not exist."""

    error_code = ErrorCode.RES_NOT_FOUND

    def __init__(self, entity: str, identifier: Any = None):
        message = f"{entity} not found"
        details = {"id": str(identifier)} if identifier is not None else None
        super().__init__(message, details=details)
        self.entity = entity


class ConflictError(StorefrontError):
    """Request conflicts with the entity's current state."""

    error_code = ErrorCode.RES_CONFLICT


class AlreadyExistsError(ConflictError):
    error_code = ErrorCode.RES_ALREADY_EXISTS


class InvalidTransition(ConflictError):
    """Requested status change is not in the transition table."""

    error_code = ErrorCode.ORDER_INVALID_TRANSITION

    def __init__(self, current: str, requested: str, entity: str = "order"):
        super().__init__(
            f"Cannot change {entity} status from '{current}' to '{requested}'",
            details={"current_status": current, "requested_status": requested},
            error_code=(
                ErrorCode.REVIEW_INVALID_TRANSITION if entity == "review"
                else ErrorCode.ORDER_INVALID_TRANSITION
            ),
        )
        self.current = current
        self.requested = requested


class OutOfStockError(ConflictError):
    error_code = ErrorCode.ORDER_OUT_OF_STOCK


class InsufficientPoints(ConflictError):
    error_code = ErrorCode.LOYALTY_INSUFFICIENT_POINTS

    def __init__(self, required: int, available: int):
        super().__init__(
            f"This reward costs {required} points; {available} available",
            details={"required": required, "available": available},
        )


class AlreadyRedeemed(ConflictError):
    error_code = ErrorCode.LOYALTY_ALREADY_REDEEMED


class NotSubscribedError(StorefrontError):
    """Recipient has no active opt-in for the channel."""

    error_code = ErrorCode.SMS_NOT_SUBSCRIBED


class PaymentRequiredError(StorefrontError):
    """Payment was declined or has not completed."""

    error_code = ErrorCode.PAY_REQUIRED


class ProviderError(StorefrontError):
    """An upstream provider (Stripe, Cloudinary, Twilio, Resend) failed.

    ``status_code`` overrides the registry status when the provider failure
    maps to something more specific (rate limited, bad request).
    """

    error_code = ErrorCode.API_UNAVAILABLE

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        provider: str,
        status_code: Optional[int] = None,
        error_code: Optional[ErrorCode] = None,
    ):
        super().__init__(message, details={"provider": provider}, error_code=error_code)
        self.provider = provider
        self.status_code = status_code
