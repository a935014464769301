"""Error codes and their registry.

Every failure the service reports carries a machine-readable ``ErrorCode``.
The registry gives each code its user-facing message, a suggested action and
the HTTP status it is served with.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from http import HTTPStatus
from typing import Dict


# =============================================================================
# Error Codes - Machine-readable codes for client handling and support
# =============================================================================


class ErrorCode(str, Enum):
    """Standardized error codes.

    Format: ERR_{CATEGORY}_{NUMBER}
    Categories:
    - AUTH: Authentication and authorization
    - API: Upstream provider communication
    - VAL: Validation
    - RES: Resource (not found, conflict)
    - LIMIT: Rate limiting
    - ORDER: Order lifecycle
    - REVIEW: Review moderation
    - PAY: Payments and refunds
    - LOYALTY: Loyalty points and rewards
    - SMS: SMS notifications
    - SYS: System/server errors
    """

    # Authentication errors
    AUTH_INVALID_TOKEN = "ERR_AUTH_002"
    AUTH_MISSING_TOKEN = "ERR_AUTH_003"
    AUTH_FORBIDDEN = "ERR_AUTH_004"
    AUTH_ADMIN_REQUIRED = "ERR_AUTH_006"

    # Provider errors
    API_BAD_REQUEST = "ERR_API_001"
    API_UNAVAILABLE = "ERR_API_004"

    # Validation errors
    VAL_REQUIRED_FIELD = "ERR_VAL_001"
    VAL_INVALID_FORMAT = "ERR_VAL_002"
    VAL_OUT_OF_RANGE = "ERR_VAL_003"

    # Resource errors
    RES_NOT_FOUND = "ERR_RES_001"
    RES_ALREADY_EXISTS = "ERR_RES_002"
    RES_CONFLICT = "ERR_RES_003"

    # Rate limiting errors
    LIMIT_RATE_EXCEEDED = "ERR_LIMIT_001"

    # Order errors
    ORDER_NOT_PAID = "ERR_ORDER_001"
    ORDER_INVALID_TRANSITION = "ERR_ORDER_002"
    ORDER_OUT_OF_STOCK = "ERR_ORDER_003"

    # Review errors
    REVIEW_INVALID_TRANSITION = "ERR_REVIEW_001"

    # Payment errors
    PAY_REQUIRED = "ERR_PAY_001"
    PAY_FAILED = "ERR_PAY_002"

    # Loyalty errors
    LOYALTY_INSUFFICIENT_POINTS = "ERR_LOYALTY_001"
    LOYALTY_ALREADY_REDEEMED = "ERR_LOYALTY_002"

    # SMS errors
    SMS_NOT_SUBSCRIBED = "ERR_SMS_001"

    # System errors
    SYS_INTERNAL_ERROR = "ERR_SYS_001"
    SYS_NOT_CONFIGURED = "ERR_SYS_002"
    SYS_DATABASE_ERROR = "ERR_SYS_003"

    # Generic
    UNKNOWN = "ERR_UNKNOWN"


# =============================================================================
# Error Information Dataclass
# =============================================================================


@dataclass
class ErrorInfo:
    """Message, suggested action and HTTP status for an error code."""

    code: ErrorCode
    message: str
    action: str
    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR


# =============================================================================
# Error Messages with Codes
# =============================================================================


ERROR_REGISTRY: Dict[ErrorCode, ErrorInfo] = {
    # Authentication errors
    ErrorCode.AUTH_INVALID_TOKEN: ErrorInfo(
        code=ErrorCode.AUTH_INVALID_TOKEN,
        message="Invalid or expired authentication token.",
        action="Please sign out and sign in again.",
        status_code=HTTPStatus.UNAUTHORIZED,
    ),
    ErrorCode.AUTH_MISSING_TOKEN: ErrorInfo(
        code=ErrorCode.AUTH_MISSING_TOKEN,
        message="Authentication required.",
        action="Please sign in to access this resource.",
        status_code=HTTPStatus.UNAUTHORIZED,
    ),
    ErrorCode.AUTH_FORBIDDEN: ErrorInfo(
        code=ErrorCode.AUTH_FORBIDDEN,
        message="You do not have permission to perform this action.",
        action="Sign in with an account that owns this resource.",
        status_code=HTTPStatus.FORBIDDEN,
    ),
    ErrorCode.AUTH_ADMIN_REQUIRED: ErrorInfo(
        code=ErrorCode.AUTH_ADMIN_REQUIRED,
        message="Administrator access required.",
        action="Sign in with an administrator account.",
        status_code=HTTPStatus.FORBIDDEN,
    ),
    # Provider errors
    ErrorCode.API_BAD_REQUEST: ErrorInfo(
        code=ErrorCode.API_BAD_REQUEST,
        message="The request was rejected by an upstream service.",
        action="Please check your details and try again.",
        status_code=HTTPStatus.BAD_REQUEST,
    ),
    ErrorCode.API_UNAVAILABLE: ErrorInfo(
        code=ErrorCode.API_UNAVAILABLE,
        message="An upstream service is unavailable.",
        action="Please try again in a few minutes.",
        status_code=HTTPStatus.BAD_GATEWAY,
    ),
    # Validation errors
    ErrorCode.VAL_REQUIRED_FIELD: ErrorInfo(
        code=ErrorCode.VAL_REQUIRED_FIELD,
        message="One or more required fields are missing.",
        action="Please fill in all required fields and try again.",
        status_code=HTTPStatus.BAD_REQUEST,
    ),
    ErrorCode.VAL_INVALID_FORMAT: ErrorInfo(
        code=ErrorCode.VAL_INVALID_FORMAT,
        message="Invalid input format.",
        action="Please check the format and try again.",
        status_code=HTTPStatus.BAD_REQUEST,
    ),
    ErrorCode.VAL_OUT_OF_RANGE: ErrorInfo(
        code=ErrorCode.VAL_OUT_OF_RANGE,
        message="A value is outside the allowed range.",
        action="Please adjust the value and try again.",
        status_code=HTTPStatus.BAD_REQUEST,
    ),
    # Resource errors
    ErrorCode.RES_NOT_FOUND: ErrorInfo(
        code=ErrorCode.RES_NOT_FOUND,
        message="The requested resource was not found.",
        action="It may have been deleted or the identifier may be wrong.",
        status_code=HTTPStatus.NOT_FOUND,
    ),
    ErrorCode.RES_ALREADY_EXISTS: ErrorInfo(
        code=ErrorCode.RES_ALREADY_EXISTS,
        message="A resource with this identifier already exists.",
        action="Update the existing resource instead.",
        status_code=HTTPStatus.CONFLICT,
    ),
    ErrorCode.RES_CONFLICT: ErrorInfo(
        code=ErrorCode.RES_CONFLICT,
        message="The request conflicts with the current state of the resource.",
        action="Refresh and try again.",
        status_code=HTTPStatus.CONFLICT,
    ),
    # Rate limiting errors
    ErrorCode.LIMIT_RATE_EXCEEDED: ErrorInfo(
        code=ErrorCode.LIMIT_RATE_EXCEEDED,
        message="Too many requests. Please slow down.",
        action="Wait a few seconds before trying again.",
        status_code=HTTPStatus.TOO_MANY_REQUESTS,
    ),
    # Order errors
    ErrorCode.ORDER_NOT_PAID: ErrorInfo(
        code=ErrorCode.ORDER_NOT_PAID,
        message="The order has not been paid.",
        action="Only paid orders can be refunded or invoiced.",
        status_code=HTTPStatus.CONFLICT,
    ),
    ErrorCode.ORDER_INVALID_TRANSITION: ErrorInfo(
        code=ErrorCode.ORDER_INVALID_TRANSITION,
        message="The order cannot move to the requested status.",
        action="Check the order's current status and try a valid next status.",
        status_code=HTTPStatus.CONFLICT,
    ),
    ErrorCode.ORDER_OUT_OF_STOCK: ErrorInfo(
        code=ErrorCode.ORDER_OUT_OF_STOCK,
        message="One or more items are out of stock.",
        action="Reduce the quantity or remove the item from your cart.",
        status_code=HTTPStatus.CONFLICT,
    ),
    # Review errors
    ErrorCode.REVIEW_INVALID_TRANSITION: ErrorInfo(
        code=ErrorCode.REVIEW_INVALID_TRANSITION,
        message="The review cannot move to the requested status.",
        action="Reviews can be approved or rejected, not returned to pending.",
        status_code=HTTPStatus.CONFLICT,
    ),
    # Payment errors
    ErrorCode.PAY_REQUIRED: ErrorInfo(
        code=ErrorCode.PAY_REQUIRED,
        message="Payment was not completed.",
        action="Please complete payment or use a different payment method.",
        status_code=HTTPStatus.PAYMENT_REQUIRED,
    ),
    ErrorCode.PAY_FAILED: ErrorInfo(
        code=ErrorCode.PAY_FAILED,
        message="Payment processing failed.",
        action="Please try again or contact support.",
        status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
    ),
    # Loyalty errors
    ErrorCode.LOYALTY_INSUFFICIENT_POINTS: ErrorInfo(
        code=ErrorCode.LOYALTY_INSUFFICIENT_POINTS,
        message="Not enough points to redeem this reward.",
        action="Earn more points with your next order.",
        status_code=HTTPStatus.CONFLICT,
    ),
    ErrorCode.LOYALTY_ALREADY_REDEEMED: ErrorInfo(
        code=ErrorCode.LOYALTY_ALREADY_REDEEMED,
        message="This reward has already been redeemed.",
        action="Choose a different reward.",
        status_code=HTTPStatus.CONFLICT,
    ),
    # SMS errors
    ErrorCode.SMS_NOT_SUBSCRIBED: ErrorInfo(
        code=ErrorCode.SMS_NOT_SUBSCRIBED,
        message="The recipient has not opted in to SMS notifications.",
        action="Ask the customer to subscribe to SMS updates first.",
        status_code=HTTPStatus.FORBIDDEN,
    ),
    # System errors
    ErrorCode.SYS_INTERNAL_ERROR: ErrorInfo(
        code=ErrorCode.SYS_INTERNAL_ERROR,
        message="An internal error occurred.",
        action="We've been notified. Please try again.",
        status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
    ),
    ErrorCode.SYS_NOT_CONFIGURED: ErrorInfo(
        code=ErrorCode.SYS_NOT_CONFIGURED,
        message="This service is not configured.",
        action="Contact support if the problem persists.",
        status_code=HTTPStatus.SERVICE_UNAVAILABLE,
    ),
    ErrorCode.SYS_DATABASE_ERROR: ErrorInfo(
        code=ErrorCode.SYS_DATABASE_ERROR,
        message="Database error occurred.",
        action="We've been notified. Please try again.",
        status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
    ),
    # Unknown
    ErrorCode.UNKNOWN: ErrorInfo(
        code=ErrorCode.UNKNOWN,
        message="An unexpected error occurred.",
        action="Please try again. Contact support if the problem persists.",
        status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
    ),
}


def get_error_info(error_code: ErrorCode) -> ErrorInfo:
    """Get error information for a given error code."""
    return ERROR_REGISTRY.get(error_code, ERROR_REGISTRY[ErrorCode.UNKNOWN])
