"""Stripe configuration and error mapping.

The Stripe SDK is synchronous; callers run its requests through
``asyncio.to_thread`` and pass any ``stripe.error.StripeError`` to
``handle_stripe_error``.
"""

import os

import stripe

from storefront.domain.error_codes import ErrorCode
from storefront.domain.errors import PaymentRequiredError, ProviderError, StorefrontError
from storefront.logging_config import get_logger

logger = get_logger(__name__)

stripe.api_key = os.environ.get("STRIPE_SECRET_KEY", "")


def handle_stripe_error(error: stripe.error.StripeError, context: str) -> StorefrontError:
    """Convert Stripe errors to storefront errors with the right HTTP status.

    Maps Stripe error types to HTTP status codes:
    - CardError: 402 (Payment Required) - card was declined
    - RateLimitError: 429 (Too Many Requests) - rate limited
    - InvalidRequestError: 400 (Bad Request) - invalid parameters
    - AuthenticationError: 500 - API key issue, never shown to the customer
    - APIConnectionError: 503 (Service Unavailable) - network issue
    - StripeError: 500 (Internal Server Error) - generic fallback

    Args:
        error: The Stripe error
        context: Description of what operation failed

    Returns:
        The error to raise
    """
    logger.error(f"Stripe error in {context}: {type(error).__name__}: {error}")

    if isinstance(error, stripe.error.CardError):
        return PaymentRequiredError(
            error.user_message or "Your card was declined. Please try a different payment method."
        )
    elif isinstance(error, stripe.error.RateLimitError):
        return ProviderError(
            "Too many payment requests. Please wait a moment and try again.",
            provider="stripe",
            error_code=ErrorCode.LIMIT_RATE_EXCEEDED,
        )
    elif isinstance(error, stripe.error.InvalidRequestError):
        return ProviderError(
            "Invalid payment request. Please check your details and try again.",
            provider="stripe",
            error_code=ErrorCode.API_BAD_REQUEST,
        )
    elif isinstance(error, stripe.error.AuthenticationError):
        logger.critical(f"Stripe authentication failed: {error}")
        return ProviderError(
            "Payment service configuration error. Please contact support.",
            provider="stripe",
            error_code=ErrorCode.PAY_FAILED,
        )
    elif isinstance(error, stripe.error.APIConnectionError):
        return ProviderError(
            "Payment service temporarily unavailable. Please try again.",
            provider="stripe",
            status_code=503,
        )
    else:
        return ProviderError(
            "Payment processing failed. Please try again or contact support.",
            provider="stripe",
            error_code=ErrorCode.PAY_FAILED,
        )
