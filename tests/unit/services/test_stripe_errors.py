"""Unit tests for Stripe error mapping."""

import pytest
import stripe

from storefront.domain.error_codes import ErrorCode
from storefront.domain.errors import PaymentRequiredError, ProviderError
from storefront.services.stripe_service import handle_stripe_error


class TestHandleStripeError:
    def test_card_error_is_payment_required(self):
        error = stripe.error.CardError("Your card was declined.", "card", "card_declined")

        result = handle_stripe_error(error, "checkout")

        assert isinstance(result, PaymentRequiredError)
        assert result.error_code == ErrorCode.PAY_REQUIRED

    @pytest.mark.parametrize(
        "error,code",
        [
            (stripe.error.RateLimitError("slow down"), ErrorCode.LIMIT_RATE_EXCEEDED),
            (stripe.error.InvalidRequestError("bad", "amount"), ErrorCode.API_BAD_REQUEST),
            (stripe.error.AuthenticationError("bad key"), ErrorCode.PAY_FAILED),
            (stripe.error.StripeError("unknown"), ErrorCode.PAY_FAILED),
        ],
    )
    def test_provider_errors(self, error, code):
        result = handle_stripe_error(error, "refund")

        assert isinstance(result, ProviderError)
        assert result.provider == "stripe"
        assert result.error_code == code

    def test_connection_error_is_503(self):
        result = handle_stripe_error(stripe.error.APIConnectionError("offline"), "refund")

        assert result.status_code == 503
        assert result.error_code == ErrorCode.API_UNAVAILABLE

    def test_authentication_error_does_not_leak_key_details(self):
        result = handle_stripe_error(stripe.error.AuthenticationError("sk_live_xxx invalid"), "refund")

        assert "sk_live" not in result.message
