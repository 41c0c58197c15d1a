"""
Pytest fixtures for Stripe adapter tests.

Sections:
    - Mock Stripe Objects
    - Error Fixtures
    - Patched Stripe Client
"""

from typing import Any
from unittest.mock import MagicMock, patch

import pytest
import stripe

from payments.adapters import StripeAdapter


# =============================================================================
# Mock Stripe Objects
# =============================================================================


class MockStripeObject:
    """Attribute-style stand-in for a Stripe API object."""

    def __init__(self, **data: Any):
        self._data = data

    def __getattr__(self, name: str) -> Any:
        try:
            return self._data[name]
        except KeyError:
            raise AttributeError(name)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)


@pytest.fixture
def mock_payment_intent():
    """Factory for mock PaymentIntent objects."""

    def _create(
        id: str = "pi_test123",
        status: str = "succeeded",
        amount: int = 100000,
        amount_received: int = 100000,
        metadata: dict[str, str] | None = None,
        **extra: Any,
    ) -> MockStripeObject:
        return MockStripeObject(
            id=id,
            object="payment_intent",
            status=status,
            amount=amount,
            amount_received=amount_received,
            currency="usd",
            metadata=metadata if metadata is not None else {"holdingId": "hold_abc"},
            **extra,
        )

    return _create


# =============================================================================
# Error Fixtures
# =============================================================================


@pytest.fixture
def invalid_request_error():
    return stripe.InvalidRequestError(
        "No such payment_intent: 'pi_missing'",
        param="id",
        code="resource_missing",
    )


@pytest.fixture
def rate_limit_error():
    return stripe.RateLimitError("Too many requests")


@pytest.fixture
def api_connection_error():
    return stripe.APIConnectionError("Network unreachable")


@pytest.fixture
def authentication_error():
    return stripe.AuthenticationError("Invalid API key")


@pytest.fixture
def signature_verification_error():
    return stripe.SignatureVerificationError("No signatures found", sig_header="bad")


# =============================================================================
# Patched Stripe Client
# =============================================================================


@pytest.fixture
def adapter():
    """Adapter with test credentials."""
    return StripeAdapter(
        api_key="sk_test_adapter",
        webhook_secret="whsec_test",
        timeout=5,
        max_retries=1,
    )


@pytest.fixture
def mock_client(adapter):
    """Replace the adapter's Stripe client with a MagicMock."""
    client = MagicMock()
    adapter._client = client
    return client


@pytest.fixture
def mock_stripe_webhook():
    """Patch stripe.Webhook.construct_event."""
    with patch("stripe.Webhook") as mock:
        mock.construct_event.return_value = MockStripeObject(
            id="evt_test123",
            type="payment_intent.succeeded",
            data={"object": {"id": "pi_test123", "object": "payment_intent"}},
        )
        yield mock
