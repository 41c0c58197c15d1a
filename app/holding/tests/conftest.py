"""
Pytest fixtures for holding tests.

Provides:
- landlord / landlord_client: a manager of the application's firm
- submitted_application: application the landlord may configure
- payment_client: FakePaymentClient standing in for StripeAdapter
- payable_hold: pending hold whose firm can take charges
- stripe_event: builds Stripe webhook payloads
"""

from __future__ import annotations

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from applications.states import ApplicationStatus
from applications.tests.factories import ApplicationFactory
from firms.models import PaymentAccountStatus
from firms.tests.factories import FirmMembershipFactory, UserFactory
from holding.services import (
    HoldingRequestManager,
    HoldPaymentIntentService,
    HoldSetupOrchestrator,
    PaymentEventReconciler,
)
from holding.tests.factories import HoldingRequestFactory
from holding.tests.fakes import FakePaymentClient, build_stripe_event
from holding.types import HoldingAmounts, HoldingTerms
from holding.validators import HoldingCapValidator


# =============================================================================
# Payment client
# =============================================================================


@pytest.fixture
def stripe_event():
    return build_stripe_event


@pytest.fixture
def payment_client():
    return FakePaymentClient()


@pytest.fixture
def reconciler(payment_client):
    return PaymentEventReconciler(payment_client=payment_client)


@pytest.fixture
def intent_service(payment_client):
    return HoldPaymentIntentService(payment_client=payment_client)


# =============================================================================
# Services
# =============================================================================


@pytest.fixture
def holding_manager():
    return HoldingRequestManager()


@pytest.fixture
def orchestrator():
    return HoldSetupOrchestrator()


@pytest.fixture
def cap_validator():
    """Validator over a one-month-per-component cap table."""
    return HoldingCapValidator(caps={"first": 1, "last": 1, "security": 1, "key": 1})


@pytest.fixture
def standard_amounts():
    return HoldingAmounts(first=2000, last=2000, security=2000, key=0)


@pytest.fixture
def standard_terms(standard_amounts):
    """Rent 2000, components 2000/2000/2000/0, minimum due 1000."""
    return HoldingTerms(monthly_rent=2000, amounts=standard_amounts, minimum_due=1000)


# =============================================================================
# Applications and holds
# =============================================================================


@pytest.fixture
def submitted_application(db):
    return ApplicationFactory(status=ApplicationStatus.SUBMITTED)


@pytest.fixture
def landlord(db, submitted_application):
    """User with an active manager membership on the application's firm."""
    membership = FirmMembershipFactory(firm=submitted_application.form.firm)
    return membership.user


@pytest.fixture
def outsider(db):
    """User with no firm membership."""
    return UserFactory()


@pytest.fixture
def pending_hold(db):
    """Pending hold on an application awaiting payment."""
    return HoldingRequestFactory()


@pytest.fixture
def payable_hold(pending_hold):
    """Pending hold whose firm has an active connected account."""
    firm = pending_hold.firm
    firm.stripe_account_id = "acct_test_firm"
    firm.payment_account_status = PaymentAccountStatus.ACTIVE
    firm.save(update_fields=["stripe_account_id", "payment_account_status"])
    return pending_hold


@pytest.fixture
def pay_settings(settings):
    """ACH only, usd, fixed return URL."""
    settings.HOLDING_CURRENCY = "usd"
    settings.HOLDING_PAYMENT_METHOD_TYPES = ["us_bank_account"]
    settings.HOLDING_PAY_RETURN_URL_TEMPLATE = "/tenant/hold/{token}/result"
    return settings


# =============================================================================
# API clients
# =============================================================================


@pytest.fixture
def api_client() -> APIClient:
    """Return unauthenticated API client."""
    return APIClient()


def _client_for(user) -> APIClient:
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
    return client


@pytest.fixture
def landlord_client(landlord) -> APIClient:
    """Return API client authenticated as the landlord."""
    return _client_for(landlord)


@pytest.fixture
def outsider_client(outsider) -> APIClient:
    """Return API client authenticated as a user outside the firm."""
    return _client_for(outsider)
