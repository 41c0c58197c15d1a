"""Pytest fixtures for application tests."""

import pytest

from applications.services import ApplicationStateMachine
from applications.states import ApplicationStatus
from applications.tests.factories import ApplicationFactory


@pytest.fixture
def state_machine():
    return ApplicationStateMachine()


@pytest.fixture
def submitted_application(db):
    """Create an application awaiting landlord review."""
    return ApplicationFactory(status=ApplicationStatus.SUBMITTED)


@pytest.fixture
def pending_payment_application(db):
    """Create an approved application waiting on its holding deposit."""
    return ApplicationFactory(status=ApplicationStatus.APPROVED_PENDING_PAYMENT)
