"""Pytest fixtures for firm tests."""

import pytest

from firms.tests.factories import FirmFactory, FirmMembershipFactory, UserFactory


@pytest.fixture
def user(db):
    """Create a test user."""
    return UserFactory()


@pytest.fixture
def firm(db):
    """Create a firm without a connected account."""
    return FirmFactory()


@pytest.fixture
def manager_membership(db, firm, user):
    """Active manager membership for `user` on `firm`."""
    return FirmMembershipFactory(firm=firm, user=user)
