"""
Factory Boy factories for application test data.

Usage:
    from applications.tests.factories import ApplicationFactory

    application = ApplicationFactory(status=ApplicationStatus.SUBMITTED)
    application.form.firm  # the reviewing firm
"""

import uuid

import factory

from applications.models import Application, ApplicationForm
from applications.states import ApplicationStatus
from firms.tests.factories import FirmFactory


class ApplicationFormFactory(factory.django.DjangoModelFactory):
    """Factory for creating ApplicationForm instances."""

    class Meta:
        model = ApplicationForm

    firm = factory.SubFactory(FirmFactory)
    title = factory.Sequence(lambda n: f"{n} Beacon Street, Unit 2")


class ApplicationFactory(factory.django.DjangoModelFactory):
    """Factory for creating Application instances (submitted by default)."""

    class Meta:
        model = Application

    household_id = factory.LazyFunction(uuid.uuid4)
    form = factory.SubFactory(ApplicationFormFactory)
    status = ApplicationStatus.SUBMITTED
