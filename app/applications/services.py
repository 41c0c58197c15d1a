"""
Application status service.

ApplicationStateMachine is the only code path that writes
Application.status. Each write is a guarded compare-and-set on a single
locked row: the change happens only if the current status is one of the
expected ones, and the status update plus its timeline entry commit
together.

Usage:
    from applications.services import AdvanceOutcome, ApplicationStateMachine
    from applications.states import ApplicationStatus

    outcome = ApplicationStateMachine().advance(
        app_id,
        expected_current_any=[ApplicationStatus.APPROVED_PENDING_PAYMENT],
        new_status=ApplicationStatus.APPROVED_PENDING_LEASE,
        actor="system:stripe",
        cause="payment.holding_paid",
    )
    if outcome is AdvanceOutcome.INCOMPATIBLE:
        ...
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from applications.models import Application, ApplicationTimelineEntry
from applications.states import TimelineEvent
from core.exceptions import NotFoundError
from core.services import BaseService

if TYPE_CHECKING:
    from typing import Any, Iterable
    from uuid import UUID


class AdvanceOutcome(str, Enum):
    """Result of ApplicationStateMachine.advance."""

    APPLIED = "applied"
    UNCHANGED = "unchanged"
    INCOMPATIBLE = "incompatible"


def _application_not_found(app_id: UUID) -> NotFoundError:
    return NotFoundError(
        f"Application {app_id} not found",
        error_code="application_not_found",
        details={"application_id": str(app_id)},
    )


def resolve_firm_for_application(app_id: UUID) -> Application:
    """
    Load an application together with the firm that reviews it.

    Raises:
        NotFoundError: If the application does not exist
    """
    application = (
        Application.objects.select_related("form__firm").filter(id=app_id).first()
    )
    if application is None:
        raise _application_not_found(app_id)
    return application


class ApplicationStateMachine(BaseService):
    """
    Guarded status transitions with an append-only timeline.

    Transitions are expressed as "move to new_status if the current status
    is any of expected_current_any". That form is idempotent: repeating a
    transition that already happened reports UNCHANGED instead of failing,
    so callers driven by redelivered events can retry freely.
    """

    def advance(
        self,
        app_id: UUID,
        expected_current_any: Iterable[str],
        new_status: str,
        actor: Any,
        cause: str,
        meta: dict[str, Any] | None = None,
    ) -> AdvanceOutcome:
        """
        Move an application to new_status if its status allows it.

        Args:
            app_id: Application UUID
            expected_current_any: Statuses the transition may start from
            new_status: Target status
            actor: Who caused the change (user id or system label)
            cause: Short reason recorded as meta["via"]
            meta: Extra details merged into the timeline entry

        Returns:
            APPLIED if the status changed, UNCHANGED if it was already
            new_status, INCOMPATIBLE if the current status was not expected

        Raises:
            NotFoundError: If the application does not exist
        """
        logger = self.get_logger()
        expected = {str(status) for status in expected_current_any}

        with self.atomic():
            application = (
                Application.objects.select_for_update().filter(id=app_id).first()
            )
            if application is None:
                raise _application_not_found(app_id)

            current = application.status
            if current == new_status:
                return AdvanceOutcome.UNCHANGED

            if current not in expected:
                logger.info(
                    "Application status transition not applicable",
                    extra={
                        "application_id": str(app_id),
                        "current_status": current,
                        "new_status": str(new_status),
                        "cause": cause,
                    },
                )
                return AdvanceOutcome.INCOMPATIBLE

            application.status = new_status
            application.save(update_fields=["status", "updated_at"])

            ApplicationTimelineEntry.objects.create(
                application=application,
                by=str(actor),
                event=TimelineEvent.STATUS_CHANGE,
                meta={
                    **(meta or {}),
                    "from": current,
                    "to": str(new_status),
                    "via": cause,
                },
            )

        logger.info(
            "Application status changed",
            extra={
                "application_id": str(app_id),
                "from_status": current,
                "to_status": str(new_status),
                "cause": cause,
            },
        )
        return AdvanceOutcome.APPLIED

    def record(
        self,
        app_id: UUID,
        actor: Any,
        event: str,
        meta: dict[str, Any] | None = None,
    ) -> ApplicationTimelineEntry:
        """
        Append a timeline entry without changing status.

        Raises:
            NotFoundError: If the application does not exist
        """
        application = Application.objects.filter(id=app_id).only("id").first()
        if application is None:
            raise _application_not_found(app_id)

        return ApplicationTimelineEntry.objects.create(
            application=application,
            by=str(actor),
            event=event,
            meta=meta or {},
        )
