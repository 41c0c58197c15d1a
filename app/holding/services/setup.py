"""
Landlord-facing holding deposit configuration.

HoldSetupOrchestrator turns "this application needs $X held before the
lease" into a HoldingRequest plus the matching application status. It
never writes the hold and the application in one transaction; each step
is an idempotent single-row write, so a failed call can be repeated
with the same inputs until it succeeds.

Branches:
    minimum_due == 0: cancel any pending hold, application becomes
        approved_ready_to_lease
    minimum_due > 0: validate caps, upsert the hold, application becomes
        approved_pending_payment

Usage:
    result = HoldSetupOrchestrator().setup(
        app_id,
        actor=request.user.id,
        monthly_rent=2000,
        amounts={"first": 2000, "last": 2000, "security": 2000, "key": 0},
        minimum_due=1000,
    )
    result.pay_url  # "/hold/hold_xxx"
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings
from django.db import DatabaseError

from applications.services import (
    AdvanceOutcome,
    ApplicationStateMachine,
    resolve_firm_for_application,
)
from applications.states import ApplicationStatus
from core.exceptions import (
    ConflictError,
    ExternalServiceError,
    PermissionDeniedError,
    ValidationError,
)
from core.services import BaseService
from firms.authorization import FirmAuthorizationGate
from holding.exceptions import HoldAlreadyPaidError
from holding.services.manager import HoldingRequestManager
from holding.states import HoldingStatus
from holding.types import HoldingAmounts, HoldingTerms, HoldSetupResult, whole_amount
from holding.validators import HoldingCapValidator

if TYPE_CHECKING:
    from typing import Any, Mapping
    from uuid import UUID

    from applications.models import Application


def _invalid_status(app_id: UUID, status: str | None = None) -> ConflictError:
    details = {"application_id": str(app_id)}
    if status is not None:
        details["status"] = status
    return ConflictError(
        "Application status does not allow holding setup",
        error_code="invalid_application_status",
        details=details,
    )


class HoldSetupOrchestrator(BaseService):
    """
    Configures (or removes) the holding deposit for an application.

    Collaborators are injected so tests can substitute fakes; each
    defaults to the production implementation.
    """

    def __init__(
        self,
        manager: HoldingRequestManager | None = None,
        state_machine: ApplicationStateMachine | None = None,
        gate: FirmAuthorizationGate | None = None,
        validator: HoldingCapValidator | None = None,
    ):
        self.manager = manager or HoldingRequestManager()
        self.state_machine = state_machine or ApplicationStateMachine()
        self.gate = gate or FirmAuthorizationGate()
        self.validator = validator or HoldingCapValidator()

    def setup(
        self,
        app_id: UUID,
        actor: Any,
        monthly_rent: int,
        amounts: HoldingAmounts | Mapping[str, Any],
        minimum_due: int,
    ) -> HoldSetupResult:
        """
        Configure the holding deposit for an application.

        Args:
            app_id: Application UUID
            actor: Acting user id
            monthly_rent: Monthly rent, minor currency units
            amounts: first/last/security/key components
            minimum_due: Amount that unblocks the application; 0 removes
                the holding requirement

        Returns:
            HoldSetupResult with the new application status and pay link

        Raises:
            NotFoundError: Unknown application
            PermissionDeniedError: Actor has no holding role on the firm
            ConflictError: Status not configurable (invalid_application_status)
                or hold already paid (already_paid)
            ValidationError: invalid_amounts or invalid_minimum
            ExternalServiceError: The database failed mid-call
                (store_unavailable); the call is safe to repeat
        """
        try:
            return self._configure(app_id, actor, monthly_rent, amounts, minimum_due)
        except DatabaseError as e:
            self.get_logger().error(
                "Holding setup failed on database error",
                extra={"application_id": str(app_id)},
                exc_info=True,
            )
            raise ExternalServiceError(
                "Holding deposit store is unavailable, please retry",
                error_code="store_unavailable",
                details={"application_id": str(app_id)},
            ) from e

    def _configure(
        self,
        app_id: UUID,
        actor: Any,
        monthly_rent: int,
        amounts: HoldingAmounts | Mapping[str, Any],
        minimum_due: int,
    ) -> HoldSetupResult:
        application = resolve_firm_for_application(app_id)
        firm_id = application.form.firm_id

        if not self.gate.is_authorized(actor, firm_id):
            raise PermissionDeniedError(
                "Not authorized to configure holding deposits for this firm",
                error_code="forbidden",
                details={"application_id": str(app_id)},
            )

        allowed_statuses = list(settings.HOLDING_SETUP_ALLOWED_STATUSES)
        if application.status not in allowed_statuses:
            raise _invalid_status(app_id, application.status)

        existing = self.manager.get_active(app_id, firm_id)
        if existing is not None and existing.status == HoldingStatus.PAID:
            raise HoldAlreadyPaidError(
                "Holding deposit already paid",
                details={"token": existing.token},
            )

        minimum_due = whole_amount("minimum_due", minimum_due, error_code="invalid_minimum")
        if minimum_due == 0:
            return self._remove_hold(app_id, firm_id, actor, allowed_statuses)

        return self._require_hold(
            application, firm_id, actor, allowed_statuses,
            monthly_rent, amounts, minimum_due,
        )

    def _remove_hold(
        self,
        app_id: UUID,
        firm_id: UUID,
        actor: Any,
        allowed_statuses: list[str],
    ) -> HoldSetupResult:
        try:
            self.manager.cancel_pending(app_id, firm_id)
        except Exception:
            self.get_logger().warning(
                "Failed to cancel pending holding request",
                extra={"application_id": str(app_id), "firm_id": str(firm_id)},
                exc_info=True,
            )

        outcome = self.state_machine.advance(
            app_id,
            expected_current_any=allowed_statuses,
            new_status=ApplicationStatus.APPROVED_READY_TO_LEASE,
            actor=actor,
            cause="holding_setup_none",
        )
        if outcome is AdvanceOutcome.INCOMPATIBLE:
            raise _invalid_status(app_id)

        return HoldSetupResult(
            status=ApplicationStatus.APPROVED_READY_TO_LEASE,
            pay_url=None,
            token=None,
            total=0,
            minimum_due=0,
        )

    def _require_hold(
        self,
        application: Application,
        firm_id: UUID,
        actor: Any,
        allowed_statuses: list[str],
        monthly_rent: int,
        amounts: HoldingAmounts | Mapping[str, Any],
        minimum_due: int,
    ) -> HoldSetupResult:
        monthly_rent = whole_amount("monthly_rent", monthly_rent)
        if not isinstance(amounts, HoldingAmounts):
            amounts = HoldingAmounts.from_mapping(amounts)

        validation = self.validator.validate(amounts, monthly_rent)
        if not validation.ok:
            raise ValidationError(
                "Holding amounts exceed the allowed caps",
                error_code="invalid_amounts",
                details={"errors": validation.errors},
            )

        if not 0 < minimum_due <= validation.total:
            raise ValidationError(
                "minimum_due must be greater than 0 and at most total",
                error_code="invalid_minimum",
                details={
                    "errors": ["minimum_due must be > 0 and <= total"],
                    "total": validation.total,
                },
            )

        hold = self.manager.upsert(
            application.id,
            firm_id,
            application.household_id,
            HoldingTerms(
                monthly_rent=monthly_rent,
                amounts=amounts,
                minimum_due=minimum_due,
            ),
        )

        outcome = self.state_machine.advance(
            application.id,
            expected_current_any=allowed_statuses,
            new_status=ApplicationStatus.APPROVED_PENDING_PAYMENT,
            actor=actor,
            cause="holding_setup",
            meta={
                "token": hold.token,
                "total": hold.total,
                "minimum_due": hold.minimum_due,
            },
        )
        if outcome is AdvanceOutcome.INCOMPATIBLE:
            raise _invalid_status(application.id)

        return HoldSetupResult(
            status=ApplicationStatus.APPROVED_PENDING_PAYMENT,
            pay_url=hold.pay_url,
            token=hold.token,
            total=hold.total,
            minimum_due=hold.minimum_due,
        )
