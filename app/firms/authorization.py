"""
Service-level authorization for firm operations.

FirmAuthorizationGate answers a single question: does user U hold an
active membership with an allowed role on firm F. It is read-only and is
injected into the services that need it, so tests can swap in a stub.

Usage:
    gate = FirmAuthorizationGate()
    if not gate.is_authorized(request.user.id, firm_id):
        raise PermissionDeniedError("Not a member of this firm")

    # Narrower role set
    owners_only = FirmAuthorizationGate(roles=[FirmRole.OWNER])
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from django.conf import settings

from firms.models import FirmMembership

if TYPE_CHECKING:
    from uuid import UUID


class FirmAuthorizationGate:
    """
    Answers "does actor have an active allowed role on firm".

    Args:
        roles: Roles that pass the check. Defaults to
            settings.FIRM_HOLDING_ROLES.
    """

    def __init__(self, roles: Iterable[str] | None = None):
        if roles is None:
            roles = settings.FIRM_HOLDING_ROLES
        self.roles = tuple(roles)

    def is_authorized(self, actor_id: int | None, firm_id: UUID | None) -> bool:
        """
        Check the actor's membership on the firm.

        Args:
            actor_id: Primary key of the acting user
            firm_id: Firm UUID

        Returns:
            True if an active membership with an allowed role exists
        """
        if actor_id is None or firm_id is None:
            return False

        return FirmMembership.objects.filter(
            firm_id=firm_id,
            user_id=actor_id,
            active=True,
            role__in=self.roles,
        ).exists()
