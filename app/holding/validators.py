"""
Holding deposit cap validation.

Statute limits each upfront component (first month, last month, security
deposit, lock/key fee) to a multiple of monthly rent. The multiples live
in settings.HOLDING_DEPOSIT_CAPS keyed by jurisdiction, so adding a rule
set is a settings change.

Usage:
    from holding.validators import HoldingCapValidator

    result = HoldingCapValidator().validate(amounts, monthly_rent=2000)
    if not result.ok:
        raise ValidationError(..., details={"errors": result.errors})
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from holding.types import HOLDING_COMPONENTS, CapValidationResult, HoldingAmounts

if TYPE_CHECKING:
    from typing import Any, Mapping


def _describe_cap(multiplier) -> str:
    if multiplier == 1:
        return "one month's rent"
    return f"{multiplier} months' rent"


class HoldingCapValidator:
    """
    Validates holding amounts against a per-component cap table.

    Pure: holds no state beyond the cap table and never touches the
    database, so one instance can be shared across threads.

    Args:
        caps: Component -> rent multiple. Defaults to the table for
            `jurisdiction` in settings.HOLDING_DEPOSIT_CAPS.
        jurisdiction: Cap table key. Defaults to settings.HOLDING_JURISDICTION.
    """

    def __init__(
        self,
        caps: Mapping[str, Any] | None = None,
        jurisdiction: str | None = None,
    ):
        if caps is None:
            jurisdiction = jurisdiction or settings.HOLDING_JURISDICTION
            try:
                caps = settings.HOLDING_DEPOSIT_CAPS[jurisdiction]
            except KeyError:
                raise ImproperlyConfigured(
                    f"No holding deposit caps configured for {jurisdiction!r}"
                )
        self.caps = dict(caps)

    def validate(
        self,
        amounts: HoldingAmounts | Mapping[str, Any],
        monthly_rent: int,
    ) -> CapValidationResult:
        """
        Check every component is non-negative and within its cap.

        Args:
            amounts: HoldingAmounts or a dict with first/last/security/key
            monthly_rent: Monthly rent, same unit as the amounts

        Returns:
            CapValidationResult with one error per offending component
            and the total of all components

        Raises:
            ValidationError: If a component in a dict is not a whole number
        """
        if not isinstance(amounts, HoldingAmounts):
            amounts = HoldingAmounts.from_mapping(amounts)

        errors: list[str] = []
        if monthly_rent < 0:
            errors.append("monthly_rent cannot be negative")

        for name in HOLDING_COMPONENTS:
            value = getattr(amounts, name)
            if value < 0:
                errors.append(f"{name} cannot be negative")

            multiplier = self.caps.get(name)
            if multiplier is not None and value > monthly_rent * multiplier:
                errors.append(f"{name} cannot exceed {_describe_cap(multiplier)}")

        return CapValidationResult(
            ok=not errors,
            errors=errors,
            total=amounts.total,
        )
