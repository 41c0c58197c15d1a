"""
Firm payment-account synchronisation.

Stripe sends account.updated whenever a connected account's capabilities
change. FirmPaymentAccountService folds those snapshots into the firm row;
the holding workflow never depends on this state.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.services import BaseService
from firms.models import Firm, PaymentAccountStatus

if TYPE_CHECKING:
    from typing import Any


class FirmPaymentAccountService(BaseService):
    """Keeps Firm.payment_account_status in step with Stripe."""

    def apply_account_update(self, account: dict[str, Any]) -> Firm | None:
        """
        Apply a Stripe account object to the firm that owns it.

        Args:
            account: The `data.object` of an account.updated event

        Returns:
            The updated Firm, or None if no firm uses this account
        """
        logger = self.get_logger()
        account_id = account.get("id")
        if not account_id:
            return None

        charges_enabled = bool(account.get("charges_enabled"))
        payouts_enabled = bool(account.get("payouts_enabled"))
        requirements = account.get("requirements") or {}

        with self.atomic():
            firm = (
                Firm.objects.select_for_update()
                .filter(stripe_account_id=account_id)
                .first()
            )
            if firm is None:
                logger.info(
                    "No firm for connected account",
                    extra={"stripe_account_id": account_id},
                )
                return None

            if charges_enabled and payouts_enabled:
                firm.payment_account_status = PaymentAccountStatus.ACTIVE
            else:
                firm.payment_account_status = PaymentAccountStatus.RESTRICTED

            firm.set_meta(
                "stripe_account",
                {
                    "charges_enabled": charges_enabled,
                    "payouts_enabled": payouts_enabled,
                    "details_submitted": bool(account.get("details_submitted")),
                    "requirements_due": list(
                        requirements.get("currently_due") or []
                    ),
                    "disabled_reason": requirements.get("disabled_reason"),
                },
                save=False,
            )
            firm.save(
                update_fields=["payment_account_status", "metadata", "updated_at"]
            )

        logger.info(
            "Firm payment account updated",
            extra={
                "firm_id": str(firm.id),
                "stripe_account_id": account_id,
                "payment_account_status": firm.payment_account_status,
            },
        )
        return firm
