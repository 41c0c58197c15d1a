"""
Value types shared by the holding services.

These are plain dataclasses and enums; nothing here touches the database.

Usage:
    from holding.types import HoldingAmounts, PaymentEvent, PaymentEventKind

    amounts = HoldingAmounts(first=2000, last=2000, security=2000, key=0)
    amounts.total  # 6000
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

from core.exceptions import ValidationError

if TYPE_CHECKING:
    from typing import Any, Mapping

    from holding.models import HoldingRequest


HOLDING_COMPONENTS = ("first", "last", "security", "key")


def whole_amount(name: str, value: Any, error_code: str = "invalid_amounts") -> int:
    """
    Return an amount as int, rejecting anything that is not a whole number.

    Amounts are minor currency units, so 2000.0 is accepted as 2000 but
    2000.9 is an error rather than being truncated.

    Raises:
        ValidationError: If value is not an integral number
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return value

    whole = None
    if isinstance(value, (float, Decimal)):
        try:
            whole = int(value)
        except (ValueError, OverflowError):
            whole = None

    if whole is None or whole != value:
        raise ValidationError(
            f"{name} must be a whole number of minor currency units",
            error_code=error_code,
            details={"errors": [f"{name} must be a whole number"], "field": name},
        )
    return whole


@dataclass(frozen=True)
class HoldingAmounts:
    """
    The four holding deposit components, in minor currency units.

    Same unit as monthly_rent and as the amounts Stripe reports.
    """

    first: int = 0
    last: int = 0
    security: int = 0
    key: int = 0

    def __post_init__(self) -> None:
        for name in HOLDING_COMPONENTS:
            object.__setattr__(self, name, whole_amount(name, getattr(self, name)))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> HoldingAmounts:
        """
        Build from a dict, treating missing components as 0.

        Raises:
            ValidationError: If a component is not a whole number
        """
        data = data or {}
        values = {name: data.get(name) for name in HOLDING_COMPONENTS}
        return cls(
            **{name: 0 if value is None else value for name, value in values.items()}
        )

    @property
    def total(self) -> int:
        return self.first + self.last + self.security + self.key

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class CapValidationResult:
    """
    Outcome of HoldingCapValidator.validate.

    total is the arithmetic sum of the components, computed even when
    the amounts are invalid.
    """

    ok: bool
    errors: list[str]
    total: int


@dataclass(frozen=True)
class MarkPaidResult:
    """
    Outcome of HoldingRequestManager.mark_paid.

    already_applied is True when the hold was paid before this call, so
    the caller must not repeat downstream effects.
    """

    hold: HoldingRequest
    already_applied: bool


@dataclass(frozen=True)
class HoldSetupResult:
    """Response of HoldSetupOrchestrator.setup."""

    status: str
    pay_url: str | None
    token: str | None
    total: int
    minimum_due: int

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class HoldPaymentIntent:
    """
    PaymentIntent the pay page confirms for a hold.

    reused is True when an open intent with the same amount and payment
    methods was handed back instead of creating a new one.
    """

    payment_intent_id: str
    client_secret: str | None
    amount: int
    currency: str
    return_url: str
    reused: bool = False

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


class PaymentEventKind(str, Enum):
    """Normalised payment events the reconciler understands."""

    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    FAILED = "failed"


@dataclass(frozen=True)
class PaymentEvent:
    """
    A processor event about a holding deposit payment.

    Fields:
        kind: What happened to the payment
        holding_id: Hold token from the PaymentIntent metadata, if any
        amount_confirmed: Amount the processor reports as received
        payment_intent_id: Processor PaymentIntent id
        stripe_event_id: Processor event id, for log correlation
        failure_message: Processor message for failed payments
    """

    kind: PaymentEventKind
    holding_id: str | None
    amount_confirmed: int | None = None
    payment_intent_id: str | None = None
    stripe_event_id: str | None = None
    failure_message: str | None = None


class ReconcileOutcome(str, Enum):
    """Result of applying a payment event."""

    IGNORED = "ignored"
    APPLIED = "applied"
    ALREADY_APPLIED = "already_applied"
    UNKNOWN_HOLD = "unknown_hold"
    STALE_HOLD = "stale_hold"
    ANOMALY = "anomaly"
    RECORDED = "recorded"


@dataclass(frozen=True)
class HoldingTerms:
    """The landlord-chosen terms written onto a HoldingRequest."""

    monthly_rent: int
    amounts: HoldingAmounts
    minimum_due: int

    @property
    def total(self) -> int:
        return self.amounts.total
