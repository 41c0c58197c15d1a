"""
Holding services.

Usage:
    from holding.services import (
        HoldingRequestManager,
        HoldPaymentIntentService,
        HoldSetupOrchestrator,
        PaymentEventReconciler,
    )
"""

from holding.services.manager import HoldingRequestManager
from holding.services.payment_intent import HoldPaymentIntentService
from holding.services.reconciler import PaymentEventReconciler
from holding.services.setup import HoldSetupOrchestrator

__all__ = [
    "HoldingRequestManager",
    "HoldPaymentIntentService",
    "HoldSetupOrchestrator",
    "PaymentEventReconciler",
]
