"""
Payments app for Stripe integration.

This app handles:
- Stripe webhook receipt, verification and storage
- Asynchronous dispatch of webhook events with retries
- Routing holding-deposit payment events to the holding reconciler
- Routing account.updated events to firm payment accounts

Related apps:
    - holding: PaymentEventReconciler consumes payment events
    - firms: FirmPaymentAccountService consumes account updates

Usage:
    from payments.adapters import StripeAdapter

    adapter = StripeAdapter.from_settings()
    intent = adapter.retrieve_payment_intent("pi_xxx")
"""
