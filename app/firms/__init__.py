"""
Firms app - landlord firms and their members.

Provides:
- Firm: A landlord organisation that approves applications and receives
  holding deposits through its Stripe connected account
- FirmMembership: A user's role in a firm
- FirmAuthorizationGate: "does user U have an active holding role on firm F"
- FirmPaymentAccountService: Keeps firm payment-account status in sync
  with Stripe account.updated events
"""
