"""
Holding app - holding deposits gating approved rental applications.

Provides:
- HoldingRequest: One holding deposit per (application, firm)
- HoldingCapValidator: Statutory deposit caps
- HoldingRequestManager: Race-safe insert-or-update-if-not-paid and
  guarded pending -> paid
- HoldSetupOrchestrator: Landlord-facing hold configuration
- PaymentEventReconciler: Applies processor payment events to holds
  and applications
"""
