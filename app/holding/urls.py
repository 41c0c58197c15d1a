"""
URL configuration for the holding app.

Holding - Setup:
    POST /applications/{application_id}/holding/  - Configure holding deposit

Holding - Pay:
    GET /holding/{token}/                         - Look up payable hold
    POST /holding/{token}/intent/                 - Open PaymentIntent

Routes are mounted under /api/v1/ in the main URLconf.
"""

from django.urls import path

from holding.views import HoldingSetupView, HoldLookupView, HoldPaymentIntentView

app_name = "holding"

urlpatterns = [
    path(
        "applications/<uuid:application_id>/holding/",
        HoldingSetupView.as_view(),
        name="setup",
    ),
    path("holding/<str:token>/", HoldLookupView.as_view(), name="lookup"),
    path(
        "holding/<str:token>/intent/",
        HoldPaymentIntentView.as_view(),
        name="intent",
    ),
]
