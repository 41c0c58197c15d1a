"""
API views for holding deposits.

Provides:
- HoldingSetupView: Landlord configures the deposit for an application
- HoldLookupView: Pay page resolves a hold token
- HoldPaymentIntentView: Pay page opens the PaymentIntent for a hold
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import BaseApplicationError
from holding.serializers import (
    HoldingSetupSerializer,
    HoldLookupSerializer,
    HoldPaymentIntentSerializer,
    HoldSetupResultSerializer,
)
from holding.services import (
    HoldingRequestManager,
    HoldPaymentIntentService,
    HoldSetupOrchestrator,
)
from payments.adapters import StripeAdapter


class HoldingSetupView(APIView):
    """
    Configure the holding deposit for an application.

    POST /api/v1/applications/{application_id}/holding/

    Authentication:
        Requires valid JWT token. The user must hold an owner, admin or
        manager membership on the application's firm.

    Response:
        200 OK: Deposit configured, application status updated
        400 Bad Request: invalid_amounts or invalid_minimum
        403 Forbidden: Not authorized for the firm
        404 Not Found: Unknown application
        409 Conflict: already_paid or invalid_application_status
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="setup_holding_deposit",
        summary="Configure holding deposit",
        description=(
            "Create or update the pending holding deposit for an application. "
            "Amounts are validated against statutory caps. A minimum_due of 0 "
            "removes the requirement and moves the application straight to "
            "approved_ready_to_lease."
        ),
        request=HoldingSetupSerializer,
        responses={
            200: OpenApiResponse(
                response=HoldSetupResultSerializer,
                description="Holding deposit configured",
            ),
            400: OpenApiResponse(description="Invalid amounts or minimum due"),
            403: OpenApiResponse(description="Not authorized for this firm"),
            404: OpenApiResponse(description="Application not found"),
            409: OpenApiResponse(
                description="Hold already paid or application status not configurable",
            ),
        },
        tags=["Holding - Setup"],
    )
    def post(self, request, application_id):
        serializer = HoldingSetupSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        try:
            result = HoldSetupOrchestrator().setup(
                application_id,
                actor=request.user.id,
                monthly_rent=data["monthly_rent"],
                amounts=data["amounts"],
                minimum_due=data["minimum_due"],
            )
        except BaseApplicationError as e:
            return Response(e.to_dict(), status=e.status_code)

        return Response(HoldSetupResultSerializer(result.as_dict()).data)


class HoldLookupView(APIView):
    """
    Resolve a hold token for the pay page.

    GET /api/v1/holding/{token}/

    The token is the credential, so no authentication is required. Only
    pending holds resolve; paid, canceled and unknown tokens all return
    the same 400 so the endpoint does not reveal which tokens exist.
    """

    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="lookup_holding_request",
        summary="Look up payable hold",
        responses={
            200: OpenApiResponse(
                response=HoldLookupSerializer,
                description="Hold is pending and payable",
            ),
            400: OpenApiResponse(description="Token invalid or already paid"),
        },
        tags=["Holding - Pay"],
    )
    def get(self, request, token):
        hold = HoldingRequestManager().get_payable(token)
        if hold is None:
            return Response(
                {
                    "error": "Holding request is invalid or already paid",
                    "error_code": "invalid_or_paid",
                },
                status=status.HTTP_400_BAD_REQUEST,
            )

        serializer = HoldLookupSerializer(
            {
                "token": hold.token,
                "status": hold.status,
                "application_id": hold.application_id,
                "firm_id": hold.firm_id,
                "household_id": hold.household_id,
                "monthly_rent": hold.monthly_rent,
                "amounts": hold.amounts.as_dict(),
                "total": hold.total,
                "minimum_due": hold.minimum_due,
            }
        )
        return Response(serializer.data)


class HoldPaymentIntentView(APIView):
    """
    Open the PaymentIntent a tenant pays a hold with.

    POST /api/v1/holding/{token}/intent/

    The token is the credential, as for HoldLookupView. Repeated calls
    return the same open intent while the amount is unchanged.

    Response:
        200 OK: Intent id and client secret
        400 Bad Request: invalid_or_paid, no_stripe_account or
            account_not_active
        409 Conflict: payment_in_progress
        503 Service Unavailable: Stripe unavailable
    """

    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="open_holding_payment_intent",
        summary="Open holding deposit PaymentIntent",
        description=(
            "Create or reuse the Stripe PaymentIntent for a pending hold's "
            "minimum due. Funds are transferred to the firm's connected account."
        ),
        request=None,
        responses={
            200: OpenApiResponse(
                response=HoldPaymentIntentSerializer,
                description="PaymentIntent ready to confirm",
            ),
            400: OpenApiResponse(
                description="Hold not payable or firm payment account not ready",
            ),
            409: OpenApiResponse(description="A payment is already in progress"),
            503: OpenApiResponse(description="Payment processor unavailable"),
        },
        tags=["Holding - Pay"],
    )
    def post(self, request, token):
        service = HoldPaymentIntentService(payment_client=StripeAdapter.from_settings())
        try:
            intent = service.open(token)
        except BaseApplicationError as e:
            return Response(e.to_dict(), status=e.status_code)

        return Response(HoldPaymentIntentSerializer(intent.as_dict()).data)
