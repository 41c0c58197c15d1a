"""
Serializers for the holding deposit API.

Request serializers only check shape and sign; cap and minimum-due rules
are enforced by HoldSetupOrchestrator so they apply to every caller.
"""

from rest_framework import serializers


class HoldingAmountsSerializer(serializers.Serializer):
    """The four deposit components, minor currency units."""

    first = serializers.IntegerField(min_value=0, default=0)
    last = serializers.IntegerField(min_value=0, default=0)
    security = serializers.IntegerField(min_value=0, default=0)
    key = serializers.IntegerField(min_value=0, default=0)


class HoldingSetupSerializer(serializers.Serializer):
    """
    Request body for configuring an application's holding deposit.

    A minimum_due of 0 removes the holding requirement.
    """

    monthly_rent = serializers.IntegerField(min_value=0)
    amounts = HoldingAmountsSerializer()
    minimum_due = serializers.IntegerField(min_value=0)


class HoldSetupResultSerializer(serializers.Serializer):
    status = serializers.CharField()
    pay_url = serializers.CharField(allow_null=True)
    token = serializers.CharField(allow_null=True)
    total = serializers.IntegerField()
    minimum_due = serializers.IntegerField()


class HoldLookupSerializer(serializers.Serializer):
    """Public view of a payable hold, as shown on the pay page."""

    token = serializers.CharField()
    status = serializers.CharField()
    application_id = serializers.UUIDField()
    firm_id = serializers.UUIDField()
    household_id = serializers.UUIDField()
    monthly_rent = serializers.IntegerField()
    amounts = HoldingAmountsSerializer()
    total = serializers.IntegerField()
    minimum_due = serializers.IntegerField()


class HoldPaymentIntentSerializer(serializers.Serializer):
    """PaymentIntent details the pay page hands to Stripe.js."""

    payment_intent_id = serializers.CharField()
    client_secret = serializers.CharField(allow_null=True)
    amount = serializers.IntegerField()
    currency = serializers.CharField()
    return_url = serializers.CharField()
    reused = serializers.BooleanField()
