import django.db.models.deletion
import django_fsm
from django.db import migrations, models

import holding.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("applications", "0001_initial"),
        ("firms", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="HoldingRequest",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "metadata",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Flexible key-value metadata storage",
                    ),
                ),
                (
                    "token",
                    models.CharField(
                        default=holding.models.new_hold_token,
                        editable=False,
                        help_text="Opaque hold token used in the pay link",
                        max_length=64,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "household_id",
                    models.UUIDField(
                        db_index=True,
                        help_text="Household expected to pay the deposit",
                    ),
                ),
                (
                    "monthly_rent",
                    models.PositiveIntegerField(
                        help_text="Monthly rent the caps were validated against",
                    ),
                ),
                ("amount_first", models.PositiveIntegerField(default=0)),
                ("amount_last", models.PositiveIntegerField(default=0)),
                ("amount_security", models.PositiveIntegerField(default=0)),
                ("amount_key", models.PositiveIntegerField(default=0)),
                (
                    "total",
                    models.PositiveIntegerField(
                        help_text="Sum of the four deposit components",
                    ),
                ),
                (
                    "minimum_due",
                    models.PositiveIntegerField(
                        help_text="Amount that must be paid to unblock the application",
                    ),
                ),
                (
                    "amount_confirmed",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="Amount confirmed by the payment processor",
                        null=True,
                    ),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("pending", "Pending"),
                            ("paid", "Paid"),
                            ("canceled", "Canceled"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Current status of the hold (managed by FSM)",
                        max_length=50,
                    ),
                ),
                (
                    "payment_intent_id",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Stripe PaymentIntent that paid this hold",
                        max_length=255,
                    ),
                ),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("canceled_at", models.DateTimeField(blank=True, null=True)),
                (
                    "application",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="holding_requests",
                        to="applications.application",
                    ),
                ),
                (
                    "firm",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="holding_requests",
                        to="firms.firm",
                    ),
                ),
            ],
            options={
                "verbose_name": "Holding Request",
                "verbose_name_plural": "Holding Requests",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["application", "firm", "status"],
                        name="holding_app_firm_status_idx",
                    )
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(status__in=["pending", "paid"]),
                        fields=("application", "firm"),
                        name="holding_request_one_active_per_application",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(minimum_due__gt=0),
                        name="holding_request_minimum_due_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(minimum_due__lte=models.F("total")),
                        name="holding_request_minimum_due_within_total",
                    ),
                ],
            },
        ),
    ]
