import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import django_fsm
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Warehouse",
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
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("name", models.CharField(help_text="Listing title", max_length=200)),
                ("address", models.TextField(blank=True, help_text="Street address")),
                (
                    "city",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        help_text="City the warehouse is located in",
                        max_length=100,
                    ),
                ),
                (
                    "listing_type",
                    models.CharField(
                        choices=[("rent", "Rent"), ("sale", "Sale")],
                        help_text="Whether the warehouse is rented monthly or sold outright",
                        max_length=10,
                    ),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("pending", "Pending"),
                            ("available", "Available"),
                            ("rented", "Rented"),
                            ("sold", "Sold"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Availability of the warehouse (managed by FSM)",
                        max_length=50,
                        protected=True,
                    ),
                ),
                (
                    "one_time_price",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Flat charge added once to a rental (deposit, setup)",
                        max_digits=12,
                        validators=[
                            django.core.validators.MinValueValidator(Decimal("0.00"))
                        ],
                    ),
                ),
                (
                    "monthly_price",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Rent per month",
                        max_digits=12,
                        validators=[
                            django.core.validators.MinValueValidator(Decimal("0.00"))
                        ],
                    ),
                ),
                (
                    "sub_total_price",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Price before discount",
                        max_digits=12,
                    ),
                ),
                (
                    "discount_amount",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Discount already subtracted from total_price",
                        max_digits=12,
                    ),
                ),
                (
                    "total_price",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Sale price after discount",
                        max_digits=12,
                        validators=[
                            django.core.validators.MinValueValidator(Decimal("0.00"))
                        ],
                    ),
                ),
                (
                    "payment_due_days",
                    models.PositiveIntegerField(
                        default=30, help_text="Days between rent payments"
                    ),
                ),
                (
                    "partner",
                    models.ForeignKey(
                        help_text="Partner who lists this warehouse",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="warehouses",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Warehouse",
                "verbose_name_plural": "Warehouses",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["partner", "status"],
                        name="warehouse_partner_status_idx",
                    ),
                    models.Index(
                        fields=["listing_type", "status"],
                        name="warehouse_listing_status_idx",
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("payment_due_days__gt", 0)),
                        name="warehouse_payment_due_days_positive",
                    )
                ],
            },
        ),
    ]
