import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

import authentication.managers


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.CreateModel(
            name="User",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("password", models.CharField(max_length=128, verbose_name="password")),
                (
                    "last_login",
                    models.DateTimeField(
                        blank=True, null=True, verbose_name="last login"
                    ),
                ),
                (
                    "is_superuser",
                    models.BooleanField(
                        default=False,
                        help_text="Designates that this user has all permissions without explicitly assigning them.",
                        verbose_name="superuser status",
                    ),
                ),
                (
                    "email",
                    models.EmailField(
                        db_index=True,
                        help_text="User's email address (primary identifier)",
                        max_length=254,
                        unique=True,
                    ),
                ),
                (
                    "full_name",
                    models.CharField(
                        blank=True,
                        help_text="Display name used in e-mails and payouts",
                        max_length=150,
                    ),
                ),
                (
                    "phone",
                    models.CharField(
                        blank=True, help_text="Contact phone number", max_length=20
                    ),
                ),
                (
                    "role",
                    models.CharField(
                        choices=[
                            ("customer", "Customer"),
                            ("partner", "Partner"),
                            ("admin", "Admin"),
                        ],
                        db_index=True,
                        default="customer",
                        help_text="Marketplace role: customer books, partner lists, admin settles",
                        max_length=20,
                    ),
                ),
                (
                    "is_active",
                    models.BooleanField(
                        default=True,
                        help_text="Whether this user account is active. Deselect instead of deleting.",
                    ),
                ),
                (
                    "is_staff",
                    models.BooleanField(
                        default=False,
                        help_text="Whether the user can access the admin site.",
                    ),
                ),
                (
                    "date_joined",
                    models.DateTimeField(
                        auto_now_add=True, help_text="When the user account was created"
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True, help_text="When the user record was last modified"
                    ),
                ),
                (
                    "groups",
                    models.ManyToManyField(
                        blank=True,
                        help_text="The groups this user belongs to. A user will get all permissions granted to each of their groups.",
                        related_name="user_set",
                        related_query_name="user",
                        to="auth.group",
                        verbose_name="groups",
                    ),
                ),
                (
                    "user_permissions",
                    models.ManyToManyField(
                        blank=True,
                        help_text="Specific permissions for this user.",
                        related_name="user_set",
                        related_query_name="user",
                        to="auth.permission",
                        verbose_name="user permissions",
                    ),
                ),
            ],
            options={
                "verbose_name": "user",
                "verbose_name_plural": "users",
                "ordering": ["-date_joined"],
            },
            managers=[
                ("objects", authentication.managers.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name="PartnerBankDetail",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
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
                    "bank_name",
                    models.CharField(help_text="Name of the bank", max_length=100),
                ),
                (
                    "account_number",
                    models.CharField(
                        help_text="Bank account number (9 to 18 digits)",
                        max_length=18,
                        validators=[
                            django.core.validators.RegexValidator(
                                message="Account number must be 9 to 18 digits.",
                                regex="^\\d{9,18}$",
                            )
                        ],
                    ),
                ),
                (
                    "ifsc_code",
                    models.CharField(
                        help_text="Indian Financial System Code of the branch",
                        max_length=11,
                        validators=[
                            django.core.validators.RegexValidator(
                                message="IFSC code must look like ABCD0123456.",
                                regex="^[A-Z]{4}0[A-Z0-9]{6}$",
                            )
                        ],
                    ),
                ),
                (
                    "account_holder_name",
                    models.CharField(
                        help_text="Name on the account",
                        max_length=100,
                        validators=[
                            django.core.validators.RegexValidator(
                                message="Account holder name may contain letters, spaces and . ' - only.",
                                regex="^[A-Za-z .'-]{2,100}$",
                            )
                        ],
                    ),
                ),
                (
                    "branch_name",
                    models.CharField(
                        blank=True, help_text="Branch name", max_length=100
                    ),
                ),
                (
                    "partner",
                    models.OneToOneField(
                        help_text="Partner who owns this account",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="bank_detail",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "partner bank detail",
                "verbose_name_plural": "partner bank details",
            },
        ),
    ]
