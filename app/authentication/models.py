"""
Authentication models.

This module defines the identity models the payment core reads:
- User: Custom user model with email-based authentication and a marketplace role
- PartnerBankDetail: Bank account a partner is paid out to

Related files:
    - managers.py: Custom user manager for email-based creation
    - permissions.py: Role-based DRF permission classes

Security:
    - User passwords hashed with Django's PBKDF2
    - Account numbers are shown masked in admin and API payloads
"""

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.conf import settings
from django.core.validators import RegexValidator
from django.db import models

from core.models import BaseModel
from authentication.managers import UserManager


# Indian bank account numbers run from 9 to 18 digits
validate_account_number = RegexValidator(
    regex=r"^\d{9,18}$",
    message="Account number must be 9 to 18 digits.",
)

# 4 letters (bank), a literal zero, 6 alphanumerics (branch)
validate_ifsc_code = RegexValidator(
    regex=r"^[A-Z]{4}0[A-Z0-9]{6}$",
    message="IFSC code must look like ABCD0123456.",
)

validate_holder_name = RegexValidator(
    regex=r"^[A-Za-z .'-]{2,100}$",
    message="Account holder name may contain letters, spaces and . ' - only.",
)


class UserRole(models.TextChoices):
    """Marketplace role of a user."""

    CUSTOMER = "customer", "Customer"
    PARTNER = "partner", "Partner"
    ADMIN = "admin", "Admin"


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as the primary identifier.

    Fields:
        email: Primary identifier, unique, used for login
        full_name: Display name used in notifications
        phone: Contact number
        role: customer, partner or admin
        is_active: Whether the user account is active
        is_staff: Whether the user can access Django admin
        date_joined: When the user account was created
        updated_at: When the user record was last modified

    Usage:
        customer = User.objects.create_user(
            email='customer@example.com',
            password='securepassword'
        )
        admin = User.objects.create_superuser(
            email='admin@example.com',
            password='adminpassword'
        )
    """

    # Primary identifier (replaces username)
    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="User's email address (primary identifier)",
    )

    full_name = models.CharField(
        max_length=150,
        blank=True,
        help_text="Display name used in e-mails and payouts",
    )
    phone = models.CharField(
        max_length=20,
        blank=True,
        help_text="Contact phone number",
    )
    role = models.CharField(
        max_length=20,
        choices=UserRole.choices,
        default=UserRole.CUSTOMER,
        db_index=True,
        help_text="Marketplace role: customer books, partner lists, admin settles",
    )

    # Account status flags
    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    # Timestamps
    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        """Return the user's email as string representation."""
        return self.email

    def get_full_name(self):
        """Return the display name, falling back to the email."""
        return self.full_name or self.email

    def get_short_name(self):
        """Return the first word of the display name, or the email prefix."""
        if self.full_name:
            return self.full_name.split()[0]
        return self.email.split("@")[0]

    @property
    def is_customer(self) -> bool:
        return self.role == UserRole.CUSTOMER

    @property
    def is_partner(self) -> bool:
        return self.role == UserRole.PARTNER

    @property
    def is_platform_admin(self) -> bool:
        """Admins are either role=admin or Django superusers."""
        return self.role == UserRole.ADMIN or self.is_superuser


class PartnerBankDetail(BaseModel):
    """
    Bank account a partner receives payouts on.

    One per partner. Payout recording reads it to show where money was
    sent; it is never used to move money automatically.
    """

    partner = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="bank_detail",
        help_text="Partner who owns this account",
    )
    bank_name = models.CharField(
        max_length=100,
        help_text="Name of the bank",
    )
    account_number = models.CharField(
        max_length=18,
        validators=[validate_account_number],
        help_text="Bank account number (9 to 18 digits)",
    )
    ifsc_code = models.CharField(
        max_length=11,
        validators=[validate_ifsc_code],
        help_text="Indian Financial System Code of the branch",
    )
    account_holder_name = models.CharField(
        max_length=100,
        validators=[validate_holder_name],
        help_text="Name on the account",
    )
    branch_name = models.CharField(
        max_length=100,
        blank=True,
        help_text="Branch name",
    )

    class Meta:
        verbose_name = "partner bank detail"
        verbose_name_plural = "partner bank details"

    def __str__(self):
        return f"{self.bank_name} {self.masked_account_number} ({self.partner})"

    @property
    def masked_account_number(self) -> str:
        """Account number with all but the last four digits hidden."""
        return f"{'X' * max(len(self.account_number) - 4, 0)}{self.account_number[-4:]}"
