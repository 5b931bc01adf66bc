"""
Tests for authentication models.

Covers:
- User display helpers and role properties
- PartnerBankDetail field validation and account masking
"""

import pytest
from django.core.exceptions import ValidationError

from authentication.models import UserRole
from authentication.tests.factories import (
    PartnerBankDetailFactory,
    PartnerFactory,
    UserFactory,
)


class TestUser:
    """Tests for User helpers."""

    def test_str_is_email(self, db):
        user = UserFactory(email="str_user@example.com")

        assert str(user) == "str_user@example.com"

    def test_get_full_name_falls_back_to_email(self, db):
        user = UserFactory(email="noname@example.com", full_name="")

        assert user.get_full_name() == "noname@example.com"
        assert user.get_short_name() == "noname"

    def test_get_short_name_uses_first_word(self, db):
        user = UserFactory(full_name="Asha Verma")

        assert user.get_short_name() == "Asha"

    @pytest.mark.parametrize(
        "role,is_customer,is_partner,is_admin",
        [
            (UserRole.CUSTOMER, True, False, False),
            (UserRole.PARTNER, False, True, False),
            (UserRole.ADMIN, False, False, True),
        ],
    )
    def test_role_properties(self, db, role, is_customer, is_partner, is_admin):
        user = UserFactory(role=role)

        assert user.is_customer is is_customer
        assert user.is_partner is is_partner
        assert user.is_platform_admin is is_admin

    def test_superuser_counts_as_platform_admin(self, superuser):
        superuser.role = UserRole.CUSTOMER

        assert superuser.is_platform_admin is True


class TestPartnerBankDetail:
    """Tests for PartnerBankDetail validation."""

    def test_valid_detail_passes_full_clean(self, db):
        detail = PartnerBankDetailFactory()

        detail.full_clean()

    @pytest.mark.parametrize("account_number", ["12345678", "1234567890123456789", "12AB567890"])
    def test_rejects_invalid_account_number(self, db, account_number):
        detail = PartnerBankDetailFactory.build(
            partner=PartnerFactory(), account_number=account_number
        )

        with pytest.raises(ValidationError) as exc_info:
            detail.full_clean()

        assert "account_number" in exc_info.value.message_dict

    @pytest.mark.parametrize("ifsc", ["SBIN1001234", "sbin0001234", "SBI0001234"])
    def test_rejects_invalid_ifsc(self, db, ifsc):
        detail = PartnerBankDetailFactory.build(partner=PartnerFactory(), ifsc_code=ifsc)

        with pytest.raises(ValidationError) as exc_info:
            detail.full_clean()

        assert "ifsc_code" in exc_info.value.message_dict

    def test_masked_account_number_keeps_last_four(self, db):
        detail = PartnerBankDetailFactory(account_number="123456789012")

        assert detail.masked_account_number == "XXXXXXXX9012"
