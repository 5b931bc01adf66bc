"""
Authentication application.

Identity data the payment core reads: who is booking (customer), who owns
the listing and gets paid out (partner), and who may record payouts (admin).

Key components:
    - User model: Custom email-based user with a marketplace role
    - PartnerBankDetail model: Payout destination for a partner
    - Permission classes: IsCustomer, IsPartner, IsPlatformAdmin

Registration, login UI and KYC flows live outside this service; API clients
obtain JWTs through simplejwt's token endpoints.

Usage:
    from authentication.models import User, UserRole
    from authentication.permissions import IsCustomer
"""
