"""
Payment models for the booking and settlement lifecycle.

Models:
    Order: A customer's booking of a warehouse (rent or sale)
    MonthlyPayment: One month of a rental, owned by Order
    Transaction: One gateway payment attempt
    PartnerPayout: A recorded bank transfer to the partner
    ReconciliationJob: Durable record of a delayed reconciliation

Usage:
    from payments.models import Order, Transaction
    from payments.state_machines import OrderStatus, TransactionStatus
"""

from payments.models.order import MonthlyPayment, Order
from payments.models.payout import PartnerPayout
from payments.models.reconciliation_job import ReconciliationJob
from payments.models.transaction import Transaction

__all__ = [
    "MonthlyPayment",
    "Order",
    "PartnerPayout",
    "ReconciliationJob",
    "Transaction",
]
