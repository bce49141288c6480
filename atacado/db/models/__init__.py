"""
Domain-split SQLAlchemy models.

Exposes `Base`, `now_utc` and every ORM class so callers can keep using
`from atacado.db import models`.
"""

from .base import Base, now_utc, MONEY  # re-export

from .users import User
from .organizations import Organization, OrganizationMembership
from .audit import AuditLog
from .notifications import Notification
from .customers import Customer
from .catalog import Product, CustomerProduct
from .orders import Order, OrderItem, ORDER_STATUSES
from .finance import (
    BankAccount,
    Transaction,
    Boleto,
    Receivable,
    CardTransaction,
    ExpenseCategory,
    Expense,
)
from .hr import Employee, EmployeePayment, PaymentAcknowledgment
from .loyalty import PointTransaction, Prize, Redemption, ReferralConfig, Referral
from .investments import (
    InvestmentCompany,
    InvestorProfile,
    InvestorPortfolio,
    InvestorGiftedShares,
    ShareTransaction,
    SharePriceHistory,
    InvestorDeposit,
    InvestorWithdrawal,
)
from .fiscal import FiscalInvoice, FiscalInvoiceItem
from .coupons import Coupon, CouponUsage

__all__ = [
    # base
    "Base",
    "now_utc",
    "MONEY",
    # users/orgs
    "User",
    "Organization",
    "OrganizationMembership",
    # audit/notifications
    "AuditLog",
    "Notification",
    # customers/catalog/orders
    "Customer",
    "Product",
    "CustomerProduct",
    "Order",
    "OrderItem",
    "ORDER_STATUSES",
    # finance
    "BankAccount",
    "Transaction",
    "Boleto",
    "Receivable",
    "CardTransaction",
    "ExpenseCategory",
    "Expense",
    # hr
    "Employee",
    "EmployeePayment",
    "PaymentAcknowledgment",
    # loyalty
    "PointTransaction",
    "Prize",
    "Redemption",
    "ReferralConfig",
    "Referral",
    # investments
    "InvestmentCompany",
    "InvestorProfile",
    "InvestorPortfolio",
    "InvestorGiftedShares",
    "ShareTransaction",
    "SharePriceHistory",
    "InvestorDeposit",
    "InvestorWithdrawal",
    # fiscal
    "FiscalInvoice",
    "FiscalInvoiceItem",
    # coupons
    "Coupon",
    "CouponUsage",
]
