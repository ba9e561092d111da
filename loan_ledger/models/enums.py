"""Enumeration types for loan and payment records."""

from enum import Enum


class LoanStatus(str, Enum):
    ACTIVE = "active"
    PAID = "paid"
    DEFAULTED = "defaulted"
    OVERDUE = "overdue"


class InstallmentFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class PaymentMethod(str, Enum):
    CASH = "cash"
    MOBILE = "mobile"
    BANK = "bank"


class PaymentStatus(str, Enum):
    COMPLETED = "completed"
    PENDING = "pending"
    FAILED = "failed"
