"""Loan and payment models."""

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal

from loan_ledger.models.enums import (
    InstallmentFrequency,
    LoanStatus,
    PaymentMethod,
    PaymentStatus,
)
from loan_ledger.validation import validate_amount


@dataclass(frozen=True)
class Loan:
    """Loan snapshot.

    Snapshots are immutable; ledger operations return a new ``Loan`` rather
    than changing this one.
    """

    loan_id: str
    principal: Decimal
    interest_rate: Decimal  # Percentage, applied once (e.g. 12 for 12%)
    term: int  # Number of installments, informational only
    start_date: date
    installment_frequency: InstallmentFrequency
    installment_amount: Decimal
    penalty_rate: Decimal  # Percentage of installment_amount
    grace_period: int  # Days after a due date before a payment is late
    remaining_balance: Decimal
    total_amount: Decimal  # principal + simple interest, fixed at creation
    status: LoanStatus

    # Descriptive fields, never used in balance math
    title: str = ""
    lender: str = ""
    purpose: str | None = None
    notes: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class Payment:
    """A single settlement recorded against a loan."""

    payment_id: str
    loan_id: str
    amount: Decimal  # Applied to the balance
    transaction_fee: Decimal  # Cash out only
    penalty_amount: Decimal  # Cash out only
    payment_method: PaymentMethod
    payment_date: date
    payment_time: time | None = None
    is_penalty: bool = False
    is_late_payment: bool = False
    status: PaymentStatus = PaymentStatus.COMPLETED

    # Method-specific details
    account_name: str | None = None
    account_number: str | None = None
    bank_name: str | None = None
    mobile_number: str | None = None
    mobile_user_name: str | None = None
    mobile_provider: str | None = None
    merchant_name: str | None = None
    merchant_number: str | None = None
    created_at: datetime | None = None

    @property
    def total_amount(self) -> Decimal:
        """Total cash movement: amount plus fee plus penalty."""
        return (
            validate_amount(self.amount, "amount", max_amount=None)
            + validate_amount(self.transaction_fee, "transaction_fee", max_amount=None)
            + validate_amount(self.penalty_amount, "penalty_amount", max_amount=None)
        )


@dataclass(frozen=True)
class PaymentResult:
    """Outcome of applying a payment: the new loan snapshot and the payment."""

    updated_loan: Loan
    recorded_payment: Payment


@dataclass(frozen=True)
class LoanSummary:
    """Per-loan figures derived from its completed payments."""

    loan_id: str
    total_amount: Decimal
    remaining_balance: Decimal
    total_paid: Decimal
    total_fees: Decimal
    total_penalties: Decimal
    total_cash_out: Decimal
    payment_count: int
    late_payment_count: int
    progress: Decimal  # Percent of principal repaid, 0-100


@dataclass(frozen=True)
class PortfolioSummary:
    """Figures across a set of loans."""

    total_borrowed: Decimal
    total_outstanding: Decimal
    active_count: int
    paid_count: int
    overdue_count: int
    defaulted_count: int
