"""Loan balance, lateness and status computations for a personal-finance tracker."""

from loan_ledger.exceptions import (
    ConfigurationError,
    LoanLedgerError,
    LoanNotFoundError,
    MismatchedLoanError,
    ValidationError,
)
from loan_ledger.ledger import (
    aggregate_outstanding,
    apply_payment,
    classify_lateness,
    derive_penalty,
    derive_total_amount,
    is_overdue,
    next_due_date,
    open_loan,
    record_payment,
    summarize_loan,
    summarize_portfolio,
)
from loan_ledger.models import (
    InstallmentFrequency,
    Loan,
    LoanStatus,
    LoanSummary,
    Payment,
    PaymentMethod,
    PaymentResult,
    PaymentStatus,
    PortfolioSummary,
)
from loan_ledger.store import LoanStore

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "InstallmentFrequency",
    "Loan",
    "LoanLedgerError",
    "LoanNotFoundError",
    "LoanStatus",
    "LoanStore",
    "LoanSummary",
    "MismatchedLoanError",
    "Payment",
    "PaymentMethod",
    "PaymentResult",
    "PaymentStatus",
    "PortfolioSummary",
    "ValidationError",
    "aggregate_outstanding",
    "apply_payment",
    "classify_lateness",
    "derive_penalty",
    "derive_total_amount",
    "is_overdue",
    "next_due_date",
    "open_loan",
    "record_payment",
    "summarize_loan",
    "summarize_portfolio",
]
