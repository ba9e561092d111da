"""Loan ledger domain models."""

from loan_ledger.models.enums import (
    InstallmentFrequency,
    LoanStatus,
    PaymentMethod,
    PaymentStatus,
)
from loan_ledger.models.loan import (
    Loan,
    LoanSummary,
    Payment,
    PaymentResult,
    PortfolioSummary,
)

__all__ = [
    "InstallmentFrequency",
    "Loan",
    "LoanStatus",
    "LoanSummary",
    "Payment",
    "PaymentMethod",
    "PaymentResult",
    "PaymentStatus",
    "PortfolioSummary",
]
