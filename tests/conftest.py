"""Pytest configuration and fixtures."""

from datetime import date
from decimal import Decimal
from typing import Callable

import pytest

from loan_ledger.models import (
    InstallmentFrequency,
    Loan,
    LoanStatus,
    Payment,
    PaymentMethod,
    PaymentStatus,
)


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def sample_loan_id() -> str:
    """Sample loan ID."""
    return "loan-test-001"


@pytest.fixture
def make_loan(sample_loan_id: str) -> Callable[..., Loan]:
    """Factory for loan snapshots with sensible defaults."""

    def _make(**overrides) -> Loan:
        values = {
            "loan_id": sample_loan_id,
            "principal": Decimal("1000"),
            "interest_rate": Decimal("10"),
            "term": 12,
            "start_date": date(2024, 1, 31),
            "installment_frequency": InstallmentFrequency.MONTHLY,
            "installment_amount": Decimal("100"),
            "penalty_rate": Decimal("2"),
            "grace_period": 3,
            "remaining_balance": Decimal("1000"),
            "total_amount": Decimal("1100"),
            "status": LoanStatus.ACTIVE,
        }
        values.update(overrides)
        return Loan(**values)

    return _make


@pytest.fixture
def make_payment(sample_loan_id: str) -> Callable[..., Payment]:
    """Factory for completed payments against the sample loan."""
    counter = iter(range(1, 10_000))

    def _make(**overrides) -> Payment:
        values = {
            "payment_id": f"pay-{next(counter):03d}",
            "loan_id": sample_loan_id,
            "amount": Decimal("100"),
            "transaction_fee": Decimal("0"),
            "penalty_amount": Decimal("0"),
            "payment_method": PaymentMethod.CASH,
            "payment_date": date(2024, 2, 20),
            "status": PaymentStatus.COMPLETED,
        }
        values.update(overrides)
        return Payment(**values)

    return _make
