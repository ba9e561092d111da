"""Synthetic loans and payment streams for demos and property tests."""

from __future__ import annotations

import random
from abc import ABC
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Iterator

from faker import Faker

from loan_ledger.ledger import PAYMENT_DETAIL_FIELDS, open_loan, record_payment
from loan_ledger.models import InstallmentFrequency, Loan, Payment, PaymentMethod
from loan_ledger.schedule import due_date

MOBILE_PROVIDERS = ["M-Pesa", "Airtel Money", "Tigo Pesa", "Halopesa"]


class BaseGenerator(ABC):
    """Base class for all data generators.

    Parameters
    ----------
    seed : int | None
        Random seed for reproducibility.
    locale : str
        Faker locale (default ``en_US``).
    """

    def __init__(self, seed: int | None = None, locale: str = "en_US") -> None:
        self.fake = Faker(locale)
        if seed is not None:
            self.fake.seed_instance(seed)
            random.seed(seed)


class LoanGenerator(BaseGenerator):
    """Generate synthetic personal loans."""

    # (principal range in hundreds, interest range %, terms)
    PROFILES = {
        InstallmentFrequency.DAILY: ((5, 50), (5, 20), [30, 60, 90]),
        InstallmentFrequency.WEEKLY: ((10, 200), (5, 25), [8, 12, 26, 52]),
        InstallmentFrequency.MONTHLY: ((50, 5000), (3, 30), [6, 12, 18, 24, 36]),
    }

    def generate(
        self,
        frequency: InstallmentFrequency | None = None,
        start_date: date | None = None,
    ) -> Loan:
        """Generate an active loan.

        Parameters
        ----------
        frequency : InstallmentFrequency | None
            Installment cadence; random when omitted.
        start_date : date | None
            Loan start; somewhere in the last two years when omitted.

        Returns
        -------
        Loan
            A freshly opened loan.
        """
        frequency = frequency or random.choice(list(InstallmentFrequency))
        (low, high), (rate_low, rate_high), terms = self.PROFILES[frequency]

        principal = Decimal(random.randint(low, high) * 100)
        interest_rate = Decimal(str(round(random.uniform(rate_low, rate_high), 1)))
        term = random.choice(terms)
        total = principal + principal * interest_rate / 100
        installment_amount = (total / term).quantize(Decimal("0.01"))

        return open_loan(
            principal=principal,
            interest_rate=interest_rate,
            term=term,
            start_date=start_date or self.fake.date_between(start_date="-2y", end_date="-30d"),
            installment_frequency=frequency,
            installment_amount=installment_amount,
            penalty_rate=Decimal(random.choice([0, 1, 2, 5])),
            grace_period=random.choice([0, 3, 5, 7]),
            loan_id=self.fake.uuid4(),
            title=f"{self.fake.word().title()} loan",
            lender=self.fake.company(),
            purpose=random.choice(["business", "school fees", "medical", "rent", "equipment", None]),
            created_at=datetime.now(),
        )

    def generate_batch(self, count: int, **kwargs: Any) -> Iterator[Loan]:
        """Generate ``count`` loans."""
        for _ in range(count):
            yield self.generate(**kwargs)


class PaymentGenerator(BaseGenerator):
    """Generate payments against a loan, some of them late or partial."""

    def __init__(
        self,
        seed: int | None = None,
        locale: str = "en_US",
        late_rate: float = 0.2,
        partial_rate: float = 0.15,
    ) -> None:
        super().__init__(seed, locale)
        self.late_rate = late_rate
        self.partial_rate = partial_rate

    def generate_for_loan(self, loan: Loan, count: int) -> Iterator[Payment]:
        """Generate ``count`` completed payments in installment order.

        Payments are not applied; feed them to ``apply_payment`` or a store.
        """
        for ordinal in range(1, count + 1):
            due = due_date(loan.start_date, loan.installment_frequency, ordinal)
            if random.random() < self.late_rate:
                offset = random.randint(loan.grace_period + 1, loan.grace_period + 15)
            else:
                offset = random.randint(-3, loan.grace_period)

            amount = loan.installment_amount
            if random.random() < self.partial_rate:
                amount = (amount * Decimal(str(round(random.uniform(0.3, 0.9), 2)))).quantize(Decimal("0.01"))

            method = random.choice(list(PaymentMethod))
            yield Payment(
                payment_id=self.fake.uuid4(),
                loan_id=loan.loan_id,
                amount=amount,
                transaction_fee=Decimal("0") if method == PaymentMethod.CASH else Decimal(random.randint(0, 50)),
                penalty_amount=Decimal("0"),
                payment_method=method,
                payment_date=max(due + timedelta(days=offset), loan.start_date),
                payment_time=time(random.randint(7, 20), random.choice([0, 15, 30, 45])),
                created_at=datetime.now(),
                **self._method_details(method),
            )

    def simulate(self, loan: Loan, count: int, auto_penalty: bool = False) -> tuple[Loan, list[Payment]]:
        """Record ``count`` generated payments through the ledger.

        Returns
        -------
        tuple[Loan, list[Payment]]
            Final loan snapshot and the payments as recorded.
        """
        recorded: list[Payment] = []
        for draft in self.generate_for_loan(loan, count):
            result = record_payment(
                loan,
                draft.amount,
                draft.payment_date,
                payment_method=draft.payment_method,
                transaction_fee=draft.transaction_fee,
                payment_time=draft.payment_time,
                prior_payments=recorded,
                auto_penalty=auto_penalty,
                payment_id=draft.payment_id,
                **self._details_of(draft),
            )
            loan = result.updated_loan
            recorded.append(result.recorded_payment)
        return loan, recorded

    def _method_details(self, method: PaymentMethod) -> dict[str, str]:
        if method == PaymentMethod.BANK:
            return {
                "account_name": self.fake.name(),
                "account_number": self.fake.bban(),
                "bank_name": f"{self.fake.last_name()} Bank",
            }
        elif method == PaymentMethod.MOBILE:
            return {
                "mobile_number": self.fake.msisdn(),
                "mobile_user_name": self.fake.name(),
                "mobile_provider": random.choice(MOBILE_PROVIDERS),
            }
        return {}

    @staticmethod
    def _details_of(payment: Payment) -> dict[str, Any]:
        return {
            key: getattr(payment, key)
            for key in PAYMENT_DETAIL_FIELDS
            if getattr(payment, key) is not None
        }
