"""In-memory loan store with per-loan write serialization."""

import threading
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from loan_ledger.config import LedgerConfig
from loan_ledger.exceptions import LoanNotFoundError, MismatchedLoanError
from loan_ledger.ledger import aggregate_outstanding, apply_payment, open_loan, record_payment
from loan_ledger.logging import get_logger, log_context
from loan_ledger.models import InstallmentFrequency, Loan, Payment, PaymentResult

logger = get_logger(__name__)


@dataclass
class LoanStore:
    """Owns loan and payment records and applies payments one loan at a time.

    The ledger functions assume they are handed the latest snapshot of a loan.
    ``apply`` and ``record_payment`` guarantee that by holding a per-loan lock
    across the read, the ledger call and the write.
    """

    config: LedgerConfig = field(default_factory=LedgerConfig)

    loans: dict[str, Loan] = field(default_factory=dict)
    payments: list[Payment] = field(default_factory=list)

    # Relationship indexes
    _loan_payments: dict[str, list[int]] = field(default_factory=dict)
    _locks: dict[str, threading.Lock] = field(default_factory=dict)
    _registry_lock: threading.Lock = field(default_factory=threading.Lock)

    def add_loan(self, loan: Loan) -> None:
        """Add a loan to the store."""
        with self._registry_lock:
            self.loans[loan.loan_id] = loan
            self._loan_payments.setdefault(loan.loan_id, [])
            self._locks.setdefault(loan.loan_id, threading.Lock())

    def open_loan(
        self,
        principal: Any,
        interest_rate: Any,
        term: int,
        start_date: date,
        installment_frequency: InstallmentFrequency,
        installment_amount: Any,
        **kwargs: Any,
    ) -> Loan:
        """Create a loan with the configured penalty and grace defaults and store it."""
        kwargs.setdefault("penalty_rate", self.config.default_penalty_rate)
        kwargs.setdefault("grace_period", self.config.default_grace_period)
        loan = open_loan(
            principal,
            interest_rate,
            term,
            start_date,
            installment_frequency,
            installment_amount,
            **kwargs,
        )
        self.add_loan(loan)
        return loan

    def get_loan(self, loan_id: str) -> Loan:
        """Get the latest snapshot of a loan."""
        try:
            return self.loans[loan_id]
        except KeyError:
            raise LoanNotFoundError(f"Loan {loan_id} not found") from None

    def list_loans(self) -> list[Loan]:
        """All stored loans."""
        with self._registry_lock:
            return list(self.loans.values())

    def payments_for(self, loan_id: str) -> list[Payment]:
        """Payments recorded against a loan, oldest first."""
        with self._registry_lock:
            if loan_id not in self._loan_payments:
                raise LoanNotFoundError(f"Loan {loan_id} not found")
            return [self.payments[i] for i in self._loan_payments[loan_id]]

    def apply(self, payment: Payment) -> PaymentResult:
        """Apply an already-built payment to its loan and persist both."""
        with self._lock_for(payment.loan_id):
            loan = self.get_loan(payment.loan_id)
            result = apply_payment(loan, payment)
            self._save(result)
            return result

    def record_payment(self, loan_id: str, amount: Any, payment_date: date, **kwargs: Any) -> PaymentResult:
        """Build, classify and apply a payment for a stored loan.

        Lateness is judged against the loan's stored payment history, and the
        configured ``auto_penalty`` applies unless the caller overrides it.
        """
        kwargs.setdefault("auto_penalty", self.config.auto_penalty)
        with self._lock_for(loan_id):
            loan = self.get_loan(loan_id)
            result = record_payment(
                loan,
                amount,
                payment_date,
                prior_payments=self.payments_for(loan_id),
                **kwargs,
            )
            self._save(result)
            return result

    def delete_loan(self, loan_id: str) -> int:
        """Delete a loan and all of its payments.

        Returns
        -------
        int
            Number of payments removed with the loan.
        """
        with self._lock_for(loan_id), self._registry_lock:
            if loan_id not in self.loans:
                raise LoanNotFoundError(f"Loan {loan_id} not found")

            del self.loans[loan_id]
            removed = len(self._loan_payments.pop(loan_id, []))
            self.payments = [p for p in self.payments if p.loan_id != loan_id]
            self._reindex()
            self._locks.pop(loan_id, None)

        logger.info(
            "Deleted loan %s and %d payments",
            loan_id,
            removed,
            extra=log_context(loan_id, removed_payments=removed),
        )
        return removed

    def outstanding(self) -> Decimal:
        """Outstanding balance across stored loans."""
        return aggregate_outstanding(self.list_loans())

    def get_stats(self) -> dict[str, Any]:
        """Get store statistics."""
        return {
            "loans": len(self.loans),
            "payments": len(self.payments),
            "outstanding": self.outstanding(),
            "generated_at": datetime.now(),
        }

    def _lock_for(self, loan_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(loan_id)
        if lock is None:
            raise LoanNotFoundError(f"Loan {loan_id} not found")
        return lock

    def _save(self, result: PaymentResult) -> None:
        loan = result.updated_loan
        payment = result.recorded_payment
        if payment.loan_id != loan.loan_id:
            raise MismatchedLoanError(f"Payment {payment.payment_id} does not belong to loan {loan.loan_id}")

        with self._registry_lock:
            self.loans[loan.loan_id] = loan
            self._loan_payments[loan.loan_id].append(len(self.payments))
            self.payments.append(payment)

    def _reindex(self) -> None:
        self._loan_payments = {loan_id: [] for loan_id in self.loans}
        for idx, payment in enumerate(self.payments):
            self._loan_payments[payment.loan_id].append(idx)
