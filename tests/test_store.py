"""Tests for LoanStore."""

import threading
from datetime import date
from decimal import Decimal
from typing import Callable

import pytest

from loan_ledger.config import LedgerConfig
from loan_ledger.exceptions import LoanNotFoundError, ValidationError
from loan_ledger.models import InstallmentFrequency, Loan, LoanStatus, Payment, PaymentStatus
from loan_ledger.store import LoanStore

LoanFactory = Callable[..., Loan]
PaymentFactory = Callable[..., Payment]


@pytest.fixture
def store() -> LoanStore:
    """Create a fresh store for each test."""
    return LoanStore()


@pytest.fixture
def stored_loan(store: LoanStore, make_loan: LoanFactory) -> Loan:
    """A loan already in the store."""
    loan = make_loan()
    store.add_loan(loan)
    return loan


class TestLoans:
    """Adding, reading and listing loans."""

    def test_add_and_get(self, store: LoanStore, stored_loan: Loan) -> None:
        """Test adding and reading back a loan."""
        assert store.get_loan(stored_loan.loan_id) == stored_loan
        assert store.list_loans() == [stored_loan]
        assert store.payments_for(stored_loan.loan_id) == []

    def test_get_missing(self, store: LoanStore) -> None:
        """Test an unknown loan id raises LoanNotFoundError."""
        with pytest.raises(LoanNotFoundError, match="nope"):
            store.get_loan("nope")

    def test_payments_for_missing(self, store: LoanStore) -> None:
        """Test payments for an unknown loan raise LoanNotFoundError."""
        with pytest.raises(LoanNotFoundError):
            store.payments_for("nope")

    def test_open_loan_uses_config_defaults(self) -> None:
        """Test open_loan falls back to configured penalty and grace."""
        store = LoanStore(config=LedgerConfig(default_penalty_rate=Decimal("5"), default_grace_period=7))
        loan = store.open_loan(1000, 10, 12, date(2024, 1, 1), InstallmentFrequency.MONTHLY, 100)

        assert loan.penalty_rate == Decimal("5")
        assert loan.grace_period == 7
        assert store.get_loan(loan.loan_id) == loan

    def test_open_loan_explicit_terms_win(self, store: LoanStore) -> None:
        """Test explicit terms override configured defaults."""
        loan = store.open_loan(
            1000, 10, 12, date(2024, 1, 1), InstallmentFrequency.MONTHLY, 100, penalty_rate=1, grace_period=0
        )
        assert loan.penalty_rate == Decimal("1")
        assert loan.grace_period == 0

    def test_open_loan_invalid(self, store: LoanStore) -> None:
        """Test an invalid loan is not stored."""
        with pytest.raises(ValidationError):
            store.open_loan(-1, 10, 12, date(2024, 1, 1), InstallmentFrequency.MONTHLY, 100)
        assert store.list_loans() == []


class TestApply:
    """Applying payments through the store."""

    def test_apply_persists_loan_and_payment(
        self, store: LoanStore, stored_loan: Loan, make_payment: PaymentFactory
    ) -> None:
        """Test apply stores the new snapshot and the payment."""
        payment = make_payment(amount=Decimal("400"))
        result = store.apply(payment)

        assert store.get_loan(stored_loan.loan_id).remaining_balance == Decimal("600")
        assert store.get_loan(stored_loan.loan_id) == result.updated_loan
        assert store.payments_for(stored_loan.loan_id) == [payment]

    def test_apply_reads_latest_snapshot(
        self, store: LoanStore, stored_loan: Loan, make_payment: PaymentFactory
    ) -> None:
        """Test successive payments build on each other."""
        for amount in ("400", "400", "300"):
            store.apply(make_payment(amount=Decimal(amount)))

        loan = store.get_loan(stored_loan.loan_id)
        assert loan.remaining_balance == Decimal("0")
        assert loan.status == LoanStatus.PAID

    def test_apply_unknown_loan(self, store: LoanStore, make_payment: PaymentFactory) -> None:
        """Test applying to an unknown loan."""
        with pytest.raises(LoanNotFoundError):
            store.apply(make_payment(loan_id="ghost"))

    def test_failed_apply_writes_nothing(
        self, store: LoanStore, stored_loan: Loan, make_payment: PaymentFactory
    ) -> None:
        """Test a rejected payment leaves the store unchanged."""
        with pytest.raises(ValidationError):
            store.apply(make_payment(status=PaymentStatus.PENDING))

        assert store.get_loan(stored_loan.loan_id) == stored_loan
        assert store.payments == []

    def test_concurrent_payments_are_serialized(
        self, store: LoanStore, stored_loan: Loan, make_payment: PaymentFactory
    ) -> None:
        """Test concurrent payments on one loan."""
        payments = [make_payment(amount=Decimal("10")) for _ in range(50)]
        threads = [threading.Thread(target=store.apply, args=(p,)) for p in payments]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert store.get_loan(stored_loan.loan_id).remaining_balance == Decimal("500")
        assert len(store.payments_for(stored_loan.loan_id)) == 50


class TestRecordPayment:
    """Recording payments against stored history."""

    def test_lateness_uses_stored_history(self, store: LoanStore, stored_loan: Loan) -> None:
        """Test lateness is judged against stored payments."""
        store.record_payment(stored_loan.loan_id, 100, date(2024, 2, 25))
        result = store.record_payment(stored_loan.loan_id, 100, date(2024, 4, 2))

        # Second installment due 2024-03-31, grace until 2024-04-03
        assert result.recorded_payment.is_late_payment is False
        assert store.get_loan(stored_loan.loan_id).remaining_balance == Decimal("800")

    def test_auto_penalty_from_config(self, make_loan: LoanFactory) -> None:
        """Test auto_penalty comes from config."""
        store = LoanStore(config=LedgerConfig(auto_penalty=True))
        loan = make_loan()
        store.add_loan(loan)

        result = store.record_payment(loan.loan_id, 100, date(2024, 3, 20))

        assert result.recorded_payment.is_late_payment is True
        assert result.recorded_payment.penalty_amount == Decimal("2.00")

    def test_auto_penalty_override(self, make_loan: LoanFactory) -> None:
        """Test a caller can turn auto_penalty off."""
        store = LoanStore(config=LedgerConfig(auto_penalty=True))
        loan = make_loan()
        store.add_loan(loan)

        result = store.record_payment(loan.loan_id, 100, date(2024, 3, 20), auto_penalty=False)
        assert result.recorded_payment.penalty_amount == Decimal("0")

    def test_unknown_loan(self, store: LoanStore) -> None:
        """Test recording against an unknown loan."""
        with pytest.raises(LoanNotFoundError):
            store.record_payment("ghost", 100, date(2024, 2, 1))


class TestDeleteLoan:
    """Deleting loans cascades to their payments."""

    def test_cascade_delete(self, store: LoanStore, make_loan: LoanFactory, make_payment: PaymentFactory) -> None:
        """Test deleting a loan removes only its payments."""
        keep = make_loan(loan_id="keep")
        drop = make_loan(loan_id="drop")
        store.add_loan(keep)
        store.add_loan(drop)
        store.apply(make_payment(loan_id="drop"))
        store.apply(make_payment(loan_id="keep", amount=Decimal("50")))
        store.apply(make_payment(loan_id="drop"))

        removed = store.delete_loan("drop")

        assert removed == 2
        assert [loan.loan_id for loan in store.list_loans()] == ["keep"]
        assert all(p.loan_id == "keep" for p in store.payments)
        assert [p.amount for p in store.payments_for("keep")] == [Decimal("50")]

    def test_payments_after_delete_still_indexed(
        self, store: LoanStore, make_loan: LoanFactory, make_payment: PaymentFactory
    ) -> None:
        """Test remaining loans stay indexed after a delete."""
        store.add_loan(make_loan(loan_id="a"))
        store.add_loan(make_loan(loan_id="b"))
        store.apply(make_payment(loan_id="a"))
        store.apply(make_payment(loan_id="b"))
        store.delete_loan("a")

        store.apply(make_payment(loan_id="b", amount=Decimal("25")))
        assert [p.amount for p in store.payments_for("b")] == [Decimal("100"), Decimal("25")]

    def test_history_reads_survive_concurrent_deletes(
        self, store: LoanStore, make_loan: LoanFactory, make_payment: PaymentFactory
    ) -> None:
        """Test that reading one loan's history while other loans are deleted stays consistent."""
        store.add_loan(make_loan(loan_id="keep", remaining_balance=Decimal("100000")))
        doomed = [f"drop-{i}" for i in range(40)]
        for loan_id in doomed:
            store.add_loan(make_loan(loan_id=loan_id))
            store.apply(make_payment(loan_id=loan_id, amount=Decimal("1")))
        for _ in range(20):
            store.apply(make_payment(loan_id="keep", amount=Decimal("1")))

        errors: list[Exception] = []
        done = threading.Event()

        def read_history() -> None:
            try:
                while not done.is_set():
                    history = store.payments_for("keep")
                    assert all(p.loan_id == "keep" for p in history)
                    store.record_payment("keep", 1, date(2024, 2, 20))
            except Exception as exc:
                errors.append(exc)

        def delete_all() -> None:
            try:
                for loan_id in doomed:
                    store.delete_loan(loan_id)
            except Exception as exc:
                errors.append(exc)
            finally:
                done.set()

        readers = [threading.Thread(target=read_history) for _ in range(4)]
        deleter = threading.Thread(target=delete_all)
        for t in readers:
            t.start()
        deleter.start()
        deleter.join()
        for t in readers:
            t.join()

        assert errors == []
        assert [loan.loan_id for loan in store.list_loans()] == ["keep"]
        history = store.payments_for("keep")
        assert len(history) == len(store.payments)
        assert store.get_loan("keep").remaining_balance == Decimal("100000") - len(history)

    def test_delete_missing(self, store: LoanStore) -> None:
        """Test deleting an unknown loan."""
        with pytest.raises(LoanNotFoundError):
            store.delete_loan("ghost")

    def test_deleted_loan_not_found(self, store: LoanStore, stored_loan: Loan) -> None:
        """Test a deleted loan can no longer be read."""
        store.delete_loan(stored_loan.loan_id)
        with pytest.raises(LoanNotFoundError):
            store.get_loan(stored_loan.loan_id)


class TestOutstanding:
    """Aggregates over stored loans."""

    def test_outstanding(self, store: LoanStore, make_loan: LoanFactory) -> None:
        """Test outstanding skips paid loans."""
        store.add_loan(make_loan(loan_id="a", remaining_balance=Decimal("100")))
        store.add_loan(make_loan(loan_id="b", remaining_balance=Decimal("0"), status=LoanStatus.PAID))
        store.add_loan(make_loan(loan_id="c", remaining_balance=Decimal("50"), status=LoanStatus.OVERDUE))

        assert store.outstanding() == Decimal("150")

    def test_stats(self, store: LoanStore, stored_loan: Loan, make_payment: PaymentFactory) -> None:
        """Test store statistics."""
        store.apply(make_payment())
        stats = store.get_stats()

        assert stats["loans"] == 1
        assert stats["payments"] == 1
        assert stats["outstanding"] == Decimal("900")
