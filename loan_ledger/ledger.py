"""Pure loan ledger computations.

Every function reads loan/payment snapshots and returns new values. Nothing
here mutates its arguments or performs I/O, so callers own persistence and
must serialize concurrent updates to the same loan themselves.
"""

import uuid
from dataclasses import replace
from datetime import date, datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Sequence

from loan_ledger.exceptions import MismatchedLoanError, ValidationError
from loan_ledger.logging import get_logger, log_context
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
from loan_ledger.schedule import due_date
from loan_ledger.validation import validate_amount, validate_loan_terms, validate_rate

logger = get_logger(__name__)

ZERO = Decimal("0")
CENT = Decimal("0.01")
DEFAULT_PENALTY_RATE = Decimal("2")
DEFAULT_GRACE_PERIOD = 3

PAYMENT_DETAIL_FIELDS = (
    "account_name",
    "account_number",
    "bank_name",
    "mobile_number",
    "mobile_user_name",
    "mobile_provider",
    "merchant_name",
    "merchant_number",
)


def derive_total_amount(principal: Any, interest_rate: Any) -> Decimal:
    """Principal plus simple interest applied once to the full principal.

    Parameters
    ----------
    principal : Any
        Amount borrowed, non-negative.
    interest_rate : Any
        Percentage (``12`` means 12%), non-negative.

    Returns
    -------
    Decimal
        ``principal + principal * interest_rate / 100``.
    """
    principal = validate_amount(principal, "principal", max_amount=None)
    rate = validate_rate(interest_rate, "interest_rate", maximum=None)
    return principal + principal * rate / 100


def apply_payment(loan: Loan, payment: Payment) -> PaymentResult:
    """Apply a completed payment to a loan snapshot.

    The balance drops by ``payment.amount`` and floors at zero. Reaching zero
    marks the loan paid; any other status is carried over unchanged. Fees and
    penalties are cash out only and never reduce the balance.

    Raises
    ------
    MismatchedLoanError
        If the payment belongs to another loan.
    ValidationError
        If the payment is not completed, or an amount is negative or NaN.
    """
    _check_owner(loan, payment)

    if payment.status != PaymentStatus.COMPLETED:
        raise ValidationError(
            f"Payment {payment.payment_id} is {PaymentStatus(payment.status).value}; "
            "only completed payments affect the balance"
        )

    amount = validate_amount(payment.amount, "amount", max_amount=None)
    balance = validate_amount(loan.remaining_balance, "remaining_balance", max_amount=None)

    new_balance = max(balance - amount, ZERO)
    new_status = LoanStatus.PAID if new_balance <= 0 else loan.status

    logger.debug(
        "Applied payment %s to loan %s: balance %s -> %s",
        payment.payment_id,
        loan.loan_id,
        balance,
        new_balance,
        extra=log_context(loan.loan_id, payment.payment_id, balance=new_balance),
    )
    if new_status == LoanStatus.PAID and loan.status != LoanStatus.PAID:
        logger.info(
            "Loan %s paid off",
            loan.loan_id,
            extra=log_context(loan.loan_id, payment.payment_id),
        )

    updated = replace(loan, remaining_balance=new_balance, status=new_status)
    return PaymentResult(updated_loan=updated, recorded_payment=payment)


def classify_lateness(
    loan: Loan,
    payment: Payment,
    prior_payments: Iterable[Payment] = (),
) -> bool:
    """Whether a payment falls after its installment's due date plus grace period.

    The installment a payment settles is 1 + the number of regular payments
    made before it: completed entries that are not penalty charges. When the
    history contains ``payment`` itself (matched by ``payment_id``), only the
    entries listed ahead of it count; otherwise only entries dated on or before
    ``payment.payment_date`` count. Either way the full history may be passed.
    """
    _check_owner(loan, payment)

    history = list(prior_payments)
    for prior in history:
        _check_owner(loan, prior)

    position = next((i for i, p in enumerate(history) if p.payment_id == payment.payment_id), None)
    if position is not None:
        before = history[:position]
    else:
        before = [p for p in history if p.payment_date <= payment.payment_date]

    ordinal = sum(1 for p in before if _counts_as_installment(p)) + 1
    due = due_date(loan.start_date, loan.installment_frequency, ordinal)
    deadline = due + timedelta(days=loan.grace_period)
    is_late = payment.payment_date > deadline

    logger.debug(
        "Payment %s on %s settles installment %d (due %s, late after %s): late=%s",
        payment.payment_id,
        payment.payment_date,
        ordinal,
        due,
        deadline,
        is_late,
        extra=log_context(loan.loan_id, payment.payment_id, installment=ordinal, late=is_late),
    )
    return is_late


def aggregate_outstanding(loans: Iterable[Loan]) -> Decimal:
    """Sum of remaining balances over loans that are not paid."""
    total = ZERO
    for loan in loans:
        if loan.status == LoanStatus.PAID:
            continue
        total += validate_amount(loan.remaining_balance, "remaining_balance", max_amount=None)
    return total


def derive_penalty(loan: Loan) -> Decimal:
    """Penalty for one late installment: ``penalty_rate`` percent of the installment."""
    rate = validate_rate(loan.penalty_rate, "penalty_rate")
    installment = validate_amount(loan.installment_amount, "installment_amount", max_amount=None)
    return (installment * rate / 100).quantize(CENT, rounding=ROUND_HALF_UP)


def open_loan(
    principal: Any,
    interest_rate: Any,
    term: int,
    start_date: date,
    installment_frequency: InstallmentFrequency,
    installment_amount: Any,
    penalty_rate: Any = DEFAULT_PENALTY_RATE,
    grace_period: int = DEFAULT_GRACE_PERIOD,
    loan_id: str | None = None,
    title: str = "",
    lender: str = "",
    purpose: str | None = None,
    notes: str | None = None,
    created_at: datetime | None = None,
) -> Loan:
    """Create a new active loan with its full principal outstanding.

    Raises
    ------
    ValidationError
        With every invalid term listed in ``errors``.
    """
    validate_loan_terms(
        principal=principal,
        interest_rate=interest_rate,
        term=term,
        installment_amount=installment_amount,
        penalty_rate=penalty_rate,
        grace_period=grace_period,
    )
    principal = validate_amount(principal, "principal")

    loan = Loan(
        loan_id=loan_id or str(uuid.uuid4()),
        principal=principal,
        interest_rate=validate_rate(interest_rate),
        term=term,
        start_date=start_date,
        installment_frequency=InstallmentFrequency(installment_frequency),
        installment_amount=validate_amount(installment_amount, "installment_amount"),
        penalty_rate=validate_rate(penalty_rate, "penalty_rate"),
        grace_period=grace_period,
        remaining_balance=principal,
        total_amount=derive_total_amount(principal, interest_rate),
        status=LoanStatus.ACTIVE,
        title=title,
        lender=lender,
        purpose=purpose,
        notes=notes,
        created_at=created_at or datetime.now(),
    )
    logger.debug(
        "Opened loan %s for %s (total %s)",
        loan.loan_id,
        loan.principal,
        loan.total_amount,
        extra=log_context(loan.loan_id),
    )
    return loan


def record_payment(
    loan: Loan,
    amount: Any,
    payment_date: date,
    payment_method: PaymentMethod = PaymentMethod.CASH,
    transaction_fee: Any = ZERO,
    penalty_amount: Any = ZERO,
    is_penalty: bool = False,
    payment_time: time | None = None,
    prior_payments: Sequence[Payment] = (),
    auto_penalty: bool = False,
    payment_id: str | None = None,
    **details: Any,
) -> PaymentResult:
    """Build a completed payment for ``loan``, flag lateness, and apply it.

    Penalty figures are taken from the caller. With ``auto_penalty`` set, a late
    payment recorded without a penalty amount is charged ``derive_penalty(loan)``.

    Parameters
    ----------
    loan : Loan
        Latest snapshot of the loan being paid.
    amount : Any
        Portion applied to the balance.
    payment_date : date
        Date the payment was made.
    prior_payments : Sequence[Payment]
        The loan's earlier payments, used to find the installment being settled.
    auto_penalty : bool
        Derive a penalty for late payments that carry none.
    **details : Any
        Method-specific fields, any of ``PAYMENT_DETAIL_FIELDS``.

    Returns
    -------
    PaymentResult
        Updated loan and the payment as recorded.

    Raises
    ------
    ValidationError
        If an amount is invalid or ``details`` names an unknown field.
    """
    unknown = sorted(set(details) - set(PAYMENT_DETAIL_FIELDS))
    if unknown:
        raise ValidationError(f"Unknown payment detail fields: {', '.join(unknown)}")

    payment = Payment(
        payment_id=payment_id or str(uuid.uuid4()),
        loan_id=loan.loan_id,
        amount=validate_amount(amount, "amount"),
        transaction_fee=validate_amount(transaction_fee, "transaction_fee"),
        penalty_amount=validate_amount(penalty_amount, "penalty_amount"),
        payment_method=PaymentMethod(payment_method),
        payment_date=payment_date,
        payment_time=payment_time,
        is_penalty=is_penalty,
        status=PaymentStatus.COMPLETED,
        created_at=datetime.now(),
        **details,
    )

    is_late = classify_lateness(loan, payment, prior_payments)
    changes: dict[str, Any] = {"is_late_payment": is_late}
    if auto_penalty and is_late and payment.penalty_amount == 0:
        changes["penalty_amount"] = derive_penalty(loan)
        logger.info(
            "Charged penalty %s on late payment %s",
            changes["penalty_amount"],
            payment.payment_id,
            extra=log_context(loan.loan_id, payment.payment_id, penalty_amount=changes["penalty_amount"]),
        )

    return apply_payment(loan, replace(payment, **changes))


def next_due_date(loan: Loan, payments: Iterable[Payment] = ()) -> date | None:
    """Due date of the next unpaid installment, or None once the loan is paid.

    Only completed, non-penalty payments settle an installment.
    """
    if loan.status == LoanStatus.PAID or loan.remaining_balance <= 0:
        return None

    settled = 0
    for payment in payments:
        _check_owner(loan, payment)
        if _counts_as_installment(payment):
            settled += 1
    return due_date(loan.start_date, loan.installment_frequency, settled + 1)


def is_overdue(loan: Loan, payments: Iterable[Payment], as_of: date) -> bool:
    """Whether the next installment is past its due date plus grace period on ``as_of``.

    The ledger never sets ``overdue`` itself; callers decide what to do with this.
    """
    due = next_due_date(loan, payments)
    if due is None:
        return False
    return as_of > due + timedelta(days=loan.grace_period)


def summarize_loan(loan: Loan, payments: Iterable[Payment]) -> LoanSummary:
    """Totals for one loan from its completed payments.

    Amounts are coerced to ``Decimal``; NaN or negative figures raise
    ``ValidationError``.
    """
    total_paid = total_fees = total_penalties = ZERO
    payment_count = late_count = 0

    for payment in payments:
        _check_owner(loan, payment)
        if payment.status != PaymentStatus.COMPLETED:
            continue
        total_paid += validate_amount(payment.amount, "amount", max_amount=None)
        total_fees += validate_amount(payment.transaction_fee, "transaction_fee", max_amount=None)
        total_penalties += validate_amount(payment.penalty_amount, "penalty_amount", max_amount=None)
        payment_count += 1
        if payment.is_late_payment:
            late_count += 1

    if loan.principal > 0:
        repaid = (loan.principal - loan.remaining_balance) / loan.principal * 100
        progress = min(max(repaid, ZERO), Decimal("100")).quantize(CENT, rounding=ROUND_HALF_UP)
    else:
        progress = Decimal("100.00")

    return LoanSummary(
        loan_id=loan.loan_id,
        total_amount=loan.total_amount,
        remaining_balance=loan.remaining_balance,
        total_paid=total_paid,
        total_fees=total_fees,
        total_penalties=total_penalties,
        total_cash_out=total_paid + total_fees + total_penalties,
        payment_count=payment_count,
        late_payment_count=late_count,
        progress=progress,
    )


def summarize_portfolio(loans: Iterable[Loan]) -> PortfolioSummary:
    """Totals and status counts across loans."""
    loans = list(loans)
    counts = {status: 0 for status in LoanStatus}
    for loan in loans:
        counts[LoanStatus(loan.status)] += 1

    return PortfolioSummary(
        total_borrowed=sum((loan.principal for loan in loans), ZERO),
        total_outstanding=aggregate_outstanding(loans),
        active_count=counts[LoanStatus.ACTIVE],
        paid_count=counts[LoanStatus.PAID],
        overdue_count=counts[LoanStatus.OVERDUE],
        defaulted_count=counts[LoanStatus.DEFAULTED],
    )


def _check_owner(loan: Loan, payment: Payment) -> None:
    if payment.loan_id != loan.loan_id:
        raise MismatchedLoanError(
            f"Payment {payment.payment_id} belongs to loan {payment.loan_id}, not {loan.loan_id}"
        )


def _counts_as_installment(payment: Payment) -> bool:
    return payment.status == PaymentStatus.COMPLETED and not payment.is_penalty
