"""Numeric input guards shared by the ledger and its callers."""

from decimal import Decimal, InvalidOperation
from typing import Any

from loan_ledger.exceptions import ValidationError

MAX_AMOUNT = Decimal("1000000000")
MAX_INTEREST_RATE = Decimal("100")


def _to_decimal(value: Any) -> Decimal | None:
    """Convert to Decimal, or None when the value is not a number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    if isinstance(value, str):
        try:
            return Decimal(value.strip())
        except InvalidOperation:
            return None
    return None


def check_amount(value: Any, field: str = "amount", max_amount: Decimal | None = MAX_AMOUNT) -> list[str]:
    """Return the problems with a money amount (empty when valid)."""
    amount = _to_decimal(value)
    if amount is None or not amount.is_finite():
        return [f"{field}: please enter a valid number"]
    if amount < 0:
        return [f"{field}: amount cannot be negative"]
    if max_amount is not None and amount > max_amount:
        return [f"{field}: amount is too large"]
    return []


def validate_amount(value: Any, field: str = "amount", max_amount: Decimal | None = MAX_AMOUNT) -> Decimal:
    """Validate a money amount and return it as a Decimal.

    Raises
    ------
    ValidationError
        If the value is not a finite number, is negative, or exceeds ``max_amount``.
    """
    errors = check_amount(value, field, max_amount)
    if errors:
        raise ValidationError(errors[0], errors)
    return _to_decimal(value)  # type: ignore[return-value]


def validate_rate(value: Any, field: str = "interest_rate", maximum: Decimal | None = MAX_INTEREST_RATE) -> Decimal:
    """Validate a percentage rate and return it as a Decimal."""
    rate = _to_decimal(value)
    if rate is None or not rate.is_finite():
        raise ValidationError(f"{field}: must be a valid number")
    if rate < 0:
        raise ValidationError(f"{field}: cannot be negative")
    if maximum is not None and rate > maximum:
        raise ValidationError(f"{field}: cannot exceed {maximum}%")
    return rate


def validate_loan_terms(
    principal: Any,
    interest_rate: Any,
    term: Any,
    installment_amount: Any,
    penalty_rate: Any = Decimal("0"),
    grace_period: Any = 0,
    max_amount: Decimal = MAX_AMOUNT,
) -> None:
    """Check every numeric term of a new loan and report all problems at once.

    Raises
    ------
    ValidationError
        With ``errors`` listing each invalid field.
    """
    errors: list[str] = []

    errors.extend(check_amount(principal, "principal", max_amount))
    errors.extend(check_amount(installment_amount, "installment_amount", max_amount))

    for field, value in (("interest_rate", interest_rate), ("penalty_rate", penalty_rate)):
        try:
            validate_rate(value, field)
        except ValidationError as e:
            errors.extend(e.errors)

    if isinstance(term, bool) or not isinstance(term, int) or term <= 0:
        errors.append("term: loan term must be a positive number")

    if isinstance(grace_period, bool) or not isinstance(grace_period, int) or grace_period < 0:
        errors.append("grace_period: must be a non-negative number of days")

    if errors:
        raise ValidationError(f"Invalid loan terms: {'; '.join(errors)}", errors)
