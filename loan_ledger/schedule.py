"""Calendar arithmetic for installment due dates.

Monthly offsets clamp to the last day of the target month: a loan started on
January 31 falls due on February 28 (29 in leap years), then March 31, April 30
and so on. Every offset is taken from the start date, so one short month does
not drag later due dates back.
"""

import calendar
from datetime import date, timedelta

from loan_ledger.exceptions import ValidationError
from loan_ledger.models.enums import InstallmentFrequency


def add_months(start: date, months: int) -> date:
    """Add calendar months to a date, clamping the day to the month's length."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def due_date(start: date, frequency: InstallmentFrequency, ordinal: int) -> date:
    """Due date of installment number ``ordinal`` (1-based).

    Parameters
    ----------
    start : date
        Date the loan starts accruing obligation.
    frequency : InstallmentFrequency
        Installment cadence.
    ordinal : int
        Installment number, starting at 1.

    Returns
    -------
    date
        The installment's due date.
    """
    if ordinal < 1:
        raise ValidationError(f"Installment ordinal must be at least 1, got {ordinal}")

    frequency = InstallmentFrequency(frequency)
    if frequency == InstallmentFrequency.DAILY:
        return start + timedelta(days=ordinal)
    elif frequency == InstallmentFrequency.WEEKLY:
        return start + timedelta(weeks=ordinal)
    else:  # MONTHLY
        return add_months(start, ordinal)


def installment_schedule(start: date, frequency: InstallmentFrequency, count: int) -> list[date]:
    """First ``count`` due dates for a loan."""
    if count < 0:
        raise ValidationError(f"Installment count cannot be negative, got {count}")
    return [due_date(start, frequency, n) for n in range(1, count + 1)]
