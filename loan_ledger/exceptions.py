"""Custom exception hierarchy for loan-ledger."""


class LoanLedgerError(Exception):
    """Base exception for all loan-ledger errors."""


class ValidationError(LoanLedgerError):
    """Raised when numeric input is malformed (negative, NaN, out of range).

    ``errors`` holds every problem found, so callers can report them all at once.
    """

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors if errors is not None else [message]


class MismatchedLoanError(LoanLedgerError):
    """Raised when a payment references a different loan than the one given."""


class LoanNotFoundError(LoanLedgerError):
    """Raised when a referenced loan does not exist in the store."""


class ConfigurationError(LoanLedgerError):
    """Raised when configuration is invalid or missing."""
