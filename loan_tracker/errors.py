"""Exceptions raised by the loan tracker."""


class InvalidLoanParameters(ValueError):
    """Raised when a loan is described by non-positive or unknown values.

    The check happens before an installment is derived or anything is
    written to the store, so callers can report the problem without cleanup.
    """


class LoanNotFound(LookupError):
    """Raised when a loan id is unknown or belongs to another user."""

    def __init__(self, loan_id: str) -> None:
        super().__init__(f"Loan not found: {loan_id}")
        self.loan_id = loan_id
