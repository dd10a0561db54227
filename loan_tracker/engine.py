"""Core calculation engine for the loan tracker.

This module implements the financial logic behind the dashboard: deriving the
fixed monthly installment of an amortizing loan, expanding a loan into its
month-by-month repayment schedule and rolling loans up into portfolio
metrics. Every function is pure; the reference date used to classify
payments is passed in explicitly as ``as_of`` (defaulting to today, read once
per call) so results are reproducible.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal, getcontext
from typing import Iterable, Iterator, List, Optional, Tuple, Union

from .data_models import (
    LOAN_TYPES,
    PAID,
    PENDING,
    UPCOMING,
    Loan,
    PortfolioSummary,
    ScheduleEntry,
)
from .errors import InvalidLoanParameters
from .utils import add_months, decimal_from_str, months_between

getcontext().prec = 28  # increase precision for financial calculations

Number = Union[int, float, str, Decimal]

UPCOMING_WINDOW_DAYS = 30
ZERO = Decimal("0")


def _monthly_rate(annual_rate: Decimal) -> Decimal:
    return annual_rate / Decimal(100) / Decimal(12)


def compute_monthly_installment(principal: Number, annual_rate: Number, term: int) -> Decimal:
    """Return the annuity (equal installment) monthly payment for a loan.

    The formula is:

        payment = P * (i * (1 + i)^n) / ((1 + i)^n - 1)

    where ``P`` is the principal, ``i`` is the monthly interest rate
    (``annual_rate / 100 / 12``) and ``n`` is the number of monthly payments.
    No rounding is applied.

    Raises
    ------
    InvalidLoanParameters
        If the principal or the rate is not a finite positive number, or the
        term is not a positive number of months.
    """
    principal = decimal_from_str(principal)
    annual_rate = decimal_from_str(annual_rate)
    if not principal.is_finite():
        raise InvalidLoanParameters("Principal must be a finite number")
    if not annual_rate.is_finite():
        raise InvalidLoanParameters("Interest rate must be a finite number")
    if principal <= 0:
        raise InvalidLoanParameters("Principal must be positive")
    if annual_rate <= 0:
        raise InvalidLoanParameters("Interest rate must be positive")
    if int(term) != term or term <= 0:
        raise InvalidLoanParameters("Term must be a positive number of months")
    rate = _monthly_rate(annual_rate)
    factor = (1 + rate) ** int(term)
    return principal * (rate * factor) / (factor - 1)


def term_in_months(term: int, loan_type: str) -> int:
    """Convert a user-entered term to months (mortgages are entered in years)."""
    if loan_type == "mortgage":
        return term * 12
    return term


def build_loan(
    name: str,
    loan_type: str,
    principal: Number,
    annual_rate: Number,
    term: int,
    first_payment_date: Optional[date],
    start_date: Optional[date] = None,
) -> Loan:
    """Validate user input and return a new active loan.

    ``term`` is in the unit of the loan type (years for mortgages, months
    otherwise). The returned loan has no id yet; the store assigns one.
    """
    loan_type = loan_type.lower()
    if loan_type not in LOAN_TYPES:
        raise InvalidLoanParameters(f"Unknown loan type: {loan_type}")
    if int(term) != term or term <= 0:
        raise InvalidLoanParameters("Term must be a positive number")
    months = term_in_months(int(term), loan_type)
    installment = compute_monthly_installment(principal, annual_rate, months)
    return Loan(
        name=name.strip(),
        principal=decimal_from_str(principal),
        annual_rate=decimal_from_str(annual_rate),
        term=months,
        monthly_installment=installment,
        first_payment_date=first_payment_date,
        loan_type=loan_type,
        status="active",
        start_date=start_date or date.today(),
    )


def classify_payment(payment_date: date, as_of: date) -> str:
    """Return ``paid``, ``upcoming`` or ``pending`` for a payment date.

    Dates before ``as_of`` are assumed paid; dates within the next 30 days
    (inclusive, today counts) are upcoming.
    """
    if payment_date < as_of:
        return PAID
    if (payment_date - as_of).days <= UPCOMING_WINDOW_DAYS:
        return UPCOMING
    return PENDING


def iter_schedule(loan: Loan, as_of: Optional[date] = None) -> Iterator[ScheduleEntry]:
    """Yield the schedule entries of ``loan`` one period at a time.

    Each call starts from the loan's principal, so the generator can be
    restarted freely. Nothing is yielded when the loan has no first payment
    date.
    """
    if loan.first_payment_date is None:
        return
    as_of = as_of or date.today()
    rate = _monthly_rate(loan.annual_rate)
    installment = loan.monthly_installment
    balance = loan.principal
    for index in range(loan.term):
        payment_date = add_months(loan.first_payment_date, index)
        interest = balance * rate
        principal_portion = installment - interest
        balance = max(ZERO, balance - principal_portion)
        yield ScheduleEntry(
            period=index + 1,
            payment_date=payment_date,
            amount=installment,
            principal_portion=principal_portion,
            interest_portion=interest,
            remaining_balance=balance,
            status=classify_payment(payment_date, as_of),
        )


def generate_schedule(loan: Loan, as_of: Optional[date] = None) -> List[ScheduleEntry]:
    """Compute the full amortization schedule of a loan.

    Parameters
    ----------
    loan: Loan
        The loan to expand. ``term`` entries are produced, dated one calendar
        month apart starting at ``first_payment_date``.
    as_of: date, optional
        Reference date for the payment status. Defaults to today.

    Returns
    -------
    List[ScheduleEntry]
        Entries ordered by payment date; empty when the loan has no first
        payment date or a zero term.
    """
    return list(iter_schedule(loan, as_of or date.today()))


def loan_progress(schedule: Iterable[ScheduleEntry]) -> Tuple[int, int, Decimal]:
    """Return ``(completed, total, percent)`` for a generated schedule."""
    entries = list(schedule)
    total = len(entries)
    completed = sum(1 for e in entries if e.status == PAID)
    if total == 0:
        return 0, 0, ZERO
    return completed, total, Decimal(completed) / Decimal(total) * 100


def next_payment(schedule: Iterable[ScheduleEntry]) -> Optional[ScheduleEntry]:
    """First entry that is not yet paid, if any."""
    for entry in schedule:
        if entry.status != PAID:
            return entry
    return None


def total_paid_to_date(loan: Loan, as_of: Optional[date] = None) -> Decimal:
    """Approximate amount repaid so far.

    Assumes every installment due up to ``as_of`` was paid. Elapsed months
    are counted on calendar month components only, and the current month's
    installment counts as paid.
    """
    if loan.first_payment_date is None:
        return ZERO
    as_of = as_of or date.today()
    elapsed = months_between(loan.first_payment_date, as_of)
    if elapsed < 0:
        return ZERO
    payments_count = min(elapsed + 1, loan.term)
    return payments_count * loan.monthly_installment


def loan_paid_percentage(loan: Loan, as_of: Optional[date] = None) -> Decimal:
    """Share of the principal covered by :func:`total_paid_to_date`, in percent."""
    if loan.principal <= 0:
        return ZERO
    return total_paid_to_date(loan, as_of) / loan.principal * 100


def days_until_next_payment(loan: Loan, as_of: Optional[date] = None) -> int:
    """Days from ``as_of`` to the first payment date on or after it.

    Returns 0 when the loan has no first payment date or a payment falls due
    on ``as_of`` itself.
    """
    if loan.first_payment_date is None:
        return 0
    as_of = as_of or date.today()
    next_date = loan.first_payment_date
    while next_date < as_of:
        # each step builds on the previous, so a clamped day stays clamped
        next_date = add_months(next_date, 1)
    return (next_date - as_of).days


def summarize_portfolio(loans: Iterable[Loan], as_of: Optional[date] = None) -> PortfolioSummary:
    """Roll up the active loans of a portfolio.

    ``total_loans`` counts every loan; the monetary figures only cover loans
    whose status is ``active``. The completion percentage is zero when there
    is nothing outstanding.
    """
    as_of = as_of or date.today()
    loans = list(loans)
    active = [loan for loan in loans if loan.status == "active"]
    total_amount = sum((loan.principal for loan in active), ZERO)
    total_paid = sum((total_paid_to_date(loan, as_of) for loan in active), ZERO)
    monthly = sum((loan.monthly_installment for loan in active), ZERO)
    if total_amount > 0:
        completion = total_paid / total_amount * 100
    else:
        completion = ZERO
    return PortfolioSummary(
        total_loans=len(loans),
        active_loans=len(active),
        total_amount=total_amount,
        total_paid=total_paid,
        monthly_installments=monthly,
        balance_due=total_amount - total_paid,
        completion_percentage=completion,
    )
