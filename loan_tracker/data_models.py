"""Data models for the loan tracker.

This module defines dataclasses representing the different entities used by
the tracker: the stored loan record, the computed schedule entries, the
portfolio rollup shown on the dashboard and the user profile. Using
dataclasses makes it easy to construct, inspect and serialize these
structures.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from .utils import decimal_from_str, to_date

LOAN_TYPES = ("mortgage", "cash", "installment")
LOAN_STATUSES = ("active", "completed", "defaulted")

PAID = "paid"
UPCOMING = "upcoming"
PENDING = "pending"
PAYMENT_STATUSES = (PAID, UPCOMING, PENDING)


@dataclass
class Loan:
    """A loan as recorded by a user.

    Attributes
    ----------
    principal: Decimal
        The original borrowed sum.
    annual_rate: Decimal
        Nominal annual interest rate in percent (``5.5`` means 5.5 %).
    term: int
        Number of monthly payments. Mortgages are entered in years and
        converted to months before the loan is built.
    monthly_installment: Decimal
        Fixed payment, derived once when the loan is created.
    first_payment_date: date, optional
        Date of the first scheduled payment. Loans without one produce an
        empty schedule.
    """

    name: str
    principal: Decimal
    annual_rate: Decimal
    term: int
    monthly_installment: Decimal
    first_payment_date: Optional[date] = None
    loan_type: str = "cash"
    status: str = "active"
    start_date: Optional[date] = None
    id: Optional[str] = None
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        # Records coming from forms or JSON carry floats and ISO strings.
        self.principal = decimal_from_str(self.principal)
        self.annual_rate = decimal_from_str(self.annual_rate)
        self.monthly_installment = decimal_from_str(self.monthly_installment)
        self.term = int(self.term)
        self.first_payment_date = to_date(self.first_payment_date)
        self.start_date = to_date(self.start_date)


@dataclass
class ScheduleEntry:
    """One scheduled payment and its breakdown.

    ``status`` is relative to the ``as_of`` date the schedule was generated
    for and is never stored.
    """

    period: int
    payment_date: date
    amount: Decimal
    principal_portion: Decimal
    interest_portion: Decimal
    remaining_balance: Decimal
    status: str


@dataclass
class PortfolioSummary:
    """Rollup of the active loans of one user."""

    total_loans: int
    active_loans: int
    total_amount: Decimal
    total_paid: Decimal
    monthly_installments: Decimal
    balance_due: Decimal
    completion_percentage: Decimal


@dataclass
class UserProfile:
    user_id: str
    name: str = ""
    email: str = ""
    city: str = ""
    province_id: int = 7
    email_notifications: bool = True
    sms_notifications: bool = False
