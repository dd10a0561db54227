"""Output helpers for the loan tracker.

This module provides simple functions to render loans, amortization schedules
and portfolio summaries in a tabular text format for the terminal. Values are
rounded to cents only here; the engine never rounds.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Optional

from .data_models import Loan, PortfolioSummary, ScheduleEntry


def print_loan(loan: Loan, paid: Optional[Decimal] = None, days_to_next: Optional[int] = None) -> None:
    """Print the header block of a single loan."""
    print(f"Loan               : {loan.name or 'Unnamed Loan'}")
    print("-" * 72)
    if loan.id:
        print(f"Id                 : {loan.id}")
    print(f"Type               : {loan.loan_type}")
    print(f"Status             : {loan.status}")
    print(f"Principal          : {loan.principal:.2f}")
    print(f"Interest rate      : {loan.annual_rate}%")
    print(f"Term               : {loan.term} months")
    print(f"Monthly payment    : {loan.monthly_installment:.2f}")
    if loan.first_payment_date:
        print(f"First payment      : {loan.first_payment_date.isoformat()}")
    else:
        print("First payment      : not scheduled")
    if paid is not None:
        print(f"Total paid         : {paid:.2f}")
    if days_to_next is not None and loan.first_payment_date:
        print(f"Next payment in    : {days_to_next} days")
    print("-" * 72)


def print_schedule(schedule: Iterable[ScheduleEntry]) -> None:
    """Print the amortization schedule as a simple table."""
    headers = [
        "Period",
        "Date",
        "Amount",
        "Principal",
        "Interest",
        "Balance",
        "Status",
    ]
    print("\t".join(headers))
    for entry in schedule:
        row = [
            str(entry.period),
            entry.payment_date.isoformat(),
            f"{entry.amount:.2f}",
            f"{entry.principal_portion:.2f}",
            f"{entry.interest_portion:.2f}",
            f"{entry.remaining_balance:.2f}",
            entry.status.capitalize(),
        ]
        print("\t".join(row))


def print_loans(loans: Iterable[Loan]) -> None:
    """Print one line per loan, newest first as returned by the store."""
    print(f"{'Id':34s} {'Name':24s} {'Status':10s} {'Amount':>12s} {'Monthly':>10s}")
    for loan in loans:
        print(
            f"{(loan.id or ''):34s} {(loan.name or 'Unnamed Loan')[:24]:24s} {loan.status:10s} "
            f"{loan.principal:12.2f} {loan.monthly_installment:10.2f}"
        )


def print_portfolio(summary: PortfolioSummary) -> None:
    """Print the dashboard rollup."""
    print("Portfolio")
    print("=" * 72)
    print(f"Total loans        : {summary.total_loans}")
    print(f"Active loans       : {summary.active_loans}")
    print(f"Monthly payments   : {summary.monthly_installments:.2f}")
    print(f"Total amount       : {summary.total_amount:.2f}")
    print(f"Total paid         : {summary.total_paid:.2f}")
    print(f"Balance due        : {summary.balance_due:.2f}")
    print(f"Completion         : {summary.completion_percentage:.1f}%")
    print("=" * 72)
