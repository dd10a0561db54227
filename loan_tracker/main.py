"""Command‑line interface for the loan tracker.

This module uses the ``click`` library to implement a multi‑command
interface. Users can compute installments and ad-hoc schedules without
storing anything, or keep their loans in a database and view schedules,
portfolio summaries and PDF/JSON/CSV exports.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, List, Optional

import click

from .data_models import LOAN_STATUSES, LOAN_TYPES, Loan, ScheduleEntry
from .demo import demo_loans
from .engine import (
    build_loan,
    compute_monthly_installment,
    days_until_next_payment,
    generate_schedule,
    loan_progress,
    summarize_portfolio,
    term_in_months,
    total_paid_to_date,
)
from .errors import InvalidLoanParameters, LoanNotFound
from .export import export_to_csv, export_to_json, write_schedule_pdf
from .formatter import print_loan, print_loans, print_portfolio, print_schedule
from .store import LoanStore, create_store_from_env

logger = logging.getLogger(__name__)

MAX_ROWS = 120
DATE_FORMATS = ["%Y-%m-%d"]


def parse_amount(value: str) -> Decimal:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("250000") and shorthand with ``k``/``m`` suffixes
    (e.g., "250k" meaning 250_000).
    """
    value = value.strip().lower()
    value = value.replace(",", "")
    factor = Decimal(1)
    if value.endswith("k"):
        factor = Decimal(1_000)
        value = value[:-1]
    elif value.endswith("m"):
        factor = Decimal(1_000_000)
        value = value[:-1]
    try:
        return Decimal(value) * factor
    except InvalidOperation:
        raise click.BadParameter(f"Invalid amount: {value}")


def _as_date(value: Optional[datetime]) -> Optional[date]:
    return value.date() if value else None


def loan_summary(loan: Loan, schedule: List[ScheduleEntry], as_of: date) -> Dict[str, Any]:
    """Per-loan figures shown next to a schedule."""
    completed, total, percent = loan_progress(schedule)
    return {
        "as_of": as_of.isoformat(),
        "total_paid": float(total_paid_to_date(loan, as_of)),
        "days_until_next_payment": days_until_next_payment(loan, as_of),
        "completed_installments": completed,
        "total_installments": total,
        "progress_percent": float(percent),
    }


def write_export(path: Path, loan: Loan, schedule: List[ScheduleEntry], as_of: date) -> None:
    suffix = path.suffix.lower()
    if suffix == ".pdf":
        write_schedule_pdf(path, loan, schedule)
    elif suffix == ".json":
        export_to_json(path, loan, schedule, loan_summary(loan, schedule, as_of))
    elif suffix == ".csv":
        export_to_csv(path, schedule)
    else:
        raise click.BadParameter("Unsupported output format; use .pdf, .json or .csv")
    click.echo(f"Schedule exported to {path}")


def _print_schedule(schedule: List[ScheduleEntry], rows: int) -> None:
    # Limit schedule length printed to avoid flooding the terminal
    if rows and len(schedule) > rows:
        click.echo(f"Schedule has {len(schedule)} rows; showing first {rows} rows.")
        print_schedule(schedule[:rows])
    else:
        print_schedule(schedule)


def _store(ctx: click.Context) -> LoanStore:
    obj = ctx.ensure_object(dict)
    if obj.get("store") is None:
        obj["store"] = create_store_from_env(obj.get("database_url"))
    return obj["store"]


def _user(ctx: click.Context) -> str:
    return ctx.ensure_object(dict)["user"]


@click.group()
@click.option(
    "--database-url",
    envvar="LOAN_TRACKER_DATABASE_URL",
    help="SQLAlchemy URL of the loan database (default: local SQLite file)",
)
@click.option("--user", "user", envvar="LOAN_TRACKER_USER", default="local", show_default=True, help="User the loans belong to")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, database_url: Optional[str], user: str, verbose: bool) -> None:
    """Track loans and their repayment schedules."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    obj = ctx.ensure_object(dict)
    obj.setdefault("database_url", database_url)
    obj.setdefault("user", user)


@cli.command()
@click.option("--principal", "-p", "principal", required=True, help="Loan amount")
@click.option("--rate", "-r", "rate", required=True, type=float, help="Annual interest rate (percent)")
@click.option("--term", "-t", "term", required=True, type=int, help="Term (years for mortgages, months otherwise)")
@click.option("--type", "loan_type", type=click.Choice(LOAN_TYPES), default="cash", show_default=True, help="Loan type")
def installment(principal: str, rate: float, term: int, loan_type: str) -> None:
    """Compute the fixed monthly installment of a loan."""
    try:
        payment = compute_monthly_installment(parse_amount(principal), str(rate), term_in_months(term, loan_type))
    except InvalidLoanParameters as exc:
        raise click.BadParameter(str(exc))
    click.echo(f"Monthly installment: {payment:.2f}")


@cli.command()
@click.option("--principal", "-p", "principal", required=True, help="Loan amount")
@click.option("--rate", "-r", "rate", required=True, type=float, help="Annual interest rate (percent)")
@click.option("--term", "-t", "term", required=True, type=int, help="Term (years for mortgages, months otherwise)")
@click.option("--type", "loan_type", type=click.Choice(LOAN_TYPES), default="cash", show_default=True, help="Loan type")
@click.option("--start-date", "-s", "start_date", required=True, type=click.DateTime(DATE_FORMATS), help="First payment date (YYYY-MM-DD)")
@click.option("--as-of", "as_of", type=click.DateTime(DATE_FORMATS), help="Reference date for payment status (default: today)")
@click.option("--rows", "rows", type=int, default=MAX_ROWS, show_default=True, help="Rows to print (0 for all)")
@click.option("--output", "output", type=str, help="Output file path (.pdf, .json or .csv)")
def schedule(
    principal: str,
    rate: float,
    term: int,
    loan_type: str,
    start_date: datetime,
    as_of: Optional[datetime],
    rows: int,
    output: Optional[str],
) -> None:
    """Compute and print a repayment schedule without storing the loan."""
    as_of_date = _as_date(as_of) or date.today()
    try:
        loan = build_loan("Loan", loan_type, parse_amount(principal), str(rate), term, start_date.date(), as_of_date)
    except InvalidLoanParameters as exc:
        raise click.BadParameter(str(exc))
    entries = generate_schedule(loan, as_of_date)
    if output:
        write_export(Path(output), loan, entries, as_of_date)
        return
    print_loan(loan, total_paid_to_date(loan, as_of_date), days_until_next_payment(loan, as_of_date))
    _print_schedule(entries, rows)


@cli.command()
@click.option("--name", "name", required=True, help="Loan name, e.g. 'Home Loan'")
@click.option("--principal", "-p", "principal", required=True, help="Loan amount")
@click.option("--rate", "-r", "rate", required=True, type=float, help="Annual interest rate (percent)")
@click.option("--term", "-t", "term", required=True, type=int, help="Term (years for mortgages, months otherwise)")
@click.option("--type", "loan_type", type=click.Choice(LOAN_TYPES), default="cash", show_default=True, help="Loan type")
@click.option("--first-payment-date", "-s", "first_payment_date", type=click.DateTime(DATE_FORMATS), help="First payment date (default: today)")
@click.pass_context
def add(
    ctx: click.Context,
    name: str,
    principal: str,
    rate: float,
    term: int,
    loan_type: str,
    first_payment_date: Optional[datetime],
) -> None:
    """Record a new loan."""
    today = date.today()
    try:
        loan = build_loan(
            name, loan_type, parse_amount(principal), str(rate), term, _as_date(first_payment_date) or today, today
        )
        stored = _store(ctx).create_loan(_user(ctx), loan)
    except InvalidLoanParameters as exc:
        raise click.BadParameter(str(exc))
    click.echo(f"Loan created: {stored.id} (monthly installment {stored.monthly_installment:.2f})")


@cli.command(name="list")
@click.pass_context
def list_loans(ctx: click.Context) -> None:
    """List your loans, newest first."""
    loans = _store(ctx).list_loans(_user(ctx))
    if not loans:
        click.echo("No loans yet. Add one with 'loan-tracker add'.")
        return
    print_loans(loans)


def _get_loan(ctx: click.Context, loan_id: str) -> Loan:
    try:
        return _store(ctx).get_loan(_user(ctx), loan_id)
    except LoanNotFound as exc:
        raise click.ClickException(str(exc))


@cli.command()
@click.argument("loan_id")
@click.option("--as-of", "as_of", type=click.DateTime(DATE_FORMATS), help="Reference date for payment status (default: today)")
@click.option("--rows", "rows", type=int, default=MAX_ROWS, show_default=True, help="Rows to print (0 for all)")
@click.pass_context
def show(ctx: click.Context, loan_id: str, as_of: Optional[datetime], rows: int) -> None:
    """Show a loan with its repayment schedule."""
    as_of_date = _as_date(as_of) or date.today()
    loan = _get_loan(ctx, loan_id)
    entries = generate_schedule(loan, as_of_date)
    print_loan(loan, total_paid_to_date(loan, as_of_date), days_until_next_payment(loan, as_of_date))
    if not entries:
        click.echo("No schedule: the loan has no first payment date.")
        return
    completed, total, percent = loan_progress(entries)
    click.echo(f"{completed} of {total} installments completed ({percent:.1f}%)")
    _print_schedule(entries, rows)


@cli.command()
@click.argument("loan_id")
@click.option("--name", "name", help="New loan name")
@click.option("--status", "status", type=click.Choice(LOAN_STATUSES), help="New loan status")
@click.option("--first-payment-date", "first_payment_date", type=click.DateTime(DATE_FORMATS), help="New first payment date")
@click.option("--clear-first-payment-date", is_flag=True, help="Remove the first payment date")
@click.pass_context
def update(
    ctx: click.Context,
    loan_id: str,
    name: Optional[str],
    status: Optional[str],
    first_payment_date: Optional[datetime],
    clear_first_payment_date: bool,
) -> None:
    """Change the name, status or first payment date of a loan."""
    changes: Dict[str, Any] = {"name": name, "status": status}
    if clear_first_payment_date:
        changes["first_payment_date"] = None
    elif first_payment_date:
        changes["first_payment_date"] = first_payment_date.date()
    try:
        loan = _store(ctx).update_loan(_user(ctx), loan_id, **changes)
    except InvalidLoanParameters as exc:
        raise click.BadParameter(str(exc))
    except LoanNotFound as exc:
        raise click.ClickException(str(exc))
    click.echo(f"Loan updated: {loan.id}")


@cli.command()
@click.argument("loan_id")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete(ctx: click.Context, loan_id: str, yes: bool) -> None:
    """Delete a loan."""
    if not yes:
        click.confirm(f"Delete loan {loan_id}?", abort=True)
    try:
        _store(ctx).delete_loan(_user(ctx), loan_id)
    except LoanNotFound as exc:
        raise click.ClickException(str(exc))
    click.echo(f"Loan deleted: {loan_id}")


@cli.command()
@click.argument("loan_id")
@click.argument("output", type=click.Path(dir_okay=False))
@click.option("--as-of", "as_of", type=click.DateTime(DATE_FORMATS), help="Reference date for payment status (default: today)")
@click.pass_context
def export(ctx: click.Context, loan_id: str, output: str, as_of: Optional[datetime]) -> None:
    """Export the repayment schedule of a loan (.pdf, .json or .csv)."""
    as_of_date = _as_date(as_of) or date.today()
    loan = _get_loan(ctx, loan_id)
    write_export(Path(output), loan, generate_schedule(loan, as_of_date), as_of_date)


@cli.command()
@click.option("--as-of", "as_of", type=click.DateTime(DATE_FORMATS), help="Reference date (default: today)")
@click.pass_context
def dashboard(ctx: click.Context, as_of: Optional[datetime]) -> None:
    """Print the portfolio summary of your active loans."""
    as_of_date = _as_date(as_of) or date.today()
    print_portfolio(summarize_portfolio(_store(ctx).list_loans(_user(ctx)), as_of_date))


@cli.command()
@click.option("--as-of", "as_of", type=click.DateTime(DATE_FORMATS), help="Reference date (default: today)")
def demo(as_of: Optional[datetime]) -> None:
    """Print the dashboard for a sample portfolio."""
    as_of_date = _as_date(as_of) or date.today()
    loans = demo_loans()
    print_loans(loans)
    print_portfolio(summarize_portfolio(loans, as_of_date))


if __name__ == "__main__":
    cli()
