# tests/test_utils.py
from datetime import date, datetime
from decimal import Decimal

import pytest

from loan_tracker.data_models import Loan
from loan_tracker.utils import add_months, decimal_from_str, format_money, months_between, parse_date, to_date


@pytest.mark.parametrize(
    "start, months, expected",
    [
        (date(2024, 1, 31), 1, date(2024, 2, 29)),
        (date(2023, 1, 31), 1, date(2023, 2, 28)),
        (date(2024, 12, 15), 1, date(2025, 1, 15)),
        (date(2024, 3, 31), 12, date(2025, 3, 31)),
        (date(2024, 5, 1), 0, date(2024, 5, 1)),
    ],
)
def test_add_months(start, months, expected):
    assert add_months(start, months) == expected


def test_months_between_ignores_days():
    assert months_between(date(2024, 1, 31), date(2024, 2, 1)) == 1
    assert months_between(date(2023, 1, 1), date(2024, 6, 15)) == 17
    assert months_between(date(2024, 7, 1), date(2024, 6, 30)) == -1


def test_parse_date_variants():
    assert parse_date("2024-06-15") == date(2024, 6, 15)
    assert parse_date("2024-06") == date(2024, 6, 1)
    assert parse_date("2024-06-15T00:00:00.000Z") == date(2024, 6, 15)


@pytest.mark.parametrize("value", ["", "June", "2024-13-01", "2024-02-30"])
def test_parse_date_rejects_garbage(value):
    with pytest.raises(ValueError):
        parse_date(value)


def test_to_date():
    assert to_date(None) is None
    assert to_date("") is None
    assert to_date(datetime(2024, 6, 15, 12, 30)) == date(2024, 6, 15)
    assert to_date("2024-06-15") == date(2024, 6, 15)


def test_decimal_from_str():
    assert decimal_from_str("1,234.50") == Decimal("1234.50")
    assert decimal_from_str("$99") == Decimal("99")
    assert decimal_from_str(0.1) == Decimal("0.1")
    with pytest.raises(ValueError):
        decimal_from_str("abc")


def test_format_money():
    assert format_money(Decimal("1498.8760")) == "$1498.88"


def test_loan_coerces_form_values():
    loan = Loan(
        name="Car",
        principal=35000.0,
        annual_rate="5.5",
        term="60",
        monthly_installment="668.54",
        first_payment_date="2024-03-15",
    )
    assert loan.principal == Decimal("35000.0")
    assert loan.annual_rate == Decimal("5.5")
    assert loan.term == 60
    assert loan.first_payment_date == date(2024, 3, 15)
    assert loan.start_date is None
