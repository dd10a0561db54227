# tests/conftest.py
from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from click.testing import CliRunner

from loan_tracker.data_models import Loan
from loan_tracker.engine import compute_monthly_installment
from loan_tracker.store import LoanStore
from loan_tracker_web.app import create_app

AS_OF = date(2024, 6, 15)


@pytest.fixture
def as_of():
    return AS_OF


@pytest.fixture
def make_loan():
    """Factory for loans with a correctly derived installment."""

    def _factory(
        principal="250000",
        rate="6",
        term=360,
        first_payment_date=date(2024, 1, 1),
        **overrides,
    ):
        installment = overrides.pop(
            "monthly_installment", compute_monthly_installment(principal, rate, term)
        )
        return Loan(
            name=overrides.pop("name", "Home Loan"),
            principal=Decimal(principal),
            annual_rate=Decimal(rate),
            term=term,
            monthly_installment=installment,
            first_payment_date=first_payment_date,
            **overrides,
        )

    return _factory


@pytest.fixture
def store():
    return LoanStore("sqlite://")


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def app():
    return create_app({"TESTING": True, "DATABASE_URL": "sqlite://", "SECRET_KEY": "test"})


@pytest.fixture
def client(app):
    client = app.test_client()
    with client.session_transaction() as sess:
        sess["user_token"] = "web-user"
    return client


@pytest.fixture
def web_store(app):
    return app.extensions["loan_store"]
