# tests/test_store.py
from datetime import date, datetime
from decimal import Decimal

import pytest

from loan_tracker.data_models import UserProfile
from loan_tracker.errors import InvalidLoanParameters, LoanNotFound


def test_create_and_get_preserves_values(store, make_loan):
    loan = make_loan(loan_type="mortgage", start_date=date(2023, 12, 1))
    stored = store.create_loan("alice", loan)

    assert stored.id
    assert stored.user_id == "alice"
    fetched = store.get_loan("alice", stored.id)
    assert fetched.principal == Decimal("250000")
    assert fetched.annual_rate == Decimal("6")
    assert fetched.term == 360
    assert fetched.monthly_installment == loan.monthly_installment
    assert fetched.first_payment_date == date(2024, 1, 1)
    assert fetched.start_date == date(2023, 12, 1)
    assert fetched.loan_type == "mortgage"
    assert fetched.status == "active"


def test_list_is_scoped_and_newest_first(store, make_loan):
    store.create_loan("alice", make_loan(name="Old", created_at=datetime(2024, 1, 1)))
    store.create_loan("alice", make_loan(name="New", created_at=datetime(2024, 2, 1)))
    store.create_loan("bob", make_loan(name="Bob's"))

    assert [loan.name for loan in store.list_loans("alice")] == ["New", "Old"]
    assert [loan.name for loan in store.list_loans("bob")] == ["Bob's"]
    assert store.list_loans("") == []


def test_other_users_cannot_read_or_change(store, make_loan):
    stored = store.create_loan("alice", make_loan())
    with pytest.raises(LoanNotFound):
        store.get_loan("bob", stored.id)
    with pytest.raises(LoanNotFound):
        store.update_loan("bob", stored.id, name="Mine now")
    with pytest.raises(LoanNotFound):
        store.delete_loan("bob", stored.id)
    assert store.get_loan("alice", stored.id).name == "Home Loan"


def test_create_requires_user(store, make_loan):
    with pytest.raises(InvalidLoanParameters):
        store.create_loan("", make_loan())


def test_update_mutable_fields(store, make_loan):
    stored = store.create_loan("alice", make_loan())
    updated = store.update_loan(
        "alice", stored.id, name=" Renamed ", status="completed", first_payment_date=date(2024, 3, 1)
    )
    assert updated.name == "Renamed"
    assert updated.status == "completed"
    assert updated.first_payment_date == date(2024, 3, 1)
    assert updated.principal == stored.principal

    cleared = store.update_loan("alice", stored.id, first_payment_date=None)
    assert cleared.first_payment_date is None
    assert cleared.name == "Renamed"


def test_update_rejects_unknown_status(store, make_loan):
    stored = store.create_loan("alice", make_loan())
    with pytest.raises(InvalidLoanParameters):
        store.update_loan("alice", stored.id, status="forgiven")


def test_update_rejects_blank_name(store, make_loan):
    stored = store.create_loan("alice", make_loan())
    with pytest.raises(InvalidLoanParameters, match="name"):
        store.update_loan("alice", stored.id, name="   ")
    assert store.get_loan("alice", stored.id).name == "Home Loan"


def test_delete(store, make_loan):
    stored = store.create_loan("alice", make_loan())
    store.delete_loan("alice", stored.id)
    assert store.list_loans("alice") == []
    with pytest.raises(LoanNotFound):
        store.get_loan("alice", stored.id)
    with pytest.raises(LoanNotFound):
        store.delete_loan("alice", stored.id)


def test_profile_defaults_and_save(store):
    profile = store.get_profile("alice")
    assert profile == UserProfile(user_id="alice")
    assert profile.province_id == 7

    store.save_profile(
        UserProfile(user_id="alice", name="Alice", email="alice@example.com", city="Kraków", province_id=6)
    )
    saved = store.get_profile("alice")
    assert saved.name == "Alice"
    assert saved.city == "Kraków"
    assert saved.province_id == 6
    assert saved.email_notifications is True
    assert saved.sms_notifications is False
