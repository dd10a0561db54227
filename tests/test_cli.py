# tests/test_cli.py
from datetime import date

from loan_tracker.main import cli, parse_amount


def _invoke(runner, store, args, user="alice", **kwargs):
    return runner.invoke(cli, args, obj={"store": store, "user": user}, **kwargs)


def test_parse_amount_suffixes():
    assert parse_amount("250k") == 250_000
    assert parse_amount("1.5m") == 1_500_000
    assert parse_amount("35,000") == 35_000


def test_installment_command(runner):
    result = runner.invoke(cli, ["installment", "-p", "250k", "-r", "6", "-t", "30", "--type", "mortgage"])
    assert result.exit_code == 0, result.output
    assert "Monthly installment: 1498.88" in result.output


def test_installment_rejects_zero_principal(runner):
    result = runner.invoke(cli, ["installment", "-p", "0", "-r", "6", "-t", "12"])
    assert result.exit_code != 0
    assert "Principal must be positive" in result.output


def test_installment_rejects_non_finite_values(runner):
    result = runner.invoke(cli, ["installment", "-p", "1000", "-r", "inf", "-t", "12"])
    assert result.exit_code == 2
    assert "Interest rate must be a finite number" in result.output

    result = runner.invoke(cli, ["installment", "-p", "nan", "-r", "6", "-t", "12"])
    assert result.exit_code == 2
    assert "Principal must be a finite number" in result.output


def test_add_rejects_non_finite_principal(runner, store):
    result = _invoke(runner, store, ["add", "--name", "Bad", "-p", "nan", "-r", "6", "-t", "12"])
    assert result.exit_code == 2
    assert store.list_loans("alice") == []


def test_update_rejects_blank_name(runner, store, make_loan):
    loan = store.create_loan("alice", make_loan())
    result = _invoke(runner, store, ["update", loan.id, "--name", "  "])
    assert result.exit_code == 2
    assert "Loan name is required" in result.output
    assert store.get_loan("alice", loan.id).name == "Home Loan"


def test_schedule_command_prints_statuses(runner):
    result = runner.invoke(
        cli,
        ["schedule", "-p", "12000", "-r", "6", "-t", "12", "-s", "2024-05-01", "--as-of", "2024-06-15", "--rows", "0"],
    )
    assert result.exit_code == 0, result.output
    assert "2024-05-01" in result.output
    assert "2025-04-01" in result.output
    assert "Paid" in result.output
    assert "Upcoming" in result.output
    assert "Pending" in result.output


def test_schedule_command_exports_csv(runner, tmp_path):
    output = tmp_path / "out.csv"
    result = runner.invoke(
        cli, ["schedule", "-p", "12000", "-r", "6", "-t", "12", "-s", "2024-05-01", "--output", str(output)]
    )
    assert result.exit_code == 0, result.output
    assert len(output.read_text(encoding="utf-8").splitlines()) == 13


def test_add_list_show_dashboard(runner, store):
    result = _invoke(
        runner,
        store,
        ["add", "--name", "Home", "-p", "250000", "-r", "6", "-t", "30", "--type", "mortgage", "-s", "2023-01-01"],
    )
    assert result.exit_code == 0, result.output
    loan = store.list_loans("alice")[0]
    assert loan.term == 360
    assert loan.first_payment_date == date(2023, 1, 1)

    result = _invoke(runner, store, ["list"])
    assert loan.id in result.output
    assert "Home" in result.output

    result = _invoke(runner, store, ["show", loan.id, "--as-of", "2024-06-15", "--rows", "24"])
    assert result.exit_code == 0, result.output
    assert "18 of 360 installments completed" in result.output
    assert "showing first 24 rows" in result.output

    result = _invoke(runner, store, ["dashboard", "--as-of", "2024-06-15"])
    assert result.exit_code == 0, result.output
    assert "Active loans       : 1" in result.output
    assert "Total amount       : 250000.00" in result.output


def test_list_empty(runner, store):
    result = _invoke(runner, store, ["list"])
    assert result.exit_code == 0
    assert "No loans yet" in result.output


def test_update_and_delete(runner, store, make_loan):
    loan = store.create_loan("alice", make_loan())
    result = _invoke(runner, store, ["update", loan.id, "--status", "defaulted", "--clear-first-payment-date"])
    assert result.exit_code == 0, result.output
    updated = store.get_loan("alice", loan.id)
    assert updated.status == "defaulted"
    assert updated.first_payment_date is None

    result = _invoke(runner, store, ["delete", loan.id], input="n\n")
    assert result.exit_code != 0
    assert store.list_loans("alice")

    result = _invoke(runner, store, ["delete", loan.id, "--yes"])
    assert result.exit_code == 0, result.output
    assert store.list_loans("alice") == []


def test_show_unknown_loan_fails(runner, store, make_loan):
    loan = store.create_loan("bob", make_loan())
    result = _invoke(runner, store, ["show", loan.id])
    assert result.exit_code == 1
    assert "Loan not found" in result.output


def test_export_pdf(runner, store, make_loan, tmp_path):
    loan = store.create_loan("alice", make_loan())
    output = tmp_path / "schedule.pdf"
    result = _invoke(runner, store, ["export", loan.id, str(output), "--as-of", "2024-06-15"])
    assert result.exit_code == 0, result.output
    assert output.read_bytes().startswith(b"%PDF")


def test_export_rejects_unknown_suffix(runner, store, make_loan, tmp_path):
    loan = store.create_loan("alice", make_loan())
    result = _invoke(runner, store, ["export", loan.id, str(tmp_path / "schedule.txt")])
    assert result.exit_code != 0


def test_demo_command(runner):
    result = runner.invoke(cli, ["demo", "--as-of", "2024-06-15"])
    assert result.exit_code == 0, result.output
    assert "Home Mortgage" in result.output
    assert "Total amount       : 285000.00" in result.output
    assert "Monthly payments   : 2002.80" in result.output
