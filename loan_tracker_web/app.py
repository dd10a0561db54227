import os
from datetime import date
from io import BytesIO
from uuid import uuid4

from flask import Flask, abort, current_app, flash, redirect, render_template, request, send_file, session, url_for

from loan_tracker.data_models import LOAN_STATUSES, LOAN_TYPES, UserProfile
from loan_tracker.demo import PROVINCES, demo_loans, province_name
from loan_tracker.engine import (
    build_loan,
    days_until_next_payment,
    generate_schedule,
    loan_paid_percentage,
    loan_progress,
    next_payment,
    summarize_portfolio,
    total_paid_to_date,
)
from loan_tracker.errors import InvalidLoanParameters, LoanNotFound
from loan_tracker.export import export_schedule_pdf, pdf_filename
from loan_tracker.store import LoanStore, create_store_from_env
from loan_tracker.utils import parse_date

ROWS_PER_PAGE = 12

TERM_LABELS = {
    "mortgage": "Term (years)",
    "cash": "Term (months)",
    "installment": "Number of Installments",
}


def create_app(config: dict | None = None) -> Flask:
    app = Flask(__name__)
    app.config["ASSET_VERSION"] = os.environ.get("ASSET_VERSION", "1")
    app.config["SECRET_KEY"] = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    app.config["DATABASE_URL"] = os.environ.get("LOAN_TRACKER_DATABASE_URL")
    if config:
        app.config.update(config)
    app.extensions["loan_store"] = create_store_from_env(app.config["DATABASE_URL"])

    app.add_template_filter(_money, "money")
    app.add_template_filter(_long_date, "long_date")
    app.register_error_handler(LoanNotFound, _loan_not_found)
    _register_routes(app)
    return app


def _store() -> LoanStore:
    return current_app.extensions["loan_store"]


def _money(value) -> str:
    return f"${value:,.2f}"


def _long_date(value) -> str:
    return value.strftime("%b %d, %Y") if value else "Not scheduled"


def _loan_not_found(exc: LoanNotFound):
    current_app.logger.info("Loan lookup failed: %s", exc)
    return render_template("not_found.html", message=str(exc)), 404


def _ensure_user_token() -> str:
    token = session.get("user_token")
    if not token:
        token = uuid4().hex
        session["user_token"] = token
        session.modified = True
    return token


def _as_of() -> date:
    """Reference date of the request; ``?as_of=YYYY-MM-DD`` overrides today."""
    raw = request.args.get("as_of", "").strip()
    if raw:
        try:
            return parse_date(raw)
        except ValueError:
            abort(400, f"Invalid as_of date: {raw}")
    return date.today()


def get_pagination_range(current_page: int, total_pages: int, delta: int = 1) -> list:
    """Page links to show: first, last and ``delta`` pages around the current one.

    Gaps are collapsed into a single ``"..."`` marker, e.g.
    ``[1, "...", 4, 5, 6, "...", 30]``.
    """
    pages: list = []
    for i in range(1, total_pages + 1):
        if i == 1 or i == total_pages or current_page - delta <= i <= current_page + delta:
            pages.append(i)
        elif pages[-1] != "...":
            pages.append("...")
    return pages


def _form_to_loan(form, today: date):
    name = form.get("name", "").strip()
    if not name:
        raise InvalidLoanParameters("Loan name is required")
    try:
        amount = form.get("amount", "").strip()
        rate = form.get("interest_rate", "").strip()
        term = int(form.get("term", ""))
    except ValueError:
        raise InvalidLoanParameters("Please enter valid numbers")
    raw_date = form.get("first_payment_date", "").strip()
    first_payment_date = parse_date(raw_date) if raw_date else today
    return build_loan(name, form.get("loan_type", "cash"), amount, rate, term, first_payment_date, today)


def _portfolio_view(loans, as_of: date, demo: bool = False):
    return render_template(
        "dashboard.html",
        summary=summarize_portfolio(loans, as_of),
        loans=loans,
        demo=demo,
        as_of=as_of,
        asset_version=current_app.config["ASSET_VERSION"],
    )


def _register_routes(app: Flask) -> None:
    @app.route("/")
    def index():
        user_token = _ensure_user_token()
        return _portfolio_view(_store().list_loans(user_token), _as_of())

    @app.route("/demo")
    def demo():
        return _portfolio_view(demo_loans(), _as_of(), demo=True)

    @app.route("/loans", methods=["GET", "POST"])
    def loans():
        user_token = _ensure_user_token()
        if request.method == "POST":
            try:
                loan = _form_to_loan(request.form, date.today())
                stored = _store().create_loan(user_token, loan)
            except (InvalidLoanParameters, ValueError) as exc:
                flash(str(exc), "error")
            else:
                flash("Loan created successfully", "success")
                app.logger.info("Loan %s created from web form", stored.id)
            return redirect(url_for("loans"))

        as_of = _as_of()
        cards = [
            {
                "loan": loan,
                "total_paid": total_paid_to_date(loan, as_of),
                "progress": loan_paid_percentage(loan, as_of),
            }
            for loan in _store().list_loans(user_token)
        ]
        return render_template(
            "loans.html",
            cards=cards,
            loan_types=LOAN_TYPES,
            term_labels=TERM_LABELS,
            today=date.today(),
            asset_version=app.config["ASSET_VERSION"],
        )

    @app.route("/loans/<loan_id>")
    def loan_details(loan_id):
        user_token = _ensure_user_token()
        loan = _store().get_loan(user_token, loan_id)
        as_of = _as_of()
        schedule = generate_schedule(loan, as_of)
        completed, total, percent = loan_progress(schedule)
        total_pages = max(1, -(-len(schedule) // ROWS_PER_PAGE))
        page = min(max(request.args.get("page", 1, type=int), 1), total_pages)
        start = (page - 1) * ROWS_PER_PAGE
        return render_template(
            "loan_detail.html",
            loan=loan,
            schedule=schedule[start:start + ROWS_PER_PAGE],
            completed=completed,
            total=total,
            percent=percent,
            next_payment=next_payment(schedule),
            days_until_next=days_until_next_payment(loan, as_of),
            total_paid=total_paid_to_date(loan, as_of),
            page=page,
            total_pages=total_pages,
            page_range=get_pagination_range(page, total_pages),
            statuses=LOAN_STATUSES,
            asset_version=app.config["ASSET_VERSION"],
        )

    @app.post("/loans/<loan_id>/update")
    def update_loan(loan_id):
        user_token = _ensure_user_token()
        raw_date = request.form.get("first_payment_date", "").strip()
        try:
            _store().update_loan(
                user_token,
                loan_id,
                name=request.form.get("name", "").strip() or None,
                status=request.form.get("status") or None,
                first_payment_date=parse_date(raw_date) if raw_date else None,
            )
        except (InvalidLoanParameters, ValueError) as exc:
            flash(str(exc), "error")
        else:
            flash("Loan updated successfully", "success")
        return redirect(url_for("loan_details", loan_id=loan_id))

    @app.post("/loans/<loan_id>/delete")
    def delete_loan(loan_id):
        user_token = _ensure_user_token()
        _store().delete_loan(user_token, loan_id)
        flash("Loan deleted", "success")
        return redirect(url_for("loans"))

    @app.route("/loans/<loan_id>/export.pdf")
    def export_pdf(loan_id):
        user_token = _ensure_user_token()
        loan = _store().get_loan(user_token, loan_id)
        content = export_schedule_pdf(loan, generate_schedule(loan, _as_of()))
        return send_file(
            BytesIO(content),
            mimetype="application/pdf",
            as_attachment=True,
            download_name=pdf_filename(loan),
        )

    @app.route("/profile", methods=["GET", "POST"])
    def profile():
        user_token = _ensure_user_token()
        if request.method == "POST":
            try:
                province_id = int(request.form.get("province_id", 7))
            except ValueError:
                province_id = 0
            if province_id not in PROVINCES:
                flash("Unknown province", "error")
                return redirect(url_for("profile"))
            _store().save_profile(
                UserProfile(
                    user_id=user_token,
                    name=request.form.get("name", "").strip(),
                    email=request.form.get("email", "").strip(),
                    city=request.form.get("city", "").strip(),
                    province_id=province_id,
                    email_notifications=request.form.get("email_notifications") == "on",
                    sms_notifications=request.form.get("sms_notifications") == "on",
                )
            )
            flash("Profile updated successfully", "success")
            return redirect(url_for("profile"))
        user_profile = _store().get_profile(user_token)
        return render_template(
            "profile.html",
            profile=user_profile,
            provinces=PROVINCES,
            province=province_name(user_profile.province_id),
            asset_version=app.config["ASSET_VERSION"],
        )


if __name__ == "__main__":
    print("Starting Loan Tracker web app...")
    create_app().run(host="0.0.0.0", port=8710, debug=True)
