"""Persistence layer for loans and user profiles.

This module abstracts persistence so the engine never talks to a database
directly. The CLI and the web app both go through :class:`LoanStore`, which
scopes every record by an opaque user identifier. It defaults to SQLite for
local use but accepts any SQLAlchemy-compatible URL (e.g. PostgreSQL/MySQL).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, List, Optional
from uuid import uuid4

from sqlalchemy import Boolean, Column, Date, DateTime, Integer, String, create_engine, select
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .data_models import LOAN_STATUSES, Loan, UserProfile
from .errors import InvalidLoanParameters, LoanNotFound

logger = logging.getLogger(__name__)

Base = declarative_base()

DEFAULT_DATABASE_URL = "sqlite:///loan_tracker.sqlite3"

_UNSET = object()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class LoanModel(Base):
    __tablename__ = "loans"

    id = Column(String(64), primary_key=True)
    user_id = Column(String(64), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    loan_type = Column(String(32), nullable=False)
    # Monetary values are kept as decimal strings so no precision is lost on SQLite.
    amount = Column(String(64), nullable=False)
    interest_rate = Column(String(64), nullable=False)
    term = Column(Integer, nullable=False)
    monthly_installment = Column(String(64), nullable=False)
    status = Column(String(16), nullable=False, default="active")
    start_date = Column(Date, nullable=True)
    first_payment_date = Column(Date, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


class ProfileModel(Base):
    __tablename__ = "user_profiles"

    user_id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False, default="")
    email = Column(String(255), nullable=False, default="")
    city = Column(String(255), nullable=False, default="")
    province_id = Column(Integer, nullable=False, default=7)
    email_notifications = Column(Boolean, nullable=False, default=True)
    sms_notifications = Column(Boolean, nullable=False, default=False)


class LoanStore:
    """Database-backed loan store."""

    def __init__(self, url: str) -> None:
        kwargs = {}
        if url == "sqlite://" or (url.startswith("sqlite") and ":memory:" in url):
            # A single shared connection keeps the in-memory database alive.
            kwargs = {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
        self._engine = create_engine(url, future=True, **kwargs)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)

    def list_loans(self, user_id: str) -> List[Loan]:
        if not user_id:
            return []
        with self._session_factory() as session:
            rows: Iterable[LoanModel] = session.execute(
                select(LoanModel)
                .where(LoanModel.user_id == user_id)
                .order_by(LoanModel.created_at.desc())
            ).scalars()
            return [self._to_loan(row) for row in rows]

    def get_loan(self, user_id: str, loan_id: str) -> Loan:
        with self._session_factory() as session:
            row = self._owned_row(session, user_id, loan_id)
            return self._to_loan(row)

    def create_loan(self, user_id: str, loan: Loan) -> Loan:
        if not user_id:
            raise InvalidLoanParameters("A user is required to create a loan")
        if loan.status not in LOAN_STATUSES:
            raise InvalidLoanParameters(f"Unknown loan status: {loan.status}")
        row = LoanModel(
            id=loan.id or uuid4().hex,
            user_id=user_id,
            name=loan.name,
            loan_type=loan.loan_type,
            amount=str(loan.principal),
            interest_rate=str(loan.annual_rate),
            term=loan.term,
            monthly_installment=str(loan.monthly_installment),
            status=loan.status,
            start_date=loan.start_date,
            first_payment_date=loan.first_payment_date,
            created_at=loan.created_at or _utcnow(),
        )
        with self._session_factory() as session:
            session.add(row)
            session.commit()
        logger.info("Created loan %s for user %s", row.id, user_id)
        return self._to_loan(row)

    def update_loan(
        self,
        user_id: str,
        loan_id: str,
        *,
        name: Optional[str] = None,
        status: Optional[str] = None,
        first_payment_date=_UNSET,
    ) -> Loan:
        """Change the mutable fields of a loan.

        Only the name, the status and the first payment date can change after
        creation; financial terms are fixed. Pass ``first_payment_date=None``
        to clear the date.
        """
        if name is not None and not name.strip():
            raise InvalidLoanParameters("Loan name is required")
        if status is not None and status not in LOAN_STATUSES:
            raise InvalidLoanParameters(f"Unknown loan status: {status}")
        with self._session_factory() as session:
            row = self._owned_row(session, user_id, loan_id)
            if name is not None:
                row.name = name.strip()
            if status is not None:
                row.status = status
            if first_payment_date is not _UNSET:
                row.first_payment_date = first_payment_date
            session.commit()
            logger.info("Updated loan %s for user %s", loan_id, user_id)
            return self._to_loan(row)

    def delete_loan(self, user_id: str, loan_id: str) -> None:
        with self._session_factory() as session:
            row = self._owned_row(session, user_id, loan_id)
            session.delete(row)
            session.commit()
        logger.info("Deleted loan %s for user %s", loan_id, user_id)

    def get_profile(self, user_id: str) -> UserProfile:
        """Return the stored profile, or a default one if none was saved."""
        with self._session_factory() as session:
            row = session.get(ProfileModel, user_id) if user_id else None
            if row is None:
                return UserProfile(user_id=user_id)
            return UserProfile(
                user_id=row.user_id,
                name=row.name,
                email=row.email,
                city=row.city,
                province_id=row.province_id,
                email_notifications=row.email_notifications,
                sms_notifications=row.sms_notifications,
            )

    def save_profile(self, profile: UserProfile) -> UserProfile:
        if not profile.user_id:
            raise ValueError("A user is required to save a profile")
        with self._session_factory() as session:
            row = session.get(ProfileModel, profile.user_id)
            if row is None:
                row = ProfileModel(user_id=profile.user_id)
                session.add(row)
            row.name = profile.name
            row.email = profile.email
            row.city = profile.city
            row.province_id = profile.province_id
            row.email_notifications = profile.email_notifications
            row.sms_notifications = profile.sms_notifications
            session.commit()
        logger.info("Saved profile for user %s", profile.user_id)
        return profile

    @staticmethod
    def _owned_row(session, user_id: str, loan_id: str) -> LoanModel:
        row = session.get(LoanModel, loan_id) if loan_id else None
        if row is None or not user_id or row.user_id != user_id:
            raise LoanNotFound(loan_id)
        return row

    @staticmethod
    def _to_loan(row: LoanModel) -> Loan:
        return Loan(
            id=row.id,
            user_id=row.user_id,
            name=row.name,
            loan_type=row.loan_type,
            principal=Decimal(row.amount),
            annual_rate=Decimal(row.interest_rate),
            term=row.term,
            monthly_installment=Decimal(row.monthly_installment),
            status=row.status,
            start_date=row.start_date,
            first_payment_date=row.first_payment_date,
            created_at=row.created_at,
        )


def create_store_from_env(url: str | None) -> LoanStore:
    return LoanStore(url or DEFAULT_DATABASE_URL)
