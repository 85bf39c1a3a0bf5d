"""
Pytest fixtures for the membership engine.

Provides:
- Builders for users, payments and attendance records
- A throwaway SQLite database per test
"""

from datetime import date, timedelta
from decimal import Decimal
from itertools import count

import pytest

import db
from logging_config import reset_logging
from models import ABSENT, PRESENT, AttendanceRecord, Payment, User

_ids = count(1)


def make_user(user_id, *, status="active", affiliation="Mensual", name=None):
    return User(
        id=user_id,
        name=name or f"Member {user_id}",
        phone="3000000000",
        status=status,
        affiliation_type=affiliation,
        class_time="6:00 am",
    )


def make_payment(user_id, start, end, *, payment_type="Mensualidad", payment_date=None, payment_id=None):
    return Payment(
        id=payment_id or f"pay-{next(_ids)}",
        user_id=user_id,
        payment_type=payment_type,
        amount=Decimal("120000"),
        payment_method="Efectivo",
        payment_date=payment_date or start or date(2024, 1, 1),
        start_date=start,
        end_date=end,
    )


def make_visit(user_id, day, *, present=True):
    return AttendanceRecord(
        id=f"att-{next(_ids)}",
        user_id=user_id,
        date=day,
        status=PRESENT if present else ABSENT,
        time="18:00",
    )


def days_ago(today, n):
    return today - timedelta(days=n)


@pytest.fixture
def temp_db(tmp_path, monkeypatch):
    monkeypatch.setattr(db, "DB_FILE", tmp_path / "gym_test.db")
    db.init_db()
    return db


@pytest.fixture(autouse=True)
def _clean_logging():
    yield
    reset_logging()
