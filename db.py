"""
db.py
SQLite helpers, schema initialization, and the row adapters that turn stored
rows into engine models (date spellings, status synonyms and currency strings
are normalised here, never inside the engine).
"""

from __future__ import annotations

import sqlite3
import uuid
from contextlib import contextmanager
from datetime import date, datetime, timedelta, timezone

import utils
from config import DB_FILE
from errors import VigencyError
from ledger import MembershipLedger
from logging_config import get_logger
from models import ABSENT, PRESENT, AttendanceRecord, Payment, User

logger = get_logger("db")

_STATUS_SYNONYMS = {
    "present": PRESENT,
    "presente": PRESENT,
    "absent": ABSENT,
    "ausente": ABSENT,
}


@contextmanager
def get_conn():
    conn = sqlite3.connect(DB_FILE, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()


def execute(sql: str, params: tuple = ()) -> int:
    with get_conn() as conn:
        cur = conn.execute(sql, params)
        return cur.lastrowid


def executemany(sql: str, seq_of_params: list[tuple]) -> None:
    with get_conn() as conn:
        conn.executemany(sql, seq_of_params)


def fetch_one(sql: str, params: tuple = ()):
    with get_conn() as conn:
        cur = conn.execute(sql, params)
        return cur.fetchone()


def fetch_all(sql: str, params: tuple = ()) -> list[sqlite3.Row]:
    with get_conn() as conn:
        cur = conn.execute(sql, params)
        return cur.fetchall()


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def new_id() -> str:
    return str(uuid.uuid4())


def _create_tables() -> None:
    execute(
        """
        CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            phone TEXT NOT NULL,
            status TEXT NOT NULL CHECK(status IN ('active','inactive')),
            affiliation_type TEXT NOT NULL,
            class_time TEXT,
            created_at TEXT NOT NULL
        )
        """
    )

    execute(
        """
        CREATE TABLE IF NOT EXISTS payments (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            payment_type TEXT NOT NULL,
            amount REAL NOT NULL CHECK(amount >= 0),
            payment_method TEXT NOT NULL,
            payment_date TEXT NOT NULL,
            start_date TEXT NOT NULL,
            end_date TEXT NOT NULL,
            notes TEXT,
            created_at TEXT NOT NULL,
            FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
        )
        """
    )

    # One record per member per day; re-marking updates it
    execute(
        """
        CREATE TABLE IF NOT EXISTS attendance (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            date TEXT NOT NULL,
            status TEXT NOT NULL,
            time TEXT,
            created_at TEXT NOT NULL,
            UNIQUE(user_id, date),
            FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
        )
        """
    )


def init_db() -> None:
    _create_tables()
    logger.info("database_initialized", extra={"db_file": str(DB_FILE)})


# ---------- Row adapters ----------

def user_from_row(row) -> User:
    return User(
        id=str(row["id"]),
        name=row["name"],
        phone=row["phone"] or "",
        status=row["status"],
        affiliation_type=row["affiliation_type"],
        class_time=row["class_time"],
    )


def payment_from_row(row) -> Payment:
    return Payment(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        payment_type=row["payment_type"],
        amount=utils.parse_amount(row["amount"]),
        payment_method=row["payment_method"] or "",
        payment_date=utils.to_date(row["payment_date"]),
        start_date=utils.optional_date(row["start_date"]),
        end_date=utils.optional_date(row["end_date"]),
        notes=row["notes"] or "",
        created_at=utils.parse_timestamp(row["created_at"]),
    )


def attendance_from_row(row) -> AttendanceRecord:
    raw_status = str(row["status"]).strip().lower()
    if raw_status not in _STATUS_SYNONYMS:
        raise ValueError(f"Unknown attendance status: {row['status']!r}")
    return AttendanceRecord(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        date=utils.to_date(row["date"]),
        status=_STATUS_SYNONYMS[raw_status],
        time=row["time"],
        created_at=utils.parse_timestamp(row["created_at"]),
    )


def _adapt_rows(rows, adapter, kind: str) -> list:
    items = []
    for r in rows:
        try:
            items.append(adapter(r))
        except (VigencyError, ValueError):
            logger.warning("row_skipped", extra={"table": kind, "row_id": r["id"]}, exc_info=True)
    return items


# ---------- Reads ----------

def load_users() -> list[User]:
    return [user_from_row(r) for r in fetch_all("SELECT * FROM users ORDER BY name ASC")]


def load_payments() -> list[Payment]:
    rows = fetch_all("SELECT * FROM payments ORDER BY created_at ASC")
    return _adapt_rows(rows, payment_from_row, "payments")


def load_attendance() -> list[AttendanceRecord]:
    rows = fetch_all("SELECT * FROM attendance ORDER BY date ASC, created_at ASC")
    return _adapt_rows(rows, attendance_from_row, "attendance")


def load_ledger() -> MembershipLedger:
    users = load_users()
    payments = load_payments()
    attendance = load_attendance()
    logger.info(
        "ledger_loaded",
        extra={"users": len(users), "payments": len(payments), "attendance": len(attendance)},
    )
    return MembershipLedger(payments=payments, attendance=attendance, users=users)


# ---------- Writes ----------

def insert_user(
    name: str,
    phone: str,
    affiliation_type: str,
    class_time: str | None = None,
    status: str = "active",
) -> str:
    user_id = new_id()
    execute(
        """
        INSERT INTO users(id, name, phone, status, affiliation_type, class_time, created_at)
        VALUES(?,?,?,?,?,?,?)
        """,
        (user_id, name.strip(), phone.strip(), status, affiliation_type, class_time, _now_iso()),
    )
    return user_id


def set_user_status(user_id: str, status: str) -> None:
    execute("UPDATE users SET status = ? WHERE id = ?", (status, user_id))


def delete_user(user_id: str) -> None:
    # payments and attendance go with the user (ON DELETE CASCADE)
    execute("DELETE FROM users WHERE id = ?", (user_id,))


def _payment_params(payment: Payment) -> tuple:
    return (
        payment.user_id,
        payment.payment_type,
        float(payment.amount),
        payment.payment_method,
        payment.payment_date.isoformat(),
        payment.start_date.isoformat(),
        payment.end_date.isoformat(),
        payment.notes or None,
    )


def insert_payment(payment: Payment) -> None:
    if not payment.has_coverage:
        raise ValueError("Payments are stored with both start_date and end_date")
    created = (payment.created_at or datetime.now(timezone.utc)).isoformat(timespec="seconds")
    execute(
        """
        INSERT INTO payments(user_id, payment_type, amount, payment_method, payment_date,
            start_date, end_date, notes, id, created_at)
        VALUES(?,?,?,?,?,?,?,?,?,?)
        """,
        _payment_params(payment) + (payment.id, created),
    )
    logger.info(
        "payment_recorded",
        extra={
            "payment_id": payment.id,
            "user_id": payment.user_id,
            "payment_type": payment.payment_type,
            "start_date": payment.start_date,
            "end_date": payment.end_date,
        },
    )


def update_payment(payment: Payment) -> None:
    if not payment.has_coverage:
        raise ValueError("Payments are stored with both start_date and end_date")
    execute(
        """
        UPDATE payments SET user_id=?, payment_type=?, amount=?, payment_method=?, payment_date=?,
            start_date=?, end_date=?, notes=?
        WHERE id=?
        """,
        _payment_params(payment) + (payment.id,),
    )
    logger.info("payment_updated", extra={"payment_id": payment.id})


def delete_payment(payment_id: str) -> None:
    execute("DELETE FROM payments WHERE id = ?", (payment_id,))


def record_attendance(user_id: str, day: date, status: str, time: str | None = None) -> None:
    execute(
        """
        INSERT INTO attendance(id, user_id, date, status, time, created_at) VALUES(?,?,?,?,?,?)
        ON CONFLICT(user_id, date) DO UPDATE SET status=excluded.status, time=excluded.time
        """,
        (new_id(), user_id, day.isoformat(), status, time, _now_iso()),
    )


def insert_sample_data(today: date) -> None:
    """
    Insert four members with payments and attendance (adds new rows each run).
    """
    ana = insert_user("Ana Gómez", "3001112233", "Mensual", "6:00 am")
    luis = insert_user("Luis Pérez", "3004445566", "Mensual", "7:00 pm")
    sara = insert_user("Sara Ruiz", "3007778899", "Clase suelta", "5:00 pm")
    insert_user("Diana Torres", "3000001111", "Entrenador(a)", "6:00 am")

    # Ana: current monthly plan, attends regularly
    ana_start = today - timedelta(days=10)
    # Luis: monthly plan expired three days ago, kept coming afterwards
    luis_end = today - timedelta(days=3)
    luis_start = utils.add_months(luis_end + timedelta(days=1), -1)

    payments = [
        Payment(
            id=new_id(), user_id=ana, payment_type="Mensualidad", amount=utils.parse_amount("120000"),
            payment_method="Efectivo", payment_date=ana_start, start_date=ana_start,
            end_date=utils.add_months(ana_start, 1) - timedelta(days=1), notes="Sample payment",
        ),
        Payment(
            id=new_id(), user_id=luis, payment_type="Mensualidad", amount=utils.parse_amount("120000"),
            payment_method="Transferencia", payment_date=luis_start, start_date=luis_start,
            end_date=luis_end, notes="Sample payment",
        ),
        Payment(
            id=new_id(), user_id=sara, payment_type="Clase suelta", amount=utils.parse_amount("15000"),
            payment_method="Nequi", payment_date=today - timedelta(days=12),
            start_date=today - timedelta(days=12), end_date=today - timedelta(days=12),
        ),
    ]
    for p in payments:
        insert_payment(p)

    for offset in (1, 3, 5):
        record_attendance(ana, today - timedelta(days=offset), PRESENT, "6:05")
    record_attendance(luis, today - timedelta(days=10), PRESENT, "19:02")
    record_attendance(luis, today - timedelta(days=1), PRESENT, "19:10")
    record_attendance(sara, today - timedelta(days=12), PRESENT, "17:00")
