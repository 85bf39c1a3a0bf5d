"""
utils.py
Date parsing/normalisation, month arithmetic, form validation, table frames
and sample data.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation

import pandas as pd

import config
from errors import InvalidDateError
from models import DEFAULT_CATALOG, PaymentTypeCatalog

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_ISO_DATETIME = re.compile(r"^(\d{4}-\d{2}-\d{2})[T ]")
_DAY_FIRST = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{4})$")


def parse_iso(d: str) -> date:
    try:
        return date.fromisoformat(d)
    except (TypeError, ValueError) as exc:
        raise InvalidDateError(d) from exc


def normalize_date(raw) -> str | None:
    """
    Normalise the date spellings found in stored rows to YYYY-MM-DD.

    Accepts YYYY-MM-DD, ISO datetimes (2024-02-01T05:00:00Z / "2024-02-01 10:00"),
    and day-first DD/MM/YYYY or DD-MM-YYYY. Returns None for empty input and
    leaves anything unrecognised untouched so parse_iso can reject it.
    """
    if raw is None:
        return None
    s = str(raw).strip()
    if not s:
        return None
    if _ISO_DATE.match(s):
        return s
    m = _ISO_DATETIME.match(s)
    if m:
        return m.group(1)
    m = _DAY_FIRST.match(s)
    if m:
        day, month, year = m.groups()
        return f"{year}-{int(month):02d}-{int(day):02d}"
    return s


def to_date(value) -> date:
    """Coerce a date, datetime or date string to a date (InvalidDateError otherwise)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        normalized = normalize_date(value)
        if normalized is None:
            raise InvalidDateError(value)
        return parse_iso(normalized)
    raise InvalidDateError(value)


def optional_date(value) -> date | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return to_date(value)


def parse_timestamp(value) -> datetime | None:
    """ISO timestamp from storage; a trailing Z means UTC."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, datetime):
        return value
    s = str(value).strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(s)
    except ValueError as exc:
        raise InvalidDateError(value) from exc


def add_months(start: date, months: int) -> date:
    """
    Add months while keeping day in valid range (e.g., Jan 31 + 1 month => Feb 28/29).
    """
    y = start.year + (start.month - 1 + months) // 12
    m = (start.month - 1 + months) % 12 + 1
    # last day of target month
    if m == 12:
        next_month = date(y + 1, 1, 1)
    else:
        next_month = date(y, m + 1, 1)
    last_day = next_month - timedelta(days=1)
    day = min(start.day, last_day.day)
    return date(y, m, day)


def days_between(earlier: date, later: date) -> int:
    """Whole days from earlier to later (negative when later comes first)."""
    return (later - earlier).days


def parse_amount(raw) -> Decimal:
    """
    Parse amounts as typed by operators or stored by spreadsheets.

    "$45.000" and "45.000" are thousands-grouped pesos; "45000.50" and
    "45000,50" carry cents.
    """
    if isinstance(raw, (int, float)):
        raw = Decimal(str(raw))
    if isinstance(raw, Decimal):
        if not raw.is_finite():
            raise ValueError(f"Not a valid amount: {raw!r}")
        return raw
    s = str(raw).strip().replace("$", "").replace(" ", "")
    if re.fullmatch(r"\d{1,3}(\.\d{3})+", s):
        s = s.replace(".", "")
    elif re.fullmatch(r"\d{1,3}(,\d{3})+(\.\d+)?", s):
        s = s.replace(",", "")
    else:
        s = s.replace(",", ".")
    try:
        value = Decimal(s)
    except InvalidOperation as exc:
        raise ValueError(f"Not a valid amount: {raw!r}") from exc
    if not value.is_finite():
        raise ValueError(f"Not a valid amount: {raw!r}")
    return value


def validate_payment_inputs(
    user_id: str,
    payment_type: str,
    amount,
    payment_method: str,
    start_date: str,
    end_date: str,
    catalog: PaymentTypeCatalog = DEFAULT_CATALOG,
) -> list[str]:
    errors: list[str] = []
    if not user_id:
        errors.append("Select a member.")
    known_type = catalog.is_single_day(payment_type) or catalog.is_rolling_period(payment_type)
    if not known_type:
        errors.append("Select a payment type.")
    if not payment_method:
        errors.append("Select a payment method.")
    try:
        value = parse_amount(amount)
        if value < 0:
            errors.append("Amount cannot be negative.")
    except ValueError:
        errors.append("Amount must be numeric.")
    try:
        sd = to_date(start_date)
        ed = to_date(end_date)
        if ed < sd:
            errors.append("End date cannot be before start date.")
        elif catalog.is_single_day(payment_type) and ed != sd:
            errors.append("Single-day payments must start and end on the same day.")
    except InvalidDateError:
        errors.append("Start/end dates must be valid dates (YYYY-MM-DD).")
    return errors


def amount_warnings(amount) -> list[str]:
    try:
        value = parse_amount(amount)
    except ValueError:
        return []
    if value > config.MAX_REASONABLE_AMOUNT:
        return ["The amount looks unusually high. Double-check it."]
    return []


def payment_choices(history) -> dict:
    """Selectbox label -> Payment; the id suffix keeps duplicate-looking payments apart."""
    choices = {}
    for p in history:
        start = p.start_date.isoformat() if p.start_date else "-"
        end = p.end_date.isoformat() if p.end_date else "-"
        label = f"{p.payment_type} {start} → {end} (paid {p.payment_date.isoformat()}, #{p.id[:8]})"
        if label in choices:
            label = f"{label} [{p.id}]"
        choices[label] = p
    return choices


# ---------- Tables for the console ----------

def classifications_frame(classifications, users_by_id) -> pd.DataFrame:
    columns = ["member", "status", "start", "end", "covered", "after_expiry", "detail"]
    rows = []
    for c in classifications:
        user = users_by_id.get(c.user_id)
        window = c.window
        rows.append({
            "member": user.name if user else c.user_id,
            "status": c.status.label,
            "start": window.start.isoformat() if window else None,
            "end": window.end.isoformat() if window else None,
            "covered": window.covered_attendance_count if window else 0,
            "after_expiry": window.after_expiry_attendance_count if window else 0,
            "detail": status_text(c.status),
        })
    return pd.DataFrame(rows, columns=columns)


def alerts_frame(alerts, users_by_id) -> pd.DataFrame:
    columns = ["member", "phone", "days_without_attending", "last_attendance"]
    rows = []
    for a in alerts:
        user = users_by_id.get(a.user_id)
        rows.append({
            "member": user.name if user else a.user_id,
            "phone": user.phone if user else "",
            "days_without_attending": (
                "never attended" if a.never_attended else a.days_since_last_attendance
            ),
            "last_attendance": a.last_attendance_date.isoformat() if a.last_attendance_date else "-",
        })
    return pd.DataFrame(rows, columns=columns)


def attendance_report_frame(records, users_by_id) -> pd.DataFrame:
    columns = ["date", "member", "time"]
    df = pd.DataFrame(
        [
            {
                "date": r.date.isoformat(),
                "member": users_by_id[r.user_id].name if r.user_id in users_by_id else "-",
                "time": r.time or "-",
            }
            for r in records
        ],
        columns=columns,
    )
    return df


def status_text(status) -> str:
    label = status.label
    if label == "active":
        return f"Valid until {status.until.isoformat()}"
    if label == "expiring_today":
        return "Expires today"
    if label == "expired":
        plural = "s" if status.days_overdue > 1 else ""
        return f"Expired {status.days_overdue} day{plural} ago"
    return "No payment"
