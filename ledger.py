"""
ledger.py
MembershipLedger: read-only query surface over payments, attendance and users.

The ledger holds one immutable snapshot indexed by user id. The persistence
layer builds a new ledger (or calls refresh()) after it reloads; readers see
either the old or the new snapshot, never a mix within one collection.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable

from models import AttendanceRecord, Payment, User


@dataclass(frozen=True)
class _Snapshot:
    payments: dict[str, tuple[Payment, ...]] = field(default_factory=dict)
    attendance: dict[str, tuple[AttendanceRecord, ...]] = field(default_factory=dict)
    attendance_by_day: dict[date, tuple[AttendanceRecord, ...]] = field(default_factory=dict)
    users: tuple[User, ...] = ()
    users_by_id: dict[str, User] = field(default_factory=dict)


def _build_snapshot(
    payments: Iterable[Payment],
    attendance: Iterable[AttendanceRecord],
    users: Iterable[User],
) -> _Snapshot:
    pay_idx: dict[str, list[Payment]] = defaultdict(list)
    for p in payments:
        pay_idx[p.user_id].append(p)

    att_idx: dict[str, list[AttendanceRecord]] = defaultdict(list)
    day_idx: dict[date, list[AttendanceRecord]] = defaultdict(list)
    for a in attendance:
        att_idx[a.user_id].append(a)
        day_idx[a.date].append(a)

    users = tuple(users)
    return _Snapshot(
        payments={k: tuple(v) for k, v in pay_idx.items()},
        attendance={k: tuple(v) for k, v in att_idx.items()},
        attendance_by_day={k: tuple(v) for k, v in day_idx.items()},
        users=users,
        users_by_id={u.id: u for u in users},
    )


def _start_key(p: Payment) -> date:
    return p.start_date or date.min


class MembershipLedger:
    def __init__(
        self,
        payments: Iterable[Payment] = (),
        attendance: Iterable[AttendanceRecord] = (),
        users: Iterable[User] = (),
    ):
        self._snapshot = _build_snapshot(payments, attendance, users)

    def refresh(
        self,
        payments: Iterable[Payment],
        attendance: Iterable[AttendanceRecord],
        users: Iterable[User] = (),
    ) -> None:
        """Replace the whole snapshot in one assignment."""
        self._snapshot = _build_snapshot(payments, attendance, users)

    # ---------- Users ----------

    def users(self) -> tuple[User, ...]:
        return self._snapshot.users

    def user(self, user_id: str) -> User | None:
        return self._snapshot.users_by_id.get(user_id)

    @property
    def users_by_id(self) -> dict[str, User]:
        return dict(self._snapshot.users_by_id)

    # ---------- Payments ----------

    def payments_for(self, user_id: str) -> list[Payment]:
        """All payments of a user, newest coverage start first."""
        return sorted(self._snapshot.payments.get(user_id, ()), key=_start_key, reverse=True)

    def most_recent_payment(self, user_id: str) -> Payment | None:
        """
        Latest payment by start_date among payments with an end_date.

        Payments missing a start_date sort last; ties keep insertion order.
        """
        candidates = [p for p in self._snapshot.payments.get(user_id, ()) if p.end_date is not None]
        if not candidates:
            return None
        return max(candidates, key=_start_key)

    # ---------- Attendance ----------

    def _present(self, user_id: str) -> list[AttendanceRecord]:
        return [a for a in self._snapshot.attendance.get(user_id, ()) if a.is_present]

    def attendance_in_range(self, user_id: str, start: date, end: date) -> int:
        return sum(1 for a in self._present(user_id) if start <= a.date <= end)

    def attendance_after(self, user_id: str, day: date) -> int:
        return sum(1 for a in self._present(user_id) if a.date > day)

    def most_recent_present_attendance(self, user_id: str) -> AttendanceRecord | None:
        present = self._present(user_id)
        if not present:
            return None
        return max(present, key=lambda a: a.date)

    def attendance_on(self, day: date) -> list[AttendanceRecord]:
        return list(self._snapshot.attendance_by_day.get(day, ()))

    def present_attendance_between(
        self, start: date, end: date, user_id: str | None = None
    ) -> list[AttendanceRecord]:
        """Present records in [start, end], newest first (period report)."""
        if user_id is not None:
            pool = self._snapshot.attendance.get(user_id, ())
        else:
            pool = [a for records in self._snapshot.attendance.values() for a in records]
        hits = [a for a in pool if a.is_present and start <= a.date <= end]
        return sorted(hits, key=lambda a: a.date, reverse=True)
