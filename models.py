"""
models.py
Domain records (payments, attendance, users), payment type catalog and the
derived vigency / alert value objects.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar, Union

from errors import InvalidCoverageWindow, UnknownPaymentType

# Payment types whose coverage is the day of purchase only
SINGLE_DAY_TYPES = frozenset({"Clase suelta", "Movimientos caja"})

# Payment types covering one calendar month from their start date
ROLLING_PERIOD_TYPES = frozenset({"Mensualidad", "Paquete 10 clases", "Personalizado Diana"})

# Renewals of these types start the day after the previous coverage ends
CONTINUOUS_TYPES = frozenset({"Mensualidad", "Paquete 10 clases", "Personalizado Diana"})

PRESENT = "present"
ABSENT = "absent"


@dataclass(frozen=True)
class PaymentTypeCatalog:
    single_day: frozenset[str]
    rolling_period: frozenset[str]
    continuous: frozenset[str]

    def __post_init__(self) -> None:
        overlap = self.single_day & self.rolling_period
        if overlap:
            raise ValueError(f"Types cannot be both single-day and rolling: {sorted(overlap)}")
        stray = self.continuous - self.rolling_period
        if stray:
            raise ValueError(f"Continuous types must be rolling-period types: {sorted(stray)}")

    def is_single_day(self, payment_type: str | None) -> bool:
        return payment_type in self.single_day

    def is_rolling_period(self, payment_type: str | None) -> bool:
        return payment_type in self.rolling_period

    def is_continuous(self, payment_type: str | None) -> bool:
        return payment_type in self.continuous

    def require_known(self, payment_type: str | None) -> str:
        if not (self.is_single_day(payment_type) or self.is_rolling_period(payment_type)):
            raise UnknownPaymentType(payment_type)
        return payment_type

    @property
    def all_types(self) -> list[str]:
        return sorted(self.rolling_period) + sorted(self.single_day)


DEFAULT_CATALOG = PaymentTypeCatalog(
    single_day=SINGLE_DAY_TYPES,
    rolling_period=ROLLING_PERIOD_TYPES,
    continuous=CONTINUOUS_TYPES,
)


@dataclass(frozen=True)
class User:
    id: str
    name: str
    phone: str
    status: str  # 'active' or 'inactive'
    affiliation_type: str
    class_time: str | None = None


@dataclass(frozen=True)
class Payment:
    id: str
    user_id: str
    payment_type: str
    amount: Decimal
    payment_method: str
    payment_date: date
    start_date: date | None
    end_date: date | None
    notes: str = ""
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise InvalidCoverageWindow(self.start_date, self.end_date)

    @property
    def has_coverage(self) -> bool:
        return self.start_date is not None and self.end_date is not None


@dataclass(frozen=True)
class AttendanceRecord:
    id: str
    user_id: str
    date: date
    status: str  # 'present' or 'absent'
    time: str | None = None
    created_at: datetime | None = None

    @property
    def is_present(self) -> bool:
        return self.status == PRESENT


# ---------- Vigency status (re-derived on every call, never stored) ----------

@dataclass(frozen=True)
class Uncovered:
    label: ClassVar[str] = "uncovered"


@dataclass(frozen=True)
class Active:
    until: date
    label: ClassVar[str] = "active"


@dataclass(frozen=True)
class ExpiringToday:
    label: ClassVar[str] = "expiring_today"


@dataclass(frozen=True)
class Expired:
    days_overdue: int
    label: ClassVar[str] = "expired"


VigencyStatus = Union[Uncovered, Active, ExpiringToday, Expired]


@dataclass(frozen=True)
class VigencyWindow:
    start: date
    end: date
    covered_attendance_count: int
    after_expiry_attendance_count: int


@dataclass(frozen=True)
class Classification:
    user_id: str
    as_of: date
    status: VigencyStatus
    window: VigencyWindow | None = None
    payment: Payment | None = None


@dataclass(frozen=True)
class ContinuationSuggestion:
    payment_date: date
    start_date: date
    end_date: date


@dataclass(frozen=True)
class AttendanceAlert:
    user_id: str
    days_since_last_attendance: int | None
    last_attendance_date: date | None

    @property
    def never_attended(self) -> bool:
        return self.days_since_last_attendance is None
