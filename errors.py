"""
errors.py
Typed exceptions raised by the vigency / compliance engine.

Every exception carries a class-level ``code`` (machine readable) and keeps the
offending values as attributes so callers can branch on type and render their
own message.

    VigencyError (base)
    +-- InvalidDateError
    +-- MissingCoverageWindow
    +-- UnknownPaymentType
    +-- InvalidCoverageWindow
"""

from __future__ import annotations

from datetime import date
from typing import Any


class VigencyError(Exception):
    """Base exception for all engine errors."""

    code: str = "VIGENCY_ERROR"


class InvalidDateError(VigencyError):
    """A raw value could not be parsed into a calendar date."""

    code: str = "INVALID_DATE"

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Not a valid calendar date: {value!r}")


class MissingCoverageWindow(VigencyError):
    """
    A saved payment reached the engine without start_date/end_date.

    This is a data-integrity problem, not the normal "uncovered" state.
    """

    code: str = "MISSING_COVERAGE_WINDOW"

    def __init__(self, payment_id: str, user_id: str):
        self.payment_id = payment_id
        self.user_id = user_id
        super().__init__(
            f"Payment {payment_id} for user {user_id} has no coverage window"
        )


class UnknownPaymentType(VigencyError):
    """Payment type is neither single-day nor rolling-period."""

    code: str = "UNKNOWN_PAYMENT_TYPE"

    def __init__(self, payment_type: Any):
        self.payment_type = payment_type
        super().__init__(f"Unknown payment type: {payment_type!r}")


class InvalidCoverageWindow(VigencyError):
    """Coverage window ends before it starts."""

    code: str = "INVALID_COVERAGE_WINDOW"

    def __init__(self, start: date, end: date):
        self.start = start
        self.end = end
        super().__init__(f"Coverage window ends before it starts: {start} > {end}")
