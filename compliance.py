"""
compliance.py
Per-member coverage status and attendance-versus-coverage counts.
"""

from __future__ import annotations

from datetime import date

import config
import utils
from errors import MissingCoverageWindow
from ledger import MembershipLedger
from logging_config import get_logger
from models import (
    Active,
    Classification,
    Expired,
    ExpiringToday,
    Payment,
    Uncovered,
    User,
    VigencyStatus,
    VigencyWindow,
)

logger = get_logger("compliance")


def is_compliance_eligible(user: User) -> bool:
    """Active members only; trainers are staff and never tracked."""
    return user.status == "active" and user.affiliation_type != config.TRAINER_AFFILIATION


def _status_for(end: date, as_of: date) -> VigencyStatus:
    diff_days = utils.days_between(end, as_of)
    if diff_days < 0:
        return Active(until=end)
    if diff_days == 0:
        return ExpiringToday()
    return Expired(days_overdue=diff_days)


def classify_payment(ledger: MembershipLedger, payment: Payment, as_of) -> Classification:
    as_of = utils.to_date(as_of)
    if not payment.has_coverage:
        logger.warning(
            "payment_without_coverage_window",
            extra={"payment_id": payment.id, "user_id": payment.user_id},
        )
        raise MissingCoverageWindow(payment.id, payment.user_id)

    start, end = payment.start_date, payment.end_date
    window = VigencyWindow(
        start=start,
        end=end,
        covered_attendance_count=ledger.attendance_in_range(payment.user_id, start, end),
        after_expiry_attendance_count=ledger.attendance_after(payment.user_id, end),
    )
    return Classification(
        user_id=payment.user_id,
        as_of=as_of,
        status=_status_for(end, as_of),
        window=window,
        payment=payment,
    )


def classify(ledger: MembershipLedger, user_id: str, as_of) -> Classification:
    """
    Coverage status of ``user_id`` on ``as_of`` from their latest payment.

    Active before the end date, ExpiringToday on it, Expired(n) n days after,
    Uncovered without any payment. The window counts are always computed.
    """
    as_of = utils.to_date(as_of)
    payment = ledger.most_recent_payment(user_id)
    if payment is None:
        return Classification(user_id=user_id, as_of=as_of, status=Uncovered())
    return classify_payment(ledger, payment, as_of)


def classify_members(ledger: MembershipLedger, users, as_of) -> list[Classification]:
    as_of = utils.to_date(as_of)
    return [classify(ledger, u.id, as_of) for u in users if is_compliance_eligible(u)]
