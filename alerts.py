"""
alerts.py
Inactivity alerts: eligible members who stopped attending.
"""

from __future__ import annotations

import math

import utils
from compliance import is_compliance_eligible
from ledger import MembershipLedger
from logging_config import get_logger
from models import AttendanceAlert

logger = get_logger("alerts")


def _severity(alert: AttendanceAlert) -> float:
    # never attended ranks above any finite gap
    if alert.days_since_last_attendance is None:
        return math.inf
    return alert.days_since_last_attendance


def compute_alerts(
    ledger: MembershipLedger,
    users,
    as_of,
    inactivity_threshold_days: int = 6,
) -> list[AttendanceAlert]:
    """
    Members whose last present record is more than ``inactivity_threshold_days``
    before ``as_of``, plus every member who never attended.

    Ordered most severe first; ties keep the order of ``users``.
    """
    if inactivity_threshold_days < 0:
        raise ValueError("inactivity_threshold_days cannot be negative")
    as_of = utils.to_date(as_of)

    alerts: list[AttendanceAlert] = []
    for user in users:
        if not is_compliance_eligible(user):
            continue
        last = ledger.most_recent_present_attendance(user.id)
        if last is None:
            alerts.append(AttendanceAlert(user.id, None, None))
            continue
        days_since = utils.days_between(last.date, as_of)
        if days_since > inactivity_threshold_days:
            alerts.append(AttendanceAlert(user.id, days_since, last.date))

    alerts.sort(key=_severity, reverse=True)
    logger.debug(
        "inactivity_alerts_computed",
        extra={
            "as_of": as_of,
            "threshold_days": inactivity_threshold_days,
            "alert_count": len(alerts),
        },
    )
    return alerts
