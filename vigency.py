"""
vigency.py
Coverage window ("vigencia") arithmetic for payments.

compute_end_date() turns a start date and payment type into the last covered
day; suggest_continuation() proposes payment/start/end dates for a new payment
so back-to-back renewals tile the calendar without gaps or overlaps.
"""

from __future__ import annotations

from datetime import date, timedelta

import utils
from logging_config import get_logger
from models import DEFAULT_CATALOG, ContinuationSuggestion, Payment, PaymentTypeCatalog

logger = get_logger("vigency")


def compute_end_date(start, payment_type: str | None, catalog: PaymentTypeCatalog = DEFAULT_CATALOG) -> date:
    """
    Last covered day for a payment starting on ``start``.

    Single-day types cover only ``start``. Rolling-period types run to the same
    day of the next month minus one (Feb 2 -> Mar 1, Jan 15 -> Feb 14); when
    that day does not exist next month the coverage ends on the last day of
    the next month (Jan 31 -> Feb 28/29).

    Raises:
        InvalidDateError: ``start`` is not a calendar date.
        UnknownPaymentType: ``payment_type`` is not in the catalog.
    """
    start = utils.to_date(start)
    catalog.require_known(payment_type)

    if catalog.is_single_day(payment_type):
        return start

    target = utils.add_months(start, 1)
    if target.day != start.day:
        # add_months clamped to the month end
        return target
    return target - timedelta(days=1)


def calc_end_date(start_date_iso: str, payment_type: str) -> str:
    return compute_end_date(start_date_iso, payment_type).isoformat()


def suggest_continuation(
    last_payment: Payment | None,
    payment_type: str | None,
    *,
    today: date,
    start_date=None,
    catalog: PaymentTypeCatalog = DEFAULT_CATALOG,
) -> ContinuationSuggestion:
    """
    Suggested dates for a new payment of ``payment_type``.

    A continuous type following a payment with an end date starts the day
    after that end date, even when the renewal is recorded late. Anything else
    starts today. An explicit ``start_date`` always wins; only the end date is
    derived from it.
    """
    today = utils.to_date(today)

    if start_date is not None:
        start = utils.to_date(start_date)
    elif (
        catalog.is_continuous(payment_type)
        and last_payment is not None
        and last_payment.end_date is not None
    ):
        start = last_payment.end_date + timedelta(days=1)
    else:
        start = today

    suggestion = ContinuationSuggestion(
        payment_date=today,
        start_date=start,
        end_date=compute_end_date(start, payment_type, catalog),
    )
    logger.debug(
        "continuation_suggested",
        extra={
            "payment_type": payment_type,
            "previous_payment_id": last_payment.id if last_payment else None,
            "start_date": suggestion.start_date,
            "end_date": suggestion.end_date,
            "manual_start": start_date is not None,
        },
    )
    return suggestion
