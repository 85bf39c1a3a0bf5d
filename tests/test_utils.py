"""
Tests for date normalisation, amounts, validation and console tables.
"""

from dataclasses import replace
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

import utils
from conftest import make_user
from errors import InvalidCoverageWindow, InvalidDateError
from models import Active, AttendanceAlert, Classification, Expired, Payment, Uncovered, VigencyWindow


class TestNormalizeDate:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("2024-02-01", "2024-02-01"),
            ("2024-02-01T05:00:00.000Z", "2024-02-01"),
            ("2024-02-01 10:30", "2024-02-01"),
            ("1/2/2024", "2024-02-01"),
            ("01-02-2024", "2024-02-01"),
            ("  2024-02-01  ", "2024-02-01"),
        ],
    )
    def test_known_spellings(self, raw, expected):
        assert utils.normalize_date(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_empty(self, raw):
        assert utils.normalize_date(raw) is None

    def test_unknown_left_for_parser(self):
        assert utils.normalize_date("Feb 1st") == "Feb 1st"
        with pytest.raises(InvalidDateError):
            utils.to_date("Feb 1st")


class TestDates:
    def test_optional_date(self):
        assert utils.optional_date(None) is None
        assert utils.optional_date("") is None
        assert utils.optional_date("2024-01-05") == date(2024, 1, 5)

    def test_add_months_clamps(self):
        assert utils.add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert utils.add_months(date(2024, 11, 30), 2) == date(2025, 1, 30)
        assert utils.add_months(date(2024, 3, 31), -1) == date(2024, 2, 29)

    def test_days_between(self):
        assert utils.days_between(date(2024, 2, 9), date(2024, 2, 20)) == 11
        assert utils.days_between(date(2024, 2, 20), date(2024, 2, 9)) == -11


class TestParseAmount:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("$45.000", Decimal("45000")),
            ("120.000", Decimal("120000")),
            ("45,000.50", Decimal("45000.50")),
            ("45000,50", Decimal("45000.50")),
            ("45000.5", Decimal("45000.5")),
            (15000, Decimal("15000")),
            (12.5, Decimal("12.5")),
        ],
    )
    def test_formats(self, raw, expected):
        assert utils.parse_amount(raw) == expected

    @pytest.mark.parametrize(
        "raw", ["mucho", "nan", "NaN", "Infinity", "-inf", "sNaN", float("nan"), Decimal("Infinity")]
    )
    def test_garbage(self, raw):
        with pytest.raises(ValueError):
            utils.parse_amount(raw)


class TestValidatePaymentInputs:
    def test_valid(self):
        assert utils.validate_payment_inputs(
            "u1", "Mensualidad", "120000", "Efectivo", "2024-01-10", "2024-02-09"
        ) == []

    def test_collects_every_problem(self):
        errors = utils.validate_payment_inputs("", "", "-5", "", "2024-02-09", "2024-01-10")
        assert errors == [
            "Select a member.",
            "Select a payment type.",
            "Select a payment method.",
            "Amount cannot be negative.",
            "End date cannot be before start date.",
        ]

    def test_single_day_must_be_one_day(self):
        errors = utils.validate_payment_inputs(
            "u1", "Clase suelta", "15000", "Efectivo", "2024-01-10", "2024-01-11"
        )
        assert errors == ["Single-day payments must start and end on the same day."]

    def test_bad_dates_and_amount(self):
        errors = utils.validate_payment_inputs("u1", "Mensualidad", "abc", "Efectivo", "x", "2024-01-11")
        assert "Amount must be numeric." in errors
        assert "Start/end dates must be valid dates (YYYY-MM-DD)." in errors

    @pytest.mark.parametrize("raw", ["nan", "Infinity"])
    def test_non_finite_amount_rejected(self, raw):
        errors = utils.validate_payment_inputs(
            "u1", "Mensualidad", raw, "Efectivo", "2024-01-10", "2024-02-09"
        )
        assert errors == ["Amount must be numeric."]

    def test_high_amount_warning(self):
        assert utils.amount_warnings("250000")
        assert utils.amount_warnings("50000") == []
        assert utils.amount_warnings("NaN") == []
        assert utils.amount_warnings("Infinity") == []


class TestParseTimestamp:
    def test_trailing_z_is_utc(self):
        parsed = utils.parse_timestamp("2024-01-10T15:00:00Z")
        assert parsed == datetime(2024, 1, 10, 15, 0, tzinfo=timezone.utc)
        assert parsed.utcoffset() == timedelta(0)

    def test_offset_and_naive(self):
        assert utils.parse_timestamp("2024-01-10T10:00:00-05:00") == datetime(2024, 1, 10, 15, 0, tzinfo=timezone.utc)
        assert utils.parse_timestamp("2024-01-10 15:00:00").tzinfo is None

    @pytest.mark.parametrize("raw", [None, "", "  "])
    def test_empty(self, raw):
        assert utils.parse_timestamp(raw) is None

    def test_garbage(self):
        with pytest.raises(InvalidDateError):
            utils.parse_timestamp("ayer por la tarde")


class TestPaymentChoices:
    def test_identical_payments_get_separate_labels(self):
        first = Payment(
            id="pay-aaaaaaaa-1", user_id="u1", payment_type="Mensualidad", amount=Decimal("120000"),
            payment_method="Efectivo", payment_date=date(2024, 1, 10),
            start_date=date(2024, 1, 10), end_date=date(2024, 2, 9),
        )
        second = replace(first, id="pay-bbbbbbbb-2")
        choices = utils.payment_choices([first, second])
        assert len(choices) == 2
        assert sorted(p.id for p in choices.values()) == ["pay-aaaaaaaa-1", "pay-bbbbbbbb-2"]

    def test_shared_id_prefix_still_distinct(self):
        first = Payment(
            id="pay-aaaa-1", user_id="u1", payment_type="Clase suelta", amount=Decimal("15000"),
            payment_method="Nequi", payment_date=date(2024, 1, 10),
            start_date=date(2024, 1, 10), end_date=date(2024, 1, 10),
        )
        second = replace(first, id="pay-aaaa-2")
        choices = utils.payment_choices([first, second])
        assert [p.id for p in choices.values()] == ["pay-aaaa-1", "pay-aaaa-2"]


class TestPaymentInvariant:
    def test_inverted_window_rejected(self):
        with pytest.raises(InvalidCoverageWindow):
            Payment(
                id="p1", user_id="u1", payment_type="Mensualidad", amount=Decimal("1"),
                payment_method="Efectivo", payment_date=date(2024, 1, 1),
                start_date=date(2024, 2, 1), end_date=date(2024, 1, 1),
            )


class TestFrames:
    def test_alerts_frame(self):
        users = {"u1": make_user("u1", name="Ana"), "u2": make_user("u2", name="Luis")}
        alerts = [AttendanceAlert("u1", None, None), AttendanceAlert("u2", 9, date(2024, 3, 6))]
        df = utils.alerts_frame(alerts, users)
        assert list(df["member"]) == ["Ana", "Luis"]
        assert list(df["days_without_attending"]) == ["never attended", 9]
        assert list(df["last_attendance"]) == ["-", "2024-03-06"]

    def test_classifications_frame(self):
        users = {"u1": make_user("u1", name="Ana")}
        window = VigencyWindow(date(2024, 1, 10), date(2024, 2, 9), 3, 1)
        rows = [
            Classification("u1", date(2024, 2, 20), Expired(11), window),
            Classification("u9", date(2024, 2, 20), Uncovered()),
        ]
        df = utils.classifications_frame(rows, users)
        assert list(df["member"]) == ["Ana", "u9"]
        assert list(df["status"]) == ["expired", "uncovered"]
        assert list(df["after_expiry"]) == [1, 0]

    def test_empty_frames_keep_columns(self):
        assert list(utils.alerts_frame([], {}).columns) == [
            "member", "phone", "days_without_attending", "last_attendance",
        ]
        assert utils.attendance_report_frame([], {}).empty

    def test_status_text(self):
        assert utils.status_text(Active(until=date(2024, 2, 9))) == "Valid until 2024-02-09"
        assert utils.status_text(Expired(1)) == "Expired 1 day ago"
        assert utils.status_text(Expired(3)) == "Expired 3 days ago"
        assert utils.status_text(Uncovered()) == "No payment"
