"""
Tests for the MembershipLedger query surface.
"""

from datetime import date

from conftest import make_payment, make_user, make_visit
from ledger import MembershipLedger


class TestMostRecentPayment:
    def test_none_without_payments(self):
        assert MembershipLedger().most_recent_payment("u1") is None

    def test_orders_by_start_date_not_insertion(self):
        feb = make_payment("u1", date(2024, 2, 1), date(2024, 2, 29))
        jan = make_payment("u1", date(2024, 1, 1), date(2024, 1, 31))
        ledger = MembershipLedger(payments=[feb, jan])
        assert ledger.most_recent_payment("u1") is feb

    def test_ignores_payments_without_end(self):
        done = make_payment("u1", date(2024, 1, 1), date(2024, 1, 31))
        pending = make_payment("u1", date(2024, 3, 1), None)
        ledger = MembershipLedger(payments=[done, pending])
        assert ledger.most_recent_payment("u1") is done

    def test_ties_keep_first_inserted(self):
        first = make_payment("u1", date(2024, 1, 1), date(2024, 1, 31))
        second = make_payment("u1", date(2024, 1, 1), date(2024, 1, 1), payment_type="Clase suelta")
        ledger = MembershipLedger(payments=[first, second])
        assert ledger.most_recent_payment("u1") is first

    def test_scoped_to_user(self):
        ledger = MembershipLedger(payments=[make_payment("u2", date(2024, 1, 1), date(2024, 1, 31))])
        assert ledger.most_recent_payment("u1") is None

    def test_payments_for_newest_first(self):
        jan = make_payment("u1", date(2024, 1, 1), date(2024, 1, 31))
        mar = make_payment("u1", date(2024, 3, 1), date(2024, 3, 31))
        feb = make_payment("u1", date(2024, 2, 1), date(2024, 2, 29))
        ledger = MembershipLedger(payments=[jan, mar, feb])
        assert ledger.payments_for("u1") == [mar, feb, jan]


class TestAttendanceQueries:
    def setup_method(self):
        self.ledger = MembershipLedger(
            attendance=[
                make_visit("u1", date(2024, 1, 5)),
                make_visit("u1", date(2024, 1, 10)),
                make_visit("u1", date(2024, 1, 12), present=False),
                make_visit("u1", date(2024, 1, 20)),
                make_visit("u2", date(2024, 1, 25)),
            ]
        )

    def test_range_is_inclusive_and_present_only(self):
        assert self.ledger.attendance_in_range("u1", date(2024, 1, 5), date(2024, 1, 12)) == 2

    def test_inverted_range_is_empty(self):
        assert self.ledger.attendance_in_range("u1", date(2024, 1, 20), date(2024, 1, 1)) == 0

    def test_after_is_strict(self):
        assert self.ledger.attendance_after("u1", date(2024, 1, 10)) == 1

    def test_most_recent_present(self):
        assert self.ledger.most_recent_present_attendance("u1").date == date(2024, 1, 20)
        assert self.ledger.most_recent_present_attendance("u3") is None

    def test_attendance_on_day(self):
        [record] = self.ledger.attendance_on(date(2024, 1, 12))
        assert record.status == "absent"

    def test_present_between_all_members(self):
        found = self.ledger.present_attendance_between(date(2024, 1, 6), date(2024, 1, 31))
        assert [(a.user_id, a.date.day) for a in found] == [("u2", 25), ("u1", 20), ("u1", 10)]

    def test_present_between_one_member(self):
        found = self.ledger.present_attendance_between(date(2024, 1, 1), date(2024, 1, 31), "u2")
        assert [a.user_id for a in found] == ["u2"]


class TestSnapshot:
    def test_refresh_replaces_everything(self):
        ledger = MembershipLedger(
            payments=[make_payment("u1", date(2024, 1, 1), date(2024, 1, 31))],
            attendance=[make_visit("u1", date(2024, 1, 5))],
            users=[make_user("u1")],
        )
        ledger.refresh(payments=[], attendance=[], users=[make_user("u2")])
        assert ledger.most_recent_payment("u1") is None
        assert ledger.most_recent_present_attendance("u1") is None
        assert ledger.user("u1") is None
        assert ledger.user("u2").id == "u2"

    def test_users_by_id_is_a_copy(self):
        ledger = MembershipLedger(users=[make_user("u1")])
        ledger.users_by_id.clear()
        assert ledger.user("u1") is not None

    def test_accepts_generators(self):
        ledger = MembershipLedger(
            payments=(p for p in [make_payment("u1", date(2024, 1, 1), date(2024, 1, 31))]),
            users=(u for u in [make_user("u1")]),
        )
        assert ledger.most_recent_payment("u1") is not None
        assert len(ledger.users()) == 1
