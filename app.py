"""
app.py
Streamlit console for memberships: payments with coverage windows, attendance,
compliance status and inactivity alerts.
Run: streamlit run app.py
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pandas as pd
import streamlit as st

import alerts
import compliance
import config
import db
import utils
import vigency
from clock import SystemClock
from errors import VigencyError
from logging_config import configure_logging
from models import ABSENT, DEFAULT_CATALOG, PRESENT, Payment

st.set_page_config(page_title="Gym Memberships", layout="wide")

CLOCK = SystemClock()


def init_once():
    configure_logging(level=config.LOG_LEVEL)
    db.init_db()


def member_options(users) -> dict[str, str]:
    return {f"{u.name} ({u.phone})": u.id for u in users}


def dashboard_page():
    st.header("📊 Dashboard")

    today = CLOCK.today()
    ledger = db.load_ledger()
    users = ledger.users()
    try:
        classifications = compliance.classify_members(ledger, users, today)
    except VigencyError as e:
        st.error(f"Data problem: {e}")
        return
    pending = alerts.compute_alerts(ledger, users, today, config.INACTIVITY_THRESHOLD_DAYS)

    by_label = pd.Series([c.status.label for c in classifications], dtype="object").value_counts()
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Members with valid plan", int(by_label.get("active", 0)))
    c2.metric("Expiring today", int(by_label.get("expiring_today", 0)))
    c3.metric("Expired", int(by_label.get("expired", 0)))
    c4.metric("Inactivity alerts", len(pending))

    st.divider()

    st.subheader("Attending after expiry")
    overdue = [
        c for c in classifications
        if c.status.label == "expired" and c.window.after_expiry_attendance_count > 0
    ]
    if overdue:
        st.dataframe(utils.classifications_frame(overdue, ledger.users_by_id), use_container_width=True, hide_index=True)
    else:
        st.caption("Nobody is attending on an expired plan.")

    st.subheader("All members")
    st.dataframe(utils.classifications_frame(classifications, ledger.users_by_id), use_container_width=True, hide_index=True)


def members_page():
    st.header("👥 Members")

    ledger = db.load_ledger()
    users = ledger.users()
    df = pd.DataFrame(
        [
            {"name": u.name, "phone": u.phone, "status": u.status,
             "affiliation": u.affiliation_type, "class_time": u.class_time}
            for u in users
        ],
        columns=["name", "phone", "status", "affiliation", "class_time"],
    )
    st.dataframe(df, use_container_width=True, hide_index=True)

    st.divider()

    st.subheader("➕ Add member")
    col1, col2 = st.columns(2)
    with col1:
        name = st.text_input("Full name")
        phone = st.text_input("Phone")
    with col2:
        affiliation = st.selectbox("Affiliation", config.AFFILIATION_TYPES)
        class_time = st.text_input("Class time", value="")

    if st.button("Save member", type="primary"):
        if not name.strip() or not phone.strip():
            st.error("Name and phone are required.")
        else:
            db.insert_user(name, phone, affiliation, class_time.strip() or None)
            st.success("Member added.")
            st.rerun()

    if not users:
        return

    st.divider()

    st.subheader("Member actions")
    options = member_options(users)
    chosen = st.selectbox("Member", list(options.keys()), key="member_actions")
    user = ledger.user(options[chosen])
    c1, c2 = st.columns(2)
    with c1:
        new_status = "inactive" if user.status == "active" else "active"
        if st.button(f"Mark {new_status}"):
            db.set_user_status(user.id, new_status)
            st.rerun()
    with c2:
        delete_confirm = st.checkbox("Confirm delete (removes payments and attendance)", value=False)
        if st.button("Delete", type="secondary", disabled=not delete_confirm):
            db.delete_user(user.id)
            st.success("Member deleted.")
            st.rerun()


def payment_form(ledger, user_id: str):
    today = CLOCK.today()
    last = ledger.most_recent_payment(user_id)
    if last:
        st.caption(f"Last payment: {last.payment_type} · covered until {last.end_date.isoformat()}")

    c1, c2, c3 = st.columns(3)
    with c1:
        payment_type = st.selectbox("Payment type", DEFAULT_CATALOG.all_types)
        amount = st.text_input("Amount", value="0")
    with c2:
        method = st.selectbox("Method", config.PAYMENT_METHODS)
        notes = st.text_input("Notes", value="")

    suggestion = vigency.suggest_continuation(last, payment_type, today=today)
    with c3:
        start = st.date_input("Coverage start", value=suggestion.start_date)
    if start != suggestion.start_date:
        # operator override; keep their start and derive only the end
        suggestion = vigency.suggest_continuation(last, payment_type, today=today, start_date=start)

    if suggestion.start_date == suggestion.end_date:
        st.info(f"Coverage: single day ({suggestion.start_date.isoformat()})")
    else:
        st.info(f"Coverage: {suggestion.start_date.isoformat()} → {suggestion.end_date.isoformat()}")

    errors = utils.validate_payment_inputs(
        user_id, payment_type, amount, method,
        suggestion.start_date.isoformat(), suggestion.end_date.isoformat(),
    )
    for e in errors:
        st.error(e)
    for w in utils.amount_warnings(amount):
        st.warning(w)

    if st.button("Record payment", type="primary", disabled=bool(errors)):
        payment = Payment(
            id=db.new_id(),
            user_id=user_id,
            payment_type=payment_type,
            amount=utils.parse_amount(amount),
            payment_method=method,
            payment_date=suggestion.payment_date,
            start_date=suggestion.start_date,
            end_date=suggestion.end_date,
            notes=notes.strip(),
            created_at=datetime.now(timezone.utc),
        )
        db.insert_payment(payment)
        st.success("Payment recorded.")
        st.rerun()


def edit_payment_form(payment: Payment):
    st.subheader("✏️ Edit coverage")
    start = st.date_input("Coverage start", value=payment.start_date, key=f"edit_start_{payment.id}")
    try:
        end = vigency.compute_end_date(start, payment.payment_type)
    except VigencyError as e:
        st.error(str(e))
        return
    st.info(f"New coverage: {start.isoformat()} → {end.isoformat()}")
    if st.button("Save coverage", key=f"save_{payment.id}"):
        db.update_payment(replace(payment, start_date=start, end_date=end))
        st.success("Payment updated.")
        st.rerun()


def payments_page():
    st.header("💳 Payments")

    ledger = db.load_ledger()
    users = ledger.users()
    if not users:
        st.info("No members yet. Add a member first.")
        return

    options = member_options(users)
    chosen = st.selectbox("Member", list(options.keys()))
    user_id = options[chosen]

    st.subheader("Add payment")
    try:
        payment_form(ledger, user_id)
    except VigencyError as e:
        st.error(str(e))

    st.divider()

    st.subheader("Payment history")
    history = ledger.payments_for(user_id)
    if not history:
        st.caption("No payments for this member yet.")
        return
    df = pd.DataFrame(
        [
            {"payment_date": p.payment_date.isoformat(), "type": p.payment_type, "amount": float(p.amount),
             "method": p.payment_method, "start": p.start_date.isoformat(), "end": p.end_date.isoformat(),
             "notes": p.notes}
            for p in history
        ]
    )
    st.dataframe(df, use_container_width=True, hide_index=True)

    labels = utils.payment_choices(history)
    picked = labels[st.selectbox("Payment", list(labels.keys()))]
    edit_payment_form(picked)
    delete_confirm = st.checkbox("Confirm delete payment", value=False)
    if st.button("Delete payment", disabled=not delete_confirm):
        db.delete_payment(picked.id)
        st.success("Payment deleted.")
        st.rerun()


def attendance_page():
    st.header("✅ Attendance")

    ledger = db.load_ledger()
    day = st.date_input("Date", value=CLOCK.today())
    search = st.text_input("Search member").strip().lower()
    members = [
        u for u in ledger.users()
        if compliance.is_compliance_eligible(u) and (not search or search in u.name.lower())
    ]
    records = {a.user_id: a for a in ledger.attendance_on(day)}
    present = sum(1 for a in records.values() if a.status == PRESENT)
    st.caption(f"Present: {present} · Active members: {len(members)}")

    if st.button("Mark all present"):
        now = CLOCK.check_in_time()
        for u in members:
            db.record_attendance(u.id, day, PRESENT, now)
        st.rerun()

    for u in members:
        record = records.get(u.id)
        try:
            status_line = utils.status_text(compliance.classify(ledger, u.id, day).status)
        except VigencyError as e:
            status_line = f"⚠️ {e}"
        c1, c2, c3, c4 = st.columns([3, 2, 1, 1])
        c1.markdown(f"**{u.name}** · {u.class_time or '-'}  \n{status_line}")
        c2.write(f"{record.status} {record.time or ''}" if record else "no record")
        if c3.button("Present", key=f"present_{u.id}"):
            db.record_attendance(u.id, day, PRESENT, CLOCK.check_in_time())
            st.rerun()
        if c4.button("Absent", key=f"absent_{u.id}"):
            db.record_attendance(u.id, day, ABSENT, CLOCK.check_in_time())
            st.rerun()

    st.divider()

    st.subheader("Attendance report")
    c1, c2, c3 = st.columns(3)
    with c1:
        date_from = st.date_input("From", value=CLOCK.today() - timedelta(days=30))
    with c2:
        date_to = st.date_input("To", value=CLOCK.today())
    with c3:
        options = {"All members": None, **member_options(members)}
        filter_id = options[st.selectbox("Member filter", list(options.keys()))]
    found = ledger.present_attendance_between(date_from, date_to, filter_id)
    st.caption(f"{len(found)} attendance record(s)")
    st.dataframe(utils.attendance_report_frame(found, ledger.users_by_id), use_container_width=True, hide_index=True)


def alerts_page():
    st.header("⏰ Inactivity Alerts")

    threshold = st.number_input(
        "Days without attending", min_value=0, value=config.INACTIVITY_THRESHOLD_DAYS, step=1
    )
    ledger = db.load_ledger()
    found = alerts.compute_alerts(ledger, ledger.users(), CLOCK.today(), int(threshold))
    if found:
        st.dataframe(utils.alerts_frame(found, ledger.users_by_id), use_container_width=True, hide_index=True)
    else:
        st.caption("No inactivity alerts.")


def settings_page():
    st.header("⚙️ Settings")

    st.subheader("Sample data")
    st.caption("Insert sample members, payments and attendance (adds new rows each run).")
    if st.button("Insert sample data"):
        db.insert_sample_data(CLOCK.today())
        st.success("Sample data inserted.")
        st.rerun()


def main_app():
    st.sidebar.title("🏋️ Gym Memberships")

    pages = {
        "Dashboard": dashboard_page,
        "Members": members_page,
        "Payments": payments_page,
        "Attendance": attendance_page,
        "Alerts": alerts_page,
        "Settings": settings_page,
    }
    if "page" not in st.session_state:
        st.session_state.page = "Dashboard"
    names = list(pages.keys())
    st.session_state.page = st.sidebar.radio("Navigate", names, index=names.index(st.session_state.page))
    pages[st.session_state.page]()


# --------- App entry ---------

def run():
    init_once()
    main_app()


if __name__ == "__main__":
    run()
