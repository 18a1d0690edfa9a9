# =============================================================================
# 04_Payments.py - Payments and Revenue
# =============================================================================
from __future__ import annotations

import streamlit as st
import pandas as pd
import plotly.express as px

from parlor_core.errors import ErrorContext
from parlor_core.models import PaymentMethod, PaymentStatus
from parlor_core.ui import (
    flash,
    header,
    notify_load_result,
    stat_cards,
    start_page,
    watch_remote_changes,
)
from parlor_core.views import filter_payments, format_currency, payment_stats, revenue_by_method

st.set_page_config(
    page_title="Payments - LoveDone Parlor",
    page_icon="💳",
    layout="wide",
)

repos = start_page()
header("Payments", "Revenue and transaction history", icon="💳")

changes = watch_remote_changes(repos)
if "payments" in changes:
    st.info("Payments were changed elsewhere.")
    if st.button("Refresh"):
        changes.clear()
        st.rerun()

with ErrorContext("Loading payments"):
    notify_load_result(repos.payments.load())

payments = repos.payments.entities
stats = payment_stats(payments)
stat_cards([
    ("Total revenue", format_currency(stats["total_revenue"])),
    ("Pending", format_currency(stats["pending_amount"])),
    ("Successful", stats["successful_transactions"]),
    ("Success rate", f"{stats['success_rate']}%"),
])

by_method = revenue_by_method(payments)
fig = px.bar(by_method, x="method", y="amount", labels={"method": "Method", "amount": "Revenue (R)"})
fig.update_layout(height=300, margin=dict(l=10, r=10, t=30, b=10), title="Revenue by payment method")
st.plotly_chart(fig, use_container_width=True)

col_search, col_status, col_method = st.columns([2, 1, 1])
search = col_search.text_input("Search", placeholder="Description or transaction id")
status = col_status.selectbox("Status", ["all"] + [s.value for s in PaymentStatus])
method = col_method.selectbox("Method", ["all"] + [m.value for m in PaymentMethod])

matches = filter_payments(payments, search, status, method)
if matches:
    df = pd.DataFrame(matches)
    columns = [c for c in ("created_at", "description", "amount", "method", "status", "transaction_id") if c in df.columns]
    st.dataframe(df[columns], use_container_width=True, hide_index=True)
else:
    st.caption("No payments match the current filters.")

with st.expander("Record a payment", expanded=False):
    cases = {c.get("name") or c["id"]: c["id"] for c in repos.cases.entities}

    with st.form("new_payment", clear_on_submit=True):
        description = st.text_input("Description")
        col1, col2, col3 = st.columns(3)
        amount = col1.number_input("Amount (R)", min_value=0.0, step=100.0)
        pay_method = col2.selectbox("Method", [m.value for m in PaymentMethod])
        pay_status = col3.selectbox("Status", [s.value for s in PaymentStatus])
        transaction_id = st.text_input("Transaction id")
        case_name = st.selectbox("Case", ["(none)"] + list(cases))
        submitted = st.form_submit_button("Save payment", type="primary")

    if submitted:
        if amount <= 0:
            st.error("Amount must be greater than zero.")
        else:
            flash(repos.payments.create({
                "description": description.strip(),
                "amount": amount,
                "method": pay_method,
                "status": pay_status,
                "transaction_id": transaction_id.strip() or None,
                "case_id": cases.get(case_name),
            }))
            st.rerun()
