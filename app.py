# =============================================================================
# app.py - LoveDone Parlor Dashboard (Streamlit entry point)
# =============================================================================
"""
Dashboard: case, task and revenue figures for the selected parlor plus the
most recent cases. Data comes from the repositories, so the page keeps
working from the local cache when the server is unreachable.

Run:
    streamlit run app.py
"""
from __future__ import annotations
import streamlit as st
import pandas as pd

from parlor_core.errors import ErrorContext
from parlor_core.ui import header, notify_load_result, stat_cards, start_page
from parlor_core.views import build_analytics, format_currency

st.set_page_config(
    page_title="Dashboard - LoveDone Parlor",
    page_icon="🕊️",
    layout="wide",
)

repos = start_page()

header("Dashboard", "Overview of cases, tasks and payments")

with ErrorContext("Loading dashboard"):
    results = {name: repos[name].load() for name in ("cases", "tasks", "payments")}

    # One banner is enough when every collection fell back to the cache
    for result in results.values():
        if notify_load_result(result):
            break

    cases = results["cases"].entities
    analytics = build_analytics(cases, results["tasks"].entities, results["payments"].entities)

    stat_cards([
        ("Total cases", analytics.total_cases),
        ("Active cases", analytics.active_cases),
        ("Completed cases", analytics.completed_cases),
        ("Pending payments", analytics.pending_payments),
    ])
    stat_cards([
        ("Total revenue", format_currency(analytics.total_revenue)),
        ("This month", format_currency(analytics.monthly_revenue)),
        ("Average case value", format_currency(analytics.avg_case_value)),
        ("Tasks completed", f"{analytics.task_completion_rate}%"),
    ])

    st.markdown("#### Recent cases")
    if cases:
        recent = pd.DataFrame(cases[:5])
        columns = [c for c in ("name", "status", "service_type", "assigned_director", "date_of_death") if c in recent.columns]
        st.dataframe(recent[columns], use_container_width=True, hide_index=True)
    else:
        st.caption("No cases yet.")
