# =============================================================================
# 01_Cases.py - Case Management
# =============================================================================
"""
Cases of the parlor: search and filter, create a case, change its status,
delete it. Every write shows one message describing where the change landed
(server, this device only, or nowhere).
"""
from __future__ import annotations
from datetime import date

import streamlit as st
import pandas as pd

from parlor_core.errors import ErrorContext
from parlor_core.models import CaseStatus, ServiceType
from parlor_core.ui import flash, header, notify_load_result, stat_cards, start_page
from parlor_core.views import case_stats, filter_cases

st.set_page_config(
    page_title="Cases - LoveDone Parlor",
    page_icon="📁",
    layout="wide",
)

repos = start_page()
header("Cases", "Deceased profiles and the services arranged for them", icon="📁")

with ErrorContext("Loading cases"):
    notify_load_result(repos.cases.load())

cases = repos.cases.entities
stats = case_stats(cases)
stat_cards([
    ("Total", stats["total"]),
    ("Active", stats["active"]),
    ("Quotes", stats["quotes"]),
    ("Completed", stats["completed"]),
])

# =============================================================================
# FILTERS + TABLE
# =============================================================================
col_search, col_status, col_service = st.columns([2, 1, 1])
search = col_search.text_input("Search", placeholder="Name or director")
status = col_status.selectbox("Status", ["all"] + [s.value for s in CaseStatus])
service_type = col_service.selectbox("Service", ["all"] + [s.value for s in ServiceType])

visible = filter_cases(cases, search, status, service_type)
if visible:
    df = pd.DataFrame(visible)
    columns = [c for c in ("name", "status", "service_type", "assigned_director", "date_of_birth", "date_of_death", "id") if c in df.columns]
    st.dataframe(df[columns], use_container_width=True, hide_index=True)
else:
    st.caption("No cases match the current filters.")

# =============================================================================
# CREATE
# =============================================================================
with st.expander("New case", expanded=False):
    clients = repos.clients.entities
    client_options = {c.get("name") or c["id"]: c["id"] for c in clients}
    plan_options = {p.get("name") or p["id"]: p["id"] for p in repos.plans.entities if p.get("is_active", True)}

    with st.form("new_case", clear_on_submit=True):
        name = st.text_input("Full name of the deceased")
        col1, col2 = st.columns(2)
        date_of_birth = col1.date_input("Date of birth", value=None, min_value=date(1900, 1, 1))
        date_of_death = col2.date_input("Date of death", value=date.today())
        service = st.selectbox("Service type", [s.value for s in ServiceType])
        director = st.text_input("Assigned director")
        client_name = st.selectbox("Client", ["(none)"] + list(client_options))
        plan_name = st.selectbox("Funeral plan", ["(none)"] + list(plan_options))
        cultural = st.text_area("Cultural or religious requirements")
        submitted = st.form_submit_button("Create case", type="primary")

    if submitted:
        if not name.strip():
            st.error("A name is required.")
        else:
            record = {
                "name": name.strip(),
                "date_of_birth": date_of_birth.isoformat() if date_of_birth else None,
                "date_of_death": date_of_death.isoformat() if date_of_death else None,
                "service_type": service,
                "status": CaseStatus.QUOTE.value,
                "assigned_director": director.strip(),
                "client_id": client_options.get(client_name),
                "plan_id": plan_options.get(plan_name),
                "cultural_requirements": cultural.strip() or None,
            }
            flash(repos.cases.create(record))
            st.rerun()

# =============================================================================
# UPDATE / DELETE
# =============================================================================
if cases:
    with st.expander("Update or delete a case", expanded=False):
        labels = {f"{c.get('name', '')} ({c['id']})": c["id"] for c in cases}
        selected = st.selectbox("Case", list(labels))
        case_id = labels[selected]
        current = repos.cases.get(case_id) or {}

        statuses = [s.value for s in CaseStatus]
        new_status = st.selectbox(
            "Status",
            statuses,
            index=statuses.index(current["status"]) if current.get("status") in statuses else 0,
            key="case_status_edit",
        )

        col_save, col_delete = st.columns(2)
        if col_save.button("Save status", type="primary"):
            flash(repos.cases.update(case_id, {"status": new_status}))
            st.rerun()
        if col_delete.button("Delete case"):
            flash(repos.cases.delete(case_id))
            st.rerun()
