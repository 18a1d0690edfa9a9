# =============================================================================
# 05_Services.py - Plans & Service Types
# =============================================================================
"""
The parlor's catalogue: funeral cover plans and the service types it
performs, each with the number of cases that use it.
"""
from __future__ import annotations

import streamlit as st
import pandas as pd

from parlor_core.errors import ErrorContext
from parlor_core.ui import flash, header, notify_load_result, stat_cards, start_page
from parlor_core.views import (
    format_currency,
    plan_stats,
    validate_plan,
    validate_service_type,
    with_case_counts,
)

st.set_page_config(
    page_title="Services - LoveDone Parlor",
    page_icon="🕯️",
    layout="wide",
)

repos = start_page()
header("Services", "Funeral plans and service types offered by the parlor", icon="🕯️")

with ErrorContext("Loading plans and services"):
    notify_load_result(repos.plans.load())
    repos.service_types.load()

cases = repos.cases.entities
plans = with_case_counts(repos.plans.entities, cases, "plan_id")
service_types = with_case_counts(repos.service_types.entities, cases, "service_type_id")

stats = plan_stats(plans)
stat_cards([
    ("Plans", stats["total"]),
    ("Active plans", stats["active"]),
    ("Premiums from", format_currency(stats["lowest_premium"])),
    ("Service types", len(service_types)),
])

plans_tab, services_tab = st.tabs(["Plans", "Service types"])

# =============================================================================
# PLANS
# =============================================================================
with plans_tab:
    if plans:
        df = pd.DataFrame(plans)
        columns = [c for c in ("name", "monthly_premium", "cover_amount", "is_active", "cases", "description") if c in df.columns]
        st.dataframe(df[columns], use_container_width=True, hide_index=True)
    else:
        st.caption("No plans yet.")

    labels = {"New plan": None}
    labels.update({f"{p.get('name', '')} ({p['id']})": p["id"] for p in plans})
    plan_id = labels[st.selectbox("Add or edit", list(labels), key="plan_choice")]
    current = (repos.plans.get(plan_id) or {}) if plan_id else {}
    suffix = plan_id or "new"

    with st.form(f"plan_form_{suffix}"):
        name = st.text_input("Plan name", value=current.get("name") or "", key=f"plan_name_{suffix}")
        col1, col2 = st.columns(2)
        monthly = col1.number_input(
            "Monthly premium (R)", min_value=0.0, step=10.0, value=float(current.get("monthly_premium") or 0),
            key=f"plan_premium_{suffix}",
        )
        cover = col2.number_input(
            "Cover amount (R)", min_value=0.0, step=1000.0, value=float(current.get("cover_amount") or 0),
            key=f"plan_cover_{suffix}",
        )
        description = st.text_area("Description", value=current.get("description") or "", key=f"plan_description_{suffix}")
        is_active = st.checkbox("Active", value=bool(current.get("is_active", True)), key=f"plan_active_{suffix}")
        submitted = st.form_submit_button("Save plan", type="primary")

    if submitted:
        record, errors = validate_plan({
            "name": name,
            "monthly_premium": monthly,
            "cover_amount": cover,
            "description": description,
            "is_active": is_active,
        })
        if errors:
            for message in errors:
                st.error(message)
        else:
            flash(repos.plans.update(plan_id, record) if plan_id else repos.plans.create(record))
            st.rerun()

    if plan_id and st.button("Delete plan"):
        flash(repos.plans.delete(plan_id))
        st.rerun()

# =============================================================================
# SERVICE TYPES
# =============================================================================
with services_tab:
    if service_types:
        df = pd.DataFrame(service_types)
        columns = [c for c in ("name", "default_duration_minutes", "cases", "description") if c in df.columns]
        st.dataframe(df[columns], use_container_width=True, hide_index=True)
    else:
        st.caption("No service types yet.")

    labels = {"New service type": None}
    labels.update({f"{s.get('name', '')} ({s['id']})": s["id"] for s in service_types})
    service_id = labels[st.selectbox("Add or edit", list(labels), key="service_choice")]
    current = (repos.service_types.get(service_id) or {}) if service_id else {}
    suffix = service_id or "new"

    with st.form(f"service_form_{suffix}"):
        name = st.text_input("Service name", value=current.get("name") or "", key=f"service_name_{suffix}")
        duration = st.number_input(
            "Default duration (minutes)",
            min_value=0,
            step=15,
            value=int(current.get("default_duration_minutes") or 60),
            key=f"service_duration_{suffix}",
        )
        description = st.text_area(
            "Description", value=current.get("description") or "", key=f"service_description_{suffix}"
        )
        submitted = st.form_submit_button("Save service type", type="primary")

    if submitted:
        record, errors = validate_service_type({
            "name": name,
            "default_duration_minutes": duration,
            "description": description,
        })
        if errors:
            for message in errors:
                st.error(message)
        else:
            result = (
                repos.service_types.update(service_id, record) if service_id
                else repos.service_types.create(record)
            )
            flash(result)
            st.rerun()

    if service_id and st.button("Delete service type"):
        flash(repos.service_types.delete(service_id))
        st.rerun()
