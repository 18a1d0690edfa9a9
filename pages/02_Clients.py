# =============================================================================
# 02_Clients.py - Client Directory
# =============================================================================
from __future__ import annotations

import streamlit as st
import pandas as pd

from parlor_core.auth import visible_to
from parlor_core.errors import ErrorContext
from parlor_core.ui import flash, get_identity, header, notify_load_result, stat_cards, start_page
from parlor_core.views import client_stats, filter_clients

st.set_page_config(
    page_title="Clients - LoveDone Parlor",
    page_icon="👥",
    layout="wide",
)

repos = start_page()
header("Clients", "Families and next of kin", icon="👥")

with ErrorContext("Loading clients"):
    notify_load_result(repos.clients.load())

# Staff only ever see the clients they created
clients = visible_to(get_identity(), repos.clients.entities, repos.clients.collection.owner_column)
stats = client_stats(clients, repos.cases.entities)
stat_cards([
    ("Total clients", stats["total"]),
    ("Active cases", stats["active_cases"]),
    ("New this month", stats["new_this_month"]),
])

search = st.text_input("Search", placeholder="Name, email or phone")
matches = filter_clients(clients, search)
if matches:
    df = pd.DataFrame(matches)
    columns = [c for c in ("name", "email", "phone", "relationship", "address", "id") if c in df.columns]
    st.dataframe(df[columns], use_container_width=True, hide_index=True)
else:
    st.caption("No clients found.")

with st.expander("New client", expanded=False):
    with st.form("new_client", clear_on_submit=True):
        name = st.text_input("Full name")
        col1, col2 = st.columns(2)
        email = col1.text_input("Email")
        phone = col2.text_input("Phone")
        relationship = st.text_input("Relationship to the deceased")
        address = st.text_area("Address")
        preferences = st.text_area("Cultural preferences")
        submitted = st.form_submit_button("Add client", type="primary")

    if submitted:
        if not name.strip():
            st.error("A name is required.")
        else:
            flash(repos.clients.create({
                "name": name.strip(),
                "email": email.strip(),
                "phone": phone.strip(),
                "relationship": relationship.strip(),
                "address": address.strip(),
                "cultural_preferences": preferences.strip() or None,
            }))
            st.rerun()

if clients:
    with st.expander("Edit or remove a client", expanded=False):
        labels = {f"{c.get('name', '')} ({c['id']})": c["id"] for c in clients}
        client_id = labels[st.selectbox("Client", list(labels))]
        current = repos.clients.get(client_id) or {}

        with st.form("edit_client"):
            email = st.text_input("Email", value=current.get("email") or "", key=f"email_{client_id}")
            phone = st.text_input("Phone", value=current.get("phone") or "", key=f"phone_{client_id}")
            address = st.text_area("Address", value=current.get("address") or "", key=f"address_{client_id}")
            saved = st.form_submit_button("Save changes", type="primary")

        if saved:
            flash(repos.clients.update(client_id, {"email": email, "phone": phone, "address": address}))
            st.rerun()
        if st.button("Remove client"):
            flash(repos.clients.delete(client_id))
            st.rerun()
