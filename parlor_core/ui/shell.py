# =============================================================================
# parlor_core/ui/shell.py
# Page bootstrap shared by the dashboard and every page
# =============================================================================

from __future__ import annotations
from typing import Optional

import streamlit as st

from parlor_core.auth import Role
from parlor_core.offline import ParlorRepositories
from parlor_core.ui.components import render_sidebar_status
from parlor_core.ui.notifications import show_flash
from parlor_core.ui.session import (
    get_client,
    get_identity,
    get_parlor_choices,
    get_repositories,
    init_state,
    login,
    logout,
    select_parlor,
)


def render_login() -> None:
    """Email/password form; stops the script until the user is signed in."""
    st.markdown("### 🕊️ LoveDone Parlor")
    st.caption("Sign in to manage your parlor")

    with st.form("login_form"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign in", type="primary")

    if submitted:
        if login(email, password) is None:
            st.error("Sign-in failed. Check your email and password.")
        else:
            st.rerun()
    st.stop()


def render_parlor_picker(home_parlor: Optional[str] = None) -> None:
    """Sidebar select box over the parlors directory (super admins only)."""
    choices = get_parlor_choices()
    current = st.session_state.get("selected_parlor") or home_parlor

    if not choices:
        # Directory never loaded on this device: let the id be typed in
        parlor = st.sidebar.text_input("Parlor id", value=current or "")
        select_parlor(parlor.strip() or None)
        return

    labels = list(choices)
    ids = list(choices.values())
    index = ids.index(current) if current in ids else 0
    label = st.sidebar.selectbox("Parlor", labels, index=index, help="Super admins can view any parlor")
    select_parlor(choices[label])

    if st.sidebar.button("Refresh parlor list"):
        get_parlor_choices(refresh=True)
        st.rerun()


def start_page() -> ParlorRepositories:
    """
    Common page setup: session defaults, sign-in gate, parlor selection,
    sidebar status and any pending write message.

    Without a configured backend nobody signs in and the app runs
    local-only and unscoped.
    """
    init_state()

    if get_client() is not None and get_identity() is None:
        render_login()

    identity = get_identity()
    if identity is not None and identity.role == Role.SUPER_ADMIN:
        render_parlor_picker(identity.parlor_id)

    repos = get_repositories()
    render_sidebar_status(repos)

    if identity is not None and st.sidebar.button("Sign out"):
        logout()
        st.rerun()

    show_flash()
    return repos
