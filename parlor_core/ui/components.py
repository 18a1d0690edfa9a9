# =============================================================================
# parlor_core/ui/components.py
# Small shared widgets: page header, stat cards, sidebar status
# =============================================================================

from __future__ import annotations
from typing import Iterable, Tuple, Union

import streamlit as st

from parlor_core.offline import ParlorRepositories


def header(title: str, subtitle: str, icon: str = "🕊️"):
    st.markdown(f"### {icon} {title}")
    st.caption(subtitle)


def stat_cards(items: Iterable[Tuple[str, Union[int, float, str]]]):
    """Row of st.metric cards, one column per (label, value)."""
    items = list(items)
    for column, (label, value) in zip(st.columns(len(items)), items):
        column.metric(label, value)


def render_sidebar_status(repos: ParlorRepositories):
    """Connection mode and signed-in user in the sidebar."""
    identity = st.session_state.get("identity")
    with st.sidebar:
        if repos.online:
            st.success("Connected to server")
        else:
            st.info("Local-only mode: changes are saved on this device")
        if identity is not None:
            st.caption(f"Signed in as {identity.name or identity.user_id} ({identity.role.value})")
