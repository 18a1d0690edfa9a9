# =============================================================================
# 03_Tasks.py - Task Board
# =============================================================================
"""
Kanban board of tasks. Moving a card is optimistic: the board changes at
once and only goes back if the server refuses the move.
"""
from __future__ import annotations
from datetime import date, timedelta

import streamlit as st

from parlor_core.auth import visible_to
from parlor_core.errors import ErrorContext, error_boundary
from parlor_core.models import TaskPriority, TaskStatus, TaskType
from parlor_core.ui import flash, get_identity, header, notify_load_result, stat_cards, start_page
from parlor_core.views import BOARD_COLUMNS, is_overdue, task_stats, tasks_by_status

st.set_page_config(
    page_title="Tasks - LoveDone Parlor",
    page_icon="✅",
    layout="wide",
)

repos = start_page()
header("Tasks", "Legal, ceremonial and service preparation", icon="✅")

with ErrorContext("Loading tasks"):
    notify_load_result(repos.tasks.load())

identity = get_identity()
tasks = visible_to(identity, repos.tasks.entities, repos.tasks.collection.owner_column)
stats = task_stats(tasks)
stat_cards([
    ("Total", stats["total"]),
    ("In progress", stats["in_progress"]),
    ("Completed", stats["completed"]),
    ("Overdue", stats["overdue"]),
])

STATUS_VALUES = [s.value for s in TaskStatus]


@error_boundary(error_message="Could not render this task")
def render_card(task: dict):
    """Draw one card; returns the status it was moved to, if any."""
    with st.container(border=True):
        st.markdown(f"**{task.get('title', 'Untitled')}**")
        st.caption(f"{task.get('type', '')} · {task.get('priority', '')} · due {task.get('due_date') or 'n/a'}")
        if is_overdue(task):
            st.markdown(":red[Past due]")

        target = st.selectbox(
            "Move to",
            STATUS_VALUES,
            index=STATUS_VALUES.index(task["status"]) if task.get("status") in STATUS_VALUES else 0,
            key=f"move_{task['id']}",
            label_visibility="collapsed",
        )
        return target if target != task.get("status") else None


columns = tasks_by_status(tasks)
for (status, label), column in zip(BOARD_COLUMNS, st.columns(len(BOARD_COLUMNS))):
    with column:
        st.markdown(f"#### {label} ({len(columns[status.value])})")
        for task in columns[status.value]:
            moved_to = render_card(task)
            if moved_to:
                flash(repos.tasks.update(task["id"], {"status": moved_to}, optimistic=True))
                # Redraw the selector from the stored status (rolled back on refusal)
                st.session_state.pop(f"move_{task['id']}", None)
                st.rerun()

with st.expander("New task", expanded=False):
    cases = {c.get("name") or c["id"]: c["id"] for c in repos.cases.entities}

    with st.form("new_task", clear_on_submit=True):
        title = st.text_input("Title")
        description = st.text_area("Description")
        col1, col2, col3 = st.columns(3)
        task_type = col1.selectbox("Type", [t.value for t in TaskType])
        priority = col2.selectbox("Priority", [p.value for p in TaskPriority], index=1)
        due_date = col3.date_input("Due date", value=date.today() + timedelta(days=3))
        case_name = st.selectbox("Case", ["(none)"] + list(cases))
        submitted = st.form_submit_button("Add task", type="primary")

    if submitted:
        if not title.strip():
            st.error("A title is required.")
        else:
            flash(repos.tasks.create({
                "title": title.strip(),
                "description": description.strip(),
                "type": task_type,
                "priority": priority,
                "status": TaskStatus.PENDING.value,
                "due_date": due_date.isoformat(),
                "case_id": cases.get(case_name),
                "assigned_to": identity.user_id if identity else None,
            }))
            st.rerun()
