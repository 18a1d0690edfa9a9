# =============================================================================
# parlor_core/views/tasks.py
# Task board: kanban columns, overdue detection and tallies
# =============================================================================

from __future__ import annotations
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from parlor_core.models import TaskStatus
from parlor_core.views.common import Record, as_utc, utc_now

BOARD_COLUMNS = [
    (TaskStatus.PENDING, "Pending"),
    (TaskStatus.IN_PROGRESS, "In Progress"),
    (TaskStatus.COMPLETED, "Completed"),
    (TaskStatus.OVERDUE, "Overdue"),
]


def is_overdue(task: Record, now: Optional[datetime] = None) -> bool:
    """A task is overdue once its due date has passed, unless it is completed."""
    if task.get("status") == TaskStatus.COMPLETED.value:
        return False
    due = as_utc(task.get("due_date"))
    return due is not None and due < utc_now(now)


def tasks_by_status(tasks: Iterable[Record]) -> Dict[str, List[Record]]:
    """Kanban columns keyed by status value, in board order."""
    columns: Dict[str, List[Record]] = {status.value: [] for status, _ in BOARD_COLUMNS}
    for task in tasks:
        status = task.get("status")
        if status in columns:
            columns[status].append(task)
    return columns


def task_stats(tasks: List[Record], now: Optional[datetime] = None) -> Dict[str, int]:
    columns = tasks_by_status(tasks)
    return {
        "total": len(tasks),
        "in_progress": len(columns[TaskStatus.IN_PROGRESS.value]),
        "completed": len(columns[TaskStatus.COMPLETED.value]),
        "overdue": sum(1 for task in tasks if is_overdue(task, now)),
    }


def completion_rate(tasks: List[Record]) -> int:
    """Completed tasks as a whole percentage of all tasks."""
    if not tasks:
        return 0
    done = sum(1 for task in tasks if task.get("status") == TaskStatus.COMPLETED.value)
    return round(100 * done / len(tasks))
