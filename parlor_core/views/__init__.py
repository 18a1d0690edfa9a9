# =============================================================================
# parlor_core/views/__init__.py
# Per-screen view models (pure functions over repository snapshots)
# =============================================================================

from parlor_core.views.cases import filter_cases, case_stats
from parlor_core.views.clients import filter_clients, client_stats
from parlor_core.views.tasks import BOARD_COLUMNS, is_overdue, tasks_by_status, task_stats, completion_rate
from parlor_core.views.payments import filter_payments, payment_stats, revenue_by_method
from parlor_core.views.dashboard import Analytics, build_analytics, format_currency
from parlor_core.views.services import (
    validate_plan,
    validate_service_type,
    with_case_counts,
    plan_stats,
    parlor_choices,
)

__all__ = [
    "filter_cases",
    "case_stats",
    "filter_clients",
    "client_stats",
    "BOARD_COLUMNS",
    "is_overdue",
    "tasks_by_status",
    "task_stats",
    "completion_rate",
    "filter_payments",
    "payment_stats",
    "revenue_by_method",
    "Analytics",
    "build_analytics",
    "format_currency",
    "validate_plan",
    "validate_service_type",
    "with_case_counts",
    "plan_stats",
    "parlor_choices",
]
