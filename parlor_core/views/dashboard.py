# =============================================================================
# parlor_core/views/dashboard.py
# Dashboard analytics across cases, tasks and payments
# =============================================================================

from __future__ import annotations
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from parlor_core.models import PaymentStatus
from parlor_core.views.cases import case_stats
from parlor_core.views.common import Record, as_utc, utc_now
from parlor_core.views.payments import payment_stats
from parlor_core.views.tasks import completion_rate


@dataclass
class Analytics:
    """Figures shown on the dashboard cards."""
    total_cases: int = 0
    active_cases: int = 0
    completed_cases: int = 0
    total_revenue: float = 0.0
    monthly_revenue: float = 0.0
    avg_case_value: float = 0.0
    task_completion_rate: int = 0
    pending_payments: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def build_analytics(
    cases: List[Record],
    tasks: List[Record],
    payments: List[Record],
    now: Optional[datetime] = None,
) -> Analytics:
    current = utc_now(now)
    cases_summary = case_stats(cases)
    revenue = payment_stats(payments)

    monthly = 0.0
    pending = 0
    for payment in payments:
        status = payment.get("status")
        if status == PaymentStatus.PENDING.value:
            pending += 1
        if status != PaymentStatus.COMPLETED.value:
            continue
        created = as_utc(payment.get("created_at"))
        if created is not None and (created.year, created.month) == (current.year, current.month):
            monthly += float(payment.get("amount") or 0)

    total_cases = cases_summary["total"]
    return Analytics(
        total_cases=total_cases,
        active_cases=cases_summary["active"],
        completed_cases=cases_summary["completed"],
        total_revenue=revenue["total_revenue"],
        monthly_revenue=monthly,
        avg_case_value=revenue["total_revenue"] / total_cases if total_cases else 0.0,
        task_completion_rate=completion_rate(tasks),
        pending_payments=pending,
    )


def format_currency(amount: float) -> str:
    """South African rand without cents, e.g. R 45 000."""
    return f"R {amount:,.0f}".replace(",", " ")
