# =============================================================================
# parlor_core/views/services.py
# Services screen: funeral cover plans and service types
# =============================================================================
"""
Plans are the funeral cover policies a parlor sells (monthly premium and
cover amount); service types are the services it performs, each with a
default duration. Cases point at both through plan_id and service_type_id.
"""

from __future__ import annotations
import math
from typing import Any, Dict, Iterable, List, Optional, Tuple

from parlor_core.views.common import Record, count_by


def _positive_number(raw: Any) -> Optional[float]:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return value


def validate_plan(form: Record) -> Tuple[Optional[Record], List[str]]:
    """
    Check a plan form.

    Returns:
        (record ready for create/update, []) or (None, error messages)
    """
    errors = []
    name = str(form.get("name") or "").strip()
    monthly = _positive_number(form.get("monthly_premium"))
    cover = _positive_number(form.get("cover_amount"))

    if not name:
        errors.append("Plan name is required.")
    if monthly is None:
        errors.append("Monthly premium must be greater than 0.")
    if cover is None:
        errors.append("Cover amount must be greater than 0.")
    if errors:
        return None, errors

    return {
        "name": name,
        "monthly_premium": monthly,
        "cover_amount": cover,
        "description": str(form.get("description") or "").strip(),
        "is_active": bool(form.get("is_active", True)),
    }, []


def validate_service_type(form: Record) -> Tuple[Optional[Record], List[str]]:
    """Same contract as validate_plan; the duration must be a whole number of minutes."""
    errors = []
    name = str(form.get("name") or "").strip()
    duration = _positive_number(form.get("default_duration_minutes"))

    if not name:
        errors.append("Service name is required.")
    if duration is None or duration != int(duration):
        errors.append("Default duration must be a whole number of minutes greater than 0.")
    if errors:
        return None, errors

    return {
        "name": name,
        "description": str(form.get("description") or "").strip(),
        "default_duration_minutes": int(duration),
    }, []


def with_case_counts(items: Iterable[Record], cases: List[Record], case_column: str) -> List[Record]:
    """Copy of items, each with "cases": the number of cases whose case_column points at it."""
    counts = count_by(cases, case_column)
    return [{**item, "cases": counts.get(str(item.get("id")), 0)} for item in items]


def plan_stats(plans: List[Record]) -> Dict[str, Any]:
    """Plan count, active plans, and the cheapest/dearest active premium."""
    premiums = [
        float(p["monthly_premium"]) for p in plans
        if p.get("is_active", True) and _positive_number(p.get("monthly_premium")) is not None
    ]
    return {
        "total": len(plans),
        "active": sum(1 for p in plans if p.get("is_active", True)),
        "lowest_premium": min(premiums) if premiums else 0.0,
        "highest_premium": max(premiums) if premiums else 0.0,
    }


def parlor_choices(parlors: Iterable[Record]) -> Dict[str, str]:
    """Select-box labels mapped to parlor ids, sorted by name; duplicate names show their id."""
    named = sorted(parlors, key=lambda p: str(p.get("name") or p.get("id") or "").lower())
    seen: Dict[str, int] = {}
    for parlor in named:
        label = str(parlor.get("name") or parlor.get("id"))
        seen[label] = seen.get(label, 0) + 1

    choices: Dict[str, str] = {}
    for parlor in named:
        label = str(parlor.get("name") or parlor.get("id"))
        if seen[label] > 1:
            label = f"{label} ({parlor.get('id')})"
        choices[label] = str(parlor.get("id"))
    return choices
