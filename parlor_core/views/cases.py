# =============================================================================
# parlor_core/views/cases.py
# Cases screen: search, filters and status tallies
# =============================================================================

from __future__ import annotations
from typing import Dict, Iterable, List, Optional

from parlor_core.models import CaseStatus
from parlor_core.views.common import ALL, Record, contains, count_by, matches_choice


def filter_cases(
    cases: Iterable[Record],
    search: str = "",
    status: Optional[str] = ALL,
    service_type: Optional[str] = ALL,
) -> List[Record]:
    """
    Cases matching the search box and both select filters.

    Search is case-insensitive over the deceased's name and the assigned director.
    """
    return [
        case for case in cases
        if (contains(case.get("name"), search) or contains(case.get("assigned_director"), search))
        and matches_choice(case.get("status"), status)
        and matches_choice(case.get("service_type"), service_type)
    ]


def case_stats(cases: List[Record]) -> Dict[str, int]:
    """Header cards: total, active (ongoing), quotes and completed (closed)."""
    tally = count_by(cases, "status")
    return {
        "total": len(cases),
        "active": tally.get(CaseStatus.ONGOING.value, 0),
        "quotes": tally.get(CaseStatus.QUOTE.value, 0),
        "completed": tally.get(CaseStatus.CLOSED.value, 0),
    }
