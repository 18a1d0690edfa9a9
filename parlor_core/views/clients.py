# =============================================================================
# parlor_core/views/clients.py
# Clients screen: search and summary cards
# =============================================================================

from __future__ import annotations
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from parlor_core.models import CaseStatus
from parlor_core.views.common import Record, as_utc, contains, utc_now


def filter_clients(clients: Iterable[Record], search: str = "") -> List[Record]:
    """Clients whose name or email contains the search text, or whose phone contains it verbatim."""
    search = (search or "").strip()
    if not search:
        return list(clients)
    return [
        client for client in clients
        if contains(client.get("name"), search)
        or contains(client.get("email"), search)
        or search in str(client.get("phone") or "")
    ]


def client_stats(
    clients: List[Record],
    cases: Optional[List[Record]] = None,
    now: Optional[datetime] = None,
) -> Dict[str, int]:
    """Total clients, ongoing cases among them, and clients added this calendar month."""
    current = utc_now(now)
    client_ids = {str(c.get("id")) for c in clients}

    new_this_month = 0
    for client in clients:
        created = as_utc(client.get("created_at"))
        if created is not None and (created.year, created.month) == (current.year, current.month):
            new_this_month += 1

    active_cases = sum(
        1 for case in (cases or [])
        if case.get("status") == CaseStatus.ONGOING.value and str(case.get("client_id")) in client_ids
    )

    return {
        "total": len(clients),
        "active_cases": active_cases,
        "new_this_month": new_this_month,
    }
