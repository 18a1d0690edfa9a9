# =============================================================================
# parlor_core/views/common.py
# Shared helpers for screen view models
# =============================================================================

from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence

import pandas as pd

Record = Dict[str, Any]

ALL = "all"


def to_frame(records: Iterable[Record], columns: Sequence[str]) -> pd.DataFrame:
    """DataFrame of the records, guaranteed to have the given columns."""
    df = pd.DataFrame(list(records))
    for column in columns:
        if column not in df.columns:
            df[column] = None
    return df


def as_utc(value: Any) -> Optional[pd.Timestamp]:
    """Parse a timestamp/date (string, datetime, Timestamp) as UTC; None if unparseable."""
    if value is None or value == "":
        return None
    ts = pd.to_datetime(value, utc=True, errors="coerce")
    if pd.isna(ts):
        return None
    return ts


def utc_now(now: Optional[datetime] = None) -> pd.Timestamp:
    ts = pd.Timestamp(now or datetime.now(timezone.utc))
    return ts.tz_localize("UTC") if ts.tzinfo is None else ts.tz_convert("UTC")


def matches_choice(value: Any, choice: Optional[str]) -> bool:
    """Select-box filter: "all" (or empty) matches everything."""
    if not choice or choice == ALL:
        return True
    return str(value) == str(getattr(choice, "value", choice))


def contains(haystack: Any, needle: str) -> bool:
    """Case-insensitive substring match that tolerates missing values."""
    if not needle:
        return True
    return needle.lower() in str(haystack or "").lower()


def count_by(records: List[Record], column: str) -> Dict[str, int]:
    """Tally of column values."""
    if not records:
        return {}
    df = to_frame(records, [column])
    return {str(k): int(v) for k, v in df[column].value_counts(dropna=True).items()}
