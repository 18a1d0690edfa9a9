# =============================================================================
# parlor_core/views/payments.py
# Payments screen: search, filters, revenue figures
# =============================================================================

from __future__ import annotations
from typing import Dict, Iterable, List, Optional

import pandas as pd

from parlor_core.models import PaymentMethod, PaymentStatus
from parlor_core.views.common import ALL, Record, contains, matches_choice, to_frame

PAYMENT_COLUMNS = ["amount", "status", "method"]


def filter_payments(
    payments: Iterable[Record],
    search: str = "",
    status: Optional[str] = ALL,
    method: Optional[str] = ALL,
) -> List[Record]:
    """Search covers the description and the transaction id."""
    results = []
    for payment in payments:
        text = f"{payment.get('description') or ''} {payment.get('transaction_id') or ''}"
        if (
            contains(text, search)
            and matches_choice(payment.get("status"), status)
            and matches_choice(payment.get("method"), method)
        ):
            results.append(payment)
    return results


def _frame(payments: List[Record]) -> pd.DataFrame:
    df = to_frame(payments, PAYMENT_COLUMNS)
    df["amount"] = pd.to_numeric(df["amount"], errors="coerce").fillna(0.0)
    return df


def payment_stats(payments: List[Record]) -> Dict[str, float]:
    """
    Revenue cards.

    Returns:
        total_revenue: sum of completed payments
        pending_amount: sum of pending payments
        successful_transactions: number of completed payments
        success_rate: completed share of all payments, in percent
    """
    if not payments:
        return {
            "total_revenue": 0.0,
            "pending_amount": 0.0,
            "successful_transactions": 0,
            "success_rate": 0.0,
        }

    df = _frame(payments)
    completed = df["status"] == PaymentStatus.COMPLETED.value
    pending = df["status"] == PaymentStatus.PENDING.value

    return {
        "total_revenue": float(df.loc[completed, "amount"].sum()),
        "pending_amount": float(df.loc[pending, "amount"].sum()),
        "successful_transactions": int(completed.sum()),
        "success_rate": round(100.0 * completed.sum() / len(df), 1),
    }


def revenue_by_method(payments: List[Record]) -> pd.DataFrame:
    """Completed revenue per payment method (every method listed, zero if unused)."""
    methods = [m.value for m in PaymentMethod]
    if not payments:
        return pd.DataFrame({"method": methods, "amount": [0.0] * len(methods)})

    df = _frame(payments)
    completed = df[df["status"] == PaymentStatus.COMPLETED.value]
    totals = completed.groupby("method")["amount"].sum().reindex(methods, fill_value=0.0)
    return totals.rename_axis("method").reset_index()
