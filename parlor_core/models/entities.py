# =============================================================================
# parlor_core/models/entities.py
# Collection Descriptors and Record Vocabularies
# =============================================================================
"""
Records travel through the app as plain dicts keyed by backend column names
(snake_case). This module names the collections, the tables behind them and
the value sets each status/type column may take.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


# =============================================================================
# VOCABULARIES
# =============================================================================

class CaseStatus(str, Enum):
    QUOTE = "quote"
    ONGOING = "ongoing"
    CLOSED = "closed"


class ServiceType(str, Enum):
    BURIAL = "burial"
    CREMATION = "cremation"
    MEMORIAL = "memorial"


class TaskStatus(str, Enum):
    """Kanban columns of the task board, in display order."""
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    OVERDUE = "overdue"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TaskType(str, Enum):
    LEGAL = "legal"
    CEREMONIAL = "ceremonial"
    BURIAL = "burial"
    CREMATION = "cremation"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    EFT = "eft"
    EASYPAY = "easypay"
    SNAPSCAN = "snapscan"
    CARD = "card"


# =============================================================================
# COLLECTIONS
# =============================================================================

@dataclass(frozen=True)
class CollectionSpec:
    """
    Describes one tenant-scoped backend collection.

    Attributes:
        name: Logical collection name, also the cache key prefix
        table: Backend table name
        tenant_column: Column holding the parlor id
        owner_column: Column holding the owning staff user (None if not owner-scoped)
        order_by: Default ordering column for list()
        descending: Default ordering direction
        optimistic_updates: Whether updates apply locally before the backend confirms
    """
    name: str
    table: str
    tenant_column: str = "parlor_id"
    owner_column: Optional[str] = None
    order_by: str = "created_at"
    descending: bool = True
    optimistic_updates: bool = False


CASES = CollectionSpec(name="cases", table="cases")
CLIENTS = CollectionSpec(name="clients", table="clients", owner_column="user_id")
TASKS = CollectionSpec(name="tasks", table="tasks", owner_column="assigned_to", optimistic_updates=True)
PAYMENTS = CollectionSpec(name="payments", table="payments")
PLANS = CollectionSpec(name="plans", table="plans", order_by="monthly_premium", descending=False)
SERVICE_TYPES = CollectionSpec(name="service_types", table="service_types", order_by="name", descending=False)

# Collections belonging to one parlor
COLLECTIONS: Dict[str, CollectionSpec] = {
    spec.name: spec for spec in (CASES, CLIENTS, TASKS, PAYMENTS, PLANS, SERVICE_TYPES)
}

# Directory of every parlor; read unscoped, by super admins only
PARLORS = CollectionSpec(name="parlors", table="parlors", tenant_column="id", order_by="name", descending=False)


def get_collection(name: str) -> CollectionSpec:
    """
    Look up a collection descriptor by name.

    Raises:
        KeyError: If the collection is unknown
    """
    try:
        return COLLECTIONS[name]
    except KeyError:
        raise KeyError(f"Unknown collection: {name!r}. Known: {sorted(COLLECTIONS)}") from None
