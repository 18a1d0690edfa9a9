from parlor_core.models.entities import (
    CaseStatus,
    ServiceType,
    TaskStatus,
    TaskPriority,
    TaskType,
    PaymentStatus,
    PaymentMethod,
    CollectionSpec,
    CASES,
    CLIENTS,
    TASKS,
    PAYMENTS,
    PLANS,
    SERVICE_TYPES,
    PARLORS,
    COLLECTIONS,
    get_collection,
)

__all__ = [
    "CaseStatus",
    "ServiceType",
    "TaskStatus",
    "TaskPriority",
    "TaskType",
    "PaymentStatus",
    "PaymentMethod",
    "CollectionSpec",
    "CASES",
    "CLIENTS",
    "TASKS",
    "PAYMENTS",
    "PLANS",
    "SERVICE_TYPES",
    "PARLORS",
    "COLLECTIONS",
    "get_collection",
]
