# =============================================================================
# care_core/models/__init__.py
# Entity Models for HealthCare+
# =============================================================================

from .entities import (
    Identity,
    Session,
    Medication,
    DoseEvent,
    DoseResult,
    Notification,
    OwnedRecord,
    HealthRecord,
    Document,
    FamilyLink,
    ROLES,
    LANGUAGES,
    LOCAL_TOKEN,
)

__all__ = [
    "Identity",
    "Session",
    "Medication",
    "DoseEvent",
    "DoseResult",
    "Notification",
    "OwnedRecord",
    "HealthRecord",
    "Document",
    "FamilyLink",
    "ROLES",
    "LANGUAGES",
    "LOCAL_TOKEN",
]
