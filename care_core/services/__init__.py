# =============================================================================
# care_core/services/__init__.py
# Service Layer for HealthCare+
# =============================================================================
"""
Entity services.

Each service tries the backend first and falls back to the local store;
callers only ever see entities or a domain error (NotFoundError /
ValidationError).

Usage Example:
-------------
    from care_core.services import get_data_service

    service = get_data_service()
    service.bootstrap()

    med = service.medications.create({
        "name": "Atorvastatin 20mg",
        "dosage": "1 tablet",
        "frequency": "Once daily",
    })
    result = service.medications.record_taken(med.id)
    print(result.adherence)
"""

from .base_service import BaseService, EntityService, MutableEntityService, ServiceResult
from .medication_service import MedicationService
from .notification_service import NotificationService
from .profile_service import ProfileService
from .record_services import DocumentService, FamilyLinkService, HealthRecordService
from .adherence import next_adherence, clamp_score

__all__ = [
    # Base classes
    "BaseService",
    "EntityService",
    "MutableEntityService",
    "ServiceResult",
    # Entity services
    "MedicationService",
    "NotificationService",
    "ProfileService",
    "HealthRecordService",
    "DocumentService",
    "FamilyLinkService",
    # Adherence
    "next_adherence",
    "clamp_score",
    # Facade
    "get_data_service",
]


def get_data_service():
    """Convenience wrapper for care_core.offline.get_data_service."""
    from care_core.offline import get_data_service as _get_data_service
    return _get_data_service()
