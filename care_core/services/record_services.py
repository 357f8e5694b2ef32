# =============================================================================
# care_core/services/record_services.py
# Append/List/Delete Services - Health Records, Documents, Family Links
# =============================================================================
"""
Owned-record services.

These entities carry no business logic beyond ownership: they are created,
listed and deleted, never patched. Fields specific to each kind live in
the record's `payload`.
"""

from __future__ import annotations
from typing import Any, Dict

from care_core.models import Document, FamilyLink, HealthRecord
from care_core.models.validation import (
    validate_document_input,
    validate_family_link_input,
    validate_health_data_input,
)
from care_core.services.base_service import EntityService

DEFAULT_FAMILY_PERMISSIONS = ["view_medications", "view_vitals", "receive_alerts"]


class HealthRecordService(EntityService[HealthRecord]):
    """Vitals readings (blood pressure, heart rate, blood sugar, ...)."""

    entity_cls = HealthRecord
    entity_name = "health record"
    namespace = "health_records"
    collection_path = "/health-data"
    list_key = "healthData"
    item_key = "healthRecord"
    newest_first = True
    item_routes = False

    def validate_input(self, data: Any) -> Dict[str, Any]:
        fields = validate_health_data_input(data)
        fields["recordedAt"] = fields.get("recordedAt") or self._now()
        return fields

    def build_local(self, entity_id: str, fields: Dict[str, Any]) -> HealthRecord:
        return HealthRecord(
            id=entity_id,
            owner_id=self.context.owner_id,
            payload=fields,
            created_at=self._now(),
        )


class DocumentService(EntityService[Document]):
    """Uploaded document metadata; file bytes live in object storage."""

    entity_cls = Document
    entity_name = "document"
    namespace = "documents"
    collection_path = "/documents"
    create_path = "/documents/upload"
    list_key = "documents"
    item_key = "document"
    newest_first = True
    item_routes = False

    def validate_input(self, data: Any) -> Dict[str, Any]:
        return validate_document_input(data)

    def build_local(self, entity_id: str, fields: Dict[str, Any]) -> Document:
        return Document(
            id=entity_id,
            owner_id=self.context.owner_id,
            payload={**fields, "status": "uploaded"},
            created_at=self._now(),
        )


class FamilyLinkService(EntityService[FamilyLink]):
    """Caregiver links; new links are pending until the member accepts."""

    entity_cls = FamilyLink
    entity_name = "family link"
    namespace = "family_links"
    collection_path = "/family/link"
    list_key = "familyLinks"
    item_key = "familyLink"
    item_routes = False

    def validate_input(self, data: Any) -> Dict[str, Any]:
        fields = validate_family_link_input(data)
        fields["permissions"] = list(fields.get("permissions") or DEFAULT_FAMILY_PERMISSIONS)
        return fields

    def build_local(self, entity_id: str, fields: Dict[str, Any]) -> FamilyLink:
        return FamilyLink(
            id=entity_id,
            owner_id=self.context.owner_id,
            payload={**fields, "status": "pending"},
            created_at=self._now(),
        )
