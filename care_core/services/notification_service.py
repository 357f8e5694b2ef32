# =============================================================================
# care_core/services/notification_service.py
# Notification Service - Newest-First Alerts, Mutated Only by Marking Read
# =============================================================================

from __future__ import annotations
from typing import Any, Dict, List, Optional

from care_core.models import Notification
from care_core.models.validation import validate_notification_input, validate_notification_patch
from care_core.offline.demo_data import demo_notifications
from care_core.services.base_service import MutableEntityService


class NotificationService(MutableEntityService[Notification]):
    """Notifications; the local collection is capped, oldest pruned first."""

    entity_cls = Notification
    entity_name = "notification"
    namespace = "notifications"
    collection_path = "/notifications"
    list_key = "notifications"
    item_key = "notification"
    newest_first = True
    item_routes = False

    def __init__(self, *args, cap: int = 50, **kwargs):
        super().__init__(*args, **kwargs)
        self._cap = cap

    @property
    def cap(self) -> Optional[int]:
        return self._cap

    def validate_input(self, data: Any) -> Dict[str, Any]:
        return validate_notification_input(data)

    def validate_patch(self, patch: Any) -> Dict[str, Any]:
        return validate_notification_patch(patch)

    def build_local(self, entity_id: str, fields: Dict[str, Any]) -> Notification:
        return Notification.from_dict({
            **fields,
            "id": entity_id,
            "createdAt": self._now(),
            "read": False,
        })

    def demo_seed(self) -> List[Notification]:
        return demo_notifications(self.clock())

    def mark_read(self, notification_id: str) -> Optional[Notification]:
        """Mark one notification read. Raises NotFoundError if absent."""
        return self.update(notification_id, {"read": True})

    def unread_count(self) -> int:
        return sum(1 for n in self.list() if not n.read)
