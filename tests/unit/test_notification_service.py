# =============================================================================
# tests/unit/test_notification_service.py
# Unit Tests for NotificationService
# =============================================================================

import pytest

from care_core.errors import NotFoundError, ValidationError
from care_core.services.notification_service import NotificationService

ALERT = {"type": "alert", "title": "Low stock", "message": "5 pills left", "priority": "high"}


@pytest.fixture
def service(executor, memory_store, context, clock):
    return NotificationService(executor, memory_store, context, clock=clock, cap=3)


class TestNotifications:

    def test_demo_set_is_newest_first(self, service):
        notes = service.list()

        assert [n.title for n in notes] == ["Medication Due", "Welcome to HealthCare+"]
        assert notes[0].created_at > notes[1].created_at

    def test_create_prepends(self, service):
        created = service.create(ALERT)

        assert not created.read
        assert created.priority == "high"
        assert service.list()[0].id == created.id

    def test_local_collection_is_capped(self, service):
        created = [service.create({**ALERT, "title": f"Alert {i}"}) for i in range(3)]

        notes = service.list()

        assert len(notes) == 3
        assert [n.id for n in notes] == [c.id for c in reversed(created)]

    def test_mark_read(self, service):
        assert service.unread_count() == 2

        note = service.mark_read("1")

        assert note.read
        assert service.unread_count() == 1

    def test_mark_read_missing(self, service):
        with pytest.raises(NotFoundError):
            service.mark_read("404")

    @pytest.mark.parametrize("patch", [
        {"title": "Changed"},
        {"read": True, "message": "Changed"},
        {"read": "yes"},
        {},
    ])
    def test_only_read_flag_is_mutable(self, service, patch):
        with pytest.raises(ValidationError):
            service.update("1", patch)

    def test_invalid_priority(self, service):
        with pytest.raises(ValidationError):
            service.create({**ALERT, "priority": "urgent"})

    def test_delete(self, service):
        service.delete("2")
        service.delete("2")

        assert [n.id for n in service.list()] == ["1"]

    def test_remote_timestamp_key(self, service, respond, signed_in):
        respond(200, {"notifications": [{
            "id": "n1",
            "type": "reminder",
            "title": "Medication Due",
            "message": "Take Metformin",
            "timestamp": "2024-03-01T08:00:00",
            "read": False,
        }]})

        note = service.list()[0]

        assert note.created_at == "2024-03-01T08:00:00"

    def test_remote_mark_read(self, service, respond, signed_in):
        http = respond(200, {"notification": {
            "id": "n1", "type": "info", "title": "t", "message": "m",
            "createdAt": "2024-03-01T08:00:00", "read": True,
        }})

        note = service.mark_read("n1")

        assert note.read
        kwargs = http.request.call_args.kwargs
        assert kwargs["method"] == "PUT"
        assert kwargs["json"] == {"read": True}

    def test_remote_mark_read_without_item_route(self, service, route, signed_in, memory_store):
        route({
            "/notifications": (200, {"notifications": [{
                "id": "n1", "type": "info", "title": "t", "message": "m",
                "createdAt": "2024-03-01T08:00:00", "read": False,
            }]}),
            "/notifications/n1": (404, {"error": "Not found"}),
        })

        note = service.mark_read("n1")

        assert note.id == "n1"
        assert note.read
        assert "n1" not in [row["id"] for row in memory_store.read("notifications") or []]

    def test_remote_mark_read_unknown_id(self, service, route, signed_in):
        route({
            "/notifications": (200, {"notifications": []}),
            "/notifications/n2": (404, {"error": "Not found"}),
        })

        with pytest.raises(NotFoundError):
            service.mark_read("n2")

    def test_remote_mark_read_without_echo(self, service, respond, signed_in, memory_store):
        respond(200, {"success": True})

        assert service.mark_read("n1") is None
        assert memory_store.read("notifications") is None
