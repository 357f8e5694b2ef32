# =============================================================================
# tests/unit/test_medication_service.py
# Unit Tests for MedicationService
# =============================================================================

import re

import pytest

from care_core.errors import NotFoundError, ValidationError
from care_core.services.medication_service import MedicationService

NEW_MED = {"name": "Atorvastatin 20mg", "dosage": "1 tablet", "frequency": "Once daily"}


@pytest.fixture
def service(executor, memory_store, context, clock):
    return MedicationService(executor, memory_store, context, clock=clock)


class TestListing:

    def test_remote_records_are_normalized(self, service, respond, signed_in):
        respond(200, {"medications": [{
            "id": "m1",
            "userId": "user-1",
            "name": "Metformin 500mg",
            "dosage": "1 tablet",
            "frequency": "Twice daily",
            "nextDose": "2024-03-01T10:00:00",
            "lastTaken": "2024-03-01T07:55:00",
            "adherence": 90,
            "createdAt": "2024-02-01T00:00:00",
        }]})

        result = service.list_result()
        med = result.data[0]

        assert result.source == "remote"
        assert med.owner_id == "user-1"
        assert med.next_dose_at == "2024-03-01T10:00:00"
        assert med.last_taken_at == "2024-03-01T07:55:00"
        assert med.adherence == 90

    def test_fallback_serves_local_demo_set(self, service, respond, signed_in):
        respond(401, {"error": "Unauthorized"})

        result = service.list_result()

        assert result.source == "local"
        assert result.metadata["reason"] == "auth_failure"
        assert [m.name for m in result.data] == ["Metformin 500mg", "Lisinopril 10mg"]

    def test_response_without_collection_key_falls_back(self, service, respond, signed_in):
        respond(200, {"unexpected": True})

        result = service.list_result()

        assert result.source == "local"
        assert result.metadata["reason"] == "malformed_response"


class TestCreate:

    def test_local_create(self, service, memory_store):
        med = service.create(NEW_MED)

        assert re.match(r"^\d+-[a-z0-9]{9}$", med.id)
        assert med.adherence == 100
        assert med.owner_id == "demo"
        assert med.created_at == med.updated_at
        assert med.id in [m.id for m in service.list()]

    def test_remote_create(self, service, respond, signed_in):
        http = respond(200, {"medication": {**NEW_MED, "id": "m9", "userId": "user-1",
                                            "adherence": 100}})

        med = service.create(NEW_MED)

        assert med.id == "m9"
        assert http.request.call_args.kwargs["method"] == "POST"
        assert not service.store.repository("medications").exists()

    def test_remote_create_without_echo_writes_nothing_locally(self, service, respond,
                                                               signed_in):
        respond(201, {"success": True})

        assert service.create(NEW_MED) is None
        assert not service.store.repository("medications").exists()

    def test_missing_field_rejected_before_any_request(self, service, http, signed_in):
        with pytest.raises(ValidationError) as exc:
            service.create({"name": "No dosage", "frequency": "daily"})

        assert exc.value.details["field"] == "dosage"
        http.request.assert_not_called()

    def test_adherence_cannot_be_supplied(self, service):
        with pytest.raises(ValidationError):
            service.create({**NEW_MED, "adherence": 100})

    def test_backend_validation_error_surfaces(self, service, respond, signed_in):
        respond(422, {"error": "Invalid frequency"})

        with pytest.raises(ValidationError):
            service.create(NEW_MED)


class TestUpdateDelete:

    def test_local_update_merges_patch(self, service):
        before = service.repository.get("1")

        med = service.update("1", {"pillCount": 10, "notes": "with food"})

        assert med.pill_count == 10
        assert med.notes == "with food"
        assert med.name == before.name
        assert med.adherence == before.adherence
        assert med.updated_at > before.updated_at
        assert service.repository.get("1").pill_count == 10

    def test_update_missing_medication(self, service):
        with pytest.raises(NotFoundError):
            service.update("nope", {"pillCount": 1})

    def test_update_missing_medication_remote(self, service, respond, signed_in):
        respond(404, {"error": "Medication not found"})

        with pytest.raises(NotFoundError):
            service.update("nope", {"pillCount": 1})

    @pytest.mark.parametrize("patch", [
        {"adherence": 100},
        {"id": "other"},
        {"ownerId": "someone-else"},
        {"colour": "blue"},
        {"pillCount": -3},
    ])
    def test_invalid_patch(self, service, patch):
        with pytest.raises(ValidationError):
            service.update("1", patch)

    def test_local_delete(self, service):
        service.delete("1")
        assert "1" not in [m.id for m in service.list()]

    def test_delete_is_idempotent(self, service):
        service.delete("1")
        service.delete("1")
        service.delete("never-existed")

    def test_remote_delete_of_missing_item_is_not_an_error(self, service, respond, signed_in):
        respond(404, {"error": "Medication not found"})
        service.delete("gone")


class TestRecordTaken:

    def test_local_dose_raises_adherence(self, service):
        result = service.record_taken("1")

        assert result.adherence == 87
        assert result.event.medication_id == "1"
        assert not result.event.verified

        med = service.repository.get("1")
        assert med.adherence == 87
        assert med.last_taken_at == result.event.taken_at

    def test_three_doses(self, service):
        for _ in range(3):
            result = service.record_taken("1")

        assert result.adherence == 91
        assert len(service.dose_events("1")) == 3
        assert service.dose_events("2") == []

    def test_verified_dose(self, service):
        service.record_taken("2", verification={"method": "photo"})
        service.record_taken("2")

        assert service.dose_stats()["2"] == {"count": 2, "verified_ratio": 0.5}

    def test_missing_medication_records_nothing(self, service):
        with pytest.raises(NotFoundError):
            service.record_taken("missing")
        assert service.dose_events() == []

    def test_custom_increment(self, executor, memory_store, context, clock):
        service = MedicationService(executor, memory_store, context, clock=clock, increment=5)
        assert service.record_taken("1").adherence == 90

    def test_remote_dose(self, service, respond, signed_in):
        http = respond(200, {
            "success": True,
            "newAdherence": 93,
            "adherenceRecord": {
                "id": "r1",
                "medicationId": "m1",
                "takenAt": "2024-03-01T08:00:00",
                "verified": True,
            },
        })

        result = service.record_taken("m1", verification={"method": "voice"})

        assert result.adherence == 93
        assert result.event.verified
        kwargs = http.request.call_args.kwargs
        assert kwargs["url"].endswith("/medications/m1/take")
        assert kwargs["json"]["verificationData"] == {"method": "voice"}
        assert "timestamp" in kwargs["json"]

    def test_remote_dose_missing_medication(self, service, respond, signed_in):
        respond(404, {"error": "Medication not found"})

        with pytest.raises(NotFoundError):
            service.record_taken("m404")

    def test_remote_dose_unreachable_uses_local(self, service, respond, signed_in):
        respond(502, {"error": "bad gateway"})

        assert service.record_taken("1").adherence == 87


class TestFrames:

    def test_medications_frame(self, service):
        df = service.medications_frame()

        assert len(df) == 2
        assert df.iloc[0]["name"] == "Metformin 500mg"

    def test_dose_history_frame(self, service):
        service.record_taken("1")
        service.record_taken("1", verification="ok")

        df = service.dose_history_frame()

        assert df.iloc[0]["doses"] == 2
        assert df.iloc[0]["verified"] == 1
