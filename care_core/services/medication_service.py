# =============================================================================
# care_core/services/medication_service.py
# Medication Service - CRUD plus Dose Recording
# =============================================================================

from __future__ import annotations
from typing import Any, Dict, List, Optional

import pandas as pd

from care_core.models import DoseEvent, DoseResult, Medication
from care_core.models.validation import validate_medication_input, validate_medication_patch
from care_core.offline.demo_data import demo_medications
from care_core.services import adherence
from care_core.services.base_service import MutableEntityService


class MedicationService(MutableEntityService[Medication]):
    """
    Medications for the active identity.

    Usage:
        meds = service.list()
        result = service.record_taken(meds[0].id)
        print(result.adherence)
    """

    entity_cls = Medication
    entity_name = "medication"
    namespace = "medications"
    collection_path = "/medications"
    list_key = "medications"
    item_key = "medication"

    def __init__(self, *args, increment: int = adherence.DEFAULT_INCREMENT, **kwargs):
        super().__init__(*args, **kwargs)
        self.increment = increment

    def validate_input(self, data: Any) -> Dict[str, Any]:
        return validate_medication_input(data)

    def validate_patch(self, patch: Any) -> Dict[str, Any]:
        return validate_medication_patch(patch)

    def build_local(self, entity_id: str, fields: Dict[str, Any]) -> Medication:
        now = self._now()
        return Medication.from_dict({
            **fields,
            "id": entity_id,
            "adherence": 100,
            "ownerId": self.context.owner_id,
            "createdAt": now,
            "updatedAt": now,
        })

    def demo_seed(self) -> List[Medication]:
        return demo_medications(self.clock(), self.context.owner_id)

    # =========================================================================
    # DOSE RECORDING
    # =========================================================================

    def record_taken(self, medication_id: str, verification: Optional[Any] = None) -> DoseResult:
        """
        Record that a dose was taken and return the updated adherence.

        Args:
            medication_id: Medication the dose belongs to
            verification: Optional verification data (photo/voice check);
                its presence marks the dose as verified

        Raises:
            NotFoundError: no medication with that id
        """
        taken_at = self._now()
        result = self.executor.execute(
            f"{self.item_path(medication_id)}/take",
            method="POST",
            payload={"verificationData": verification, "timestamp": taken_at},
            item_id=medication_id,
        )
        self._raise_if_domain_error(result)
        if result:
            score = result.data.get("newAdherence")
            if score is None:
                raise self._not_found(medication_id)
            record = result.data.get("adherenceRecord")
            event = DoseEvent.from_dict(record) if isinstance(record, dict) else None
            return DoseResult(adherence=int(score), event=event)

        return self._record_taken_locally(medication_id, verification, taken_at)

    def _record_taken_locally(
        self,
        medication_id: str,
        verification: Optional[Any],
        taken_at: str,
    ) -> DoseResult:
        events = self.store.repository("dose_events")

        with self.store.lock:
            medication = self.repository.get(medication_id)
            if medication is None:
                raise self._not_found(medication_id)

            event = events.append(DoseEvent(
                id=self.new_id(),
                medication_id=medication_id,
                taken_at=taken_at,
                verified=verification is not None,
            ))
            count = sum(1 for e in events.all() if e.medication_id == medication_id)

            medication.adherence = adherence.next_adherence(
                medication.adherence, count, self.increment
            )
            medication.last_taken_at = taken_at
            medication.updated_at = taken_at
            self.repository.replace(medication)

        self.logger.info(
            f"Dose recorded locally for {medication_id}: adherence {medication.adherence}"
        )
        return DoseResult(adherence=medication.adherence, event=event)

    def dose_events(self, medication_id: Optional[str] = None) -> List[DoseEvent]:
        """Locally recorded dose events, optionally for one medication."""
        events = self.store.repository("dose_events").all()
        if medication_id is None:
            return events
        return [e for e in events if e.medication_id == medication_id]

    def dose_stats(self) -> Dict[str, Dict[str, float]]:
        return adherence.dose_stats(self.dose_events())

    # =========================================================================
    # DATAFRAMES
    # =========================================================================

    def medications_frame(self) -> pd.DataFrame:
        return adherence.medications_frame(self.list())

    def dose_history_frame(self) -> pd.DataFrame:
        return adherence.dose_history_frame(self.dose_events())
