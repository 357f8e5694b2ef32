# =============================================================================
# care_core/offline/demo_data.py
# Deterministic Demo Data for Local-Only Identities
# =============================================================================

from __future__ import annotations
from datetime import datetime, timedelta
from typing import List

from care_core.models import Medication, Notification

DEMO_NAME = "Demo User"
DEMO_EMAIL = "demo@healthcare.local"


def demo_medications(now: datetime, owner_id: str = "demo") -> List[Medication]:
    """Metformin and Lisinopril, the fixed demo regimen."""
    stamp = now.isoformat()
    return [
        Medication(
            id="1",
            name="Metformin 500mg",
            dosage="1 tablet",
            frequency="Twice daily",
            next_dose_at=(now + timedelta(hours=2)).isoformat(),
            adherence=85,
            pill_count=28,
            owner_id=owner_id,
            created_at=stamp,
            updated_at=stamp,
        ),
        Medication(
            id="2",
            name="Lisinopril 10mg",
            dosage="1 tablet",
            frequency="Once daily",
            next_dose_at=(now + timedelta(hours=8)).isoformat(),
            adherence=92,
            pill_count=25,
            owner_id=owner_id,
            created_at=stamp,
            updated_at=stamp,
        ),
    ]


def demo_notifications(now: datetime) -> List[Notification]:
    """Newest first."""
    return [
        Notification(
            id="1",
            type="reminder",
            title="Medication Due",
            message="Time to take your Metformin",
            created_at=now.isoformat(),
        ),
        Notification(
            id="2",
            type="info",
            title="Welcome to HealthCare+",
            message="You are currently using demo mode. All data is stored locally.",
            created_at=(now - timedelta(hours=1)).isoformat(),
        ),
    ]
