# =============================================================================
# care_core/services/adherence.py
# Adherence Accumulator - Pure Score Updates and Dose History Summaries
# =============================================================================
"""
Adherence scoring.

`next_adherence` is the only way a medication's adherence score changes.
It is a pure function of the current score and the number of dose events
recorded for the medication, so both storage paths (backend and local
store) produce the same result and it can be tested without storage.

Each recorded dose raises the score by a fixed increment, clamped to
[0, 100]. There is no decay over time and no missed-dose penalty.
"""

from __future__ import annotations
from typing import Dict, Iterable

import pandas as pd

from care_core.models import DoseEvent, Medication

ADHERENCE_MIN = 0
ADHERENCE_MAX = 100
DEFAULT_INCREMENT = 2


def clamp_score(score: float) -> int:
    """Round and clamp a score into [0, 100]."""
    return int(max(ADHERENCE_MIN, min(ADHERENCE_MAX, round(score))))


def next_adherence(
    current_score: float,
    event_count: int,
    increment: int = DEFAULT_INCREMENT,
) -> int:
    """
    Score after the latest dose event has been recorded.

    Args:
        current_score: Score before the event
        event_count: Dose events recorded for the medication, including
            the one just taken; zero means nothing was recorded
        increment: Points added per event

    Returns:
        New score in [0, 100], never below the (clamped) current score
    """
    if event_count < 0:
        raise ValueError("event_count cannot be negative")
    base = clamp_score(current_score)
    if event_count == 0:
        return base
    return clamp_score(base + increment)


def dose_stats(events: Iterable[DoseEvent]) -> Dict[str, Dict[str, float]]:
    """
    Per-medication dose count and verified ratio.

    Returns:
        {medication_id: {"count": n, "verified_ratio": r}}
    """
    totals: Dict[str, Dict[str, int]] = {}
    for event in events:
        entry = totals.setdefault(event.medication_id, {"count": 0, "verified": 0})
        entry["count"] += 1
        entry["verified"] += int(event.verified)
    return {
        med_id: {"count": t["count"], "verified_ratio": t["verified"] / t["count"]}
        for med_id, t in totals.items()
    }


# =============================================================================
# TABULAR VIEWS
# =============================================================================

MEDICATION_COLUMNS = [
    "id", "name", "dosage", "frequency", "nextDoseAt",
    "adherence", "pillCount", "lastTakenAt",
]


def medications_frame(medications: Iterable[Medication]) -> pd.DataFrame:
    """Medications as a DataFrame, ordered by next dose."""
    rows = [m.to_dict() for m in medications]
    if not rows:
        return pd.DataFrame(columns=MEDICATION_COLUMNS)
    df = pd.DataFrame(rows)[MEDICATION_COLUMNS]
    df["nextDoseAt"] = pd.to_datetime(df["nextDoseAt"], errors="coerce", format="ISO8601")
    return df.sort_values("nextDoseAt", na_position="last").reset_index(drop=True)


def dose_history_frame(events: Iterable[DoseEvent]) -> pd.DataFrame:
    """
    Daily dose counts per medication.

    Returns:
        DataFrame with columns medicationId, date, doses, verified
    """
    rows = [e.to_dict() for e in events]
    if not rows:
        return pd.DataFrame(columns=["medicationId", "date", "doses", "verified"])

    df = pd.DataFrame(rows)
    df["date"] = pd.to_datetime(df["takenAt"], format="ISO8601").dt.date
    summary = (
        df.groupby(["medicationId", "date"])
        .agg(doses=("id", "count"), verified=("verified", "sum"))
        .reset_index()
    )
    summary["verified"] = summary["verified"].astype(int)
    return summary
