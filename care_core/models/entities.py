# =============================================================================
# care_core/models/entities.py
# Entity Shapes Shared by the Local Store and the Remote Backend
# =============================================================================
"""
Entity dataclasses.

Every entity serializes to the camelCase JSON shape the backend speaks
(`to_dict`) and is rebuilt from either store with `from_dict`. The deployed
edge function still emits a few legacy keys (`userId`, `nextDose`,
`lastTaken`, `uploadedAt`); `from_dict` accepts them so that a record read
from the backend and one read from the local store share one field set.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Optional, Tuple

ROLES = ("patient", "family", "doctor", "asha")
LANGUAGES = ("en", "hi", "mr")

LOCAL_TOKEN = "demo-token"


def _first(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present, non-None value among keys."""
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return default


# =============================================================================
# IDENTITY & SESSION
# =============================================================================

@dataclass
class Identity:
    """The single active actor: remote-authenticated or local-only."""
    id: str
    email: str
    name: str
    role: str = "patient"
    phone: Optional[str] = None
    age: Optional[int] = None
    language: str = "en"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Identity:
        meta = data.get("user_metadata") or {}
        return cls(
            id=str(data["id"]),
            email=data.get("email") or "",
            name=_first(data, "name", default=None) or meta.get("name") or "Demo User",
            role=_first(data, "role", default=None) or meta.get("role") or "patient",
            phone=_first(data, "phone", default=None) or meta.get("phone"),
            age=_first(data, "age", default=None) or meta.get("age"),
            language=_first(data, "language", default=None) or meta.get("language") or "en",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "phone": self.phone,
            "age": self.age,
            "language": self.language,
        }


@dataclass
class Session:
    """Association between an access token and an Identity."""
    access_token: str
    identity: Identity
    local: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Session:
        identity_data = _first(data, "identity", "user")
        token = _first(data, "accessToken", "access_token", default=LOCAL_TOKEN)
        return cls(
            access_token=token,
            identity=Identity.from_dict(identity_data),
            local=bool(data.get("local", token == LOCAL_TOKEN)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accessToken": self.access_token,
            "identity": self.identity.to_dict(),
            "local": self.local,
        }


# =============================================================================
# MEDICATIONS
# =============================================================================

@dataclass
class Medication:
    """A tracked medication; `adherence` moves only through the accumulator."""
    id: str
    name: str
    dosage: str
    frequency: str
    owner_id: str
    created_at: str
    updated_at: str
    next_dose_at: Optional[str] = None
    adherence: int = 100
    pill_count: int = 0
    last_taken_at: Optional[str] = None
    notes: Optional[str] = None

    # Fields a patch may never touch
    PROTECTED: ClassVar[Tuple[str, ...]] = ("id", "ownerId", "createdAt", "adherence")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Medication:
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            dosage=data.get("dosage", ""),
            frequency=data.get("frequency", ""),
            owner_id=str(_first(data, "ownerId", "userId", default="demo")),
            created_at=data.get("createdAt", ""),
            updated_at=_first(data, "updatedAt", "createdAt", default=""),
            next_dose_at=_first(data, "nextDoseAt", "nextDose"),
            adherence=int(_first(data, "adherence", default=100)),
            pill_count=int(_first(data, "pillCount", default=0)),
            last_taken_at=_first(data, "lastTakenAt", "lastTaken"),
            notes=data.get("notes"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "dosage": self.dosage,
            "frequency": self.frequency,
            "nextDoseAt": self.next_dose_at,
            "adherence": self.adherence,
            "pillCount": self.pill_count,
            "lastTakenAt": self.last_taken_at,
            "notes": self.notes,
            "ownerId": self.owner_id,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass
class DoseEvent:
    """Append-only record of one dose taken."""
    id: str
    medication_id: str
    taken_at: str
    verified: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> DoseEvent:
        return cls(
            id=str(data["id"]),
            medication_id=str(data["medicationId"]),
            taken_at=data.get("takenAt", ""),
            verified=bool(data.get("verified", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "medicationId": self.medication_id,
            "takenAt": self.taken_at,
            "verified": self.verified,
        }


@dataclass
class DoseResult:
    """Outcome of recording a dose: the new score and the event."""
    adherence: int
    event: Optional[DoseEvent] = None


# =============================================================================
# NOTIFICATIONS
# =============================================================================

@dataclass
class Notification:
    id: str
    type: str
    title: str
    message: str
    created_at: str
    read: bool = False
    priority: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Notification:
        return cls(
            id=str(data["id"]),
            type=data.get("type", "info"),
            title=data.get("title", ""),
            message=data.get("message", ""),
            created_at=_first(data, "createdAt", "timestamp", default=""),
            read=bool(data.get("read", False)),
            priority=data.get("priority"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "createdAt": self.created_at,
            "read": self.read,
            "priority": self.priority,
        }


# =============================================================================
# OWNED RECORDS (health data, documents, family links)
# =============================================================================

@dataclass
class OwnedRecord:
    """
    Append/list/delete record: `{id, ownerId, payload, createdAt}`.

    The backend stores these flat (`{id, userId, fileName, ...}`); everything
    that is not an envelope key is folded into `payload` on the way in.
    """
    id: str
    owner_id: str
    payload: Dict[str, Any] = field(default_factory=dict)
    created_at: str = ""

    OWNER_KEYS: ClassVar[Tuple[str, ...]] = ("ownerId", "userId")
    CREATED_KEYS: ClassVar[Tuple[str, ...]] = ("createdAt",)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        envelope = {"id", "payload", *cls.OWNER_KEYS, *cls.CREATED_KEYS}
        if isinstance(data.get("payload"), dict):
            payload = dict(data["payload"])
        else:
            payload = {k: v for k, v in data.items() if k not in envelope}
        return cls(
            id=str(data["id"]),
            owner_id=str(_first(data, *cls.OWNER_KEYS, default="demo")),
            payload=payload,
            created_at=_first(data, *cls.CREATED_KEYS, default=""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "ownerId": self.owner_id,
            "payload": dict(self.payload),
            "createdAt": self.created_at,
        }


class HealthRecord(OwnedRecord):
    """A vitals reading (blood pressure, heart rate, ...)."""


class Document(OwnedRecord):
    """Metadata of an uploaded medical document."""
    CREATED_KEYS: ClassVar[Tuple[str, ...]] = ("createdAt", "uploadedAt")


class FamilyLink(OwnedRecord):
    """A caregiver link from a patient to a family member."""
    OWNER_KEYS: ClassVar[Tuple[str, ...]] = ("ownerId", "patientId", "userId")
