# =============================================================================
# care_core/models/validation.py
# Input Validation for Create/Update Operations
# =============================================================================

from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, Iterable, Mapping, Optional

from care_core.errors import ValidationError
from care_core.models.entities import LANGUAGES, ROLES, Medication

HEALTH_DATA_TYPES = ("blood_pressure", "heart_rate", "blood_sugar", "weight", "temperature")
NOTIFICATION_PRIORITIES = ("low", "medium", "high")


def _require_mapping(data: Any, what: str) -> Dict[str, Any]:
    if not isinstance(data, Mapping):
        raise ValidationError(
            f"{what} must be a mapping",
            expected="dict",
            actual=type(data).__name__,
        )
    return dict(data)


def _require_text(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            f"'{key}' is required",
            field=key,
            expected="non-empty string",
            actual=repr(value),
        )
    return value.strip()


def _check_choice(value: Any, key: str, choices: Iterable[str]) -> str:
    choices = tuple(choices)
    if value not in choices:
        raise ValidationError(
            f"'{key}' must be one of {', '.join(choices)}",
            field=key,
            expected=" | ".join(choices),
            actual=repr(value),
        )
    return value


def _check_count(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(
            f"'{key}' must be a non-negative integer",
            field=key,
            expected="int >= 0",
            actual=repr(value),
        )
    return value


def _check_timestamp(value: Any, key: str) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    try:
        datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(
            f"'{key}' must be an ISO-8601 timestamp",
            field=key,
            expected="ISO-8601",
            actual=repr(value),
        )
    return str(value)


def _reject_protected(patch: Dict[str, Any], protected: Iterable[str]) -> None:
    for key in protected:
        if key in patch:
            raise ValidationError(f"'{key}' cannot be changed", field=key)


# =============================================================================
# MEDICATIONS
# =============================================================================

def validate_medication_input(data: Any) -> Dict[str, Any]:
    """Validate add-medication input and return the normalized fields."""
    data = _require_mapping(data, "Medication")
    _reject_protected(data, Medication.PROTECTED)

    cleaned = {
        "name": _require_text(data, "name"),
        "dosage": _require_text(data, "dosage"),
        "frequency": _require_text(data, "frequency"),
        "pillCount": _check_count(data.get("pillCount", 0), "pillCount"),
        "nextDoseAt": _check_timestamp(data.get("nextDoseAt"), "nextDoseAt"),
    }
    if data.get("notes") is not None:
        cleaned["notes"] = str(data["notes"])
    return cleaned


def validate_medication_patch(patch: Any) -> Dict[str, Any]:
    """Validate a medication patch; only supplied keys are checked."""
    patch = _require_mapping(patch, "Medication patch")
    _reject_protected(patch, Medication.PROTECTED)

    allowed = {"name", "dosage", "frequency", "pillCount", "nextDoseAt", "notes"}
    unknown = set(patch) - allowed
    if unknown:
        raise ValidationError(
            f"Unknown medication field(s): {', '.join(sorted(unknown))}",
            field=sorted(unknown)[0],
        )

    cleaned: Dict[str, Any] = {}
    for key in ("name", "dosage", "frequency"):
        if key in patch:
            cleaned[key] = _require_text(patch, key)
    if "pillCount" in patch:
        cleaned["pillCount"] = _check_count(patch["pillCount"], "pillCount")
    if "nextDoseAt" in patch:
        cleaned["nextDoseAt"] = _check_timestamp(patch["nextDoseAt"], "nextDoseAt")
    if "notes" in patch:
        cleaned["notes"] = None if patch["notes"] is None else str(patch["notes"])
    return cleaned


# =============================================================================
# NOTIFICATIONS
# =============================================================================

def validate_notification_input(data: Any) -> Dict[str, Any]:
    data = _require_mapping(data, "Notification")
    cleaned = {
        "type": _require_text(data, "type"),
        "title": _require_text(data, "title"),
        "message": _require_text(data, "message"),
    }
    if data.get("priority") is not None:
        cleaned["priority"] = _check_choice(data["priority"], "priority", NOTIFICATION_PRIORITIES)
    return cleaned


def validate_notification_patch(patch: Any) -> Dict[str, Any]:
    """Notifications only ever change by being marked read."""
    patch = _require_mapping(patch, "Notification patch")
    if set(patch) != {"read"}:
        raise ValidationError(
            "Only 'read' can be changed on a notification",
            field=next((k for k in patch if k != "read"), "read"),
        )
    if not isinstance(patch["read"], bool):
        raise ValidationError("'read' must be a boolean", field="read", expected="bool")
    return {"read": patch["read"]}


# =============================================================================
# OWNED RECORDS
# =============================================================================

def validate_health_data_input(data: Any) -> Dict[str, Any]:
    data = _require_mapping(data, "Health record")
    _check_choice(data.get("type"), "type", HEALTH_DATA_TYPES)
    if data.get("value") is None:
        raise ValidationError("'value' is required", field="value")
    _require_text(data, "unit")
    data["recordedAt"] = _check_timestamp(data.get("recordedAt"), "recordedAt")
    return data


def validate_document_input(data: Any) -> Dict[str, Any]:
    data = _require_mapping(data, "Document")
    for key in ("fileName", "fileType", "category"):
        data[key] = _require_text(data, key)
    return data


def validate_family_link_input(data: Any) -> Dict[str, Any]:
    data = _require_mapping(data, "Family link")
    email = _require_text(data, "memberEmail")
    if "@" not in email:
        raise ValidationError(
            "'memberEmail' must be an email address",
            field="memberEmail",
            actual=repr(email),
        )
    data["memberEmail"] = email
    data["relationship"] = _require_text(data, "relationship")
    permissions = data.get("permissions")
    if permissions is not None and (
        not isinstance(permissions, (list, tuple))
        or not all(isinstance(p, str) for p in permissions)
    ):
        raise ValidationError(
            "'permissions' must be a list of strings",
            field="permissions",
            expected="list[str]",
        )
    return data


# =============================================================================
# PROFILE
# =============================================================================

def validate_profile_patch(patch: Any) -> Dict[str, Any]:
    patch = _require_mapping(patch, "Profile patch")
    if "id" in patch:
        raise ValidationError("'id' cannot be changed", field="id")

    cleaned: Dict[str, Any] = {}
    for key in ("name", "email"):
        if key in patch:
            cleaned[key] = _require_text(patch, key)
    if "role" in patch:
        cleaned["role"] = _check_choice(patch["role"], "role", ROLES)
    if "language" in patch:
        cleaned["language"] = _check_choice(patch["language"], "language", LANGUAGES)
    if "phone" in patch:
        cleaned["phone"] = None if patch["phone"] is None else str(patch["phone"])
    if "age" in patch:
        cleaned["age"] = None if patch["age"] is None else _check_count(patch["age"], "age")

    unknown = set(patch) - set(cleaned)
    if unknown:
        raise ValidationError(
            f"Unknown profile field(s): {', '.join(sorted(unknown))}",
            field=sorted(unknown)[0],
        )
    return cleaned


def validate_signup(email: Any, password: Any, name: Any, role: Any) -> None:
    data = {"email": email, "password": password, "name": name}
    for key in data:
        _require_text(data, key)
    if "@" not in email:
        raise ValidationError("'email' must be an email address", field="email")
    _check_choice(role, "role", ROLES)
