"""
Legacy application shapes and their mapping onto current table rows.

Older callers still send camelCase objects ("relationshipToUser": "Child",
"medicationName": ...). The models below accept that layout and convert to
and from the snake_case records in ``familyhealth.domain.models``.

Key differences:
- Relationship labels are capitalised and include "Self"/"Grandparent",
  which collapse to ``other``.
- Gender labels are capitalised; "Prefer Not to Say" collapses to ``other``.
- A prescription's ``refillDate`` is stored as ``end_date``.
"""

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from familyhealth.domain.models import (
    FamilyMember,
    Gender,
    Prescription,
    Relationship,
)

_RELATIONSHIPS: dict[str, Relationship] = {
    "Child": Relationship.CHILD,
    "Spouse": Relationship.SPOUSE,
    "Parent": Relationship.PARENT,
    "Sibling": Relationship.SIBLING,
    "Self": Relationship.OTHER,
    "Grandparent": Relationship.OTHER,
}

_GENDERS: dict[str, Gender] = {
    "Male": Gender.MALE,
    "Female": Gender.FEMALE,
    "Other": Gender.OTHER,
    "Prefer Not to Say": Gender.OTHER,
}


def map_legacy_relationship(label: str | None) -> Relationship:
    """Unknown or missing labels map to ``other``."""
    return _RELATIONSHIPS.get(label or "", Relationship.OTHER)


def map_legacy_gender(label: Any) -> Gender | None:
    if not isinstance(label, str):
        return None
    return _GENDERS.get(label)


class LegacyModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_legacy_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class LegacyFamilyMember(LegacyModel):
    id: str | None = None
    name: str
    relationship_to_user: str | None = None
    date_of_birth: date | None = None
    gender: str | None = None
    blood_type: str | None = None
    height_cm: float | None = None
    allergies: list[str] = Field(default_factory=list)
    emergency_notes: str | None = None


def member_from_legacy(legacy: LegacyFamilyMember) -> FamilyMember:
    return FamilyMember(
        id=legacy.id,
        name=legacy.name,
        relationship=map_legacy_relationship(legacy.relationship_to_user),
        relationship_to_user=legacy.relationship_to_user,
        date_of_birth=legacy.date_of_birth,
        gender=map_legacy_gender(legacy.gender),
        blood_type=legacy.blood_type,
        height_cm=legacy.height_cm,
        allergies=legacy.allergies,
        medical_notes=legacy.emergency_notes,
        is_active=True,
    )


class LegacyPrescription(LegacyModel):
    id: str | None = None
    user_id: str | None = Field(default=None, alias="user_id")
    medication_name: str = ""
    dosage: str = ""
    frequency: str = ""
    prescribing_doctor: str = ""
    pharmacy: str | None = None
    refill_date: date | None = None
    family_member_id: str = ""


def prescription_to_legacy(record: Prescription) -> LegacyPrescription:
    return LegacyPrescription(
        id=record.id,
        user_id=record.user_id,
        medication_name=record.medication_name,
        dosage=record.dosage,
        frequency=record.frequency,
        prescribing_doctor=record.prescribing_doctor or "",
        pharmacy=record.pharmacy,
        refill_date=record.end_date,
        family_member_id=record.family_member_id or "",
    )


def prescription_from_legacy(legacy: LegacyPrescription) -> Prescription:
    return Prescription(
        family_member_id=legacy.family_member_id or None,
        medication_name=legacy.medication_name,
        dosage=legacy.dosage,
        frequency=legacy.frequency,
        prescribing_doctor=legacy.prescribing_doctor or None,
        pharmacy=legacy.pharmacy,
        end_date=legacy.refill_date,
        is_active=True,
    )


_PRESCRIPTION_COLUMNS = {
    "medicationName": "medication_name",
    "dosage": "dosage",
    "frequency": "frequency",
    "prescribingDoctor": "prescribing_doctor",
    "pharmacy": "pharmacy",
    "refillDate": "end_date",
    "familyMemberId": "family_member_id",
}


def legacy_prescription_changes(changes: dict[str, Any]) -> dict[str, Any]:
    """Translate a partial legacy update; empty values are dropped, not cleared."""
    return {
        column: changes[key]
        for key, column in _PRESCRIPTION_COLUMNS.items()
        if changes.get(key)
    }
